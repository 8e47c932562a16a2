"""
Static symbol tables used by the LaTeX converter
"""

import json
import logging
import string
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from collections.abc import Mapping
from typing import Dict, Iterator, Optional, Union, FrozenSet

import yaml


logger = logging.getLogger(__name__)


class SymbolTable(Mapping):
    """Read-only mapping from a command name or character to Unicode.

    Lookups through :meth:`lookup` and :meth:`transliterate` are total:
    a key missing from the table comes back unchanged.
    """

    def __init__(self, name: str, entries: Mapping[str, str]):
        self.name = name
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SymbolTable({self.name!r}, {len(self)} entries)"

    def lookup(self, key: str) -> str:
        return self._entries.get(key, key)

    def transliterate(self, text: str) -> str:
        """Map every character of ``text`` through the table."""
        return "".join(self._entries.get(char, char) for char in text)

    def merged(self, overrides: Mapping[str, str]) -> "SymbolTable":
        """Return a new table with ``overrides`` layered on top."""
        entries = dict(self._entries)
        entries.update({str(k): str(v) for k, v in overrides.items()})
        return SymbolTable(self.name, entries)


def _font_map(upper: str, lower: str) -> Dict[str, str]:
    """Pair A-Z and a-z with the glyphs of one math alphabet."""
    mapping = dict(zip(string.ascii_uppercase, upper))
    mapping.update(zip(string.ascii_lowercase, lower))
    return mapping


def _circled_map() -> Dict[str, str]:
    mapping = {c: chr(0x24B6 + i) for i, c in enumerate(string.ascii_uppercase)}
    mapping.update({c: chr(0x24D0 + i) for i, c in enumerate(string.ascii_lowercase)})
    mapping['0'] = '⓪'
    for n in range(1, 21):
        mapping[str(n)] = chr(0x2460 + n - 1)
    for n in range(21, 36):
        mapping[str(n)] = chr(0x3251 + n - 21)
    for n in range(36, 51):
        mapping[str(n)] = chr(0x32B1 + n - 36)
    return mapping


SUPERSCRIPTS = {
    '0': '⁰', '1': '¹', '2': '²', '3': '³', '4': '⁴',
    '5': '⁵', '6': '⁶', '7': '⁷', '8': '⁸', '9': '⁹',
    'a': 'ᵃ', 'b': 'ᵇ', 'c': 'ᶜ', 'd': 'ᵈ', 'e': 'ᵉ',
    'f': 'ᶠ', 'g': 'ᵍ', 'h': 'ʰ', 'i': 'ⁱ', 'j': 'ʲ',
    'k': 'ᵏ', 'l': 'ˡ', 'm': 'ᵐ', 'n': 'ⁿ', 'o': 'ᵒ',
    'p': 'ᵖ', 'q': 'q', 'r': 'ʳ', 's': 'ˢ', 't': 'ᵗ',
    'u': 'ᵘ', 'v': 'ᵛ', 'w': 'ʷ', 'x': 'ˣ', 'y': 'ʸ',
    'z': 'ᶻ',
    'A': 'ᴬ', 'B': 'ᴮ', 'C': 'ᶜ', 'D': 'ᴰ', 'E': 'ᴱ',
    'F': 'ᶠ', 'G': 'ᴳ', 'H': 'ᴴ', 'I': 'ᴵ', 'J': 'ᴶ',
    'K': 'ᴷ', 'L': 'ᴸ', 'M': 'ᴹ', 'N': 'ᴺ', 'O': 'ᴼ',
    'P': 'ᴾ', 'Q': 'Q', 'R': 'ᴿ', 'S': 'ˢ', 'T': 'ᵀ',
    'U': 'ᵁ', 'V': 'ⱽ', 'W': 'ᵂ', 'X': 'ˣ', 'Y': 'ʸ',
    'Z': 'ᶻ',
    '+': '⁺', '-': '⁻', '=': '⁼', '(': '⁽', ')': '⁾'
}

SUBSCRIPTS = {
    '0': '₀', '1': '₁', '2': '₂', '3': '₃', '4': '₄',
    '5': '₅', '6': '₆', '7': '₇', '8': '₈', '9': '₉',
    'a': 'ₐ', 'e': 'ₑ', 'h': 'ₕ', 'i': 'ᵢ', 'j': 'ⱼ',
    'k': 'ₖ', 'l': 'ₗ', 'm': 'ₘ', 'n': 'ₙ', 'o': 'ₒ',
    'p': 'ₚ', 'r': 'ᵣ', 's': 'ₛ', 't': 'ₜ', 'u': 'ᵤ',
    'v': 'ᵥ', 'x': 'ₓ',
    'A': 'ₐ', 'B': 'ᵦ', 'E': 'ₑ', 'H': 'ₕ', 'I': 'ᵢ',
    'K': 'ₖ', 'L': 'ₗ', 'M': 'ₘ', 'N': 'ₙ', 'O': 'ₒ',
    'P': 'ₚ', 'R': 'ᵣ', 'S': 'ₛ', 'T': 'ₜ', 'U': 'ᵤ',
    'V': 'ᵥ', 'X': 'ₓ',
    '+': '₊', '-': '₋', '=': '₌', '(': '₍', ')': '₎'
}

GREEK_LETTERS = {
    'alpha': 'α', 'beta': 'β', 'gamma': 'γ', 'Gamma': 'Γ',
    'delta': 'δ', 'Delta': 'Δ', 'epsilon': 'ε', 'varepsilon': 'ϵ',
    'zeta': 'ζ', 'eta': 'η', 'theta': 'θ', 'Theta': 'Θ', 'iota': 'ι',
    'kappa': 'κ', 'lambda': 'λ', 'Lambda': 'Λ', 'mu': 'μ', 'nu': 'ν',
    'xi': 'ξ', 'Xi': 'Ξ', 'omicron': 'ο', 'pi': 'π', 'Pi': 'Π',
    'rho': 'ρ', 'Sigma': 'Σ', 'sigma': 'σ',
    'tau': 'τ', 'Upsilon': 'Υ', 'upsilon': 'υ',
    'phi': 'φ', 'Phi': 'Φ', 'chi': 'χ', 'psi': 'ψ', 'Psi': 'Ψ',
    'omega': 'ω', 'Omega': 'Ω'
}

MATH_OPERATORS = {
    # Relations
    'neq': '≠', 'ne': '≠', 'leq': '≤', 'geq': '≥', 'le': '≤', 'ge': '≥',
    'll': '≪', 'gg': '≫', 'approx': '≈', 'propto': '∝',
    'equiv': '≡', 'sim': '∼', 'simeq': '≃', 'cong': '≅',

    # Logic and arrows
    'neg': '¬', 'lnot': '¬', 'land': '∧', 'lor': '∨', 'wedge': '∧', 'vee': '∨',
    'Leftrightarrow': '⟺', 'Rightarrow': '⇒', 'Leftarrow': '⇐',
    'rightarrow': '→', 'leftarrow': '←', 'to': '→', 'gets': '←',
    'longrightarrow': '⟶', 'longleftarrow': '⟵', 'longleftrightarrow': '⟷',
    'Longrightarrow': '⟹', 'Longleftarrow': '⟸',
    'forall': '∀', 'exists': '∃', 'nexists': '∄',
    'mapsto': '↦', 'longmapsto': '⟼', 'hookrightarrow': '↪', 'hookleftarrow': '↩',
    'rightharpoonup': '⇀', 'leftharpoonup': '↼', 'rightharpoondown': '⇁', 'leftharpoondown': '↽',
    'updownarrow': '↕', 'Updownarrow': '⇕', 'nearrow': '↗', 'searrow': '↘', 'swarrow': '↙',
    'nwarrow': '↖', 'top': '⊤', 'bot': '⊥',
    'circlearrowleft': '↺', 'circlearrowright': '↻', 'curvearrowleft': '↶', 'curvearrowright': '↷',
    'leftrightarrow': '↔', 'Uparrow': '⇑', 'Downarrow': '⇓',
    'uparrow': '↑', 'downarrow': '↓', 'twoheadrightarrow': '↠', 'rightsquigarrow': '⇝',

    # Sets
    'in': '∈', 'notin': '∉', 'ni': '∋', 'cup': '∪', 'cap': '∩',
    'subset': '⊂', 'subseteq': '⊆', 'supset': '⊃', 'supseteq': '⊇',
    'emptyset': '∅', 'complement': '∁',

    # Arithmetic
    'times': '×', 'cdot': '·',
    'pm': '±', 'mp': '∓', 'div': '÷', 'hbar': 'ℏ',

    'therefore': '∴', 'because': '∵',
    'dots': '…', 'cdots': '⋯', 'vdots': '⋮', 'ddots': '⋱', 'ldots': '…',

    'nabla': '∇', 'partial': '∂',

    'angle': '∠', 'triangle': '△', 'square': '□', 'circle': '○',

    'infty': '∞', 'prime': '′', 'degree': '°', 'circ': '∘', 'bullet': '•',
    'ast': '∗', 'star': '⋆', 'mid': '∣', 'ell': 'ℓ',
    'wp': '℘', 'Re': 'ℜ', 'Im': 'ℑ',

    'varnothing': '∅', 'setminus': '∖', 'smallsetminus': '∖',
    'subseteqq': '⫅', 'supseteqq': '⫆', 'nsubseteqq': '⊈',
    'subsetneqq': '⊊', 'supsetneqq': '⊋', 'varsubsetneq': '⊊', 'varsupsetneq': '⊋',
    'nsubset': '⊄', 'nsupset': '⊅', 'nsupseteq': '⊉',

    'prec': '≺', 'succ': '≻', 'preceq': '⪯', 'succeq': '⪰',
    'nprec': '⊀', 'nsucc': '⊁', 'parallel': '∥', 'nparallel': '∦',
    'asymp': '≍', 'bowtie': '⋈', 'vartriangle': '△', 'triangleq': '≜',

    'perp': '⊥', 'vdash': '⊢', 'models': '⊨', 'dashv': '⊣',
    'nvdash': '⊬', 'intercal': '⊺', 'between': '≬', 'pitchfork': '⋔', 'backepsilon': '∍',

    'ltimes': '⋉', 'rtimes': '⋊', 'leftthreetimes': '⋋', 'rightthreetimes': '⋌',
    'dotplus': '∔', 'divideontimes': '⋇', 'smallint': '∫',

    # Hebrew
    'aleph': 'ℵ', 'beth': 'ℶ', 'gimel': 'ℷ', 'daleth': 'ℸ', 'samekh': 'ס', 'zayin': 'ז', 'het': 'ח',
    'tet': 'ט', 'yod': 'י', 'kaf': 'כ', 'lamed': 'ל', 'mem': 'מ', 'nun': 'נ', 'pe': 'פ', 'tsadi': 'צ',
    'qof': 'ק', 'resh': 'ר', 'shin': 'ש', 'tav': 'ת', 'vav': 'ו',
    'ayin': 'ע', 'finalkaf': 'ך', 'finalmem': 'ם', 'finalnun': 'ן', 'finalpe': 'ף', 'finaltsadi': 'ץ',

    'implies': '⟹', 'iff': '⟺', 'Box': '□', 'Diamond': '◇',
    'blacksquare': '■', 'diamond': '◇', 'blackdiamond': '◆', 'lozenge': '◊', 'blacklozenge': '⧫',
    'bigcirc': '○', 'bigstar': '★', 'pounds': '£', 'yen': '¥', 'euro': '€',
    'circledS': 'Ⓢ', 'circledR': '®', 'trademark': '™', 'copyright': '©',

    'measuredangle': '∡', 'sphericalangle': '∢', 'nmid': '∤', 'lvert': '|', 'rvert': '|',
    'vert': '|', 'Vert': '‖',
    'langle': '⟨', 'rangle': '⟩', 'lfloor': '⌊', 'rfloor': '⌋', 'lceil': '⌈', 'rceil': '⌉',

    'dagger': '†', 'ddagger': '‡', 'amalg': '⨿', 'bigcap': '⋂', 'bigcup': '⋃', 'bigsqcup': '⨆',
    'bigvee': '⋁', 'bigwedge': '⋀', 'bigodot': '⨀', 'bigoplus': '⨁', 'bigotimes': '⨂',
    'iint': '∬', 'iiint': '∭', 'iiiint': '⨌', 'idotsint': '∫⋯∫',

    'ulcorner': '⌜', 'urcorner': '⌝', 'llcorner': '⌞', 'lrcorner': '⌟',

    'textdegree': '°', 'dag': '†', 'ddag': '‡',
    'textbar': '|', 'textasciicircum': '^', 'textasciitilde': '~', 'checkmark': '✓',
    'Join': '⋈', 'lhd': '⊲', 'rhd': '⊳', 'unlhd': '⊴', 'unrhd': '⊵',

    'mho': '℧', 'varkappa': 'ϰ', 'varrho': 'ϱ', 'varsigma': 'ς', 'vartheta': 'ϑ', 'varphi': 'φ', 'varpi': 'ϖ',

    'Game': '⅁', 'flat': '♭', 'natural': '♮', 'sharp': '♯',
    'clubsuit': '♣', 'diamondsuit': '♢', 'heartsuit': '♡', 'spadesuit': '♠',

    'imath': 'ı', 'jmath': 'ȷ', 'wr': '≀',
    'coprod': '∐', 'biguplus': '⨄',

    'backprime': '‵', 'And': '⩓', 'S': '§', 'P': '¶', 'eth': 'ð', 'maltese': '✠',
    'diagup': '╱', 'diagdown': '╲',
    'triangledown': '▽', 'triangleleft': '◁', 'triangleright': '▷',
    'circledast': '⊛', 'circledcirc': '⊚', 'circleddash': '⊝',
    'oplus': '⊕', 'ominus': '⊖', 'otimes': '⊗', 'oslash': '⊘', 'odot': '⊙',
    'sqcup': '⊔', 'sqcap': '⊓', 'uplus': '⊎',
}

MATH_FUNCTIONS = frozenset({
    'sin', 'cos', 'tan', 'cot', 'sec', 'csc',
    'arcsin', 'arccos', 'arctan', 'sinh', 'cosh', 'tanh',
    'log', 'ln', 'lg',
    'exp', 'min', 'max',
    'det', 'rank', 'tr',
    'ker', 'im', 'dim', 'deg',
    'gcd', 'lcm', 'sup', 'inf', 'lim'
})

CIRCLED = _circled_map()

DELIMITERS = {
    '\\left(': '(', '\\right)': ')',
    '\\left[': '[', '\\right]': ']',
    '\\left\\{': '{', '\\right\\}': '}',
    '\\left|': '|', '\\right|': '|',
    '\\middle|': '|',
    '\\left\\|': '‖', '\\right\\|': '‖',
    '\\left\\langle': '⟨', '\\right\\rangle': '⟩',
    '\\lVert': '‖', '\\rVert': '‖',
    '\\|': '‖'
}

MATH_FONTS = {
    'mathbf': _font_map(
        '𝐀𝐁𝐂𝐃𝐄𝐅𝐆𝐇𝐈𝐉𝐊𝐋𝐌𝐍𝐎𝐏𝐐𝐑𝐒𝐓𝐔𝐕𝐖𝐗𝐘𝐙',
        '𝐚𝐛𝐜𝐝𝐞𝐟𝐠𝐡𝐢𝐣𝐤𝐥𝐦𝐧𝐨𝐩𝐪𝐫𝐬𝐭𝐮𝐯𝐰𝐱𝐲𝐳'),
    'mathbb': _font_map(
        '𝔸𝔹ℂ𝔻𝔼𝔽𝔾ℍ𝕀𝕁𝕂𝕃𝕄ℕ𝕆ℙℚℝ𝕊𝕋𝕌𝕍𝕎𝕏𝕐ℤ',
        '𝕒𝕓𝕔𝕕𝕖𝕗𝕘𝕙𝕚𝕛𝕜𝕝𝕞𝕟𝕠𝕡𝕢𝕣𝕤𝕥𝕦𝕧𝕨𝕩𝕪𝕫'),
    'mathcal': _font_map(
        '𝒜ℬ𝒞𝒟ℰℱ𝒢ℋℐ𝒥𝒦ℒℳ𝒩𝒪𝒫𝒬ℛ𝒮𝒯𝒰𝒱𝒲𝒳𝒴𝒵',
        '𝒶𝒷𝒸𝒹𝑒𝒻𝑔𝒽𝒾𝒿𝓀𝓁𝓂𝓃𝑜𝓅𝓆𝓇𝓈𝓉𝓊𝓋𝓌𝓍𝓎𝓏'),
    'mathfrak': _font_map(
        '𝔄𝔅ℭ𝔇𝔈𝔉𝔊ℌℑ𝔍𝔎𝔏𝔐𝔑𝔒𝔓𝔔ℜ𝔖𝔗𝔘𝔙𝔚𝔛𝔜ℨ',
        '𝔞𝔟𝔠𝔡𝔢𝔣𝔤𝔥𝔦𝔧𝔨𝔩𝔪𝔫𝔬𝔭𝔮𝔯𝔰𝔱𝔲𝔳𝔴𝔵𝔶𝔷'),
}

# Combining marks appended after the decorated character
DECORATIONS = {
    'overline': '\u0304', 'bar': '\u0304',
    'hat': '\u0302', 'widehat': '\u0302',
    'tilde': '\u0303', 'widetilde': '\u0303',
    'vec': '\u20d7', 'dot': '\u0307', 'ddot': '\u0308',
    'acute': '\u0301', 'grave': '\u0300', 'check': '\u030c', 'breve': '\u0306'
}

# \! is a negative thin space and renders as nothing
SPACES = {
    '\\,': '\u2009', '\\:': '\u205f', '\\;': '\u2004', '\\!': '',
    '\\quad': '\u2003', '\\qquad': '\u2003\u2003'
}

LARGE_OPERATORS = {
    'sum': 'Σ', 'prod': 'Π', 'int': '∫', 'oint': '∮'
}


@dataclass(frozen=True)
class SymbolTables:
    """The full set of lookup tables one converter works with."""
    superscripts: SymbolTable
    subscripts: SymbolTable
    greek_letters: SymbolTable
    math_operators: SymbolTable
    circled: SymbolTable
    delimiters: SymbolTable
    decorations: SymbolTable
    spaces: SymbolTable
    large_operators: SymbolTable
    math_fonts: Mapping[str, SymbolTable]
    math_functions: FrozenSet[str] = field(default=MATH_FUNCTIONS)

    TABLE_NAMES = (
        'superscripts', 'subscripts', 'greek_letters', 'math_operators',
        'circled', 'delimiters', 'decorations', 'spaces', 'large_operators'
    )

    @classmethod
    def default(cls) -> "SymbolTables":
        """Build the built-in tables."""
        return cls(
            superscripts=SymbolTable('superscripts', SUPERSCRIPTS),
            subscripts=SymbolTable('subscripts', SUBSCRIPTS),
            greek_letters=SymbolTable('greek_letters', GREEK_LETTERS),
            math_operators=SymbolTable('math_operators', MATH_OPERATORS),
            circled=SymbolTable('circled', CIRCLED),
            delimiters=SymbolTable('delimiters', DELIMITERS),
            decorations=SymbolTable('decorations', DECORATIONS),
            spaces=SymbolTable('spaces', SPACES),
            large_operators=SymbolTable('large_operators', LARGE_OPERATORS),
            math_fonts=MappingProxyType({
                name: SymbolTable(name, glyphs) for name, glyphs in MATH_FONTS.items()
            }),
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SymbolTables":
        """Load overrides from a YAML/JSON file and merge them over the defaults."""
        path = Path(path)
        tables = cls.default()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix in ['.yaml', '.yml']:
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except Exception as e:
            logger.warning(f"Failed to load symbol overrides from {path}: {e}")
            return tables

        if not isinstance(data, dict):
            logger.warning(f"Ignoring symbol overrides in {path}: top level is not a mapping")
            return tables

        tables = tables.with_overrides(data)
        logger.info(f"Loaded symbol overrides from {path}")
        return tables

    def with_overrides(self, data: Mapping[str, Mapping]) -> "SymbolTables":
        """Return a copy with per-table entries replaced by ``data``."""
        updates = {}
        for name, entries in data.items():
            if name in self.TABLE_NAMES and isinstance(entries, dict):
                updates[name] = getattr(self, name).merged(entries)
            elif name == 'math_fonts' and isinstance(entries, dict):
                fonts = dict(self.math_fonts)
                for font, glyphs in entries.items():
                    base = fonts.get(font, SymbolTable(font, {}))
                    fonts[font] = base.merged(glyphs)
                updates['math_fonts'] = MappingProxyType(fonts)
            else:
                logger.warning(f"Unknown symbol table in overrides: {name}")

        values = {name: getattr(self, name) for name in self.TABLE_NAMES}
        values['math_fonts'] = self.math_fonts
        values['math_functions'] = self.math_functions
        values.update(updates)
        return SymbolTables(**values)

    def lookup_command(self, name: str) -> Optional[str]:
        """Resolve a ``\\name`` command: operators, then Greek, then function names."""
        if name in self.math_operators:
            return self.math_operators[name]
        if name in self.greek_letters:
            return self.greek_letters[name]
        if name in self.math_functions:
            return name
        return None


_default_tables = None
_default_tables_lock = threading.Lock()


def get_symbol_tables() -> SymbolTables:
    """Process-wide built-in tables, created once."""
    global _default_tables
    if _default_tables is None:
        with _default_tables_lock:
            if _default_tables is None:
                _default_tables = SymbolTables.default()
    return _default_tables
