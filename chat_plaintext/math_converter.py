import regex
import logging
import threading
from typing import Optional, List

from .config import LatexConfig
from .symbols import SymbolTables, get_symbol_tables


logger = logging.getLogger(__name__)


class MathConverter:
    """Rewrite a single LaTeX math fragment as Unicode plain text.

    The conversion is an ordered list of regex passes over the fragment.
    Later passes rely on earlier ones having normalised their input, so
    the order in :meth:`convert` matters. Unknown commands are left in
    place and lose their backslash in the final cleanup.
    """

    MATRIX_BRACKETS = {
        'p': ('(', ')'),
        'b': ('[', ']'),
        'v': ('|', '|'),
        'V': ('‖', '‖'),
    }

    FONT_ALIASES = {'boldsymbol': 'mathbf'}

    DECORATION_NAMES = (
        'overline', 'widehat', 'widetilde', 'hat', 'vec', 'ddot', 'dot',
        'bar', 'tilde', 'acute', 'grave', 'check', 'breve'
    )

    # Binary and relational glyphs that get one space on each side
    SPACED_OPERATORS = '+\\-=<>≤≥≈≠×÷∙∘∧∨⟺⇒⇐→←∪∩∈∉⊂⊃⊆⊇'

    def __init__(self, tables: Optional[SymbolTables] = None,
                 config: Optional[LatexConfig] = None):
        self.config = config or LatexConfig()
        if tables is None:
            if self.config.symbol_overrides:
                tables = SymbolTables.load(self.config.symbol_overrides)
            else:
                tables = get_symbol_tables()
        self.tables = tables

        decorations = '|'.join(self.DECORATION_NAMES)
        fonts = '|'.join(list(self.tables.math_fonts) + list(self.FONT_ALIASES))

        self.boxed_pattern = regex.compile(r'\\boxed\{(?P<body>(?:[^{}]|\{(?&body)\})*)\}')
        self.circled_pattern = regex.compile(r'\\textcircled\{([^}]+)\}')
        self.delimiter_pattern = regex.compile(
            r'\\(?:left|right|middle)(?:\\[{}|]|\\[lr]angle|[()\[\]|./])|\\[lr]Vert|\\\|'
        )
        self.delimiter_prefix = regex.compile(r'^\\(?:left|right|middle)')
        self.displaystyle_pattern = regex.compile(r'\\displaystyle\s*')
        self.frac_variant_pattern = regex.compile(r'\\[dt]frac(?![A-Za-z])')
        self.matrix_pattern = regex.compile(
            r'\\begin\{([pbvV])matrix\}(.*?)\\end\{\1matrix\}', regex.DOTALL
        )
        self.command_pattern = regex.compile(r'\\([A-Za-z]+)(?![A-Za-z])')
        self.cases_pattern = regex.compile(r'\\begin\{cases\}(.*?)\\end\{cases\}', regex.DOTALL)
        self.env_begin_pattern = regex.compile(r'\\begin\{[^}]+\}')
        self.env_end_pattern = regex.compile(r'\\end\{[^}]+\}')
        self.text_pattern = regex.compile(
            r'\\(?:text|textrm|mathrm|mathit|operatorname)\{([^}]+)\}'
        )
        self.textcolor_pattern = regex.compile(r'\\textcolor\{([^}]+)\}\{([^}]+)\}')
        self.space_pattern = regex.compile(r'\\(?:qquad|quad|[,:;!])')
        self.limits_pattern = regex.compile(
            r'\\(sum|prod)_(?:\{([^}]+)\}|([A-Za-z0-9]))\^(?:\{([^}]+)\}|([A-Za-z0-9]))'
        )
        self.bare_limits_pattern = regex.compile(r'\\(sum|prod)(?![A-Za-z])')
        self.integral_pattern = regex.compile(r'\\(oint|int)(?![A-Za-z])(?:_([A-Z]))?')
        self.condition_prefix = regex.compile(r'^(?:\\text\{\s*if\s*\}|if\b)\s*')
        self.frac_pattern = regex.compile(
            r'\\frac\{(?P<num>(?:[^{}]|\{(?&num)\})*)\}\{(?P<den>(?:[^{}]|\{(?&den)\})*)\}'
        )
        self.root_index_pattern = regex.compile(
            r'\\sqrt\[(\d+|n)\]\{(?P<body>(?:[^{}]|\{(?&body)\})*)\}'
        )
        self.root_pattern = regex.compile(r'\\sqrt\{(?P<body>(?:[^{}]|\{(?&body)\})*)\}')
        self.font_pattern = regex.compile(rf'\\({fonts})\{{([^}}]+)\}}')
        self.decoration_pattern = regex.compile(rf'\\({decorations})\{{([^}}]+)\}}')
        self.bare_decoration_pattern = regex.compile(
            rf'\\({decorations})(?![A-Za-z])\s*([A-Za-z0-9])'
        )
        self.subscript_group_pattern = regex.compile(r'_\{([^}]+)\}')
        self.subscript_char_pattern = regex.compile(r'_([0-9A-Za-z])')
        self.superscript_group_pattern = regex.compile(r'\^\{([^}]+)\}')
        self.superscript_char_pattern = regex.compile(r'\^([0-9A-Za-z′])')
        self.operator_spacing_pattern = regex.compile(rf'\s*([{self.SPACED_OPERATORS}])\s*')
        self.whitespace_pattern = regex.compile(r'\s+')

    def convert(self, latex: str) -> str:
        """Convert one math fragment (without delimiters) to plain text."""
        result = latex

        result = self.boxed_pattern.sub(lambda m: f"[ {self.convert(m.group('body'))} ]", result)
        result = self.circled_pattern.sub(
            lambda m: self.tables.circled.get(m.group(1), 'Ⓞ'), result
        )
        result = self.delimiter_pattern.sub(self._replace_delimiter, result)

        # Display style only changes sizing; \dfrac and \tfrac are plain fractions
        result = self.displaystyle_pattern.sub('', result)
        result = self.frac_variant_pattern.sub(lambda m: '\\frac', result)

        if '\\begin{' in result:
            result = self.convert_matrices(result)

        # Commands must resolve before environment markup is stripped
        result = self.command_pattern.sub(self._replace_command, result)

        if '\\begin{' in result or '\\end{' in result:
            result = self.strip_environments(result)

        result = self.convert_text_commands(result)
        result = self.convert_spaces(result)
        result = self.convert_limits(result)
        result = self.convert_cases(result)
        result = self.convert_matrices(result)
        result = self.convert_fractions(result)
        result = self.convert_roots(result)
        result = self.convert_fonts_and_decorations(result)
        result = self.convert_scripts(result)

        return self.cleanup(result)

    def _replace_delimiter(self, match) -> str:
        text = match.group(0)
        if text in self.tables.delimiters:
            return self.tables.delimiters[text]

        token = self.delimiter_prefix.sub('', text)
        if token == '.':
            return ''
        if token.startswith('\\'):
            name = token[1:]
            return self.tables.lookup_command(name) or name
        return token

    def _replace_command(self, match) -> str:
        # Sums, products and integrals keep their scripts for convert_limits
        if match.group(1) in self.tables.large_operators:
            return match.group(0)
        symbol = self.tables.lookup_command(match.group(1))
        return match.group(0) if symbol is None else symbol

    def convert_matrices(self, text: str) -> str:
        """Render p/b/v/V matrices as bracketed rows."""
        def replace(match):
            opening, closing = self.MATRIX_BRACKETS[match.group(1)]
            rows = match.group(2).strip().split('\\\\')
            matrix = [[cell.strip() for cell in row.strip().split('&')] for row in rows]

            if len(matrix) == 1:
                return f"{opening} {' | '.join(matrix[0])} {closing}"
            body = ' | '.join('  '.join(row) for row in matrix)
            return f"{opening}\n{body}\n{closing}"

        return self.matrix_pattern.sub(replace, text)

    def strip_environments(self, text: str) -> str:
        """Drop environment markup outside of cases blocks."""
        pieces = []
        last = 0
        for match in self.cases_pattern.finditer(text):
            pieces.append(self._strip_environment_markup(text[last:match.start()]))
            pieces.append(match.group(0))
            last = match.end()
        pieces.append(self._strip_environment_markup(text[last:]))
        return ''.join(pieces)

    def _strip_environment_markup(self, text: str) -> str:
        text = self.env_begin_pattern.sub('', text)
        text = self.env_end_pattern.sub('', text)
        text = text.replace('&=', '=').replace('&', '')
        text = text.replace('\\\\', ' ')
        return self.whitespace_pattern.sub(' ', text)

    def convert_text_commands(self, text: str) -> str:
        text = self.text_pattern.sub(lambda m: m.group(1), text)
        return self.textcolor_pattern.sub(lambda m: m.group(2), text)

    def convert_spaces(self, text: str) -> str:
        return self.space_pattern.sub(lambda m: self.tables.spaces.lookup(m.group(0)), text)

    def convert_limits(self, text: str) -> str:
        """Sums, products and integrals."""
        def replace(match):
            symbol = self.tables.large_operators[match.group(1)]
            lower = match.group(2) or match.group(3)
            upper = match.group(4) or match.group(5)
            return (f"{symbol}[{self.tables.superscripts.transliterate(upper)}"
                    f"{self.tables.subscripts.transliterate(lower)}]")

        text = self.limits_pattern.sub(replace, text)
        text = self.bare_limits_pattern.sub(
            lambda m: self.tables.large_operators[m.group(1)], text
        )
        return self.integral_pattern.sub(
            lambda m: self.tables.large_operators[m.group(1)] + (m.group(2) or ''), text
        )

    def convert_cases(self, text: str) -> str:
        """Inline cases blocks become ``expr if cond, ...``."""
        def replace(match):
            lines = []
            for row in match.group(1).split('\\\\'):
                if not row.strip():
                    continue
                parts = row.split('&')
                expr = parts[0].strip()
                if len(parts) > 1:
                    cond = self.condition_prefix.sub('', parts[1].strip()).strip()
                    lines.append(f"{expr} if {cond}")
                else:
                    lines.append(expr)
            return ', '.join(lines)

        return self.cases_pattern.sub(replace, text)

    def convert_fractions(self, text: str, depth: int = 0) -> str:
        """Flatten ``\\frac{a}{b}`` to ``a/b``, parenthesising compound operands.

        Recursion stops at ``config.max_fraction_depth``; whatever is left
        at that point stays unconverted.
        """
        if depth >= self.config.max_fraction_depth:
            return text

        def replace(match):
            num = self.convert_fractions(match.group('num'), depth + 1)
            den = self.convert_fractions(match.group('den'), depth + 1)

            if self._needs_parens(num):
                num = f"({num})"
            if self._needs_parens(den):
                den = f"({den})"
            return f"{num}/{den}"

        return self.frac_pattern.sub(replace, text)

    @staticmethod
    def _needs_parens(operand: str) -> bool:
        return '/' in operand or '+' in operand or '-' in operand

    def convert_roots(self, text: str) -> str:
        def indexed(match):
            n, body = match.group(1), self.convert_roots(match.group('body'))
            if n == '3':
                return f"∛({body})"
            if n == '4':
                return f"∜({body})"
            return f"{n}√({body})"

        text = self.root_index_pattern.sub(indexed, text)
        return self.root_pattern.sub(lambda m: f"√({self.convert_roots(m.group('body'))})", text)

    def convert_fonts_and_decorations(self, text: str) -> str:
        def font(match):
            name = self.FONT_ALIASES.get(match.group(1), match.group(1))
            return self.tables.math_fonts[name].transliterate(match.group(2))

        def decorate(match):
            return match.group(2) + self.tables.decorations[match.group(1)]

        text = self.font_pattern.sub(font, text)
        text = self.decoration_pattern.sub(decorate, text)
        return self.bare_decoration_pattern.sub(decorate, text)

    def convert_scripts(self, text: str) -> str:
        """Transliterate ``_x``, ``_{xy}``, ``^x`` and ``^{xy}``."""
        sub = self.tables.subscripts
        sup = self.tables.superscripts

        text = self.subscript_group_pattern.sub(lambda m: sub.transliterate(m.group(1)), text)
        text = self.subscript_char_pattern.sub(lambda m: sub.lookup(m.group(1)), text)
        text = self.superscript_group_pattern.sub(lambda m: sup.transliterate(m.group(1)), text)
        return self.superscript_char_pattern.sub(lambda m: sup.lookup(m.group(1)), text)

    def cleanup(self, text: str) -> str:
        """Strip leftover braces and backslashes, normalise spacing."""
        text = text.replace('{', '').replace('}', '')
        text = text.replace('\\', '')
        text = self.operator_spacing_pattern.sub(r' \1 ', text)
        text = self.whitespace_pattern.sub(' ', text)
        return text.strip()

    def convert_many(self, fragments: List[str]) -> List[str]:
        return [self.convert(fragment) for fragment in fragments]


_default_converter = None
_default_converter_lock = threading.Lock()


def get_math_converter() -> MathConverter:
    """Shared converter built on the default symbol tables."""
    global _default_converter
    if _default_converter is None:
        with _default_converter_lock:
            if _default_converter is None:
                _default_converter = MathConverter()
    return _default_converter


def convert_math(latex: str) -> str:
    """Convert one LaTeX math fragment with the default converter."""
    return get_math_converter().convert(latex)
