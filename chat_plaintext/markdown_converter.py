"""
Markdown to plain text conversion
"""

import math
import regex
import logging
import threading
from typing import Optional

from .config import MarkdownConfig
from .errors import ErrorSink, report_error
from .table_linearizer import TABLE_PATTERN, TableLinearizer
from .tokens import TokenKind, TokenRegistry


logger = logging.getLogger(__name__)


# Characters that may appear in emphasised text without bracket wrapping
ALLOWED_SPECIAL_CHARS = (
    "+-*/=<>%^±×÷°!?.,:;'\"`()[]{}@#$&|\\_~§©®™€£¥¢"
    "！？．，：；＇＂−（）［］｛｝〈〉《》「」『』＠＃＄％＆＊＋－＝＼｜～＿"
    "※★☆♪♡♢♦♧♠"
)

EMOJI_RANGE = '\U0001F300-\U0001FAFF'


def _class_escape(chars: str) -> str:
    """Escape characters that are special inside a regex character class."""
    return ''.join('\\' + c if c in '\\[]^-' else c for c in chars)


def _styled_alphabet(upper: int, lower: int, digits: Optional[int] = None) -> dict:
    """Translation table onto one Mathematical Alphanumeric Symbols style."""
    table = {}
    for i in range(26):
        table[ord('A') + i] = chr(upper + i)
        table[ord('a') + i] = chr(lower + i)
    if digits is not None:
        for i in range(10):
            table[ord('0') + i] = chr(digits + i)
    return table


BOLD_TABLE = _styled_alphabet(0x1D5D4, 0x1D5EE, 0x1D7EC)
ITALIC_TABLE = _styled_alphabet(0x1D608, 0x1D622)
BOLD_ITALIC_TABLE = _styled_alphabet(0x1D63C, 0x1D656, 0x1D7EC)

# Fallback brackets for content that cannot be fully styled
BOLD_BRACKETS = ('❪', '❫')
ITALIC_BRACKETS = ('❬', '❭')
BOLD_ITALIC_BRACKETS = ('❮', '❯')

LIST_BULLETS = ('⦁', '￮', '▸', '▹')


class MarkdownConverter:
    """Strip Markdown syntax while keeping the message structure readable.

    Rewrites run in a fixed order: URL and code protection first, then
    block-level rules (rules, headings, checkboxes, lists, quotes), then
    inline emphasis, then tables, and finally token restoration and link
    formatting. Conversion never raises; on failure the input is returned
    unchanged.
    """

    def __init__(self, config: Optional[MarkdownConfig] = None,
                 error_sink: Optional[ErrorSink] = None):
        self.config = config or MarkdownConfig()
        self.linearizer = TableLinearizer(self.config)
        self.error_sink = error_sink

        self.url_pattern = regex.compile(r'https?://[^\s\[\]()]*')
        self.wrapped_code_block_pattern = regex.compile(
            r'^([ \t]*)(`{4,})\n([\s\S]*?)\n\2[ \t]*(?=\r?\n|$)', regex.MULTILINE
        )
        self.inner_fence_pattern = regex.compile(r'^```([^\n]*)\n([\s\S]*?)\n```$')
        self.code_block_pattern = regex.compile(
            r'^([ \t]*)```([^\n]*)\n([\s\S]*?)```[ \t]*(?=\r?\n|$)', regex.MULTILINE
        )
        self.inline_code_pattern = regex.compile(r'`([^\n`]+)`')
        self.horizontal_rule_pattern = regex.compile(
            r'^[ \t]*([-*_])(?:[ \t]*\1){2,}[ \t]*$', regex.MULTILINE
        )
        self.heading_pattern = regex.compile(r'^(#+)[ \t]+(.*)', regex.MULTILINE)
        self.heading_emphasis_pattern = regex.compile(r'^(\*{1,3}|_{1,3})(.+)\1$')
        self.checkbox_pattern = regex.compile(
            r'^([ \t]*)([-*+])[ \t]+\[([ xX])\][ \t]+(.*)', regex.MULTILINE
        )
        self.list_pattern = regex.compile(r'^([ \t]*)([-*+])[ \t]+(.*)', regex.MULTILINE)
        self.blockquote_pattern = regex.compile(r'^((?:>[ \t]*)+)(.*)', regex.MULTILINE)
        self.bold_italic_pattern = regex.compile(r'(\*\*\*|___)(.*?)\1')
        self.bold_pattern = regex.compile(r'(\*\*|__)(.*?)\1')
        self.italic_pattern = regex.compile(r'(\*|_)(.*?)\1')
        self.strikethrough_pattern = regex.compile(r'~~(.*?)~~')
        self.link_pattern = regex.compile(r'(!?)\[([^\]]+)\]\(([^)]+)\)')

        specials = _class_escape(ALLOWED_SPECIAL_CHARS)
        self.convertible_pattern = regex.compile(rf'^[0-9a-zA-Z\s{specials}{EMOJI_RANGE}]*$')
        self.convertible_no_digits_pattern = regex.compile(
            rf'^[a-zA-Z\s{specials}{EMOJI_RANGE}]*$'
        )

    def convert(self, markdown: str) -> str:
        try:
            return self._convert(markdown)
        except Exception as e:
            report_error(e, self.error_sink)
            return markdown

    def _convert(self, markdown: str) -> str:
        registry = TokenRegistry()

        result = self.url_pattern.sub(lambda m: registry.protect(TokenKind.URL, m.group(0)), markdown)
        result = self.protect_code(result, registry)

        result = self.convert_blocks(result)
        result = self.convert_inline(result)
        result = TABLE_PATTERN.sub(self.linearizer.replace_match, result)

        result = registry.restore(result, TokenKind.INLINE_CODE, lambda code: f"⦗ {code} ⦘")
        result = registry.restore(result, TokenKind.CODE_BLOCK, self.render_code_block)
        result = registry.restore(result, TokenKind.URL)

        return self.link_pattern.sub(self._replace_link, result)

    def protect_code(self, text: str, registry: TokenRegistry) -> str:
        """Swap fenced blocks and inline code spans for placeholders."""
        default_lang = self.config.default_code_language

        def wrapped(match):
            indent, inner = match.group(1), match.group(3)
            lang, code = '', inner
            fence = self.inner_fence_pattern.match(inner)
            if fence:
                lang = fence.group(1).strip()
                code = f"```\n{fence.group(2).strip()}\n```"
            return indent + registry.protect(TokenKind.CODE_BLOCK, (lang or default_lang, code))

        def fenced(match):
            indent, lang, code = match.group(1), match.group(2).strip(), match.group(3)
            return indent + registry.protect(TokenKind.CODE_BLOCK, (lang or default_lang, code.strip()))

        text = self.wrapped_code_block_pattern.sub(wrapped, text)
        text = self.code_block_pattern.sub(fenced, text)
        return self.inline_code_pattern.sub(
            lambda m: registry.protect(TokenKind.INLINE_CODE, m.group(1)), text
        )

    def convert_blocks(self, text: str) -> str:
        text = self.horizontal_rule_pattern.sub(lambda m: '━' * self.config.horizontal_rule_width, text)
        text = self.heading_pattern.sub(self._replace_heading, text)
        text = self.checkbox_pattern.sub(self._replace_checkbox, text)
        text = self.list_pattern.sub(self._replace_list_item, text)
        return self.blockquote_pattern.sub(self._replace_blockquote, text)

    def convert_inline(self, text: str) -> str:
        text = self.bold_italic_pattern.sub(lambda m: self.bold_italic(m.group(2)), text)
        text = self.bold_pattern.sub(lambda m: self.bold(m.group(2)), text)
        text = self.italic_pattern.sub(lambda m: self.italic(m.group(2)), text)
        return self.strikethrough_pattern.sub(lambda m: self.strikethrough(m.group(1)), text)

    def _replace_heading(self, match) -> str:
        level = len(match.group(1))
        content = match.group(2)
        indent = ' ' * max(0, 8 - level * 2)

        emphasis = self.heading_emphasis_pattern.match(content)
        if emphasis and emphasis.group(1) not in emphasis.group(2):
            marker, inner = emphasis.group(1), emphasis.group(2)
            styled = {1: self.italic, 2: self.bold, 3: self.bold_italic}[len(marker)](inner)
            return f"\n{indent}❰{self._unwrap_brackets(styled)}❱\n"

        unwrapped = self._unwrap_brackets(content)
        if unwrapped != content:
            return f"\n{indent}❰{unwrapped}❱\n"

        return f"\n{indent}【{content}】\n"

    @staticmethod
    def _unwrap_brackets(text: str) -> str:
        for opening, closing in (BOLD_BRACKETS, BOLD_ITALIC_BRACKETS, ITALIC_BRACKETS):
            if len(text) >= 2 and text[0] == opening and text[-1] == closing:
                return text[1:-1]
        return text

    @staticmethod
    def _replace_checkbox(match) -> str:
        level = len(match.group(1)) // 2
        mark = '✔' if match.group(3).lower() == 'x' else '✖'
        return f"{' ' * (level * 2)}{mark} {match.group(4)}"

    @staticmethod
    def _replace_list_item(match) -> str:
        level = len(match.group(1)) // 2
        bullet = LIST_BULLETS[min(level, len(LIST_BULLETS) - 1)]
        return f"{' ' * (level * 2)}{bullet} {match.group(3)}"

    @staticmethod
    def _replace_blockquote(match) -> str:
        level = match.group(1).count('>')
        return ' ' * (level * 2) + '‖ ' * level + match.group(2)

    def is_convertible(self, text: str, include_numbers: bool) -> bool:
        """True if every character of ``text`` can be shown without brackets."""
        pattern = self.convertible_pattern if include_numbers else self.convertible_no_digits_pattern
        return pattern.match(text) is not None

    def bold(self, text: str) -> str:
        converted = text.translate(BOLD_TABLE)
        if self.is_convertible(text, True):
            return converted
        return f"{BOLD_BRACKETS[0]}{converted}{BOLD_BRACKETS[1]}"

    def italic(self, text: str) -> str:
        converted = text.translate(ITALIC_TABLE)
        if self.is_convertible(text, False):
            return converted
        return f"{ITALIC_BRACKETS[0]}{converted}{ITALIC_BRACKETS[1]}"

    def bold_italic(self, text: str) -> str:
        converted = text.translate(BOLD_ITALIC_TABLE)
        if self.is_convertible(text, True):
            return converted
        return f"{BOLD_ITALIC_BRACKETS[0]}{converted}{BOLD_ITALIC_BRACKETS[1]}"

    @staticmethod
    def strikethrough(text: str) -> str:
        return ''.join(char + '\u0336' for char in text)

    @staticmethod
    def render_code_block(block) -> str:
        """Bordered banner around a fenced code block."""
        lang, code = block
        border = '━' * 5
        bottom = '━' * (10 + math.ceil(len(lang) / 2))
        return f"\n┏{border} {lang} {border}┓\n{code.strip()}\n┗{bottom}┛\n"

    @staticmethod
    def _replace_link(match) -> str:
        text, url = match.group(2), match.group(3)
        if text.strip().lower() == url.strip().lower():
            return url + ' '
        return f"{text}( {url} )"


_default_converter = None
_default_converter_lock = threading.Lock()


def get_markdown_converter() -> MarkdownConverter:
    global _default_converter
    if _default_converter is None:
        with _default_converter_lock:
            if _default_converter is None:
                _default_converter = MarkdownConverter()
    return _default_converter


def convert_markdown_to_text(markdown: str, config: Optional[MarkdownConfig] = None) -> str:
    """Convert Markdown to plain text."""
    converter = MarkdownConverter(config) if config else get_markdown_converter()
    return converter.convert(markdown)
