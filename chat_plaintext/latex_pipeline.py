"""
LaTeX pipeline: find math fragments in a chat message and convert them
"""

import regex
import logging
import threading
from typing import List, Optional

from .config import LatexConfig
from .environment import EnvironmentProcessor
from .errors import ErrorSink, report_error
from .math_converter import MathConverter, get_math_converter
from .models import FragmentKind, MathFragment
from .tokens import TokenKind, TokenRegistry


logger = logging.getLogger(__name__)


class LatexToText:
    """Replace LaTeX math in free text with Unicode approximations.

    Fenced code blocks and inline code spans are protected before any
    fragment is extracted and come back byte-identical. Conversion never
    raises: on any internal failure the error is reported and the input
    is returned untouched.
    """

    # Group name -> fragment kind, in alternation order
    FRAGMENT_GROUPS = (
        ('env', FragmentKind.ENVIRONMENT),
        ('display', FragmentKind.DISPLAY),
        ('bracket', FragmentKind.BRACKET),
        ('paren', FragmentKind.PAREN),
        ('inline', FragmentKind.INLINE),
        ('boxed', FragmentKind.BOXED),
    )

    def __init__(self, config: Optional[LatexConfig] = None,
                 converter: Optional[MathConverter] = None,
                 error_sink: Optional[ErrorSink] = None):
        self.config = config or LatexConfig()
        if converter is None:
            converter = MathConverter(config=config) if config else get_math_converter()
        self.converter = converter
        self.environments = EnvironmentProcessor(converter)
        self.error_sink = error_sink

        self.code_block_pattern = regex.compile(r'```(.*?)\n([\s\S]*?)```')
        self.inline_code_pattern = regex.compile(r'`[^`\n]+`')
        self.math_hint_pattern = regex.compile(r'\$[^$]|\\\[|\\\(|\\[A-Za-z]{2,}|\\begin')

        # Leftmost match wins; on a tie the earlier alternative wins
        self.fragment_pattern = regex.compile(
            r'(?P<env>\\begin\{(?P<env_name>[^}]+)\}.*?\\end\{(?P=env_name)\})'
            r'|(?P<display>\$\$.+?\$\$)'
            r'|(?P<bracket>\\\[.*?\\\])'
            r'|(?P<paren>\\\(.*?\\\))'
            r'|(?P<inline>\$[^$\n]+\$)'
            r'|(?P<boxed>\\boxed\{(?P<boxed_body>(?:[^{}]|\{(?&boxed_body)\})*)\})',
            regex.DOTALL
        )

    def has_math(self, text: str) -> bool:
        """Cheap check for anything that could be LaTeX outside code blocks."""
        if '$' not in text and '\\' not in text:
            return False
        stripped = self.code_block_pattern.sub('', text)
        return self.math_hint_pattern.search(stripped) is not None

    def convert(self, text: str) -> str:
        try:
            return self._convert(text)
        except Exception as e:
            report_error(e, self.error_sink)
            return text

    def _convert(self, text: str) -> str:
        if not self.has_math(text):
            logger.debug("No LaTeX markers found, skipping conversion")
            return text

        registry = TokenRegistry()
        result = self.code_block_pattern.sub(
            lambda m: registry.protect(TokenKind.LATEX_CODE, (m.group(1), m.group(2))), text
        )
        result = self.inline_code_pattern.sub(
            lambda m: registry.protect(TokenKind.INLINE_CODE, m.group(0)), result
        )

        count = 0

        def replace(match):
            nonlocal count
            count += 1
            fragment = self._fragment(match)
            return self.environments.process_segment(fragment.body)

        result = self.fragment_pattern.sub(replace, result)
        logger.debug(f"Converted {count} LaTeX fragments")

        result = registry.restore(result, TokenKind.INLINE_CODE)
        return registry.restore(
            result, TokenKind.LATEX_CODE, lambda block: f"```{block[0]}\n{block[1]}```"
        )

    def _fragment(self, match) -> MathFragment:
        for group, kind in self.FRAGMENT_GROUPS:
            if match.group(group) is not None:
                return MathFragment(match.group(group), kind, match.start(), match.end())
        raise ValueError(f"Unrecognised fragment: {match.group(0)!r}")

    def extract_fragments(self, text: str) -> List[MathFragment]:
        """List the math fragments of ``text`` in order of appearance.

        Offsets refer to ``text`` with code regions blanked out, which
        keeps them aligned with the original string.
        """
        masked = self.code_block_pattern.sub(lambda m: ' ' * len(m.group(0)), text)
        masked = self.inline_code_pattern.sub(lambda m: ' ' * len(m.group(0)), masked)
        return [self._fragment(m) for m in self.fragment_pattern.finditer(masked)]


_default_pipeline = None
_default_pipeline_lock = threading.Lock()


def get_latex_pipeline() -> LatexToText:
    global _default_pipeline
    if _default_pipeline is None:
        with _default_pipeline_lock:
            if _default_pipeline is None:
                _default_pipeline = LatexToText()
    return _default_pipeline


def convert_latex_to_text(text: str, config: Optional[LatexConfig] = None) -> str:
    """Convert every LaTeX fragment of a chat message to plain text."""
    pipeline = LatexToText(config) if config else get_latex_pipeline()
    return pipeline.convert(text)


def extract_fragments(text: str) -> List[MathFragment]:
    return get_latex_pipeline().extract_fragments(text)
