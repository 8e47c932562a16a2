"""
Line-oriented processing of align/gather/cases environments
"""

import regex
import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple, Union

from .math_converter import MathConverter, get_math_converter


logger = logging.getLogger(__name__)

CLOSING_BANNER = "└────────────"
ROW_PREFIX = "│ "


class EnvironmentKind(Enum):
    ALIGN = "align"
    GATHER = "gather"
    CASES = "cases"


@dataclass(frozen=True)
class Idle:
    """No environment is open."""


@dataclass(frozen=True)
class InEnvironment:
    """Inside an environment; lines are buffered until its end tag."""
    kind: EnvironmentKind
    starred: bool = False
    buffer: Tuple[str, ...] = ()


EnvironmentState = Union[Idle, InEnvironment]

IDLE = Idle()


def opening_banner(kind: EnvironmentKind, starred: bool = False) -> str:
    return f"┌─ {kind.value}{'*' if starred else ''} ─────"


class EnvironmentProcessor:
    """Feed lines of a math segment through the environment state machine."""

    def __init__(self, converter: Optional[MathConverter] = None):
        self.converter = converter or get_math_converter()

        self.begin_pattern = regex.compile(r'\\begin\{(align|gather|cases)(\*?)\}')
        self.end_pattern = regex.compile(r'\\end\{(align|gather|cases)\*?\}')
        self.marker_pattern = regex.compile(r'(\\(?:begin|end)\{(?:align|gather|cases)\*?\})')
        self.dollar_pattern = regex.compile(r'\$([^$]+)\$')
        self.if_pattern = regex.compile(r'\\text\{if\s*\}')

    def process_line(self, line: str, state: EnvironmentState) -> Tuple[Optional[str], EnvironmentState]:
        """Process one line; returns the output (None while buffering) and the next state."""
        if isinstance(state, InEnvironment):
            return self._process_in_environment(line, state)

        match = self.dollar_pattern.search(line)
        if match:
            rendered = self._render_inline_math(match.group(1))
            return line[:match.start()] + rendered + line[match.end():], state

        match = self.begin_pattern.search(line)
        if match:
            kind = EnvironmentKind(match.group(1))
            starred = bool(match.group(2))
            logger.debug(f"Entering {kind.value} environment")
            return opening_banner(kind, starred), InEnvironment(kind, starred)

        if self.end_pattern.search(line):
            return CLOSING_BANNER, state

        return self.converter.convert(self.if_pattern.sub('if', line).strip()), state

    def _process_in_environment(self, line: str, state: InEnvironment):
        match = self.end_pattern.search(line)
        if match:
            if match.group(1) != state.kind.value:
                logger.debug(f"Ignoring \\end{{{match.group(1)}}} inside {state.kind.value}")
                return CLOSING_BANNER, state

            logger.debug(f"Leaving {state.kind.value} environment ({len(state.buffer)} lines)")
            rows = self.render_rows(state.kind, '\n'.join(state.buffer))
            return '\n'.join(rows + [CLOSING_BANNER]), IDLE

        return None, replace(state, buffer=state.buffer + (line,))

    def _render_inline_math(self, content: str) -> str:
        if '\\begin{cases}' not in content:
            return self.converter.convert(content)

        before, _, rest = content.partition('\\begin{cases}')
        body = rest.split('\\end{cases}')[0]

        lines = []
        if before.strip():
            lines.append(self.converter.convert(before.strip()))
        lines.append(opening_banner(EnvironmentKind.CASES))
        lines.extend(self.render_rows(EnvironmentKind.CASES, body))
        lines.append(CLOSING_BANNER)
        return '\n'.join(lines)

    def render_rows(self, kind: EnvironmentKind, content: str) -> List[str]:
        """Render buffered environment content as ``│``-prefixed rows.

        Rows are separated by newlines or ``\\\\``. For cases each row is
        ``expr & cond`` and renders as ``expr if cond``; for align and
        gather every ``&``-separated part is converted and the parts are
        joined with `` = ``.
        """
        rows = []
        for line in content.split('\n'):
            for row in line.split('\\\\'):
                if not row.strip():
                    continue
                if kind is EnvironmentKind.CASES:
                    rows.append(ROW_PREFIX + self._render_case(row))
                else:
                    parts = row.replace('&=', '&').split('&')
                    rows.append(ROW_PREFIX + ' = '.join(
                        self.converter.convert(part.strip()) for part in parts
                    ))
        return rows

    def _render_case(self, row: str) -> str:
        parts = [part.strip() for part in row.split('&')]
        expr = self.converter.convert(parts[0])
        if len(parts) > 1 and parts[1]:
            cond = self.converter.convert(self.if_pattern.sub('', parts[1]).strip())
            return f"{expr} if {cond}"
        return expr

    def process_segment(self, segment: str) -> str:
        """Run every line of a math segment through the state machine."""
        if self.marker_pattern.search(segment):
            # Environment markers may share a line with content
            segment = self.marker_pattern.sub(r'\n\1\n', segment)
            lines = [line.strip() for line in segment.split('\n') if line.strip()]
        elif '\\begin{' in segment:
            lines = [' '.join(line.strip() for line in segment.split('\n'))]
        else:
            lines = [line.strip() for line in segment.split('\n')]

        state: EnvironmentState = IDLE
        outputs = []
        for line in lines:
            output, state = self.process_line(line, state)
            if output is not None:
                outputs.append(output)

        if isinstance(state, InEnvironment):
            logger.warning(
                f"Unterminated {state.kind.value} environment, "
                f"dropping {len(state.buffer)} buffered lines"
            )

        return '\n'.join(outputs)


_default_processor = None
_default_processor_lock = threading.Lock()


def get_environment_processor() -> EnvironmentProcessor:
    global _default_processor
    if _default_processor is None:
        with _default_processor_lock:
            if _default_processor is None:
                _default_processor = EnvironmentProcessor()
    return _default_processor


def process_line(line: str, state: EnvironmentState = IDLE) -> Tuple[Optional[str], EnvironmentState]:
    return get_environment_processor().process_line(line, state)


def process_segment(segment: str) -> str:
    return get_environment_processor().process_segment(segment)
