"""
Split one line of table-cell Markdown into styled runs
"""

from typing import List

from .models import InlineRun


def _parse_image(line: str, i: int):
    """Try to read ``![alt](src)`` at ``i``; returns (run, end) or None."""
    alt_start = i + 2
    alt_end = line.find(']', alt_start)
    if alt_end < 0 or alt_end + 1 >= len(line) or line[alt_end + 1] != '(':
        return None

    src_start = alt_end + 2
    src_end = line.find(')', src_start)
    if src_end < 0:
        return None

    alt = line[alt_start:alt_end]
    src = line[src_start:src_end].strip()
    return InlineRun.image_ref(src, alt), src_end + 1


def parse_inline_runs(line: str) -> List[InlineRun]:
    """Scan a line for images, code spans, escapes and emphasis toggles.

    ``**``/``__`` toggle bold, ``*``/``_`` toggle italic, ``~~`` toggles
    strike-through and a backtick toggles code. Inside code every
    character is literal. A backslash escapes the next character.

    Args:
        line: One line of cell text (``<br>`` already split out)

    Returns:
        The runs in order; a single empty run when the line has no text.
    """
    s = line or ""
    runs: List[InlineRun] = []
    buf = []
    bold = italic = strike = code = False

    def flush():
        if buf:
            runs.append(InlineRun(
                text=''.join(buf), bold=bold, italic=italic, strike=strike, code=code
            ))
            buf.clear()

    i = 0
    while i < len(s):
        ch = s[i]

        if not code and s.startswith('![', i):
            image = _parse_image(s, i)
            if image:
                flush()
                runs.append(image[0])
                i = image[1]
                continue

        if ch == '`':
            flush()
            code = not code
            i += 1
            continue

        if code:
            buf.append(ch)
            i += 1
            continue

        if ch == '\\':
            if i + 1 < len(s):
                buf.append(s[i + 1])
                i += 2
            else:
                buf.append('\\')
                i += 1
            continue

        if s.startswith('~~', i):
            flush()
            strike = not strike
            i += 2
            continue
        if s.startswith('**', i) or s.startswith('__', i):
            flush()
            bold = not bold
            i += 2
            continue
        if ch in '*_':
            flush()
            italic = not italic
            i += 1
            continue

        buf.append(ch)
        i += 1

    flush()
    if not runs:
        runs.append(InlineRun())
    return runs
