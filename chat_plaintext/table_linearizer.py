"""
Markdown table parsing and per-column linearization
"""

import regex
import logging
from typing import List, Optional

from .config import MarkdownConfig
from .errors import TableParseError
from .models import Alignment, ParsedTable


logger = logging.getLogger(__name__)

# Header line, separator line, then one or more body lines
TABLE_PATTERN = regex.compile(
    r'(^\|.*\|[ \t]*\n)(^\|[ \t]*[-:| \t]+[ \t]*\n)((?:^\|.*\|[ \t]*\n?)+)',
    regex.MULTILINE
)

ALIGN_CELL_PATTERN = regex.compile(r'^:?-{2,}:?$')


def split_row(row: str) -> List[str]:
    """Split a table line on ``|`` and trim each cell.

    Only an empty first and last cell (from the outer pipes) are dropped.
    """
    cells = [cell.strip() for cell in row.split('|')]
    if cells and cells[0] == '':
        cells.pop(0)
    if cells and cells[-1] == '':
        cells.pop()
    return cells


def tokenize_row(line: str) -> List[str]:
    """Split a table line after removing one leading and one trailing pipe."""
    s = line.strip()
    if s.startswith('|'):
        s = s[1:]
    if s.endswith('|'):
        s = s[:-1]
    return [cell.strip() for cell in s.split('|')]


def is_align_line(line: str) -> bool:
    tokens = tokenize_row(line)
    return bool(tokens) and all(ALIGN_CELL_PATTERN.match(t) for t in tokens)


def parse_markdown_table(table: str) -> ParsedTable:
    """Parse a Markdown table into header, alignment and body cells.

    The header is the line above the first alignment line (or the first
    line when there is none). Every row is padded or truncated to the
    widest row.

    Raises:
        TableParseError: If the table string has no non-blank lines.
    """
    lines = [line.strip() for line in regex.split(r'\r?\n', table or '')]
    lines = [line for line in lines if line]
    if not lines:
        raise TableParseError("Table string is empty")

    align_index = next((i for i, line in enumerate(lines) if is_align_line(line)), -1)

    if align_index >= 0:
        header_index = align_index - 1 if align_index > 0 else 0
        header = tokenize_row(lines[header_index])
        align = [Alignment.from_separator(t) for t in tokenize_row(lines[align_index])]
        body = [tokenize_row(line) for line in lines[align_index + 1:]]
    else:
        header = tokenize_row(lines[0])
        align = [Alignment.LEFT] * len(header)
        body = [tokenize_row(line) for line in lines[1:]]

    column_count = max([len(header)] + [len(row) for row in body])

    align = (align + [Alignment.LEFT] * column_count)[:column_count]
    header = header + [''] * (column_count - len(header))
    body = [(row + [''] * column_count)[:column_count] for row in body]

    return ParsedTable(header=header, align=align, body=body)


class TableLinearizer:
    """Turn a Markdown table into a numbered listing, one block per column.

    Example output for a two-column table::

        【Name】
            《1》 Alice
            《2》 Bob
        -------------------------
    """

    def __init__(self, config: Optional[MarkdownConfig] = None):
        self.config = config or MarkdownConfig()

    def linearize(self, header_row: str, data_rows: str) -> str:
        headers = split_row(header_row)
        rows = [split_row(line) for line in data_rows.split('\n') if line.strip()]

        # An empty first cell repeats the value above it
        for n, row in enumerate(rows):
            if n == 0:
                continue
            if not row:
                row.append(rows[n - 1][0] if rows[n - 1] else '')
            elif row[0] == '':
                row[0] = rows[n - 1][0] if rows[n - 1] else ''

        divider = '-' * self.config.table_divider_width + '\n'
        parts = []

        for col, header in enumerate(headers):
            parts.append(f"【{header}】\n")

            if header in self.config.dedupe_columns:
                previous = None
                for n, row in enumerate(rows):
                    value = row[col] if col < len(row) else ''
                    if n == 0 or value != previous:
                        # Numbered by original row position
                        parts.append(f"    《{n + 1}》 {value}\n")
                    previous = value
            else:
                for counter, row in enumerate(rows, start=1):
                    value = row[col] if col < len(row) else ''
                    parts.append(f"    《{counter}》 {value}\n")

            parts.append(divider)

        return ''.join(parts)

    def replace_match(self, match) -> str:
        """``regex.sub`` callback for :data:`TABLE_PATTERN`."""
        return self.linearize(match.group(1), match.group(3))

    def linearize_tables(self, text: str) -> str:
        """Linearize every Markdown table found in ``text``."""
        return TABLE_PATTERN.sub(self.replace_match, text)


def linearize_table(table: str, config: Optional[MarkdownConfig] = None) -> str:
    """Linearize every table in ``table``; text without a table is returned as is."""
    return TableLinearizer(config).linearize_tables(table)
