"""
Data models for chat-plaintext
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from enum import Enum
from datetime import datetime


class FragmentKind(Enum):
    """Delimiter kinds a LaTeX fragment can be extracted by."""
    ENVIRONMENT = "environment"
    DISPLAY = "display"        # $$...$$
    BRACKET = "bracket"        # \[...\]
    PAREN = "paren"            # \(...\)
    INLINE = "inline"          # $...$
    BOXED = "boxed"            # \boxed{...}


@dataclass
class MathFragment:
    """A LaTeX region of a message, identified by its delimiters."""
    raw: str
    kind: FragmentKind
    start: int = 0
    end: int = 0

    @property
    def body(self) -> str:
        """Fragment text with the outer delimiters removed."""
        if self.kind == FragmentKind.DISPLAY:
            return self.raw[2:-2].strip()
        if self.kind in (FragmentKind.BRACKET, FragmentKind.PAREN):
            return self.raw[2:-2].strip()
        if self.kind == FragmentKind.INLINE:
            return self.raw[1:-1]
        # Environments and \boxed{} keep their markup; the converters need it
        return self.raw

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'raw': self.raw,
            'kind': self.kind.value,
            'start': self.start,
            'end': self.end,
        }


class Alignment(Enum):
    """Column alignment of a Markdown table."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"

    @classmethod
    def from_separator(cls, token: str) -> "Alignment":
        """Read alignment from a separator cell such as ``:---:``."""
        t = token.strip()
        starts = t.startswith(":")
        ends = t.endswith(":")
        if starts and ends:
            return cls.CENTER
        if ends:
            return cls.RIGHT
        return cls.LEFT


@dataclass
class InlineRun:
    """A styled span of one line of Markdown-inline content."""
    text: str = ""
    bold: bool = False
    italic: bool = False
    strike: bool = False
    code: bool = False

    # Image reference
    image: bool = False
    src: Optional[str] = None
    alt: Optional[str] = None

    @classmethod
    def image_ref(cls, src: str, alt: str) -> "InlineRun":
        return cls(image=True, src=src, alt=alt)


@dataclass
class ParsedTable:
    """A Markdown table split into header, alignment and body cells."""
    header: List[str]
    align: List[Alignment]
    body: List[List[str]]

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def row_count(self) -> int:
        return len(self.body)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'header': self.header,
            'align': [a.value for a in self.align],
            'body': self.body,
        }


@dataclass
class ConversionResult:
    """Result of converting one chat message."""
    original: str
    text: str
    latex_applied: bool = False
    markdown_applied: bool = False
    source_file: Optional[str] = None
    processing_time: Optional[float] = None
    errors: List[Dict[str, str]] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def changed(self) -> bool:
        """Whether any conversion altered the message."""
        return self.text != self.original

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'original': self.original,
            'text': self.text,
            'latex_applied': self.latex_applied,
            'markdown_applied': self.markdown_applied,
            'source_file': self.source_file,
            'processing_time': self.processing_time,
            'errors': self.errors,
            'timestamp': self.timestamp.isoformat(),
            'changed': self.changed,
        }
