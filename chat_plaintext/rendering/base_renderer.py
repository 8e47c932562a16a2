"""
Capability interfaces for the table rasterizer
"""

from dataclasses import dataclass
from typing import Optional, Any, Tuple, Union
from abc import ABC, abstractmethod
from pathlib import Path

from ..models import InlineRun

Color = Tuple[int, int, int]


@dataclass(frozen=True)
class FontStyle:
    """One of the 16 typeface variants (header x bold x italic x code)."""
    header: bool = False
    bold: bool = False
    italic: bool = False
    code: bool = False

    @property
    def index(self) -> int:
        return (
            (1 if self.header else 0)
            | (2 if self.bold else 0)
            | (4 if self.italic else 0)
            | (8 if self.code else 0)
        )

    @classmethod
    def for_run(cls, header: bool, run: Optional[InlineRun] = None) -> "FontStyle":
        if run is None:
            return cls(header=header)
        return cls(header=header, bold=run.bold, italic=run.italic, code=run.code)


@dataclass
class FontMetrics:
    """Vertical metrics; both values are positive distances from the baseline."""
    ascent: float
    descent: float

    @property
    def line_height(self) -> float:
        return self.ascent + self.descent


class GraphicsBackend(ABC):
    """Drawing surface, text measurement and image decoding."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if backend is available."""
        pass

    @abstractmethod
    def create_surface(self, width: int, height: int, background: Color) -> Any:
        pass

    @abstractmethod
    def measure_text(self, text: str, style: FontStyle) -> float:
        pass

    @abstractmethod
    def font_metrics(self, style: FontStyle) -> FontMetrics:
        pass

    @abstractmethod
    def draw_text(self, surface: Any, text: str, x: float, baseline: float,
                  style: FontStyle, color: Color, strike: bool = False):
        pass

    @abstractmethod
    def draw_rect(self, surface: Any, left: float, top: float, right: float,
                  bottom: float, color: Color):
        pass

    @abstractmethod
    def draw_line(self, surface: Any, x0: float, y0: float, x1: float, y1: float,
                  color: Color, width: float):
        pass

    @abstractmethod
    def decode_image(self, data: bytes) -> Any:
        """Decode image bytes; raises ``ImageFetchError`` on bad data."""
        pass

    @abstractmethod
    def image_size(self, image: Any) -> Tuple[int, int]:
        pass

    @abstractmethod
    def draw_image(self, surface: Any, image: Any, left: float, top: float,
                   width: int, height: int):
        pass

    @abstractmethod
    def save(self, surface: Any, path: Union[str, Path]):
        pass

    def release(self, resource: Any):
        """Free a surface or decoded image."""
        pass


class ImageFetcher(ABC):
    """Loads the raw bytes behind an image source string."""

    @abstractmethod
    def fetch_bytes(self, src: str) -> Optional[bytes]:
        """Return the bytes for ``src``; raises ``ImageFetchError`` on failure."""
        pass

    def close(self):
        pass
