"""
Configuration classes for chat-plaintext
"""

import tempfile
from dataclasses import dataclass, field
from typing import Optional, Tuple
from pathlib import Path


@dataclass
class LatexConfig:
    """LaTeX-to-text conversion configuration."""
    # Recursion guard for nested \frac
    max_fraction_depth: int = 20

    # Optional YAML/JSON file merged over the built-in symbol tables
    symbol_overrides: Optional[Path] = None

    def __post_init__(self):
        """Initialize paths."""
        if self.symbol_overrides:
            self.symbol_overrides = Path(self.symbol_overrides)


@dataclass
class MarkdownConfig:
    """Markdown-to-text conversion configuration."""
    horizontal_rule_width: int = 20
    default_code_language: str = "Code"

    # Table linearization
    dedupe_columns: Tuple[str, ...] = ("장르",)
    table_divider_width: int = 25


@dataclass
class TableImageConfig:
    """Table rasterizer configuration."""
    # Layout
    margin_x: int = 24
    margin_y: int = 24
    cell_pad_x: int = 16
    cell_pad_y: int = 10
    code_pad_x: int = 10
    code_pad_y: int = 6
    image_pad_x: int = 8
    image_pad_y: int = 6
    grid_stroke: int = 2

    # Text
    body_text_size: int = 36
    header_text_size: int = 36
    font_path: Optional[str] = None
    mono_font_path: Optional[str] = None

    # Colours
    background_color: Tuple[int, int, int] = (255, 255, 255)
    text_color: Tuple[int, int, int] = (0, 0, 0)
    grid_color: Tuple[int, int, int] = (200, 200, 200)
    header_background_color: Tuple[int, int, int] = (245, 245, 245)
    code_background_color: Tuple[int, int, int] = (238, 238, 238)

    # Image fetching
    fetch_timeout: int = 15
    max_image_bytes: int = 1024 * 1024 * 8  # 8MB

    # Output
    base_dir: Path = field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "chat_plaintext" / "table_images"
    )

    def __post_init__(self):
        """Initialize paths."""
        self.base_dir = Path(self.base_dir)


@dataclass
class ProcessConfig:
    """Main processing configuration."""
    # General settings
    verbose: bool = False
    debug: bool = False

    # Processing options
    convert_latex: bool = True
    convert_markdown: bool = True

    latex: LatexConfig = field(default_factory=LatexConfig)
    markdown: MarkdownConfig = field(default_factory=MarkdownConfig)
    table_image: TableImageConfig = field(default_factory=TableImageConfig)
