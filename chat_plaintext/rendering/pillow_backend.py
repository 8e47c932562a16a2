"""
Pillow implementation of the graphics backend
"""

import io
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from ..config import TableImageConfig
from ..errors import ImageFetchError, RenderError
from .base_renderer import Color, FontMetrics, FontStyle, GraphicsBackend


logger = logging.getLogger(__name__)

# Font file per (bold, italic), tried in order when no path is configured
SANS_FONTS = {
    (False, False): "DejaVuSans.ttf",
    (True, False): "DejaVuSans-Bold.ttf",
    (False, True): "DejaVuSans-Oblique.ttf",
    (True, True): "DejaVuSans-BoldOblique.ttf",
}
MONO_FONTS = {
    (False, False): "DejaVuSansMono.ttf",
    (True, False): "DejaVuSansMono-Bold.ttf",
    (False, True): "DejaVuSansMono-Oblique.ttf",
    (True, True): "DejaVuSansMono-BoldOblique.ttf",
}


class PillowBackend(GraphicsBackend):
    """Draw tables onto RGB ``PIL.Image`` surfaces."""

    def __init__(self, config: Optional[TableImageConfig] = None):
        self.config = config or TableImageConfig()
        self._fonts: Dict[int, Any] = {}

    def is_available(self) -> bool:
        return True

    def _font(self, style: FontStyle):
        font = self._fonts.get(style.index)
        if font is None:
            font = self._load_font(style)
            self._fonts[style.index] = font
        return font

    def _load_font(self, style: FontStyle):
        # Headers are always drawn bold
        bold = style.bold or style.header
        size = self.config.header_text_size if style.header else self.config.body_text_size

        if style.code:
            path = self.config.mono_font_path or MONO_FONTS[(bold, style.italic)]
        else:
            path = self.config.font_path or SANS_FONTS[(bold, style.italic)]

        try:
            return ImageFont.truetype(path, size)
        except OSError:
            logger.debug(f"Font {path} not found, using Pillow default font")
            return ImageFont.load_default()

    def create_surface(self, width: int, height: int, background: Color) -> Image.Image:
        return Image.new('RGB', (max(1, int(width)), max(1, int(height))), background)

    def measure_text(self, text: str, style: FontStyle) -> float:
        if not text:
            return 0.0
        return float(self._font(style).getlength(text))

    def font_metrics(self, style: FontStyle) -> FontMetrics:
        font = self._font(style)
        if hasattr(font, 'getmetrics'):
            ascent, descent = font.getmetrics()
        else:
            # Bitmap fonts only report a bounding box
            ascent, descent = font.getbbox("Ay")[3], 0
        return FontMetrics(ascent=float(ascent), descent=float(descent))

    def draw_text(self, surface: Image.Image, text: str, x: float, baseline: float,
                  style: FontStyle, color: Color, strike: bool = False):
        font = self._font(style)
        metrics = self.font_metrics(style)
        draw = ImageDraw.Draw(surface)
        draw.text((x, baseline - metrics.ascent), text, font=font, fill=color)

        if strike:
            y = baseline - metrics.ascent * 0.35
            width = self.measure_text(text, style)
            draw.line([(x, y), (x + width, y)], fill=color, width=max(1, int(metrics.ascent / 12)))

    def draw_rect(self, surface: Image.Image, left: float, top: float, right: float,
                  bottom: float, color: Color):
        ImageDraw.Draw(surface).rectangle([left, top, right, bottom], fill=color)

    def draw_line(self, surface: Image.Image, x0: float, y0: float, x1: float, y1: float,
                  color: Color, width: float):
        ImageDraw.Draw(surface).line([(x0, y0), (x1, y1)], fill=color, width=max(1, round(width)))

    def decode_image(self, data: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                return image.convert('RGBA')
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise ImageFetchError(f"Cannot decode image: {e}") from e

    def image_size(self, image: Image.Image) -> Tuple[int, int]:
        return image.size

    def draw_image(self, surface: Image.Image, image: Image.Image, left: float, top: float,
                   width: int, height: int):
        resized = image.resize((max(1, width), max(1, height)))
        surface.paste(resized, (int(left), int(top)), resized)
        resized.close()

    def save(self, surface: Image.Image, path: Union[str, Path]):
        try:
            surface.save(path, format='PNG')
        except (OSError, ValueError) as e:
            raise RenderError(f"Cannot write table image {path}: {e}") from e

    def release(self, resource: Any):
        if isinstance(resource, Image.Image):
            resource.close()
