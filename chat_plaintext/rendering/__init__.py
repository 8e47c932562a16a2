import logging
from .base_renderer import FontMetrics, FontStyle, GraphicsBackend, ImageFetcher
from .image_loader import ImageCache, ImageInfo, RequestsImageFetcher
from .pillow_backend import PillowBackend
from .table_renderer import TableImageRenderer, image_units, render_markdown_table_to_image


logger = logging.getLogger(__name__)


def get_available_backends() -> dict:
    """Get availability of the graphics backends."""
    return {
        "pillow": PillowBackend().is_available()
    }


__all__ = [
    'FontMetrics',
    'FontStyle',
    'GraphicsBackend',
    'ImageFetcher',
    'ImageCache',
    'ImageInfo',
    'RequestsImageFetcher',
    'PillowBackend',
    'TableImageRenderer',
    'image_units',
    'render_markdown_table_to_image',
    'get_available_backends'
]
