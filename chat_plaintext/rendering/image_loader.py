"""
Image sources for table cells: URLs, data URIs, base64 text and files
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import regex
import requests

from ..errors import ImageFetchError
from .base_renderer import GraphicsBackend, ImageFetcher


logger = logging.getLogger(__name__)

BASE64_PREFIX = regex.compile(r'^base64[:,]')


class RequestsImageFetcher(ImageFetcher):
    """Fetch image bytes with a bounded timeout and response size."""

    def __init__(self, timeout: int = 15, max_bytes: int = 1024 * 1024 * 8):
        self.session = requests.Session()
        self.timeout = timeout
        self.max_bytes = max_bytes

    def fetch_bytes(self, src: str) -> Optional[bytes]:
        if not src:
            return None

        if src.startswith('http://') or src.startswith('https://'):
            return self._download(src)

        if src.startswith('data:'):
            comma = src.find(',')
            if comma <= 0:
                return None
            return self._decode_base64(src[comma + 1:])

        if BASE64_PREFIX.match(src):
            return self._decode_base64(BASE64_PREFIX.sub('', src))

        path = Path(src)
        try:
            return path.read_bytes()
        except OSError as e:
            raise ImageFetchError(f"Cannot read image file {src}: {e}") from e

    def _download(self, url: str) -> bytes:
        try:
            with self.session.get(url, timeout=self.timeout, stream=True) as response:
                response.raise_for_status()

                length = response.headers.get('Content-Length')
                if length and length.isdigit() and int(length) > self.max_bytes:
                    raise ImageFetchError(f"Image too large ({length} bytes): {url}")

                chunks = []
                received = 0
                for chunk in response.iter_content(chunk_size=64 * 1024):
                    received += len(chunk)
                    if received > self.max_bytes:
                        raise ImageFetchError(f"Image exceeds {self.max_bytes} bytes: {url}")
                    chunks.append(chunk)
                return b''.join(chunks)
        except requests.RequestException as e:
            raise ImageFetchError(f"Failed to download {url}: {e}") from e

    @staticmethod
    def _decode_base64(payload: str) -> bytes:
        try:
            return base64.b64decode(payload.strip())
        except (binascii.Error, ValueError) as e:
            raise ImageFetchError(f"Invalid base64 image data: {e}") from e

    def close(self):
        """Close session."""
        self.session.close()


@dataclass
class ImageInfo:
    """A decoded image and its source size."""
    image: Any
    width: int
    height: int


class ImageCache:
    """Per-render cache of decoded images.

    Failed sources, whatever the fetcher or backend raised, are cached
    as ``None`` so each source is fetched at most once. :meth:`release` frees every decoded image.
    """

    def __init__(self, fetcher: ImageFetcher, backend: GraphicsBackend):
        self.fetcher = fetcher
        self.backend = backend
        self._entries: Dict[str, Optional[ImageInfo]] = {}

    def get(self, src: str) -> Optional[ImageInfo]:
        if src in self._entries:
            return self._entries[src]

        info = None
        try:
            data = self.fetcher.fetch_bytes(src)
            if data:
                image = self.backend.decode_image(data)
                width, height = self.backend.image_size(image)
                info = ImageInfo(image, width, height)
        except ImageFetchError as e:
            logger.warning(f"Image unavailable, using text fallback: {e}")
        except Exception as e:
            # One broken cell must not abort the whole table
            logger.warning(f"Image {src} failed ({type(e).__name__}: {e}), using text fallback")

        self._entries[src] = info
        return info

    def release(self):
        for info in self._entries.values():
            if info is not None:
                self.backend.release(info.image)
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
