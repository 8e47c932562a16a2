"""
Exceptions and error reporting for chat-plaintext
"""

import logging
import traceback
from typing import Callable, Optional


logger = logging.getLogger(__name__)

# sink(error_name, message, trace)
ErrorSink = Callable[[str, str, str], None]


class ChatPlaintextError(Exception):
    """Base class for all library errors."""


class TableParseError(ChatPlaintextError):
    """Raised when a Markdown table has no usable structure."""


class ImageFetchError(ChatPlaintextError):
    """Raised when an image source cannot be loaded."""


class RenderError(ChatPlaintextError):
    """Raised when the graphics backend fails to produce an image."""


def logging_sink(error_name: str, message: str, trace: str) -> None:
    """Default sink: write the error through the module logger."""
    logger.error(f"{error_name}\n{message}\n{trace}")


def report_error(error: BaseException, sink: Optional[ErrorSink] = None) -> None:
    """Send an exception to the error sink.

    Never raises: a sink that fails is logged and ignored so callers can
    report from inside their own exception handlers.
    """
    sink = sink or logging_sink
    try:
        trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        sink(type(error).__name__, str(error), trace)
    except Exception as e:
        logger.warning(f"Error sink failed: {e}")
