"""
Chat Plaintext

Convert chat messages containing LaTeX math and Markdown into readable
Unicode plain text, and rasterize Markdown tables to images.
"""

__version__ = "0.1.0"
__author__ = "Chat Plaintext Team"

# Models
from .models import (
    FragmentKind,
    MathFragment,
    Alignment,
    InlineRun,
    ParsedTable,
    ConversionResult
)

# Configuration classes
from .config import (
    ProcessConfig,
    LatexConfig,
    MarkdownConfig,
    TableImageConfig
)

# Errors
from .errors import (
    ChatPlaintextError,
    TableParseError,
    ImageFetchError,
    RenderError,
    report_error
)

# Core converters
from .symbols import SymbolTable, SymbolTables, get_symbol_tables
from .math_converter import MathConverter, convert_math
from .environment import EnvironmentProcessor, process_line, process_segment
from .latex_pipeline import LatexToText, convert_latex_to_text, extract_fragments
from .markdown_converter import MarkdownConverter, convert_markdown_to_text
from .table_linearizer import TableLinearizer, linearize_table, parse_markdown_table
from .inline_runs import parse_inline_runs
from .rendering import TableImageRenderer, render_markdown_table_to_image

# Main processor
from .processor import ChatTextProcessor

__all__ = [
    # Version
    "__version__",

    # Models
    "FragmentKind",
    "MathFragment",
    "Alignment",
    "InlineRun",
    "ParsedTable",
    "ConversionResult",

    # Configurations
    "ProcessConfig",
    "LatexConfig",
    "MarkdownConfig",
    "TableImageConfig",

    # Errors
    "ChatPlaintextError",
    "TableParseError",
    "ImageFetchError",
    "RenderError",
    "report_error",

    # Core components
    "SymbolTable",
    "SymbolTables",
    "get_symbol_tables",
    "MathConverter",
    "convert_math",
    "EnvironmentProcessor",
    "process_line",
    "process_segment",
    "LatexToText",
    "convert_latex_to_text",
    "extract_fragments",
    "MarkdownConverter",
    "convert_markdown_to_text",
    "TableLinearizer",
    "linearize_table",
    "parse_markdown_table",
    "parse_inline_runs",
    "TableImageRenderer",
    "render_markdown_table_to_image",

    # Main processor
    "ChatTextProcessor",
    "create_processor",
    "convert_chat_message"
]


def create_processor(**kwargs):
    """Create a configured chat text processor instance."""
    config = ProcessConfig(**kwargs)
    return ChatTextProcessor(config)


def convert_chat_message(text: str) -> str:
    """Run the LaTeX pass and then the Markdown pass over one message."""
    return convert_markdown_to_text(convert_latex_to_text(text))
