"""
Main processor for chat message conversion
"""

import json
import logging
import time
from pathlib import Path
from typing import Optional, Union, List, Dict

from .config import ProcessConfig
from .latex_pipeline import LatexToText
from .markdown_converter import MarkdownConverter
from .math_converter import MathConverter
from .models import ConversionResult
from .rendering import TableImageRenderer


logger = logging.getLogger(__name__)


class ChatTextProcessor:
    """Convert chat messages to plain text: LaTeX first, then Markdown."""

    SUPPORTED_SUFFIXES = ('.txt', '.md', '.markdown', '.tex')

    def __init__(self, config: Optional[ProcessConfig] = None):
        """Initialize processor with configuration."""
        self.config = config or ProcessConfig()

        self.math_converter = MathConverter(config=self.config.latex)

        # Setup logging
        if self.config.verbose:
            logging.basicConfig(level=logging.INFO)
        if self.config.debug:
            logging.basicConfig(level=logging.DEBUG)

    def process_text(self, text: str, source_file: Optional[str] = None) -> ConversionResult:
        """Convert one message and report what was applied."""
        start_time = time.time()
        errors: List[Dict[str, str]] = []

        def collect(error_name: str, message: str, trace: str):
            logger.error(f"{error_name}\n{message}\n{trace}")
            errors.append({'type': error_name, 'error': message})

        result = text
        latex_applied = markdown_applied = False

        if self.config.convert_latex:
            pipeline = LatexToText(self.config.latex, self.math_converter, collect)
            result = pipeline.convert(result)
            latex_applied = not errors and pipeline.has_math(text)

        if self.config.convert_markdown:
            failures = len(errors)
            converter = MarkdownConverter(self.config.markdown, collect)
            result = converter.convert(result)
            markdown_applied = len(errors) == failures

        return ConversionResult(
            original=text,
            text=result,
            latex_applied=latex_applied,
            markdown_applied=markdown_applied,
            source_file=source_file,
            processing_time=time.time() - start_time,
            errors=errors
        )

    def convert(self, text: str) -> str:
        """Convert one message and return only the text."""
        return self.process_text(text).text

    def process_file(self, file_path: Union[str, Path]) -> ConversionResult:
        """Convert the contents of a text file."""
        file_path = Path(file_path)

        if not file_path.exists():
            return ConversionResult(
                original="",
                text="",
                source_file=str(file_path),
                errors=[{'type': 'file_not_found', 'error': f"File not found: {file_path}"}]
            )

        suffix = file_path.suffix.lower()
        if suffix not in self.SUPPORTED_SUFFIXES:
            return ConversionResult(
                original="",
                text="",
                source_file=str(file_path),
                errors=[{'type': 'unsupported_format', 'error': f"Unsupported file format: {suffix}"}]
            )

        text = file_path.read_text(encoding='utf-8')
        return self.process_text(text, str(file_path))

    def process_batch(self, messages: List[str]) -> List[ConversionResult]:
        """Convert several messages in order."""
        return [self.process_text(message) for message in messages]

    def render_table(self, table: str) -> str:
        """Rasterize a Markdown table; returns the PNG path."""
        renderer = TableImageRenderer(self.config.table_image)
        try:
            return renderer.render(table)
        finally:
            renderer.close()

    def export_results(self, results: Union[ConversionResult, List[ConversionResult]],
                       output_path: Union[str, Path]) -> bool:
        """Write results to a JSON file."""
        output_path = Path(output_path)
        if isinstance(results, ConversionResult):
            results = [results]

        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump([r.to_dict() for r in results], f, indent=2, ensure_ascii=False)
            return True
        except (OSError, TypeError) as e:
            logger.error(f"Export failed: {e}")
            return False
