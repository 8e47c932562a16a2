import math
import uuid
import regex
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from ..config import TableImageConfig
from ..errors import ErrorSink, TableParseError, report_error
from ..inline_runs import parse_inline_runs
from ..models import Alignment, InlineRun, ParsedTable
from ..table_linearizer import parse_markdown_table
from .base_renderer import FontMetrics, FontStyle, GraphicsBackend, ImageFetcher
from .image_loader import ImageCache, RequestsImageFetcher
from .pillow_backend import PillowBackend


logger = logging.getLogger(__name__)

BR_TAG_PATTERN = regex.compile(r'<br\s*/?>', regex.IGNORECASE)


def image_units(height: int) -> int:
    """Line-height units an image-only line gets for a source image height."""
    if height <= 128:
        return 1
    if height <= 400:
        return 2
    if height <= 876:
        return 3
    if height <= 1600:
        return 4
    return 5


@dataclass
class RunLayout:
    """A run with its measured width and, for images, the scaled bitmap."""
    run: InlineRun
    width: float = 0.0
    image: Any = None
    image_width: int = 0
    image_height: int = 0
    fallback: Optional[str] = None


@dataclass
class LineLayout:
    runs: List[RunLayout]
    width: int = 0
    units: int = 1


@dataclass
class CellLayout:
    lines: List[LineLayout] = field(default_factory=list)
    max_width: int = 0

    @property
    def units_total(self) -> int:
        return sum(line.units for line in self.lines) or 1


class TableImageRenderer:
    """Rasterize a Markdown table to a PNG file."""

    def __init__(self, config: Optional[TableImageConfig] = None,
                 backend: Optional[GraphicsBackend] = None,
                 fetcher: Optional[ImageFetcher] = None,
                 error_sink: Optional[ErrorSink] = None):
        self.config = config or TableImageConfig()
        self.backend = backend or PillowBackend(self.config)
        self.fetcher = fetcher or RequestsImageFetcher(
            timeout=self.config.fetch_timeout, max_bytes=self.config.max_image_bytes
        )
        self.error_sink = error_sink

    def render(self, table: str) -> str:
        """Render ``table`` and return the path of the written PNG.

        Raises:
            TableParseError: If the table is empty or has no columns.
        """
        try:
            parsed = parse_markdown_table(table)
            if parsed.column_count == 0:
                raise TableParseError("Table has no columns")
            return self._render(parsed)
        except Exception as e:
            report_error(e, self.error_sink)
            raise

    def _render(self, parsed: ParsedTable) -> str:
        cache = ImageCache(self.fetcher, self.backend)
        surface = None
        try:
            layout = self._layout(parsed, cache)
            surface = self._draw(parsed, layout)

            base_dir = Path(self.config.base_dir)
            base_dir.mkdir(parents=True, exist_ok=True)
            path = base_dir / f"{uuid.uuid4()}.png"
            self.backend.save(surface, path)
            logger.info(f"Saved table image to {path}")
            return str(path)
        finally:
            if surface is not None:
                self.backend.release(surface)
            cache.release()

    def _layout(self, parsed: ParsedTable, cache: ImageCache) -> dict:
        cols = parsed.column_count
        header_metrics = self.backend.font_metrics(FontStyle(header=True))
        body_metrics = self.backend.font_metrics(FontStyle())

        header_cells = [
            self.layout_cell(parsed.header[c], True, header_metrics, cache) for c in range(cols)
        ]
        body_cells = [
            [self.layout_cell(row[c], False, body_metrics, cache) for c in range(cols)]
            for row in parsed.body
        ]

        pad_x, pad_y = self.config.cell_pad_x, self.config.cell_pad_y
        col_widths = []
        for c in range(cols):
            widest = max([header_cells[c].max_width] + [row[c].max_width for row in body_cells])
            col_widths.append(math.ceil(widest + pad_x * 2))

        header_units = max(cell.units_total for cell in header_cells)
        header_height = math.ceil(header_units * header_metrics.line_height + pad_y * 2)
        row_heights = [
            math.ceil(max(cell.units_total for cell in row) * body_metrics.line_height + pad_y * 2)
            for row in body_cells
        ]

        return {
            'header_cells': header_cells,
            'body_cells': body_cells,
            'col_widths': col_widths,
            'header_height': header_height,
            'row_heights': row_heights,
            'header_metrics': header_metrics,
            'body_metrics': body_metrics,
        }

    def layout_cell(self, text: str, header: bool, metrics: FontMetrics,
                    cache: ImageCache) -> CellLayout:
        """Split a cell into lines of measured runs."""
        unit_height = metrics.line_height
        cell = CellLayout()

        for raw in BR_TAG_PATTERN.sub('\n', text or '').split('\n'):
            runs = parse_inline_runs(raw)
            only_images = all(run.image for run in runs)

            units = 1
            if only_images:
                heights = [info.height for info in (cache.get(run.src) for run in runs) if info]
                if heights:
                    units = image_units(max(heights))

            line = LineLayout(runs=[], units=units)
            width = 0.0
            has_content = False

            for run in runs:
                placed = RunLayout(run)
                if run.image:
                    info = cache.get(run.src)
                    if info and info.width > 0 and info.height > 0:
                        available = max(
                            1, (units if only_images else 1) * unit_height - self.config.image_pad_y * 2
                        )
                        scale = available / info.height
                        placed.image = info.image
                        placed.image_width = math.ceil(info.width * scale)
                        placed.image_height = math.ceil(info.height * scale)
                        placed.width = placed.image_width + self.config.image_pad_x * 2
                    else:
                        placed.fallback = f"[{run.alt}]" if run.alt else "[img]"
                        placed.width = self.backend.measure_text(
                            placed.fallback, FontStyle(header=header)
                        )
                    has_content = True
                elif run.text:
                    has_content = True
                    text_width = self.backend.measure_text(run.text, FontStyle.for_run(header, run))
                    placed.width = text_width + self.config.code_pad_x * 2 if run.code else text_width

                line.runs.append(placed)
                width += placed.width

            if not has_content:
                line.runs = [RunLayout(InlineRun())]
            line.width = math.ceil(width)
            cell.max_width = max(cell.max_width, line.width)
            cell.lines.append(line)

        if not cell.lines:
            cell.lines.append(LineLayout(runs=[RunLayout(InlineRun())]))
        return cell

    def _draw(self, parsed: ParsedTable, layout: dict):
        cfg = self.config
        cols = parsed.column_count
        col_widths = layout['col_widths']
        row_heights = layout['row_heights']

        table_width = sum(col_widths)
        table_height = layout['header_height'] + sum(row_heights)
        surface = self.backend.create_surface(
            math.ceil(cfg.margin_x * 2 + table_width),
            math.ceil(cfg.margin_y * 2 + table_height),
            cfg.background_color
        )

        col_x = [cfg.margin_x]
        for width in col_widths:
            col_x.append(col_x[-1] + width)

        header_top = cfg.margin_y
        header_bottom = header_top + layout['header_height']
        row_y = [header_bottom]
        for height in row_heights:
            row_y.append(row_y[-1] + height)
        right = cfg.margin_x + table_width

        self.backend.draw_rect(surface, cfg.margin_x, header_top, right, header_bottom,
                               cfg.header_background_color)

        for x in col_x:
            self.backend.draw_line(surface, x, header_top, x, row_y[-1], cfg.grid_color, cfg.grid_stroke)
        self.backend.draw_line(surface, cfg.margin_x, header_top, right, header_top,
                               cfg.grid_color, cfg.grid_stroke)
        # Heavier rule under the header
        self.backend.draw_line(surface, cfg.margin_x, header_bottom, right, header_bottom,
                               cfg.grid_color, cfg.grid_stroke * 1.5)
        for y in row_y[1:]:
            self.backend.draw_line(surface, cfg.margin_x, y, right, y, cfg.grid_color, cfg.grid_stroke)

        for c in range(cols):
            self._draw_cell(surface, layout['header_cells'][c], True, layout['header_metrics'],
                            col_x[c], header_top, col_widths[c], parsed.align[c])

        for r, cells in enumerate(layout['body_cells']):
            for c in range(cols):
                self._draw_cell(surface, cells[c], False, layout['body_metrics'],
                                col_x[c], row_y[r], col_widths[c], parsed.align[c])

        return surface

    def _draw_cell(self, surface, cell: CellLayout, header: bool, metrics: FontMetrics,
                   left: float, top: float, width: float, align: Alignment):
        cfg = self.config
        baseline = top + cfg.cell_pad_y + metrics.ascent

        for line in cell.lines:
            if align is Alignment.CENTER:
                x = left + (width - line.width) / 2
            elif align is Alignment.RIGHT:
                x = left + width - cfg.cell_pad_x - line.width
            else:
                x = left + cfg.cell_pad_x

            line_height = metrics.line_height * line.units

            for placed in line.runs:
                run = placed.run
                if placed.image is not None:
                    image_top = baseline - metrics.ascent + (line_height - placed.image_height) / 2
                    self.backend.draw_image(surface, placed.image, x + cfg.image_pad_x, image_top,
                                            placed.image_width, placed.image_height)
                elif placed.fallback:
                    self.backend.draw_text(surface, placed.fallback, x, baseline,
                                           FontStyle(header=header), cfg.text_color)
                elif run.text:
                    style = FontStyle.for_run(header, run)
                    if run.code:
                        self.backend.draw_rect(
                            surface, x, baseline - metrics.ascent - cfg.code_pad_y,
                            x + placed.width, baseline + metrics.descent + cfg.code_pad_y,
                            cfg.code_background_color
                        )
                        self.backend.draw_text(surface, run.text, x + cfg.code_pad_x, baseline,
                                               style, cfg.text_color, strike=run.strike)
                    else:
                        self.backend.draw_text(surface, run.text, x, baseline, style,
                                               cfg.text_color, strike=run.strike)
                x += placed.width

            baseline += line_height

    def close(self):
        self.fetcher.close()


def render_markdown_table_to_image(table: str, config: Optional[TableImageConfig] = None,
                                   backend: Optional[GraphicsBackend] = None,
                                   fetcher: Optional[ImageFetcher] = None) -> str:
    """Render a Markdown table to a PNG and return the file path."""
    renderer = TableImageRenderer(config, backend, fetcher)
    try:
        return renderer.render(table)
    finally:
        renderer.close()
