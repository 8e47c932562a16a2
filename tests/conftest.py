import io
import pytest
import tempfile
from pathlib import Path
from PIL import Image
from chat_plaintext.config import TableImageConfig
from chat_plaintext.errors import ImageFetchError
from chat_plaintext.math_converter import MathConverter
from chat_plaintext.environment import EnvironmentProcessor
from chat_plaintext.latex_pipeline import LatexToText
from chat_plaintext.markdown_converter import MarkdownConverter
from chat_plaintext.rendering.base_renderer import FontMetrics, GraphicsBackend, ImageFetcher


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def math_converter():
    """Math converter instance."""
    return MathConverter()


@pytest.fixture
def environment_processor(math_converter):
    """Environment processor instance."""
    return EnvironmentProcessor(math_converter)


@pytest.fixture
def latex_pipeline():
    """LaTeX pipeline instance."""
    return LatexToText()


@pytest.fixture
def markdown_converter():
    """Markdown converter instance."""
    return MarkdownConverter()


@pytest.fixture
def sample_messages():
    """Sample chat messages mixing LaTeX and Markdown."""
    return {
        'plain': 'Hello, how are you today?',
        'inline_math': 'The area is $\\pi r^2$.',
        'display_math': 'Energy: $$E = mc^2$$',
        'paren_math': 'Sum \\(a+b\\) here',
        'bracket_math': '\\[x_1\\]',
        'boxed': 'The answer is \\boxed{42}',
        'align': '\\begin{align} a &= b \\\\ c &= d \\end{align}',
        'code_block': '```python\nx = $a$\n```\nand $b^2$',
        'markdown': '# Title\n\n- **item**\n- [x] done',
        'table': '| 이름 | 나이 |\n|---|---|\n| A | 1 |\n| B | 2 |\n',
    }


class FakeBackend(GraphicsBackend):
    """Deterministic backend: every character is 10px wide, lines are 10px tall."""

    CHAR_WIDTH = 10

    def __init__(self):
        self.calls = []
        self.released = []
        self.saved = []

    def is_available(self):
        return True

    def create_surface(self, width, height, background):
        surface = {'size': (width, height), 'background': background}
        self.calls.append(('surface', width, height))
        return surface

    def measure_text(self, text, style):
        return float(len(text) * self.CHAR_WIDTH)

    def font_metrics(self, style):
        return FontMetrics(ascent=8.0, descent=2.0)

    def draw_text(self, surface, text, x, baseline, style, color, strike=False):
        self.calls.append(('text', text, x, baseline, style, strike))

    def draw_rect(self, surface, left, top, right, bottom, color):
        self.calls.append(('rect', left, top, right, bottom, color))

    def draw_line(self, surface, x0, y0, x1, y1, color, width):
        self.calls.append(('line', x0, y0, x1, y1, width))

    def decode_image(self, data):
        # Fake image payloads look like b"120x64"
        try:
            width, height = (int(v) for v in data.decode().split('x'))
        except ValueError as e:
            raise ImageFetchError(f"bad fake image: {data!r}") from e
        return {'image': (width, height)}

    def image_size(self, image):
        return image['image']

    def draw_image(self, surface, image, left, top, width, height):
        self.calls.append(('image', left, top, width, height))

    def save(self, surface, path):
        Path(path).write_bytes(b'fake-png')
        self.saved.append((surface, Path(path)))

    def release(self, resource):
        self.released.append(resource)

    def texts(self):
        return [call[1] for call in self.calls if call[0] == 'text']


class FakeFetcher(ImageFetcher):
    """Serves fake image payloads from a dict; unknown sources fail."""

    def __init__(self, images=None):
        self.images = images or {}
        self.requests = []

    def fetch_bytes(self, src):
        self.requests.append(src)
        if src not in self.images:
            raise ImageFetchError(f"no such image: {src}")
        return self.images[src]


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def table_config(tmp_path):
    """Table image config writing into a temporary directory."""
    return TableImageConfig(base_dir=tmp_path / "images")


@pytest.fixture
def png_bytes():
    """A small red PNG image."""
    buffer = io.BytesIO()
    Image.new('RGB', (20, 10), color=(255, 0, 0)).save(buffer, format='PNG')
    return buffer.getvalue()
