from unittest.mock import Mock
from chat_plaintext.config import LatexConfig
from chat_plaintext.latex_pipeline import LatexToText, convert_latex_to_text, extract_fragments
from chat_plaintext.models import FragmentKind


class TestLatexToText:

    def test_plain_text_unchanged(self, latex_pipeline, sample_messages):
        """Test text without math is returned as-is."""
        assert latex_pipeline.convert(sample_messages['plain']) == sample_messages['plain']

    def test_has_math(self, latex_pipeline):
        """Test the fast path check."""
        assert latex_pipeline.has_math('cost $5 each')
        assert latex_pipeline.has_math(r'\alpha')
        assert not latex_pipeline.has_math('no math here')
        assert not latex_pipeline.has_math('```\n$x$\n```')

    def test_inline_math(self, latex_pipeline, sample_messages):
        """Test single-dollar fragments."""
        assert latex_pipeline.convert(sample_messages['inline_math']) == 'The area is π r².'

    def test_display_math(self, latex_pipeline, sample_messages):
        """Test double-dollar fragments."""
        assert latex_pipeline.convert(sample_messages['display_math']) == 'Energy: E = mc²'

    def test_paren_and_bracket_math(self, latex_pipeline, sample_messages):
        """Test \\( \\) and \\[ \\] delimiters."""
        assert latex_pipeline.convert(sample_messages['paren_math']) == 'Sum a + b here'
        assert latex_pipeline.convert(sample_messages['bracket_math']) == 'x₁'

    def test_boxed_outside_math(self, latex_pipeline, sample_messages):
        """Test a bare \\boxed{} is picked up as a fragment."""
        assert latex_pipeline.convert(sample_messages['boxed']) == 'The answer is [ 42 ]'

    def test_align_environment(self, latex_pipeline, sample_messages):
        """Test environments are laid out as framed rows."""
        result = latex_pipeline.convert(sample_messages['align'])
        assert result == '┌─ align ─────\n│ a = b\n│ c = d\n└────────────'

    def test_matrix_environment(self, latex_pipeline):
        """Test matrices inside inline math."""
        result = latex_pipeline.convert(r'M = $\begin{pmatrix} a & b \end{pmatrix}$')
        assert result == 'M = ( a | b )'

    def test_code_block_preserved(self, latex_pipeline, sample_messages):
        """Test fenced code comes back byte-identical."""
        result = latex_pipeline.convert(sample_messages['code_block'])
        assert result == '```python\nx = $a$\n```\nand b²'

    def test_inline_code_preserved(self, latex_pipeline):
        """Test inline code spans are not converted."""
        assert latex_pipeline.convert('Use `$x$` and $y^2$') == 'Use `$x$` and y²'

    def test_idempotent(self, latex_pipeline, sample_messages):
        """Test converting converted output changes nothing."""
        once = latex_pipeline.convert(sample_messages['inline_math'])
        assert latex_pipeline.convert(once) == once

    def test_internal_error_returns_input(self):
        """Test failures are reported and the input is returned."""
        converter = Mock()
        converter.convert.side_effect = RuntimeError("boom")
        sink = Mock()
        pipeline = LatexToText(converter=converter, error_sink=sink)

        text = 'value $x$'
        assert pipeline.convert(text) == text
        sink.assert_called_once()
        name, message, trace = sink.call_args[0]
        assert name == 'RuntimeError'
        assert message == 'boom'
        assert 'Traceback' in trace

    def test_config_builds_own_converter(self):
        """Test a config produces a dedicated converter."""
        pipeline = LatexToText(LatexConfig(max_fraction_depth=5))
        assert pipeline.converter.config.max_fraction_depth == 5


class TestFragments:

    def test_fragment_kinds_and_offsets(self):
        """Test fragments are listed in order with their kinds."""
        fragments = extract_fragments(r'a $x$ b \(y\)')
        assert [f.kind for f in fragments] == [FragmentKind.INLINE, FragmentKind.PAREN]
        assert (fragments[0].start, fragments[0].end) == (2, 5)
        assert fragments[1].body == 'y'

    def test_display_wins_over_inline(self):
        """Test $$ is not read as two empty inline fragments."""
        fragments = extract_fragments('$$x$$')
        assert len(fragments) == 1
        assert fragments[0].kind == FragmentKind.DISPLAY
        assert fragments[0].body == 'x'

    def test_environment_fragment(self):
        """Test environments keep their markup."""
        fragments = extract_fragments(r'\begin{gather} x \end{gather}')
        assert fragments[0].kind == FragmentKind.ENVIRONMENT
        assert fragments[0].body.startswith(r'\begin{gather}')

    def test_code_is_skipped(self):
        """Test fragments inside code are ignored."""
        assert extract_fragments('`$x$` and ```\n$y$\n```') == []


class TestConvenience:

    def test_convert_latex_to_text(self):
        """Test the module-level helper."""
        assert convert_latex_to_text(r'$\alpha$') == 'α'
