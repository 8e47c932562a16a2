import pytest
from chat_plaintext.config import LatexConfig
from chat_plaintext.math_converter import MathConverter, convert_math, get_math_converter


class TestMathConverter:

    def test_initialization(self):
        """Test MathConverter initialization."""
        converter = MathConverter()
        assert converter.tables is not None
        assert converter.config.max_fraction_depth == 20

    def test_default_converter_shared(self):
        """Test module-level converter is reused."""
        assert get_math_converter() is get_math_converter()

    def test_plain_expression(self, math_converter):
        """Test expressions without commands only get spacing normalised."""
        assert math_converter.convert('x^2 + 1 = 0') == 'x² + 1 = 0'
        assert math_converter.convert('a+b') == 'a + b'

    def test_greek_letters(self, math_converter):
        """Test Greek letter substitution."""
        assert math_converter.convert(r'\alpha + \beta = \gamma') == 'α + β = γ'
        assert math_converter.convert(r'\Omega') == 'Ω'

    def test_operators(self, math_converter):
        """Test operator substitution."""
        assert math_converter.convert(r'a \leq b') == 'a ≤ b'
        assert math_converter.convert(r'x \in A') == 'x ∈ A'
        assert math_converter.convert(r'\infty') == '∞'

    def test_function_names(self, math_converter):
        """Test math function names render bare."""
        assert math_converter.convert(r'\sin x') == 'sin x'
        assert math_converter.convert(r'\log n') == 'log n'

    def test_unknown_command_passes_through(self, math_converter):
        """Test unknown commands lose only their backslash."""
        assert math_converter.convert(r'\foo') == 'foo'

    def test_fraction(self, math_converter):
        """Test fraction flattening with parentheses for compound operands."""
        assert math_converter.convert(r'\frac{1}{2}') == '1/2'
        assert math_converter.convert(r'\frac{a+b}{c}') == '(a + b)/c'
        assert math_converter.convert(r'\dfrac{a}{b-c}') == 'a/(b - c)'
        assert math_converter.convert(r'\tfrac{x}{y}') == 'x/y'

    def test_nested_fraction(self, math_converter):
        """Test nested fractions are converted inside out."""
        assert math_converter.convert(r'\frac{\frac{a}{b}}{c}') == '(a/b)/c'
        assert math_converter.convert(r'\frac{\frac{\frac{a}{b}}{c}}{d}') == '((a/b)/c)/d'

    def test_fraction_depth_cap(self):
        """Test fractions beyond the depth cap stay unconverted."""
        converter = MathConverter(config=LatexConfig(max_fraction_depth=0))
        result = converter.convert(r'\frac{a}{b}')
        assert '/' not in result

    def test_sqrt(self, math_converter):
        """Test square and n-th roots."""
        assert math_converter.convert(r'\sqrt{x}') == '√(x)'
        assert math_converter.convert(r'\sqrt[3]{8}') == '∛(8)'
        assert math_converter.convert(r'\sqrt[4]{x}') == '∜(x)'
        assert math_converter.convert(r'\sqrt[5]{y}') == '5√(y)'

    def test_sqrt_with_nested_braces(self, math_converter):
        """Test roots whose body contains braces."""
        assert math_converter.convert(r'\sqrt{x^{2}+1}') == '√(x² + 1)'

    def test_nested_roots(self, math_converter):
        """Test roots inside root bodies are converted too."""
        assert math_converter.convert(r'\sqrt{\sqrt{x}}') == '√(√(x))'
        assert math_converter.convert(r'\sqrt{1+\sqrt{y}}') == '√(1 + √(y))'
        assert math_converter.convert(r'\sqrt[3]{\sqrt{z}}') == '∛(√(z))'

    def test_superscripts(self, math_converter):
        """Test superscript transliteration."""
        assert math_converter.convert('x^{2}') == 'x²'
        assert math_converter.convert('x^{-1}') == 'x⁻¹'
        assert math_converter.convert('e^{x}') == 'eˣ'

    def test_q_has_no_superscript(self, math_converter):
        """Test q is kept as-is in superscripts."""
        assert math_converter.convert('x^{q}') == 'xq'

    def test_subscripts(self, math_converter):
        """Test subscript transliteration."""
        assert math_converter.convert('x_{ij}') == 'xᵢⱼ'
        assert math_converter.convert('a_1') == 'a₁'

    def test_sum_with_limits(self, math_converter):
        """Test sums with bounds."""
        assert math_converter.convert(r'\sum_{i=1}^{n}') == 'Σ[ⁿᵢ₌₁]'
        assert math_converter.convert(r'\prod_{k=0}^{m} k') == 'Π[ᵐₖ₌₀] k'
        assert math_converter.convert(r'\sum_i^n') == 'Σ[ⁿᵢ]'

    def test_bare_sum(self, math_converter):
        """Test sums without bounds."""
        assert math_converter.convert(r'\sum x') == 'Σ x'

    def test_integrals(self, math_converter):
        """Test integral signs and scripts."""
        assert math_converter.convert(r'\int_0^1 x\,dx') == '∫₀¹ x dx'
        assert math_converter.convert(r'\int f') == '∫ f'

    def test_contour_variable(self, math_converter):
        """Test a capital subscript on an integral stays a plain letter."""
        assert math_converter.convert(r'\int_S f') == '∫S f'
        assert math_converter.convert(r'\oint_S f') == '∮S f'
        assert math_converter.convert(r'\oint f') == '∮ f'

    def test_boxed(self, math_converter):
        """Test boxed content is converted and bracketed."""
        assert math_converter.convert(r'\boxed{x=1}') == '[ x = 1 ]'
        assert math_converter.convert(r'\boxed{\frac{1}{2}}') == '[ 1/2 ]'

    def test_textcircled(self, math_converter):
        """Test circled characters with fallback."""
        assert math_converter.convert(r'\textcircled{3}') == '③'
        assert math_converter.convert(r'\textcircled{?}') == 'Ⓞ'

    def test_delimiters(self, math_converter):
        """Test sized delimiters become plain brackets."""
        assert math_converter.convert(r'\left( x \right)') == '( x )'
        assert math_converter.convert(r'\left[ y \right]') == '[ y ]'
        assert math_converter.convert(r'\lVert v \rVert') == '‖ v ‖'
        assert math_converter.convert(r'\left. x \right|') == 'x |'

    def test_text_commands(self, math_converter):
        """Test text commands are unwrapped."""
        assert math_converter.convert(r'\text{if } x') == 'if x'
        assert math_converter.convert(r'\textcolor{red}{x+1}') == 'x + 1'
        assert math_converter.convert(r'\operatorname{rank}(A)') == 'rank(A)'
        assert math_converter.convert(r'\mathrm{d}x') == 'dx'

    def test_spacing_commands(self, math_converter):
        """Test spacing commands."""
        assert math_converter.convert(r'a\!b') == 'ab'
        assert math_converter.convert(r'a\quad b') == 'a b'
        assert math_converter.convert(r'a\,b') == 'a b'

    def test_displaystyle_removed(self, math_converter):
        """Test display style markers are dropped."""
        assert math_converter.convert(r'\displaystyle x') == 'x'

    def test_math_fonts(self, math_converter):
        """Test math alphabets."""
        assert math_converter.convert(r'\mathbb{R}') == 'ℝ'
        assert math_converter.convert(r'\mathbb{N}') == 'ℕ'
        assert math_converter.convert(r'\mathbf{v}') == '𝐯'
        assert math_converter.convert(r'\mathcal{L}') == 'ℒ'

    def test_math_font_keeps_non_letters(self, math_converter):
        """Test characters outside the alphabet pass through."""
        assert math_converter.convert(r'\mathbb{R2}') == 'ℝ2'

    def test_decorations(self, math_converter):
        """Test accents become combining marks."""
        assert math_converter.convert(r'\vec{v}') == 'v\u20d7'
        assert math_converter.convert(r'\hat{x}') == 'x\u0302'
        assert math_converter.convert(r'\bar{y}') == 'y\u0304'
        assert math_converter.convert(r'\hat x') == 'x\u0302'

    def test_pmatrix_single_row(self, math_converter):
        """Test a one-row matrix."""
        assert math_converter.convert(r'\begin{pmatrix} a & b \end{pmatrix}') == '( a | b )'

    def test_bmatrix_multiple_rows(self, math_converter):
        """Test a multi-row matrix."""
        result = math_converter.convert(r'\begin{bmatrix} 1 & 2 \\ 3 & 4 \end{bmatrix}')
        assert result == '[ 1 2 | 3 4 ]'

    def test_vmatrix(self, math_converter):
        """Test determinant bars."""
        result = math_converter.convert(r'\begin{vmatrix} a & b \\ c & d \end{vmatrix}')
        assert result == '| a b | c d |'

    def test_inline_cases(self, math_converter):
        """Test cases embedded in a fragment."""
        result = math_converter.convert(r'\begin{cases} 1 & x>0 \\ 0 & x \le 0 \end{cases}')
        assert result == '1 if x > 0, 0 if x ≤ 0'

    def test_environment_markup_stripped(self, math_converter):
        """Test other environments are flattened."""
        result = math_converter.convert(r'\begin{split} a &= b \\ &= c \end{split}')
        assert result == 'a = b = c'

    @pytest.mark.parametrize("latex", [
        r'\frac{a}{',
        r'\sqrt{',
        r'x^{',
        r'\begin{pmatrix} a & b',
        '}{}{',
        r'\\\\',
    ])
    def test_malformed_input_does_not_raise(self, math_converter, latex):
        """Test malformed fragments still produce a string."""
        assert isinstance(math_converter.convert(latex), str)

    def test_convenience_function(self):
        """Test module-level convert_math."""
        assert convert_math(r'\pi') == 'π'

    def test_symbol_overrides(self, tmp_path):
        """Test converter built with an override file."""
        path = tmp_path / "symbols.yaml"
        path.write_text("greek_letters:\n  alpha: A\n", encoding='utf-8')
        converter = MathConverter(config=LatexConfig(symbol_overrides=path))
        assert converter.convert(r'\alpha') == 'A'
