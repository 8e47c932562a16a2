from chat_plaintext.environment import (
    CLOSING_BANNER, IDLE, EnvironmentKind, InEnvironment,
    opening_banner, process_line, process_segment
)


class TestBanners:

    def test_opening_banner(self):
        """Test banner text for plain and starred environments."""
        assert opening_banner(EnvironmentKind.ALIGN) == '┌─ align ─────'
        assert opening_banner(EnvironmentKind.GATHER, starred=True) == '┌─ gather* ─────'

    def test_closing_banner(self):
        """Test closing banner text."""
        assert CLOSING_BANNER == '└────────────'


class TestStateMachine:

    def test_begin_enters_environment(self, environment_processor):
        """Test a begin tag emits the banner and opens the environment."""
        output, state = environment_processor.process_line(r'\begin{gather}', IDLE)
        assert output == '┌─ gather ─────'
        assert state == InEnvironment(EnvironmentKind.GATHER)

    def test_lines_are_buffered(self, environment_processor):
        """Test content lines inside an environment produce no output."""
        state = InEnvironment(EnvironmentKind.GATHER)
        output, state = environment_processor.process_line('x^2', state)
        assert output is None
        assert state.buffer == ('x^2',)

    def test_mismatched_end_keeps_state(self, environment_processor):
        """Test an end tag for a different environment leaves the state unchanged."""
        state = InEnvironment(EnvironmentKind.GATHER, buffer=('x^2',))
        output, next_state = environment_processor.process_line(r'\end{align}', state)
        assert output == CLOSING_BANNER
        assert next_state == state

    def test_matching_end_flushes(self, environment_processor):
        """Test the matching end tag renders the buffered rows."""
        state = InEnvironment(EnvironmentKind.GATHER, buffer=('x^2',))
        output, next_state = environment_processor.process_line(r'\end{gather}', state)
        assert output == '│ x²\n└────────────'
        assert next_state == IDLE

    def test_end_while_idle(self, environment_processor):
        """Test a stray end tag only emits the closing banner."""
        output, state = environment_processor.process_line(r'\end{cases}', IDLE)
        assert output == CLOSING_BANNER
        assert state == IDLE

    def test_dollar_span_replaced_in_place(self, environment_processor):
        """Test inline math inside a line is converted in place."""
        output, state = environment_processor.process_line('value $x^2$ here', IDLE)
        assert output == 'value x² here'
        assert state == IDLE

    def test_inline_cases(self, environment_processor):
        """Test cases inside a dollar span are laid out as rows."""
        line = r'$f(x) = \begin{cases} 1 & x>0 \\ 0 & x \le 0 \end{cases}$'
        output, _ = environment_processor.process_line(line, IDLE)
        assert output.split('\n') == [
            'f(x) =',
            '┌─ cases ─────',
            '│ 1 if x > 0',
            '│ 0 if x ≤ 0',
            '└────────────',
        ]

    def test_stray_text_if(self, environment_processor):
        """Test a bare \\text{if} outside cases becomes the word."""
        output, _ = environment_processor.process_line(r'x \text{if} y', IDLE)
        assert output == 'x if y'


class TestRows:

    def test_case_row(self, environment_processor):
        """Test a cases row renders expression and condition."""
        rows = environment_processor.render_rows(EnvironmentKind.CASES, 'x & x>0')
        assert rows == ['│ x if x > 0']

    def test_case_row_strips_text_if(self, environment_processor):
        """Test a leading \\text{if} in the condition is not repeated."""
        rows = environment_processor.render_rows(EnvironmentKind.CASES, r'0 & \text{if } x<0')
        assert rows == ['│ 0 if x < 0']

    def test_case_row_without_condition(self, environment_processor):
        """Test a row with only an expression."""
        assert environment_processor.render_rows(EnvironmentKind.CASES, 'y') == ['│ y']

    def test_align_rows(self, environment_processor):
        """Test align rows join their parts with equals signs."""
        rows = environment_processor.render_rows(EnvironmentKind.ALIGN, r'a &= b \\ c &= d')
        assert rows == ['│ a = b', '│ c = d']


class TestSegments:

    def test_align_segment(self):
        """Test a full align environment on one line."""
        result = process_segment(r'\begin{align} a &= b \\ c &= d \end{align}')
        assert result == '┌─ align ─────\n│ a = b\n│ c = d\n└────────────'

    def test_starred_segment(self):
        """Test starred environments keep the star in the banner."""
        result = process_segment('\\begin{align*}\nx &= 1\n\\end{align*}')
        assert result == '┌─ align* ─────\n│ x = 1\n└────────────'

    def test_plain_segment_lines(self):
        """Test segments without environments convert line by line."""
        assert process_segment('a+b\nc') == 'a + b\nc'

    def test_unterminated_environment(self):
        """Test an environment missing its end tag only keeps the banner."""
        assert process_segment(r'\begin{align} a &= b') == '┌─ align ─────'

    def test_module_process_line(self):
        """Test module-level process_line defaults to the idle state."""
        output, state = process_line(r'\alpha')
        assert output == 'α'
        assert state == IDLE
