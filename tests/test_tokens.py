import pytest
from chat_plaintext.markdown_converter import BOLD_TABLE, ITALIC_TABLE
from chat_plaintext.tokens import (
    INDEX_ALPHABET, TOKEN_END, TOKEN_START, TokenKind, TokenRegistry,
    decode_index, encode_index, make_token
)


class TestIndexEncoding:

    def test_single_digit(self):
        """Test small indices use one alphabet character."""
        assert encode_index(0) == INDEX_ALPHABET[0]
        assert encode_index(5) == INDEX_ALPHABET[5]

    def test_multi_digit(self):
        """Test indices past the alphabet size carry into a second digit."""
        base = len(INDEX_ALPHABET)
        assert encode_index(base) == INDEX_ALPHABET[1] + INDEX_ALPHABET[0]

    @pytest.mark.parametrize("index", [0, 1, 61, 62, 700, 123456])
    def test_decode_inverts_encode(self, index):
        """Test decode_index is the inverse of encode_index."""
        assert decode_index(encode_index(index)) == index

    def test_negative_index_rejected(self):
        """Test negative indices raise."""
        with pytest.raises(ValueError):
            encode_index(-1)

    def test_alphabet_avoids_styled_letters(self):
        """Test index characters never collide with bold or italic glyphs."""
        styled = set(BOLD_TABLE.values()) | set(ITALIC_TABLE.values())
        assert not styled & set(INDEX_ALPHABET)

    def test_token_shape(self):
        """Test token layout."""
        token = make_token(TokenKind.URL, 0)
        assert token.startswith(TOKEN_START + TokenKind.URL.value)
        assert token.endswith(TOKEN_END)


class TestTokenRegistry:

    def test_protect_and_restore(self):
        """Test a protected value comes back verbatim."""
        registry = TokenRegistry()
        token = registry.protect(TokenKind.INLINE_CODE, 'a*b*c')
        assert registry.restore(f"x {token} y", TokenKind.INLINE_CODE) == 'x a*b*c y'

    def test_restore_with_render(self):
        """Test restore applies the render callback."""
        registry = TokenRegistry()
        token = registry.protect(TokenKind.CODE_BLOCK, ('py', 'pass'))
        result = registry.restore(token, TokenKind.CODE_BLOCK, render=lambda v: f"[{v[0]}] {v[1]}")
        assert result == '[py] pass'

    def test_kinds_are_independent(self):
        """Test restoring one kind leaves other kinds in place."""
        registry = TokenRegistry()
        url = registry.protect(TokenKind.URL, 'https://x.com')
        code = registry.protect(TokenKind.INLINE_CODE, 'x')
        text = registry.restore(f"{url} {code}", TokenKind.URL)
        assert text == f"https://x.com {code}"

    def test_unknown_index_kept(self):
        """Test tokens with indices never handed out are left alone."""
        registry = TokenRegistry()
        registry.protect(TokenKind.URL, 'a')
        stray = make_token(TokenKind.URL, 5)
        assert registry.restore(stray, TokenKind.URL) == stray

    def test_counts(self):
        """Test per-kind and total counts."""
        registry = TokenRegistry()
        for value in ('a', 'b', 'c'):
            registry.protect(TokenKind.URL, value)
        registry.protect(TokenKind.INLINE_CODE, 'd')
        assert registry.count(TokenKind.URL) == 3
        assert len(registry) == 4

    def test_many_tokens(self):
        """Test restore across a large number of tokens."""
        registry = TokenRegistry()
        tokens = [registry.protect(TokenKind.URL, str(i)) for i in range(300)]
        assert registry.restore(' '.join(tokens), TokenKind.URL) == ' '.join(str(i) for i in range(300))
