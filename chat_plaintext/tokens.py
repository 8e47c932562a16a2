"""
Placeholder tokens that shield code spans and URLs from rewrite passes
"""

import regex
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)

TOKEN_START = '乜𪚥'
TOKEN_END = '𪚥乜'


def _build_index_alphabet() -> str:
    """Full-width Latin letters and digits followed by Hangul syllables."""
    ranges = [
        (0xFF21, 0xFF3A),  # Ａ-Ｚ
        (0xFF41, 0xFF5A),  # ａ-ｚ
        (0xFF10, 0xFF19),  # ０-９
        (0xAC00, 0xAE4B),  # 가-깋
    ]
    return ''.join(chr(code) for first, last in ranges for code in range(first, last + 1))


INDEX_ALPHABET = _build_index_alphabet()
_INDEX_VALUES = {char: value for value, char in enumerate(INDEX_ALPHABET)}


class TokenKind(Enum):
    """Kinds of protected regions, each with its own tag."""
    URL = '有斡恚累'
    CODE_BLOCK = '高頭不歷'
    INLINE_CODE = '引羅引'
    LATEX_CODE = '乇碼乇'


def encode_index(index: int) -> str:
    """Encode a non-negative index in the index alphabet (most significant first)."""
    if index < 0:
        raise ValueError(f"Token index must be non-negative: {index}")

    base = len(INDEX_ALPHABET)
    digits = []
    while True:
        index, remainder = divmod(index, base)
        digits.append(INDEX_ALPHABET[remainder])
        if index == 0:
            break
    return ''.join(reversed(digits))


def decode_index(encoded: str) -> int:
    """Inverse of :func:`encode_index`."""
    base = len(INDEX_ALPHABET)
    value = 0
    for char in encoded:
        value = value * base + _INDEX_VALUES[char]
    return value


def make_token(kind: TokenKind, index: int) -> str:
    return f"{TOKEN_START}{kind.value}{encode_index(index)}{TOKEN_END}"


_TOKEN_PATTERNS = {
    kind: regex.compile(
        regex.escape(TOKEN_START + kind.value)
        + f"([{INDEX_ALPHABET}]+)"
        + regex.escape(TOKEN_END)
    )
    for kind in TokenKind
}


class TokenRegistry:
    """Per-call store of protected regions.

    Each conversion creates its own registry; nothing here is shared
    between calls.
    """

    def __init__(self):
        self._entries: Dict[TokenKind, List[Any]] = {kind: [] for kind in TokenKind}

    def protect(self, kind: TokenKind, value: Any) -> str:
        """Record ``value`` and return the placeholder that stands for it."""
        entries = self._entries[kind]
        token = make_token(kind, len(entries))
        entries.append(value)
        return token

    def restore(self, text: str, kind: TokenKind,
                render: Optional[Callable[[Any], str]] = None) -> str:
        """Replace every ``kind`` placeholder in ``text`` with its rendered value."""
        entries = self._entries[kind]
        if not entries:
            return text

        def replace(match):
            index = decode_index(match.group(1))
            if index >= len(entries):
                logger.warning(f"Unknown {kind.name} token index {index}")
                return match.group(0)
            value = entries[index]
            return render(value) if render else value

        return _TOKEN_PATTERNS[kind].sub(replace, text)

    def count(self, kind: TokenKind) -> int:
        return len(self._entries[kind])

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())
