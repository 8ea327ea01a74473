"""Pull-based comma tokenizer over a text stream.

Header tokens may span any number of reads; their pieces are collected and
joined once the separator is found. Path tokens honour backslash escapes so an
escaped separator does not end the token. Body text is handed out piece by
piece with :meth:`CommaTokenizer.next_piece` so large bodies are never held in
memory whole.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TextIO

from .markers import ESCAPE, SEP

READ_BUFFER_SIZE = 64 * 1024


@dataclass(frozen=True)
class Token:
    """Text between separators.

    ``terminated`` is false when no separator followed: at end of input, or
    for a body piece whose token continues in the next piece.
    """

    text: str
    terminated: bool


class CommaTokenizer:
    """Split a text stream on unescaped separators."""

    def __init__(self, stream: TextIO, buffer_size: int = READ_BUFFER_SIZE) -> None:
        self._stream = stream
        self._buffer_size = max(1, buffer_size)
        self._buffer = ""
        self._pos = 0
        self._eof = False

    def _buffered(self) -> bool:
        """Make sure unread text is buffered; return ``False`` at end of input."""
        if self._pos < len(self._buffer):
            return True
        if self._eof:
            return False
        chunk = self._stream.read(self._buffer_size)
        if not chunk:
            self._eof = True
            return False
        self._buffer = chunk
        self._pos = 0
        return True

    def _find_separator(self, start: int, escapes: bool) -> tuple[int, int]:
        """Return ``(index, overhang)``; ``index`` is -1 when no separator is buffered.

        ``overhang`` is 1 when the buffer ends on an escape whose escaped
        character is still unread.
        """
        buffer = self._buffer
        if not escapes:
            return buffer.find(SEP, start), 0
        idx = start
        while idx < len(buffer):
            char = buffer[idx]
            if char == ESCAPE:
                idx += 2
                continue
            if char == SEP:
                return idx, 0
            idx += 1
        return -1, idx - len(buffer)

    def next_token(self, *, escapes: bool = False) -> Token | None:
        """Return the next whole token, or ``None`` once input is exhausted."""
        parts: list[str] = []
        skip = 0
        while self._buffered():
            start = self._pos
            sep_idx, skip = self._find_separator(start + skip, escapes)
            if sep_idx >= 0:
                parts.append(self._buffer[start:sep_idx])
                self._pos = sep_idx + 1
                return Token("".join(parts), terminated=True)
            parts.append(self._buffer[start:])
            self._pos = len(self._buffer)
        if not parts:
            return None
        return Token("".join(parts), terminated=False)

    def next_piece(self) -> Token | None:
        """Return buffered text up to the next separator, reading at most once.

        An unterminated piece is followed by the rest of the same token.
        """
        if not self._buffered():
            return None
        start = self._pos
        sep_idx = self._buffer.find(SEP, start)
        if sep_idx >= 0:
            self._pos = sep_idx + 1
            return Token(self._buffer[start:sep_idx], terminated=True)
        self._pos = len(self._buffer)
        return Token(self._buffer[start:], terminated=False)

    def push_back(self, text: str) -> None:
        """Make ``text`` the start of the next token."""
        if not text:
            return
        self._buffer = text + self._buffer[self._pos :]
        self._pos = 0


__all__ = ["CommaTokenizer", "READ_BUFFER_SIZE", "Token"]
