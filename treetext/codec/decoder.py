"""Archive decoder: tokenizer-driven record dispatch and body unit decoding.

The decoder pulls comma-separated tokens, dispatches on the record tag, and
for file records decodes exactly ``LogicalLen`` units from the following body
chunks. A separator between two chunks of the same body is a literal comma
in the file. Malformed unprintable runs truncate only the file being decoded.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import BinaryIO, Protocol, TextIO

from ..errors import ArchiveError, ArchiveIOError, StructuralError
from .escape import unescape_path
from .markers import (
    BASE64_PREFIX,
    DIRECTORY_TAG,
    FILE_TAG,
    NEWLINE_MARKER,
    RUN_LENGTH_TERMINATOR,
    SEP,
    TAB_MARKER,
    UNPRINTABLE_MARKER,
)
from .records import DirectoryRecord, FileRecord
from .tokenizer import READ_BUFFER_SIZE, CommaTokenizer, Token

logger = logging.getLogger(__name__)

_PLAIN_RUN_RE = re.compile(f"[^{NEWLINE_MARKER}{TAB_MARKER}{UNPRINTABLE_MARKER}]+")
_SEP_BYTES = SEP.encode("ascii")
# Longest "<marker><digits>" run header carried over between body pieces.
MAX_RUN_HEADER = 24


class ArchiveSink(Protocol):
    """Destination for decoded records."""

    def create_directory(self, record: DirectoryRecord) -> None: ...

    def open_file(self, record: FileRecord) -> AbstractContextManager[BinaryIO]: ...

    def finish_file(self, record: FileRecord, outcome: BodyOutcome) -> None: ...


@dataclass(frozen=True)
class BodyOutcome:
    """Result of decoding one file body."""

    units: int
    bytes_written: int
    truncated: bool
    base64_fallback: bool


@dataclass
class DecodeResult:
    """Counters and soft-failure report for one decode pass."""

    directories: int = 0
    files: int = 0
    bytes_out: int = 0
    truncated: list[str] = field(default_factory=list)


def validate_relative_path(text: str, record_type: str) -> str:
    """Unescape a path token and reject paths escaping the target directory."""
    raw = unescape_path(text)
    if not raw:
        raise StructuralError("empty path", record_type)
    if raw.startswith("/"):
        raise StructuralError("absolute path not allowed", record_type, raw)
    parts = [part for part in PurePosixPath(raw).parts if part != "."]
    if ".." in parts:
        raise StructuralError("parent directory reference not allowed", record_type, raw)
    if not parts:
        raise StructuralError("empty path", record_type, raw)
    return "/".join(parts)


def _parse_count(text: str) -> int | None:
    if not text or not text.isascii() or not text.isdigit():
        return None
    return int(text)


class BodyDecoder:
    """Decode one file body from tokenizer pieces into ``out``.

    Pieces are decoded as they arrive. An unprintable run may span pieces of
    the same token; only its short ``<marker><len>:`` header is ever carried
    over as text.
    """

    def __init__(self, tokenizer: CommaTokenizer, out: BinaryIO, record: FileRecord) -> None:
        self._tokenizer = tokenizer
        self._out = out
        self._record = record
        self._units = 0
        self._written = 0
        self._carry = ""
        self._run_needed = 0
        self._run_parts: list[str] = []

    def _write(self, data: bytes | bytearray) -> None:
        if not data:
            return
        try:
            self._out.write(data)
        except OSError as exc:
            raise ArchiveIOError("writing", self._record.relative_path, exc) from exc
        self._written += len(data)

    def _soft_truncate(self, reason: str, base64_fallback: bool = False) -> BodyOutcome:
        logger.warning(
            "%s: %s; stopped after %d of %d units",
            self._record.relative_path,
            reason,
            self._units,
            self._record.logical_length,
        )
        return BodyOutcome(self._units, self._written, True, base64_fallback)

    def _complete_prefix(self, token: Token) -> Token:
        """Extend a first piece that stops inside the whole-file prefix."""
        text = token.text
        terminated = token.terminated
        while not terminated and len(text) < len(BASE64_PREFIX) and BASE64_PREFIX.startswith(text):
            following = self._tokenizer.next_piece()
            if following is None:
                break
            text += following.text
            terminated = following.terminated
        return Token(text, terminated)

    def _decode_whole_file(self, first: Token) -> BodyOutcome:
        token: Token | None = Token(first.text[len(BASE64_PREFIX) :], first.terminated)
        leftover = ""
        while token is not None:
            data = leftover + token.text
            usable = len(data) - len(data) % 4
            try:
                decoded = base64.b64decode(data[:usable], validate=True)
            except (binascii.Error, ValueError):
                return self._soft_truncate("invalid whole-file base64 body", True)
            self._write(decoded)
            leftover = data[usable:]
            if token.terminated:
                break
            token = self._tokenizer.next_piece()
        if leftover:
            return self._soft_truncate("invalid whole-file base64 body", True)
        self._units = self._record.logical_length
        if self._written != self._record.logical_length:
            logger.warning(
                "%s: whole-file body decoded to %d bytes, header declared %d",
                self._record.relative_path,
                self._written,
                self._record.logical_length,
            )
        return BodyOutcome(self._units, self._written, False, True)

    def _finish_run(self) -> bytes | None:
        encoded = "".join(self._run_parts)
        self._run_parts = []
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            return None

    def _decode_piece(self, text: str, more: bool) -> tuple[int, str | None]:
        """Decode units from ``text``; return ``(consumed, truncation_reason)``.

        ``more`` says the same token continues in the next piece.
        """
        limit = self._record.logical_length
        pending = bytearray()
        idx = 0
        size = len(text)
        reason: str | None = None
        while idx < size:
            if self._run_needed:
                take = min(self._run_needed, size - idx)
                self._run_parts.append(text[idx : idx + take])
                self._run_needed -= take
                idx += take
                if self._run_needed:
                    break
                decoded = self._finish_run()
                if decoded is None:
                    reason = "invalid base64 in unprintable run"
                    break
                pending += decoded
                self._units += len(decoded)
                continue
            if self._units >= limit:
                break
            char = text[idx]
            if char == UNPRINTABLE_MARKER:
                digits_end = idx + 1
                while digits_end < size and "0" <= text[digits_end] <= "9":
                    digits_end += 1
                if digits_end >= size and more and digits_end - idx <= MAX_RUN_HEADER:
                    self._carry = text[idx:]
                    idx = size
                    break
                if digits_end == idx + 1 or digits_end >= size or text[digits_end] != RUN_LENGTH_TERMINATOR:
                    reason = "unprintable run without length terminator"
                    break
                self._run_needed = int(text[idx + 1 : digits_end])
                self._run_parts = []
                idx = digits_end + 1
            elif char == NEWLINE_MARKER:
                pending += b"\n"
                self._units += 1
                idx += 1
            elif char == TAB_MARKER:
                pending += b"\t"
                self._units += 1
                idx += 1
            else:
                match = _PLAIN_RUN_RE.match(text, idx)
                run_end = match.end() if match is not None else idx + 1
                take = min(run_end - idx, limit - self._units)
                pending += text[idx : idx + take].encode("utf-8")
                self._units += take
                idx += take
        if reason is None and self._run_needed and not more:
            reason = "unprintable run longer than its chunk"
        self._write(pending)
        return idx, reason

    def run(self) -> BodyOutcome:
        limit = self._record.logical_length
        first = True
        while self._units < limit:
            token = self._tokenizer.next_piece()
            if token is None:
                return self._soft_truncate("archive ended inside file body")
            if first:
                token = self._complete_prefix(token)
                if token.text.startswith(BASE64_PREFIX):
                    return self._decode_whole_file(token)
                first = False
            text = self._carry + token.text
            self._carry = ""
            consumed, reason = self._decode_piece(text, not token.terminated)
            if reason is not None:
                return self._soft_truncate(reason)
            if consumed < len(text):
                self._tokenizer.push_back(text[consumed:] + (SEP if token.terminated else ""))
                break
            if self._units < limit and token.terminated:
                self._write(_SEP_BYTES)
                self._units += 1
        return BodyOutcome(self._units, self._written, False, False)


class ArchiveDecoder:
    """Dispatch archive records from ``stream`` into ``sink``."""

    def __init__(
        self,
        stream: TextIO,
        sink: ArchiveSink,
        *,
        buffer_size: int = READ_BUFFER_SIZE,
        name: object = "<archive>",
    ) -> None:
        self._tokenizer = CommaTokenizer(stream, buffer_size)
        self._sink = sink
        self._name = name
        self.result = DecodeResult()

    def _next(self, *, escapes: bool = False) -> Token | None:
        try:
            return self._tokenizer.next_token(escapes=escapes)
        except UnicodeDecodeError as exc:
            raise StructuralError(f"archive is not valid UTF-8 text: {exc}") from exc
        except OSError as exc:
            raise ArchiveIOError("reading", self._name, exc) from exc

    def _require(self, what: str, record_type: str, path: str | None = None, *, escapes: bool = False) -> str:
        token = self._next(escapes=escapes)
        if token is None:
            raise StructuralError(f"expected {what}", record_type, path)
        return token.text

    def _decode_directory(self) -> None:
        text = self._require("directory name", DIRECTORY_TAG, escapes=True)
        record = DirectoryRecord(validate_relative_path(text, DIRECTORY_TAG))
        self._sink.create_directory(record)
        self.result.directories += 1
        logger.debug("decoded directory %s", record.relative_path)

    def _decode_file(self) -> None:
        text = self._require("file name", FILE_TAG, escapes=True)
        relative_path = validate_relative_path(text, FILE_TAG)
        byte_length_text = self._require("file metadata", FILE_TAG, relative_path)
        mod_date = self._require("file metadata", FILE_TAG, relative_path)
        hash_text = self._require("file metadata", FILE_TAG, relative_path)
        length_text = self._require("logical length", FILE_TAG, relative_path)
        logical_length = _parse_count(length_text)
        if logical_length is None:
            raise StructuralError(f"invalid logical length {length_text!r}", FILE_TAG, relative_path)
        record = FileRecord(
            relative_path=relative_path,
            byte_length=_parse_count(byte_length_text),
            mod_date=mod_date,
            content_hash=hash_text,
            logical_length=logical_length,
        )
        with self._sink.open_file(record) as handle:
            try:
                outcome = BodyDecoder(self._tokenizer, handle, record).run()
            except UnicodeDecodeError as exc:
                raise StructuralError(f"archive is not valid UTF-8 text: {exc}", FILE_TAG, relative_path) from exc
            except ArchiveError:
                raise
            except OSError as exc:
                raise ArchiveIOError("reading", self._name, exc) from exc
        self._sink.finish_file(record, outcome)
        self.result.files += 1
        self.result.bytes_out += outcome.bytes_written
        if outcome.truncated:
            self.result.truncated.append(relative_path)
        elif record.byte_length is not None and outcome.bytes_written != record.byte_length:
            logger.warning(
                "%s: decoded %d bytes, header declared %d",
                relative_path,
                outcome.bytes_written,
                record.byte_length,
            )
        logger.debug("decoded file %s (%d bytes)", relative_path, outcome.bytes_written)

    def run(self) -> DecodeResult:
        """Decode every record; stop at the first structural or I/O error."""
        while True:
            token = self._next()
            if token is None:
                return self.result
            tag = token.text
            if not tag:
                continue
            if tag == DIRECTORY_TAG:
                self._decode_directory()
            elif tag == FILE_TAG:
                self._decode_file()
            else:
                raise StructuralError(f"unexpected token {tag[:40]!r}")


def decode_stream(stream: TextIO, sink: ArchiveSink, *, buffer_size: int = READ_BUFFER_SIZE, name: object = "<archive>") -> DecodeResult:
    """Decode an archive text stream into ``sink``."""
    return ArchiveDecoder(stream, sink, buffer_size=buffer_size, name=name).run()


__all__ = [
    "ArchiveDecoder",
    "ArchiveSink",
    "BodyDecoder",
    "BodyOutcome",
    "DecodeResult",
    "decode_stream",
    "validate_relative_path",
]
