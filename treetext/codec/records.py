"""Record datatypes and the writer that frames them into archive text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import BinaryIO

from ..errors import ArchiveError, ArchiveIOError, EncodingInvariantError
from .escape import escape_path, iter_body, plan_body
from .hashing import DEFAULT_HASH_ALGORITHM, content_hash
from .markers import DATE_FORMAT, DIRECTORY_TAG, FILE_TAG, SEP

logger = logging.getLogger(__name__)

WRITE_BUFFER_SIZE = 64 * 1024


@dataclass(frozen=True)
class DirectoryRecord:
    """Directory entry; ``relative_path`` is unescaped and ``/``-separated."""

    relative_path: str

    tag = DIRECTORY_TAG


@dataclass(frozen=True)
class FileRecord:
    """File entry header; the body itself is streamed, never stored here."""

    relative_path: str
    byte_length: int | None
    mod_date: str
    content_hash: str
    logical_length: int
    base64_fallback: bool = False

    tag = FILE_TAG


Record = DirectoryRecord | FileRecord


def format_mod_date(mtime_ns: int) -> str:
    """Format a nanosecond timestamp as a UTC ``YYYY-MM-DD`` date."""
    return datetime.fromtimestamp(mtime_ns / 1_000_000_000, tz=timezone.utc).strftime(DATE_FORMAT)


def _checked_path(relative_path: str) -> str:
    try:
        relative_path.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingInvariantError(f"path is not representable as UTF-8 text: {relative_path!r}") from exc
    return escape_path(relative_path)


class RecordWriter:
    """Frame records into a binary output stream.

    Records are joined by the separator. Text is buffered and flushed in
    blocks so a downstream pipe sees a modest number of writes.
    """

    def __init__(self, out: BinaryIO, *, hash_algorithm: str = DEFAULT_HASH_ALGORITHM, name: object = "<archive>") -> None:
        self._out = out
        self._hash_algorithm = hash_algorithm
        self._name = name
        self._pending: list[str] = []
        self._pending_size = 0
        self._records_written = 0

    def _emit(self, text: str) -> None:
        self._pending.append(text)
        self._pending_size += len(text)
        if self._pending_size >= WRITE_BUFFER_SIZE:
            self.flush()

    def _begin_record(self) -> None:
        if self._records_written:
            self._emit(SEP)
        self._records_written += 1

    def flush(self) -> None:
        """Write buffered text through to the output stream."""
        if not self._pending:
            return
        data = "".join(self._pending).encode("utf-8")
        self._pending.clear()
        self._pending_size = 0
        try:
            self._out.write(data)
        except ArchiveError:
            raise
        except OSError as exc:
            raise ArchiveIOError("writing", self._name, exc) from exc

    def write_directory(self, relative_path: str) -> DirectoryRecord:
        """Emit ``D,<path>``."""
        escaped = _checked_path(relative_path)
        self._begin_record()
        self._emit(f"{DIRECTORY_TAG}{SEP}{escaped}")
        logger.debug("encoded directory %s", relative_path)
        return DirectoryRecord(relative_path)

    def write_file(self, relative_path: str, data: bytes, mtime_ns: int) -> FileRecord:
        """Emit a file record header followed by its encoded body.

        The body is planned (counted) first, then emitted; both passes must
        agree on the number of decode units.
        """
        escaped = _checked_path(relative_path)
        plan = plan_body(data)
        record = FileRecord(
            relative_path=relative_path,
            byte_length=len(data),
            mod_date=format_mod_date(mtime_ns),
            content_hash=content_hash(data, self._hash_algorithm),
            logical_length=plan.logical_length,
            base64_fallback=plan.base64_fallback,
        )
        self._begin_record()
        self._emit(
            SEP.join(
                (
                    FILE_TAG,
                    escaped,
                    str(record.byte_length),
                    record.mod_date,
                    record.content_hash,
                    str(record.logical_length),
                    "",
                )
            )
        )
        emitted_units = 0
        for text, units in iter_body(data, plan):
            self._emit(text)
            emitted_units += units
        if emitted_units != plan.logical_length:
            raise EncodingInvariantError(
                f"{relative_path}: counted {plan.logical_length} units but emitted {emitted_units}"
            )
        logger.debug(
            "encoded file %s (%d bytes, %d units%s)",
            relative_path,
            record.byte_length,
            record.logical_length,
            ", base64" if record.base64_fallback else "",
        )
        return record


__all__ = [
    "DirectoryRecord",
    "FileRecord",
    "Record",
    "RecordWriter",
    "format_mod_date",
]
