"""Archive encoder: drive the record writer over a tree traversal."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import BinaryIO, Protocol

from .hashing import DEFAULT_HASH_ALGORITHM
from .records import RecordWriter

logger = logging.getLogger(__name__)


class EncodableEntry(Protocol):
    """What the encoder needs from one traversal entry."""

    relative_path: str
    is_directory: bool
    mtime_ns: int

    def read_bytes(self) -> bytes: ...


@dataclass
class EncodeStats:
    """Counters collected while encoding one archive."""

    directories: int = 0
    files: int = 0
    bytes_in: int = 0
    fallback_files: int = 0


def encode_entries(
    entries: Iterable[EncodableEntry],
    out: BinaryIO,
    *,
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
    name: object = "<archive>",
) -> EncodeStats:
    """Write one record per entry to ``out`` and return encode counters.

    Any read or write failure aborts the whole encode; whatever was already
    written stays in ``out``.
    """
    writer = RecordWriter(out, hash_algorithm=hash_algorithm, name=name)
    stats = EncodeStats()
    for entry in entries:
        if entry.is_directory:
            writer.write_directory(entry.relative_path)
            stats.directories += 1
            continue
        data = entry.read_bytes()
        record = writer.write_file(entry.relative_path, data, entry.mtime_ns)
        stats.files += 1
        stats.bytes_in += len(data)
        if record.base64_fallback:
            stats.fallback_files += 1
    writer.flush()
    logger.debug("encoded %d directories and %d files", stats.directories, stats.files)
    return stats


__all__ = ["EncodableEntry", "EncodeStats", "encode_entries"]
