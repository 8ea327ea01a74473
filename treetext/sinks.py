"""Destinations for decoded archive records."""

from __future__ import annotations

import calendar
import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from .codec.decoder import BodyOutcome
from .codec.markers import DATE_FORMAT
from .codec.records import DirectoryRecord, FileRecord, Record
from .errors import ArchiveIOError

logger = logging.getLogger(__name__)


def parse_mod_date(text: str) -> int | None:
    """Return the epoch seconds of midnight UTC for ``YYYY-MM-DD``, or ``None``."""
    try:
        parsed = time.strptime(text, DATE_FORMAT)
    except ValueError:
        return None
    return calendar.timegm(parsed)


class FilesystemSink:
    """Recreate directories and files under ``base_dir``.

    Missing ancestors are created for both directories and files. Existing
    files are truncated. Nothing is removed when decoding fails part way.
    """

    def __init__(self, base_dir: Path, *, restore_mtime: bool = False) -> None:
        self.base_dir = Path(base_dir)
        self.restore_mtime = restore_mtime

    def target_path(self, relative_path: str) -> Path:
        return self.base_dir.joinpath(*relative_path.split("/"))

    def create_directory(self, record: DirectoryRecord) -> None:
        target = self.target_path(record.relative_path)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ArchiveIOError("creating directory", target, exc) from exc

    @contextmanager
    def open_file(self, record: FileRecord) -> Iterator[BinaryIO]:
        target = self.target_path(record.relative_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            handle = target.open("wb")
        except OSError as exc:
            raise ArchiveIOError("creating file", target, exc) from exc
        with handle:
            yield handle

    def finish_file(self, record: FileRecord, outcome: BodyOutcome) -> None:
        if not self.restore_mtime:
            return
        target = self.target_path(record.relative_path)
        timestamp = parse_mod_date(record.mod_date)
        if timestamp is None:
            logger.warning("%s: cannot restore modification date %r", record.relative_path, record.mod_date)
            return
        try:
            os.utime(target, (timestamp, timestamp))
        except OSError as exc:
            raise ArchiveIOError("setting modification time", target, exc) from exc


class _NullWriter:
    """Accept and drop decoded bytes."""

    def write(self, data: bytes) -> int:
        return len(data)


class ListingSink:
    """Collect records without touching the filesystem."""

    def __init__(self) -> None:
        self.records: list[Record] = []

    def create_directory(self, record: DirectoryRecord) -> None:
        self.records.append(record)

    @contextmanager
    def open_file(self, record: FileRecord) -> Iterator[BinaryIO]:
        self.records.append(record)
        yield _NullWriter()  # type: ignore[misc]

    def finish_file(self, record: FileRecord, outcome: BodyOutcome) -> None:
        pass


__all__ = ["FilesystemSink", "ListingSink", "parse_mod_date"]
