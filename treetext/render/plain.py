"""Plain-text sink: archive bytes pass through unchanged."""

from __future__ import annotations

import shutil
from typing import BinaryIO

COPY_BUFFER_SIZE = 64 * 1024


def copy_sink(reader: BinaryIO, out: BinaryIO) -> None:
    """Copy ``reader`` to ``out`` until end of stream."""
    shutil.copyfileobj(reader, out, COPY_BUFFER_SIZE)


__all__ = ["copy_sink"]
