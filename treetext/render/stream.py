"""Incremental text decoding of archive bytes for rendering sinks."""

from __future__ import annotations

import codecs
from collections.abc import Iterator
from typing import BinaryIO

RENDER_CHUNK_SIZE = 2048


def iter_text_chunks(reader: BinaryIO, chunk_size: int = RENDER_CHUNK_SIZE) -> Iterator[str]:
    """Yield decoded text as bytes arrive.

    UTF-8 sequences split across reads are held back until complete.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        data = reader.read(chunk_size)
        if not data:
            break
        text = decoder.decode(data)
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


__all__ = ["RENDER_CHUNK_SIZE", "iter_text_chunks"]
