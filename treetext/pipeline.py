"""High-level encode, decode and list operations over paths.

Encoding either writes archive text straight to a file or, when a rendering
sink is given, streams it through the bridge so walking, encoding and
rendering overlap.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

from .bridge import BridgeWriter, run_bridged
from .codec.decoder import DecodeResult, decode_stream
from .codec.encoder import EncodeStats, encode_entries
from .codec.hashing import DEFAULT_HASH_ALGORITHM
from .codec.records import Record
from .errors import ArchiveIOError
from .sinks import FilesystemSink, ListingSink
from .traversal import walk_tree

logger = logging.getLogger(__name__)

Sink = Callable[[BinaryIO, BinaryIO], None]


def encode_directory(
    root: Path,
    out: BinaryIO,
    *,
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
    skip_gitignored: bool = False,
    exclude: tuple[Path, ...] = (),
    name: object = "<archive>",
) -> EncodeStats:
    """Walk ``root`` and write its archive text to ``out``."""
    entries = walk_tree(Path(root), skip_gitignored=skip_gitignored, exclude=exclude)
    return encode_entries(entries, out, hash_algorithm=hash_algorithm, name=name)


def encode_directory_to_file(
    root: Path,
    out_path: Path,
    *,
    sink: Sink | None = None,
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
    skip_gitignored: bool = False,
) -> EncodeStats:
    """Encode ``root`` into ``out_path``, optionally rendering through ``sink``.

    The output file is excluded from the walk when it lies inside ``root``.
    A failed encode leaves whatever was written in place.
    """
    out_path = Path(out_path)
    try:
        handle = out_path.open("wb")
    except OSError as exc:
        raise ArchiveIOError("creating", out_path, exc) from exc

    exclude = (out_path,)
    with handle:
        if sink is None:
            stats = encode_directory(
                root,
                handle,
                hash_algorithm=hash_algorithm,
                skip_gitignored=skip_gitignored,
                exclude=exclude,
                name=out_path,
            )
        else:

            def produce(writer: BridgeWriter) -> EncodeStats:
                return encode_directory(
                    root,
                    writer,  # type: ignore[arg-type]
                    hash_algorithm=hash_algorithm,
                    skip_gitignored=skip_gitignored,
                    exclude=exclude,
                    name=out_path,
                )

            def consume(reader: BinaryIO) -> None:
                sink(reader, handle)

            stats = run_bridged(produce, consume)  # type: ignore[arg-type]
    logger.info(
        "encoded %d directories, %d files (%d bytes, %d as base64) into %s",
        stats.directories,
        stats.files,
        stats.bytes_in,
        stats.fallback_files,
        out_path,
    )
    return stats


def _open_archive_text(archive_path: Path) -> io.TextIOWrapper:
    try:
        raw = Path(archive_path).open("rb")
    except OSError as exc:
        raise ArchiveIOError("opening", archive_path, exc) from exc
    # newline="" keeps any carriage returns or newlines exactly as stored.
    return io.TextIOWrapper(raw, encoding="utf-8", errors="strict", newline="")


def decode_archive_file(archive_path: Path, base_dir: Path, *, restore_mtime: bool = False) -> DecodeResult:
    """Recreate the tree stored in ``archive_path`` under ``base_dir``."""
    sink = FilesystemSink(Path(base_dir), restore_mtime=restore_mtime)
    with _open_archive_text(archive_path) as stream:
        result = decode_stream(stream, sink, name=archive_path)
    logger.info(
        "decoded %d directories, %d files (%d bytes) into %s",
        result.directories,
        result.files,
        result.bytes_out,
        base_dir,
    )
    if result.truncated:
        logger.warning("%d file(s) truncated: %s", len(result.truncated), ", ".join(result.truncated))
    return result


def list_archive(archive_path: Path) -> list[Record]:
    """Return the records stored in ``archive_path`` without writing files."""
    sink = ListingSink()
    with _open_archive_text(archive_path) as stream:
        decode_stream(stream, sink, name=archive_path)
    return sink.records


__all__ = [
    "Sink",
    "decode_archive_file",
    "encode_directory",
    "encode_directory_to_file",
    "list_archive",
]
