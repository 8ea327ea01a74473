"""Pre-order directory walk producing entries for the archive encoder."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from .errors import ArchiveIOError
from .gitignore import GitIgnoreMatcher, load_gitignore_matcher

logger = logging.getLogger(__name__)

GIT_DIR_NAME = ".git"


@dataclass(frozen=True)
class TraversalEntry:
    """One file or directory below the walk root.

    ``relative_path`` is ``/``-separated. File content is read on demand, or
    taken from ``content`` when the entry was built in memory.
    """

    relative_path: str
    is_directory: bool
    path: Path | None = None
    mtime_ns: int = 0
    size: int | None = None
    content: bytes | None = None

    def read_bytes(self) -> bytes:
        """Return file content, raising ``ArchiveIOError`` when unreadable."""
        if self.content is not None:
            return self.content
        if self.path is None:
            return b""
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise ArchiveIOError("reading", self.path, exc) from exc


def _scan_sorted(directory: Path) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory) as entries:
            return sorted(entries, key=lambda entry: entry.name)
    except OSError as exc:
        raise ArchiveIOError("listing", directory, exc) from exc


def walk_tree(
    root: Path,
    *,
    skip_gitignored: bool = False,
    exclude: tuple[Path, ...] = (),
) -> Iterator[TraversalEntry]:
    """Yield entries under ``root`` in pre-order with children sorted by name.

    The root itself is not yielded. Directory symlinks are not descended
    into; file symlinks are read through. Paths listed in ``exclude`` (for
    example the output archive) are skipped.
    """
    root = Path(root)
    if not root.is_dir():
        raise ArchiveIOError("walking", root, NotADirectoryError("not a directory"))
    matcher: GitIgnoreMatcher | None = load_gitignore_matcher(root) if skip_gitignored else None
    excluded = {path.resolve() for path in exclude}
    yield from _walk(root, "", matcher, skip_gitignored, excluded)


def _walk(
    directory: Path,
    prefix: str,
    matcher: GitIgnoreMatcher | None,
    skip_git_dir: bool,
    excluded: set[Path],
) -> Iterator[TraversalEntry]:
    for child in _scan_sorted(directory):
        relative_path = f"{prefix}{child.name}"
        child_path = Path(child.path)
        if skip_git_dir and child.name == GIT_DIR_NAME:
            continue
        if matcher is not None and matcher.is_ignored(relative_path):
            logger.debug("skipping gitignored %s", relative_path)
            continue
        if excluded and child_path.resolve() in excluded:
            logger.debug("skipping excluded %s", relative_path)
            continue
        try:
            is_dir = child.is_dir(follow_symlinks=False)
            if not is_dir and not child.is_file():
                # Directory symlinks, dangling links, sockets and fifos.
                logger.debug("skipping non-regular %s", relative_path)
                continue
            stat = child.stat()
        except OSError as exc:
            raise ArchiveIOError("stat", child_path, exc) from exc
        if is_dir:
            yield TraversalEntry(
                relative_path=relative_path,
                is_directory=True,
                path=child_path,
                mtime_ns=int(stat.st_mtime_ns),
            )
            yield from _walk(child_path, f"{relative_path}/", matcher, skip_git_dir, excluded)
            continue
        yield TraversalEntry(
            relative_path=relative_path,
            is_directory=False,
            path=child_path,
            mtime_ns=int(stat.st_mtime_ns),
            size=int(stat.st_size),
        )


__all__ = ["TraversalEntry", "walk_tree"]
