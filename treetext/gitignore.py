"""Gitignore-aware path filtering for tree traversal.

Builds a matcher by querying git for ignored files and directories.
The traversal uses it to optionally leave ignored content out of archives.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GitIgnoreMatcher:
    """Ignored paths under a walk root, stored as ``/``-separated relative paths.

    ``ignored_dirs`` lets ancestor checks reject whole subtrees.
    """

    root: Path
    ignored_files: frozenset[str]
    ignored_dirs: frozenset[str]

    def is_ignored(self, relative_path: str) -> bool:
        """Return whether ``relative_path`` (relative to ``root``) is ignored."""
        if relative_path in self.ignored_files or relative_path in self.ignored_dirs:
            return True
        for parent in PurePosixPath(relative_path).parents:
            if parent.as_posix() in self.ignored_dirs:
                return True
        return False


def _ls_ignored(root: Path) -> bytes | None:
    """Return NUL-separated ignored paths below ``root``, relative to it."""
    try:
        proc = subprocess.run(
            ["git", "ls-files", "-z", "--others", "--ignored", "--exclude-standard", "--directory"],
            cwd=root,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return proc.stdout


def load_gitignore_matcher(root: Path) -> GitIgnoreMatcher | None:
    """Ask git which paths below ``root`` are ignored.

    ``None`` means git is missing or ``root`` is outside a work tree, in which
    case nothing is filtered.
    """
    if shutil.which("git") is None:
        logger.debug("git not found; gitignore filtering disabled")
        return None
    root = root.resolve()
    listing = _ls_ignored(root)
    if listing is None:
        logger.debug("%s is not inside a git work tree", root)
        return None

    ignored_files: set[str] = set()
    ignored_dirs: set[str] = set()
    for entry in filter(None, listing.split(b"\0")):
        relative_path = entry.decode("utf-8", errors="surrogateescape")
        # --directory reports a wholly ignored directory once, with a slash.
        if relative_path.endswith("/"):
            ignored_dirs.add(relative_path.rstrip("/"))
        else:
            ignored_files.add(relative_path)
    logger.debug("%d ignored files, %d ignored directories under %s", len(ignored_files), len(ignored_dirs), root)
    return GitIgnoreMatcher(
        root=root,
        ignored_files=frozenset(ignored_files),
        ignored_dirs=frozenset(ignored_dirs),
    )


__all__ = ["GitIgnoreMatcher", "load_gitignore_matcher"]
