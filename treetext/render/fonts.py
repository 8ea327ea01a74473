"""Font resource handed to document renderers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..errors import ArchiveIOError

logger = logging.getLogger(__name__)

DEFAULT_FONT_FAMILY = "archive"

# Fonts that cover the marker glyphs, in preference order.
SYSTEM_FONT_CANDIDATES: tuple[str, ...] = (
    "/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/Library/Fonts/Arial Unicode.ttf",
    "/System/Library/Fonts/Supplemental/Arial Unicode.ttf",
    "C:/Windows/Fonts/arial.ttf",
)


@dataclass(frozen=True)
class FontResource:
    """A TrueType font loaded once and passed to each renderer."""

    path: Path
    data: bytes
    family: str = DEFAULT_FONT_FAMILY


def load_font(path: Path, family: str = DEFAULT_FONT_FAMILY) -> FontResource:
    """Read a font file into memory."""
    path = Path(path).expanduser()
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ArchiveIOError("reading font", path, exc) from exc
    return FontResource(path=path, data=data, family=family)


def find_system_font(candidates: tuple[str, ...] = SYSTEM_FONT_CANDIDATES) -> Path | None:
    """Return the first installed candidate font, if any."""
    for candidate in candidates:
        path = Path(candidate)
        if path.is_file():
            logger.debug("using system font %s", path)
            return path
    return None


__all__ = ["DEFAULT_FONT_FAMILY", "FontResource", "SYSTEM_FONT_CANDIDATES", "find_system_font", "load_font"]
