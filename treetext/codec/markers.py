"""Reserved glyphs and constants of the archive text format."""

from __future__ import annotations

NEWLINE_MARKER = "¶"  # pilcrow
TAB_MARKER = "→"  # rightwards arrow
UNPRINTABLE_MARKER = "⌘"  # place-of-interest sign
MARKERS = frozenset({NEWLINE_MARKER, TAB_MARKER, UNPRINTABLE_MARKER})

SEP = ","
ESCAPE = "\\"
RUN_LENGTH_TERMINATOR = ":"
BASE64_PREFIX = "base64:"

DIRECTORY_TAG = "D"
FILE_TAG = "F"

PRINTABLE_MIN = 32
PRINTABLE_MAX = 126

# Whole-file base64 when more than this share of bytes is non-printable.
FALLBACK_THRESHOLD = 0.10

DATE_FORMAT = "%Y-%m-%d"
