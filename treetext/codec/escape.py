"""Byte escaping for file bodies and comma escaping for record paths.

A body is split into maximal segments: printable ASCII runs pass through,
newline and tab become single marker glyphs, and every run of other bytes
becomes ``<UNPRINTABLE_MARKER><len>:<base64>`` where ``len`` is the length
of the base64 text. Each segment reports how many decode units it stands for
so the record header can carry the body's logical length.
"""

from __future__ import annotations

import base64
import re
from collections.abc import Iterator
from dataclasses import dataclass

from .markers import (
    BASE64_PREFIX,
    ESCAPE,
    FALLBACK_THRESHOLD,
    NEWLINE_MARKER,
    PRINTABLE_MAX,
    PRINTABLE_MIN,
    RUN_LENGTH_TERMINATOR,
    SEP,
    TAB_MARKER,
    UNPRINTABLE_MARKER,
)

_SEGMENT_RE = re.compile(rb"[\x20-\x7e]+|\n|\t|[^\x20-\x7e\n\t]+")
_PRINTABLE_OR_WHITESPACE = bytes(range(PRINTABLE_MIN, PRINTABLE_MAX + 1)) + b"\n\t"
_BYTE_MARKERS = {0x0A: NEWLINE_MARKER, 0x09: TAB_MARKER}


def is_printable(byte: int) -> bool:
    """Return whether ``byte`` passes through unescaped."""
    return PRINTABLE_MIN <= byte <= PRINTABLE_MAX


def escape_byte(byte: int) -> str | None:
    """Map one byte to its text form, or ``None`` when it joins an unprintable run."""
    marker = _BYTE_MARKERS.get(byte)
    if marker is not None:
        return marker
    if is_printable(byte):
        return chr(byte)
    return None


def encode_unprintable_run(run: bytes) -> str:
    """Render a run of unprintable bytes as a length-prefixed base64 token."""
    encoded = base64.b64encode(run).decode("ascii")
    return f"{UNPRINTABLE_MARKER}{len(encoded)}{RUN_LENGTH_TERMINATOR}{encoded}"


def count_unprintable(data: bytes) -> int:
    """Count bytes that would need unprintable-run escaping.

    Newline and tab have their own markers and are not counted.
    """
    return len(data.translate(None, _PRINTABLE_OR_WHITESPACE))


def exceeds_fallback_threshold(data: bytes) -> bool:
    """Return whether more than 10% of ``data`` is unprintable."""
    if not data:
        return False
    return count_unprintable(data) > len(data) * FALLBACK_THRESHOLD


@dataclass(frozen=True)
class BodyPlan:
    """How one file body is encoded and how many units it decodes to."""

    base64_fallback: bool
    logical_length: int


def plan_body(data: bytes) -> BodyPlan:
    """Decide the body form and compute its logical length (counting pass).

    A body whose escaped form would begin with the whole-file prefix is forced
    into the whole-file form so decoders can rely on the prefix test alone.
    """
    if exceeds_fallback_threshold(data) or data.startswith(BASE64_PREFIX.encode("ascii")):
        return BodyPlan(base64_fallback=True, logical_length=len(data))
    units = sum(units for _text, units in iter_escaped_segments(data))
    return BodyPlan(base64_fallback=False, logical_length=units)


def iter_escaped_segments(data: bytes) -> Iterator[tuple[str, int]]:
    """Yield ``(text, units)`` for each maximal segment of ``data``."""
    for match in _SEGMENT_RE.finditer(data):
        segment = match.group()
        first = segment[0]
        if is_printable(first):
            yield segment.decode("ascii"), len(segment)
            continue
        marker = escape_byte(first)
        if marker is not None:
            yield marker, 1
            continue
        yield encode_unprintable_run(segment), len(segment)


def iter_body(data: bytes, plan: BodyPlan) -> Iterator[tuple[str, int]]:
    """Yield body text pieces for ``data`` according to ``plan`` (emitting pass)."""
    if plan.base64_fallback:
        yield BASE64_PREFIX + base64.b64encode(data).decode("ascii"), len(data)
        return
    yield from iter_escaped_segments(data)


def escape_path(path: str) -> str:
    """Escape separator and escape characters in a record path."""
    return path.replace(ESCAPE, ESCAPE + ESCAPE).replace(SEP, ESCAPE + SEP)


def unescape_path(text: str) -> str:
    """Reverse :func:`escape_path`.

    A backslash makes the following character literal; a trailing lone
    backslash is kept as-is.
    """
    if ESCAPE not in text:
        return text
    out: list[str] = []
    idx = 0
    while idx < len(text):
        char = text[idx]
        if char == ESCAPE and idx + 1 < len(text):
            out.append(text[idx + 1])
            idx += 2
            continue
        out.append(char)
        idx += 1
    return "".join(out)


__all__ = [
    "BodyPlan",
    "count_unprintable",
    "encode_unprintable_run",
    "escape_byte",
    "escape_path",
    "exceeds_fallback_threshold",
    "is_printable",
    "iter_body",
    "iter_escaped_segments",
    "plan_body",
    "unescape_path",
]
