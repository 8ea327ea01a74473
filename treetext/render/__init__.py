"""Rendering sinks that consume archive bytes from the streaming bridge.

Every sink is a callable ``sink(reader, out)`` that reads until end of
stream and writes the finished document to ``out``.
"""

from __future__ import annotations

from .fonts import FontResource, find_system_font, load_font
from .plain import copy_sink
from .stream import iter_text_chunks

__all__ = [
    "FontResource",
    "copy_sink",
    "find_system_font",
    "iter_text_chunks",
    "load_font",
]
