"""Public package surface for treetext.

Exports ``main`` for programmatic CLI invocation.
The archive format lives in ``treetext.codec``; path-level operations live
in ``treetext.pipeline``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
