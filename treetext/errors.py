"""Exception taxonomy for archive encode/decode failures.

Fatal conditions raise one of these classes. Soft truncation of a single file
body is not an error; it is logged and reported on the decode result.
"""

from __future__ import annotations


class ArchiveError(Exception):
    """Base class for all archive failures surfaced to callers."""


class StructuralError(ArchiveError):
    """Malformed or missing tokens while decoding an archive."""

    def __init__(self, message: str, record_type: str | None = None, path: str | None = None) -> None:
        self.record_type = record_type
        self.path = path
        context = []
        if record_type is not None:
            context.append(f"record {record_type}")
        if path is not None:
            context.append(f"path {path!r}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class ArchiveIOError(ArchiveError, OSError):
    """Read/write/create failure on either side of the codec."""

    def __init__(self, operation: str, path: object, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.path = path
        message = f"{operation} {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class EncodingInvariantError(ArchiveError):
    """Encoder produced text that disagrees with its own unit count."""


class BridgeClosedError(ArchiveError, BrokenPipeError):
    """Write attempted after the reading side of a bridge went away."""


__all__ = [
    "ArchiveError",
    "StructuralError",
    "ArchiveIOError",
    "EncodingInvariantError",
    "BridgeClosedError",
]
