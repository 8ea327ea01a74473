"""Short identity hashes stored in file records.

The hash is advisory metadata. Decoding never checks it.
"""

from __future__ import annotations

import hashlib

HASH_ALGORITHMS = ("sha256", "djb2")
DEFAULT_HASH_ALGORITHM = "sha256"

_DJB2_SEED = 5381
_DJB2_MASK = 0xFFFFFFFF


def sha256_short(data: bytes) -> str:
    """First eight hex digits of the SHA-256 digest."""
    return hashlib.sha256(data).hexdigest()[:8]


def djb2(data: bytes) -> str:
    """Eight hex digits of the 32-bit ``h = h*33 + byte`` rolling hash."""
    h = _DJB2_SEED
    for byte in data:
        h = (h * 33 + byte) & _DJB2_MASK
    return f"{h:08x}"


def content_hash(data: bytes, algorithm: str = DEFAULT_HASH_ALGORITHM) -> str:
    """Return the record hash of ``data`` using ``algorithm``."""
    if algorithm == "sha256":
        return sha256_short(data)
    if algorithm == "djb2":
        return djb2(data)
    raise ValueError(f"unknown hash algorithm: {algorithm!r} (expected one of {', '.join(HASH_ALGORITHMS)})")


__all__ = [
    "DEFAULT_HASH_ALGORITHM",
    "HASH_ALGORITHMS",
    "content_hash",
    "djb2",
    "sha256_short",
]
