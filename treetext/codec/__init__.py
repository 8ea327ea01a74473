"""Archive text codec: escaping, record framing, encoding and decoding.

This package contains the format itself and nothing that touches the
filesystem directly:
- marker glyphs and byte/path escaping
- record datatypes and the record writer
- the archive encoder over any traversal
- the comma tokenizer and the decode state machine
"""

from __future__ import annotations

from .decoder import ArchiveDecoder, ArchiveSink, BodyDecoder, BodyOutcome, DecodeResult, decode_stream, validate_relative_path
from .encoder import EncodableEntry, EncodeStats, encode_entries
from .escape import (
    BodyPlan,
    escape_byte,
    escape_path,
    exceeds_fallback_threshold,
    iter_body,
    plan_body,
    unescape_path,
)
from .hashing import DEFAULT_HASH_ALGORITHM, HASH_ALGORITHMS, content_hash
from .markers import BASE64_PREFIX, NEWLINE_MARKER, SEP, TAB_MARKER, UNPRINTABLE_MARKER
from .records import DirectoryRecord, FileRecord, Record, RecordWriter, format_mod_date
from .tokenizer import CommaTokenizer, Token

__all__ = [
    "ArchiveDecoder",
    "ArchiveSink",
    "BASE64_PREFIX",
    "BodyDecoder",
    "BodyOutcome",
    "BodyPlan",
    "CommaTokenizer",
    "DEFAULT_HASH_ALGORITHM",
    "DecodeResult",
    "DirectoryRecord",
    "EncodableEntry",
    "EncodeStats",
    "FileRecord",
    "HASH_ALGORITHMS",
    "NEWLINE_MARKER",
    "Record",
    "RecordWriter",
    "SEP",
    "TAB_MARKER",
    "Token",
    "UNPRINTABLE_MARKER",
    "content_hash",
    "decode_stream",
    "encode_entries",
    "escape_byte",
    "escape_path",
    "exceeds_fallback_threshold",
    "format_mod_date",
    "iter_body",
    "plan_body",
    "unescape_path",
    "validate_relative_path",
]
