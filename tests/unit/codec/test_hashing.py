"""Tests for record identity hashes."""

from __future__ import annotations

import hashlib
import unittest

from treetext.codec.hashing import content_hash, djb2, sha256_short


class ContentHashTests(unittest.TestCase):
    def test_sha256_is_first_eight_hex_digits(self) -> None:
        self.assertEqual(sha256_short(b""), "e3b0c442")
        self.assertEqual(content_hash(b"abc"), hashlib.sha256(b"abc").hexdigest()[:8])

    def test_djb2_rolling_hash(self) -> None:
        self.assertEqual(djb2(b""), "00001505")
        self.assertEqual(djb2(b"a"), "0002b606")
        self.assertEqual(content_hash(b"a", "djb2"), "0002b606")

    def test_djb2_stays_eight_digits_for_long_input(self) -> None:
        self.assertEqual(len(djb2(b"x" * 10_000)), 8)

    def test_unknown_algorithm_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            content_hash(b"", "md5")


if __name__ == "__main__":
    unittest.main()
