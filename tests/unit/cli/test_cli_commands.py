"""CLI subcommand behavior tests.

Runs ``treetext.cli.main`` end to end against temporary trees with the
config path isolated.
"""

from __future__ import annotations

import io
import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from treetext import cli


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        patcher = mock.patch("treetext.config.CONFIG_PATH", self.tmp / "config" / "config.json")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def make_tree(self) -> Path:
        root = self.tmp / "src"
        (root / "sub").mkdir(parents=True)
        (root / "a.txt").write_bytes(b"hi\n\tbye")
        (root / "sub" / "b.bin").write_bytes(bytes([0, 1, 2]))
        return root


class CliEncodeDecodeTests(CliTestCase):
    def test_encode_then_decode_recreates_tree(self) -> None:
        root = self.make_tree()
        archive = self.tmp / "out.txt"
        restored = self.tmp / "restored"

        cli.main(["-q", "encode", str(root), "-o", str(archive)])
        cli.main(["-q", "decode", str(archive), "-d", str(restored)])

        self.assertEqual((restored / "a.txt").read_bytes(), b"hi\n\tbye")
        self.assertEqual((restored / "sub" / "b.bin").read_bytes(), bytes([0, 1, 2]))

    def test_encode_defaults_to_outfile_in_working_directory(self) -> None:
        root = self.make_tree()
        work = self.tmp / "work"
        work.mkdir()
        previous_cwd = Path.cwd()
        try:
            os.chdir(work)
            cli.main(["-q", "encode", str(root)])
        finally:
            os.chdir(previous_cwd)
        self.assertTrue((work / "outfile.txt").read_text(encoding="utf-8").startswith("F,a.txt,7,"))

    def test_encode_uses_configured_hash_unless_overridden(self) -> None:
        root = self.make_tree()
        cli.main(["-q", "config", "hash_algorithm", "djb2"])
        archive = self.tmp / "djb2.txt"
        cli.main(["-q", "encode", str(root), "-o", str(archive)])
        self.assertIn("F,a.txt,7,", archive.read_text(encoding="utf-8"))
        from treetext.codec.hashing import djb2

        self.assertIn(djb2(b"hi\n\tbye"), archive.read_text(encoding="utf-8"))

    def test_encode_html_writes_document(self) -> None:
        root = self.make_tree()
        out = self.tmp / "tree.html"
        with mock.patch("treetext.cli.find_system_font", return_value=None):
            cli.main(["-q", "encode", str(root), "--html", "-o", str(out)])
        page = out.read_text(encoding="utf-8")
        self.assertIn("<pre class=\"archive\">F,a.txt,7,", page)

    def test_pdf_without_any_font_exits_with_message(self) -> None:
        root = self.make_tree()
        with mock.patch("treetext.cli.find_system_font", return_value=None):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["-q", "encode", str(root), "--pdf", "-o", str(self.tmp / "x.pdf")])
        self.assertIn("font", str(ctx.exception.code))

    def test_decode_reports_structural_errors(self) -> None:
        archive = self.tmp / "bad.txt"
        archive.write_text("X,foo", encoding="utf-8")
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["-q", "decode", str(archive), "-d", str(self.tmp / "out")])
        self.assertIn("unexpected token", str(ctx.exception.code))

    def test_decode_exits_non_zero_when_a_file_was_truncated(self) -> None:
        archive = self.tmp / "trunc.txt"
        archive.write_text("F,a.bin,3,2024-01-01,h,3,⌘9:AAEC", encoding="utf-8")
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["-q", "decode", str(archive), "-d", str(self.tmp / "out")])
        self.assertEqual(ctx.exception.code, 1)

    def test_encode_rejects_missing_directory(self) -> None:
        with mock.patch("sys.stderr", io.StringIO()):
            with self.assertRaises(SystemExit):
                cli.main(["encode", str(self.tmp / "missing")])


class CliListAndConfigTests(CliTestCase):
    def test_list_prints_one_line_per_record(self) -> None:
        archive = self.tmp / "a.txt"
        archive.write_text("D,sub,F,sub/x\\,y.txt,2,2024-01-01,abcd1234,2,ok", encoding="utf-8")
        stdout = io.StringIO()
        with mock.patch("sys.stdout", stdout):
            cli.main(["-q", "list", str(archive)])
        self.assertEqual(
            stdout.getvalue(),
            "D  sub/\nF  sub/x,y.txt  2  2024-01-01  abcd1234\n",
        )

    def test_config_shows_effective_settings(self) -> None:
        stdout = io.StringIO()
        with mock.patch("sys.stdout", stdout):
            cli.main(["-q", "config"])
        shown = json.loads(stdout.getvalue())
        self.assertEqual(shown["hash_algorithm"], "sha256")
        self.assertFalse(shown["skip_gitignored"])

    def test_config_rejects_invalid_value(self) -> None:
        with self.assertRaises(SystemExit):
            cli.main(["-q", "config", "pdf_font_size", "-2"])

    def test_module_main_reads_sys_argv(self) -> None:
        stdout = io.StringIO()
        with mock.patch.object(sys, "argv", ["treetext", "-q", "config"]), mock.patch("sys.stdout", stdout):
            cli.main()
        self.assertIn("hash_algorithm", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
