"""Tests for persisted configuration and validated settings."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from treetext import config


class SettingsTests(unittest.TestCase):
    def test_missing_config_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("treetext.config.CONFIG_PATH", Path(tmp) / "config.json"):
                self.assertEqual(config.load_settings(), config.Settings())

    def test_malformed_config_falls_back_safely(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text("{not json", encoding="utf-8")
            with mock.patch("treetext.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_config(), {})
                self.assertEqual(config.load_settings(), config.Settings())

    def test_invalid_values_are_replaced_by_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text(
                json.dumps({"hash_algorithm": "md5", "pdf_font_size": -3, "skip_gitignored": "yes", "html_style": 4}),
                encoding="utf-8",
            )
            with mock.patch("treetext.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_settings(), config.Settings())

    def test_save_setting_round_trips_typed_values(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "nested" / "config.json"
            with mock.patch("treetext.config.CONFIG_PATH", config_path):
                config.save_setting("hash_algorithm", "djb2")
                config.save_setting("pdf_font_size", "11")
                config.save_setting("skip_gitignored", "true")
                config.save_setting("font_path", "/fonts/Noto.ttf")
                settings = config.load_settings()

        self.assertEqual(settings.hash_algorithm, "djb2")
        self.assertEqual(settings.pdf_font_size, 11.0)
        self.assertTrue(settings.skip_gitignored)
        self.assertEqual(settings.font_path, "/fonts/Noto.ttf")

    def test_parse_setting_rejects_bad_input(self) -> None:
        for key, value in (("hash_algorithm", "crc"), ("pdf_font_size", "big"), ("skip_gitignored", "maybe"), ("color", "red")):
            with self.subTest(key=key):
                with self.assertRaises(ValueError):
                    config.parse_setting(key, value)


if __name__ == "__main__":
    unittest.main()
