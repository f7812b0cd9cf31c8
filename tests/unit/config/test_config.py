"""Tests for config persistence and value sanitization.

Malformed or out-of-range config values fall back to built-in defaults.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from cacheview import config


class ConfigBehaviorTests(unittest.TestCase):
    def test_missing_config_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("cacheview.config.CONFIG_PATH", Path(tmp) / "missing" / "config.json"):
                self.assertEqual(config.load_config(), {})
                self.assertEqual(config.load_cache_dir(), config.DEFAULT_CACHE_DIR)
                self.assertEqual(config.load_default_limit(), config.DEFAULT_LIMIT)
                self.assertIsNone(config.load_style())

    def test_malformed_config_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("cacheview.config.CONFIG_PATH", config_path):
                for text in ["{not json", "[1, 2]", '"text"']:
                    with self.subTest(text=text):
                        config_path.write_text(text, encoding="utf-8")
                        self.assertEqual(config.load_config(), {})

    def test_cache_dir_round_trip_keeps_other_keys(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "nested" / "config.json"
            with mock.patch("cacheview.config.CONFIG_PATH", config_path):
                config.save_config({"style": "native"})
                config.save_cache_dir(Path(tmp) / "cas-root")

                self.assertEqual(config.load_cache_dir(), Path(tmp) / "cas-root")
                self.assertEqual(config.load_style(), "native")

    def test_default_limit_rejects_invalid_values(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("cacheview.config.CONFIG_PATH", Path(tmp) / "config.json"):
                for value in [0, -3, True, 2.5, "7"]:
                    with self.subTest(value=value):
                        config.save_config({"limit": value})
                        self.assertEqual(config.load_default_limit(), config.DEFAULT_LIMIT)
                config.save_config({"limit": 25})
                self.assertEqual(config.load_default_limit(), 25)

    def test_blank_values_are_treated_as_unset(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("cacheview.config.CONFIG_PATH", Path(tmp) / "config.json"):
                config.save_config({"cache_dir": "   ", "style": " "})
                self.assertEqual(config.load_cache_dir(), config.DEFAULT_CACHE_DIR)
                self.assertIsNone(config.load_style())


if __name__ == "__main__":
    unittest.main()
