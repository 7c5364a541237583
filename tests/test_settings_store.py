from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory
import json
import unittest

from bm_calendar.services.settings_store import Settings, load_settings, save_settings


class TestSettingsStore(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = Settings()
        self.assertEqual("Logs/BM", settings.logs_folder)
        self.assertFalse(settings.debug_mode)

    def test_missing_file_gives_defaults(self) -> None:
        with TemporaryDirectory() as tmp:
            self.assertEqual(Settings(), load_settings(Path(tmp) / "data.json"))

    def test_stored_values_merge_over_defaults(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "data.json"
            path.write_text(json.dumps({"debugMode": True}), encoding="utf-8")
            settings = load_settings(path)
            self.assertEqual("Logs/BM", settings.logs_folder)
            self.assertTrue(settings.debug_mode)

    def test_corrupt_file_falls_back_to_defaults(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "data.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertLogs("bm_calendar.services.settings_store", level="ERROR"):
                self.assertEqual(Settings(), load_settings(path))

    def test_save_uses_plugin_keys(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "data.json"
            save_settings(Settings(logs_folder="Health/Logs", debug_mode=True), path)
            self.assertEqual(
                {"logsFolder": "Health/Logs", "debugMode": True},
                json.loads(path.read_text(encoding="utf-8")),
            )
            self.assertEqual("Health/Logs", load_settings(path).logs_folder)


if __name__ == "__main__":
    unittest.main()
