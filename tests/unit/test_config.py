import json
import unittest
from pathlib import Path
import tempfile
from unittest import mock

from feed_scanner.core.config import ConfigManager
from feed_scanner.core.config_models import ScannerSettings

_CLEAN_ENV = {
    key: ""
    for key in (
        "SCAN_INTERVAL_MS", "FEMALE_PROB_THRESHOLD", "TARGET_CATEGORY", "FACE_MODEL_NAME",
        "FACE_MODEL_ROOT", "MATCHES_PATH", "MATCHES_SLOT", "FEED_URL", "SELENIUM_HEADLESS",
        "SELENIUM_WAIT_TIME", "CHROME_BIN", "CHROMEDRIVER_PATH", "CHROME_PROFILE_DIR",
    )
}


class ConfigManagerTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config_dir = Path(self.tmp.name)
        patcher = mock.patch.dict("os.environ", _CLEAN_ENV)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self.tmp.cleanup)

    def test_defaults_when_files_missing(self):
        cfg = ConfigManager(self.config_dir).load_settings().apply_env_overrides()
        self.assertEqual(cfg.scanner.scan_interval_ms, 3500)
        self.assertEqual(cfg.scanner.threshold, 0.7)
        self.assertEqual(cfg.scanner.target_category, "female")
        self.assertEqual(cfg.scanner.store_slot, "tt_matches")
        self.assertEqual(len(cfg.scanner.script_ranges), 3)
        self.assertFalse(cfg.browser.headless)

    def test_settings_json_sections(self):
        (self.config_dir / "settings.json").write_text(json.dumps({
            "scanner": {"scan_interval_ms": 5000, "threshold": 0.8},
            "browser": {"headless": True},
        }))
        cfg = ConfigManager(self.config_dir).load_settings()
        self.assertEqual(cfg.scanner.scan_interval_ms, 5000)
        self.assertEqual(cfg.get("scanner.threshold"), 0.8)
        self.assertIn("Scan interval: 5000 ms", cfg.summary_lines())
        self.assertIn("Headless: True", cfg.summary_lines())
        self.assertTrue(cfg.get("browser.headless"))
        self.assertIsNone(cfg.get("nope.value"))

    def test_invalid_settings_fall_back_to_defaults(self):
        (self.config_dir / "settings.json").write_text(json.dumps({"scanner": {"threshold": 3}}))
        cfg = ConfigManager(self.config_dir).load_settings()
        self.assertEqual(cfg.scanner.threshold, 0.7)

    def test_env_overrides_win(self):
        with mock.patch.dict("os.environ", {
            "SCAN_INTERVAL_MS": "1200",
            "FEMALE_PROB_THRESHOLD": "0.65",
            "SELENIUM_HEADLESS": "yes",
            "MATCHES_PATH": "/tmp/m.json",
        }):
            cfg = ConfigManager(self.config_dir).load_settings().apply_env_overrides()
        self.assertEqual(cfg.scanner.scan_interval_ms, 1200)
        self.assertEqual(cfg.scanner.threshold, 0.65)
        self.assertEqual(cfg.scanner.store_path, "/tmp/m.json")
        self.assertTrue(cfg.browser.headless)

    def test_invalid_env_override_is_ignored(self):
        with mock.patch.dict("os.environ", {"SCAN_INTERVAL_MS": "soon"}):
            cfg = ConfigManager(self.config_dir).load_settings().apply_env_overrides()
        self.assertEqual(cfg.scanner.scan_interval_ms, 3500)

    def test_script_range_validation(self):
        with self.assertRaises(ValueError):
            ScannerSettings(script_ranges=[[1, 2, 3]])


if __name__ == "__main__":
    unittest.main()
