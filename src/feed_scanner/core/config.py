"""
Purpose: Load environment and JSON configuration for the scanner.
Constraints: Pure config I/O only; no browser or model side effects.
"""

# Imports
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from feed_scanner.core.config_models import BrowserSettings, ScannerSettings

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes", "y", "on")

# env var -> (section, field)
_ENV_OVERRIDES = {
    "SCAN_INTERVAL_MS": ("scanner", "scan_interval_ms"),
    "FEMALE_PROB_THRESHOLD": ("scanner", "threshold"),
    "TARGET_CATEGORY": ("scanner", "target_category"),
    "FACE_MODEL_NAME": ("scanner", "model_name"),
    "FACE_MODEL_ROOT": ("scanner", "model_root"),
    "MATCHES_PATH": ("scanner", "store_path"),
    "MATCHES_SLOT": ("scanner", "store_slot"),
    "FEED_URL": ("scanner", "feed_url"),
    "SELENIUM_HEADLESS": ("browser", "headless"),
    "SELENIUM_WAIT_TIME": ("browser", "wait_time"),
    "CHROME_BIN": ("browser", "chrome_binary"),
    "CHROMEDRIVER_PATH": ("browser", "chromedriver_path"),
    "CHROME_PROFILE_DIR": ("browser", "profile_dir"),
}


# Public API
class ConfigManager:
    """Scanner and browser configuration from .env, settings.json and defaults"""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.cwd() / "config"
        self.scanner = ScannerSettings()
        self.browser = BrowserSettings()
        self.log_level = "INFO"
        self.loaded_env_file: Optional[Path] = None

    def load_all(self):
        """Load all configurations"""
        self.load_env()
        self.load_settings()
        self.apply_env_overrides()
        return self

    def load_env(self):
        """Load the first .env file found into the process environment"""
        env_files = [
            self.config_dir / "credentials.env",
            Path.cwd() / ".env",
            Path.home() / ".feed_scanner.env",
        ]
        for env_file in env_files:
            if env_file.exists():
                load_dotenv(env_file)
                self.loaded_env_file = env_file
                logger.info("Loaded environment from: %s", env_file)
                break
        else:
            logger.debug("No .env file found")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        return self

    def load_settings(self):
        """Load scanner/browser sections from settings.json"""
        settings_file = self.config_dir / "settings.json"
        if not settings_file.exists():
            logger.debug("No settings.json found, using defaults")
            return self

        try:
            with open(settings_file, "r", encoding="utf-8") as f:
                settings = json.load(f) or {}
            self.scanner = ScannerSettings(**(settings.get("scanner", {}) or {}))
            self.browser = BrowserSettings(**(settings.get("browser", {}) or {}))
        except (OSError, json.JSONDecodeError, ValidationError, AttributeError) as e:
            logger.warning("Invalid settings.json (%s); using defaults", e)
            self.scanner = ScannerSettings()
            self.browser = BrowserSettings()
        return self

    def apply_env_overrides(self):
        """Environment variables win over settings.json values"""
        updates: Dict[str, Dict[str, Any]] = {"scanner": {}, "browser": {}}
        for env_name, (section, field) in _ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            if field == "headless":
                updates[section][field] = raw.strip().lower() in _TRUTHY
            else:
                updates[section][field] = raw

        try:
            if updates["scanner"]:
                merged = {**self.scanner.model_dump(), **updates["scanner"]}
                self.scanner = ScannerSettings(**merged)
            if updates["browser"]:
                merged = {**self.browser.model_dump(), **updates["browser"]}
                self.browser = BrowserSettings(**merged)
        except ValidationError as exc:
            logger.warning("Ignoring invalid environment overrides: %s", exc)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with dot notation ("scanner.threshold")"""
        if "." not in key:
            return default
        section, field = key.split(".", 1)
        model = {"scanner": self.scanner, "browser": self.browser}.get(section)
        if model is None:
            return default
        return getattr(model, field, default)

    def summary_lines(self) -> list:
        s = self.scanner
        return [
            f"Feed URL: {s.feed_url}",
            f"Scan interval: {s.scan_interval_ms} ms",
            f"Target: {s.target_category} >= {s.threshold}",
            f"Model: {s.model_name} ({s.model_root or 'default location'})",
            f"Store: {s.store_path} [{s.store_slot}]",
            f"Headless: {self.browser.headless}",
        ]
