"""
Purpose: Centralized logging configuration with structured output support.
Constraints: Logging only; no business logic.
"""

# Imports
import json
import logging
import os
import re
import sys
import threading
import time
import traceback
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from feed_scanner.core.metrics import get_metrics

_REDACTED = "[redacted]"
_URL_PATTERN = re.compile(r"https?://[^\s\"']+", re.IGNORECASE)
_STRUCTURED_FIELDS = ("action", "details", "metric_snapshot")


def _env_enabled(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).lower() not in ("0", "false", "no")


def _redact_text(text: str) -> str:
    if not text or not _env_enabled("REDACT_URLS", "0"):
        return text
    return _URL_PATTERN.sub(_REDACTED, text)


def _redact_obj(value):
    if isinstance(value, str):
        return _redact_text(value)
    if isinstance(value, dict):
        return {k: _redact_obj(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact_obj(v) for v in value]
    return value


# Public API
class UnifiedLogger:
    """Scanner logger with rotating file, console and JSON handlers on the root"""

    _lock = threading.Lock()
    _sentry_initialized = False
    _metrics_thread_started = False
    _global_initialized = False

    def __init__(self, name: str = "feed_scanner", log_level: Optional[str] = None):
        self.name = name

        if log_level is None:
            log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        level = getattr(logging, log_level, logging.INFO)

        with self._lock:
            self.logger = logging.getLogger(name)
            self.logger.setLevel(level)
            if not UnifiedLogger._global_initialized and _env_enabled("ENABLE_ROOT_LOGGER"):
                logs_dir = Path(os.getenv("LOG_DIR", "logs"))
                logs_dir.mkdir(parents=True, exist_ok=True)
                timestamp = datetime.now().strftime("%Y%m%d")

                self._ensure_root_logger(logs_dir, timestamp, level)
                if _env_enabled("METRICS_ENABLED", "0"):
                    self._start_metrics_thread(logs_dir)
                self._maybe_init_sentry()

                UnifiedLogger._global_initialized = True
                self.logger.info(f"Logger initialized. Log file: {logs_dir / f'scanner_{timestamp}.log'}")
            self.logger.propagate = True

    def get_logger(self) -> logging.Logger:
        """Get the underlying logger instance"""
        return self.logger

    def log_activity(self, action: str, details: Dict[str, Any], level: str = "INFO"):
        """Log scanner activities with structured data"""
        log_level = getattr(logging, level.upper(), logging.INFO)
        self.logger.log(log_level, f"ACTIVITY: {action}", extra={"action": action, "details": details})
        get_metrics().record(f"activity.{action}", success=log_level < logging.ERROR)

    def log_error_with_context(self, error: Exception, context: Dict[str, Any], level: str = "ERROR"):
        """Log errors with additional context"""
        error_details = {
            "timestamp": datetime.now().isoformat(),
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
            "traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }
        self.logger.log(
            getattr(logging, level.upper(), logging.ERROR),
            f"ERROR: {type(error).__name__}: {error}",
            extra={"details": error_details},
        )
        get_metrics().record_error("exception")

    def log_metrics_snapshot(self):
        """Emit a metrics snapshot into the JSON log."""
        self.logger.info(
            "METRICS_SNAPSHOT",
            extra={"metric_snapshot": get_metrics().snapshot(), "_metrics_internal": True},
        )

    def _start_metrics_thread(self, logs_dir: Path) -> None:
        if UnifiedLogger._metrics_thread_started:
            return
        interval = int(os.getenv("METRICS_SNAPSHOT_INTERVAL_SEC", "60"))
        if interval <= 0:
            return
        metrics_path = logs_dir / "metrics.jsonl"

        def _loop():
            while True:
                time.sleep(interval)
                try:
                    get_metrics().write_snapshot(metrics_path)
                except OSError as exc:
                    logging.getLogger(__name__).debug("Metrics snapshot failed: %s", exc)

        t = threading.Thread(target=_loop, daemon=True, name="metrics-snapshotter")
        t.start()
        UnifiedLogger._metrics_thread_started = True

    def _maybe_init_sentry(self) -> None:
        if UnifiedLogger._sentry_initialized:
            return
        dsn = os.getenv("SENTRY_DSN", "").strip()
        if not dsn:
            return
        try:
            import sentry_sdk
            from sentry_sdk.integrations.logging import LoggingIntegration
        except ImportError:
            self.logger.warning("SENTRY_DSN is set but sentry-sdk is not installed")
            return

        sentry_sdk.init(
            dsn=dsn,
            environment=os.getenv("SENTRY_ENVIRONMENT", "production"),
            release=os.getenv("SENTRY_RELEASE"),
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
            integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
        )
        UnifiedLogger._sentry_initialized = True

    def _ensure_root_logger(self, logs_dir: Path, timestamp: str, level: int) -> None:
        root_logger = logging.getLogger()
        if root_logger.handlers:
            return

        file_handler = RotatingFileHandler(
            logs_dir / f"scanner_{timestamp}.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
        ))

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(
            getattr(logging, os.getenv("CONSOLE_LOG_LEVEL", "INFO").upper(), logging.INFO)
        )
        console_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))

        root_logger.setLevel(level)
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

        if _env_enabled("ENABLE_JSON_LOGGING"):
            json_handler = RotatingFileHandler(
                logs_dir / f"scanner_json_{timestamp}.log",
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
            json_handler.setLevel(level)
            json_handler.setFormatter(JsonFormatter())
            root_logger.addHandler(json_handler)
        if _env_enabled("METRICS_ENABLED", "0"):
            root_logger.addHandler(_MetricsHandler())


def setup_logger(name: str = "feed_scanner", log_level: Optional[str] = None) -> logging.Logger:
    """Shortcut returning a configured logger instance"""
    return UnifiedLogger(name=name, log_level=log_level).get_logger()


class JsonFormatter(logging.Formatter):
    """One JSON object per record, structured extras included and redacted."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": _redact_text(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for field in _STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_obj[field] = _redact_obj(getattr(record, field))
        return json.dumps(log_obj, ensure_ascii=False)


class _MetricsHandler(logging.Handler):
    """Count every log record by level."""

    def emit(self, record: logging.LogRecord) -> None:
        if getattr(record, "_metrics_internal", False):
            return
        metrics = get_metrics()
        metrics.record(f"log.{record.levelname.lower()}", success=record.levelno < logging.ERROR)
        if record.levelno >= logging.ERROR:
            metrics.record_error("log.error")
