"""
Purpose: In-process counters for scan passes, candidate outcomes and classifier results.
Constraints: The snapshot thread reads while the event loop writes; file-based output only.
"""

from __future__ import annotations

import json
import threading
import time
from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Dict, Optional


class CandidateOutcome(str, Enum):
    """Where a <video> left the pipeline (ADMITTED counts entries)."""

    ADMITTED = "admitted"
    OFFSCREEN = "offscreen"
    TEXT_REJECTED = "text_rejected"
    FRAME_REJECTED = "frame_rejected"
    DUPLICATE = "duplicate"
    SAVED = "saved"
    FAILED = "failed"


class ScanMetrics:
    def __init__(self):
        self._lock = threading.Lock()
        self._start_time = time.time()
        self._passes = 0
        self._failed_passes = 0
        self._videos_seen = 0
        self._candidates: Counter = Counter()
        self._classifications: Counter = Counter()
        self._events: Counter = Counter()
        self._errors: Counter = Counter()

    def record_pass(self, dispatched: Optional[int]) -> None:
        """dispatched=None means the page could not be enumerated."""
        with self._lock:
            if dispatched is None:
                self._failed_passes += 1
                return
            self._passes += 1
            self._videos_seen += dispatched

    def record_candidate(self, outcome: CandidateOutcome) -> None:
        with self._lock:
            self._candidates[CandidateOutcome(outcome).value] += 1

    def record_classification(self, positive: bool, failed: bool = False) -> None:
        key = "failed" if failed else ("positive" if positive else "negative")
        with self._lock:
            self._classifications[key] += 1

    def record(self, name: str, success: bool = True) -> None:
        with self._lock:
            self._events[name] += 1
            if not success:
                self._errors[name] += 1

    def record_error(self, name: str = "error") -> None:
        self.record(name, success=False)

    def candidate_count(self, outcome: CandidateOutcome) -> int:
        with self._lock:
            return self._candidates[CandidateOutcome(outcome).value]

    def snapshot(self) -> Dict[str, object]:
        now = time.time()
        with self._lock:
            admitted = self._candidates[CandidateOutcome.ADMITTED.value]
            saved = self._candidates[CandidateOutcome.SAVED.value]
            return {
                "timestamp_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(now)),
                "uptime_seconds": int(now - self._start_time),
                "passes": self._passes,
                "failed_passes": self._failed_passes,
                "videos_seen": self._videos_seen,
                "candidates": dict(self._candidates),
                "classifications": dict(self._classifications),
                "match_rate": round(saved / admitted, 3) if admitted else 0.0,
                "events": dict(self._events),
                "errors": dict(self._errors),
            }

    def write_snapshot(self, path: Path) -> None:
        payload = self.snapshot()
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")


_GLOBAL_METRICS: Optional[ScanMetrics] = None
_GLOBAL_LOCK = threading.Lock()


def get_metrics() -> ScanMetrics:
    global _GLOBAL_METRICS
    with _GLOBAL_LOCK:
        if _GLOBAL_METRICS is None:
            _GLOBAL_METRICS = ScanMetrics()
        return _GLOBAL_METRICS
