"""
Purpose: Periodic feed scan that drives each visible video through the filters.
Constraints: Single event loop; WebDriver is only touched from the loop thread.

Pipeline per <video>, gated by the processing set:
identity key -> visibility -> description/permalink -> script filter
-> frame classification -> dedup append.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional, Sequence, Set, Tuple

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By

from feed_scanner.browser.frames import identity_key
from feed_scanner.browser.metadata import MetadataExtractor
from feed_scanner.browser.visibility import element_in_viewport
from feed_scanner.classifier.adapter import FrameClassifierAdapter
from feed_scanner.classifier.base import ClassifierInitError
from feed_scanner.core.logging import UnifiedLogger
from feed_scanner.core.metrics import CandidateOutcome, get_metrics
from feed_scanner.core.models import MatchRecord
from feed_scanner.core.storage.match_store import MatchStore
from feed_scanner.core.text_filter import ARABIC_RANGES, matches_script
from feed_scanner.scanner.state import ScannerState, ScanStatus

DEFAULT_SCAN_INTERVAL_MS = 3500


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FeedScanner:
    """Idle/Scanning state machine plus the per-candidate pipeline."""

    def __init__(
        self,
        driver,
        extractor: MetadataExtractor,
        adapter: FrameClassifierAdapter,
        store: MatchStore,
        interval_ms: int = DEFAULT_SCAN_INTERVAL_MS,
        script_ranges: Sequence[Tuple[int, int]] = ARABIC_RANGES,
    ):
        self.activity = UnifiedLogger("FeedScanner")
        self.logger = self.activity.get_logger()
        self.driver = driver
        self.extractor = extractor
        self.adapter = adapter
        self.store = store
        self.interval_ms = interval_ms
        self.script_ranges = tuple(script_ranges)
        self.state = ScannerState()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def scanning(self) -> bool:
        return self.state.scanning

    @property
    def classifier_ready(self) -> bool:
        return self.state.classifier_ready

    # -- transitions -------------------------------------------------------

    async def start(self) -> bool:
        if self.state.scanning:
            return True
        self.logger.info("Starting scan...")
        try:
            await self.adapter.ensure_ready()
        except ClassifierInitError as e:
            self.logger.error(f"Cannot start scan, classifier failed to load: {e}")
            return False
        self.state.classifier_ready = True
        if self.state.scanning:
            # another start won the race while the model was loading
            return True

        self.state.status = ScanStatus.SCANNING
        try:
            await self.scan_pass()
        except Exception as e:
            # the timer keeps trying; the scan stays up
            self.activity.log_error_with_context(e, {"stage": "first_scan_pass"})
        if self.state.scanning and self.state.timer_task is None:
            self.state.timer_task = asyncio.create_task(self._run_timer(), name="feed-scan-timer")
        return True

    def stop(self) -> bool:
        if not self.state.scanning:
            return True
        self.logger.info("Stopping scan")
        if self.state.timer_task is not None:
            self.state.timer_task.cancel()
        self.state.timer_task = None
        self.state.status = ScanStatus.IDLE
        self.state.processing.clear()
        self.state.generation += 1
        self.activity.log_metrics_snapshot()
        return True

    async def _run_timer(self) -> None:
        interval = self.interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval)
            if not self.state.scanning:
                return
            try:
                await self.scan_pass()
            except Exception as e:
                self.activity.log_error_with_context(e, {"stage": "scan_pass"})

    # -- scanning ----------------------------------------------------------

    async def scan_pass(self) -> int:
        """Spawn one pipeline task per <video>; do not wait for them."""
        try:
            videos = self.driver.find_elements(By.TAG_NAME, "video") or []
        except Exception as e:
            self.logger.error(f"scan pass could not enumerate videos: {type(e).__name__}: {e}")
            get_metrics().record_pass(None)
            return 0
        for video in videos:
            self._spawn(self.process_candidate(video))
        get_metrics().record_pass(len(videos))
        self.logger.debug(f"scan pass dispatched {len(videos)} video(s)")
        return len(videos)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self, timeout: Optional[float] = None) -> int:
        """Wait for the pipeline tasks issued so far; return how many are still running."""
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._tasks:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                break
            await asyncio.wait(list(self._tasks), timeout=remaining)
        return len(self._tasks)

    async def process_candidate(self, element) -> bool:
        """Run one video through the filters; True only if a record was stored."""
        try:
            key = identity_key(element)
        except WebDriverException as e:
            self.logger.debug(f"skipping video without readable identity: {e}")
            return False
        processing = self.state.processing
        if key in processing:
            return False
        processing.add(key)
        generation = self.state.generation
        metrics = get_metrics()
        metrics.record_candidate(CandidateOutcome.ADMITTED)

        try:
            if not element_in_viewport(self.driver, element):
                metrics.record_candidate(CandidateOutcome.OFFSCREEN)
                return False

            meta = self.extractor.extract(element)
            if not matches_script(meta.description, self.script_ranges):
                metrics.record_candidate(CandidateOutcome.TEXT_REJECTED)
                return False

            result = await self.adapter.classify(element)
            if not result.positive:
                metrics.record_candidate(CandidateOutcome.FRAME_REJECTED)
                return False

            record = MatchRecord(
                url=meta.url,
                description=meta.description,
                prob=result.confidence,
                collected_at=_iso_now(),
                page=self.extractor.current_url(),
                poster=self._poster_of(element),
            )
            saved = await self.store.append(record)
            if saved:
                metrics.record_candidate(CandidateOutcome.SAVED)
                self.activity.log_activity(
                    "scan.match_saved",
                    {"url": record.url, "prob": round(record.prob, 3)},
                )
            else:
                metrics.record_candidate(CandidateOutcome.DUPLICATE)
            return saved
        except Exception as e:
            self.activity.log_error_with_context(e, {"stage": "process_candidate", "key": key})
            metrics.record_candidate(CandidateOutcome.FAILED)
            return False
        finally:
            if self.state.generation == generation:
                processing.discard(key)

    @staticmethod
    def _poster_of(element) -> Optional[str]:
        try:
            return element.get_attribute("poster") or None
        except WebDriverException:
            return None
