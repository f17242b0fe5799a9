"""
Purpose: Capture a video frame and turn classifier detections into a decision.
Constraints: Never raises from classify(); failures become negative results.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from feed_scanner.browser.frames import capture_frame, has_renderable_frame, intrinsic_size
from feed_scanner.classifier.base import ClassifierInitError, FrameClassifier
from feed_scanner.core.metrics import get_metrics
from feed_scanner.core.models import NEGATIVE, Classification, Detection

logger = logging.getLogger(__name__)


def decide(detections: Iterable[Detection], target_category: str, threshold: float) -> Classification:
    """Positive iff some target-category detection reaches the threshold."""
    best = 0.0
    positive = False
    for detection in detections or ():
        if detection.category != target_category:
            continue
        confidence = float(detection.confidence or 0.0)
        best = max(best, confidence)
        positive = positive or confidence >= threshold
    return Classification(positive=positive, confidence=best)


class FrameClassifierAdapter:
    """Owns the one-time classifier load and the per-frame decision rule."""

    def __init__(
        self,
        driver,
        classifier: FrameClassifier,
        threshold: float = 0.7,
        target_category: str = "female",
    ):
        self.driver = driver
        self.classifier = classifier
        self.threshold = threshold
        self.target_category = target_category
        self._ready = False
        self._init_task: Optional[asyncio.Task] = None

    @property
    def ready(self) -> bool:
        return self._ready

    async def _initialize(self) -> None:
        try:
            await self.classifier.initialize()
        except ClassifierInitError:
            raise
        except Exception as exc:
            raise ClassifierInitError(str(exc)) from exc
        self._ready = True
        logger.info("Classifier loaded and ready")

    async def ensure_ready(self) -> None:
        """Load the classifier once; concurrent callers share the pending load.

        A failed load is forgotten so the next caller tries again.
        """
        if self._ready:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        task = self._init_task
        try:
            await asyncio.shield(task)
        except ClassifierInitError:
            if self._init_task is task:
                self._init_task = None
            raise

    async def classify(self, element) -> Classification:
        try:
            await self.ensure_ready()
            width, height = intrinsic_size(element)
            if not has_renderable_frame(width, height):
                return NEGATIVE
            frame = capture_frame(self.driver, element, width, height)
            detections = await self.classifier.detect(frame)
            result = decide(detections, self.target_category, self.threshold)
            get_metrics().record_classification(result.positive)
            return result
        except Exception as e:
            logger.warning(f"Frame classification failed: {type(e).__name__}: {e}")
            get_metrics().record_classification(False, failed=True)
            return NEGATIVE
