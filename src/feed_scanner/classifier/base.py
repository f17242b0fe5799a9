"""
Purpose: Pluggable interface for the frame classifier capability.
Constraints: Interface only; concrete models live in sibling modules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

import numpy as np

from feed_scanner.core.models import Detection


class ClassifierInitError(Exception):
    """The classifier or its data assets could not be loaded."""


class FrameClassifier(ABC):
    """Load once, then detect on RGB frames."""

    @abstractmethod
    async def initialize(self) -> None:
        """Fetch the runnable model and its assets; raise ClassifierInitError on failure."""

    @abstractmethod
    async def detect(self, frame: np.ndarray) -> List[Detection]:
        """Return zero or more detections for an (h, w, 3) RGB uint8 frame."""
