"""
Purpose: Owned, mutable state of one scanner instance.
Constraints: Data container only; transitions live in FeedScanner.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set


class ScanStatus(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"


@dataclass
class ScannerState:
    status: ScanStatus = ScanStatus.IDLE
    timer_task: Optional[asyncio.Task] = None
    processing: Set[str] = field(default_factory=set)
    classifier_ready: bool = False
    # bumped on every stop so abandoned pipelines leave the new set alone
    generation: int = 0

    @property
    def scanning(self) -> bool:
        return self.status is ScanStatus.SCANNING
