"""
Purpose: Shared data models for cross-module communication.
Constraints: Data containers only; no logic beyond (de)serialization.
"""

# Imports
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


# Public API
@dataclass(frozen=True)
class MatchRecord:
    """A feed video that passed both the text and the frame filters."""

    url: str
    description: str
    prob: float
    collected_at: str
    page: str
    poster: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "description": self.description,
            "prob": self.prob,
            "collectedAt": self.collected_at,
            "page": self.page,
            "poster": self.poster,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchRecord":
        return cls(
            url=str(data.get("url") or ""),
            description=str(data.get("description") or ""),
            prob=float(data.get("prob") or 0.0),
            collected_at=str(data.get("collectedAt") or data.get("collected_at") or ""),
            page=str(data.get("page") or ""),
            poster=data.get("poster") or None,
        )


@dataclass(frozen=True)
class ExtractedMetadata:
    """Description text and permalink found around a video element."""

    description: str = ""
    url: str = ""


@dataclass(frozen=True)
class Detection:
    """One classifier hit on a frame."""

    category: str
    confidence: float


@dataclass(frozen=True)
class Classification:
    positive: bool
    confidence: float


NEGATIVE = Classification(positive=False, confidence=0.0)
