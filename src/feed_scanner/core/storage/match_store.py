"""
Purpose: Append-only, dedup-checked persistent list of matched feed videos.
Constraints: Storage only; no browser or classifier calls.

The backing file is a JSON object with a single named slot holding the
ordered list of record mappings:

    {"tt_matches": [{"url": ..., "description": ..., "prob": ..., ...}]}

Duplicate detection is a linear scan over every stored record on each
append. That is the scaling limit of this store; lists are expected to stay
in the hundreds.
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence

from feed_scanner.core.models import MatchRecord

MATCHES_DEFAULT_PATH = "data/matches.json"
MATCHES_DEFAULT_SLOT = "tt_matches"


class StoreError(Exception):
    """Backing file could not be read or written."""


def is_duplicate(record: MatchRecord, existing: Sequence[MatchRecord]) -> bool:
    """Same url, or same non-empty description, as any stored record."""
    for item in existing:
        if item.url == record.url:
            return True
        if record.description and item.description == record.description:
            return True
    return False


def load_matches(path: Path, slot: str = MATCHES_DEFAULT_SLOT) -> List[MatchRecord]:
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8") or "{}")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StoreError(f"Could not read match file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise StoreError(f"Match file {path} should contain a JSON object.")
    entries = data.get(slot) or []
    if not isinstance(entries, list):
        raise StoreError(f"Slot '{slot}' in {path} should be a JSON list.")
    return [MatchRecord.from_dict(entry) for entry in entries if isinstance(entry, dict)]


def write_matches(path: Path, records: Sequence[MatchRecord], slot: str = MATCHES_DEFAULT_SLOT) -> None:
    payload: Dict[str, Any] = {}
    try:
        if path.exists():
            existing = json.loads(path.read_text(encoding="utf-8") or "{}")
            if isinstance(existing, dict):
                payload = existing
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        payload = {}
    payload[slot] = [record.to_dict() for record in records]

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError as exc:
        raise StoreError(f"Could not write match file {path}: {exc}") from exc


class MatchStore:
    """Async facade over the match file; one lock serializes read-check-write."""

    def __init__(self, path: Path | str = MATCHES_DEFAULT_PATH, slot: str = MATCHES_DEFAULT_SLOT):
        self.path = Path(path)
        self.slot = slot
        self._lock = asyncio.Lock()

    async def append(self, record: MatchRecord) -> bool:
        async with self._lock:
            records = await asyncio.to_thread(load_matches, self.path, self.slot)
            if is_duplicate(record, records):
                return False
            records.append(record)
            await asyncio.to_thread(write_matches, self.path, records, self.slot)
            return True

    async def list(self) -> List[MatchRecord]:
        async with self._lock:
            return await asyncio.to_thread(load_matches, self.path, self.slot)

    async def clear(self) -> None:
        async with self._lock:
            await asyncio.to_thread(write_matches, self.path, [], self.slot)
