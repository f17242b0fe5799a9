"""
Purpose: Export the match list as a downloadable JSON document.
Constraints: Storage helper only; no business logic.
"""

# Imports
import json
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from feed_scanner.core.models import MatchRecord
from feed_scanner.core.text_filter import preview_text

EXPORT_PREFIX = "tiktok_matches_"


# Helpers
def export_filename(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{EXPORT_PREFIX}{now_ms}.json"


def export_matches(records: Sequence[MatchRecord], out_dir: Path, now_ms: Optional[int] = None) -> Path:
    """Write records as an indented JSON list; return the file path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / export_filename(now_ms)
    target.write_text(
        json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return target


def format_match(record: MatchRecord) -> str:
    """One-line listing: probability, local collection time, url, description."""
    try:
        collected = datetime.fromisoformat(record.collected_at.replace("Z", "+00:00"))
        when = collected.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        when = record.collected_at or "?"
    return f"prob: {record.prob:.2f} • {when} • {record.url} • {preview_text(record.description)}"
