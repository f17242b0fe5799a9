"""
Purpose: Typed configuration models with validation.
Constraints: Pure models; no file I/O or side effects.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _default_script_ranges() -> List[List[int]]:
    return [[0x0600, 0x06FF], [0x0750, 0x077F], [0x08A0, 0x08FF]]


class ScannerSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    scan_interval_ms: int = Field(default=3500, gt=0)
    threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    target_category: str = "female"
    script_ranges: List[List[int]] = Field(default_factory=_default_script_ranges)
    model_name: str = "buffalo_l"
    model_root: str = ""
    det_size: int = Field(default=640, gt=0)
    store_path: str = "data/matches.json"
    store_slot: str = "tt_matches"
    feed_url: str = "https://www.tiktok.com/foryou"
    auto_start_pattern: str = r"tiktok\.com/(foryou|@|)"
    auto_start_delay_s: float = Field(default=4.0, ge=0.0)

    @field_validator("script_ranges")
    @classmethod
    def _check_ranges(cls, value: List[List[int]]) -> List[List[int]]:
        for pair in value:
            if len(pair) != 2:
                raise ValueError(f"script range must be [start, end], got {pair!r}")
        return value


class BrowserSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    headless: bool = False
    wait_time: int = 10
    chrome_binary: str = ""
    chromedriver_path: str = ""
    profile_dir: str = ""
