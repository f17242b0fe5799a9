"""
Purpose: Script detection and light text helpers for feed descriptions.
Constraints: Pure helpers only; no side effects.
"""

# Imports
from textwrap import shorten
from typing import Iterable, Optional, Sequence, Tuple

# Arabic, Arabic Supplement, Arabic Extended-A
ARABIC_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x0600, 0x06FF),
    (0x0750, 0x077F),
    (0x08A0, 0x08FF),
)

MIN_DESCRIPTION_LENGTH = 2


# Helpers
def matches_script(text: Optional[str], ranges: Sequence[Tuple[int, int]] = ARABIC_RANGES) -> bool:
    """Return True if any code point of text falls inside one of the ranges."""
    if not text:
        return False
    for ch in text:
        code = ord(ch)
        for start, end in ranges:
            if start <= code <= end:
                return True
    return False


def normalize_ranges(raw: Iterable[Sequence[int]]) -> Tuple[Tuple[int, int], ...]:
    """Coerce config-provided [start, end] pairs into sorted int tuples."""
    ranges = []
    for pair in raw or ():
        if len(pair) != 2:
            raise ValueError(f"script range must be [start, end], got {pair!r}")
        start, end = int(pair[0]), int(pair[1])
        if start > end:
            start, end = end, start
        ranges.append((start, end))
    return tuple(ranges)


def looks_like_description(text: str) -> bool:
    """Trimmed text of at least two chars with a letter, digit, '#' or '@'."""
    trimmed = (text or "").strip()
    if len(trimmed) < MIN_DESCRIPTION_LENGTH:
        return False
    return any(ch.isalnum() or ch in "#@" for ch in trimmed)


def preview_text(text: str, width: int = 80) -> str:
    """Return a single-line preview of text, trimmed to width."""
    if not text:
        return "(no description)"
    sanitized = " ".join(text.split())
    return shorten(sanitized, width=width, placeholder="...")

