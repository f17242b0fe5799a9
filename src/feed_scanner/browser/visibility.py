"""
Purpose: Decide whether an element's box is inside the current viewport.
Constraints: Read-only DOM probes; no scrolling or clicks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

RECT_SCRIPT = """
const r = arguments[0].getBoundingClientRect();
const de = document.documentElement;
return {
  top: r.top, bottom: r.bottom, left: r.left, right: r.right,
  width: r.width, height: r.height,
  vw: window.innerWidth || de.clientWidth,
  vh: window.innerHeight || de.clientHeight
};
"""


@dataclass(frozen=True)
class BoundingBox:
    top: float
    bottom: float
    left: float
    right: float
    width: float
    height: float


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float


def is_visible(box: BoundingBox, viewport: Viewport) -> bool:
    return (
        box.width > 0
        and box.height > 0
        and box.top < viewport.height
        and box.bottom > 0
        and box.left < viewport.width
        and box.right > 0
    )


def parse_rect(raw: Optional[Mapping[str, Any]]) -> Tuple[BoundingBox, Viewport]:
    raw = raw or {}

    def num(key: str) -> float:
        try:
            return float(raw.get(key) or 0)
        except (TypeError, ValueError):
            return 0.0

    box = BoundingBox(
        top=num("top"),
        bottom=num("bottom"),
        left=num("left"),
        right=num("right"),
        width=num("width"),
        height=num("height"),
    )
    return box, Viewport(width=num("vw"), height=num("vh"))


def element_in_viewport(driver, element) -> bool:
    """One round trip for the element rect and viewport size."""
    box, viewport = parse_rect(driver.execute_script(RECT_SCRIPT, element))
    return is_visible(box, viewport)
