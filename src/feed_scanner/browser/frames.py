"""
Purpose: Read identity and still frames from <video> elements in the page.
Constraints: Read-only DOM probes; decoding happens in Python.
"""

from __future__ import annotations

import base64
import io
import uuid
from typing import Tuple

import numpy as np
from PIL import Image

CAPTURE_SCRIPT = """
const v = arguments[0];
const w = arguments[1], h = arguments[2];
const canvas = document.createElement('canvas');
canvas.width = w;
canvas.height = h;
const ctx = canvas.getContext('2d', { willReadFrequently: true });
if (!ctx) return null;
ctx.drawImage(v, 0, 0, w, h);
return canvas.toDataURL('image/png');
"""

MIN_FRAME_SIZE = 2


class FrameCaptureError(Exception):
    """The page could not hand back a decodable frame."""


def _int_prop(element, name: str) -> int:
    try:
        return int(float(element.get_dom_property(name) or 0))
    except (TypeError, ValueError):
        return 0


def intrinsic_size(element) -> Tuple[int, int]:
    return max(1, _int_prop(element, "videoWidth")), max(1, _int_prop(element, "videoHeight"))


def has_renderable_frame(width: int, height: int) -> bool:
    return width >= MIN_FRAME_SIZE and height >= MIN_FRAME_SIZE


def identity_key(element) -> str:
    """currentSrc, then src, then data-scan-key, else a fresh random nonce.

    The nonce changes every pass, so elements without a source are never
    recognised as already in flight.
    """
    key = (
        element.get_dom_property("currentSrc")
        or element.get_attribute("src")
        or element.get_attribute("data-scan-key")
    )
    return str(key) if key else uuid.uuid4().hex[:11]


def decode_data_url(data_url: str) -> np.ndarray:
    """PNG data URL -> RGB uint8 array of shape (h, w, 3)."""
    if not data_url or not data_url.startswith("data:image/"):
        raise FrameCaptureError("canvas returned no image data")
    try:
        _, encoded = data_url.split(",", 1)
        with Image.open(io.BytesIO(base64.b64decode(encoded))) as img:
            return np.asarray(img.convert("RGB"), dtype=np.uint8)
    except (ValueError, OSError) as exc:
        raise FrameCaptureError(f"could not decode frame: {exc}") from exc


def capture_frame(driver, element, width: int, height: int) -> np.ndarray:
    return decode_data_url(driver.execute_script(CAPTURE_SCRIPT, element, width, height))
