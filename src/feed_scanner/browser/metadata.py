"""
Purpose: Find the description text and permalink that belong to a feed video.
Constraints: Best effort; never raises on missing or stale DOM structure.

The DOM walk happens in the page with one execute_script call. The page side
only collects raw strings (slot text, nearby text that contains a character
from the script ranges, label attributes, permalink href); choosing the
description stays here.
"""

# Imports
import logging
from typing import Iterable, Mapping, Sequence, Tuple

from selenium.common.exceptions import WebDriverException

from feed_scanner.core.models import ExtractedMetadata
from feed_scanner.core.text_filter import ARABIC_RANGES, looks_like_description, matches_script

logger = logging.getLogger(__name__)

DESCRIPTION_SLOTS = (
    '[data-e2e="video-desc"]',
    '[data-e2e="browse-video-desc"]',
    '[data-e2e="feed-video-desc"]',
)
TEXT_NODE_SELECTOR = "div, span, strong, p"
MAX_ANCESTOR_LEVELS = 5
MAX_NEARBY_TEXTS = 50
PERMALINK_SELECTOR = 'a[href*="/video/"]'
LABEL_ATTRIBUTES = ("aria-label", "title")

# arguments: video, ranges, slot selectors, text selector, max levels, max texts,
# permalink selector, label attributes
METADATA_SCRIPT = """
const [video, ranges, slots, textSelector, maxLevels, maxTexts, linkSelector, labelAttrs] = arguments;
const inRanges = (text) => {
  for (const ch of text) {
    const cp = ch.codePointAt(0);
    for (const [lo, hi] of ranges) {
      if (cp >= lo && cp <= hi) return true;
    }
  }
  return false;
};
const textOf = (node) => ((node && node.textContent) || '').trim();
const item = video.closest('[data-e2e]');
const slotTexts = slots.map((sel) => (item ? textOf(item.querySelector(sel)) : ''));
const nearby = [];
let parent = video.parentElement;
for (let level = 0; level < maxLevels && parent && nearby.length < maxTexts; level++) {
  for (const node of parent.querySelectorAll(textSelector)) {
    const text = textOf(node);
    if (text && inRanges(text)) {
      nearby.push(text);
      if (nearby.length >= maxTexts) break;
    }
  }
  parent = parent.parentElement;
}
const labels = labelAttrs.map((name) => (video.getAttribute(name) || '').trim());
const anchor = video.closest(linkSelector)
  || (video.parentElement && video.parentElement.querySelector(linkSelector));
return {slots: slotTexts, nearby: nearby, labels: labels, href: (anchor && anchor.href) || ''};
"""


# Helpers
def _first_text(values: Iterable) -> str:
    for value in values or ():
        text = value.strip() if isinstance(value, str) else ""
        if text:
            return text
    return ""


# Public API
class MetadataExtractor:
    """Description/permalink lookup around a <video> element."""

    def __init__(self, driver, script_ranges: Sequence[Tuple[int, int]] = ARABIC_RANGES):
        self.driver = driver
        self.script_ranges = tuple(script_ranges)

    def probe(self, element) -> Mapping:
        """Collect the raw DOM strings around element in a single round trip."""
        try:
            raw = self.driver.execute_script(
                METADATA_SCRIPT,
                element,
                [list(pair) for pair in self.script_ranges],
                list(DESCRIPTION_SLOTS),
                TEXT_NODE_SELECTOR,
                MAX_ANCESTOR_LEVELS,
                MAX_NEARBY_TEXTS,
                PERMALINK_SELECTOR,
                list(LABEL_ATTRIBUTES),
            )
        except WebDriverException as e:
            logger.debug(f"Metadata probe failed: {e}")
            return {}
        return raw if isinstance(raw, Mapping) else {}

    def extract(self, element) -> ExtractedMetadata:
        raw = self.probe(element)
        return ExtractedMetadata(
            description=self.choose_description(raw),
            url=self.choose_url(raw),
        )

    def extract_description(self, element) -> str:
        return self.choose_description(self.probe(element))

    def find_video_url(self, element) -> str:
        return self.choose_url(self.probe(element))

    def choose_description(self, raw: Mapping) -> str:
        # feed item slot first, whatever its script; then nearby text; then label
        text = _first_text(raw.get("slots"))
        if text:
            return text
        for candidate in raw.get("nearby") or ():
            candidate = (candidate or "").strip()
            if looks_like_description(candidate) and matches_script(candidate, self.script_ranges):
                return candidate
        return _first_text(raw.get("labels"))

    def choose_url(self, raw: Mapping) -> str:
        href = raw.get("href") or ""
        return href if href else self.current_url()

    def current_url(self) -> str:
        try:
            return self.driver.current_url or ""
        except WebDriverException:
            return ""
