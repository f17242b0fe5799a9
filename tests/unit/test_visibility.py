import pytest

from feed_scanner.browser.visibility import BoundingBox, Viewport, element_in_viewport, is_visible, parse_rect
from fakes import OFFSCREEN_RECT, FakeDriver, FakeElement

VIEWPORT = Viewport(width=1280, height=800)


def box(top, left, width, height):
    return BoundingBox(top=top, bottom=top + height, left=left, right=left + width, width=width, height=height)


@pytest.mark.parametrize("width,height", [(0, 300), (300, 0), (0, 0)])
def test_zero_sized_box_is_never_visible(width, height):
    assert not is_visible(box(10, 10, width, height), VIEWPORT)


def test_box_inside_viewport_is_visible():
    assert is_visible(box(100, 100, 340, 600), VIEWPORT)


def test_partially_overlapping_box_is_visible():
    assert is_visible(box(-500, -100, 340, 600), VIEWPORT)


@pytest.mark.parametrize(
    "top,left",
    [
        (800, 10),    # starts at the bottom edge
        (-600, 10),   # ends at the top edge
        (10, 1280),   # starts at the right edge
        (10, -340),   # ends at the left edge
    ],
)
def test_box_touching_edges_from_outside_is_hidden(top, left):
    assert not is_visible(box(top, left, 340, 600), VIEWPORT)


def test_parse_rect_tolerates_missing_values():
    parsed_box, viewport = parse_rect({"top": "5", "width": None})
    assert parsed_box.top == 5.0
    assert parsed_box.width == 0.0
    assert viewport == Viewport(0.0, 0.0)
    assert parse_rect(None)[0].height == 0.0


def test_element_in_viewport_uses_one_script_round_trip():
    driver = FakeDriver()
    on_screen = FakeElement("video")
    off_screen = FakeElement("video", rect=OFFSCREEN_RECT)
    assert element_in_viewport(driver, on_screen)
    assert not element_in_viewport(driver, off_screen)
