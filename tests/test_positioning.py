from __future__ import annotations

from core.positioning import Point, Rect, place_popup

VIEWPORT = Rect(0, 0, 80, 24)


def test_popup_goes_above_anchor_when_room() -> None:
    point = place_popup(Rect(10, 12, 5, 1), 20, 4, VIEWPORT)
    assert point == Point(left=10, top=7)


def test_popup_flips_below_near_top_edge() -> None:
    point = place_popup(Rect(10, 2, 5, 1), 20, 4, VIEWPORT)
    assert point == Point(left=10, top=4)


def test_popup_below_when_preferred() -> None:
    point = place_popup(Rect(10, 12, 5, 1), 20, 4, VIEWPORT, prefer_above=False)
    assert point == Point(left=10, top=14)


def test_popup_shifts_left_at_right_edge() -> None:
    point = place_popup(Rect(70, 12, 5, 1), 20, 4, VIEWPORT)
    assert point.left == 80 - 1 - 20
    assert point.left + 20 <= VIEWPORT.right


def test_oversized_popup_is_clamped_inside_viewport() -> None:
    point = place_popup(Rect(5, 5, 1, 1), 200, 100, VIEWPORT)
    assert point == Point(left=1, top=1)


def test_offset_and_padding_are_applied() -> None:
    point = place_popup(Rect(0, 10, 3, 1), 10, 3, VIEWPORT, offset=2, padding=3)
    assert point == Point(left=3, top=5)
