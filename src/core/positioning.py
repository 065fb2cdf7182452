"""Popup placement helpers (core domain).

Coordinates are abstract cells or pixels; the renderer supplies the anchor
rectangle, the popup size and the viewport. Placement never fails: anything
that would leave the viewport is clamped back inside it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Rect:
    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass(frozen=True)
class Point:
    left: int
    top: int


def _clamp(value: int, low: int, high: int) -> int:
    if high < low:
        return low
    return max(low, min(value, high))


def place_popup(
    anchor: Rect,
    popup_width: int,
    popup_height: int,
    viewport: Rect,
    offset: int = 1,
    padding: int = 1,
    prefer_above: bool = True,
) -> Point:
    """Return the top-left corner for a popup attached to anchor.

    The popup goes above the anchor by default and flips below when there is
    no room; horizontally it starts at the anchor and shifts left when it
    would overflow the right edge.
    """

    popup_width = max(0, popup_width)
    popup_height = max(0, popup_height)

    above = anchor.top - popup_height - offset
    below = anchor.bottom + offset
    min_top = viewport.top + padding
    max_top = viewport.bottom - padding - popup_height

    if prefer_above:
        top = above if above >= min_top else below
    else:
        top = below if below <= max_top else above

    left = anchor.left
    max_left = viewport.right - padding - popup_width
    if left > max_left:
        left = max_left

    return Point(
        left=_clamp(left, viewport.left + padding, max_left),
        top=_clamp(top, min_top, max_top),
    )
