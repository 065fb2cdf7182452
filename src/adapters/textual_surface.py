"""Textual bindings for the core ports.

Keeps Textual-specific details out of the core: the TextArea becomes the
text surface and widget timers back the tooltip debounce.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import TextArea


class TextAreaSurface:
    """TextSurface port over a Textual TextArea."""

    def __init__(self, text_area: TextArea) -> None:
        self._text_area = text_area

    def get_text(self) -> str:
        return self._text_area.text

    def set_text(self, text: str, cursor: Optional[Tuple[int, int]] = None) -> None:
        # replace() goes through the edit history, so a commit can be undone.
        document = self._text_area.document
        self._text_area.replace(text, document.start, document.end)
        if cursor is not None:
            self._text_area.move_cursor(cursor)


class _TimerHandle:
    def __init__(self, timer: Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class WidgetScheduler:
    """Scheduler port backed by Widget.set_timer."""

    def __init__(self, widget: Widget) -> None:
        self._widget = widget

    def call_later(self, delay: float, callback: Callable[[], None]) -> _TimerHandle:
        return _TimerHandle(self._widget.set_timer(delay, callback))
