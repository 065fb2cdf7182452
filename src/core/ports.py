"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the editing surface and the timer
facility so that the core can be driven by Textual, a test fake, or any
other host.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Tuple


class TextSurface(Protocol):
    """Raw text holder the annotations are computed from."""

    def get_text(self) -> str:
        ...

    def set_text(self, text: str, cursor: Optional[Tuple[int, int]] = None) -> None:
        ...


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Delayed callbacks for debounced affordances."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        ...
