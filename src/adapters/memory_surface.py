"""In-memory text surface and asyncio scheduler.

Used by the command line scanner and by hosts that keep the text themselves.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Tuple


class StringSurface:
    """Plain string holder satisfying the TextSurface port."""

    def __init__(self, text: str = "") -> None:
        self._text = text
        self.cursor: Optional[Tuple[int, int]] = None

    def get_text(self) -> str:
        return self._text

    def set_text(self, text: str, cursor: Optional[Tuple[int, int]] = None) -> None:
        self._text = text
        self.cursor = cursor


class AsyncioScheduler:
    """Scheduler port backed by the running asyncio loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)
