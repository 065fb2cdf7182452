"""Interaction state machine (core domain).

One state machine owns the single interaction session of an editing surface:
which affordance is open (none, tooltip or menu), the menu keyboard cursor,
the filter text, and the text mutation performed when an option is
committed. Renderers feed it pointer and key gestures and redraw from the
session it exposes.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from core.config import InteractionConfig
from core.handlers import render_data
from core.models import RESOLVED_SEPARATOR, Affordance, CommitMode, Match, OnSelect, OptionSpec
from core.ports import Cancellable, Scheduler, TextSurface

LOGGER = logging.getLogger(__name__)

_KEY_ACTIONS = {
    "ArrowDown": "down",
    "down": "down",
    "ArrowUp": "up",
    "up": "up",
    "Enter": "enter",
    "enter": "enter",
    "Escape": "escape",
    "escape": "escape",
}


@dataclass
class HostCallbacks:
    """Optional host hooks raised by the surface."""

    on_hover: Optional[Callable[[Match], None]] = None
    on_select: Optional[Callable[[Match, Optional[OptionSpec]], None]] = None
    on_validation_change: Optional[Callable[..., None]] = None


@dataclass
class InteractionSession:
    """The live interaction state of one surface."""

    active_affordance: Affordance = Affordance.NONE
    anchor_match: Optional[Match] = None
    option_list: Tuple[OptionSpec, ...] = ()
    filter_text: str = ""
    highlighted_index: Optional[int] = None
    freeform_text: str = ""
    filterable: bool = False
    opened_by_click: bool = False

    def visible_indices(self) -> List[int]:
        """Indices of options passing the filter; the option list itself is never touched."""

        query = self.filter_text.casefold()
        return [
            index
            for index, option in enumerate(self.option_list)
            if option.is_freeform_input or query in option.label.casefold()
        ]

    @property
    def highlighted_option(self) -> Optional[OptionSpec]:
        if self.highlighted_index is None or self.highlighted_index not in self.visible_indices():
            return None
        return self.option_list[self.highlighted_index]

    def reset(self) -> None:
        self.active_affordance = Affordance.NONE
        self.anchor_match = None
        self.option_list = ()
        self.filter_text = ""
        self.highlighted_index = None
        self.freeform_text = ""
        self.filterable = False
        self.opened_by_click = False


def apply_option(text: str, match: Match, on_select: OnSelect) -> Optional[Tuple[str, Tuple[int, int]]]:
    """Return (new_text, cursor) after committing on_select for match.

    Replace mode swaps the match span for the replacement text; append mode
    keeps the match and adds "/replacement" after it. Returns None when the
    span no longer holds the matched text.
    """

    lines = text.split("\n")
    if match.line_index >= len(lines):
        return None
    line = lines[match.line_index]
    if line[match.start_col:match.end_col] != match.matched_text:
        return None

    if on_select.mode is CommitMode.APPEND:
        inserted = f"{match.matched_text}{RESOLVED_SEPARATOR}{on_select.replacement_text}"
    else:
        inserted = on_select.replacement_text
    lines[match.line_index] = line[:match.start_col] + inserted + line[match.end_col:]
    return "\n".join(lines), (match.line_index, match.start_col + len(inserted))


def _menu_key(match: Match) -> Tuple[str, int, str]:
    return match.rule_id, match.line_index, match.matched_text


class InteractionStateMachine:
    """Tooltip and menu lifecycle for one editing surface."""

    def __init__(
        self,
        surface: TextSurface,
        scheduler: Scheduler,
        config: Optional[InteractionConfig] = None,
        callbacks: Optional[HostCallbacks] = None,
        request_rescan: Optional[Callable[[], object]] = None,
    ) -> None:
        self._surface = surface
        self._scheduler = scheduler
        self._config = config or InteractionConfig()
        self._callbacks = callbacks or HostCallbacks()
        self._request_rescan = request_rescan
        self.session = InteractionSession()
        self._pending_tooltip: Optional[Cancellable] = None
        self._pending_match: Optional[Match] = None
        self._committing = False
        self._menu_counts: Counter = Counter()
        self._reseed_counts = False
        self._listeners: List[Callable[[InteractionSession], None]] = []
        self._closed = False

    @property
    def state(self) -> Affordance:
        return self.session.active_affordance

    @property
    def tooltip_pending(self) -> bool:
        return self._pending_tooltip is not None

    def subscribe(self, listener: Callable[[InteractionSession], None]) -> Callable[[], None]:
        """Register a listener called after every session transition."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Pointer gestures

    def pointer_enter(self, match: Match) -> None:
        self._emit_hover(match)
        if self.state is Affordance.MENU:
            return
        if match.rule.affordance is not Affordance.TOOLTIP:
            return
        if self.state is Affordance.TOOLTIP and self.session.anchor_match == match:
            return
        self._cancel_pending()
        self._pending_match = match
        self._pending_tooltip = self._scheduler.call_later(self._config.tooltip_delay, self._open_tooltip)

    def pointer_leave(self, match: Optional[Match] = None) -> None:
        # An open tooltip stays up so the pointer can travel onto it.
        self._cancel_pending()

    def tooltip_leave(self) -> None:
        if self.state is Affordance.TOOLTIP:
            self._reset()

    def click(self, match: Match) -> None:
        if match.rule.affordance is Affordance.MENU:
            if self.state is Affordance.MENU and self.session.anchor_match == match:
                self._reset()
                return
            self.open_menu(match, by_click=True)
        self._emit_select(match, None)

    def outside_click(self) -> None:
        if self.state is Affordance.MENU:
            self._reset()

    def blur(self, focus_in_menu: bool = False) -> None:
        if self.state is Affordance.MENU and not focus_in_menu:
            self._reset()

    def dismiss(self) -> None:
        self._cancel_pending()
        if self.state is not Affordance.NONE:
            self._reset()

    # Menu

    def open_menu(self, match: Match, by_click: bool = False) -> bool:
        options = render_data(match).options
        if not options:
            return False
        self._cancel_pending()
        session = self.session
        session.reset()
        session.active_affordance = Affordance.MENU
        session.anchor_match = match
        session.option_list = options
        session.filterable = match.rule.filterable
        session.opened_by_click = by_click
        session.highlighted_index = 0
        LOGGER.debug("Menu opened for %r with %s options", match.matched_text, len(options))
        self._notify()
        return True

    def handle_key(self, key: str) -> bool:
        """Handle a key while a menu is open; True when the key was consumed.

        Used both for the text surface and for the menu filter field, so
        arrow keys typed into the filter move the highlight instead of the
        field caret.
        """

        if self.state is not Affordance.MENU:
            return False
        action = _KEY_ACTIONS.get(key)
        if action == "down":
            self.move_highlight(1)
        elif action == "up":
            self.move_highlight(-1)
        elif action == "enter":
            self.commit()
        elif action == "escape":
            self.dismiss()
        else:
            return False
        return True

    def move_highlight(self, direction: int) -> None:
        session = self.session
        visible = session.visible_indices()
        if not visible:
            return
        position = visible.index(session.highlighted_index) if session.highlighted_index in visible else -1
        position += direction
        if position < 0:
            position = len(visible) - 1
        elif position >= len(visible):
            position = 0
        session.highlighted_index = visible[position]
        self._notify()

    def set_filter(self, text: str) -> None:
        session = self.session
        if self.state is not Affordance.MENU or not session.filterable:
            return
        session.filter_text = text
        visible = session.visible_indices()
        session.highlighted_index = visible[0] if visible else None
        self._notify()

    def set_freeform_text(self, text: str) -> None:
        session = self.session
        if self.state is not Affordance.MENU:
            return
        session.freeform_text = text
        for index in session.visible_indices():
            if session.option_list[index].is_freeform_input:
                session.highlighted_index = index
                break
        self._notify()

    def commit(self) -> bool:
        """Commit the highlighted option. No highlighted option is a no-op."""

        if self.state is not Affordance.MENU or self.session.highlighted_option is None:
            return False
        return self.select_option(self.session.highlighted_index)

    def select_option(self, index: int) -> bool:
        session = self.session
        if self.state is not Affordance.MENU or index not in session.visible_indices():
            return False
        option = session.option_list[index]
        if option.is_freeform_input:
            value = session.freeform_text.strip()
            if not value:
                return False
            option = option.with_value(value)
        return self._apply(option)

    def _apply(self, option: OptionSpec) -> bool:
        anchor = self.session.anchor_match
        committed = True
        if option.on_select is not None:
            committed = self._replace(anchor, option.on_select)
        if committed:
            self._emit_select(anchor, option)
        self._reset()
        return committed

    def _replace(self, anchor: Match, on_select: OnSelect) -> bool:
        edit = apply_option(self._surface.get_text(), anchor, on_select)
        if edit is None:
            LOGGER.info("Discarding selection for %r: text changed under the menu", anchor.matched_text)
            return False
        new_text, cursor = edit
        self._committing = True
        try:
            self._surface.set_text(new_text, cursor)
            if self._request_rescan is not None:
                self._request_rescan()
        finally:
            self._committing = False
        return True

    # Rescans

    def text_changed(self) -> None:
        """React to an edit: pending tooltips die, and so does any open affordance."""

        self._cancel_pending()
        if self._committing:
            return
        if self.state is not Affordance.NONE:
            self._reset()

    def after_rescan(self, matches: Iterable[Match]) -> None:
        """Auto-open a menu for a menu match that appeared in this scan."""

        previous = self._menu_counts
        current: Counter = Counter()
        fresh: List[Match] = []
        for match in matches:
            if match.resolved or match.rule.affordance is not Affordance.MENU:
                continue
            key = _menu_key(match)
            current[key] += 1
            if current[key] > previous[key]:
                fresh.append(match)
        self._menu_counts = current

        if self._reseed_counts:
            self._reseed_counts = False
            return
        if self._committing or self._closed or not self._config.auto_open_menus:
            return
        if fresh and self.state is not Affordance.MENU:
            self.open_menu(fresh[-1])

    def configuration_changed(self) -> None:
        """Drop the session and occurrence counts tied to the replaced rules.

        The next rescan only records counts for the new rules; matches already
        in the text do not auto-open a menu.
        """

        self.dismiss()
        self._menu_counts = Counter()
        self._reseed_counts = True

    def teardown(self) -> None:
        self._cancel_pending()
        self.session.reset()
        self._listeners.clear()
        self._closed = True

    # Internals

    def _open_tooltip(self) -> None:
        match = self._pending_match
        self._pending_tooltip = None
        self._pending_match = None
        if match is None or self._closed or self.state is Affordance.MENU:
            return
        session = self.session
        session.reset()
        session.active_affordance = Affordance.TOOLTIP
        session.anchor_match = match
        self._notify()

    def _cancel_pending(self) -> None:
        if self._pending_tooltip is not None:
            self._pending_tooltip.cancel()
        self._pending_tooltip = None
        self._pending_match = None

    def _reset(self) -> None:
        self.session.reset()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.session)
            except Exception:
                LOGGER.exception("Interaction listener failed")

    def _emit_hover(self, match: Match) -> None:
        if self._callbacks.on_hover is None:
            return
        try:
            self._callbacks.on_hover(match)
        except Exception:
            LOGGER.exception("on_hover callback failed")

    def _emit_select(self, match: Match, option: Optional[OptionSpec]) -> None:
        if self._callbacks.on_select is None:
            return
        try:
            self._callbacks.on_select(match, option)
        except Exception:
            LOGGER.exception("on_select callback failed")
