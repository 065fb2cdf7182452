"""Widgets for the annotated editor."""

from __future__ import annotations

import textwrap
from typing import Callable, List, Optional

from rich.style import Style
from rich.text import Text
from textual import events, on
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Input, OptionList, Static, TextArea

from adapters.overlay_formatting import format_overlay
from core.interaction import InteractionSession
from core.models import Match, OptionSpec, RenderData, Segment
from core.projector import annotated_segments

KeyHandler = Callable[[str], bool]

TOOLTIP_WIDTH = 42
MENU_WIDTH = 38
MENU_MAX_ROWS = 8


class TriggerTextArea(TextArea):
    """TextArea that lets an open menu claim navigation keys first."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.key_handler: Optional[KeyHandler] = None

    async def _on_key(self, event: events.Key) -> None:
        if self.key_handler is not None and self.key_handler(event.key):
            event.prevent_default()
            event.stop()
            return
        await super()._on_key(event)


class MenuKeyInput(Input):
    """Menu input whose arrow, enter and escape keys drive the menu."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.key_handler: Optional[KeyHandler] = None

    async def _on_key(self, event: events.Key) -> None:
        if self.key_handler is not None and self.key_handler(event.key):
            event.prevent_default()
            event.stop()
            return
        await super()._on_key(event)


class AnnotatedView(Static):
    """Read-only rendering of the projected text with pointer routing."""

    class Hovered(Message):
        def __init__(self, match: Match, x: int, y: int) -> None:
            super().__init__()
            self.match = match
            self.x = x
            self.y = y

    class Left(Message):
        def __init__(self, match: Match) -> None:
            super().__init__()
            self.match = match

    class Clicked(Message):
        def __init__(self, match: Optional[Match], x: int, y: int) -> None:
            super().__init__()
            self.match = match
            self.x = x
            self.y = y

    def __init__(self, **kwargs) -> None:
        super().__init__("", **kwargs)
        self._matches: List[Match] = []
        self._hovered: Optional[Match] = None

    def show_lines(self, lines: List[List[Segment]]) -> None:
        self._matches = [segment.match for segment in annotated_segments(lines)]
        self._hovered = None
        self.update(format_overlay(lines, "rich"))

    def _match_at(self, style: Style) -> Optional[Match]:
        ordinal = style.meta.get("match") if style else None
        if ordinal is None or ordinal >= len(self._matches):
            return None
        return self._matches[ordinal]

    def on_mouse_move(self, event: events.MouseMove) -> None:
        match = self._match_at(event.style)
        if match == self._hovered:
            return
        if self._hovered is not None:
            self.post_message(self.Left(self._hovered))
        self._hovered = match
        if match is not None:
            self.post_message(self.Hovered(match, event.screen_x, event.screen_y))

    def on_leave(self, event: events.Leave) -> None:
        if self._hovered is not None:
            self.post_message(self.Left(self._hovered))
        self._hovered = None

    def on_click(self, event: events.Click) -> None:
        self.post_message(self.Clicked(self._match_at(event.style), event.screen_x, event.screen_y))


class TooltipPanel(Static):
    """Tooltip for description-only triggers."""

    class Left(Message):
        pass

    def show_render(self, data: RenderData) -> int:
        """Fill the panel and return the height it needs."""

        self.border_title = data.tooltip_title or ""
        self.set_class(True, f"tooltip-{data.severity.value}")
        body = data.tooltip_text or ""
        self.update(Text(body))
        wrapped = textwrap.wrap(body, TOOLTIP_WIDTH - 4) or [""]
        return len(wrapped) + 2

    def clear_severity(self) -> None:
        self.remove_class("tooltip-error", "tooltip-warning", "tooltip-info")

    def on_leave(self, event: events.Leave) -> None:
        self.post_message(self.Left())


def option_label(option: OptionSpec) -> str:
    if option.is_freeform_input:
        return f"{option.label or option.placeholder or 'Other'} ..."
    if option.uri:
        return f"{option.label}  -> {option.uri}"
    return option.label


class OptionMenu(Vertical):
    """Selection menu: optional filter, option list, optional freeform input."""

    class Picked(Message):
        def __init__(self, index: int) -> None:
            super().__init__()
            self.index = index

    class FilterChanged(Message):
        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    class FreeformChanged(Message):
        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._visible: List[int] = []
        self._anchor: Optional[Match] = None
        self._key_handler: Optional[KeyHandler] = None

    def compose(self):
        yield MenuKeyInput(placeholder="Filter options", id="menu-filter")
        yield OptionList(id="menu-options")
        yield MenuKeyInput(id="menu-freeform")

    def on_mount(self) -> None:
        # Keys stay with the editor or the filter; the list is driven by the session.
        self.query_one("#menu-options", OptionList).can_focus = False
        self._apply_key_handler()

    def bind_keys(self, handler: KeyHandler) -> None:
        self._key_handler = handler
        self._apply_key_handler()

    def _apply_key_handler(self) -> None:
        for field in self.query(MenuKeyInput):
            field.key_handler = self._key_handler

    def show_session(self, session: InteractionSession) -> int:
        """Redraw from the session and return the height the menu needs."""

        filter_input = self.query_one("#menu-filter", MenuKeyInput)
        freeform_input = self.query_one("#menu-freeform", MenuKeyInput)
        option_list = self.query_one("#menu-options", OptionList)

        if session.anchor_match != self._anchor:
            # A new menu starts with empty fields.
            self._anchor = session.anchor_match
            filter_input.value = ""
            freeform_input.value = ""

        self.border_title = session.anchor_match.matched_text if session.anchor_match else ""
        filter_input.display = session.filterable

        freeform = next((option for option in session.option_list if option.is_freeform_input), None)
        freeform_input.display = freeform is not None
        if freeform is not None:
            freeform_input.placeholder = freeform.placeholder or freeform.label

        self._visible = session.visible_indices()
        option_list.clear_options()
        option_list.add_options([option_label(session.option_list[index]) for index in self._visible])
        if session.highlighted_index in self._visible:
            option_list.highlighted = self._visible.index(session.highlighted_index)

        rows = min(max(len(self._visible), 1), MENU_MAX_ROWS)
        height = rows + 2
        if session.filterable:
            height += 3
        if freeform is not None:
            height += 3
        return height

    def forget(self) -> None:
        self._anchor = None
        self._visible = []

    @on(OptionList.OptionSelected, "#menu-options")
    def _on_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        if event.option_index < len(self._visible):
            self.post_message(self.Picked(self._visible[event.option_index]))

    @on(Input.Changed, "#menu-filter")
    def _on_filter_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.post_message(self.FilterChanged(event.value))

    @on(Input.Changed, "#menu-freeform")
    def _on_freeform_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.post_message(self.FreeformChanged(event.value))
