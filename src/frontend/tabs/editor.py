"""Editor tab: the annotated query editor."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple

from textual import on
from textual.containers import Container, Vertical
from textual.widgets import Static, TextArea

from adapters.overlay_formatting import format_summary
from adapters.textual_surface import TextAreaSurface, WidgetScheduler
from core.config import InteractionConfig, ValidationConfig
from core.handlers import render_data
from core.interaction import HostCallbacks, InteractionSession
from core.models import Affordance, Match, OptionSpec
from core.positioning import Rect, place_popup
from core.surface import AnnotatedSurface
from core.trigger_index import TriggerIndex
from core.validation import ValidationSummary
from ..widgets import (
    MENU_WIDTH,
    TOOLTIP_WIDTH,
    AnnotatedView,
    OptionMenu,
    TooltipPanel,
    TriggerTextArea,
)

LOGGER = logging.getLogger(__name__)


class EditorTab(Container):
    """Query editor with live trigger highlighting, tooltips, and menus."""

    BINDINGS = [("escape", "dismiss_popups", "Close popup")]

    def __init__(
        self,
        interaction_config: Optional[InteractionConfig] = None,
        validation_config: Optional[ValidationConfig] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._interaction_config = interaction_config or InteractionConfig()
        self._validation_config = validation_config or ValidationConfig()
        self._surface: Optional[AnnotatedSurface] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._pointer: Optional[Tuple[Match, int, int]] = None
        self._shown: Optional[Tuple[Affordance, Optional[Match]]] = None

    def compose(self):
        with Vertical(id="editor-panel"):
            yield Static("Query", classes="section-title")
            yield TriggerTextArea(id="editor-text")
            yield Static("Annotations (hover for details, click for options)", classes="section-title")
            yield AnnotatedView(id="editor-preview")
            yield Static("", id="editor-status")
        yield TooltipPanel(id="tooltip")
        yield OptionMenu(id="option-menu")

    def on_mount(self) -> None:
        text_area = self.query_one("#editor-text", TriggerTextArea)
        callbacks = HostCallbacks(
            on_hover=self._on_hover,
            on_select=self._on_select,
            on_validation_change=self._on_validation_change,
        )
        self._surface = AnnotatedSurface(
            TextAreaSurface(text_area),
            WidgetScheduler(self),
            interaction_config=self._interaction_config,
            validation_config=self._validation_config,
            callbacks=callbacks,
        )
        machine = self._surface.interaction
        text_area.key_handler = machine.handle_key
        self.query_one(OptionMenu).bind_keys(machine.handle_key)
        self._unsubscribe = machine.subscribe(self._on_session)
        self.query_one("#tooltip", TooltipPanel).display = False
        self.query_one("#option-menu", OptionMenu).display = False
        self._redraw()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        if self._surface is not None:
            self._surface.teardown()

    @property
    def surface(self) -> AnnotatedSurface:
        if self._surface is None:
            raise RuntimeError("Editor is not mounted")
        return self._surface

    @property
    def text(self) -> str:
        return self.query_one("#editor-text", TriggerTextArea).text

    def load_text(self, text: str) -> None:
        self.query_one("#editor-text", TriggerTextArea).load_text(text)
        self.surface.text_changed()
        self._redraw()

    async def load_triggers(
        self,
        fetch: Callable[[], Awaitable[Mapping[str, Any]]],
    ) -> Optional[TriggerIndex]:
        index = await self.surface.load_configuration_async(fetch)
        self._redraw()
        return index

    def has_blocking_errors(self) -> bool:
        return self.surface.has_blocking_errors()

    def blocking_messages(self) -> List[str]:
        messages = []
        for match in self.surface.matches:
            if not match.rule.block_submit:
                continue
            detail = match.rule.description or match.rule.severity.value
            messages.append(f"line {match.line_index + 1}: {match.matched_text!r} - {detail}")
        return messages

    # Surface events

    @on(TextArea.Changed, "#editor-text")
    def _on_text_changed(self, event: TextArea.Changed) -> None:
        self.surface.text_changed()
        self._redraw()
        self.app.mark_dirty()

    @on(AnnotatedView.Hovered)
    def _on_preview_hovered(self, event: AnnotatedView.Hovered) -> None:
        self._pointer = (event.match, event.x, event.y)
        self.surface.interaction.pointer_enter(event.match)

    @on(AnnotatedView.Left)
    def _on_preview_left(self, event: AnnotatedView.Left) -> None:
        self.surface.interaction.pointer_leave(event.match)

    @on(AnnotatedView.Clicked)
    def _on_preview_clicked(self, event: AnnotatedView.Clicked) -> None:
        machine = self.surface.interaction
        if event.match is None:
            machine.outside_click()
            return
        self._pointer = (event.match, event.x, event.y)
        machine.click(event.match)

    @on(TooltipPanel.Left)
    def _on_tooltip_left(self) -> None:
        self.surface.interaction.tooltip_leave()

    @on(OptionMenu.Picked)
    def _on_option_picked(self, event: OptionMenu.Picked) -> None:
        self.surface.interaction.select_option(event.index)

    @on(OptionMenu.FilterChanged)
    def _on_filter_changed(self, event: OptionMenu.FilterChanged) -> None:
        self.surface.interaction.set_filter(event.value)

    @on(OptionMenu.FreeformChanged)
    def _on_freeform_changed(self, event: OptionMenu.FreeformChanged) -> None:
        self.surface.interaction.set_freeform_text(event.value)

    def on_descendant_blur(self) -> None:
        # Focus has not moved yet when the blur arrives.
        self.call_after_refresh(self._check_focus)

    def _check_focus(self) -> None:
        if self._surface is None:
            return
        focused = self.app.focused
        if focused is self.query_one("#editor-text", TriggerTextArea):
            return
        menu = self.query_one("#option-menu", OptionMenu)
        in_menu = focused is not None and menu in focused.ancestors
        self._surface.interaction.blur(focus_in_menu=in_menu)

    def action_dismiss_popups(self) -> None:
        self.surface.interaction.dismiss()

    # Host callbacks

    def _on_hover(self, match: Match) -> None:
        LOGGER.debug("Hover on %r (%s)", match.matched_text, match.rule_id)

    def _on_select(self, match: Match, option: Optional[OptionSpec]) -> None:
        if option is None:
            return
        LOGGER.info("Selected %r for %r", option.label, match.matched_text)
        if option.uri:
            self.app.notify(option.uri, title=option.label)

    def _on_validation_change(self, summary: ValidationSummary) -> None:
        self._update_status(summary)

    # Rendering

    def _redraw(self) -> None:
        if self._surface is None:
            return
        self.query_one("#editor-preview", AnnotatedView).show_lines(self._surface.lines)
        self._update_status(self._surface.summary)

    def _update_status(self, summary: ValidationSummary) -> None:
        status = self.query_one("#editor-status", Static)
        status.remove_class("status-error", "status-loaded")
        status.add_class("status-error" if summary.has_blocking_error else "status-loaded")
        status.update(format_summary(summary))

    def _on_session(self, session: InteractionSession) -> None:
        tooltip = self.query_one("#tooltip", TooltipPanel)
        menu = self.query_one("#option-menu", OptionMenu)
        state = session.active_affordance
        previous = self._shown
        self._shown = (state, session.anchor_match)

        if state is Affordance.TOOLTIP and session.anchor_match is not None:
            menu.display = False
            tooltip.clear_severity()
            height = tooltip.show_render(render_data(session.anchor_match))
            self._place(tooltip, session.anchor_match, TOOLTIP_WIDTH, height)
            tooltip.display = True
            return

        tooltip.display = False
        if state is Affordance.MENU and session.anchor_match is not None:
            height = menu.show_session(session)
            if previous != self._shown:
                self._place(menu, session.anchor_match, MENU_WIDTH, height)
                menu.display = True
                # Menus opened while typing leave focus in the editor.
                if session.filterable and session.opened_by_click:
                    menu.query_one("#menu-filter").focus()
            return

        focus_was_in_menu = menu.display and self.app.focused is not None and menu in self.app.focused.ancestors
        menu.display = False
        menu.forget()
        if focus_was_in_menu:
            self.query_one("#editor-text", TriggerTextArea).focus()

    def _anchor_point(self, match: Match) -> Tuple[int, int]:
        if self._pointer is not None and self._pointer[0] == match:
            return self._pointer[1], self._pointer[2]
        # Menus opened while typing hang off the caret.
        offset = self.query_one("#editor-text", TriggerTextArea).cursor_screen_offset
        return offset.x, offset.y

    def _place(self, widget, match: Match, width: int, height: int) -> None:
        x, y = self._anchor_point(match)
        origin = self.region
        anchor = Rect(x - origin.x, y - origin.y, max(1, len(match.matched_text)), 1)
        viewport = Rect(0, 0, self.size.width, self.size.height)
        point = place_popup(
            anchor,
            width,
            height,
            viewport,
            offset=self._interaction_config.menu_offset,
            padding=self._interaction_config.edge_padding,
        )
        widget.styles.width = width
        widget.styles.height = height
        widget.styles.offset = (point.left, point.top)
