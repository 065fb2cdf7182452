"""Main Textual app for the querylens editor."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Center, Container, Horizontal, Vertical
from textual.widgets import Button, ContentSwitcher, Footer, Static, Tab, Tabs

from core.config import InteractionConfig, ValidationConfig
from .constants import LENS_TEAL
from .modals import BlockedSubmitScreen, UnsavedChangesScreen
from .state import EditorState
from .tabs.editor import EditorTab
from .tabs.guide import GuideTab
from .tabs.triggers import TriggersTab

LOGGER = logging.getLogger(__name__)

DocumentFetch = Callable[[], Awaitable[Mapping[str, Any]]]


class QueryLensApp(App):
    """Annotated query editor with trigger overview and guide tabs."""

    def __init__(
        self,
        fetch_triggers: DocumentFetch,
        trigger_source: str = "",
        file_path: Optional[str] = None,
        interaction_config: Optional[InteractionConfig] = None,
        validation_config: Optional[ValidationConfig] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._fetch_triggers = fetch_triggers
        self._interaction_config = interaction_config
        self._validation_config = validation_config
        self.editor_state = EditorState(
            file_path=Path(file_path) if file_path else None,
            trigger_source=trigger_source,
        )

    BINDINGS = [
        ("ctrl+s", "submit", "Submit"),
        ("ctrl+r", "reload_triggers", "Reload triggers"),
        ("ctrl+q", "request_quit", "Quit"),
    ]

    CSS_PATH = "app.tcss"

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal(id="header-row"):
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                    yield Static(self._file_label(), id="header-file", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static(f"triggers: {self.editor_state.trigger_source}", classes="subtle")
                    yield Static("", id="header-status")
                    yield Horizontal(
                        Button("Submit", id="submit-btn"),
                        Button("Reload", id="reload-btn"),
                        id="header-actions",
                    )

        with Container(id="tabs-bar"):
            with Center(id="tabs-center"):
                yield Tabs(
                    Tab("Editor", id="editor"),
                    Tab("Triggers", id="triggers"),
                    Tab("Guide", id="guide"),
                    id="tabs",
                )

        with ContentSwitcher(id="content"):
            yield EditorTab(
                interaction_config=self._interaction_config,
                validation_config=self._validation_config,
                id="editor",
            )
            yield TriggersTab(id="triggers")
            yield GuideTab(id="guide")
        yield Footer()

    def on_mount(self) -> None:
        self._set_active_tab("editor")

    def on_ready(self) -> None:
        self._load_file()
        self.action_reload_triggers()

    def on_tabs_tab_activated(self, event: Tabs.TabActivated) -> None:
        tab_id = event.tab.id or ""
        if not tab_id:
            label = event.tab.label
            if hasattr(label, "plain"):
                label = label.plain
            tab_id = str(label).strip().lower()
        self._set_active_tab(tab_id)

    def _set_active_tab(self, tab_id: str) -> None:
        switcher = self.query_one("#content", ContentSwitcher)
        switcher.current = tab_id

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "submit-btn":
            self.action_submit()
        elif event.button.id == "reload-btn":
            self.action_reload_triggers()

    def action_submit(self) -> None:
        self._submit()

    def action_reload_triggers(self) -> None:
        self.run_worker(self._reload_triggers(), exclusive=True, group="triggers")

    def action_request_quit(self) -> None:
        if self.editor_state.dirty:
            self.push_screen(UnsavedChangesScreen(), self._handle_exit_choice)
        else:
            self.exit()

    def _handle_exit_choice(self, choice: str | None) -> None:
        if choice == "save":
            if self._submit():
                self.exit()
        elif choice == "discard":
            self.exit()

    async def _reload_triggers(self) -> None:
        editor = self.query_one(EditorTab)
        index = await editor.load_triggers(self._fetch_triggers)
        if index is None:
            self.editor_state.error = "trigger load failed (see log)"
        else:
            self.editor_state.error = None
            self.editor_state.rule_count = len(index)
            self.query_one(TriggersTab).show_index(index)
        self._refresh_header()

    def _load_file(self) -> None:
        path = self.editor_state.file_path
        text = ""
        if path is not None and path.exists():
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as exc:
                self.editor_state.error = f"open failed: {exc.strerror or exc}"
        self.editor_state.saved_text = text
        self.editor_state.dirty = False
        self.query_one(EditorTab).load_text(text)
        self._refresh_header()

    def _submit(self) -> bool:
        editor = self.query_one(EditorTab)
        if editor.has_blocking_errors():
            self.push_screen(BlockedSubmitScreen(editor.blocking_messages()))
            return False
        path = self.editor_state.file_path
        text = editor.text
        if path is None:
            self.notify("Query accepted. Open a file to keep it: querylens edit FILE", title="Submit")
            return True
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            self.editor_state.error = f"save failed: {exc.strerror or exc}"
            self._refresh_header()
            return False
        LOGGER.info("Saved query to %s", path)
        self.editor_state.saved_text = text
        self.editor_state.dirty = False
        self.editor_state.error = None
        self._refresh_header()
        return True

    def mark_dirty(self) -> None:
        try:
            text = self.query_one(EditorTab).text
        except Exception:
            return
        self.editor_state.dirty = text != self.editor_state.saved_text
        self._refresh_header()

    def _refresh_header(self) -> None:
        status = self.query_one("#header-status", Static)
        status.remove_class("status-loaded", "status-modified", "status-error")
        if self.editor_state.error:
            status.update(self.editor_state.error)
            status.add_class("status-error")
        elif self.editor_state.dirty:
            status.update(f"query: modified * | rules: {self.editor_state.rule_count}")
            status.add_class("status-modified")
        else:
            status.update(f"query: saved | rules: {self.editor_state.rule_count}")
            status.add_class("status-loaded")

    def _file_label(self) -> str:
        path = self.editor_state.file_path
        return f"file: {path}" if path else "file: (unsaved query)"

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("QUERY", LENS_TEAL),
            ("LENS > Annotated editor", "bold"),
        )
