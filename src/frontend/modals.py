"""Modal dialogs for the Textual editor."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class UnsavedChangesScreen(ModalScreen[str]):
    """Prompt when exiting with unsaved query changes."""

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Unsaved changes", classes="modal-title"),
            Static("Save the query before exit?", classes="modal-body"),
            Horizontal(
                Button("Save", id="unsaved-save", variant="success"),
                Button("Discard", id="unsaved-discard", variant="error"),
                Button("Cancel", id="unsaved-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "unsaved-save":
            self.dismiss("save")
        elif event.button.id == "unsaved-discard":
            self.dismiss("discard")
        else:
            self.dismiss("cancel")


class BlockedSubmitScreen(ModalScreen[None]):
    """Explain why the query cannot be submitted."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__()
        self._messages = messages or ["The query contains a blocking trigger."]

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Submit blocked", classes="modal-title"),
            Static("Resolve these before submitting:", classes="modal-body"),
            Static(Text("\n".join(f"- {message}" for message in self._messages)), classes="modal-error"),
            Horizontal(
                Button("Back to editor", id="blocked-back", variant="primary"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--form",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(None)
