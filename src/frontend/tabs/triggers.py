"""Triggers tab: compiled rules, compile issues, and a tester."""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text
from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Static, TextArea

from adapters.overlay_formatting import describe_matches
from core.models import TriggerRule
from core.projector import project
from core.scanner import scan
from core.trigger_index import TriggerIndex


class TriggersTab(Container):
    """Read-only view of the loaded trigger index."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._index = TriggerIndex.empty()
        self._table_ready = False

    def compose(self):
        with Vertical(id="triggers-panel"):
            with Horizontal(id="triggers-body"):
                with Container(id="triggers-left"):
                    yield DataTable(id="triggers-table", cursor_type="row")
                with Container(id="triggers-right"):
                    yield Static("Trigger detail", id="triggers-title")
                    yield Static("", id="trigger-detail")
                    yield Static("Compile issues", classes="form-label")
                    yield Static("", id="trigger-issues")
                    yield Static("Trigger tester", id="triggers-test-title")
                    yield TextArea(id="trigger-test-text")
                    with Horizontal(id="triggers-test-actions"):
                        yield Button("Test", id="trigger-test", variant="primary")
                    yield Static("", id="trigger-test-result")

    def on_mount(self) -> None:
        table = self.query_one("#triggers-table", DataTable)
        table.add_column("severity", key="severity", width=9)
        table.add_column("kind", key="kind", width=8)
        table.add_column("pattern", key="pattern", width=28)
        table.add_column("handler", key="handler", width=22)
        table.zebra_stripes = True
        self.query_one("#triggers-test-actions").styles.height = 3
        self._table_ready = True
        self.show_index(self._index)

    def show_index(self, index: TriggerIndex) -> None:
        self._index = index
        if not self._table_ready:
            return
        table = self.query_one("#triggers-table", DataTable)
        table.clear()
        for rule in index:
            table.add_row(
                rule.severity.value,
                rule.pattern_kind.value,
                rule.pattern,
                rule.handler_kind.value,
                key=rule.id,
            )
        self._show_issues()
        self._show_detail(None)

    def _show_issues(self) -> None:
        issues = self.query_one("#trigger-issues", Static)
        if not self._index.issues:
            issues.update("None")
            return
        lines = []
        for issue in self._index.issues:
            location = issue.bucket if issue.entry_index is None else f"{issue.bucket}[{issue.entry_index}]"
            lines.append(f"- {location}: {issue.reason}")
        issues.update(Text("\n".join(lines)))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        row_key = event.row_key.value if hasattr(event.row_key, "value") else event.row_key
        self._show_detail(self._index.get(str(row_key)))

    def _show_detail(self, rule: Optional[TriggerRule]) -> None:
        detail = self.query_one("#trigger-detail", Static)
        if rule is None:
            detail.update("Select a trigger to see its handler.")
            return
        lines = [
            f"id: {rule.id}",
            f"category: {rule.category}",
            f"behavior: {rule.affordance.value}",
            f"blocks submit: {'yes' if rule.block_submit else 'no'}",
        ]
        if rule.description:
            lines.append(f"message: {rule.description}")
        if rule.options:
            lines.append("options:" + (" (filterable)" if rule.filterable else ""))
            for option in rule.options:
                if option.is_freeform_input:
                    lines.append(f"  - {option.label or option.placeholder} (typed value, appended)")
                elif option.on_select is not None:
                    lines.append(f"  - {option.label} -> {option.on_select.replacement_text!r} ({option.on_select.mode.value})")
                else:
                    lines.append(f"  - {option.label}")
        detail.update(Text("\n".join(lines)))

    @on(Button.Pressed, "#trigger-test")
    def _on_test(self) -> None:
        test_text = self.query_one("#trigger-test-text", TextArea).text
        result = self.query_one("#trigger-test-result", Static)
        if not test_text.strip():
            result.update("Add test text to run.")
            return
        if not len(self._index):
            result.update("No trigger rules loaded.")
            return
        listing = describe_matches(project(test_text, scan(test_text, self._index)))
        if not listing:
            result.update("Not matched")
            return
        lines = [f"Matched {len(listing)} trigger(s):"]
        lines.extend(f"- {entry}" for entry in listing)
        result.update(Text("\n".join(lines)))
