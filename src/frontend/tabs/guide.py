"""Guide tab with editor usage notes."""

from __future__ import annotations

from rich.text import Text
from textual.containers import VerticalScroll
from textual.widgets import Static

GUIDE = """\
Editing
  Type the query in the editor. Trigger phrases are highlighted below it as you type:
  red blocks submit, amber asks for clarification, green links to extra context.

Tooltips
  Hover a highlighted phrase to read its message. Move onto the tooltip and away to close it.

Menus
  Click a phrase with options, or type one, to open its menu.
  Up/Down move the highlight, Enter picks it, Escape closes the menu.
  Menus with a filter field narrow the options as you type. A clicked menu
  focuses its filter; a menu opened while typing leaves the cursor in the query.
  A typed value is appended to the phrase as phrase/value.

Keys
  ctrl+s  submit (saves the file unless a trigger blocks it)
  ctrl+r  reload trigger rules
  ctrl+q  quit
"""


class GuideTab(VerticalScroll):
    def compose(self):
        yield Static(Text(GUIDE), classes="guide")
