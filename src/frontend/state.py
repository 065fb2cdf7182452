"""State container for the edited query and trigger loading."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class EditorState:
    file_path: Path | None = None
    saved_text: str = ""
    dirty: bool = False
    trigger_source: str = ""
    rule_count: int = 0
    error: str | None = None
