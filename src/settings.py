"""Static configuration for querylens.

All user-editable settings (trigger source, interaction timing, validation
mode, logging) live in a single JSON file for quick edits without touching
Python.
"""

import json
import os

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits at the project root unless QUERYLENS_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("QUERYLENS_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json; a missing file means every setting keeps its default."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        loaded = json.load(handle)
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be an object: {CONFIG_PATH}")
    return loaded


def _resolve_path(path: str) -> str:
    if not path or os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Trigger document source. A URL wins over the local file when both are set.
_triggers = _CONFIG.get("triggers", {})
TRIGGERS_PATH = _resolve_path(_triggers.get("path", "triggers.json"))
TRIGGERS_URL = os.getenv("QUERYLENS_TRIGGERS_URL") or _triggers.get("url") or None
TRIGGERS_TIMEOUT = float(_triggers.get("timeout_seconds", 10))

# Interaction timing and popup placement.
# - TOOLTIP_DELAY_MS: hover debounce before a tooltip opens
# - AUTO_OPEN_MENUS: open the menu of a freshly typed menu trigger
# - MENU_OFFSET / EDGE_PADDING: popup gap to the anchor and to the viewport edge
_interaction = _CONFIG.get("interaction", {})
TOOLTIP_DELAY_MS = int(_interaction.get("tooltip_delay_ms", 200))
AUTO_OPEN_MENUS = bool(_interaction.get("auto_open_menus", True))
MENU_OFFSET = int(_interaction.get("menu_offset", 1))
EDGE_PADDING = int(_interaction.get("edge_padding", 1))

# "counts" reports validation changes when bucket sizes move; "identity" also
# reports when the matched phrases change at equal counts.
_validation = _CONFIG.get("validation", {})
CHANGE_DETECTION = _validation.get("change_detection", "counts")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
