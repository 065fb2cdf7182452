"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InteractionConfig:
    """Tooltip timing, menu auto-open and popup placement settings."""

    tooltip_delay: float = 0.2
    auto_open_menus: bool = True
    menu_offset: int = 1
    edge_padding: int = 1


@dataclass(frozen=True)
class ValidationConfig:
    """Change detection used when reporting validation summaries."""

    change_detection: str = "counts"
