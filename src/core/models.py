"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any renderer-specific types.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class PatternKind(str, Enum):
    LITERAL = "literal"
    REGEX = "regex"


class Affordance(str, Enum):
    """Interaction attached to a match."""

    NONE = "none"
    TOOLTIP = "tooltip"
    MENU = "menu"


class HandlerKind(str, Enum):
    """Behavior variant resolved once per rule at compile time."""

    NOT_ALLOWED = "not-allowed"
    WARN = "show-warning"
    NOTICE = "show-notice"
    SELECT_ONE = "user-select-oneOf"
    SELECT_ONE_AND_WARN = "user-select-oneOf-and-warn"
    MENU_ONLY = "display-menu"
    MENU_WITH_LINK = "display-menu-with-uri"


class CommitMode(str, Enum):
    REPLACE = "replace"
    APPEND = "append"


# Joins a trigger and its appended resolution, e.g. "@client/Blackrock".
RESOLVED_SEPARATOR = "/"


@dataclass(frozen=True)
class OnSelect:
    """Text mutation performed when an option is committed."""

    replacement_text: str
    mode: CommitMode = CommitMode.REPLACE


@dataclass(frozen=True)
class OptionSpec:
    """One selectable entry of a trigger menu."""

    label: str
    value: str
    on_select: Optional[OnSelect] = None
    is_freeform_input: bool = False
    placeholder: str = ""
    uri: Optional[str] = None

    def with_value(self, value: str) -> "OptionSpec":
        """Synthesize the ad hoc option a freeform input commits."""

        return OptionSpec(
            label=value,
            value=value,
            on_select=OnSelect(value, CommitMode.APPEND),
        )


@dataclass(frozen=True)
class TriggerRule:
    """Compiled trigger used by the scanner."""

    id: str
    pattern: str
    pattern_kind: PatternKind
    case_sensitive: bool
    whole_word: bool
    severity: Severity
    description: str
    block_submit: bool
    options: Tuple[OptionSpec, ...]
    filterable: bool
    category: str
    handler_kind: HandlerKind
    compiled: re.Pattern = field(compare=False, repr=False, default=None)

    @property
    def affordance(self) -> Affordance:
        if self.options:
            return Affordance.MENU
        if self.description:
            return Affordance.TOOLTIP
        return Affordance.NONE


@dataclass(frozen=True)
class Match:
    """A single located occurrence of a rule on one line."""

    rule: TriggerRule
    line_index: int
    start_col: int
    end_col: int
    matched_text: str
    resolved: bool = False

    @property
    def rule_id(self) -> str:
        return self.rule.id

    @property
    def severity(self) -> Severity:
        return self.rule.severity

    def overlaps(self, start: int, end: int) -> bool:
        return self.start_col < end and self.end_col > start


class SegmentKind(str, Enum):
    PLAIN = "plain"
    ANNOTATED = "annotated"


@dataclass(frozen=True)
class RenderData:
    """Everything a renderer needs for one annotated span."""

    match_text: str
    severity: Severity
    affordance: Affordance
    handler_kind: HandlerKind
    tooltip_title: Optional[str] = None
    tooltip_text: Optional[str] = None
    options: Tuple[OptionSpec, ...] = ()


@dataclass(frozen=True)
class Segment:
    """A contiguous run of a rendered line."""

    kind: SegmentKind
    text: str
    match: Optional[Match] = None
    render: Optional[RenderData] = None

    @property
    def is_annotated(self) -> bool:
        return self.kind is SegmentKind.ANNOTATED
