"""Trigger compilation (core domain).

A trigger document is organized by severity bucket. Each entry expands into
one compiled rule per phrase or pattern, and the resulting rules are ordered
longest pattern first so specific phrases are tried before short ones.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from core.handlers import resolve_handler_kind
from core.models import CommitMode, OnSelect, OptionSpec, PatternKind, Severity, TriggerRule

LOGGER = logging.getLogger(__name__)

DOCUMENT_WRAPPER_KEY = "tql-triggers"
DEFAULT_CATEGORY = "general"


@dataclass(frozen=True)
class CompileIssue:
    """A rule or bucket that was skipped while compiling."""

    bucket: str
    entry_index: Optional[int]
    pattern: Optional[str]
    reason: str


@dataclass(frozen=True)
class TriggerIndex:
    """Ordered, immutable set of compiled rules."""

    rules: Tuple[TriggerRule, ...] = ()
    issues: Tuple[CompileIssue, ...] = ()
    _by_id: Dict[str, TriggerRule] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def empty(cls) -> "TriggerIndex":
        return cls()

    @classmethod
    def from_rules(cls, rules: List[TriggerRule], issues: List[CompileIssue]) -> "TriggerIndex":
        return cls(tuple(rules), tuple(issues), {rule.id: rule for rule in rules})

    def get(self, rule_id: str) -> Optional[TriggerRule]:
        return self._by_id.get(rule_id)

    def __iter__(self) -> Iterator[TriggerRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)


def _build_options(raw_options: Any) -> Tuple[OptionSpec, ...]:
    if not isinstance(raw_options, list):
        return ()

    options: List[OptionSpec] = []
    for raw in raw_options:
        if isinstance(raw, str):
            options.append(OptionSpec(label=raw, value=raw))
            continue
        if not isinstance(raw, dict):
            continue
        uri = raw.get("uri") or None
        if raw.get("user-input"):
            placeholder = str(raw.get("placeholder", ""))
            options.append(
                OptionSpec(
                    label=str(raw.get("label", placeholder)),
                    value="",
                    is_freeform_input=True,
                    placeholder=placeholder,
                    uri=uri,
                )
            )
            continue
        label = str(raw.get("label", raw.get("value", "")))
        on_select = None
        raw_select = raw.get("on-select")
        if isinstance(raw_select, dict) and raw_select.get("display"):
            mode = CommitMode.APPEND if raw_select.get("mode") == "append" else CommitMode.REPLACE
            on_select = OnSelect(str(raw_select["display"]), mode)
        options.append(
            OptionSpec(
                label=label,
                value=str(raw.get("value", label)),
                on_select=on_select,
                uri=uri,
            )
        )
    return tuple(options)


def _description(entry: Mapping[str, Any], handler: Mapping[str, Any]) -> str:
    return str(entry.get("description") or handler.get("message") or handler.get("message-content") or "")


def _compile_entry(
    severity: Severity,
    entry_index: int,
    entry: Mapping[str, Any],
    issues: List[CompileIssue],
) -> List[TriggerRule]:
    handler = entry.get("handler") or {}
    if not isinstance(handler, dict):
        handler = {}
    category = str(entry.get("category") or DEFAULT_CATEGORY)
    options = _build_options(handler.get("options"))
    payload = dict(
        severity=severity,
        description=_description(entry, handler),
        block_submit=handler.get("block-submit") is True,
        options=options,
        filterable=handler.get("filter") is True,
        category=category,
        handler_kind=resolve_handler_kind(severity, category, options),
    )

    kind = entry.get("type")
    if kind == "regex":
        raw_patterns = entry.get("regex") or []
    elif kind == "match":
        raw_patterns = entry.get("match") or []
    else:
        issues.append(CompileIssue(severity.value, entry_index, None, f"unknown entry type: {kind!r}"))
        LOGGER.warning("Skipping %s entry %s with unknown type %r", severity.value, entry_index, kind)
        return []
    if not isinstance(raw_patterns, list):
        issues.append(CompileIssue(severity.value, entry_index, None, f"{kind} must be a list"))
        LOGGER.warning("Skipping %s entry %s: %r must be a list", severity.value, entry_index, kind)
        return []

    rules: List[TriggerRule] = []
    for pattern_index, raw_pattern in enumerate(raw_patterns):
        rule_id = f"{severity.value}-{category}-{entry_index}.{pattern_index}"
        if not isinstance(raw_pattern, str) or not raw_pattern:
            issues.append(CompileIssue(severity.value, entry_index, None, "empty pattern"))
            LOGGER.warning("Skipping empty pattern in %s entry %s", severity.value, entry_index)
            continue

        if kind == "regex":
            try:
                compiled = re.compile(raw_pattern)
            except re.error as exc:
                issues.append(CompileIssue(severity.value, entry_index, raw_pattern, f"invalid regex: {exc}"))
                LOGGER.warning("Dropping invalid regex %r: %s", raw_pattern, exc)
                continue
            rules.append(
                TriggerRule(
                    id=rule_id,
                    pattern=raw_pattern,
                    pattern_kind=PatternKind.REGEX,
                    case_sensitive=True,
                    whole_word=False,
                    compiled=compiled,
                    **payload,
                )
            )
        else:
            # Literal phrases are searched through an escaped pattern so columns
            # always index the original line, whatever the case folding does.
            rules.append(
                TriggerRule(
                    id=rule_id,
                    pattern=raw_pattern,
                    pattern_kind=PatternKind.LITERAL,
                    case_sensitive=False,
                    whole_word=True,
                    compiled=re.compile(re.escape(raw_pattern), re.IGNORECASE),
                    **payload,
                )
            )
    return rules


def build_index(document: Optional[Mapping[str, Any]]) -> TriggerIndex:
    """Compile a trigger document into an ordered TriggerIndex.

    Malformed buckets, entries and patterns are skipped and reported as
    CompileIssue records; the remaining rules still compile.
    """

    issues: List[CompileIssue] = []
    rules: List[TriggerRule] = []

    if isinstance(document, Mapping) and isinstance(document.get(DOCUMENT_WRAPPER_KEY), Mapping):
        document = document[DOCUMENT_WRAPPER_KEY]
    if not isinstance(document, Mapping):
        LOGGER.warning("Trigger document must be an object, got %s", type(document).__name__)
        issues.append(CompileIssue("", None, None, "document is not an object"))
        return TriggerIndex.from_rules(rules, issues)

    for bucket, entries in document.items():
        if str(bucket).startswith("$"):
            continue
        try:
            severity = Severity(bucket)
        except ValueError:
            issues.append(CompileIssue(str(bucket), None, None, "unknown severity bucket"))
            LOGGER.warning("Skipping unknown severity bucket %r", bucket)
            continue
        if not isinstance(entries, list):
            issues.append(CompileIssue(severity.value, None, None, "bucket is not a list"))
            LOGGER.warning("Skipping %s bucket: expected a list", severity.value)
            continue
        for entry_index, entry in enumerate(entries):
            if not isinstance(entry, Mapping):
                issues.append(CompileIssue(severity.value, entry_index, None, "entry is not an object"))
                LOGGER.warning("Skipping %s entry %s: expected an object", severity.value, entry_index)
                continue
            rules.extend(_compile_entry(severity, entry_index, entry, issues))

    # Stable sort keeps document order among patterns of equal length.
    rules.sort(key=lambda rule: len(rule.pattern), reverse=True)
    LOGGER.info("Compiled %s trigger rules (%s skipped)", len(rules), len(issues))
    return TriggerIndex.from_rules(rules, issues)
