"""Validation aggregation (core domain)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from core.models import Match, Severity

LOGGER = logging.getLogger(__name__)

CHANGE_DETECTION_MODES = ("counts", "identity")


@dataclass(frozen=True)
class ValidationSummary:
    """Matches bucketed by severity plus the submit-blocking flag."""

    has_blocking_error: bool = False
    errors: Tuple[Match, ...] = ()
    warnings: Tuple[Match, ...] = ()
    info: Tuple[Match, ...] = ()

    def counts(self) -> Tuple[bool, int, int, int]:
        return self.has_blocking_error, len(self.errors), len(self.warnings), len(self.info)

    def identity(self) -> Tuple[object, ...]:
        def keys(bucket: Tuple[Match, ...]) -> Tuple[Tuple[str, int, int, str], ...]:
            return tuple((m.rule_id, m.line_index, m.start_col, m.matched_text) for m in bucket)

        return self.has_blocking_error, keys(self.errors), keys(self.warnings), keys(self.info)


def summarize(matches: Iterable[Match]) -> ValidationSummary:
    """Bucket matches by severity; any blockSubmit rule blocks, whatever its bucket."""

    blocking = False
    buckets: dict[Severity, List[Match]] = {severity: [] for severity in Severity}
    for match in matches:
        if match.rule.block_submit:
            blocking = True
        buckets[match.severity].append(match)
    return ValidationSummary(
        has_blocking_error=blocking,
        errors=tuple(buckets[Severity.ERROR]),
        warnings=tuple(buckets[Severity.WARNING]),
        info=tuple(buckets[Severity.INFO]),
    )


class ValidationAggregator:
    """Keeps the last reported summary and reports only on change.

    The default "counts" mode compares (blocking, #errors, #warnings, #info),
    so replacing one error with another at a different place goes unreported.
    "identity" mode compares the matches themselves.
    """

    def __init__(self, change_detection: str = "counts") -> None:
        if change_detection not in CHANGE_DETECTION_MODES:
            raise ValueError(f"Unsupported change detection: {change_detection}")
        self._mode = change_detection
        self._last = ValidationSummary()

    @property
    def last(self) -> ValidationSummary:
        return self._last

    def _key(self, summary: ValidationSummary) -> Tuple[object, ...]:
        if self._mode == "identity":
            return summary.identity()
        return summary.counts()

    def update(self, matches: Iterable[Match]) -> Optional[ValidationSummary]:
        """Return the new summary if it differs from the last report, else None."""

        summary = summarize(matches)
        if self._key(summary) == self._key(self._last):
            return None
        self._last = summary
        LOGGER.debug(
            "Validation changed: blocking=%s errors=%s warnings=%s info=%s",
            *summary.counts(),
        )
        return summary

    def reset(self) -> Optional[ValidationSummary]:
        return self.update(())

    def has_blocking_errors(self) -> bool:
        return self._last.has_blocking_error
