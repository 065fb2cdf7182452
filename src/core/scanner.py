"""Trigger scanning (core domain).

Scanning is a pure function of the text and the compiled index. Each line is
scanned independently; within a line, rules are tried in index order and a
candidate overlapping any already accepted match is discarded, so the first
accepted match wins rather than the longest.
"""

from __future__ import annotations

import logging
import string
from typing import Iterable, Iterator, List, Tuple

from core.models import RESOLVED_SEPARATOR, Match, PatternKind, TriggerRule
from core.trigger_index import TriggerIndex

LOGGER = logging.getLogger(__name__)

WORD_CHARS = frozenset(string.ascii_letters + string.digits + "_")


def _is_word_char(char: str) -> bool:
    return char in WORD_CHARS


def is_whole_word(line: str, start: int, end: int) -> bool:
    """Return True when [start, end) is bounded by non-word characters.

    A "/" directly after the match counts as a boundary (a trigger followed by
    its resolution). A "/" before the match is an ordinary non-word character.
    """

    if start > 0 and _is_word_char(line[start - 1]):
        return False
    if end < len(line):
        after = line[end]
        if after == RESOLVED_SEPARATOR:
            return True
        if _is_word_char(after):
            return False
    return True


def _find_literal(line: str, rule: TriggerRule) -> Iterator[Tuple[int, int]]:
    position = 0
    while position <= len(line):
        found = rule.compiled.search(line, position)
        if found is None:
            return
        start, end = found.span()
        if end == start:
            return
        if rule.whole_word and not is_whole_word(line, start, end):
            position = start + 1
            continue
        yield start, end
        position = end


def _find_regex(line: str, rule: TriggerRule) -> Iterator[Tuple[int, int]]:
    for found in rule.compiled.finditer(line):
        start, end = found.span()
        # Zero-width hits have nothing to annotate.
        if end > start:
            yield start, end


def _find(line: str, rule: TriggerRule) -> Iterator[Tuple[int, int]]:
    if rule.pattern_kind is PatternKind.REGEX:
        return _find_regex(line, rule)
    return _find_literal(line, rule)


def scan_line(line: str, line_index: int, rules: Iterable[TriggerRule]) -> List[Match]:
    """Return the accepted, column-sorted matches for a single line."""

    if not line:
        return []

    accepted: List[Match] = []
    for rule in rules:
        for start, end in _find(line, rule):
            if any(existing.overlaps(start, end) for existing in accepted):
                continue
            resolved = rule.pattern_kind is PatternKind.LITERAL and line[end:end + 1] == RESOLVED_SEPARATOR
            accepted.append(
                Match(
                    rule=rule,
                    line_index=line_index,
                    start_col=start,
                    end_col=end,
                    matched_text=line[start:end],
                    resolved=resolved,
                )
            )

    accepted.sort(key=lambda match: match.start_col)
    return accepted


def scan(text: str, index: TriggerIndex) -> List[Match]:
    """Scan multi-line text and return all matches, line by line."""

    if not index.rules:
        return []

    matches: List[Match] = []
    for line_index, line in enumerate(text.split("\n")):
        matches.extend(scan_line(line, line_index, index.rules))

    if matches:
        LOGGER.debug("Found %s matches", len(matches))
    return matches
