"""Overlay projection (core domain).

Projection turns raw text plus a match list into per-line segments. Joining
the segment texts of a line always reproduces the line exactly, so any
renderer built on top stays aligned with the underlying text.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from core.handlers import render_data
from core.models import Match, Segment, SegmentKind


def project_line(line: str, line_matches: Iterable[Match]) -> List[Segment]:
    """Split one line into plain and annotated segments."""

    if not line:
        return [Segment(SegmentKind.PLAIN, "")]

    segments: List[Segment] = []
    cursor = 0
    for match in sorted(line_matches, key=lambda item: item.start_col):
        start, end = match.start_col, min(match.end_col, len(line))
        # Matches that do not fit the current line are left as plain text.
        if start < cursor or start >= end:
            continue
        if start > cursor:
            segments.append(Segment(SegmentKind.PLAIN, line[cursor:start]))
        segments.append(
            Segment(
                SegmentKind.ANNOTATED,
                line[start:end],
                match=match,
                render=render_data(match),
            )
        )
        cursor = end

    if cursor < len(line):
        segments.append(Segment(SegmentKind.PLAIN, line[cursor:]))
    return segments


def project(text: str, matches: Sequence[Match]) -> List[List[Segment]]:
    """Return the segments of every line of text, outer index = line."""

    by_line: Dict[int, List[Match]] = {}
    for match in matches:
        by_line.setdefault(match.line_index, []).append(match)

    return [project_line(line, by_line.get(index, ())) for index, line in enumerate(text.split("\n"))]


def join_line(segments: Iterable[Segment]) -> str:
    return "".join(segment.text for segment in segments)


def annotated_segments(lines: Iterable[Iterable[Segment]]) -> List[Segment]:
    """Flatten projected lines to their annotated segments, in reading order."""

    return [segment for line in lines for segment in line if segment.is_annotated]
