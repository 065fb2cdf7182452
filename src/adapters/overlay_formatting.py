"""Shared overlay formatting helpers.

Keeping formatting here prevents drift between renderers: the terminal
preview, the HTML export and the plain text report all consume the same
projected segments.
"""

from __future__ import annotations

import html
from typing import Iterable, List, Sequence

from rich.style import Style
from rich.text import Text

from core.models import Affordance, Segment, Severity
from core.validation import ValidationSummary

SEVERITY_STYLES = {
    Severity.ERROR: "bold #f87171 on #3b1212",
    Severity.WARNING: "#fbbf24 on #3a2a0a",
    Severity.INFO: "#34d399 on #0b2e22",
}

AFFORDANCE_DECORATION = {
    Affordance.NONE: "",
    Affordance.TOOLTIP: "underline",
    Affordance.MENU: "underline bold",
}

HTML_LINE_CLASS = "ql-line"
HTML_MATCH_CLASS = "ql-match"


def segment_style(segment: Segment) -> str:
    render = segment.render
    if render is None:
        return ""
    decoration = AFFORDANCE_DECORATION[render.affordance]
    base = SEVERITY_STYLES[render.severity]
    return f"{base} {decoration}".strip()


def _format_rich(lines: Sequence[Sequence[Segment]]) -> Text:
    """Create a rich Text with one styled span per annotated segment.

    Each annotated span carries meta["match"], its ordinal among annotated
    segments, so pointer events can be routed back to the match.
    """

    text = Text(no_wrap=False, end="")
    ordinal = 0
    for line_index, segments in enumerate(lines):
        if line_index:
            text.append("\n")
        for segment in segments:
            if not segment.is_annotated:
                text.append(segment.text)
                continue
            style = Style.parse(segment_style(segment)) + Style(meta={"match": ordinal})
            text.append(segment.text, style=style)
            ordinal += 1
    return text


def _format_html(lines: Sequence[Sequence[Segment]]) -> str:
    """Create escaped HTML, one block per line, annotated runs as spans."""

    parts: List[str] = []
    for segments in lines:
        body: List[str] = []
        for segment in segments:
            if not segment.is_annotated:
                body.append(html.escape(segment.text, quote=False))
                continue
            match = segment.match
            render = segment.render
            attrs = [
                f'class="{HTML_MATCH_CLASS} {HTML_MATCH_CLASS}-{render.severity.value}"',
                f'data-rule-id="{html.escape(match.rule_id)}"',
                f'data-match-text="{html.escape(match.matched_text)}"',
                f'data-behavior="{render.affordance.value}"',
                f'data-handler="{render.handler_kind.value}"',
                f'data-line="{match.line_index}"',
                f'data-col="{match.start_col}"',
            ]
            if render.tooltip_text:
                attrs.append(f'title="{html.escape(render.tooltip_text)}"')
            body.append(f"<span {' '.join(attrs)}>{html.escape(segment.text, quote=False)}</span>")
        content = "".join(body) or "&nbsp;"
        parts.append(f'<div class="{HTML_LINE_CLASS}">{content}</div>')
    return "\n".join(parts)


def _format_plain(lines: Sequence[Sequence[Segment]]) -> str:
    """Bracket annotated runs, e.g. "ping [@client] now"."""

    rendered: List[str] = []
    for segments in lines:
        rendered.append(
            "".join(f"[{segment.text}]" if segment.is_annotated else segment.text for segment in segments)
        )
    return "\n".join(rendered)


def format_overlay(lines: Sequence[Sequence[Segment]], mode: str):
    """Return the overlay formatted for the requested mode."""

    if mode == "rich":
        return _format_rich(lines)
    if mode == "html":
        return _format_html(lines)
    if mode == "plain":
        return _format_plain(lines)
    raise ValueError(f"Unsupported overlay format: {mode}")


def format_summary(summary: ValidationSummary) -> str:
    """One-line validation status used by the editor and the CLI."""

    errors, warnings, info = len(summary.errors), len(summary.warnings), len(summary.info)
    status = "blocked" if summary.has_blocking_error else "ok"
    return f"{status} | errors: {errors} warnings: {warnings} info: {info}"


def describe_matches(lines: Iterable[Iterable[Segment]]) -> List[str]:
    """Human-readable match listing, one line per annotated segment."""

    listing: List[str] = []
    for segments in lines:
        for segment in segments:
            if not segment.is_annotated:
                continue
            match = segment.match
            render = segment.render
            entry = (
                f"{match.line_index + 1}:{match.start_col + 1} {render.severity.value:<7} "
                f"{match.matched_text!r} ({render.handler_kind.value}, {render.affordance.value})"
            )
            if render.tooltip_text:
                entry += f" - {render.tooltip_text}"
            listing.append(entry)
    return listing
