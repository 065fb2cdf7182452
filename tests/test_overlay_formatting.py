from __future__ import annotations

import pytest

from adapters.overlay_formatting import describe_matches, format_overlay, format_summary
from core.projector import project
from core.scanner import scan
from core.trigger_index import build_index
from core.validation import summarize

INDEX = build_index(
    {
        "error": [{"type": "match", "match": ["<drop>"], "handler": {"message": 'no "raw" tags', "block-submit": True}}],
        "info": [{"type": "match", "match": ["AUM"], "handler": {"message": "assets"}}],
    }
)


def _lines(text: str):
    return project(text, scan(text, INDEX))


def test_plain_marks_annotated_runs() -> None:
    assert format_overlay(_lines("AUM & <drop>\n\nend"), "plain") == "[AUM] & [<drop>]\n\nend"


def test_html_escapes_text_and_attributes() -> None:
    html = format_overlay(_lines("x < AUM <drop>\n"), "html")
    first, second = html.split("\n")
    assert first.startswith('<div class="ql-line">x &lt; <span ')
    assert 'data-rule-id="info-general-0.0"' in first
    assert 'data-match-text="&lt;drop&gt;"' in first
    assert 'title="no &quot;raw&quot; tags"' in first
    assert 'data-behavior="tooltip"' in first
    assert ">&lt;drop&gt;</span>" in first
    assert second == '<div class="ql-line">&nbsp;</div>'


def test_rich_text_carries_match_ordinals() -> None:
    text = format_overlay(_lines("AUM then AUM"), "rich")
    assert text.plain == "AUM then AUM"
    ordinals = [span.style.meta.get("match") for span in text.spans]
    assert ordinals == [0, 1]


def test_unsupported_mode() -> None:
    with pytest.raises(ValueError):
        format_overlay(_lines("AUM"), "markdown")


def test_summary_and_listing() -> None:
    lines = _lines("AUM <drop>")
    summary = summarize(scan("AUM <drop>", INDEX))
    assert format_summary(summary) == "blocked | errors: 1 warnings: 0 info: 1"
    listing = describe_matches(lines)
    assert listing[0].startswith("1:1 info    'AUM'")
    assert listing[1].endswith("- no \"raw\" tags")
