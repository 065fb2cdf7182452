from __future__ import annotations

from core.scanner import is_whole_word, scan, scan_line
from core.trigger_index import build_index


def _index(*patterns: str, severity: str = "warning", kind: str = "match"):
    return build_index({severity: [{"type": kind, kind: list(patterns), "handler": {"message": "m"}}]})


def _spans(matches):
    return [(m.line_index, m.start_col, m.end_col, m.matched_text) for m in matches]


def test_whole_word_boundaries() -> None:
    index = _index("test")
    assert scan("testing", index) == []
    assert scan("retest", index) == []
    assert _spans(scan("a test", index)) == [(0, 2, 6, "test")]
    assert _spans(scan("test_case", index)) == []
    assert _spans(scan("(test)", index)) == [(0, 1, 5, "test")]


def test_literal_matching_ignores_case() -> None:
    matches = scan("A TeSt here", _index("test"))
    assert _spans(matches) == [(0, 2, 6, "TeSt")]


def test_slash_after_match_marks_resolved() -> None:
    matches = scan("test/ok", _index("test"))
    assert _spans(matches) == [(0, 0, 4, "test")]
    assert matches[0].resolved
    assert not scan("a test", _index("test"))[0].resolved


def test_slash_before_match_is_plain_boundary() -> None:
    matches = scan("ok/test", _index("test"))
    assert _spans(matches) == [(0, 3, 7, "test")]
    assert not matches[0].resolved


def test_is_whole_word_edges() -> None:
    assert is_whole_word("test", 0, 4)
    assert not is_whole_word("xtest", 1, 5)
    assert is_whole_word("test/", 0, 4)


def test_retry_after_boundary_failure_finds_later_occurrence() -> None:
    matches = scan("tests test", _index("test"))
    assert _spans(matches) == [(0, 6, 10, "test")]


def test_longer_rule_wins_overlap() -> None:
    index = build_index(
        {
            "warning": [{"type": "match", "match": ["test"], "handler": {"message": "short"}}],
            "error": [{"type": "match", "match": ["test case"], "handler": {"message": "long"}}],
        }
    )
    matches = scan("a test case and a test", index)
    assert _spans(matches) == [(0, 2, 11, "test case"), (0, 18, 22, "test")]
    assert matches[0].rule.description == "long"


def test_overlapping_candidate_from_later_rule_is_discarded() -> None:
    # "ab" is tried first and claims columns 0-2, so the "b" inside it is dropped.
    index = build_index(
        {
            "warning": [
                {"type": "match", "match": ["ab"], "handler": {"message": "m"}},
                {"type": "regex", "regex": ["b+"], "handler": {"message": "r"}},
            ]
        }
    )
    matches = scan("ab bbb", index)
    assert _spans(matches) == [(0, 0, 2, "ab"), (0, 3, 6, "bbb")]


def test_regex_is_case_sensitive_and_not_word_bounded() -> None:
    index = _index("abc", kind="regex")
    assert _spans(scan("xabcx ABC", index)) == [(0, 1, 4, "abc")]


def test_email_regex_scenario() -> None:
    index = build_index(
        {
            "error": [
                {
                    "type": "regex",
                    "regex": ["[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\\.[A-Za-z]{2,}"],
                    "handler": {"message": "Remove personal data", "block-submit": True},
                }
            ]
        }
    )
    matches = scan("contact me at jane.doe@example.com please", index)
    assert _spans(matches) == [(0, 14, 34, "jane.doe@example.com")]
    assert matches[0].rule.block_submit


def test_zero_width_regex_hits_are_ignored() -> None:
    assert scan("abc", _index("x*", kind="regex")) == []


def test_multiline_scan_reports_line_indices() -> None:
    index = _index("test")
    matches = scan("one test\n\nsecond\ntest two", index)
    assert _spans(matches) == [(0, 4, 8, "test"), (3, 0, 4, "test")]


def test_scan_is_idempotent() -> None:
    index = _index("test", "case")
    text = "test case\ncase test"
    assert scan(text, index) == scan(text, index)


def test_matches_are_sorted_by_column() -> None:
    index = build_index(
        {
            "error": [{"type": "match", "match": ["later"], "handler": {"message": "m"}}],
            "info": [{"type": "match", "match": ["one"], "handler": {"message": "m"}}],
        }
    )
    matches = scan_line("one then later", 0, index.rules)
    assert [m.matched_text for m in matches] == ["one", "later"]


def test_empty_index_and_empty_line() -> None:
    assert scan("anything", build_index({})) == []
    assert scan_line("", 0, _index("test").rules) == []
