from __future__ import annotations

import pytest

from core.scanner import scan
from core.trigger_index import build_index
from core.validation import ValidationAggregator, summarize

INDEX = build_index(
    {
        "error": [
            {"type": "match", "match": ["drop table"], "handler": {"message": "no", "block-submit": True}},
            {"type": "match", "match": ["truncate"], "handler": {"message": "careful"}},
        ],
        "warning": [
            {"type": "match", "match": ["recently"], "handler": {"message": "when?", "block-submit": True}},
            {"type": "match", "match": ["lately"], "handler": {"message": "when?"}},
        ],
        "info": [{"type": "match", "match": ["AUM"], "handler": {"message": "assets"}}],
    }
)


def test_summary_buckets_by_severity() -> None:
    summary = summarize(scan("drop table AUM lately AUM", INDEX))
    assert summary.has_blocking_error
    assert [m.matched_text for m in summary.errors] == ["drop table"]
    assert [m.matched_text for m in summary.warnings] == ["lately"]
    assert [m.matched_text for m in summary.info] == ["AUM", "AUM"]


def test_non_blocking_error_does_not_block() -> None:
    summary = summarize(scan("truncate", INDEX))
    assert len(summary.errors) == 1
    assert not summary.has_blocking_error


def test_blocking_flag_is_independent_of_bucket() -> None:
    summary = summarize(scan("recently", INDEX))
    assert summary.errors == ()
    assert summary.has_blocking_error


def test_update_reports_only_changes() -> None:
    aggregator = ValidationAggregator()
    assert aggregator.update(scan("nothing here", INDEX)) is None
    first = aggregator.update(scan("drop table", INDEX))
    assert first is not None and first.has_blocking_error
    assert aggregator.has_blocking_errors()
    assert aggregator.update(scan("drop table", INDEX)) is None
    cleared = aggregator.update(scan("select 1", INDEX))
    assert cleared is not None and not cleared.has_blocking_error
    assert not aggregator.has_blocking_errors()


def test_counts_mode_misses_same_count_swap() -> None:
    aggregator = ValidationAggregator("counts")
    aggregator.update(scan("lately", INDEX))
    assert aggregator.update(scan("x lately", INDEX)) is None


def test_identity_mode_reports_same_count_swap() -> None:
    aggregator = ValidationAggregator("identity")
    aggregator.update(scan("lately", INDEX))
    changed = aggregator.update(scan("x lately", INDEX))
    assert changed is not None
    assert changed.warnings[0].start_col == 2


def test_reset_reports_cleared_state() -> None:
    aggregator = ValidationAggregator()
    aggregator.update(scan("drop table", INDEX))
    cleared = aggregator.reset()
    assert cleared is not None
    assert cleared.counts() == (False, 0, 0, 0)
    assert aggregator.reset() is None


def test_unknown_change_detection_mode() -> None:
    with pytest.raises(ValueError):
        ValidationAggregator("fuzzy")
