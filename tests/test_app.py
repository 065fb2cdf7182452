from __future__ import annotations

import json

import pytest

import app
import settings

DOCUMENT = {
    "error": [
        {
            "type": "regex",
            "regex": ["[a-z]+@[a-z]+\\.[a-z]{2,}"],
            "handler": {"message": "Remove the email address", "block-submit": True},
        },
        {"type": "regex", "regex": ["(broken"]},
    ]
}


@pytest.fixture(autouse=True)
def _no_logging(monkeypatch) -> None:
    monkeypatch.setattr(settings, "LOGGING", {})
    monkeypatch.setattr(settings, "TRIGGERS_URL", None)


@pytest.fixture
def triggers_path(tmp_path):
    path = tmp_path / "triggers.json"
    path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
    return str(path)


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc:
        app.main(argv)
    return exc.value.code


def test_scan_blocking_query_exits_with_2(tmp_path, triggers_path, capsys) -> None:
    query = tmp_path / "query.txt"
    query.write_text("mail a@b.com", encoding="utf-8")
    assert _run(["scan", str(query), "--format", "plain", "--triggers", triggers_path]) == app.EXIT_BLOCKED
    captured = capsys.readouterr()
    assert captured.out.strip() == "mail [a@b.com]"
    assert "blocked" in captured.err


def test_scan_clean_query_exits_with_0(tmp_path, triggers_path, capsys) -> None:
    query = tmp_path / "query.txt"
    query.write_text("select 1", encoding="utf-8")
    assert _run(["scan", str(query), "--format", "html", "--triggers", triggers_path]) == 0
    assert capsys.readouterr().out.strip() == '<div class="ql-line">select 1</div>'


def test_scan_with_missing_triggers_exits_with_1(tmp_path) -> None:
    query = tmp_path / "query.txt"
    query.write_text("select 1", encoding="utf-8")
    missing = str(tmp_path / "absent.json")
    assert _run(["scan", str(query), "--triggers", missing]) == app.EXIT_LOAD_ERROR


def test_triggers_lists_rules_and_issues(triggers_path, capsys) -> None:
    assert _run(["triggers", "--triggers", triggers_path]) == 0
    out = capsys.readouterr().out
    assert "error-general-0.0" in out
    assert "invalid regex" in out
    assert "1 trigger rules compiled, 1 skipped" in out


def test_configs_follow_settings(monkeypatch) -> None:
    monkeypatch.setattr(settings, "TOOLTIP_DELAY_MS", 350)
    monkeypatch.setattr(settings, "CHANGE_DETECTION", "identity")
    assert app.interaction_config().tooltip_delay == 0.35
    assert app.validation_config().change_detection == "identity"
