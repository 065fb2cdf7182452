from __future__ import annotations

import asyncio
import json

import pytest

from adapters import trigger_loader
from adapters.trigger_loader import TriggerLoadError, fetch_trigger_document, load_trigger_file


def test_load_trigger_file(tmp_path) -> None:
    path = tmp_path / "triggers.json"
    path.write_text(json.dumps({"error": []}), encoding="utf-8")
    assert load_trigger_file(path) == {"error": []}


def test_missing_file_raises_load_error(tmp_path) -> None:
    with pytest.raises(TriggerLoadError, match="not found"):
        load_trigger_file(tmp_path / "absent.json")


def test_invalid_json_raises_load_error(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(TriggerLoadError, match="invalid JSON"):
        load_trigger_file(path)


def test_non_object_root_raises_load_error(tmp_path) -> None:
    path = tmp_path / "list.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(TriggerLoadError, match="must be an object"):
        load_trigger_file(path)


def test_fetch_passes_token_and_parses(monkeypatch) -> None:
    calls = []

    def fake_fetch(url: str, token, timeout: float) -> str:
        calls.append((url, token, timeout))
        return '{"info": []}'

    monkeypatch.setattr(trigger_loader, "_fetch", fake_fetch)
    document = asyncio.run(fetch_trigger_document("https://example.org/t.json", token="secret", timeout=3))
    assert document == {"info": []}
    assert calls == [("https://example.org/t.json", "secret", 3)]


def test_fetch_errors_propagate(monkeypatch) -> None:
    def fake_fetch(url: str, token, timeout: float) -> str:
        raise TriggerLoadError("Trigger fetch failed 500: boom")

    monkeypatch.setattr(trigger_loader, "_fetch", fake_fetch)
    with pytest.raises(TriggerLoadError, match="500"):
        asyncio.run(fetch_trigger_document("https://example.org/t.json"))
