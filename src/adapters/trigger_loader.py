"""Trigger document loading adapter.

Reads the trigger document from a local JSON file or fetches it over HTTP.
The core never sees where a document came from; it only compiles it.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any, Optional


class TriggerLoadError(RuntimeError):
    """Raised when a trigger document cannot be read or decoded."""


def parse_trigger_document(raw: str, origin: str) -> dict[str, Any]:
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise TriggerLoadError(f"{origin}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    if not isinstance(document, dict):
        raise TriggerLoadError(f"{origin}: trigger document root must be an object")
    return document


def load_trigger_file(path: str | Path) -> dict[str, Any]:
    """Load a trigger document from disk."""

    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TriggerLoadError(f"Trigger file not found: {path}") from exc
    except OSError as exc:
        raise TriggerLoadError(f"Trigger file unreadable: {path} ({exc.strerror or exc})") from exc
    return parse_trigger_document(raw, str(path))


def _fetch(url: str, token: Optional[str], timeout: float) -> str:
    request = urllib.request.Request(url, method="GET")
    request.add_header("Accept", "application/json")
    if token:
        request.add_header("Authorization", f"Bearer {token}")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return response.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        body = e.read().decode("utf-8", errors="replace")
        raise TriggerLoadError(f"Trigger fetch failed {e.code}: {body}") from e
    except urllib.error.URLError as e:
        raise TriggerLoadError(f"Trigger fetch failed: {e.reason}") from e


async def fetch_trigger_document(url: str, token: Optional[str] = None, timeout: float = 10) -> dict[str, Any]:
    """Fetch a trigger document without blocking the event loop."""

    # urllib is blocking, so the request runs in a worker thread.
    raw = await asyncio.to_thread(_fetch, url, token, timeout)
    return parse_trigger_document(raw, url)
