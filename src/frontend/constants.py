"""Shared constants for the Textual UI."""

from __future__ import annotations

LENS_TEAL = "#2DD4BF"
