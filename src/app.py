"""Application entry point for querylens."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from art import tprint
from dotenv import load_dotenv
from rich.console import Console

import settings
from adapters.memory_surface import AsyncioScheduler, StringSurface
from adapters.overlay_formatting import describe_matches, format_overlay, format_summary
from adapters.trigger_loader import TriggerLoadError, fetch_trigger_document, load_trigger_file
from core.config import InteractionConfig, ValidationConfig
from core.surface import create_surface
from core.trigger_index import build_index

NAME = "QUERYLENS"
FONT = "tarty-1"
TOKEN_ENV = "QUERYLENS_TRIGGERS_TOKEN"

EXIT_LOAD_ERROR = 1
EXIT_BLOCKED = 2

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(console: bool = True) -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    # Console output would tear through the TUI, so the editor disables it.
    if console and config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/querylens.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def interaction_config() -> InteractionConfig:
    return InteractionConfig(
        tooltip_delay=settings.TOOLTIP_DELAY_MS / 1000,
        auto_open_menus=settings.AUTO_OPEN_MENUS,
        menu_offset=settings.MENU_OFFSET,
        edge_padding=settings.EDGE_PADDING,
    )


def validation_config() -> ValidationConfig:
    return ValidationConfig(change_detection=settings.CHANGE_DETECTION)


def trigger_source(path: Optional[str] = None) -> str:
    if path:
        return path
    return settings.TRIGGERS_URL or settings.TRIGGERS_PATH


async def fetch_triggers(path: Optional[str] = None) -> dict[str, Any]:
    """Load the trigger document from an explicit path, the URL, or the configured file."""

    if path:
        return load_trigger_file(path)
    if settings.TRIGGERS_URL:
        LOGGER.info("Fetching triggers from %s", settings.TRIGGERS_URL)
        return await fetch_trigger_document(
            settings.TRIGGERS_URL,
            token=os.getenv(TOKEN_ENV),
            timeout=settings.TRIGGERS_TIMEOUT,
        )
    return load_trigger_file(settings.TRIGGERS_PATH)


def load_triggers(path: Optional[str] = None) -> dict[str, Any]:
    return asyncio.run(fetch_triggers(path))


def _edit(file_path: Optional[str], triggers_path: Optional[str]) -> None:
    _print_banner()
    _configure_logging(console=False)
    from frontend.app import QueryLensApp

    QueryLensApp(
        fetch_triggers=lambda: fetch_triggers(triggers_path),
        trigger_source=trigger_source(triggers_path),
        file_path=file_path,
        interaction_config=interaction_config(),
        validation_config=validation_config(),
    ).run()


def _scan(file_path: str, output_format: str, triggers_path: Optional[str]) -> int:
    _configure_logging()
    console = Console()
    try:
        document = load_triggers(triggers_path)
        text = Path(file_path).read_text(encoding="utf-8")
    except (TriggerLoadError, OSError) as exc:
        LOGGER.error("Scan aborted: %s", exc)
        console.print(f"[bold red]error:[/] {exc}", highlight=False)
        return EXIT_LOAD_ERROR

    surface = create_surface(
        StringSurface(text),
        AsyncioScheduler(),
        document=document,
        interaction_config=interaction_config(),
        validation_config=validation_config(),
    )
    try:
        lines = surface.lines
        if output_format == "rich":
            console.print(format_overlay(lines, "rich"))
            console.rule()
            for entry in describe_matches(lines):
                console.print(entry, highlight=False, markup=False)
            console.print(format_summary(surface.summary), highlight=False)
        else:
            print(format_overlay(lines, output_format))
            print(format_summary(surface.summary), file=sys.stderr)
        return EXIT_BLOCKED if surface.has_blocking_errors() else 0
    finally:
        surface.teardown()


def _triggers(triggers_path: Optional[str]) -> int:
    _configure_logging()
    console = Console()
    try:
        document = load_triggers(triggers_path)
    except TriggerLoadError as exc:
        console.print(f"[bold red]error:[/] {exc}", highlight=False)
        return EXIT_LOAD_ERROR

    index = build_index(document)
    for rule in index:
        flags = []
        if rule.block_submit:
            flags.append("blocks submit")
        if rule.filterable:
            flags.append("filterable")
        if rule.options:
            flags.append(f"{len(rule.options)} options")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        console.print(
            f"{rule.id:<32} {rule.pattern_kind.value:<7} {rule.handler_kind.value:<20} {rule.pattern!r}{suffix}",
            highlight=False,
            markup=False,
        )
    for issue in index.issues:
        location = issue.bucket if issue.entry_index is None else f"{issue.bucket}[{issue.entry_index}]"
        console.print(f"[yellow]skipped[/] {location}: {issue.reason}", highlight=False)
    console.print(f"{len(index)} trigger rules compiled, {len(index.issues)} skipped", highlight=False)
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="querylens")
    subparsers = parser.add_subparsers(dest="command")

    edit_parser = subparsers.add_parser("edit", help="Open the annotated query editor")
    edit_parser.add_argument("file", nargs="?", help="Query file to open")
    edit_parser.add_argument("--triggers", help="Trigger document path (overrides config.json)")

    scan_parser = subparsers.add_parser("scan", help="Scan a query file and print the annotations")
    scan_parser.add_argument("file", help="Query file to scan")
    scan_parser.add_argument("--format", choices=("rich", "html", "plain"), default="rich")
    scan_parser.add_argument("--triggers", help="Trigger document path (overrides config.json)")

    triggers_parser = subparsers.add_parser("triggers", help="Compile and list the trigger rules")
    triggers_parser.add_argument("--triggers", help="Trigger document path (overrides config.json)")

    args = parser.parse_args(argv)
    if args.command == "scan":
        sys.exit(_scan(args.file, args.format, args.triggers))
    if args.command == "triggers":
        sys.exit(_triggers(args.triggers))
    _edit(getattr(args, "file", None), getattr(args, "triggers", None))


if __name__ == "__main__":
    main()
