from __future__ import annotations

import asyncio

from adapters.memory_surface import AsyncioScheduler, StringSurface
from core.config import ValidationConfig
from core.interaction import HostCallbacks
from core.models import Affordance, Severity
from core.projector import join_line
from core.surface import create_surface

EMAIL_DOCUMENT = {
    "error": [
        {
            "type": "regex",
            "regex": ["[a-z]+@[a-z]+\\.[a-z]{2,}"],
            "handler": {"message": "Remove the email address", "block-submit": True},
        }
    ]
}

CLIENT_DOCUMENT = {
    "info": [
        {
            "type": "match",
            "match": ["@client"],
            "handler": {"options": [{"label": "Blackrock", "on-select": {"display": "Blackrock"}}]},
        }
    ]
}


def _surface(document, text: str = "", **kwargs):
    summaries = []
    surface = create_surface(
        StringSurface(text),
        AsyncioScheduler(),
        document,
        callbacks=HostCallbacks(on_validation_change=summaries.append),
        **kwargs,
    )
    return surface, summaries


def test_email_regex_blocks_submit() -> None:
    surface, summaries = _surface(EMAIL_DOCUMENT, "email me at a@b.com please")
    assert len(surface.matches) == 1
    match = surface.matches[0]
    assert (match.start_col, match.end_col, match.matched_text) == (12, 19, "a@b.com")
    assert match.severity is Severity.ERROR
    assert surface.has_blocking_errors()
    assert len(summaries) == 1
    assert [join_line(line) for line in surface.lines] == ["email me at a@b.com please"]


def test_replace_selection_for_plain_option() -> None:
    surface, _ = _surface(CLIENT_DOCUMENT)
    surface.set_text("ping @client now")
    assert len(surface.matches) == 1
    surface.interaction.handle_key("Enter")
    assert surface.get_text() == "ping Blackrock now"


def test_same_error_count_is_not_reported_again() -> None:
    surface, summaries = _surface(EMAIL_DOCUMENT)
    surface.set_text("mail a@b.com")
    assert len(summaries) == 1
    surface.set_text("mail c@d.org instead")
    assert len(summaries) == 1
    surface.set_text("no address")
    assert len(summaries) == 2
    assert not summaries[-1].has_blocking_error
    assert not surface.has_blocking_errors()


def test_identity_detection_reports_substitution() -> None:
    surface, summaries = _surface(EMAIL_DOCUMENT, validation_config=ValidationConfig("identity"))
    surface.set_text("mail a@b.com")
    surface.set_text("mail c@d.org instead")
    assert len(summaries) == 2


def test_scanning_without_configuration_finds_nothing() -> None:
    surface, summaries = _surface(None, "mail a@b.com")
    assert surface.matches == []
    assert summaries == []
    assert len(surface.lines) == 1


def test_async_configuration_swap() -> None:
    async def run() -> None:
        surface, _ = _surface(None, "mail a@b.com")
        assert surface.matches == []

        async def fetch():
            return EMAIL_DOCUMENT

        index = await surface.load_configuration_async(fetch)
        assert index is not None and len(index) == 1
        assert [m.matched_text for m in surface.matches] == ["a@b.com"]

    asyncio.run(run())


def test_failed_async_load_keeps_current_index() -> None:
    async def run() -> None:
        surface, _ = _surface(EMAIL_DOCUMENT, "mail a@b.com")

        async def fetch():
            raise RuntimeError("network down")

        assert await surface.load_configuration_async(fetch) is None
        assert len(surface.index) == 1
        assert len(surface.matches) == 1

    asyncio.run(run())


def test_reload_replaces_rules_as_a_whole() -> None:
    surface, _ = _surface(EMAIL_DOCUMENT, "ping @client a@b.com")
    assert [m.matched_text for m in surface.matches] == ["a@b.com"]
    surface.load_configuration(CLIENT_DOCUMENT)
    assert [m.matched_text for m in surface.matches] == ["@client"]
    assert not surface.has_blocking_errors()


def test_render_data_for_menu_match() -> None:
    surface, _ = _surface(CLIENT_DOCUMENT, "ping @client")
    data = surface.render_data(surface.matches[0])
    assert data.match_text == "@client"
    assert [option.label for option in data.options] == ["Blackrock"]
    assert data.tooltip_title == "Quick link"


def test_reload_closes_menu_anchored_to_replaced_rules() -> None:
    surface, _ = _surface(CLIENT_DOCUMENT)
    surface.set_text("ping @client now")
    assert surface.interaction.state is Affordance.MENU

    surface.load_configuration(
        {"warning": [{"type": "match", "match": ["@client"], "handler": {"message": "Which client?"}}]}
    )
    assert surface.interaction.state is Affordance.NONE
    assert surface.interaction.session.anchor_match is None
    assert not surface.interaction.handle_key("Enter")
    assert surface.get_text() == "ping @client now"


def test_reload_does_not_auto_open_existing_triggers() -> None:
    surface, _ = _surface(CLIENT_DOCUMENT)
    surface.set_text("ping @client now")
    surface.interaction.dismiss()
    surface.load_configuration(CLIENT_DOCUMENT)
    assert surface.interaction.state is Affordance.NONE
    surface.set_text("ping @client and @client")
    assert surface.interaction.state is Affordance.MENU
    assert surface.interaction.session.anchor_match.start_col == 17
