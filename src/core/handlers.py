"""Handler variants and per-variant render data (core domain)."""

from __future__ import annotations

from typing import Callable, Dict, Iterable

from core.models import (
    Affordance,
    HandlerKind,
    Match,
    OptionSpec,
    RenderData,
    Severity,
    TriggerRule,
)

TOOLTIP_TITLES: Dict[Severity, str] = {
    Severity.ERROR: "Stop",
    Severity.WARNING: "Clarify",
    Severity.INFO: "Quick link",
}

_MENU_CATEGORY = "display-menu"
_LINK_MENU_CATEGORY = "display-menu-with-uri"


def resolve_handler_kind(
    severity: Severity,
    category: str,
    options: Iterable[OptionSpec],
) -> HandlerKind:
    """Pick the behavior variant for a rule from its compiled payload."""

    options = tuple(options)
    if options:
        if category == _LINK_MENU_CATEGORY or any(option.uri for option in options):
            return HandlerKind.MENU_WITH_LINK
        if category == _MENU_CATEGORY:
            return HandlerKind.MENU_ONLY
        if severity is Severity.INFO:
            return HandlerKind.SELECT_ONE
        return HandlerKind.SELECT_ONE_AND_WARN
    if severity is Severity.ERROR:
        return HandlerKind.NOT_ALLOWED
    if severity is Severity.WARNING:
        return HandlerKind.WARN
    return HandlerKind.NOTICE


def affordance_for(rule: TriggerRule) -> Affordance:
    return rule.affordance


def _tooltip_render(match: Match) -> RenderData:
    rule = match.rule
    affordance = affordance_for(rule)
    if affordance is Affordance.TOOLTIP:
        title = TOOLTIP_TITLES.get(rule.severity)
        text = rule.description
    else:
        title = None
        text = None
    return RenderData(
        match_text=match.matched_text,
        severity=rule.severity,
        affordance=affordance,
        handler_kind=rule.handler_kind,
        tooltip_title=title,
        tooltip_text=text,
    )


def _menu_render(match: Match) -> RenderData:
    rule = match.rule
    return RenderData(
        match_text=match.matched_text,
        severity=rule.severity,
        affordance=Affordance.MENU,
        handler_kind=rule.handler_kind,
        tooltip_title=TOOLTIP_TITLES.get(rule.severity),
        tooltip_text=rule.description or None,
        options=rule.options,
    )


def _link_menu_render(match: Match) -> RenderData:
    # Link menus hide options that carry neither a link nor a replacement.
    data = _menu_render(match)
    usable = tuple(
        option
        for option in data.options
        if option.uri or option.on_select is not None or option.is_freeform_input
    )
    return RenderData(
        match_text=data.match_text,
        severity=data.severity,
        affordance=data.affordance,
        handler_kind=data.handler_kind,
        tooltip_title=data.tooltip_title,
        tooltip_text=data.tooltip_text,
        options=usable or data.options,
    )


_RENDERERS: Dict[HandlerKind, Callable[[Match], RenderData]] = {
    HandlerKind.NOT_ALLOWED: _tooltip_render,
    HandlerKind.WARN: _tooltip_render,
    HandlerKind.NOTICE: _tooltip_render,
    HandlerKind.SELECT_ONE: _menu_render,
    HandlerKind.SELECT_ONE_AND_WARN: _menu_render,
    HandlerKind.MENU_ONLY: _menu_render,
    HandlerKind.MENU_WITH_LINK: _link_menu_render,
}


def render_data(match: Match) -> RenderData:
    """Return the render-facing description of one match."""

    return _RENDERERS[match.rule.handler_kind](match)
