"""Annotated editing surface (core domain).

This module is integration-agnostic. It only relies on ports for the text
holder and the timer facility, and wires the scan -> project -> validate
loop to the interaction state machine. The host creates one instance per
editing surface and owns its lifetime through teardown().
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional

from core.config import InteractionConfig, ValidationConfig
from core.handlers import render_data
from core.interaction import HostCallbacks, InteractionStateMachine
from core.models import Match, RenderData, Segment
from core.ports import Scheduler, TextSurface
from core.projector import project
from core.scanner import scan
from core.trigger_index import TriggerIndex, build_index
from core.validation import ValidationAggregator, ValidationSummary

LOGGER = logging.getLogger(__name__)


class AnnotatedSurface:
    """Orchestrates scanning, projection, validation, and interaction."""

    def __init__(
        self,
        surface: TextSurface,
        scheduler: Scheduler,
        interaction_config: Optional[InteractionConfig] = None,
        validation_config: Optional[ValidationConfig] = None,
        callbacks: Optional[HostCallbacks] = None,
    ) -> None:
        self._surface = surface
        self._callbacks = callbacks or HostCallbacks()
        self._index = TriggerIndex.empty()
        self._aggregator = ValidationAggregator((validation_config or ValidationConfig()).change_detection)
        self.interaction = InteractionStateMachine(
            surface,
            scheduler,
            config=interaction_config,
            callbacks=self._callbacks,
            request_rescan=self.refresh,
        )
        self._matches: List[Match] = []
        self._lines: List[List[Segment]] = project("", [])
        self._closed = False

    @property
    def index(self) -> TriggerIndex:
        return self._index

    @property
    def matches(self) -> List[Match]:
        return list(self._matches)

    @property
    def lines(self) -> List[List[Segment]]:
        return self._lines

    @property
    def summary(self) -> ValidationSummary:
        return self._aggregator.last

    def load_configuration(self, document: Optional[Mapping[str, Any]]) -> TriggerIndex:
        """Compile a trigger document and swap it in as a whole."""

        index = build_index(document)
        self._index = index
        self.interaction.configuration_changed()
        LOGGER.info("%s trigger rules are loaded", len(index))
        self.refresh()
        return index

    async def load_configuration_async(
        self,
        fetch: Callable[[], Awaitable[Mapping[str, Any]]],
    ) -> Optional[TriggerIndex]:
        """Await a trigger document, then swap it in.

        Scanning keeps working with the current index while the fetch is in
        flight. A failed fetch keeps the current index.
        """

        try:
            document = await fetch()
        except Exception:
            LOGGER.exception("Failed to load trigger configuration")
            return None
        if self._closed:
            return None
        return self.load_configuration(document)

    def get_text(self) -> str:
        return self._surface.get_text()

    def set_text(self, text: str) -> List[List[Segment]]:
        self._surface.set_text(text)
        return self.text_changed()

    def text_changed(self) -> List[List[Segment]]:
        """Handle an edit that did not come from a menu commit."""

        self.interaction.text_changed()
        return self.refresh()

    def refresh(self) -> List[List[Segment]]:
        """Rescan the current text from scratch and report validation changes."""

        if self._closed:
            return self._lines

        text = self._surface.get_text()
        matches = scan(text, self._index)
        self._matches = matches
        self._lines = project(text, matches)

        summary = self._aggregator.update(matches)
        if summary is not None:
            self._emit_validation(summary)

        self.interaction.after_rescan(matches)
        return self._lines

    def render_data(self, match: Match) -> RenderData:
        return render_data(match)

    def has_blocking_errors(self) -> bool:
        return self._aggregator.has_blocking_errors()

    def teardown(self) -> None:
        self._closed = True
        self.interaction.teardown()
        LOGGER.debug("Surface torn down")

    def _emit_validation(self, summary: ValidationSummary) -> None:
        if self._callbacks.on_validation_change is None:
            return
        try:
            self._callbacks.on_validation_change(summary)
        except Exception:
            LOGGER.exception("on_validation_change callback failed")


def create_surface(
    surface: TextSurface,
    scheduler: Scheduler,
    document: Optional[Mapping[str, Any]] = None,
    interaction_config: Optional[InteractionConfig] = None,
    validation_config: Optional[ValidationConfig] = None,
    callbacks: Optional[HostCallbacks] = None,
) -> AnnotatedSurface:
    """Create an AnnotatedSurface and run the first scan."""

    instance = AnnotatedSurface(
        surface,
        scheduler,
        interaction_config=interaction_config,
        validation_config=validation_config,
        callbacks=callbacks,
    )
    if document is not None:
        instance.load_configuration(document)
    else:
        instance.refresh()
    return instance
