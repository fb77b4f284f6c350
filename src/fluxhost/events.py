# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Synchronous broadcast of named events to every loaded addon."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from fluxhost.logging import get_logger

if TYPE_CHECKING:
    from fluxhost.addons.base import AddonRegistry
    from fluxhost.logging.output import OutputChannel
    from fluxhost.scripting.values import HostValue

log = get_logger(__name__)


class DispatchReport(BaseModel):
    event: str
    invoked: int = 0
    errors: list[str] = Field(default_factory=list)


class EventBus:
    """Delivers events to addon handlers.

    Addons are visited in registry (load) order; within an addon handlers run
    in registration order. A failing handler is reported and the rest still run.
    """

    def __init__(self, addons: AddonRegistry, output: OutputChannel) -> None:
        self._addons = addons
        self._output = output

    def dispatch(self, event: str, *args: HostValue) -> DispatchReport:
        report = DispatchReport(event=event)
        for addon in self._addons.snapshot():
            result = addon.sandbox.trigger_event(event, *args)
            report.invoked += result.invoked
            for error in result.errors:
                message = f"Event {event} handler error in {addon.name}: {error}"
                report.errors.append(message)
                self._output.error(message)
        log.debug("event_dispatched", event_name=event, invoked=report.invoked, errors=len(report.errors))
        return report
