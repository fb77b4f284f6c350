# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Human-readable status stream for every pipeline step.

Consumers (a UI console, a test harness) subscribe to receive each line as it
is emitted. Lines are mirrored into structlog; they are not a durable record.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict

from fluxhost.logging.config import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

log = get_logger(__name__)

OutputLevel = Literal["info", "warning", "error"]


class OutputLine(BaseModel):
    level: OutputLevel
    text: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"[{self.level.capitalize()}] {self.text}"


class OutputChannel:
    """Fan-out of status lines to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Callable[[OutputLine], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[OutputLine], None]) -> Callable[[], None]:
        """Register a subscriber. Returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def info(self, text: str) -> None:
        self.emit("info", text)

    def warning(self, text: str) -> None:
        self.emit("warning", text)

    def error(self, text: str) -> None:
        self.emit("error", text)

    def emit(self, level: OutputLevel, text: str) -> None:
        line = OutputLine(level=level, text=text)
        getattr(log, level)("output", text=text)
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(line)
            except Exception as e:
                # Subscriber failures never propagate into the reporting pipeline.
                log.warning("output_subscriber_failed", error=str(e))
