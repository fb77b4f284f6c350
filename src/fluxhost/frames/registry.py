# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Owner of all live frames: creation, visual updates and hit-testing."""

from __future__ import annotations

import threading
import uuid
from typing import TYPE_CHECKING, Literal

from fluxhost.constants import DEFAULT_CANVAS_HEIGHT, DEFAULT_CANVAS_WIDTH
from fluxhost.frames.models import Frame
from fluxhost.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

log = get_logger(__name__)

FrameChange = Literal["created", "updated", "removed"]


class FrameRegistry:
    """Live frames in stacking order (last created/updated is on top).

    There is no explicit z-order: every create or update_visual moves the
    frame to the top, so hit-testing favours the most recent writer.
    """

    def __init__(
        self,
        canvas_size: tuple[float, float] = (DEFAULT_CANVAS_WIDTH, DEFAULT_CANVAS_HEIGHT),
    ) -> None:
        self._frames: dict[str, Frame] = {}
        self._listeners: list[Callable[[FrameChange, Frame], None]] = []
        self._lock = threading.RLock()
        self.canvas_size = canvas_size

    def subscribe(self, listener: Callable[[FrameChange, Frame], None]) -> None:
        """Register a presentation-layer listener for frame changes."""
        with self._lock:
            self._listeners.append(listener)

    def create(self, owner: str, name: str | None = None) -> Frame:
        frame = Frame(id=uuid.uuid4().hex, owner=owner, name=name)
        with self._lock:
            self._frames[frame.id] = frame
        log.debug("frame_created", frame_id=frame.id, owner=owner)
        self._notify("created", frame)
        return frame

    def update_visual(self, frame: Frame) -> None:
        """Record a mutated frame and push it to the presentation layer."""
        with self._lock:
            if frame.id not in self._frames:
                log.debug("frame_update_ignored", frame_id=frame.id)
                return
            # Re-insert to move the frame to the top of the stacking order.
            del self._frames[frame.id]
            self._frames[frame.id] = frame
        self._notify("updated", frame)

    def get(self, frame_id: str) -> Frame | None:
        with self._lock:
            return self._frames.get(frame_id)

    def frames(self) -> list[Frame]:
        """All frames, bottom to top."""
        with self._lock:
            return list(self._frames.values())

    def frames_owned_by(self, owner: str) -> list[Frame]:
        with self._lock:
            return [frame for frame in self._frames.values() if frame.owner == owner]

    def hit_test(self, x: float, y: float) -> Frame | None:
        """Return the topmost visible frame containing the point."""
        with self._lock:
            for frame in reversed(self._frames.values()):
                if frame.visible and frame.contains(x, y):
                    return frame
        return None

    def remove_owned_by(self, owner: str) -> list[Frame]:
        with self._lock:
            removed = [frame for frame in self._frames.values() if frame.owner == owner]
            for frame in removed:
                del self._frames[frame.id]
        for frame in removed:
            self._notify("removed", frame)
        if removed:
            log.info("frames_removed", owner=owner, count=len(removed))
        return removed

    def _notify(self, change: FrameChange, frame: Frame) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(change, frame)
            except Exception as e:
                log.warning("frame_listener_failed", change=change, frame_id=frame.id, error=str(e))
