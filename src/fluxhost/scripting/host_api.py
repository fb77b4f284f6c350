# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Python side of the host API, called from the Lua prelude."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from lupa import lua_type

from fluxhost.constants import FRAME_SCRIPTS
from fluxhost.frames.backdrops import color_backdrop, texture_backdrop
from fluxhost.frames.models import Frame, HandlerRef, NinePatchInsets
from fluxhost.logging import get_logger

if TYPE_CHECKING:
    from fluxhost.frames.registry import FrameRegistry
    from fluxhost.logging.output import OutputChannel
    from fluxhost.scripting.sandbox import ScriptSandbox

log = get_logger(__name__)

_ANCHORS: dict[str, tuple[float, float]] = {
    "TOPLEFT": (0.0, 0.0),
    "TOP": (0.5, 0.0),
    "TOPRIGHT": (1.0, 0.0),
    "LEFT": (0.0, 0.5),
    "CENTER": (0.5, 0.5),
    "RIGHT": (1.0, 0.5),
    "BOTTOMLEFT": (0.0, 1.0),
    "BOTTOM": (0.5, 1.0),
    "BOTTOMRIGHT": (1.0, 1.0),
}


def anchor_offset(anchor: str, width: float, height: float) -> tuple[float, float]:
    """Offset of a named anchor point from the top-left corner.

    Unknown anchor names map to the top-left corner.
    """
    fx, fy = _ANCHORS.get(anchor.upper(), (0.0, 0.0))
    return fx * width, fy * height


def _number(value: Any, usage: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Usage: {usage}")
    return float(value)


class HostApi:
    """Operations the Lua prelude forwards to the host.

    Every call runs on the thread executing the script, with the sandbox lock
    held. Raising here surfaces as a script error at the call site.
    """

    def __init__(self, sandbox: ScriptSandbox, frames: FrameRegistry, output: OutputChannel) -> None:
        self._sandbox = sandbox
        self._frames = frames
        self._output = output

    # misc ---------------------------------------------------------------

    def print(self, text: str) -> None:
        self._output.info(f"{self._sandbox.addon_name}: {text}")

    def get_time(self) -> float:
        return time.time()

    # events -------------------------------------------------------------

    def register_event(self, event: str, handler: Any) -> int:
        if lua_type(handler) != "function":
            raise TypeError("Usage: RegisterEvent(event, handler)")
        token = self._sandbox.subscribe(str(event), handler)
        log.debug("event_registered", addon=self._sandbox.addon_name, event_name=event, token=token)
        return token

    def unregister_handler(self, token: int) -> None:
        self._sandbox.unsubscribe(int(token))

    def persisted_changed(self) -> None:
        self._sandbox.notify_persisted_changed()

    # frames -------------------------------------------------------------

    def create_frame(self, name: str | None = None) -> str:
        frame = self._frames.create(self._sandbox.addon_name, name=name)
        self._sandbox.frame_ids.append(frame.id)
        return frame.id

    def _frame(self, frame_id: str) -> Frame:
        frame = self._frames.get(frame_id)
        if frame is None:
            raise ValueError(f"Unknown frame: {frame_id}")
        return frame

    def frame_get(self, frame_id: str, field: str) -> Any:
        if field not in ("x", "y", "width", "height", "visible", "text"):
            raise AttributeError(field)
        return getattr(self._frame(frame_id), field)

    def frame_set_size(self, frame_id: str, width: Any, height: Any) -> None:
        frame = self._frame(frame_id)
        usage = "frame:SetSize(width, height)"
        if width is not None:
            frame.width = _number(width, usage)
        if height is not None:
            frame.height = _number(height, usage)
        self._frames.update_visual(frame)

    def frame_set_position(self, frame_id: str, x: Any, y: Any) -> None:
        frame = self._frame(frame_id)
        frame.x = _number(x, "frame:SetPoint(x, y)")
        frame.y = _number(y, "frame:SetPoint(x, y)")
        self._frames.update_visual(frame)

    def frame_set_anchor(
        self,
        frame_id: str,
        point: Any,
        relative_id: Any,
        relative_point: Any,
        x: Any,
        y: Any,
    ) -> None:
        """Place the frame so its `point` sits on `relative_point` of the
        relative frame (or the canvas), shifted by (x, y)."""
        usage = "frame:SetPoint(point, relativeTo, relativePoint, x, y)"
        if not isinstance(point, str) or not isinstance(relative_point, str):
            raise TypeError(f"Usage: {usage}")
        frame = self._frame(frame_id)
        off_x = _number(x, usage)
        off_y = _number(y, usage)

        relative = self._frames.get(relative_id) if relative_id else None
        if relative is not None:
            base_x, base_y, base_w, base_h = relative.x, relative.y, relative.width, relative.height
        else:
            base_w, base_h = self._frames.canvas_size
            base_x = base_y = 0.0

        ax, ay = anchor_offset(point, frame.width, frame.height)
        rx, ry = anchor_offset(relative_point, base_w, base_h)
        frame.x = base_x + rx - ax + off_x
        frame.y = base_y + ry - ay + off_y
        self._frames.update_visual(frame)

    def frame_set_visible(self, frame_id: str, visible: bool) -> None:
        frame = self._frame(frame_id)
        frame.visible = bool(visible)
        self._frames.update_visual(frame)

    def frame_set_text(self, frame_id: str, text: Any) -> None:
        frame = self._frame(frame_id)
        frame.text = None if text is None else str(text)
        self._frames.update_visual(frame)

    def frame_set_alpha(self, frame_id: str, alpha: Any) -> None:
        frame = self._frame(frame_id)
        if isinstance(alpha, bool):
            frame.alpha = 1.0 if alpha else 0.0
        else:
            frame.alpha = min(1.0, max(0.0, _number(alpha, "frame:SetAlpha(alpha)")))
        self._frames.update_visual(frame)

    def frame_set_font_size(self, frame_id: str, size: Any) -> None:
        frame = self._frame(frame_id)
        frame.font_size = _number(size, "frame:SetFontSize(size)")
        self._frames.update_visual(frame)

    def frame_set_script(self, frame_id: str, script: Any, handler: Any) -> None:
        if script not in FRAME_SCRIPTS:
            raise ValueError(f"Unsupported script type: {script}")
        frame = self._frame(frame_id)
        previous = frame.scripts.pop(script, None)
        if previous is not None:
            self._sandbox.release(previous.token)
        if handler is not None:
            if lua_type(handler) != "function":
                raise TypeError("Usage: frame:SetScript(script, handler)")
            token = self._sandbox.hold(handler)
            frame.scripts[script] = HandlerRef(addon=self._sandbox.addon_name, token=token)
        self._frames.update_visual(frame)

    def frame_set_color(self, frame_id: str, color: Any) -> None:
        frame = self._frame(frame_id)
        frame.backdrop = color_backdrop(str(color))
        self._frames.update_visual(frame)

    def frame_set_texture(self, frame_id: str, path: Any, insets: Any, tile: bool) -> None:
        frame = self._frame(frame_id)
        folder = self._sandbox.addon_folder
        if folder is None:
            raise RuntimeError("Textures need an addon folder")
        nine_patch = None
        if insets is not None:
            left, right, top, bottom = (int(insets[i]) for i in range(1, 5))
            nine_patch = NinePatchInsets(left=left, right=right, top=top, bottom=bottom)
        frame.backdrop = texture_backdrop(folder, str(path), insets=nine_patch, tile=bool(tile))
        self._output.info(f"Applied backdrop {path} to frame {frame_id}")
        self._frames.update_visual(frame)
