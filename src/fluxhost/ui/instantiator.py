# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Create frames from declarative XML UI descriptions.

Recognised shape (namespaces are ignored):

    <Ui>
      <Frame width="200" height="80">
        <Anchors><Anchor point="TOPLEFT" x="10" y="20"/></Anchors>
        <Backdrop bgFile="textures/panel.png" edgeSize="8" tile="true"/>
        <FontString text="Hello"/>
      </Frame>
    </Ui>

`<Size x= y=/>` and `<Offset><AbsDimension x= y=/></Offset>` are accepted as
alternatives to the width/height and x/y attributes.
"""

from __future__ import annotations

import math
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from fluxhost.constants import FRAME_TAGS, MAX_UI_COORDINATE, UI_SUFFIX
from fluxhost.errors import UIParseError
from fluxhost.frames.backdrops import texture_backdrop
from fluxhost.frames.models import NinePatchInsets
from fluxhost.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from fluxhost.frames.models import Backdrop, Frame
    from fluxhost.frames.registry import FrameRegistry
    from fluxhost.logging.output import OutputChannel

log = get_logger(__name__)

_TRUE = {"true", "1", "yes"}


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, *path: str) -> ET.Element | None:
    """Follow direct children by local tag name."""
    current: ET.Element | None = element
    for name in path:
        if current is None:
            return None
        current = next((child for child in current if _local(child.tag) == name), None)
    return current


def _float(element: ET.Element, name: str) -> float | None:
    raw = element.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError as e:
        raise UIParseError(f"<{_local(element.tag)}> {name}={raw!r} is not a number") from e
    if not math.isfinite(value) or abs(value) > MAX_UI_COORDINATE:
        raise UIParseError(f"<{_local(element.tag)}> {name}={raw!r} is out of range")
    return value


def ui_files(root: Path, suffix: str = UI_SUFFIX) -> list[Path]:
    """Declarative UI files directly in the addon root, sorted by name."""
    suffix = suffix.lower()
    return sorted(
        (path for path in root.iterdir() if path.is_file() and path.name.lower().endswith(suffix)),
        key=lambda path: str(path),
    )


class UIInstantiator:
    """Turns frame declarations into registered frames owned by an addon."""

    def __init__(self, frames: FrameRegistry, output: OutputChannel) -> None:
        self._frames = frames
        self._output = output

    def instantiate_folder(self, owner: str, root: Path, suffix: str = UI_SUFFIX) -> list[Frame]:
        created: list[Frame] = []
        for path in ui_files(root, suffix):
            created.extend(self.instantiate_file(owner, root, path))
        return created

    def instantiate_file(self, owner: str, root: Path, path: Path) -> list[Frame]:
        """Create a frame for every frame element in one file.

        A malformed file yields no frames; a malformed element is skipped
        without affecting its siblings.
        """
        self._output.info(f"Parsing UI {path.name}")
        try:
            tree = ET.parse(path)
        except (ET.ParseError, OSError) as e:
            self._output.error(f"UI file {path.name} could not be parsed: {e}")
            return []

        created: list[Frame] = []
        for element in tree.getroot().iter():
            if _local(element.tag) not in FRAME_TAGS:
                continue
            try:
                created.append(self.instantiate_element(owner, root, element))
            except UIParseError as e:
                self._output.error(f"UI element in {path.name} skipped: {e}")
        log.info("ui_instantiated", addon=owner, file=path.name, frames=len(created))
        return created

    def instantiate_element(self, owner: str, root: Path, element: ET.Element) -> Frame:
        """Build one frame from its declaration and push it to the registry.

        Raises:
            UIParseError: If a numeric attribute is malformed. An unusable
                backdrop image is reported and the frame is built without it.
        """
        width, height = self._size(element)
        anchor = self._anchor_offset(element)
        backdrop = None
        backdrop_decl = _child(element, "Backdrop")
        if backdrop_decl is not None:
            try:
                backdrop = self._backdrop(root, backdrop_decl)
            except UIParseError as e:
                self._output.warning(f"Backdrop ignored: {e}")
        text_decl = _child(element, "FontString")
        if text_decl is None:
            text_decl = _child(element, "Layers", "Layer", "FontString")

        # Everything is validated before the frame exists.
        frame = self._frames.create(owner, name=element.get("name") or None)
        if width is not None:
            frame.width = width
        if height is not None:
            frame.height = height
        if anchor is not None:
            frame.x, frame.y = anchor
        if backdrop is not None:
            frame.backdrop = backdrop
        if text_decl is not None:
            text = text_decl.get("text")
            if text is None and text_decl.text and text_decl.text.strip():
                text = text_decl.text.strip()
            if text is not None:
                frame.text = text
        if element.get("hidden", "").lower() in _TRUE:
            frame.visible = False

        self._frames.update_visual(frame)
        self._output.info(f"Created frame {frame.name or frame.id} for {owner}")
        return frame

    def _size(self, element: ET.Element) -> tuple[float | None, float | None]:
        width = _float(element, "width")
        height = _float(element, "height")
        size = _child(element, "Size")
        if size is not None:
            if width is None:
                width = _float(size, "x")
            if height is None:
                height = _float(size, "y")
        return width, height

    def _anchor_offset(self, element: ET.Element) -> tuple[float, float] | None:
        anchor = _child(element, "Anchors", "Anchor")
        if anchor is None:
            anchor = _child(element, "Anchor")
        if anchor is None:
            return None
        x = _float(anchor, "x")
        y = _float(anchor, "y")
        offset = _child(anchor, "Offset", "AbsDimension")
        if offset is not None:
            x = _float(offset, "x") if x is None else x
            y = _float(offset, "y") if y is None else y
        if x is None and y is None:
            return None
        return x or 0.0, y or 0.0

    def _backdrop(self, root: Path, declaration: ET.Element) -> Backdrop | None:
        reference = declaration.get("bgFile") or declaration.get("file") or declaration.get("texture")
        if not reference:
            return None
        edge = _float(declaration, "edgeSize")
        insets = NinePatchInsets.uniform(int(edge)) if edge is not None and edge > 0 else None
        tile = declaration.get("tile", "").lower() in _TRUE
        return texture_backdrop(root, reference, insets=insets, tile=tile)
