# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Frame, backdrop and handler-reference models."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from fluxhost.constants import DEFAULT_FONT_SIZE, DEFAULT_FRAME_HEIGHT, DEFAULT_FRAME_WIDTH

BackdropMode = Literal["color", "stretch", "ninepatch"]


class HandlerRef(BaseModel):
    """A script closure held by its owning sandbox, addressed by token."""

    addon: str
    token: int

    model_config = ConfigDict(frozen=True)


class NinePatchInsets(BaseModel):
    left: int = 0
    right: int = 0
    top: int = 0
    bottom: int = 0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def uniform(cls, size: int) -> NinePatchInsets:
        return cls(left=size, right=size, top=size, bottom=size)


class Backdrop(BaseModel):
    """Frame background: a solid colour or a bitmap (stretched or nine-patch)."""

    mode: BackdropMode
    texture: Path | None = None
    bitmap: Image.Image | None = Field(default=None, exclude=True, repr=False)
    color: tuple[int, int, int, int] | None = None
    insets: NinePatchInsets | None = None
    tile: bool = False

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def use_nine_patch(self) -> bool:
        return self.mode == "ninepatch"


class Frame(BaseModel):
    """A rectangle on the canvas.

    `id` is assigned by the registry; `name` is the optional global a script
    or UI declaration bound the frame to.
    """

    id: str
    owner: str
    name: str | None = None
    x: float = 0.0
    y: float = 0.0
    width: float = DEFAULT_FRAME_WIDTH
    height: float = DEFAULT_FRAME_HEIGHT
    visible: bool = True
    alpha: float = Field(default=1.0, ge=0.0, le=1.0)
    text: str | None = None
    font_size: float = DEFAULT_FONT_SIZE
    backdrop: Backdrop | None = None
    scripts: dict[str, HandlerRef] = Field(default_factory=dict)

    model_config = ConfigDict(validate_assignment=True)

    @property
    def on_click(self) -> HandlerRef | None:
        return self.scripts.get("OnClick")

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.x + self.width and self.y <= y <= self.y + self.height
