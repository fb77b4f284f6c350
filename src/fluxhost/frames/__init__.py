# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Runtime frame entities and their registry."""

from __future__ import annotations

from fluxhost.frames.models import Backdrop, Frame, HandlerRef, NinePatchInsets
from fluxhost.frames.registry import FrameRegistry

__all__ = ["Backdrop", "Frame", "FrameRegistry", "HandlerRef", "NinePatchInsets"]
