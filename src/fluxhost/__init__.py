# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Addon host runtime: sandboxed Lua addons, frames, events and saved variables."""

from __future__ import annotations

from fluxhost.addons.manager import AddonManager
from fluxhost.events import EventBus
from fluxhost.frames.registry import FrameRegistry
from fluxhost.logging.output import OutputChannel
from fluxhost.persistence.store import SavedVariablesStore
from fluxhost.settings import Settings

__all__ = [
    "AddonManager",
    "EventBus",
    "FrameRegistry",
    "OutputChannel",
    "SavedVariablesStore",
    "Settings",
]
