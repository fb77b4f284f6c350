# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Loaded addon model and the registry that owns them."""

from __future__ import annotations

import threading
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from fluxhost.scripting.sandbox import ScriptSandbox


class LoadReport(BaseModel):
    """What happened while loading one addon."""

    addon: str
    executed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    frames_declared: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


class Addon(BaseModel):
    name: str
    folder: Path
    sandbox: ScriptSandbox
    files: list[Path] = Field(default_factory=list)
    manifest: Path | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    report: LoadReport

    model_config = ConfigDict(arbitrary_types_allowed=True)


class AddonRegistry:
    """Loaded addons by name, in load order."""

    def __init__(self) -> None:
        self._addons: dict[str, Addon] = {}
        self._lock = threading.Lock()

    def put(self, addon: Addon) -> Addon | None:
        """Register an addon, replacing (and returning) any previous one of that name."""
        with self._lock:
            previous = self._addons.pop(addon.name, None)
            self._addons[addon.name] = addon
            return previous

    def get(self, name: str) -> Addon | None:
        with self._lock:
            return self._addons.get(name)

    def pop(self, name: str) -> Addon | None:
        with self._lock:
            return self._addons.pop(name, None)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._addons)

    def snapshot(self) -> list[Addon]:
        with self._lock:
            return list(self._addons.values())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._addons

    def __len__(self) -> int:
        with self._lock:
            return len(self._addons)
