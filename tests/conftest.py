# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from fluxhost.addons.manager import AddonManager
from fluxhost.frames.registry import FrameRegistry
from fluxhost.logging.output import OutputChannel, OutputLine
from fluxhost.persistence.store import SavedVariablesStore
from fluxhost.scripting.sandbox import ScriptSandbox
from fluxhost.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


class OutputCollector:
    """Subscriber that records every output line."""

    def __init__(self, channel: OutputChannel) -> None:
        self.lines: list[OutputLine] = []
        channel.subscribe(self.lines.append)

    def texts(self, level: str | None = None) -> list[str]:
        return [line.text for line in self.lines if level is None or line.level == level]

    @property
    def errors(self) -> list[str]:
        return self.texts("error")

    @property
    def warnings(self) -> list[str]:
        return self.texts("warning")

    def clear(self) -> None:
        self.lines.clear()


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Isolated data directory."""
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def settings(data_root: Path) -> Settings:
    """Settings rooted in the test data directory with a short debounce."""
    return Settings(data_root=data_root, save_debounce_s=0.05)


@pytest.fixture
def output() -> OutputChannel:
    return OutputChannel()


@pytest.fixture
def collector(output: OutputChannel) -> OutputCollector:
    """Records lines emitted on the output fixture."""
    return OutputCollector(output)


@pytest.fixture
def frames() -> FrameRegistry:
    return FrameRegistry()


@pytest.fixture
def sandbox(frames: FrameRegistry, output: OutputChannel, tmp_path: Path) -> ScriptSandbox:
    """Sandbox for an addon named TestAddon rooted at tmp_path."""
    return ScriptSandbox("TestAddon", frames, output, addon_folder=tmp_path)


@pytest.fixture
def store(settings: Settings, output: OutputChannel) -> SavedVariablesStore:
    return SavedVariablesStore.from_settings(settings, output)


@pytest.fixture
def manager(settings: Settings, frames: FrameRegistry, output: OutputChannel) -> Iterator[AddonManager]:
    """Addon manager wired to the shared fixtures; flushed on teardown."""
    mgr = AddonManager(settings=settings, frames=frames, output=output)
    yield mgr
    mgr.shutdown()


@pytest.fixture
def addons_dir(tmp_path: Path) -> Path:
    """Parent directory for addon folders built by tests."""
    path = tmp_path / "addons"
    path.mkdir()
    return path


@pytest.fixture
def make_addon(addons_dir: Path) -> Callable[..., Path]:
    """Factory creating an addon folder from a mapping of relative files."""

    def _make(name: str, files: dict[str, str | bytes]) -> Path:
        folder = addons_dir / name
        folder.mkdir(parents=True, exist_ok=True)
        for relative, content in files.items():
            path = folder / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return folder

    return _make
