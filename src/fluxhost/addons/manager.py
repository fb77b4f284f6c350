# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Addon lifecycle orchestration."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from fluxhost.addons.base import Addon, AddonRegistry, LoadReport
from fluxhost.addons.libraries import load_libraries
from fluxhost.addons.manifest import resolve_manifest
from fluxhost.constants import LIFECYCLE_HOOKS
from fluxhost.errors import AddonNotFoundError, ScriptError
from fluxhost.events import EventBus
from fluxhost.frames.registry import FrameRegistry
from fluxhost.logging import get_logger
from fluxhost.logging.output import OutputChannel
from fluxhost.persistence.store import SavedVariablesStore
from fluxhost.scripting.sandbox import ScriptSandbox
from fluxhost.settings import Settings
from fluxhost.ui.instantiator import UIInstantiator

if TYPE_CHECKING:
    from fluxhost.events import DispatchReport
    from fluxhost.frames.models import Frame
    from fluxhost.scripting.sandbox import ScriptResult
    from fluxhost.scripting.values import HostValue

log = get_logger(__name__)


class AddonManager:
    """Loads addons and routes events, frame interaction and saves to them."""

    def __init__(
        self,
        settings: Settings | None = None,
        frames: FrameRegistry | None = None,
        output: OutputChannel | None = None,
        store: SavedVariablesStore | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            settings: Runtime settings (defaults to environment-derived Settings)
            frames: Registry shared with the presentation layer
            output: Channel receiving human-readable status lines
            store: Saved-variables store (defaults to one under settings.data_root)
        """
        self.settings = settings or Settings()
        self.output = output or OutputChannel()
        self.frames = frames or FrameRegistry(
            canvas_size=(self.settings.canvas_width, self.settings.canvas_height),
        )
        self.store = store or SavedVariablesStore.from_settings(self.settings, self.output)
        self.addons = AddonRegistry()
        self.bus = EventBus(self.addons, self.output)
        self._ui = UIInstantiator(self.frames, self.output)

    @property
    def loaded_addons(self) -> list[str]:
        return self.addons.names()

    def get(self, name: str) -> Addon | None:
        return self.addons.get(name)

    # loading ------------------------------------------------------------

    def load_addon(self, folder: Path | str) -> Addon | None:
        """Load (or reload) the addon rooted at `folder`.

        Order: saved variables, libraries, manifest or fallback scripts,
        declarative UI, lifecycle hooks. Script and UI failures are reported
        and loading continues; the addon is registered regardless.

        Returns:
            The loaded addon, or None if the folder does not exist
        """
        folder = Path(folder)
        if not folder.is_dir():
            self.output.error(f"Addon folder not found: {folder}")
            return None

        folder = folder.resolve()
        name = folder.name
        previous = self.addons.pop(name)
        if previous is not None:
            self.output.info(f"Reloading addon {name}")
            self._teardown(previous)
        else:
            self.output.info(f"Loading addon {name}")

        report = LoadReport(addon=name)
        sandbox = ScriptSandbox(
            name,
            self.frames,
            self.output,
            addon_folder=folder,
            on_persisted_change=self._persisted_changed,
        )
        sandbox.load_persisted(self.store.load(name))
        self.store.attach(name, sandbox.snapshot_persisted)

        executed: set[Path] = set()
        libraries = load_libraries(
            sandbox,
            folder,
            self.output,
            names=self.settings.library_dirs,
            script_suffix=self.settings.script_suffix,
        )
        for path, result in libraries.items():
            executed.add(path)
            (report.executed if result.ok else report.failed).append(result.source)

        resolution = resolve_manifest(
            folder,
            name,
            script_suffix=self.settings.script_suffix,
            manifest_suffix=self.settings.manifest_suffix,
        )
        for warning in resolution.warnings:
            self.output.warning(warning)
        report.warnings.extend(resolution.warnings)
        if resolution.manifest is None:
            self.output.info(f"No manifest for {name}; executing scripts in path order")

        for path in resolution.files:
            if path in executed:
                log.debug("script_already_executed", addon=name, path=str(path))
                continue
            executed.add(path)
            self._execute(sandbox, folder, path, report)

        declared = self._ui.instantiate_folder(name, folder, self.settings.ui_suffix)
        report.frames_declared = len(declared)
        for frame in declared:
            sandbox.expose_frame(frame.id, frame.name)

        for hook in LIFECYCLE_HOOKS:
            for result in sandbox.invoke_lifecycle(hook):
                if not result.ok:
                    report.failed.append(result.source)
                    self.output.error(f"{result.source} failed: {result.error}")

        addon = Addon(
            name=name,
            folder=folder,
            sandbox=sandbox,
            files=resolution.files,
            manifest=resolution.manifest,
            metadata=resolution.metadata,
            report=report,
        )
        self.addons.put(addon)
        log.info(
            "addon_loaded",
            addon=name,
            executed=len(report.executed),
            failed=len(report.failed),
            frames=report.frames_declared,
        )
        if report.ok:
            self.output.info(f"Loaded addon {name}")
        else:
            self.output.warning(f"Loaded addon {name} with {len(report.failed)} error(s)")
        return addon

    def load_all(self, parent: Path | str) -> list[Addon]:
        """Load every addon folder directly under `parent`, by name."""
        parent = Path(parent)
        if not parent.is_dir():
            self.output.error(f"Addon directory not found: {parent}")
            return []
        loaded: list[Addon] = []
        for folder in sorted(path for path in parent.iterdir() if path.is_dir()):
            addon = self.load_addon(folder)
            if addon is not None:
                loaded.append(addon)
        return loaded

    def unload(self, name: str) -> bool:
        """Save pending state, remove the addon and its frames."""
        addon = self.addons.pop(name)
        if addon is None:
            return False
        self._teardown(addon)
        self.output.info(f"Unloaded addon {name}")
        return True

    def _execute(self, sandbox: ScriptSandbox, folder: Path, path: Path, report: LoadReport) -> None:
        try:
            relative = path.relative_to(folder).as_posix()
        except ValueError:
            relative = path.name
        self.output.info(f"Executing {relative}")
        result = sandbox.run_file(path)
        if result.ok:
            report.executed.append(result.source)
        else:
            report.failed.append(result.source)
            self.output.error(f"Script error in {result.source}: {result.error}")

    def _teardown(self, addon: Addon) -> None:
        if self.store.is_pending(addon.name):
            self.store.flush(addon.name)
        self.store.detach(addon.name)
        self.frames.remove_owned_by(addon.name)
        log.info("addon_torn_down", addon=addon.name)

    def _persisted_changed(self, name: str) -> None:
        self.store.schedule_save(name)

    # scripting ----------------------------------------------------------

    def run_script(self, name: str, code: str) -> None:
        """Run a snippet in a loaded addon's environment.

        Raises:
            AddonNotFoundError: If no addon of that name is loaded
            ScriptError: If the snippet fails to compile or raises
        """
        addon = self.addons.get(name)
        if addon is None:
            raise AddonNotFoundError(f"Addon not loaded: {name}")
        result = addon.sandbox.run_string(code, chunkname=f"{name}:run")
        if not result.ok:
            raise ScriptError(result.source, result.error or "unknown error")

    def trigger_event(self, event: str, *args: HostValue) -> DispatchReport:
        return self.bus.dispatch(event, *args)

    def save_saved_variables(self, name: str) -> bool:
        """Write an addon's saved variables now."""
        return self.store.flush(name)

    # presentation -------------------------------------------------------

    def frames_of(self, name: str) -> list[Frame]:
        return self.frames.frames_owned_by(name)

    def invoke_frame_script(self, frame_id: str, script: str, *args: HostValue) -> ScriptResult | None:
        """Call a frame's script handler with the frame as first argument.

        Returns:
            The handler outcome, or None if the frame has no such handler
        """
        frame = self.frames.get(frame_id)
        if frame is None:
            return None
        ref = frame.scripts.get(script)
        if ref is None:
            return None
        addon = self.addons.get(ref.addon)
        if addon is None:
            log.warning("frame_script_orphaned", frame_id=frame_id, addon=ref.addon, script=script)
            return None
        result = addon.sandbox.invoke_frame_script(ref.token, frame_id, script, *args)
        if not result.ok:
            self.output.error(f"{script} handler error in {ref.addon}: {result.error}")
        return result

    def click_frame(self, frame_id: str, button: str = "LeftButton") -> ScriptResult | None:
        return self.invoke_frame_script(frame_id, "OnClick", button)

    def click_at(self, x: float, y: float, button: str = "LeftButton") -> ScriptResult | None:
        """Hit-test the canvas and click the topmost frame under the point."""
        frame = self.frames.hit_test(x, y)
        if frame is None:
            return None
        return self.click_frame(frame.id, button)

    def update_frames(self, elapsed: float) -> int:
        """Run every OnUpdate handler once. Returns the number invoked."""
        invoked = 0
        for frame in self.frames.frames():
            if "OnUpdate" in frame.scripts and frame.visible:
                if self.invoke_frame_script(frame.id, "OnUpdate", elapsed) is not None:
                    invoked += 1
        return invoked

    def move_frame(self, frame_id: str, x: float, y: float) -> Frame | None:
        frame = self.frames.get(frame_id)
        if frame is None:
            return None
        frame.x = x
        frame.y = y
        self.frames.update_visual(frame)
        return frame

    # shutdown -----------------------------------------------------------

    def shutdown(self) -> None:
        """Flush every pending save."""
        self.store.shutdown()
        log.info("addon_manager_shutdown", addons=len(self.addons))
