# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""One Lua environment per addon, with its subscriptions and saved variables."""

from __future__ import annotations

import itertools
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from lupa import LuaError, LuaRuntime
from pydantic import BaseModel, Field

from fluxhost.constants import ROOT_FRAME_NAME
from fluxhost.logging import get_logger
from fluxhost.scripting.host_api import HostApi
from fluxhost.scripting.prelude import BUILTIN_LIBRARY_MINOR, PRELUDE
from fluxhost.scripting.values import HostValue, from_lua, to_lua

if TYPE_CHECKING:
    from collections.abc import Callable

    from fluxhost.frames.registry import FrameRegistry
    from fluxhost.logging.output import OutputChannel

log = get_logger(__name__)


class ScriptResult(BaseModel):
    """Outcome of running one chunk or invoking one closure."""

    source: str
    ok: bool
    error: str | None = None


class TriggerResult(BaseModel):
    invoked: int = 0
    errors: list[str] = Field(default_factory=list)


def _attribute_filter(obj: Any, attr_name: Any, is_setting: bool) -> Any:
    # Lua may read public attributes of host objects, never write them.
    if is_setting or not isinstance(attr_name, str) or attr_name.startswith("_"):
        raise AttributeError(f"access denied: {attr_name}")
    return attr_name


def _describe(error: Exception) -> str:
    if isinstance(error, LuaError):
        return str(error)
    return f"{type(error).__name__}: {error}"


class ScriptSandbox:
    """Executes an addon's scripts against the host API.

    All entry points that touch the Lua state take the sandbox lock, so a
    background snapshot of the saved variables never observes a half-applied
    script write.
    """

    def __init__(
        self,
        addon_name: str,
        frames: FrameRegistry,
        output: OutputChannel,
        addon_folder: Path | None = None,
        on_persisted_change: Callable[[str], None] | None = None,
    ) -> None:
        """Create the Lua runtime and install the host API.

        Args:
            addon_name: Name passed to every chunk and owning created frames
            frames: Registry that receives frames created by scripts
            output: Channel for print() and status lines
            addon_folder: Root used to resolve texture paths
            on_persisted_change: Called with the addon name on every
                SavedVariables write
        """
        self.addon_name = addon_name
        self.addon_folder = addon_folder
        self.on_persisted_change = on_persisted_change
        self.frame_ids: list[str] = []

        self._lock = threading.RLock()
        self._tokens = itertools.count(1)
        self._held: dict[int, Any] = {}
        self._subscriptions: dict[str, list[int]] = {}

        self._runtime = LuaRuntime(
            unpack_returned_tuples=True,
            register_eval=False,
            register_builtins=False,
            attribute_filter=_attribute_filter,
        )
        setup = self._runtime.eval(PRELUDE)
        self._internals = setup(HostApi(self, frames, output), addon_name, BUILTIN_LIBRARY_MINOR, ROOT_FRAME_NAME)

    # closures -----------------------------------------------------------

    def hold(self, function: Any) -> int:
        """Keep a Lua closure alive and return the token addressing it."""
        with self._lock:
            token = next(self._tokens)
            self._held[token] = function
            return token

    def release(self, token: int) -> None:
        with self._lock:
            self._held.pop(token, None)

    def subscribe(self, event: str, handler: Any) -> int:
        with self._lock:
            token = self.hold(handler)
            self._subscriptions.setdefault(event, []).append(token)
            return token

    def unsubscribe(self, token: int) -> None:
        with self._lock:
            for tokens in self._subscriptions.values():
                if token in tokens:
                    tokens.remove(token)
            self.release(token)

    def handler_count(self, event: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(event, ()))

    # execution ----------------------------------------------------------

    def run_string(self, code: str, chunkname: str = "(string)", first_arg: str | None = None) -> ScriptResult:
        """Run a chunk in the addon environment.

        The chunk receives (first_arg or addon name, namespace table) as its
        varargs. Errors are captured in the result, never raised.
        """
        with self._lock:
            try:
                self._internals["run_chunk"](code, chunkname, first_arg)
            except Exception as e:
                log.debug("script_failed", addon=self.addon_name, source=chunkname, error=str(e))
                return ScriptResult(source=chunkname, ok=False, error=_describe(e))
        return ScriptResult(source=chunkname, ok=True)

    def run_file(self, path: Path, first_arg: str | None = None) -> ScriptResult:
        chunkname = self._chunkname(path)
        try:
            code = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            return ScriptResult(source=chunkname, ok=False, error=f"cannot read {path}: {e}")
        return self.run_string(code, chunkname, first_arg)

    def trigger_event(self, event: str, *args: HostValue) -> TriggerResult:
        """Invoke every handler for the event in registration order.

        Handlers registered while dispatching run from the next dispatch on;
        handlers unregistered while dispatching are skipped.
        """
        result = TriggerResult()
        with self._lock:
            tokens = list(self._subscriptions.get(event, ()))
            if not tokens:
                return result
            lua_args = [to_lua(self._runtime, arg) for arg in args]
            for token in tokens:
                handler = self._held.get(token)
                if handler is None:
                    continue
                result.invoked += 1
                try:
                    handler(*lua_args)
                except Exception as e:
                    result.errors.append(_describe(e))
        return result

    def invoke_handler(self, token: int, *args: HostValue) -> ScriptResult:
        return self._invoke(f"handler #{token}", token, None, args)

    def invoke_frame_script(self, token: int, frame_id: str, script: str, *args: HostValue) -> ScriptResult:
        """Call a frame script handler as `handler(frame, ...)`."""
        return self._invoke(f"{script} of frame {frame_id}", token, frame_id, args)

    def expose_frame(self, frame_id: str, name: str | None = None) -> None:
        """Make a host-created frame reachable from scripts, as a global when named."""
        with self._lock:
            self._internals["frame_handle"](frame_id, name)

    def _invoke(self, source: str, token: int, frame_id: str | None, args: tuple[HostValue, ...]) -> ScriptResult:
        with self._lock:
            handler = self._held.get(token)
            if handler is None:
                return ScriptResult(source=source, ok=False, error="handler no longer registered")
            lua_args = [to_lua(self._runtime, arg) for arg in args]
            if frame_id is not None:
                lua_args.insert(0, self._internals["frame_handle"](frame_id, None))
            try:
                handler(*lua_args)
            except Exception as e:
                return ScriptResult(source=source, ok=False, error=_describe(e))
        return ScriptResult(source=source, ok=True)

    def invoke_lifecycle(self, hook: str) -> list[ScriptResult]:
        """Call `hook` on every addon object created via AceAddon, in creation order."""
        results: list[ScriptResult] = []
        with self._lock:
            targets = self._internals["lifecycle_targets"]
            for index in range(1, len(targets) + 1):
                target = targets[index]
                source = f"{target['name']}:{hook}"
                try:
                    member = target[hook]
                    if member is None:
                        continue
                    member(target)
                except Exception as e:
                    results.append(ScriptResult(source=source, ok=False, error=_describe(e)))
                else:
                    results.append(ScriptResult(source=source, ok=True))
        return results

    # saved variables ----------------------------------------------------

    def load_persisted(self, values: dict[str, HostValue]) -> None:
        """Replace the saved-variables table without raising change notifications."""
        with self._lock:
            self._internals["load_persisted"](to_lua(self._runtime, values))

    def snapshot_persisted(self) -> dict[str, HostValue]:
        """Deep copy of the saved-variables table as host values."""
        with self._lock:
            snapshot = from_lua(self._internals["persisted"])
        return snapshot if isinstance(snapshot, dict) else {}

    def notify_persisted_changed(self) -> None:
        if self.on_persisted_change is not None:
            self.on_persisted_change(self.addon_name)

    def _chunkname(self, path: Path) -> str:
        if self.addon_folder is not None:
            try:
                return path.relative_to(self.addon_folder).as_posix()
            except ValueError:
                pass
        return path.name
