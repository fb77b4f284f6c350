# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Saved-variables persistence with debounced, coalesced write-back.

Each addon has at most one pending timer. A change notification starts the
timer or pushes its deadline back; when it fires the addon's table is
snapshotted and written once, so only the latest state is stored.
"""

from __future__ import annotations

import itertools
import json
import os
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fluxhost.constants import DEFAULT_SAVE_DEBOUNCE_S, SAVEDVARS_SUFFIX
from fluxhost.errors import InvalidAddonNameError, PersistenceError
from fluxhost.logging import get_logger
from fluxhost.paths import savedvars_dir, validate_within

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from fluxhost.logging.output import OutputChannel
    from fluxhost.settings import Settings

log = get_logger(__name__)


def validate_addon_name(name: str) -> str:
    """Reject names that cannot safely become a file name.

    Raises:
        InvalidAddonNameError: For empty names, `.`/`..`, or names with
            path separators or NUL bytes
    """
    separators = {"/", "\\", "\x00", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    if not name or name in (".", "..") or any(sep in name for sep in separators):
        raise InvalidAddonNameError(f"Invalid addon name for saved variables: {name!r}")
    return name


@dataclass
class _PendingSave:
    generation: int
    timer: threading.Timer
    # Set once the timer fired and its save is under way.
    saving: bool = False
    saved: bool = False
    done: threading.Event = field(default_factory=threading.Event)


class SavedVariablesStore:
    """Loads and saves one JSON record per addon."""

    def __init__(
        self,
        directory: Path,
        output: OutputChannel | None = None,
        debounce_s: float = DEFAULT_SAVE_DEBOUNCE_S,
    ) -> None:
        """Initialize the store.

        Args:
            directory: Directory holding `<addon>.json` records (created if missing)
            output: Channel for persistence status and errors
            debounce_s: Default quiet period before a scheduled save fires
        """
        directory.mkdir(parents=True, exist_ok=True)
        self._directory = directory
        self._output = output
        self.debounce_s = debounce_s
        self._sources: dict[str, Callable[[], dict[str, Any]]] = {}
        self._pending: dict[str, _PendingSave] = {}
        self._generations = itertools.count(1)
        self._lock = threading.Lock()
        self._io_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, output: OutputChannel | None = None) -> SavedVariablesStore:
        return cls(savedvars_dir(settings.data_root), output=output, debounce_s=settings.save_debounce_s)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, addon_name: str) -> Path:
        validate_addon_name(addon_name)
        path = self._directory / f"{addon_name}{SAVEDVARS_SUFFIX}"
        try:
            return validate_within(path, self._directory)
        except ValueError as e:
            raise InvalidAddonNameError(str(e)) from e

    def attach(self, addon_name: str, source: Callable[[], dict[str, Any]]) -> None:
        """Register the callable that snapshots an addon's live table."""
        with self._lock:
            self._sources[addon_name] = source

    def detach(self, addon_name: str) -> None:
        with self._lock:
            self._sources.pop(addon_name, None)

    # durable I/O --------------------------------------------------------

    def load(self, addon_name: str) -> dict[str, Any]:
        """Return the stored record, or an empty dict when absent or unreadable."""
        try:
            path = self.path_for(addon_name)
        except InvalidAddonNameError as e:
            self._report_error(str(e))
            return {}
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._report_error(f"Failed to read saved variables for {addon_name}: {e}")
            return {}
        if not isinstance(data, dict):
            self._report_error(f"Saved variables for {addon_name} are not a mapping; ignoring")
            return {}
        log.info("savedvars_loaded", addon=addon_name, keys=len(data))
        return data

    def save(self, addon_name: str) -> bool:
        """Snapshot the addon's table and overwrite its record.

        Returns:
            True when the record was written
        """
        with self._lock:
            source = self._sources.get(addon_name)
        if source is None:
            log.debug("savedvars_save_skipped", addon=addon_name, reason="not_attached")
            return False
        try:
            path = self.path_for(addon_name)
            snapshot = source()
            payload = json.dumps(snapshot, indent=2, ensure_ascii=False)
            self._write(path, payload)
        except (PersistenceError, TypeError, ValueError) as e:
            self._report_error(f"Failed to save variables for {addon_name}: {e}")
            return False
        log.info("savedvars_saved", addon=addon_name, path=str(path))
        if self._output is not None:
            self._output.info(f"Saved variables for {addon_name}")
        return True

    def _write(self, path: Path, payload: str) -> None:
        tmp = path.with_name(f"{path.name}.tmp")
        with self._io_lock:
            try:
                tmp.write_text(payload, encoding="utf-8")
                os.replace(tmp, path)
            except OSError as e:
                raise PersistenceError(f"cannot write {path}: {e}") from e

    # debouncing ---------------------------------------------------------

    def schedule_save(self, addon_name: str, debounce_s: float | None = None) -> None:
        """Start the addon's save timer, or restart it if one is pending."""
        delay = self.debounce_s if debounce_s is None else debounce_s
        with self._lock:
            previous = self._pending.get(addon_name)
            if previous is not None:
                previous.timer.cancel()
            generation = next(self._generations)
            timer = threading.Timer(delay, self._fire, args=(addon_name, generation))
            timer.daemon = True
            self._pending[addon_name] = _PendingSave(generation, timer)
            timer.start()
        log.debug("savedvars_scheduled", addon=addon_name, delay_s=delay, reset=previous is not None)

    def _fire(self, addon_name: str, generation: int) -> None:
        with self._lock:
            pending = self._pending.get(addon_name)
            if pending is None or pending.generation != generation:
                return
            pending.saving = True
        try:
            pending.saved = self.save(addon_name)
        finally:
            with self._lock:
                # A notification during the save installed a newer timer; keep it.
                if self._pending.get(addon_name) is pending:
                    del self._pending[addon_name]
            pending.done.set()

    def is_pending(self, addon_name: str) -> bool:
        with self._lock:
            return addon_name in self._pending

    def _take(self, addon_name: str) -> _PendingSave | None:
        """Remove a waiting timer, leaving a save already under way in place."""
        with self._lock:
            pending = self._pending.get(addon_name)
            if pending is None:
                return None
            if not pending.saving:
                del self._pending[addon_name]
                pending.timer.cancel()
            return pending

    def cancel(self, addon_name: str) -> bool:
        """Drop a pending save without writing.

        Returns:
            True if a save was waiting; False when none was, or when its
            timer already fired and the write is under way
        """
        pending = self._take(addon_name)
        return pending is not None and not pending.saving

    def flush(self, addon_name: str) -> bool:
        """Save now, superseding any pending timer.

        If the timer already fired, wait for that save instead of writing the
        record a second time.
        """
        pending = self._take(addon_name)
        if pending is not None and pending.saving:
            pending.done.wait()
            return pending.saved
        return self.save(addon_name)

    def flush_all(self) -> None:
        """Save every addon that has a pending timer."""
        with self._lock:
            names = list(self._pending)
        for name in names:
            if self.is_pending(name):
                self.flush(name)

    def shutdown(self) -> None:
        self.flush_all()
        with self._lock:
            self._sources.clear()

    def _report_error(self, message: str) -> None:
        log.error("savedvars_error", message=message)
        if self._output is not None:
            self._output.error(message)
