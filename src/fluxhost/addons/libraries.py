# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Run vendored shared libraries before an addon's own files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fluxhost.addons.manifest import scan_scripts
from fluxhost.constants import LIBRARY_DIRS, SCRIPT_SUFFIX
from fluxhost.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from fluxhost.logging.output import OutputChannel
    from fluxhost.scripting.sandbox import ScriptResult, ScriptSandbox

log = get_logger(__name__)


def find_library_dirs(root: Path, names: Iterable[str] = LIBRARY_DIRS) -> list[Path]:
    """Immediate subdirectories whose name matches a library folder name (any case)."""
    wanted = {name.lower() for name in names}
    return sorted(
        (path for path in root.iterdir() if path.is_dir() and path.name.lower() in wanted),
        key=lambda path: str(path),
    )


def library_files(root: Path, names: Iterable[str] = LIBRARY_DIRS, script_suffix: str = SCRIPT_SUFFIX) -> list[Path]:
    """Script files inside the library folders, sorted by full path."""
    files: list[Path] = []
    for directory in find_library_dirs(root, names):
        files.extend(scan_scripts(directory, script_suffix))
    return sorted(files, key=lambda path: str(path))


def load_libraries(
    sandbox: ScriptSandbox,
    root: Path,
    output: OutputChannel,
    names: Iterable[str] = LIBRARY_DIRS,
    script_suffix: str = SCRIPT_SUFFIX,
) -> dict[Path, ScriptResult]:
    """Execute every library file in the sandbox.

    A failing library is reported and the remaining libraries still run.

    Returns:
        Result per executed file, in execution order
    """
    root = root.resolve()
    results: dict[Path, ScriptResult] = {}
    for path in library_files(root, names, script_suffix):
        output.info(f"Executing library {path.relative_to(root).as_posix()}")
        result = sandbox.run_file(path)
        if not result.ok:
            output.error(f"Library {result.source} failed: {result.error}")
        results[path] = result
    log.info("libraries_loaded", addon=sandbox.addon_name, count=len(results))
    return results
