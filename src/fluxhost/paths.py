# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Filesystem paths and containment helpers."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_data_dir

from fluxhost.constants import SAVEDVARS_DIRNAME

ENV_DATA_ROOT = "FLUXHOST_DATA_ROOT"


def default_data_root() -> Path:
    """Get the default application data directory."""
    env_root = os.getenv(ENV_DATA_ROOT)
    if env_root:
        return Path(env_root)
    return Path(user_data_dir("fluxhost", "fluxhost"))


def savedvars_dir(data_root: Path) -> Path:
    """Create (if needed) and return the saved-variables directory."""
    path = data_root / SAVEDVARS_DIRNAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def validate_within(path: Path, root: Path) -> Path:
    """Ensure path resolves inside root.

    Args:
        path: Path to validate
        root: Directory the path must stay within

    Returns:
        Resolved path if valid

    Raises:
        ValueError: If path is outside root
    """
    resolved = path.resolve()
    root_resolved = root.resolve()

    if resolved != root_resolved and root_resolved not in resolved.parents:
        raise ValueError(f"Path outside {root_resolved}: {path}")

    return resolved


def normalize_reference(reference: str) -> Path:
    """Turn a manifest/XML file reference into a host path.

    Addon authors write either separator; both map to the host one.
    """
    return Path(*reference.replace("\\", "/").split("/"))
