# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Resolve the ordered list of script files an addon declares.

Search order:
1. `<addon name><manifest suffix>` in the addon root (case-insensitive)
2. Any other manifest in the addon root (first by name)
3. Every script file under the root, sorted by full path
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from fluxhost.constants import MANIFEST_COMMENT, MANIFEST_DIRECTIVE, MANIFEST_SUFFIX, SCRIPT_SUFFIX
from fluxhost.errors import AddonNotFoundError
from fluxhost.logging import get_logger
from fluxhost.paths import normalize_reference, validate_within

log = get_logger(__name__)


class ManifestResolution(BaseModel):
    files: list[Path] = Field(default_factory=list)
    manifest: Path | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


class ManifestEntries(BaseModel):
    references: list[str] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)


def parse_manifest(text: str) -> ManifestEntries:
    """Split manifest text into file references and `## Key: Value` metadata.

    Only the first whitespace-delimited token of an entry line is the
    reference; the rest of the line is ignored.
    """
    entries = ManifestEntries()
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith(MANIFEST_DIRECTIVE):
            key, sep, value = line[len(MANIFEST_DIRECTIVE) :].partition(":")
            if sep and key.strip():
                entries.metadata[key.strip()] = value.strip()
            continue
        if line.startswith(MANIFEST_COMMENT):
            continue
        entries.references.append(line.split()[0])
    return entries


def find_manifest(root: Path, addon_name: str, suffix: str = MANIFEST_SUFFIX) -> Path | None:
    suffix = suffix.lower()
    candidates = sorted(
        (path for path in root.iterdir() if path.is_file() and path.name.lower().endswith(suffix)),
        key=lambda path: path.name.lower(),
    )
    preferred = f"{addon_name}{suffix}".lower()
    for candidate in candidates:
        if candidate.name.lower() == preferred:
            return candidate
    return candidates[0] if candidates else None


def scan_scripts(root: Path, suffix: str = SCRIPT_SUFFIX) -> list[Path]:
    """Every script file below root, sorted lexicographically by full path."""
    suffix = suffix.lower()
    found = (path for path in root.rglob("*") if path.is_file() and path.name.lower().endswith(suffix))
    return sorted(found, key=lambda path: str(path))


def resolve_manifest(
    root: Path,
    addon_name: str | None = None,
    script_suffix: str = SCRIPT_SUFFIX,
    manifest_suffix: str = MANIFEST_SUFFIX,
) -> ManifestResolution:
    """Determine the ordered absolute script paths to execute for an addon.

    Args:
        root: Addon root folder
        addon_name: Name used to pick the preferred manifest (defaults to the folder name)
        script_suffix: Extension a reference must end with to be kept
        manifest_suffix: Extension identifying manifest files

    Returns:
        Resolution with files in execution order and non-fatal warnings

    Raises:
        AddonNotFoundError: If root is not a directory
    """
    if not root.is_dir():
        raise AddonNotFoundError(f"Addon folder not found: {root}")
    root = root.resolve()
    addon_name = addon_name or root.name
    resolution = ManifestResolution()

    manifest = find_manifest(root, addon_name, manifest_suffix)
    if manifest is not None:
        try:
            text = manifest.read_text(encoding="utf-8-sig", errors="replace")
        except OSError as e:
            resolution.warnings.append(f"Cannot read manifest {manifest.name}: {e}")
            manifest = None
        else:
            resolution.manifest = manifest
            entries = parse_manifest(text)
            resolution.metadata = entries.metadata
            resolution.files = _resolve_references(root, entries.references, script_suffix, resolution.warnings)

    if manifest is None:
        resolution.files = scan_scripts(root, script_suffix)

    log.info(
        "manifest_resolved",
        addon=addon_name,
        manifest=str(resolution.manifest) if resolution.manifest else None,
        files=len(resolution.files),
        warnings=len(resolution.warnings),
    )
    return resolution


def _resolve_references(root: Path, references: list[str], script_suffix: str, warnings: list[str]) -> list[Path]:
    files: list[Path] = []
    suffix = script_suffix.lower()
    for reference in references:
        if not reference.lower().endswith(suffix):
            continue
        candidate = root / normalize_reference(reference)
        try:
            resolved = validate_within(candidate, root)
        except ValueError:
            warnings.append(f"Manifest entry outside addon folder: {reference}")
            continue
        if not resolved.is_file():
            warnings.append(f"Manifest entry not found: {reference}")
            continue
        files.append(resolved)
    return files
