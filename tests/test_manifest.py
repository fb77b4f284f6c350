"""Tests for manifest parsing and script resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from fluxhost.addons.manifest import find_manifest, parse_manifest, resolve_manifest, scan_scripts
from fluxhost.errors import AddonNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def test_parse_manifest_skips_comments_and_collects_metadata() -> None:
    """Test that `#` lines are skipped and `## Key: Value` lines become metadata."""
    entries = parse_manifest(
        "## Title: Foo\n"
        "## Version: 1.2\n"
        "# a comment\n"
        "\n"
        "  init.script  \n"
        "main.script\n"
    )

    assert entries.references == ["init.script", "main.script"]
    assert entries.metadata == {"Title": "Foo", "Version": "1.2"}


def test_manifest_order_is_preserved(make_addon: Callable[..., Path]) -> None:
    """Test that files run in manifest order, not alphabetical order."""
    folder = make_addon(
        "Foo",
        {
            "Foo.manifest": "zeta.script\nalpha.script\n",
            "alpha.script": "",
            "zeta.script": "",
        },
    )

    resolution = resolve_manifest(folder)

    assert [path.name for path in resolution.files] == ["zeta.script", "alpha.script"]
    assert resolution.manifest is not None
    assert resolution.manifest.name == "Foo.manifest"
    assert resolution.warnings == []


def test_missing_entries_are_warned_and_dropped(make_addon: Callable[..., Path]) -> None:
    """Test that nonexistent manifest entries are removed with a warning."""
    folder = make_addon("Foo", {"Foo.manifest": "init.script\nghost.script\n", "init.script": ""})

    resolution = resolve_manifest(folder)

    assert [path.name for path in resolution.files] == ["init.script"]
    assert len(resolution.warnings) == 1
    assert "ghost.script" in resolution.warnings[0]


def test_non_script_tokens_are_ignored(make_addon: Callable[..., Path]) -> None:
    """Test that references without the script suffix are skipped silently."""
    folder = make_addon(
        "Foo",
        {"Foo.manifest": "Foo.xml\ninit.script\nreadme.txt\n", "init.script": "", "Foo.xml": "<Ui/>"},
    )

    resolution = resolve_manifest(folder)

    assert [path.name for path in resolution.files] == ["init.script"]
    assert resolution.warnings == []


def test_entries_outside_folder_are_rejected(make_addon: Callable[..., Path], addons_dir: Path) -> None:
    """Test that a manifest cannot reach files outside the addon folder."""
    (addons_dir / "secret.script").write_text("", encoding="utf-8")
    folder = make_addon("Foo", {"Foo.manifest": "../secret.script\n"})

    resolution = resolve_manifest(folder)

    assert resolution.files == []
    assert any("outside" in warning for warning in resolution.warnings)


def test_backslash_references_resolve(make_addon: Callable[..., Path]) -> None:
    """Test that either path separator is accepted in manifest entries."""
    folder = make_addon("Foo", {"Foo.manifest": "modules\\core.script\n", "modules/core.script": ""})

    resolution = resolve_manifest(folder)

    assert [path.relative_to(folder.resolve()).as_posix() for path in resolution.files] == ["modules/core.script"]


def test_fallback_scan_is_lexicographic(make_addon: Callable[..., Path]) -> None:
    """Test that without a manifest every script is found recursively in path order."""
    folder = make_addon(
        "Bar",
        {"b.script": "", "a.script": "", "sub/c.script": "", "notes.txt": ""},
    )

    first = resolve_manifest(folder)
    second = resolve_manifest(folder)

    names = [path.relative_to(folder.resolve()).as_posix() for path in first.files]
    assert names == ["a.script", "b.script", "sub/c.script"]
    assert first.files == second.files
    assert first.manifest is None


def test_manifest_named_after_folder_is_preferred(make_addon: Callable[..., Path]) -> None:
    """Test that `<name>.manifest` wins over other manifests in the folder."""
    folder = make_addon(
        "Foo",
        {"Alt.manifest": "a.script\n", "Foo.manifest": "b.script\n", "a.script": "", "b.script": ""},
    )

    manifest = find_manifest(folder, "Foo")

    assert manifest is not None
    assert manifest.name == "Foo.manifest"


def test_scan_scripts_matches_suffix_case_insensitively(tmp_path: Path) -> None:
    """Test that the script suffix is matched regardless of case."""
    (tmp_path / "UPPER.SCRIPT").write_text("", encoding="utf-8")
    (tmp_path / "lower.script").write_text("", encoding="utf-8")

    assert {path.name for path in scan_scripts(tmp_path)} == {"UPPER.SCRIPT", "lower.script"}


def test_missing_folder_raises(tmp_path: Path) -> None:
    """Test that resolving a nonexistent folder raises AddonNotFoundError."""
    with pytest.raises(AddonNotFoundError):
        resolve_manifest(tmp_path / "nope")
