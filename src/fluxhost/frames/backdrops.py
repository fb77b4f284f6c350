# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Backdrop construction shared by the script API and declarative UI."""

from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageColor, UnidentifiedImageError

from fluxhost.errors import UIParseError
from fluxhost.frames.models import Backdrop, NinePatchInsets
from fluxhost.paths import normalize_reference, validate_within


def resolve_texture(addon_folder: Path, reference: str) -> Path:
    """Resolve an addon-relative image reference.

    Raises:
        UIParseError: If the path escapes the addon folder or does not exist
    """
    candidate = addon_folder / normalize_reference(reference)
    try:
        resolved = validate_within(candidate, addon_folder)
    except ValueError as e:
        raise UIParseError(f"Texture outside addon folder: {reference}") from e
    if not resolved.is_file():
        raise UIParseError(f"Texture file not found: {resolved}")
    return resolved


def load_bitmap(path: Path) -> Image.Image:
    """Decode an image fully so the file handle is released."""
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError, ValueError) as e:
        raise UIParseError(f"Unreadable image {path}: {e}") from e


def texture_backdrop(
    addon_folder: Path,
    reference: str,
    insets: NinePatchInsets | None = None,
    tile: bool = False,
) -> Backdrop:
    """Nine-patch when insets are given, stretch-fill otherwise."""
    path = resolve_texture(addon_folder, reference)
    bitmap = load_bitmap(path)
    return Backdrop(
        mode="ninepatch" if insets is not None else "stretch",
        texture=path,
        bitmap=bitmap,
        insets=insets,
        tile=tile,
    )


def color_backdrop(color: str) -> Backdrop:
    """Solid backdrop from a colour name or #RRGGBB / #RRGGBBAA string.

    Raises:
        ValueError: If the colour is not recognised
    """
    rgba = ImageColor.getcolor(color, "RGBA")
    return Backdrop(mode="color", color=tuple(rgba))
