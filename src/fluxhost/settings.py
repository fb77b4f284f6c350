# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Application settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fluxhost.constants import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_SAVE_DEBOUNCE_S,
    LIBRARY_DIRS,
    MANIFEST_SUFFIX,
    SCRIPT_SUFFIX,
    UI_SUFFIX,
)
from fluxhost.paths import default_data_root


class Settings(BaseSettings):
    data_root: Path = Field(default_factory=default_data_root)
    log_level: str = "WARNING"
    save_debounce_s: float = Field(default=DEFAULT_SAVE_DEBOUNCE_S, ge=0.0)
    script_suffix: str = SCRIPT_SUFFIX
    manifest_suffix: str = MANIFEST_SUFFIX
    ui_suffix: str = UI_SUFFIX
    library_dirs: list[str] = Field(default_factory=lambda: list(LIBRARY_DIRS))
    canvas_width: float = DEFAULT_CANVAS_WIDTH
    canvas_height: float = DEFAULT_CANVAS_HEIGHT

    model_config = SettingsConfigDict(
        env_prefix="FLUXHOST_",
        env_nested_delimiter="__",
        extra="ignore",
    )
