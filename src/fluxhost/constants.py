# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Shared constants for fluxhost."""

from __future__ import annotations

# Addon folder conventions
SCRIPT_SUFFIX = ".script"
MANIFEST_SUFFIX = ".manifest"
UI_SUFFIX = ".xml"
LIBRARY_DIRS = ("libs", "lib", "libraries")
MANIFEST_COMMENT = "#"
MANIFEST_DIRECTIVE = "##"

# Persisted variables
SAVEDVARS_DIRNAME = "savedvars"
SAVEDVARS_SUFFIX = ".json"
DEFAULT_SAVE_DEBOUNCE_S = 2.0

# Frames
DEFAULT_FRAME_WIDTH = 100.0
DEFAULT_FRAME_HEIGHT = 50.0
DEFAULT_FONT_SIZE = 12.0
DEFAULT_CANVAS_WIDTH = 800.0
DEFAULT_CANVAS_HEIGHT = 600.0
ROOT_FRAME_NAME = "UIParent"
# Largest magnitude accepted for declared sizes, offsets and edge sizes
MAX_UI_COORDINATE = 1_000_000.0

# Lifecycle hooks, invoked in this order after all files ran
LIFECYCLE_HOOKS = ("OnInitialize", "OnEnable")

# Script handler slots a frame accepts via SetScript
FRAME_SCRIPTS = ("OnClick", "OnUpdate", "OnEnter", "OnLeave")

# Declarative UI element tags that declare a frame
FRAME_TAGS = frozenset({"Frame", "Button", "CheckButton", "StatusBar", "EditBox", "ScrollFrame"})
