# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Declarative UI support."""

from __future__ import annotations

from fluxhost.ui.instantiator import UIInstantiator, ui_files

__all__ = ["UIInstantiator", "ui_files"]
