# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Durable per-addon saved variables."""

from __future__ import annotations

from fluxhost.persistence.store import SavedVariablesStore, validate_addon_name

__all__ = ["SavedVariablesStore", "validate_addon_name"]
