# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Addon discovery, loading and orchestration."""

from __future__ import annotations

from fluxhost.addons.base import Addon, LoadReport
from fluxhost.addons.manager import AddonManager
from fluxhost.addons.manifest import ManifestResolution, resolve_manifest

__all__ = ["Addon", "AddonManager", "LoadReport", "ManifestResolution", "resolve_manifest"]
