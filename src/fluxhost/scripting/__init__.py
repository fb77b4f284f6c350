# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-addon Lua sandbox and the host API it exposes."""

from __future__ import annotations

from fluxhost.scripting.sandbox import ScriptResult, ScriptSandbox, TriggerResult

__all__ = ["ScriptResult", "ScriptSandbox", "TriggerResult"]
