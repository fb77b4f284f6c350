# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging layer: structlog configuration and the addon output channel."""

from __future__ import annotations

from fluxhost.logging.config import configure_logging, get_logger
from fluxhost.logging.output import OutputChannel, OutputLine

__all__ = ["OutputChannel", "OutputLine", "configure_logging", "get_logger"]
