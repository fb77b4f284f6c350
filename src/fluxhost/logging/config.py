# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""structlog setup for the host runtime.

Two streams leave fluxhost. Addon-facing status lines (script prints, load
progress, script errors) go through `OutputChannel` to whatever the embedding
application subscribes. Diagnostic events such as `addon_loaded`,
`savedvars_saved` or `script_failed` go through structlog to stderr, filtered
by `Settings.log_level` (`FLUXHOST_LOG_LEVEL`, default WARNING).

Library code only calls `get_logger`; the host process calls
`configure_logging` once, as `fluxhost run` does.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from fluxhost.settings import Settings

__all__ = ["get_logger", "configure_logging"]


def configure_logging(settings: Settings | None = None) -> None:
    """Route structlog events to stderr at the configured level.

    Args:
        settings: Source of `log_level`; read from the environment when None
    """
    if settings is None:
        from fluxhost.settings import Settings

        settings = Settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.WARNING)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Module-level logger; events are snake_case names with keyword context."""
    return structlog.get_logger(name)
