# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exception hierarchy for addon hosting."""


class FluxError(Exception):
    """Base exception for addon hosting."""

    pass


class AddonNotFoundError(FluxError):
    """Addon folder or a referenced file does not exist."""

    pass


class ScriptError(FluxError):
    """A script raised while executing in its sandbox."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class UIParseError(FluxError):
    """Malformed declarative UI description or unreadable image."""

    pass


class PersistenceError(FluxError):
    """Reading or writing saved variables failed."""

    pass


class InvalidAddonNameError(PersistenceError):
    """Addon name cannot be used to build a storage path."""

    pass
