# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Conversion between Lua values and host values.

Host code never keeps raw Lua objects except closures held by the sandbox.
Everything else crossing the boundary is one of the HostValue variants.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Union

from lupa import lua_type

if TYPE_CHECKING:
    from lupa import LuaRuntime

HostValue = Union[None, bool, int, float, str, dict[str, "HostValue"], list["HostValue"]]

MAX_DEPTH = 32


class UnsupportedValueError(TypeError):
    """A value has no representation on the other side of the boundary."""

    pass


def _key(key: Any) -> str:
    if isinstance(key, float) and key.is_integer():
        return str(int(key))
    if isinstance(key, bool) or not isinstance(key, (str, int, float)):
        raise UnsupportedValueError(f"unsupported table key: {key!r}")
    return str(key)


def from_lua(value: Any, depth: int = 0) -> HostValue:
    """Convert a Lua value into a host value.

    Sequences (keys 1..n) become lists, other tables dicts with string keys.
    Entries holding functions or other non-data values are dropped.

    Raises:
        UnsupportedValueError: If the value itself is not data
        ValueError: If tables nest deeper than MAX_DEPTH (or are cyclic)
    """
    if depth > MAX_DEPTH:
        raise ValueError(f"table nesting deeper than {MAX_DEPTH}")

    kind = lua_type(value)
    if kind is None:
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        raise UnsupportedValueError(f"unsupported host object: {type(value).__name__}")

    if kind != "table":
        raise UnsupportedValueError(f"unsupported Lua value: {kind}")

    items = list(value.items())
    if items and all(type(key) is int for key, _ in items):
        if sorted(key for key, _ in items) == list(range(1, len(items) + 1)):
            # Sequences holding non-data entries fall back to a mapping.
            try:
                return [from_lua(value[index], depth + 1) for index in range(1, len(items) + 1)]
            except UnsupportedValueError:
                pass

    result: dict[str, HostValue] = {}
    for key, item in items:
        try:
            result[_key(key)] = from_lua(item, depth + 1)
        except UnsupportedValueError:
            continue
    return result


def to_lua(runtime: LuaRuntime, value: HostValue) -> Any:
    """Convert a host value into something Lua can hold natively."""
    if isinstance(value, dict):
        table = runtime.table()
        for key, item in value.items():
            table[key] = to_lua(runtime, item)
        return table
    if isinstance(value, (list, tuple)):
        table = runtime.table()
        for index, item in enumerate(value, start=1):
            table[index] = to_lua(runtime, item)
        return table
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    raise UnsupportedValueError(f"unsupported host value: {type(value).__name__}")
