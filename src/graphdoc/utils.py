# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Shared helpers: structural equality, minimal cloning, and callable inspection."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from graphdoc.options import SerializationOptions

# ###############
# Public Interface
# ###############


@runtime_checkable
class SupportsToObject(Protocol):
    """Anything that can render itself as plain data (documents, atomic collections)."""

    def to_object(self, options: SerializationOptions | None = None) -> Any: ...


@dataclass(frozen=True)
class CallSignature:
    """Calling convention of a user-supplied callable.

    Attributes:
        required: Number of positional parameters without defaults, ``scope`` included.
        accepts_scope: Whether the callable declares a ``scope`` parameter.
        scope_position: Index of ``scope`` among the positional parameters, or
            ``None`` when it is keyword-only or absent.
    """

    required: int
    accepts_scope: bool = False
    scope_position: int | None = None

    @property
    def arity(self) -> int:
        """Required positional parameters other than ``scope``."""
        if self.scope_position is not None and self.scope_position < self.required:
            return self.required - 1
        return self.required

    def at_least(self, minimum: int) -> CallSignature:
        """Return a copy that receives at least *minimum* positional arguments."""
        return replace(self, required=max(minimum, self.required))


def inspect_callable(fn: Callable[..., Any], fallback: int = 1) -> CallSignature:
    """Describe how *fn* expects to be called.

    Builtins without an introspectable signature are assumed to take
    *fallback* positional arguments.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return CallSignature(required=fallback)

    required = 0
    accepts_scope = False
    scope_position: int | None = None
    position = 0
    for name, param in signature.parameters.items():
        positional = param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        if name == "scope":
            accepts_scope = True
            if positional:
                scope_position = position
        if positional:
            if param.default is inspect.Parameter.empty:
                required += 1
            position += 1
    return CallSignature(required=required, accepts_scope=accepts_scope, scope_position=scope_position)


def call_with(fn: Callable[..., Any], signature: CallSignature, args: tuple[Any, ...], scope: Any = None) -> Any:
    """Call *fn* with as many of *args* as its signature requires.

    A ``scope`` parameter within the passed positions receives *scope* in
    its slot; one declared further along, or keyword-only, receives it as
    ``scope=``.
    """
    count = min(len(args), signature.required)
    positional = list(args[:count])
    position = signature.scope_position
    if position is not None and position < count:
        positional[position] = scope
        return fn(*positional)
    if signature.accepts_scope:
        return fn(*positional, scope=scope)
    return fn(*positional)


def deep_equal(a: Any, b: Any) -> bool:
    """Return True if *a* and *b* hold structurally equal data.

    Datetimes compare by instant, documents and atomic collections compare by
    their plain-data rendering, mappings by key set and values, and lists or
    tuples element-wise.
    """
    if a is b:
        return True

    if isinstance(a, datetime) and isinstance(b, datetime):
        return a.timestamp() == b.timestamp()

    if isinstance(a, SupportsToObject):
        a = a.to_object()
    if isinstance(b, SupportsToObject):
        b = b.to_object()

    if a is None or b is None:
        return a is b

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if set(a) != set(b):
            return False
        return all(deep_equal(a[key], b[key]) for key in a)

    if _is_sequence(a) and _is_sequence(b):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if _is_sequence(a) or _is_sequence(b) or isinstance(a, Mapping) or isinstance(b, Mapping):
        return False

    return bool(a == b)


def clone(obj: Any, options: SerializationOptions | None = None) -> Any:
    """Copy *obj* into plain data suitable for handing to a persistence adapter.

    With ``options.minimize`` set, ``None`` values and empty containers are
    dropped from mappings. With ``options.json_mode`` set, datetimes become
    ISO-8601 strings and nested documents render through ``to_json``.
    """
    if obj is None:
        return None

    if isinstance(obj, SupportsToObject):
        if options is not None and options.json_mode and hasattr(obj, "to_json"):
            return obj.to_json(options)
        return obj.to_object(options)

    if isinstance(obj, Mapping):
        return _clone_mapping(obj, options)

    if _is_sequence(obj):
        return [clone(item, options) for item in obj]

    if isinstance(obj, datetime):
        return obj.isoformat() if options is not None and options.json_mode else obj

    if isinstance(obj, (set, bytearray)):
        return obj.copy()

    return obj


# ################
# Implementation
# ################


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_empty_container(value: Any) -> bool:
    return isinstance(value, (dict, list)) and not value


def _clone_mapping(obj: Mapping[str, Any], options: SerializationOptions | None) -> dict[str, Any]:
    minimize = options is not None and options.minimize
    ret: dict[str, Any] = {}
    for key, value in obj.items():
        cloned = clone(value, options)
        if minimize and (cloned is None or _is_empty_container(cloned)):
            continue
        ret[key] = cloned
    return ret
