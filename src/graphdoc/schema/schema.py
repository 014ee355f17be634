# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema: the ordered path-to-type mapping a document is built against."""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from typing import Any, Literal

from graphdoc.errors import SchemaDefinitionError
from graphdoc.hooks import HookPipeline
from graphdoc.options import SchemaOptions
from graphdoc.schema.schematype import SchemaType
from graphdoc.schema.types import VirtualType, interpret_as_type

PathType = Literal["real", "virtual", "adhocOrUndefined"]

# Public attributes and methods of a document.
RESERVED_PATHS = frozenset(
    {
        "schema",
        "errors",
        "is_new",
        "events",
        "model_name",
        "pending_error",
        "pop_pending_error",
        "set",
        "get",
        "get_value",
        "set_value",
        "init",
        "mark_modified",
        "modified_paths",
        "is_modified",
        "is_direct_modified",
        "is_init",
        "is_selected",
        "validate",
        "validate_async",
        "validate_unique_indexes",
        "invalidate",
        "reset",
        "dirty",
        "to_object",
        "to_json",
    }
)

# Index kinds kept verbatim in an index field specification.
INDEX_TYPES = ("2d", "2dsphere", "hashed", "text", "fulltext")

# ###############
# Public Interface
# ###############


class Schema:
    """Ordered mapping from path name to :class:`SchemaType`, plus virtuals and behavior.

    Args:
        definition: Mapping of path name to type specification. See
            :meth:`add` for the accepted forms.
        options: Schema options as a :class:`SchemaOptions` or a plain mapping.

    Example::

        schema = Schema({
            "name": {"type": str, "required": True, "trim": True},
            "age": {"type": int, "min": 0},
            "tags": [str],
            "meta": {},
        })
    """

    def __init__(
        self,
        definition: Mapping[str, Any] | None = None,
        options: SchemaOptions | Mapping[str, Any] | None = None,
    ) -> None:
        self.paths: dict[str, SchemaType] = {}
        self.virtuals: dict[str, VirtualType] = {}
        self.tree: dict[str, Any] = {}
        self.methods: dict[str, Callable[..., Any]] = {}
        self.statics: dict[str, Callable[..., Any]] = {}
        self.pipeline = HookPipeline()
        self.options = _coerce_options(options)
        self._indexes: list[tuple[dict[str, Any], dict[str, Any]]] = []

        if definition:
            self.add(definition)

    def __repr__(self) -> str:
        return f"Schema(paths={list(self.paths)!r})"

    interpret_as_type = staticmethod(interpret_as_type)

    def add(self, definition: Mapping[str, Any], prefix: str = "") -> Schema:
        """Register every path in *definition*.

        Each value may be a type (``str``, ``int``, ``float``, ``bool``,
        ``datetime``, ``dict``, ``list`` or a :class:`SchemaType` subclass), a
        type name, a list ``[T]``, an empty mapping (Mixed), or a mapping with
        a ``type`` key plus options.

        Raises:
            SchemaDefinitionError: For ``None`` values, nested mappings without
                a ``type`` key, or reserved path names.
        """
        for key, value in definition.items():
            name = prefix + key
            if value is None:
                raise SchemaDefinitionError(f"Invalid value for schema path `{name}`")
            if isinstance(value, Mapping) and value and "type" not in value:
                raise SchemaDefinitionError(f"Nested paths are not supported for `{name}`")
            self.path(name, value)
        return self

    def path(self, name: str, definition: Any = None) -> Any:
        """Return the type at *name* or, with *definition*, register it and return the schema."""
        if definition is None:
            return self.paths.get(name)

        if name in RESERVED_PATHS:
            raise SchemaDefinitionError(f"`{name}` may not be used as a schema pathname")

        self.tree[name] = definition
        self.paths[name] = interpret_as_type(name, definition)
        return self

    def path_type(self, name: str) -> PathType:
        if name in self.paths:
            return "real"
        if name in self.virtuals:
            return "virtual"
        return "adhocOrUndefined"

    def required_paths(self) -> list[str]:
        """Return the paths currently declared required, in declaration order."""
        return [name for name, schema_type in self.paths.items() if schema_type.is_required]

    def virtual(self, name: str, options: Mapping[str, Any] | None = None) -> VirtualType:
        """Return the virtual at *name*, creating it on first use."""
        if name in self.paths:
            raise SchemaDefinitionError(f"Virtual path `{name}` conflicts with a real path")
        virtual = self.virtuals.get(name)
        if virtual is None:
            virtual = VirtualType(name, options)
            self.virtuals[name] = virtual
        return virtual

    def virtualpath(self, name: str) -> VirtualType | None:
        return self.virtuals.get(name)

    def index(self, fields: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> Schema:
        """Declare a compound index over *fields*."""
        self._indexes.append((dict(fields), dict(options or {})))
        return self

    def indexes(self) -> list[tuple[dict[str, Any], dict[str, Any]]]:
        """Return every index declaration as ``(fields, options)`` pairs.

        Single-path indexes come first, in path order, followed by compound
        indexes declared with :meth:`index`. Options default ``background``
        to True.
        """
        ret: list[tuple[dict[str, Any], dict[str, Any]]] = []
        for name, schema_type in self.paths.items():
            declared = schema_type.index_options
            if declared is None or declared is False:
                continue
            options = copy.deepcopy(declared) if isinstance(declared, dict) else {}
            kind = declared if isinstance(declared, str) else options.pop("type", None)
            field = {name: kind if kind in INDEX_TYPES else 1}
            options.setdefault("background", True)
            ret.append((field, options))

        for fields, options in self._indexes:
            merged = dict(options)
            merged.setdefault("background", True)
            ret.append((dict(fields), merged))
        return ret

    def method(self, name: str | Mapping[str, Callable[..., Any]], fn: Callable[..., Any] | None = None) -> Schema:
        """Add an instance method (or a mapping of them) bound to documents of this schema."""
        self.methods.update(_named_callables(name, fn))
        return self

    def static(self, name: str | Mapping[str, Callable[..., Any]], fn: Callable[..., Any] | None = None) -> Schema:
        """Add a static function (or a mapping of them) exposed on compiled models."""
        self.statics.update(_named_callables(name, fn))
        return self

    def plugin(self, fn: Callable[..., Any], options: Any = None) -> Schema:
        """Call ``fn(schema, options)`` so reusable extensions can modify this schema."""
        fn(self, options)
        return self

    def pre(self, phase: str, fn: Callable[..., Any]) -> Schema:
        self.pipeline.pre(phase, fn)
        return self

    def post(self, phase: str, fn: Callable[..., Any]) -> Schema:
        self.pipeline.post(phase, fn)
        return self

    def set(self, option: str, value: Any) -> Schema:
        """Set a schema option (validated against :class:`SchemaOptions`)."""
        if option not in SchemaOptions.model_fields:
            raise SchemaDefinitionError(f"Unknown schema option `{option}`")
        setattr(self.options, option, value)
        return self

    def get(self, option: str) -> Any:
        if option not in SchemaOptions.model_fields:
            raise SchemaDefinitionError(f"Unknown schema option `{option}`")
        return getattr(self.options, option)


# ################
# Implementation
# ################


def _coerce_options(options: SchemaOptions | Mapping[str, Any] | None) -> SchemaOptions:
    if options is None:
        return SchemaOptions()
    if isinstance(options, SchemaOptions):
        return options.model_copy(deep=True)
    return SchemaOptions.model_validate(dict(options))


def _named_callables(
    name: str | Mapping[str, Callable[..., Any]], fn: Callable[..., Any] | None
) -> dict[str, Callable[..., Any]]:
    if isinstance(name, Mapping):
        pairs = dict(name)
    else:
        pairs = {name: fn}
    for key, value in pairs.items():
        if not callable(value):
            raise SchemaDefinitionError(f"`{key}` must be a function")
    return pairs
