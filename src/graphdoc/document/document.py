# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema-bound, change-tracked document.

A :class:`Document` holds the raw property map of one graph node or
relationship, routes every read and write through its schema's types, and
records which paths were required, loaded, defaulted, or modified so that a
persistence adapter can validate it and write only what changed.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import types
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from graphdoc.atomic import AtomicCollection
from graphdoc.document.state import PathStateSet
from graphdoc.errors import StrictModeError, ValidationError, ValidatorError
from graphdoc.events import EventEmitter
from graphdoc.options import SerializationOptions, coerce_serialization_options
from graphdoc.schema.schematype import SchemaType
from graphdoc.schema.types import MixedType, VirtualType, interpret_as_type
from graphdoc.utils import clone, deep_equal

if TYPE_CHECKING:
    from graphdoc.model.descriptor import ModelDescriptor
    from graphdoc.schema.schema import Schema

logger = logging.getLogger(__name__)

ValidateCallback = Callable[[ValidationError | None], None]

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class DirtyPath:
    """One pending change: the path, its current raw value, and its schema type (if any)."""

    path: str
    value: Any
    schema_type: SchemaType | None


class Document:
    """A typed, validated, change-tracked view over a raw property map.

    Args:
        schema: The schema every path is resolved against.
        obj: Initial values, applied as a construction-time ``set``.
        fields: Field selection the document was loaded with, either a
            mapping of path to ``1`` (inclusive) or ``0`` (exclusive), or an
            iterable of selected path names.
        model: The compiled model this document belongs to, if any.
    """

    def __init__(
        self,
        schema: Schema,
        obj: Mapping[str, Any] | None = None,
        fields: Mapping[str, Any] | Iterable[str] | None = None,
        *,
        model: ModelDescriptor | None = None,
    ) -> None:
        self.is_new = True
        self.errors: dict[str, ValidatorError] | None = None
        self.events = EventEmitter()
        self._model = model
        self._save_error: Exception | None = None
        self._validation_error: ValidationError | None = None
        self._adhoc_paths: dict[str, SchemaType] = {}
        self._active_paths = PathStateSet()
        self._selected = _normalize_fields(fields)
        self._doc: dict[str, Any] = {}
        self.schema = schema

        for path in schema.required_paths():
            self._active_paths.require(path)

        self._doc = self._build_doc(obj, self._selected)
        if obj:
            self.set(obj, constructing=True)

    # Attribute access

    def __getattr__(self, name: str) -> Any:
        schema = self.__dict__.get("schema")
        if name.startswith("_") or schema is None:
            raise AttributeError(name)
        if name in schema.paths or name in schema.virtuals or name in self.__dict__.get("_adhoc_paths", {}):
            return self.get(name)
        method = schema.methods.get(name)
        if method is not None:
            return types.MethodType(method, self)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        schema = self.__dict__.get("schema")
        if schema is not None and name not in self.__dict__ and (name in schema.paths or name in schema.virtuals):
            self.set(name, value)
            return
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_object()!r})"

    @property
    def model_name(self) -> str | None:
        return self._model.name if self._model is not None else None

    @property
    def pending_error(self) -> Exception | None:
        """The most recent error captured by a failed ``set()`` since the last save check."""
        return self._save_error

    def pop_pending_error(self) -> Exception | None:
        """Return the pending save error and clear it."""
        error = self._save_error
        self._save_error = None
        return error

    # Reading and writing

    def set(
        self,
        path: str | Mapping[str, Any] | Document,
        value: Any = None,
        adhoc_type: Any = None,
        *,
        constructing: bool = False,
    ) -> Document:
        """Set one path, or every path of a mapping.

        Setter and cast failures are not raised. They are stored as the
        pending save error and reported by the next pre-save check.

        Raises:
            StrictModeError: If the schema is in ``strict="throw"`` mode and
                the path is not declared.
        """
        if isinstance(path, Document):
            path = path._doc
        if not isinstance(path, str):
            self._set_many(path, "", constructing)
            return self

        if adhoc_type is not None:
            self._adhoc_paths[path] = interpret_as_type(path, adhoc_type)

        strict = self.schema.options.strict
        path_type = self.schema.path_type(path)
        if path_type == "adhocOrUndefined" and strict and path not in self._adhoc_paths:
            if strict == "throw":
                raise StrictModeError(path)
            return self
        if path_type == "virtual":
            self.schema.virtuals[path].apply_setters(value, self)
            return self

        schema_type = self._path(path)
        if schema_type is None or value is None:
            self._set(path, constructing, schema_type, value)
            return self

        # no getters while constructing
        prior_value = None if constructing else self.get(path)
        try:
            value = schema_type.apply_setters(value, self, False, prior_value)
        except Exception as exc:
            self._error(exc)
            return self

        self._set(path, constructing, schema_type, value, prior_value)
        return self

    def get(self, path: str, adhoc_type: Any = None) -> Any:
        """Return the value at *path* after the getter chain (virtuals included)."""
        if adhoc_type is not None:
            self._adhoc_paths[path] = interpret_as_type(path, adhoc_type)

        schema_type: SchemaType | VirtualType | None = self._path(path) or self.schema.virtualpath(path)
        value = self._doc.get(path)
        if schema_type is not None:
            value = schema_type.apply_getters(value, self)
        return value

    def get_value(self, path: str) -> Any:
        """Return the raw stored value at *path*, reaching into arrays and mappings for sub-paths."""
        if path in self._doc:
            return self._doc[path]
        parts = path.split(".")
        for split in range(len(parts) - 1, 0, -1):
            head = ".".join(parts[:split])
            if head in self._doc:
                return _descend(self._doc[head], parts[split:])
        return None

    def set_value(self, path: str, value: Any) -> Document:
        """Store *value* at *path* without casting, setters, or state tracking."""
        self._doc[path] = value
        return self

    def init(self, raw: Mapping[str, Any]) -> Document:
        """Hydrate this document from a stored property map.

        Known paths are cast; unknown ones are stored as given. Every loaded
        path is marked ``init`` and the document is no longer new.
        """
        for key, value in raw.items():
            schema_type = self._path(key)
            if value is None or schema_type is None:
                self._doc[key] = value
            else:
                try:
                    self._doc[key] = schema_type.cast(value, self, True)
                except Exception as exc:
                    self._error(exc)
            if not self.is_modified(key):
                self._active_paths.init(key)

        self.is_new = False
        self.events.emit("init", self)
        return self

    # State queries

    def mark_modified(self, path: str) -> None:
        """Flag *path* as changed regardless of its value (e.g. after an in-place Mixed edit)."""
        self._active_paths.modify(path)

    def modified_paths(self) -> list[str]:
        """Return every modified path together with each of its parent paths."""
        ret: list[str] = []
        for path in self._active_paths.paths("modify"):
            parts = path.split(".")
            for index in range(1, len(parts) + 1):
                chain = ".".join(parts[:index])
                if chain not in ret:
                    ret.append(chain)
        return ret

    def is_modified(self, path: str | None = None) -> bool:
        if path:
            return path in self.modified_paths()
        return self._active_paths.some("modify")

    def is_direct_modified(self, path: str) -> bool:
        return self._active_paths.has("modify", path)

    def is_init(self, path: str) -> bool:
        return self._active_paths.has("init", path)

    def is_selected(self, path: str) -> bool:
        """Return True if *path* was fetched by the query that loaded this document."""
        selected = self._selected
        if not selected:
            return True

        if path == "id":
            return selected.get("id") != 0

        keys = list(selected)
        if keys == ["id"]:
            return selected["id"] == 0

        inclusive = False
        for key in reversed(keys):
            if key == "id":
                continue
            inclusive = bool(selected[key])
            break

        if path in selected:
            return inclusive
        return not inclusive

    # Validation

    def validate(self, callback: ValidateCallback) -> Document:
        """Validate every relevant path and call ``callback(error_or_none)`` once.

        Candidate paths are the required ones that were selected or modified,
        plus every loaded and every modified path. Each path is validated on
        its own turn of the running event loop.
        """
        candidates = [path for path in self._active_paths.paths("require") if self._should_validate(path)]
        candidates += self._active_paths.paths("init")
        candidates += self._active_paths.paths("modify")
        unique = list(dict.fromkeys(candidates))

        def complete() -> None:
            error = self._validation_error
            self._validation_error = None
            callback(error)

        if not unique:
            complete()
            return self

        loop = asyncio.get_running_loop()
        outstanding = len(unique)

        def finished(path: str, error: ValidatorError | None) -> None:
            nonlocal outstanding
            if error is not None:
                self.invalidate(path, error)
            outstanding -= 1
            if outstanding == 0:
                complete()

        def validate_path(path: str) -> None:
            schema_type = self.schema.path(path)
            if schema_type is None:
                finished(path, None)
                return
            schema_type.do_validate(self.get_value(path), lambda error: finished(path, error), self)

        for path in unique:
            loop.call_soon(validate_path, path)
        return self

    async def validate_async(self) -> ValidationError | None:
        """Await :meth:`validate` and return its aggregate error (or None)."""
        future: asyncio.Future[ValidationError | None] = asyncio.get_running_loop().create_future()

        def done(error: ValidationError | None) -> None:
            if not future.done():
                future.set_result(error)

        self.validate(done)
        return await future

    def validate_unique_indexes(
        self,
        lookup: Callable[[str, Any], Any],
        callback: ValidateCallback,
    ) -> Document:
        """Check that loaded or modified uniquely-indexed paths hold no duplicate value.

        ``lookup(path, value)`` returns (or resolves to) the ids of stored
        records holding *value* at *path*. A path fails unless the only match
        is this document's own ``id``. Lookup failures are logged and skipped.
        """
        unique_paths = {
            next(iter(fields)) for fields, options in self.schema.indexes() if len(fields) == 1 and options.get("unique")
        }
        candidates = self._active_paths.paths("init") + self._active_paths.paths("modify")
        paths = [path for path in dict.fromkeys(candidates) if path in unique_paths]

        def complete() -> None:
            error = self._validation_error
            self._validation_error = None
            callback(error)

        if not paths:
            complete()
            return self

        loop = asyncio.get_running_loop()
        outstanding = len(paths)

        def record(path: str, value: Any, ids: Any) -> None:
            nonlocal outstanding
            matches = list(ids or [])
            if matches and not (len(matches) == 1 and matches[0] == self.get_value("id")):
                self.invalidate(path, ValidatorError(path, "Duplicate value already exists", value))
            outstanding -= 1
            if outstanding == 0:
                complete()

        def settle(path: str, value: Any, task: asyncio.Future[Any]) -> None:
            _pending_lookups.discard(task)
            if task.cancelled() or task.exception() is not None:
                logger.warning("Unique index lookup for %s failed: %s", path, task.exception() or "cancelled")
                record(path, value, None)
                return
            record(path, value, task.result())

        def check(path: str) -> None:
            value = self.get_value(path)
            try:
                result = lookup(path, value)
            except Exception as exc:
                logger.warning("Unique index lookup for %s failed: %s", path, exc)
                record(path, value, None)
                return
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                _pending_lookups.add(task)
                task.add_done_callback(lambda done: settle(path, value, done))
            else:
                record(path, value, result)

        for path in paths:
            loop.call_soon(check, path)
        return self

    def invalidate(self, path: str, err: ValidatorError | Exception | str | None = None, value: Any = None) -> None:
        """Record *err* as the failure for *path* in the current aggregate error.

        Strings and other exceptions are wrapped in a :class:`ValidatorError`
        whose kind is the message; a wrapped exception becomes its cause.
        """
        if self._validation_error is None:
            self._validation_error = ValidationError(self)
        if err is None or isinstance(err, str):
            err = ValidatorError(path, err, value)
        elif not isinstance(err, ValidatorError):
            cause = err
            err = ValidatorError(path, str(cause) or type(cause).__name__, value)
            err.__cause__ = cause
        self._validation_error.errors[path] = err

    # Persistence support

    def reset(self) -> Document:
        """Forget pending changes after a successful write.

        Clears queued array operations on dirty paths, the ``modify`` state,
        and validation errors, then re-seeds the ``require`` state.
        """
        for dirt in self.dirty():
            if isinstance(dirt.value, AtomicCollection):
                dirt.value.clear_atomics()

        self._active_paths.clear("modify")
        self._validation_error = None
        self.errors = None
        for path in self.schema.required_paths():
            self._active_paths.require(path)

        self.events.emit("reset", self)
        return self

    _reset = reset

    def dirty(self) -> list[DirtyPath]:
        """Return the minimal list of changes to persist.

        Entries are sorted by path and a sub-path is dropped when its parent
        is already included. If an array and one of its elements were both
        modified, the array's queued operation becomes a full replacement.
        """
        entries = self._active_paths.map("modify", lambda path: DirtyPath(path, self.get_value(path), self._path(path)))
        entries.sort(key=lambda entry: entry.path)

        minimal: list[DirtyPath] = []
        top: DirtyPath | None = None
        for entry in entries:
            if top is None or not entry.path.startswith(top.path + "."):
                minimal.append(entry)
                top = entry
                continue
            if entry.value is None or top.value is None:
                continue
            if isinstance(top.value, AtomicCollection) and top.value.has_atomics():
                top.value.collapse_to_set()
        return minimal

    def to_object(self, options: SerializationOptions | Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Return a plain copy of the stored values.

        Without *options* the schema's ``to_object`` option is used. With
        ``getters`` set, path getters are applied, and virtuals are added
        unless ``virtuals`` is False; ``virtuals`` alone adds only virtuals.
        """
        if options is None:
            resolved = coerce_serialization_options(self.schema.options.to_object) or SerializationOptions()
        else:
            resolved = coerce_serialization_options(options)
        if resolved.minimize is None:
            resolved.minimize = self.schema.options.minimize

        ret = clone(self._doc, resolved)

        if resolved.virtuals or (resolved.getters and resolved.virtuals is not False):
            for path in self.schema.virtuals:
                ret[path] = clone(self.get(path), resolved)

        if resolved.getters:
            for path in self.schema.paths:
                ret[path] = clone(self.get(path), resolved)

        return ret

    def to_json(self, options: SerializationOptions | Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Like :meth:`to_object`, rendered for JSON (datetimes as ISO-8601 strings)."""
        if options is None:
            resolved = coerce_serialization_options(self.schema.options.to_json) or SerializationOptions()
        else:
            resolved = coerce_serialization_options(options)
        resolved.json_mode = True
        return self.to_object(resolved)

    # Implementation details

    def _build_doc(self, obj: Mapping[str, Any] | None, fields: dict[str, Any] | None) -> dict[str, Any]:
        doc: dict[str, Any] = {}

        exclude = False
        if fields:
            for key in reversed(list(fields)):
                if key != "id":
                    exclude = fields[key] == 0
                    break

        for path, schema_type in self.schema.paths.items():
            if path == "id" and obj and "id" in obj:
                continue
            if fields:
                if exclude and path in fields:
                    continue
                if not exclude and path not in fields:
                    continue

            default = schema_type.get_default(self, True)
            if default is not None:
                doc[path] = default
                self._active_paths.default(path)

        return doc

    def _set_many(self, values: Mapping[str, Any], prefix: str, constructing: bool) -> None:
        strict = self.schema.options.strict
        for key, value in values.items():
            path = prefix + key
            if isinstance(value, Mapping) and not isinstance(self._path(path), MixedType):
                self._set_many(value, path + ".", constructing)
            elif strict:
                known = self.schema.path_type(path) != "adhocOrUndefined" or path in self._adhoc_paths
                if known:
                    self.set(path, value, constructing=constructing)
                elif strict == "throw":
                    raise StrictModeError(path)
            elif value is not None:
                self.set(path, value, constructing=constructing)

    def _set(
        self,
        path: str,
        constructing: bool,
        schema_type: SchemaType | None,
        value: Any,
        prior_value: Any = None,
    ) -> None:
        states = self._active_paths
        if self.is_new:
            states.modify(path)
        else:
            if prior_value is None:
                prior_value = self.get(path)

            if not self.is_direct_modified(path):
                if value is None and not self.is_selected(path):
                    # a path left out of the query was explicitly cleared
                    states.modify(path, prior_value)
                elif value is None and self._only_defaulted(path):
                    # clearing a default that was never saved
                    pass
                elif not deep_equal(value, prior_value):
                    states.modify(path, prior_value)
                elif (
                    not constructing
                    and value is not None
                    and schema_type is not None
                    and self._only_defaulted(path)
                    and deep_equal(value, schema_type.get_default(self, constructing))
                ):
                    # the stored default may have been removed out of band
                    states.modify(path, prior_value)

        self._doc[path] = value

    def _path(self, path: str) -> SchemaType | None:
        adhoc = self._adhoc_paths.get(path)
        if adhoc is not None:
            return adhoc
        return self.schema.path(path)

    def _only_defaulted(self, path: str) -> bool:
        return self._active_paths.has("default", path) and not self._active_paths.has("init", path)

    def _should_validate(self, path: str) -> bool:
        return self.is_selected(path) or self.is_modified(path)

    def _error(self, exc: Exception) -> None:
        logger.debug("Deferring %s until the next save check: %s", type(exc).__name__, exc)
        self._save_error = exc


# ################
# Implementation
# ################

# Strong references to in-flight unique index lookups.
_pending_lookups: set[asyncio.Future[Any]] = set()


def _normalize_fields(fields: Mapping[str, Any] | Iterable[str] | None) -> dict[str, Any] | None:
    if fields is None:
        return None
    if isinstance(fields, Mapping):
        return dict(fields)
    return {name: 1 for name in fields}


def _descend(value: Any, parts: list[str]) -> Any:
    for part in parts:
        if isinstance(value, Mapping):
            value = value.get(part)
        elif isinstance(value, (list, tuple, AtomicCollection)) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else None
        else:
            return None
    return value
