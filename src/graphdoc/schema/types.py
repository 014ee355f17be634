# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Concrete schema types: String, Number, Boolean, Date, Mixed, Array-of-T, and virtuals."""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Callable, Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any

from graphdoc.atomic import AtomicCollection
from graphdoc.errors import CastError, SchemaDefinitionError
from graphdoc.schema.schematype import SchemaType, ValidatorSpec
from graphdoc.utils import CallSignature, call_with, inspect_callable

# ###############
# Public Interface
# ###############


class StringType(SchemaType):
    """String path with ``enum``, ``match``, ``lowercase``, ``uppercase``, and ``trim`` options."""

    instance = "string"
    option_handlers = SchemaType.option_handlers + ("enum", "match", "lowercase", "uppercase", "trim")
    spread_options = ("validate", "enum")

    def __init__(self, path: str, options: Mapping[str, Any] | None = None) -> None:
        self.enum_values: list[Any] = []
        self._enum_spec: ValidatorSpec | None = None
        super().__init__(path, options)

    def enum(self, *values: Any) -> StringType:
        """Restrict values to *values* (``None`` always passes). ``enum(False)`` removes the restriction."""
        if self._enum_spec is not None:
            self.validators.remove(self._enum_spec)
            self._enum_spec = None

        if not values or values[0] is False:
            self.enum_values = []
            return self

        self.enum_values.extend(values)
        self._enum_spec = ValidatorSpec.build(lambda v: v is None or v in self.enum_values, "enum")
        self.validators.append(self._enum_spec)
        return self

    def match(self, pattern: str | re.Pattern[str], kind: str = "regexp") -> StringType:
        """Require non-empty values to contain a match for *pattern*."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern

        def matches(v: Any) -> bool:
            if v is None or v == "":
                return True
            return regex.search(str(v)) is not None

        self.validators.append(ValidatorSpec.build(matches, kind))
        return self

    def lowercase(self, flag: bool = True) -> StringType:
        if flag:
            self.set(lambda v: self._as_string(v).lower() if v else v)
        return self

    def uppercase(self, flag: bool = True) -> StringType:
        if flag:
            self.set(lambda v: self._as_string(v).upper() if v else v)
        return self

    def trim(self, flag: bool = True) -> StringType:
        if flag:
            self.set(lambda v: self._as_string(v).strip() if v else v)
        return self

    def check_required(self, value: Any) -> bool:
        return isinstance(value, str) and len(value) > 0

    def cast(self, value: Any, doc: Any = None, init: bool = False) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (Mapping, list, tuple, set, AtomicCollection)):
            raise CastError("string", value)
        return str(value)

    def _as_string(self, value: Any) -> str:
        return value if isinstance(value, str) else self.cast(value)


class NumberType(SchemaType):
    """Numeric path (int or float) with ``min`` and ``max`` options."""

    instance = "number"
    option_handlers = SchemaType.option_handlers + ("min", "max")

    def __init__(self, path: str, options: Mapping[str, Any] | None = None) -> None:
        self._min_spec: ValidatorSpec | None = None
        self._max_spec: ValidatorSpec | None = None
        super().__init__(path, options)

    def min(self, value: float | None, kind: str = "min") -> NumberType:
        """Reject values below *value*; ``None`` values pass. ``min(None)`` removes the bound."""
        if self._min_spec is not None:
            self.validators.remove(self._min_spec)
            self._min_spec = None
        if value is not None:
            self._min_spec = ValidatorSpec.build(lambda v: v is None or v >= value, kind)
            self.validators.append(self._min_spec)
        return self

    def max(self, value: float | None, kind: str = "max") -> NumberType:
        """Reject values above *value*; ``None`` values pass. ``max(None)`` removes the bound."""
        if self._max_spec is not None:
            self.validators.remove(self._max_spec)
            self._max_spec = None
        if value is not None:
            self._max_spec = ValidatorSpec.build(lambda v: v is None or v <= value, kind)
            self.validators.append(self._max_spec)
        return self

    def check_required(self, value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def cast(self, value: Any, doc: Any = None, init: bool = False) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if math.isnan(value):
                raise CastError("number", value)
            return value
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, str):
            text = value.strip()
            try:
                return int(text)
            except ValueError:
                pass
            try:
                number = float(text)
            except ValueError:
                raise CastError("number", value) from None
            if math.isnan(number):
                raise CastError("number", value)
            return number
        raise CastError("number", value)


class BooleanType(SchemaType):
    """Boolean path. ``"0"``, ``"false"`` and ``""`` cast to False, ``"true"`` to True."""

    instance = "boolean"

    def check_required(self, value: Any) -> bool:
        return value is True or value is False

    def cast(self, value: Any, doc: Any = None, init: bool = False) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            if value in ("0", "false", ""):
                return False
            if value == "true":
                return True
        return bool(value)


class DateType(SchemaType):
    """Date path holding :class:`datetime.datetime` values.

    Numbers and numeric strings are read as epoch milliseconds (UTC); other
    strings are parsed as ISO-8601 or ``MM/DD/YYYY``.
    """

    instance = "date"

    def check_required(self, value: Any) -> bool:
        return isinstance(value, datetime)

    def cast(self, value: Any, doc: Any = None, init: bool = False) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, bool):
            raise CastError("date", value)
        if isinstance(value, (int, float)):
            return _from_millis(value)
        if isinstance(value, str):
            return _parse_date_string(value)
        raise CastError("date", value)


class MixedType(SchemaType):
    """Untyped path. Values are stored as given; in-place changes need ``mark_modified``."""

    instance = "mixed"

    def default(self, value: Any) -> MixedType:
        # mutable literal defaults are copied per document
        if isinstance(value, (list, dict)):
            snapshot = copy.deepcopy(value)
            self.default_value = lambda: copy.deepcopy(snapshot)
            return self
        super().default(value)
        return self


class ArrayType(SchemaType):
    """Array-of-T path. Values are :class:`~graphdoc.atomic.AtomicCollection` instances.

    The default is always a factory producing a fresh collection; an array
    path without a declared default defaults to an empty collection.
    """

    instance = "array"

    def __init__(self, path: str, cast: Any = None, options: Mapping[str, Any] | None = None) -> None:
        if isinstance(cast, SchemaType):
            self.caster = cast
        elif cast is None:
            self.caster = MixedType(path)
        else:
            self.caster = interpret_as_type(path, cast)
        super().__init__(path, options)
        if "default" not in self.options:
            self.default(None)

    def default(self, value: Any) -> ArrayType:
        if callable(value):
            source = value
            signature = inspect_callable(source, fallback=0)

            def produce(scope: Any) -> Any:
                return call_with(source, signature, (scope,), scope)

        else:
            literal = value

            def produce(scope: Any) -> Any:
                if literal is None:
                    return []
                if isinstance(literal, (list, tuple)):
                    return list(literal)
                return literal

        self.default_value = produce
        return self

    def check_required(self, value: Any) -> bool:
        return value is not None and len(value) > 0

    def cast(self, value: Any, doc: Any = None, init: bool = False) -> Any:
        if isinstance(value, AtomicCollection) and value.owner is doc and value.path == self.path:
            return value
        if isinstance(value, (list, tuple, AtomicCollection)):
            try:
                items = [self.caster.cast(item, doc, init) for item in value]
            except CastError as exc:
                raise CastError(exc.type, value) from exc
            return AtomicCollection(items, self.path, doc, self.caster)
        return self.cast([value], doc, init)


class VirtualType:
    """A computed path with getter and setter chains and no stored value.

    Getters are called as ``fn(document[, value[, virtual]])`` and setters as
    ``fn(document, value[, virtual])``.
    """

    def __init__(self, path: str, options: Mapping[str, Any] | None = None) -> None:
        self.path = path
        self.options = dict(options or {})
        self.getters: list[Callable[..., Any]] = []
        self.setters: list[Callable[..., Any]] = []

    def __repr__(self) -> str:
        return f"VirtualType(path={self.path!r})"

    def get(self, fn: Callable[..., Any]) -> VirtualType:
        if not callable(fn):
            raise TypeError("A getter must be a function.")
        self.getters.append(fn)
        return self

    def set(self, fn: Callable[..., Any]) -> VirtualType:
        if not callable(fn):
            raise TypeError("A setter must be a function.")
        self.setters.append(fn)
        return self

    def apply_getters(self, value: Any, scope: Any = None) -> Any:
        v = value
        for getter in self.getters:
            v = call_with(getter, _at_least_one(getter), (scope, v, self), scope)
        return v

    def apply_setters(self, value: Any, scope: Any = None) -> Any:
        v = value
        for setter in self.setters:
            v = call_with(setter, _at_least_one(setter), (scope, v, self), scope)
        return v


class Types:
    """Schema type variants under their short names."""

    String = StringType
    Number = NumberType
    Boolean = BooleanType
    Bool = BooleanType
    Date = DateType
    Mixed = MixedType
    Object = MixedType
    Array = ArrayType


def interpret_as_type(path: str, obj: Any) -> SchemaType:
    """Build the :class:`SchemaType` for a single path definition.

    *obj* may be a type (``str``, ``int``, ``float``, ``bool``, ``datetime``,
    ``dict``, ``list``, or a :class:`SchemaType` subclass), a type name such
    as ``"string"`` or ``"Bool"``, a list ``[T]`` for Array-of-T, an empty
    mapping for Mixed, or a mapping with a ``type`` key plus options.

    Raises:
        SchemaDefinitionError: If the type cannot be resolved.
    """
    if isinstance(obj, Mapping):
        options: dict[str, Any] = dict(obj)
        declared = options.get("type", {})
    else:
        options = {}
        declared = obj

    if isinstance(declared, (list, tuple)):
        return ArrayType(path, declared[0] if declared else None, options)
    if declared is list or declared is ArrayType:
        return ArrayType(path, None, options)
    if isinstance(declared, Mapping):
        return MixedType(path, options)

    type_class = _resolve_type(path, declared)
    if type_class is ArrayType:
        return ArrayType(path, None, options)
    return type_class(path, options)


# ################
# Implementation
# ################

_PYTHON_TYPES: dict[Any, type[SchemaType]] = {
    str: StringType,
    int: NumberType,
    float: NumberType,
    Decimal: NumberType,
    bool: BooleanType,
    datetime: DateType,
    date: DateType,
    dict: MixedType,
    object: MixedType,
}

_TYPE_NAMES: dict[str, type[SchemaType]] = {
    "string": StringType,
    "number": NumberType,
    "boolean": BooleanType,
    "bool": BooleanType,
    "date": DateType,
    "mixed": MixedType,
    "object": MixedType,
    "array": ArrayType,
}

_DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d")


def _resolve_type(path: str, declared: Any) -> type[SchemaType]:
    if isinstance(declared, type) and issubclass(declared, SchemaType):
        return declared
    if isinstance(declared, str):
        found = _TYPE_NAMES.get(declared.lower())
        if found is not None:
            return found
    else:
        found = _PYTHON_TYPES.get(declared)
        if found is not None:
            return found
    name = declared if isinstance(declared, str) else getattr(declared, "__name__", repr(declared))
    raise SchemaDefinitionError(f"Undefined type `{name}` at `{path}`")


def _from_millis(value: float) -> datetime:
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise CastError("date", value) from exc


def _parse_date_string(value: str) -> datetime:
    text = value.strip()
    try:
        return _from_millis(float(text))
    except (ValueError, CastError):
        pass
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise CastError("date", value)


def _at_least_one(fn: Callable[..., Any]) -> CallSignature:
    return inspect_callable(fn).at_least(1)
