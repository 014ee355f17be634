# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Base type contract bound to one schema path.

A :class:`SchemaType` owns the casting function, the setter and getter
chains, the default, the validator list, and index options for a single
path. Concrete variants live in :mod:`graphdoc.schema.types`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from graphdoc.errors import SchemaDefinitionError, ValidatorError
from graphdoc.utils import CallSignature, call_with, inspect_callable

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class ValidatorMode(Enum):
    """How a validator reports its verdict."""

    SYNC = "sync"
    CALLBACK = "callback"
    AWAITABLE = "awaitable"
    REGEXP = "regexp"


@dataclass(frozen=True)
class ValidatorSpec:
    """A registered validator together with its error kind and calling convention.

    Attributes:
        validator: The callable or compiled regular expression.
        kind: Error kind reported in :class:`~graphdoc.errors.ValidatorError`.
        mode: How the validator delivers its verdict.
        signature: Inspected calling convention of ``validator``.
    """

    validator: Callable[..., Any] | re.Pattern[str]
    kind: str | None
    mode: ValidatorMode
    signature: CallSignature

    @classmethod
    def build(cls, validator: Callable[..., Any] | re.Pattern[str], kind: str | None = None) -> ValidatorSpec:
        """Inspect *validator* once and record how it must be invoked.

        Coroutine functions are awaited, callables with two required
        positional parameters besides ``scope`` receive a ``respond(ok)`` continuation, and
        everything else returns its verdict directly.
        """
        if isinstance(validator, re.Pattern):
            return cls(validator, kind, ValidatorMode.REGEXP, CallSignature(required=1))
        signature = inspect_callable(validator)
        if inspect.iscoroutinefunction(validator):
            mode = ValidatorMode.AWAITABLE
        elif signature.arity == 2:
            mode = ValidatorMode.CALLBACK
        else:
            mode = ValidatorMode.SYNC
        return cls(validator, kind, mode, signature)

    def invoke(self, value: Any, respond: Callable[[Any], None], scope: Any = None) -> None:
        """Run the validator against *value* and eventually call ``respond(ok)``."""
        if self.mode is ValidatorMode.REGEXP:
            pattern = self.validator
            respond(pattern.search("" if value is None else str(value)) is not None)
        elif self.mode is ValidatorMode.CALLBACK:
            call_with(self.validator, self.signature, (value, respond), scope)
        elif self.mode is ValidatorMode.AWAITABLE:
            loop = asyncio.get_running_loop()
            task = loop.create_task(call_with(self.validator, self.signature, (value,), scope))
            _pending_tasks.add(task)
            task.add_done_callback(lambda done: self._settle(done, respond))
        else:
            respond(call_with(self.validator, self.signature, (value,), scope))

    def _settle(self, task: asyncio.Task[Any], respond: Callable[[Any], None]) -> None:
        _pending_tasks.discard(task)
        if task.cancelled():
            respond(False)
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Async validator %r raised: %s", self.kind, exc)
            respond(False)
            return
        respond(task.result())


@runtime_checkable
class SelectionAware(Protocol):
    """A scope that knows which paths were fetched and which were modified."""

    def is_selected(self, path: str) -> bool: ...

    def is_modified(self, path: str | None = None) -> bool: ...


class SchemaType:
    """Type contract for one declared path.

    Subclasses implement :meth:`cast` and :meth:`check_required` and may add
    option handlers (``enum``, ``min``, ...) through ``option_handlers``.
    Options passed at construction are applied by calling the handler of the
    same name, so ``{"required": True, "default": 3}`` is equivalent to
    ``.required(True).default(3)``.
    """

    instance = "mixed"
    option_handlers: tuple[str, ...] = ("default", "index", "unique", "sparse", "required", "validate", "set", "get")
    spread_options: tuple[str, ...] = ("validate",)

    def __init__(self, path: str, options: Mapping[str, Any] | None = None) -> None:
        self.path = path
        self.options: dict[str, Any] = dict(options or {})
        self.setters: list[Callable[..., Any]] = []
        self.getters: list[Callable[..., Any]] = []
        self.validators: list[ValidatorSpec] = []
        self.default_value: Any = None
        self.index_options: Any = None
        self.is_required = False
        self._required_spec: ValidatorSpec | None = None
        self._signatures: dict[Callable[..., Any], CallSignature] = {}

        for name, value in self.options.items():
            if name not in self.option_handlers:
                continue
            # { unique: True, index: True } keeps the unique flag
            if name == "index" and self.index_options:
                continue
            handler = getattr(self, name)
            if name in self.spread_options and isinstance(value, list):
                handler(*value)
            else:
                handler(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self.path!r})"

    def cast(self, value: Any, doc: Any = None, init: bool = False) -> Any:
        """Convert *value* to this type. The base type accepts anything."""
        return value

    def check_required(self, value: Any) -> bool:
        """Return True if *value* satisfies the ``required`` constraint."""
        return value is not None

    def default(self, value: Any) -> SchemaType:
        """Set a literal default (cast now) or a factory called with the owner document."""
        if callable(value):
            self.default_value = value
        elif value is None:
            self.default_value = None
        else:
            self.default_value = self.cast(value)
        return self

    def set(self, fn: Callable[..., Any]) -> SchemaType:
        """Append a setter ``fn(value[, document[, schema_type]])``."""
        if not callable(fn):
            raise TypeError("A setter must be a function.")
        self.setters.append(fn)
        return self

    def get(self, fn: Callable[..., Any]) -> SchemaType:
        """Append a getter ``fn(value[, document[, schema_type]])``."""
        if not callable(fn):
            raise TypeError("A getter must be a function.")
        self.getters.append(fn)
        return self

    def index(self, options: Any) -> SchemaType:
        """Declare an index on this path (``True`` or an options mapping)."""
        self.index_options = options
        return self

    def unique(self, flag: bool) -> SchemaType:
        """Declare a unique index on this path."""
        return self._index_flag("unique", flag)

    def sparse(self, flag: bool) -> SchemaType:
        """Declare a sparse index on this path."""
        return self._index_flag("sparse", flag)

    def validate(self, obj: Any, *rest: Any) -> SchemaType:
        """Register one or more validators.

        Accepts ``validate(fn_or_regex, kind=None)`` or any number of
        mappings ``{"validator": fn_or_regex, "msg": kind}``.

        Raises:
            SchemaDefinitionError: If a validator definition is not usable.
        """
        if callable(obj) or isinstance(obj, re.Pattern):
            kind = rest[0] if rest else None
            self.validators.append(ValidatorSpec.build(obj, kind))
            return self

        for arg in (obj, *rest):
            validator = arg.get("validator") if isinstance(arg, Mapping) else None
            if not (callable(validator) or isinstance(validator, re.Pattern)):
                raise SchemaDefinitionError(f"Invalid validator. Received ({type(arg).__name__}) {arg!r}.")
            self.validators.append(ValidatorSpec.build(validator, arg.get("msg", arg.get("kind"))))
        return self

    def required(self, flag: bool | str = True, kind: str = "required") -> SchemaType:
        """Mark this path as required (or not, with ``False``).

        A string *flag* is used as the error kind. Paths that were neither
        selected nor modified on the owning document are skipped.
        """
        if self._required_spec is not None:
            self.validators.remove(self._required_spec)
            self._required_spec = None

        if flag is False:
            self.is_required = False
            return self

        if isinstance(flag, str):
            kind = flag
        self.is_required = True
        self._required_spec = ValidatorSpec.build(self._required_validator, kind)
        self.validators.append(self._required_spec)
        return self

    def get_default(self, scope: Any = None, init: bool = False) -> Any:
        """Evaluate the default for *scope*; returns None when no default is declared."""
        if callable(self.default_value):
            ret = call_with(self.default_value, self._signature_of(self.default_value, 0), (scope,), scope)
        else:
            ret = self.default_value
        if ret is None:
            return None
        return self.cast(ret, scope, init)

    def apply_setters(self, value: Any, scope: Any = None, init: bool = False, prior_value: Any = None) -> Any:
        """Run the setter chain in registration order, then cast the result."""
        v = value
        for setter in self.setters:
            v = call_with(setter, self._signature_of(setter, 1), (v, scope, self), scope)
        if v is None:
            return v
        return self.cast(v, scope, init)

    def apply_getters(self, value: Any, scope: Any = None) -> Any:
        """Run the getter chain in registration order."""
        v = value
        for getter in self.getters:
            v = call_with(getter, self._signature_of(getter, 1), (v, scope, self), scope)
        return v

    def do_validate(self, value: Any, callback: Callable[[ValidatorError | None], None], scope: Any = None) -> None:
        """Run validators in order and report the first failure (or ``None``) to *callback*.

        Validators after the first rejection are not run. A validator that
        raises counts as a rejection so *callback* always fires exactly once.
        """
        validators = list(self.validators)
        path = self.path

        def step(index: int) -> None:
            if index >= len(validators):
                callback(None)
                return
            spec = validators[index]
            settled = False

            def respond(ok: Any) -> None:
                nonlocal settled
                if settled:
                    return
                settled = True
                if ok is None or ok:
                    step(index + 1)
                else:
                    callback(ValidatorError(path, spec.kind, value))

            try:
                spec.invoke(value, respond, scope)
            except Exception as exc:
                if settled:
                    raise
                settled = True
                logger.warning("Validator %r for path %s raised: %s", spec.kind, path, exc)
                error = ValidatorError(path, spec.kind, value)
                error.__cause__ = exc
                callback(error)

        step(0)

    def _required_validator(self, value: Any, scope: Any = None) -> bool:
        if isinstance(scope, SelectionAware) and not scope.is_selected(self.path) and not scope.is_modified(self.path):
            return True
        return self.check_required(value)

    def _index_flag(self, name: str, flag: bool) -> SchemaType:
        if not isinstance(self.index_options, dict):
            self.index_options = {}
        self.index_options[name] = flag
        return self

    def _signature_of(self, fn: Callable[..., Any], minimum: int) -> CallSignature:
        signature = self._signatures.get(fn)
        if signature is None:
            signature = inspect_callable(fn, fallback=minimum).at_least(minimum)
            self._signatures[fn] = signature
        return signature


# ################
# Implementation
# ################

# Strong references to in-flight async validator tasks.
_pending_tasks: set[asyncio.Task[Any]] = set()
