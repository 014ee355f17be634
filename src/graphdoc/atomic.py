# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Array values that remember the partial mutation needed to persist them.

An :class:`AtomicCollection` behaves like a list but keeps a single pending
operation (push, pop, pull, add-to-set, or full replacement) so that a
persistence adapter can send a partial update instead of the whole array.
Queuing an operation of a different kind than the one already pending
collapses the queue to a full replacement.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, MutableSequence
from enum import Enum
from typing import TYPE_CHECKING, Any, overload

from graphdoc.options import SerializationOptions
from graphdoc.utils import clone, deep_equal

if TYPE_CHECKING:
    from graphdoc.schema.schematype import SchemaType

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class AtomicOp(Enum):
    """Kinds of pending array mutation."""

    PUSH = "$pushAll"
    POP = "$pop"
    PULL = "$pullAll"
    ADD_TO_SET = "$addToSet"
    SET = "$set"


class AtomicCollection(MutableSequence):
    """Mutable sequence bound to one array path of an owning document.

    Args:
        values: Initial (already cast) elements.
        path: The array path on the owner.
        owner: The owning document, notified through ``mark_modified(path)``.
        element_type: Schema type used to cast incoming elements.
    """

    def __init__(
        self,
        values: Iterable[Any] = (),
        path: str | None = None,
        owner: Any = None,
        element_type: SchemaType | None = None,
    ) -> None:
        self._items: list[Any] = list(values)
        self._path = path
        self._owner = owner
        self._element_type = element_type
        self._atomics: dict[AtomicOp, Any] = {}
        self._popped = False
        self._shifted = False

    @property
    def path(self) -> str | None:
        return self._path

    @property
    def owner(self) -> Any:
        return self._owner

    @property
    def element_type(self) -> SchemaType | None:
        return self._element_type

    @property
    def pending_operation(self) -> tuple[AtomicOp, Any] | None:
        """The queued ``(op, payload)`` pair, or ``None`` when nothing is pending.

        ``POP`` carries ``1`` (last element) or ``-1`` (first element); ``SET``
        carries a plain copy of the whole array.
        """
        if not self._atomics:
            return None
        op, payload = next(iter(self._atomics.items()))
        if op is AtomicOp.SET:
            return op, self.to_object()
        if isinstance(payload, list):
            return op, list(payload)
        return op, payload

    def has_atomics(self) -> bool:
        return bool(self._atomics)

    def clear_atomics(self) -> None:
        """Forget the pending operation (called when the owner resets)."""
        self._atomics = {}

    def collapse_to_set(self) -> None:
        """Replace any pending partial operation with a full replacement."""
        self._register_atomic(AtomicOp.SET)

    # Sequence protocol

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __contains__(self, value: Any) -> bool:
        return any(deep_equal(item, value) for item in self._items)

    @overload
    def __getitem__(self, index: int) -> Any: ...

    @overload
    def __getitem__(self, index: slice) -> list[Any]: ...

    def __getitem__(self, index: int | slice) -> Any:
        return self._items[index]

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            self._items[index] = [self._cast(v) for v in value]
        else:
            self._items[index] = self._cast(value)
        self._register_atomic(AtomicOp.SET)

    def __delitem__(self, index: Any) -> None:
        del self._items[index]
        self._register_atomic(AtomicOp.SET)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AtomicCollection):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"AtomicCollection({self._items!r})"

    # Atomic operations

    def push(self, *values: Any) -> int:
        """Cast and append *values*, merging them into a pending push. Returns the new length."""
        cast = [self._cast(v) for v in values]
        self._items.extend(cast)
        self._register_atomic(AtomicOp.PUSH, cast)
        return len(self._items)

    def append(self, value: Any) -> None:
        self.push(value)

    def extend(self, values: Iterable[Any]) -> None:
        self.push(*values)

    def non_atomic_push(self, *values: Any) -> int:
        """Append *values* and queue a full replacement."""
        self._items.extend(self._cast(v) for v in values)
        self._register_atomic(AtomicOp.SET)
        return len(self._items)

    def atomic_pop(self) -> Any:
        """Remove and return the last element as a partial operation.

        Works once per generation; later calls return ``None`` and leave the
        array unchanged until the owning document resets.
        """
        if self._popped:
            return None
        self._popped = True
        self._register_atomic(AtomicOp.POP, 1)
        return self._items.pop() if self._items else None

    def atomic_shift(self) -> Any:
        """Remove and return the first element as a partial operation, once per generation."""
        if self._shifted:
            return None
        self._shifted = True
        self._register_atomic(AtomicOp.POP, -1)
        return self._items.pop(0) if self._items else None

    def pop(self, index: int = -1) -> Any:
        """Remove and return the element at *index*; queues a full replacement."""
        ret = self._items.pop(index)
        self._register_atomic(AtomicOp.SET)
        return ret

    def shift(self) -> Any:
        """Remove and return the first element; queues a full replacement."""
        return self.pop(0)

    def pull(self, *values: Any) -> AtomicCollection:
        """Remove every element equal to one of *values* and merge them into a pending pull."""
        cast = [self._cast(v) for v in values]
        self._items = [item for item in self._items if not any(deep_equal(item, v) for v in cast)]
        self._register_atomic(AtomicOp.PULL, cast)
        return self

    def remove(self, *values: Any) -> AtomicCollection:  # type: ignore[override]
        return self.pull(*values)

    def add_to_set(self, *values: Any) -> list[Any]:
        """Append each of *values* not already present and return the ones appended.

        Dates compare by instant, other values structurally.
        """
        added: list[Any] = []
        for value in values:
            cast = self._cast(value)
            if any(deep_equal(item, cast) for item in self._items):
                continue
            self._items.append(cast)
            added.append(cast)
            self._register_atomic(AtomicOp.ADD_TO_SET, [cast])
        return added

    # Full replacement operations

    def splice(self, start: int, delete_count: int | None = None, *values: Any) -> list[Any]:
        """Remove *delete_count* elements at *start*, insert *values*, and return the removed ones."""
        size = len(self._items)
        if start < 0:
            start = max(size + start, 0)
        start = min(start, size)
        end = size if delete_count is None else min(start + max(delete_count, 0), size)
        removed = self._items[start:end]
        self._items[start:end] = [self._cast(v) for v in values]
        self._register_atomic(AtomicOp.SET)
        return removed

    def unshift(self, *values: Any) -> int:
        self._items[0:0] = [self._cast(v) for v in values]
        self._register_atomic(AtomicOp.SET)
        return len(self._items)

    def insert(self, index: int, value: Any) -> None:
        self._items.insert(index, self._cast(value))
        self._register_atomic(AtomicOp.SET)

    def sort(self, key: Callable[[Any], Any] | None = None, reverse: bool = False) -> AtomicCollection:
        self._items.sort(key=key, reverse=reverse)
        self._register_atomic(AtomicOp.SET)
        return self

    def reverse(self) -> None:
        self._items.reverse()
        self._register_atomic(AtomicOp.SET)

    def clear(self) -> None:
        self._items.clear()
        self._register_atomic(AtomicOp.SET)

    def to_object(self, options: SerializationOptions | None = None) -> list[Any]:
        """Return a plain list copy of the elements."""
        return [clone(item, options) for item in self._items]

    def _cast(self, value: Any) -> Any:
        if self._element_type is None:
            return value
        return self._element_type.cast(value, self._owner)

    def _register_atomic(self, op: AtomicOp, payload: Any = None) -> None:
        if op is AtomicOp.POP and op not in self._atomics:
            self._rearm_on_reset()

        if op is AtomicOp.SET:
            self._atomics = {AtomicOp.SET: None}
        elif AtomicOp.SET in self._atomics:
            pass
        elif self._atomics and op not in self._atomics:
            logger.debug("Collapsing %s on %s to a full replacement", op.name, self._path)
            self._atomics = {AtomicOp.SET: None}
        else:
            if op is AtomicOp.POP:
                self._atomics[op] = payload
            else:
                self._atomics[op] = self._atomics.get(op, []) + list(payload)
        self._mark_modified()

    def _rearm_on_reset(self) -> None:
        events = getattr(self._owner, "events", None)
        if events is None:
            return

        def rearm(*_: Any) -> None:
            self._popped = False
            self._shifted = False

        events.once("reset", rearm)

    def _mark_modified(self) -> None:
        if self._owner is not None and self._path is not None:
            self._owner.mark_modified(self._path)
