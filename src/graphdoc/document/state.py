# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Per-document bookkeeping of which paths are required, initialized, modified, or defaulted."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

StateName = Literal["require", "init", "modify", "default"]

STATE_NAMES: tuple[StateName, ...] = ("require", "init", "modify", "default")

# ###############
# Public Interface
# ###############


class PathStateSet:
    """Four named sets of paths.

    Membership in one set never affects another. ``modify`` entries carry
    the value the path held before its first change since the last clear;
    entries in the other sets carry ``True``.
    """

    def __init__(self) -> None:
        self.states: dict[str, dict[str, Any]] = {name: {} for name in STATE_NAMES}

    def __repr__(self) -> str:
        summary = ", ".join(f"{name}={list(self.states[name])}" for name in STATE_NAMES)
        return f"PathStateSet({summary})"

    def require(self, path: str) -> None:
        self.states["require"][path] = True

    def init(self, path: str) -> None:
        self.states["init"][path] = True

    def default(self, path: str) -> None:
        self.states["default"][path] = True

    def modify(self, path: str, prior_value: Any = None) -> None:
        """Add *path* to ``modify``; the first recorded prior value wins until cleared."""
        self.states["modify"].setdefault(path, prior_value)

    def clear(self, state: StateName) -> None:
        self.states[state] = {}

    def some(self, state: StateName | None = None) -> bool:
        """Return True if *state* (or any state, when omitted) holds at least one path."""
        if state is None:
            return any(self.states[name] for name in STATE_NAMES)
        return bool(self.states[state])

    def map(self, state: StateName, fn: Callable[[str], Any]) -> list[Any]:
        """Apply *fn* to each path in *state*, in insertion order."""
        return [fn(path) for path in list(self.states[state])]

    def has(self, state: StateName, path: str) -> bool:
        return path in self.states[state]

    def paths(self, state: StateName) -> list[str]:
        return list(self.states[state])

    def prior_value(self, path: str) -> Any:
        """Return the value *path* held before it was first modified, or None."""
        return self.states["modify"].get(path)
