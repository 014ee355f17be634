# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Minimal synchronous event emitter owned by each document."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any


class EventEmitter:
    """Named events with persistent and one-shot listeners.

    Listeners run synchronously in registration order. One-shot listeners
    are removed before they are called.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[Callable[..., Any], bool]]] = {}

    def on(self, event: str, listener: Callable[..., Any]) -> EventEmitter:
        self._listeners.setdefault(event, []).append((listener, False))
        return self

    def once(self, event: str, listener: Callable[..., Any]) -> EventEmitter:
        self._listeners.setdefault(event, []).append((listener, True))
        return self

    def off(self, event: str, listener: Callable[..., Any]) -> EventEmitter:
        """Remove the first registration of *listener* for *event*."""
        entries = self._listeners.get(event, [])
        for index, (registered, _) in enumerate(entries):
            if registered == listener:
                del entries[index]
                break
        return self

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener of *event* with *args*; returns True if there were any."""
        entries = self._listeners.get(event)
        if not entries:
            return False
        self._listeners[event] = [entry for entry in entries if not entry[1]]
        for listener, _ in entries:
            listener(*args)
        return True

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))
