# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the document event emitter."""

from typing import Any

from graphdoc.events import EventEmitter


def test_listeners_receive_arguments_in_order() -> None:
    calls: list[tuple[str, Any]] = []
    events = EventEmitter()
    events.on("init", lambda doc: calls.append(("first", doc)))
    events.on("init", lambda doc: calls.append(("second", doc)))

    assert events.emit("init", 1)
    assert calls == [("first", 1), ("second", 1)]


def test_emit_without_listeners() -> None:
    assert not EventEmitter().emit("reset")


def test_once_listener_fires_once() -> None:
    calls: list[Any] = []
    events = EventEmitter().once("reset", calls.append)
    events.emit("reset", "a")
    events.emit("reset", "b")
    assert calls == ["a"]
    assert events.listener_count("reset") == 0


def test_once_listener_may_register_itself_again() -> None:
    calls: list[int] = []
    events = EventEmitter()

    def rearm(value: int) -> None:
        calls.append(value)
        events.once("reset", rearm)

    events.once("reset", rearm)
    events.emit("reset", 1)
    events.emit("reset", 2)
    assert calls == [1, 2]


def test_off_removes_listener() -> None:
    calls: list[Any] = []
    events = EventEmitter().on("init", calls.append)
    events.off("init", calls.append)
    events.emit("init", 1)
    assert calls == []
