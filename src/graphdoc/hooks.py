# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Ordered pre/post hook pipeline attached to a schema and its compiled models."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any, Literal

logger = logging.getLogger(__name__)

Stage = Literal["pre", "post"]
Hook = Callable[[Any], Any]

# ###############
# Public Interface
# ###############


class HookPipeline:
    """Named phases (``"save"``, ``"create"``, ...), each with ordered pre and post hooks.

    A hook is called with the document and may be a plain function or a
    coroutine function. Returning an :class:`Exception` halts a pre phase
    and is reported to the caller; returning anything else continues.
    Exceptions raised by a hook propagate.
    """

    def __init__(self) -> None:
        self._hooks: dict[tuple[str, Stage], list[Hook]] = {}

    def pre(self, phase: str, fn: Hook) -> HookPipeline:
        return self._register(phase, "pre", fn)

    def post(self, phase: str, fn: Hook) -> HookPipeline:
        return self._register(phase, "post", fn)

    def hooks(self, phase: str, stage: Stage = "pre") -> list[Hook]:
        """Return a copy of the hooks registered for *phase* at *stage*."""
        return list(self._hooks.get((phase, stage), []))

    def phases(self) -> list[str]:
        return sorted({phase for phase, _ in self._hooks})

    async def run_pre(self, phase: str, document: Any) -> Exception | None:
        """Run pre hooks for *phase* in order; return the first error a hook reports."""
        for hook in self.hooks(phase, "pre"):
            result = await _call(hook, document)
            if isinstance(result, Exception):
                logger.debug("Pre-%s hook %s halted with %s", phase, _name(hook), type(result).__name__)
                return result
        return None

    async def run_post(self, phase: str, document: Any) -> None:
        """Run every post hook for *phase* in order. Reported errors are logged and ignored."""
        for hook in self.hooks(phase, "post"):
            result = await _call(hook, document)
            if isinstance(result, Exception):
                logger.warning("Post-%s hook %s reported: %s", phase, _name(hook), result)

    def _register(self, phase: str, stage: Stage, fn: Hook) -> HookPipeline:
        if not callable(fn):
            raise TypeError(f"A {stage} hook must be a function.")
        self._hooks.setdefault((phase, stage), []).append(fn)
        return self


# ################
# Implementation
# ################


async def _call(hook: Hook, document: Any) -> Any:
    result = hook(document)
    if inspect.isawaitable(result):
        result = await result
    return result


def _name(hook: Hook) -> str:
    return getattr(hook, "__name__", repr(hook))
