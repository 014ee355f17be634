# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiled model descriptors: a schema plus the behavior table shared by its documents."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from graphdoc.document.document import Document
from graphdoc.hooks import HookPipeline

if TYPE_CHECKING:
    from graphdoc.errors import ValidationError
    from graphdoc.schema.schema import Schema

logger = logging.getLogger(__name__)

# Phases that receive the built-in error and validation checks.
SAVE_PHASES = ("save",)

# ###############
# Public Interface
# ###############


@dataclass
class ModelDescriptor:
    """A named schema with its hook pipeline, instance methods, and statics.

    Statics are reachable as attributes and receive the descriptor as their
    first argument.

    Attributes:
        name: The model (node label) name.
        schema: The schema documents of this model are built against.
        pipeline: Pre/post hooks, starting with the built-in save checks.
        methods: Instance methods bound to documents on attribute access.
        statics: Functions bound to the descriptor on attribute access.
    """

    name: str
    schema: Schema
    pipeline: HookPipeline = field(default_factory=HookPipeline)
    methods: dict[str, Callable[..., Any]] = field(default_factory=dict)
    statics: dict[str, Callable[..., Any]] = field(default_factory=dict)

    def __getattr__(self, name: str) -> Any:
        statics = self.__dict__.get("statics")
        if statics is not None and name in statics:
            return functools.partial(statics[name], self)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def new(
        self,
        obj: Mapping[str, Any] | None = None,
        fields: Mapping[str, Any] | Iterable[str] | None = None,
    ) -> Document:
        """Construct a new, unsaved document."""
        return Document(self.schema, obj, fields, model=self)

    def hydrate(
        self,
        raw: Mapping[str, Any],
        fields: Mapping[str, Any] | Iterable[str] | None = None,
    ) -> Document:
        """Build a document from a stored property map (``is_new`` is False)."""
        document = Document(self.schema, None, fields, model=self)
        return document.init(raw)

    async def run_pre(self, phase: str, document: Document) -> Exception | None:
        return await self.pipeline.run_pre(phase, document)

    async def run_post(self, phase: str, document: Document) -> None:
        await self.pipeline.run_post(phase, document)


def compile_model(name: str, schema: Schema) -> ModelDescriptor:
    """Build the descriptor for *name* from *schema*.

    The pipeline runs :func:`check_for_existing_errors` and then
    :func:`validation` before any user hooks of each save phase.
    """
    pipeline = HookPipeline()
    for phase in SAVE_PHASES:
        pipeline.pre(phase, check_for_existing_errors).pre(phase, validation)
    for phase in schema.pipeline.phases():
        for hook in schema.pipeline.hooks(phase, "pre"):
            pipeline.pre(phase, hook)
        for hook in schema.pipeline.hooks(phase, "post"):
            pipeline.post(phase, hook)

    logger.debug("Compiled model %s with %d path(s)", name, len(schema.paths))
    return ModelDescriptor(
        name=name,
        schema=schema,
        pipeline=pipeline,
        methods=dict(schema.methods),
        statics=dict(schema.statics),
    )


def check_for_existing_errors(document: Document) -> Exception | None:
    """Report (and clear) the error captured by a failed ``set()``."""
    return document.pop_pending_error()


async def validation(document: Document) -> ValidationError | None:
    return await document.validate_async()
