# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Option models for schemas and document serialization."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# ###############
# Public Interface
# ###############


class SerializationOptions(BaseModel):
    """Options accepted by ``Document.to_object`` and ``Document.to_json``.

    Attributes:
        getters: Apply path getters (and virtual getters unless ``virtuals`` is False).
        virtuals: Apply virtual getters. ``None`` means "follow ``getters``".
        minimize: Drop ``None`` values and empty containers. ``None`` means
            "use the schema's ``minimize`` option".
        json_mode: Render for JSON output (set by ``to_json``). Accepted as
            ``json`` in option mappings.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    getters: bool = False
    virtuals: bool | None = None
    minimize: bool | None = None
    json_mode: bool = Field(default=False, alias="json")


class SchemaOptions(BaseModel):
    """Behavioral options of a :class:`~graphdoc.schema.schema.Schema`.

    Attributes:
        strict: ``True`` silently drops paths not declared in the schema,
            ``"throw"`` raises :class:`~graphdoc.errors.StrictModeError`, and
            ``False`` stores them as ad-hoc values.
        version_key: Name of the property a persistence adapter uses for
            document versioning, or ``None`` to disable versioning.
        minimize: Default for :attr:`SerializationOptions.minimize`.
        to_object: Default options for ``to_object()`` calls without options.
        to_json: Default options for ``to_json()`` calls without options.
        auto_index: Whether a persistence adapter should create declared
            indexes when a model is compiled.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    strict: bool | Literal["throw"] = True
    version_key: str | None = "__v"
    minimize: bool = True
    to_object: SerializationOptions | None = None
    to_json: SerializationOptions | None = None
    auto_index: bool = False


def coerce_serialization_options(options: SerializationOptions | dict[str, Any] | None) -> SerializationOptions | None:
    """Accept a mapping or a model and return a fresh, independent model."""
    if options is None:
        return None
    if isinstance(options, SerializationOptions):
        return options.model_copy()
    return SerializationOptions.model_validate(options)
