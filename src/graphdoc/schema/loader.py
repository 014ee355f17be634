# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""YAML parser for schema definition files.

A schema file looks like::

    options:
      strict: throw
      version-key: __v
    paths:
      name:
        type: string
        required: true
        trim: true
      age: number
      tags: [string]
      meta: mixed
    indexes:
      - fields: {name: 1, age: -1}
        options: {unique: true}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pydantic
import yaml

from graphdoc.errors import GraphDocError, SchemaDefinitionError
from graphdoc.schema.schema import Schema

# ###############
# Public Interface
# ###############


class SchemaConfigError(GraphDocError):
    """Raised when a schema definition file is invalid or cannot be loaded."""


def load_schema_file(path: Path) -> Schema:
    """Load and parse a YAML schema definition file.

    Args:
        path: Path to the schema file.

    Returns:
        A Schema built from the file.

    Raises:
        SchemaConfigError: If the file cannot be read or the definition is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise SchemaConfigError(f"Schema file not found: {path}") from None
    except OSError as exc:
        raise SchemaConfigError(f"Cannot read schema file: {exc}") from exc

    return parse_schema_definition(text, source_label=str(path))


def parse_schema_definition(text: str, source_label: str = "<string>") -> Schema:
    """Parse schema definition YAML text into a Schema.

    Args:
        text: Raw YAML content.
        source_label: Human-readable label used in error messages (e.g. the file path).

    Raises:
        SchemaConfigError: If the YAML is invalid or the definition is malformed.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if not isinstance(data, dict):
        raise SchemaConfigError(f"{source_label}: schema definition must be a YAML mapping")

    unknown = sorted(set(data) - _TOP_LEVEL_KEYS)
    if unknown:
        raise SchemaConfigError(f"{source_label}: unknown top-level field(s): {', '.join(unknown)}")

    options = _parse_options(data.get("options"), source_label)
    paths = _require_mapping(data, "paths", source_label)

    try:
        schema = Schema(options=options)
        for name, definition in paths.items():
            if not isinstance(name, str):
                raise SchemaConfigError(f"{source_label}: path names must be strings, got {name!r}")
            schema.add({name: _normalize_definition(definition, f"{source_label}: paths.{name}")})
    except SchemaDefinitionError as exc:
        raise SchemaConfigError(f"{source_label}: {exc}") from exc

    for index, entry in enumerate(data.get("indexes") or []):
        fields, index_options = _parse_index(entry, f"{source_label}: indexes[{index}]")
        schema.index(fields, index_options)

    return schema


# ################
# Implementation
# ################

_TOP_LEVEL_KEYS = frozenset({"options", "paths", "indexes"})


def _require_mapping(mapping: dict[str, Any], key: str, source_label: str) -> dict[str, Any]:
    """Extract a required mapping field, raising SchemaConfigError if missing or malformed."""
    if key not in mapping:
        raise SchemaConfigError(f"{source_label}: missing required field '{key}'")
    value = mapping[key]
    if not isinstance(value, dict):
        raise SchemaConfigError(f"{source_label}: '{key}' must be a mapping")
    return value


def _parse_options(raw: Any, source_label: str) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SchemaConfigError(f"{source_label}: 'options' must be a mapping")
    options = {str(key).replace("-", "_"): value for key, value in raw.items()}
    try:
        Schema(options=options)
    except pydantic.ValidationError as exc:
        raise SchemaConfigError(f"{source_label}: invalid options: {exc}") from exc
    return options


def _normalize_definition(definition: Any, location: str) -> Any:
    """Turn YAML scalars and lists into the definition forms ``Schema.add`` accepts."""
    if isinstance(definition, str):
        return definition
    if isinstance(definition, list):
        if len(definition) > 1:
            raise SchemaConfigError(f"{location}: array definitions take at most one element type")
        return [_normalize_definition(item, location) for item in definition]
    if isinstance(definition, dict):
        if not definition:
            return {}
        if "type" not in definition:
            raise SchemaConfigError(f"{location}: missing required field 'type'")
        ret = dict(definition)
        ret["type"] = _normalize_definition(definition["type"], location)
        return ret
    raise SchemaConfigError(f"{location}: expected a type name, a list, or a mapping")


def _parse_index(entry: Any, location: str) -> tuple[dict[str, Any], dict[str, Any]]:
    if not isinstance(entry, dict):
        raise SchemaConfigError(f"{location} must be a YAML mapping")
    fields = _require_mapping(entry, "fields", location)
    options = entry.get("options") or {}
    if not isinstance(options, dict):
        raise SchemaConfigError(f"{location}: 'options' must be a mapping")
    return fields, options
