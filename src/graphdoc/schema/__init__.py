# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema definitions and the per-path type system."""

from graphdoc.schema.schematype import SchemaType, ValidatorMode, ValidatorSpec
from graphdoc.schema.types import (
    ArrayType,
    BooleanType,
    DateType,
    MixedType,
    NumberType,
    StringType,
    Types,
    VirtualType,
    interpret_as_type,
)
from graphdoc.schema.schema import RESERVED_PATHS, Schema
from graphdoc.schema.loader import SchemaConfigError, load_schema_file, parse_schema_definition

__all__ = [
    "ArrayType",
    "BooleanType",
    "DateType",
    "MixedType",
    "NumberType",
    "RESERVED_PATHS",
    "Schema",
    "SchemaConfigError",
    "SchemaType",
    "StringType",
    "Types",
    "ValidatorMode",
    "ValidatorSpec",
    "VirtualType",
    "interpret_as_type",
    "load_schema_file",
    "parse_schema_definition",
]
