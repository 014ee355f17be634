# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""GraphDoc: typed, validated, change-tracked documents for graph database properties."""

from graphdoc.atomic import AtomicCollection, AtomicOp
from graphdoc.errors import (
    CastError,
    GraphDocError,
    SchemaDefinitionError,
    StrictModeError,
    ValidationError,
    ValidatorError,
)
from graphdoc.options import SchemaOptions, SerializationOptions
from graphdoc.schema import Schema, SchemaType, Types, load_schema_file, parse_schema_definition
from graphdoc.document import DirtyPath, Document, PathStateSet
from graphdoc.model import ModelDescriptor, compile_model

__all__ = [
    "AtomicCollection",
    "AtomicOp",
    "CastError",
    "DirtyPath",
    "Document",
    "GraphDocError",
    "ModelDescriptor",
    "PathStateSet",
    "Schema",
    "SchemaDefinitionError",
    "SchemaOptions",
    "SchemaType",
    "SerializationOptions",
    "StrictModeError",
    "Types",
    "ValidationError",
    "ValidatorError",
    "compile_model",
    "load_schema_file",
    "parse_schema_definition",
]
