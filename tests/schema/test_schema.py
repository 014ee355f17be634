# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for Schema construction, path registration, virtuals, indexes, and options."""

from typing import Any

import pydantic
import pytest

from graphdoc.document import Document
from graphdoc.errors import SchemaDefinitionError
from graphdoc.options import SchemaOptions
from graphdoc.schema import RESERVED_PATHS, ArrayType, MixedType, NumberType, Schema, StringType, VirtualType

# ###############
# Test Helpers
# ###############


def _person_schema(**options: Any) -> Schema:
    return Schema(
        {
            "name": {"type": str, "required": True},
            "age": {"type": int, "min": 0},
            "email": {"type": str, "unique": True},
            "tags": [str],
            "meta": {},
        },
        options or None,
    )


# ###############
# Path Registration
# ###############


class TestPaths:
    def test_paths_keep_declaration_order(self) -> None:
        schema = _person_schema()
        assert list(schema.paths) == ["name", "age", "email", "tags", "meta"]

    def test_path_lookup_and_types(self) -> None:
        schema = _person_schema()
        assert isinstance(schema.path("name"), StringType)
        assert isinstance(schema.path("age"), NumberType)
        assert isinstance(schema.path("tags"), ArrayType)
        assert isinstance(schema.path("meta"), MixedType)
        assert schema.path("missing") is None

    def test_path_registration_returns_schema(self) -> None:
        schema = Schema()
        assert schema.path("title", str) is schema
        assert "title" in schema.tree

    def test_none_definition_raises(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="Invalid value for schema path `bad`"):
            Schema({"bad": None})

    def test_nested_mapping_without_type_raises(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="Nested paths are not supported"):
            Schema({"address": {"street": str}})

    @pytest.mark.parametrize("name", ["schema", "errors", "is_new", "init", "get", "set", "validate", "events"])
    def test_reserved_names_raise(self, name: str) -> None:
        with pytest.raises(SchemaDefinitionError, match="may not be used as a schema pathname"):
            Schema({name: str})

    @pytest.mark.parametrize(
        "name", ["dirty", "reset", "invalidate", "is_selected", "get_value", "validate_async", "pending_error"]
    )
    def test_document_methods_are_reserved(self, name: str) -> None:
        with pytest.raises(SchemaDefinitionError, match="may not be used as a schema pathname"):
            Schema({name: str})

    def test_every_public_document_attribute_is_reserved(self) -> None:
        doc = Document(Schema())
        public = {name for name in dir(doc) if not name.startswith("_")}
        assert public <= RESERVED_PATHS

    def test_model_is_not_reserved(self) -> None:
        assert Schema({"model": str}).path("model") is not None

    def test_required_paths(self) -> None:
        schema = _person_schema()
        assert schema.required_paths() == ["name"]
        schema.path("age").required()
        assert schema.required_paths() == ["name", "age"]


# ###############
# Virtuals and Path Types
# ###############


class TestVirtuals:
    def test_virtual_is_created_once(self) -> None:
        schema = _person_schema()
        first = schema.virtual("display")
        assert isinstance(first, VirtualType)
        assert schema.virtual("display") is first
        assert schema.virtualpath("display") is first

    def test_path_type(self) -> None:
        schema = _person_schema()
        schema.virtual("display")
        assert schema.path_type("name") == "real"
        assert schema.path_type("display") == "virtual"
        assert schema.path_type("whatever") == "adhocOrUndefined"

    def test_virtual_conflicting_with_real_path_raises(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            _person_schema().virtual("name")


# ###############
# Indexes
# ###############


class TestIndexes:
    def test_single_path_indexes(self) -> None:
        schema = Schema({"email": {"type": str, "unique": True}, "slug": {"type": str, "index": True}})
        assert schema.indexes() == [
            ({"email": 1}, {"unique": True, "background": True}),
            ({"slug": 1}, {"background": True}),
        ]

    def test_index_type_is_kept(self) -> None:
        schema = Schema({"bio": {"type": str, "index": "text"}})
        assert schema.indexes() == [({"bio": "text"}, {"background": True})]

    def test_compound_index(self) -> None:
        schema = Schema({"a": str, "b": int}).index({"a": 1, "b": -1}, {"unique": True})
        assert schema.indexes() == [({"a": 1, "b": -1}, {"unique": True, "background": True})]

    def test_indexes_do_not_mutate_path_options(self) -> None:
        schema = Schema({"email": {"type": str, "unique": True}})
        schema.indexes()
        assert schema.path("email").index_options == {"unique": True}


# ###############
# Behavior Tables
# ###############


class TestBehavior:
    def test_methods_and_statics(self) -> None:
        schema = Schema({"name": str})
        schema.method("greet", lambda doc: "hi").static({"find": lambda model: [], "count": lambda model: 0})
        assert set(schema.methods) == {"greet"}
        assert set(schema.statics) == {"find", "count"}

    def test_non_callable_method_raises(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            Schema().method("broken", 3)  # type: ignore[arg-type]

    def test_plugin_receives_schema_and_options(self) -> None:
        def timestamps(schema: Schema, options: Any) -> None:
            schema.add({options["field"]: "date"})

        schema = Schema({"name": str}).plugin(timestamps, {"field": "created_at"})
        assert schema.path_type("created_at") == "real"

    def test_hooks_are_recorded_in_order(self) -> None:
        def first(doc: Any) -> None: ...

        def second(doc: Any) -> None: ...

        schema = Schema().pre("save", first).pre("save", second).post("save", second)
        assert schema.pipeline.hooks("save", "pre") == [first, second]
        assert schema.pipeline.hooks("save", "post") == [second]


# ###############
# Options
# ###############


class TestOptions:
    def test_defaults(self) -> None:
        options = Schema().options
        assert options.strict is True
        assert options.version_key == "__v"
        assert options.minimize is True

    def test_mapping_options(self) -> None:
        schema = _person_schema(strict="throw", version_key=None)
        assert schema.get("strict") == "throw"
        assert schema.get("version_key") is None

    def test_options_model_is_copied(self) -> None:
        shared = SchemaOptions(strict=False)
        schema = Schema(options=shared)
        schema.set("strict", True)
        assert shared.strict is False

    def test_invalid_option_value_raises(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            Schema().set("strict", "sometimes")

    def test_unknown_option_raises(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="Unknown schema option"):
            Schema().get("colour")
