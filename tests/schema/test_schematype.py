# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the base SchemaType contract: options, setters, getters, defaults, and validators."""

import asyncio
import re
from typing import Any

import pytest

from graphdoc.errors import SchemaDefinitionError, ValidatorError
from graphdoc.schema import NumberType, SchemaType, StringType, ValidatorMode, ValidatorSpec

# ###############
# Test Helpers
# ###############


def _run_validate(schema_type: SchemaType, value: Any, scope: Any = None) -> ValidatorError | None:
    """Run do_validate synchronously and return what the callback received."""
    results: list[ValidatorError | None] = []
    schema_type.do_validate(value, results.append, scope)
    assert len(results) == 1
    return results[0]


async def _validate_async(schema_type: SchemaType, value: Any) -> ValidatorError | None:
    """Run do_validate on the running loop and await the callback."""
    future: asyncio.Future[ValidatorError | None] = asyncio.get_running_loop().create_future()
    schema_type.do_validate(value, future.set_result)
    return await future


class _Scope:
    """Minimal selection-aware owner."""

    def __init__(self, selected: bool, modified: bool) -> None:
        self.selected = selected
        self.modified = modified

    def is_selected(self, path: str) -> bool:
        return self.selected

    def is_modified(self, path: str | None = None) -> bool:
        return self.modified


# ###############
# Options
# ###############


class TestOptions:
    def test_options_are_applied_through_handlers(self) -> None:
        """Construction options call the handler of the same name."""
        st = StringType("name", {"required": True, "default": "anon", "index": True})
        assert st.is_required
        assert st.default_value == "anon"
        assert st.index_options is True

    def test_unique_then_index_keeps_unique(self) -> None:
        st = SchemaType("email", {"unique": True, "index": True})
        assert st.index_options == {"unique": True}

    def test_index_then_unique_keeps_unique(self) -> None:
        st = SchemaType("email", {"index": True, "unique": True})
        assert st.index_options == {"unique": True}

    def test_sparse_merges_with_unique(self) -> None:
        st = SchemaType("email").unique(True).sparse(True)
        assert st.index_options == {"unique": True, "sparse": True}

    def test_unknown_options_are_kept_but_ignored(self) -> None:
        st = SchemaType("x", {"description": "free text"})
        assert st.options["description"] == "free text"
        assert st.validators == []

    def test_validate_option_accepts_list_of_mappings(self) -> None:
        st = SchemaType(
            "x",
            {"validate": [{"validator": lambda v: v > 0, "msg": "positive"}, {"validator": re.compile("^1")}]},
        )
        assert [spec.kind for spec in st.validators] == ["positive", None]


# ###############
# Setters and Getters
# ###############


class TestSettersAndGetters:
    def test_setters_run_in_registration_order(self) -> None:
        st = StringType("name").set(lambda v: v + "a").set(lambda v: v + "b")
        assert st.apply_setters("x") == "xab"

    def test_setter_result_is_cast(self) -> None:
        st = NumberType("n").set(lambda v: str(v) + "0")
        assert st.apply_setters(4) == 40

    def test_setter_returning_none_is_not_cast(self) -> None:
        st = NumberType("n").set(lambda v: None)
        assert st.apply_setters("abc") is None

    def test_setter_receives_scope_and_schema_type(self) -> None:
        seen: list[Any] = []
        st = StringType("name")
        st.set(lambda v, scope, schema_type: seen.append((scope, schema_type)) or v)
        st.apply_setters("x", scope="owner")
        assert seen == [("owner", st)]

    def test_getters_run_in_registration_order(self) -> None:
        st = StringType("name").get(lambda v: v.upper()).get(lambda v: v + "!")
        assert st.apply_getters("hi") == "HI!"

    def test_non_callable_setter_raises(self) -> None:
        with pytest.raises(TypeError, match="A setter must be a function."):
            SchemaType("x").set("nope")  # type: ignore[arg-type]

    def test_non_callable_getter_raises(self) -> None:
        with pytest.raises(TypeError, match="A getter must be a function."):
            SchemaType("x").get(3)  # type: ignore[arg-type]


# ###############
# Defaults
# ###############


class TestDefaults:
    def test_literal_default_is_cast_at_definition(self) -> None:
        st = NumberType("n").default("7")
        assert st.get_default() == 7

    def test_no_default_returns_none(self) -> None:
        assert StringType("s").get_default() is None

    def test_factory_default_receives_owner(self) -> None:
        st = StringType("s").default(lambda doc: f"for-{doc}")
        assert st.get_default("owner") == "for-owner"

    def test_zero_argument_factory(self) -> None:
        st = NumberType("n").default(lambda: "3")
        assert st.get_default("owner") == 3


# ###############
# Validation
# ###############


class TestValidation:
    def test_passing_validators_report_none(self) -> None:
        st = NumberType("n").validate(lambda v: v > 0)
        assert _run_validate(st, 5) is None

    def test_first_failure_is_reported_and_later_validators_skipped(self) -> None:
        calls: list[str] = []

        def first(v: Any) -> bool:
            calls.append("first")
            return False

        def second(v: Any) -> bool:
            calls.append("second")
            return False

        st = NumberType("n").validate(first, "first").validate(second, "second")
        error = _run_validate(st, 1)
        assert isinstance(error, ValidatorError)
        assert error.kind == "first"
        assert error.path == "n"
        assert calls == ["first"]

    def test_none_return_counts_as_pass(self) -> None:
        st = SchemaType("x").validate(lambda v: None)
        assert _run_validate(st, 1) is None

    def test_callback_validator(self) -> None:
        st = SchemaType("x").validate(lambda v, respond: respond(v == "ok"), "callback")
        assert _run_validate(st, "ok") is None
        error = _run_validate(st, "bad")
        assert error is not None and error.kind == "callback"

    def test_regex_validator_searches_string_form(self) -> None:
        st = SchemaType("x").validate(re.compile(r"^\d+$"), "digits")
        assert _run_validate(st, 123) is None
        assert _run_validate(st, "12a") is not None

    def test_validator_receives_scope_keyword(self) -> None:
        seen: list[Any] = []

        def check(value: Any, scope: Any = None) -> bool:
            seen.append(scope)
            return True

        _run_validate(SchemaType("x").validate(check), 1, scope="owner")
        assert seen == ["owner"]

    def test_raising_validator_is_a_failure(self) -> None:
        def boom(v: Any) -> bool:
            raise RuntimeError("broken")

        error = _run_validate(SchemaType("x").validate(boom, "boom"), 1)
        assert error is not None
        assert error.kind == "boom"
        assert isinstance(error.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_async_validator(self) -> None:
        async def positive(v: Any) -> bool:
            await asyncio.sleep(0)
            return v > 0

        st = NumberType("n").validate(positive, "positive")
        assert await _validate_async(st, 3) is None
        error = await _validate_async(st, -3)
        assert error is not None and error.kind == "positive"

    def test_invalid_validator_definition_raises(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="Invalid validator"):
            SchemaType("x").validate({"msg": "no validator"})

    def test_validator_modes_are_detected(self) -> None:
        async def awaitable(v: Any) -> bool:
            return True

        assert ValidatorSpec.build(lambda v: True).mode is ValidatorMode.SYNC
        assert ValidatorSpec.build(lambda v, respond: None).mode is ValidatorMode.CALLBACK
        assert ValidatorSpec.build(lambda v, scope: True).mode is ValidatorMode.SYNC
        assert ValidatorSpec.build(lambda v, respond, scope: None).mode is ValidatorMode.CALLBACK
        assert ValidatorSpec.build(awaitable).mode is ValidatorMode.AWAITABLE
        assert ValidatorSpec.build(re.compile("x")).mode is ValidatorMode.REGEXP


# ###############
# Required
# ###############


class TestRequired:
    def test_required_rejects_none(self) -> None:
        error = _run_validate(SchemaType("x").required(), None)
        assert error is not None and error.kind == "required"

    def test_required_string_kind(self) -> None:
        error = _run_validate(StringType("x").required("name is mandatory"), "")
        assert error is not None and error.kind == "name is mandatory"

    def test_required_false_removes_validator(self) -> None:
        st = SchemaType("x").required().required(False)
        assert not st.is_required
        assert st.validators == []

    def test_required_is_not_duplicated(self) -> None:
        st = SchemaType("x").required().required()
        assert len(st.validators) == 1

    def test_unselected_unmodified_path_is_skipped(self) -> None:
        st = SchemaType("x").required()
        assert _run_validate(st, None, _Scope(selected=False, modified=False)) is None
        assert _run_validate(st, None, _Scope(selected=False, modified=True)) is not None
