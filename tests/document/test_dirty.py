# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for computing the minimal set of changes to persist."""

from graphdoc.atomic import AtomicOp
from graphdoc.document import DirtyPath, Document
from graphdoc.schema import Schema


def _loaded() -> Document:
    schema = Schema({"name": str, "tags": [str], "meta": {}})
    return Document(schema).init({"name": "Ada", "tags": ["a", "b"], "meta": {"a": {"b": 1}}})


def test_clean_document_has_no_dirty_paths() -> None:
    assert _loaded().dirty() == []


def test_modified_path_is_reported_with_value_and_type() -> None:
    doc = _loaded()
    doc.set("name", "Grace")
    assert doc.dirty() == [DirtyPath("name", "Grace", doc.schema.path("name"))]


def test_dirty_paths_are_sorted() -> None:
    doc = _loaded()
    doc.set("tags", ["z"])
    doc.set("name", "Grace")
    assert [entry.path for entry in doc.dirty()] == ["name", "tags"]


def test_sub_path_is_dropped_under_modified_parent() -> None:
    doc = _loaded()
    doc.mark_modified("meta.a")
    doc.mark_modified("meta")
    assert [entry.path for entry in doc.dirty()] == ["meta"]


def test_sibling_with_shared_prefix_is_kept() -> None:
    schema = Schema({"meta": {}, "meta_extra": {}})
    doc = Document(schema).init({"meta": {}, "meta_extra": {}})
    doc.mark_modified("meta")
    doc.mark_modified("meta_extra")
    assert [entry.path for entry in doc.dirty()] == ["meta", "meta_extra"]


def test_array_and_element_collapse_to_replacement() -> None:
    doc = _loaded()
    tags = doc.get("tags")
    tags.push("c")
    doc.mark_modified("tags.0")

    dirty = doc.dirty()

    assert [entry.path for entry in dirty] == ["tags"]
    assert tags.pending_operation == (AtomicOp.SET, ["a", "b", "c"])


def test_array_partial_operation_is_kept_alone() -> None:
    doc = _loaded()
    tags = doc.get("tags")
    tags.push("c")
    doc.dirty()
    assert tags.pending_operation == (AtomicOp.PUSH, ["c"])


def test_reset_clears_queued_array_operations() -> None:
    doc = _loaded()
    tags = doc.get("tags")
    tags.pull("a")
    doc.reset()
    assert tags.pending_operation is None
    assert doc.dirty() == []
