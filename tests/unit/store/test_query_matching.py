"""Unit tests for query compilation and matching."""

from __future__ import annotations

import pytest

from core.errors import LitheStoreError
from store.query_matching import (
    MISSING,
    Equals,
    Predicate,
    StructuralEquals,
    compile_query,
    filter_documents,
    sort_documents,
    values_equal,
)


def test_compile_query_builds_tagged_matchers() -> None:
    """Compiler should map literals, objects and callables to matcher variants."""
    compiled = compile_query({"name": "a", "meta": {"x": 1}, "age": lambda value: value > 3})

    kinds = [type(matcher) for _, matcher in compiled.fields]

    assert kinds == [Equals, StructuralEquals, Predicate]


def test_structural_match_ignores_key_order() -> None:
    """Nested object literals should match regardless of key order."""
    document = {"meta": {"a": 1, "b": {"c": [1, 2]}}}

    assert compile_query({"meta": {"b": {"c": [1, 2]}, "a": 1}}).matches(document)


def test_structural_match_is_order_sensitive_for_lists() -> None:
    """Lists inside object literals should compare element by element."""
    document = {"meta": {"tags": ["a", "b"]}}

    assert not compile_query({"meta": {"tags": ["b", "a"]}}).matches(document)


def test_equality_distinguishes_booleans_from_numbers() -> None:
    """True should not equal 1 the way it does in plain Python."""
    assert not values_equal(True, 1) and values_equal(1, 1.0)


def test_missing_field_never_equals_concrete_value() -> None:
    """Absent fields should not match None or any literal."""
    compiled = compile_query({"nickname": None})

    assert not compiled.matches({"name": "a"}) and compiled.matches({"nickname": None})


def test_missing_sentinel_matches_absent_fields() -> None:
    """The MISSING sentinel should explicitly match absence."""
    documents = [{"name": "a"}, {"name": "b", "nickname": "bee"}]

    matches = filter_documents(documents, {"nickname": MISSING})

    assert matches == [{"name": "a"}]


def test_predicate_receives_none_for_missing_field() -> None:
    """Field predicates should see None when the field is absent."""
    seen: list[object] = []

    compile_query({"age": lambda value: seen.append(value) or True}).matches({})

    assert seen == [None]


def test_document_predicate_receives_whole_document() -> None:
    """A callable query should be applied to the whole document."""
    documents = [{"a": 1, "b": 2}, {"a": 2, "b": 2}]

    matches = filter_documents(documents, lambda document: document["a"] == document["b"])

    assert matches == [{"a": 2, "b": 2}]


def test_empty_query_matches_everything() -> None:
    """Empty and None queries should match every document."""
    documents = [{"a": 1}, {"a": 2}]

    assert filter_documents(documents, {}) == documents == filter_documents(documents, None)


def test_sort_documents_is_stable_for_ties() -> None:
    """Sorting should keep prior relative order for equal and missing values."""
    documents = [
        {"name": "x", "age": 3},
        {"name": "y", "age": 1},
        {"name": "z", "age": 3},
        {"name": "w"},
    ]

    ordered = sort_documents(documents, {"age": "desc"})

    assert [document["name"] for document in ordered] == ["x", "z", "y", "w"]


def test_sort_documents_rejects_unknown_order() -> None:
    """Sort order must be asc or desc."""
    with pytest.raises(LitheStoreError):
        sort_documents([{"a": 1}], {"a": "up"})


def test_compile_query_rejects_non_mapping() -> None:
    """Queries must be mappings or callables."""
    with pytest.raises(LitheStoreError):
        compile_query(["a"])  # type: ignore[arg-type]


def test_sort_documents_orders_around_missing_and_null_values() -> None:
    """Missing and null values should trail while present values stay ordered."""
    documents = [{"age": 3}, {}, {"age": 1}, {"age": None}, {"age": 2}]

    ascending = sort_documents(documents, {"age": "asc"})
    descending = sort_documents(documents, {"age": "desc"})

    assert [document.get("age", "-") for document in ascending] == [1, 2, 3, "-", None]
    assert [document.get("age", "-") for document in descending] == [3, 2, 1, "-", None]


def test_sort_documents_groups_mixed_types() -> None:
    """Values of different JSON types should order by type, then value."""
    documents = [{"v": "b"}, {"v": 2}, {"v": True}, {"v": "a"}, {"v": 1.5}]

    ordered = sort_documents(documents, {"v": "asc"})

    assert [document["v"] for document in ordered] == [True, 1.5, 2, "a", "b"]
