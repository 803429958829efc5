"""Query compilation and document matching.

A query maps field names to literals, predicates or nested-object
literals, or is itself a predicate over the whole document. Queries are
compiled once into explicit matcher variants before filtering records.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Union

from core.constants import SORT_ASCENDING, SORT_DESCENDING
from core.errors import LitheStoreError
from core.types import Query, Record, SortOrder


class _Missing:
    """Sentinel type for fields absent from a document."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Equals:
    """Field value must equal a literal."""

    value: Any


@dataclass(frozen=True)
class StructuralEquals:
    """Field value must deep-equal a nested object literal."""

    value: Mapping[str, Any]


@dataclass(frozen=True)
class Predicate:
    """Field value must satisfy a callable."""

    function: Callable[[Any], bool]


FieldMatcher = Union[Equals, StructuralEquals, Predicate]


@dataclass(frozen=True)
class CompiledQuery:
    """Query ready for repeated evaluation.

    Attributes:
        fields: Per-field matchers, all of which must hold.
        document_predicate: Optional predicate over the whole document.
    """

    fields: tuple[tuple[str, FieldMatcher], ...] = ()
    document_predicate: Callable[[Record], bool] | None = None

    def matches(self, document: Record) -> bool:
        """Return whether a document satisfies the query."""
        if self.document_predicate is not None:
            return bool(self.document_predicate(document))
        return all(
            _field_matches(document.get(field, MISSING), matcher)
            for field, matcher in self.fields
        )


def compile_query(query: Query) -> CompiledQuery:
    """Compile a raw query into matcher variants.

    Args:
        query: Field mapping, whole-document predicate, or ``None`` for all.

    Returns:
        Compiled query.

    Raises:
        LitheStoreError: If the query is neither a mapping nor a callable.
    """
    if query is None:
        return CompiledQuery()
    if isinstance(query, CompiledQuery):
        return query
    if callable(query):
        return CompiledQuery(document_predicate=query)
    if not isinstance(query, Mapping):
        raise LitheStoreError(
            f"Invalid query of type {type(query).__name__}: "
            "expected a field mapping or a predicate function."
        )
    return CompiledQuery(
        fields=tuple((str(field), _compile_value(value)) for field, value in query.items())
    )


def filter_documents(documents: Iterable[Record], query: Query) -> list[Record]:
    """Return documents matching a query, preserving order."""
    compiled = compile_query(query)
    return [document for document in documents if compiled.matches(document)]


def values_equal(left: Any, right: Any) -> bool:
    """Compare two JSON values by value.

    Booleans never equal numbers, objects compare without regard to key
    order, and lists compare element by element.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (Mapping, list)) or isinstance(right, (Mapping, list)):
        return False
    return bool(left == right)


def sort_documents(documents: list[Record], sort: Mapping[str, SortOrder]) -> list[Record]:
    """Stable-sort documents on the first field of a sort spec.

    Values order by JSON type first (booleans, numbers, strings, arrays,
    objects) and then by value. Documents whose field is missing or null
    always come last, in their original order, for either direction.

    Args:
        documents: Documents to order.
        sort: Single-entry mapping of field name to ``asc`` or ``desc``.

    Returns:
        New ordered list.

    Raises:
        LitheStoreError: If the sort spec is empty or the order is unknown.
    """
    if not sort:
        raise LitheStoreError("Invalid sort: expected {field: 'asc'|'desc'}.")
    field, order = next(iter(sort.items()))
    if order not in (SORT_ASCENDING, SORT_DESCENDING):
        raise LitheStoreError(
            f"Invalid sort order '{order}' for field '{field}': use 'asc' or 'desc'."
        )
    present = [document for document in documents if document.get(field) is not None]
    absent = [document for document in documents if document.get(field) is None]
    ordered = sorted(
        present,
        key=lambda document: _sort_key(document[field]),
        reverse=order == SORT_DESCENDING,
    )
    return ordered + absent


def _compile_value(value: Any) -> FieldMatcher:
    if callable(value):
        return Predicate(function=value)
    if isinstance(value, Mapping):
        return StructuralEquals(value=value)
    return Equals(value=value)


def _field_matches(actual: Any, matcher: FieldMatcher) -> bool:
    if isinstance(matcher, Predicate):
        return bool(matcher.function(None if actual is MISSING else actual))
    if actual is MISSING or matcher.value is MISSING:
        return actual is matcher.value
    return values_equal(actual, matcher.value)


def _sort_key(value: Any) -> tuple[int, Any]:
    if isinstance(value, bool):
        return (0, value)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, list):
        return (3, json.dumps(value, sort_keys=True, default=str))
    if isinstance(value, Mapping):
        return (4, json.dumps(value, sort_keys=True, default=str))
    return (5, repr(value))
