"""Structural schema inference for schema-less collections."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from core.constants import SYSTEM_FIELDS

ANY_TYPE = "any"


def infer_schema(
    documents: Iterable[Mapping[str, Any]],
    excluded_fields: tuple[str, ...] = SYSTEM_FIELDS,
) -> dict[str, dict[str, Any]]:
    """Describe the fields observed across a set of documents.

    Each field maps to ``{"type", "required"}`` plus ``"properties"`` for
    object-typed fields. Mixed types collapse to ``any``; a field is
    required when every document at that level carries it.

    Args:
        documents: Documents at one nesting level.
        excluded_fields: Field names skipped at this level only.

    Returns:
        Field descriptions in first-seen order.
    """
    rows = list(documents)
    observed: dict[str, list[Any]] = {}
    for row in rows:
        for field, value in row.items():
            if field in excluded_fields:
                continue
            observed.setdefault(field, []).append(value)
    schema: dict[str, dict[str, Any]] = {}
    for field, values in observed.items():
        field_type = _merge_types(values)
        description: dict[str, Any] = {
            "type": field_type,
            "required": len(values) == len(rows),
        }
        if field_type == "object":
            description["properties"] = infer_schema(values, excluded_fields=())
        schema[field] = description
    return schema


def json_type_name(value: Any) -> str:
    """Return the JSON type name of a value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return ANY_TYPE


def _merge_types(values: list[Any]) -> str:
    type_names = {json_type_name(value) for value in values}
    if len(type_names) == 1:
        return type_names.pop()
    return ANY_TYPE
