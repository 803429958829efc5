"""Shared JSON serialization for Snapshot payloads.

This module centralizes the snapshot wire format. It is reused by
every persistence backend so all targets read and write one layout.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from core.constants import DEFAULT_RELATION_FIELD
from core.errors import LitheStoreError
from core.types import IndexDefinition, RelationDefinition, Snapshot, SnapshotMetadata


def snapshot_to_payload(snapshot: Snapshot) -> dict[str, Any]:
    """Serialize Snapshot into a JSON-safe payload.

    Args:
        snapshot: Snapshot instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    metadata = snapshot.metadata
    return {
        "metadata": {
            "serial": metadata.serial,
            "indices": {
                collection: {
                    field: {"unique": definition.unique}
                    for field, definition in fields.items()
                }
                for collection, fields in metadata.indices.items()
            },
            "relations": {
                collection: {
                    field: {"ref": definition.ref, "field": definition.field}
                    for field, definition in fields.items()
                }
                for collection, fields in metadata.relations.items()
            },
        },
        "data": {
            collection: [dict(record) for record in records]
            for collection, records in snapshot.data.items()
        },
    }


def snapshot_from_payload(payload: Mapping[str, Any], source: str) -> Snapshot:
    """Deserialize a JSON payload into a Snapshot.

    Missing ``metadata`` or ``data`` sections are filled with empty defaults.

    Args:
        payload: Parsed snapshot payload.
        source: Human-readable origin used in error messages.

    Returns:
        Parsed Snapshot.

    Raises:
        LitheStoreError: If payload sections have the wrong shape.
    """
    metadata_payload = _expect_mapping(payload.get("metadata") or {}, source, "metadata")
    data_payload = _expect_mapping(payload.get("data") or {}, source, "data")
    metadata = SnapshotMetadata(
        serial=_parse_serial(metadata_payload.get("serial", 0), source),
        indices={
            str(collection): {
                str(field): IndexDefinition(unique=bool(_options(options).get("unique", False)))
                for field, options in _expect_mapping(fields, source, "indices").items()
            }
            for collection, fields in _expect_mapping(
                metadata_payload.get("indices") or {}, source, "indices"
            ).items()
        },
        relations={
            str(collection): {
                str(field): _relation_from_payload(options, source)
                for field, options in _expect_mapping(fields, source, "relations").items()
            }
            for collection, fields in _expect_mapping(
                metadata_payload.get("relations") or {}, source, "relations"
            ).items()
        },
    )
    data: dict[str, list[dict[str, Any]]] = {}
    for collection, records in data_payload.items():
        if not isinstance(records, list):
            raise LitheStoreError(
                f"Invalid snapshot at {source}: data.{collection} must be a list of records."
            )
        data[str(collection)] = [dict(_expect_mapping(record, source, "record")) for record in records]
    return Snapshot(metadata=metadata, data=data)


def encode_snapshot(snapshot: Snapshot) -> str:
    """Render a Snapshot as indented JSON text.

    Raises:
        LitheStoreError: If a record holds a value JSON cannot encode.
    """
    try:
        return json.dumps(snapshot_to_payload(snapshot), indent=2, allow_nan=False) + "\n"
    except (TypeError, ValueError) as error:
        raise LitheStoreError(
            f"Failed to encode snapshot: {error}. Records must hold JSON values only."
        ) from error


def decode_snapshot(text: str, source: str) -> Snapshot:
    """Parse JSON text into a Snapshot.

    Args:
        text: Serialized snapshot JSON.
        source: Human-readable origin used in error messages.

    Returns:
        Parsed Snapshot.

    Raises:
        LitheStoreError: If the text is not a valid snapshot document.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as error:
        raise LitheStoreError(
            f"Failed to parse snapshot at {source}: {error.msg}. "
            "Restore the file from its .bak copy."
        ) from error
    if not isinstance(payload, dict):
        raise LitheStoreError(
            f"Failed to parse snapshot at {source}: expected JSON object at top level."
        )
    return snapshot_from_payload(payload, source)


def _relation_from_payload(options: object, source: str) -> RelationDefinition:
    relation = _options(options)
    ref = relation.get("ref")
    if not isinstance(ref, str) or not ref:
        raise LitheStoreError(
            f"Invalid snapshot at {source}: relation definition is missing 'ref'."
        )
    return RelationDefinition(ref=ref, field=str(relation.get("field") or DEFAULT_RELATION_FIELD))


def _parse_serial(raw_serial: object, source: str) -> int:
    if isinstance(raw_serial, bool) or not isinstance(raw_serial, int) or raw_serial < 0:
        raise LitheStoreError(
            f"Invalid snapshot at {source}: metadata.serial must be a non-negative integer."
        )
    return raw_serial


def _options(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _expect_mapping(value: object, source: str, context: str) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    raise LitheStoreError(
        f"Invalid snapshot at {source}: {context} must be an object, "
        f"got {type(value).__name__}."
    )
