"""Shared typed models.

This module defines the snapshot model shared by the engine, the
persistence backends and the CLI to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Mapping, Union

from core.constants import DEFAULT_RELATION_FIELD

Record = dict[str, Any]
DocumentPredicate = Callable[[Record], bool]
Query = Union[Mapping[str, Any], DocumentPredicate, None]
SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True)
class IndexDefinition:
    """Index declared on one collection field.

    Attributes:
        unique: Whether duplicate values are rejected on insert and update.
    """

    unique: bool = False


@dataclass(frozen=True)
class RelationDefinition:
    """Foreign reference from a collection field to another collection.

    Attributes:
        ref: Referenced collection name.
        field: Referenced field name.
    """

    ref: str
    field: str = DEFAULT_RELATION_FIELD


@dataclass
class SnapshotMetadata:
    """Store-wide metadata persisted alongside collection data.

    Attributes:
        serial: Last issued record serial; only ever increases.
        indices: Index definitions keyed by collection, then field.
        relations: Relation definitions keyed by collection, then field.
    """

    serial: int = 0
    indices: dict[str, dict[str, IndexDefinition]] = field(default_factory=dict)
    relations: dict[str, dict[str, RelationDefinition]] = field(default_factory=dict)


@dataclass
class Snapshot:
    """Full in-memory state of a store at one point in time.

    Attributes:
        metadata: Serial counter and index/relation definitions.
        data: Ordered record lists keyed by collection name.
    """

    metadata: SnapshotMetadata = field(default_factory=SnapshotMetadata)
    data: dict[str, list[Record]] = field(default_factory=dict)

    def records(self, collection: str) -> list[Record]:
        """Return the live record list for a collection, creating it if absent."""
        return self.data.setdefault(collection, [])

    def relations_for(self, collection: str) -> Mapping[str, RelationDefinition]:
        """Return relation definitions declared on a collection."""
        return self.metadata.relations.get(collection, {})

    def indices_for(self, collection: str) -> Mapping[str, IndexDefinition]:
        """Return index definitions declared on a collection."""
        return self.metadata.indices.get(collection, {})
