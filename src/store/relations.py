"""Cross-collection reference integrity and population.

Relations declare that ``collection.field`` holds a value of
``ref.field`` in another collection. Both helpers resolve against the
snapshot they are handed, which the document store sets to its active
root so open transactions see their own uncommitted records.
"""

from __future__ import annotations

import copy
from typing import Any

from core.errors import RelationIntegrityError
from core.types import Record, Snapshot
from store.query_matching import values_equal


def check_relations(snapshot: Snapshot, collection: str, document: Record) -> None:
    """Verify every related field of a document points at an existing record.

    Args:
        snapshot: Snapshot holding relation definitions and referenced data.
        collection: Collection the document belongs to.
        document: Document to validate.

    Raises:
        RelationIntegrityError: If a present, non-null value has no match.
    """
    for field, relation in snapshot.relations_for(collection).items():
        value = document.get(field)
        if value is None:
            continue
        if _find_referenced(snapshot, relation.ref, relation.field, value) is None:
            raise RelationIntegrityError(
                collection=collection,
                field=field,
                value=value,
                ref_collection=relation.ref,
                ref_field=relation.field,
            )


def populate(snapshot: Snapshot, collection: str, document: Record) -> Record:
    """Return a clone of a document with related values expanded.

    Each related field is replaced by a clone of the first referenced
    record whose referenced field equals it. Unresolved values are kept.
    """
    populated = copy.deepcopy(document)
    for field, relation in snapshot.relations_for(collection).items():
        value = document.get(field)
        if value is None:
            continue
        referenced = _find_referenced(snapshot, relation.ref, relation.field, value)
        if referenced is not None:
            populated[field] = copy.deepcopy(referenced)
    return populated


def _find_referenced(
    snapshot: Snapshot, ref_collection: str, ref_field: str, value: Any
) -> Record | None:
    for record in snapshot.data.get(ref_collection, []):
        if ref_field in record and values_equal(record[ref_field], value):
            return record
    return None
