"""Collection handle with CRUD, constraints and lifecycle hooks.

A collection never holds record data itself. Every call reads and
writes the owning store's active root, which is the live snapshot or
the open transaction sandbox.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Mapping, cast

from core.constants import SYSTEM_FIELDS
from core.errors import LitheStoreError, UniquenessError
from core.json_values import find_non_json_value
from core.types import Query, Record, Snapshot, SortOrder
from store.collection_hooks import HookCallback, HookRegistry
from store.query_matching import compile_query, filter_documents, sort_documents, values_equal
from store.record_ids import build_record_id
from store.schema_inference import infer_schema

if TYPE_CHECKING:
    from store.document_store import DocumentStore


class Collection:
    """CRUD surface over one named record list."""

    def __init__(self, store: "DocumentStore", name: str) -> None:
        """Create collection handle.

        Args:
            store: Owning document store.
            name: Collection name.
        """
        self._store = store
        self._name = name
        self._hooks = HookRegistry(name)

    @property
    def name(self) -> str:
        """Return collection name."""
        return self._name

    def on(self, event: str, callback: HookCallback) -> HookCallback:
        """Register a lifecycle hook.

        Args:
            event: One of the ``before_*``/``after_*`` insert, update,
                upsert or remove events.
            callback: Callable run in registration order for the event.

        Returns:
            The callback, so ``on`` can also be used as a decorator helper.

        Raises:
            LitheHookError: If the event name is unknown.
        """
        self._hooks.register(event, callback)
        return callback

    def insert(self, payload: Mapping[str, Any]) -> Record:
        """Insert one document and return a clone of the stored record.

        Args:
            payload: Document fields. System fields are ignored.

        Returns:
            Stored record including ``id``, ``created_at`` and ``updated_at``.

        Raises:
            UniquenessError: If a unique index already holds a payload value.
            RelationIntegrityError: If a related value has no referenced record.
            LitheHookError: If a hook fails.
            LitheStoreError: If a value is not JSON-serializable or persistence
                fails. The collection is left unchanged in either case.
        """
        document = copy.deepcopy(dict(_expect_document(payload, "insert payload")))
        self._hooks.invoke("before_insert", document)
        document = _without_system_fields(document)
        _expect_json_values(document, "insert payload")
        root = self._store.active_root()
        self._check_unique_insert(root, document)
        self._store.check_relations(self._name, document)
        record_id = build_record_id(self._store.next_serial(), self._name)
        timestamp = self._store.next_timestamp()
        record = {**document, "id": record_id, "created_at": timestamp, "updated_at": timestamp}
        records = root.records(self._name)
        records.append(record)
        try:
            self._store.save()
        except LitheStoreError:
            records.pop()
            root.metadata.serial -= 1
            raise
        inserted = copy.deepcopy(record)
        self._hooks.invoke("after_insert", copy.deepcopy(inserted))
        return inserted

    def find(
        self,
        query: Query = None,
        sort: Mapping[str, SortOrder] | None = None,
        populate: bool = False,
    ) -> list[Record]:
        """Return clones of all matching records.

        Args:
            query: Field mapping or document predicate; ``None`` matches all.
            sort: Optional ``{field: "asc"|"desc"}`` ordering.
            populate: Expand related fields into referenced records.

        Returns:
            Matching records in collection order unless sorted.
        """
        matches = filter_documents(self._stored_records(), query)
        if sort:
            matches = sort_documents(matches, sort)
        if populate:
            return [self._store.populate(self._name, document) for document in matches]
        return [copy.deepcopy(document) for document in matches]

    def find_one(self, query: Query = None, populate: bool = False) -> Record | None:
        """Return a clone of the first matching record, or ``None``."""
        compiled = compile_query(query)
        for document in self._stored_records():
            if compiled.matches(document):
                if populate:
                    return self._store.populate(self._name, document)
                return copy.deepcopy(document)
        return None

    def count(self, query: Query = None) -> int:
        """Return the number of matching records."""
        return len(filter_documents(self._stored_records(), query))

    def update(self, query: Query, patch: Mapping[str, Any]) -> int:
        """Merge a patch into every matching record.

        All targets are validated before any is changed, so a constraint
        failure on one record leaves the whole batch unapplied.

        Args:
            query: Selects records to update.
            patch: Fields to merge. System fields are ignored.

        Returns:
            Number of records updated.

        Raises:
            UniquenessError: If a changed unique value is held by another record.
            RelationIntegrityError: If an updated record has a dangling reference.
            LitheHookError: If a hook fails.
            LitheStoreError: If a value is not JSON-serializable or persistence
                fails. No record is changed in either case.
        """
        changes = copy.deepcopy(dict(_expect_document(patch, "update patch")))
        self._hooks.invoke("before_update", query, changes)
        changes = _without_system_fields(changes)
        _expect_json_values(changes, "update patch")
        root = self._store.active_root()
        records = root.data.get(self._name, [])
        compiled = compile_query(query)
        positions = [index for index, record in enumerate(records) if compiled.matches(record)]
        if positions:
            timestamp = self._store.next_timestamp()
            staged = list(records)
            for position in positions:
                staged[position] = {
                    **copy.deepcopy(records[position]),
                    **copy.deepcopy(changes),
                    "updated_at": timestamp,
                }
            self._check_unique_update(root, records, staged, positions, changes)
            for position in positions:
                self._store.check_relations(self._name, staged[position])
            previous = list(records)
            records[:] = staged
            try:
                self._store.save()
            except LitheStoreError:
                records[:] = previous
                raise
        self._hooks.invoke("after_update", query, copy.deepcopy(changes), len(positions))
        return len(positions)

    def upsert(self, query: Query, data: Mapping[str, Any]) -> Record:
        """Update the first matching record, or insert when none matches.

        Returns:
            The refreshed or inserted record.
        """
        document = copy.deepcopy(dict(_expect_document(data, "upsert data")))
        self._hooks.invoke("before_upsert", query, document)
        existing = self.find_one(query)
        if existing is None:
            record = self.insert(document)
            inserted = True
        else:
            id_query = {"id": existing["id"]}
            self.update(id_query, document)
            record = cast(Record, self.find_one(id_query))
            inserted = False
        self._hooks.invoke("after_upsert", copy.deepcopy(record), inserted)
        return record

    def remove(self, query: Query) -> int:
        """Delete every matching record and return how many were removed."""
        self._hooks.invoke("before_remove", query)
        root = self._store.active_root()
        records = root.data.get(self._name, [])
        compiled = compile_query(query)
        kept = [record for record in records if not compiled.matches(record)]
        removed_count = len(records) - len(kept)
        if removed_count > 0:
            root.data[self._name] = kept
            try:
                self._store.save()
            except LitheStoreError:
                root.data[self._name] = records
                raise
        self._hooks.invoke("after_remove", query, removed_count)
        return removed_count

    def get_schema(self) -> dict[str, dict[str, Any]]:
        """Infer a structural description of the stored records."""
        return infer_schema(self._stored_records())

    def _stored_records(self) -> list[Record]:
        return self._store.active_root().data.get(self._name, [])

    def _check_unique_insert(self, root: Snapshot, document: Record) -> None:
        records = root.data.get(self._name, [])
        for field, index in root.indices_for(self._name).items():
            if not index.unique or field not in document:
                continue
            value = document[field]
            if any(field in record and values_equal(record[field], value) for record in records):
                raise UniquenessError(collection=self._name, field=field, value=value)

    def _check_unique_update(
        self,
        root: Snapshot,
        records: list[Record],
        staged: list[Record],
        positions: list[int],
        changes: Record,
    ) -> None:
        for field, index in root.indices_for(self._name).items():
            if not index.unique or field not in changes:
                continue
            value = changes[field]
            for position in positions:
                current = records[position]
                if field in current and values_equal(current[field], value):
                    continue
                for other_position, other in enumerate(staged):
                    if other_position == position or field not in other:
                        continue
                    if values_equal(other[field], value):
                        raise UniquenessError(collection=self._name, field=field, value=value)


def _without_system_fields(document: Record) -> Record:
    return {field: value for field, value in document.items() if field not in SYSTEM_FIELDS}


def _expect_document(value: object, context: str) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    raise LitheStoreError(
        f"Invalid {context}: expected a mapping of fields, got {type(value).__name__}."
    )


def _expect_json_values(document: Record, context: str) -> None:
    problem = find_non_json_value(document)
    if problem is not None:
        raise LitheStoreError(
            f"Invalid {context}: value is not JSON-serializable ({problem}). "
            "Store strings, numbers, booleans, null, lists or objects."
        )
