"""Document store engine.

This module owns the active snapshot, the transaction sandbox, id
serial allocation and the persistence protocol. Collections read and
write through the store's active root, which switches to the sandbox
while a transaction is open.
"""

from __future__ import annotations

import copy
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterator

from core.config import LitheConfig
from core.constants import DEFAULT_RELATION_FIELD, TIMESTAMP_FORMAT
from core.errors import LitheTransactionError
from core.logging_config import get_logger
from core.types import IndexDefinition, Record, RelationDefinition, Snapshot
from store import relations
from store.collection import Collection
from store.storage import StorageBackend, create_storage

_LOGGER = get_logger(__name__)


class DocumentStore:
    """Embedded document store over one persistence backend.

    The store is single-threaded by contract: callers issue one operation
    at a time. Relation checks and populate resolve against the active
    root, so a transaction sees the records it has inserted itself.
    """

    def __init__(self, storage: StorageBackend, backup: bool = True) -> None:
        """Create a store over a backend. Call ``load`` before use.

        Args:
            storage: Persistence backend.
            backup: Back up the persisted snapshot before each write.
        """
        self._storage = storage
        self._backup = backup
        self._snapshot = Snapshot()
        self._sandbox: Snapshot | None = None
        self._collections: dict[str, Collection] = {}
        self._last_timestamp: datetime | None = None

    @classmethod
    def open(cls, target: str | None = None, config: LitheConfig | None = None) -> "DocumentStore":
        """Create and load a store for a target string.

        Args:
            target: Storage target; defaults to ``config.target``.
            config: Optional runtime config; read from environment when omitted.

        Returns:
            Loaded document store.
        """
        resolved_config = config or LitheConfig.from_env()
        storage = create_storage(target or resolved_config.target, resolved_config)
        store = cls(storage, backup=resolved_config.backup)
        store.load()
        return store

    @property
    def storage(self) -> StorageBackend:
        """Return the persistence backend."""
        return self._storage

    @property
    def in_transaction(self) -> bool:
        """Return whether a transaction sandbox is open."""
        return self._sandbox is not None

    def load(self) -> None:
        """Replace the live snapshot with the backend's persisted state.

        Raises:
            LitheStoreError: If the backend read fails.
        """
        self._snapshot = self._storage.read()
        _LOGGER.debug(
            "snapshot_loaded",
            serial=self._snapshot.metadata.serial,
            collections=len(self._snapshot.data),
        )

    def collection(self, name: str) -> Collection:
        """Return the cached handle for a collection, creating it on first use."""
        if name not in self._collections:
            self._collections[name] = Collection(self, name)
        return self._collections[name]

    def create_index(self, collection: str, field: str, unique: bool = False) -> None:
        """Register or overwrite an index definition and persist it.

        Inside a transaction the definition lives in the sandbox until commit.
        """
        root = self.active_root()
        root.metadata.indices.setdefault(collection, {})[field] = IndexDefinition(unique=unique)
        _LOGGER.info("index_created", collection=collection, field=field, unique=unique)
        self.save()

    def define_relation(
        self,
        collection: str,
        field: str,
        ref: str,
        ref_field: str = DEFAULT_RELATION_FIELD,
    ) -> None:
        """Register or overwrite a relation definition and persist it.

        Args:
            collection: Collection holding the reference.
            field: Field holding the referenced value.
            ref: Referenced collection.
            ref_field: Referenced field, ``id`` by default.
        """
        root = self.active_root()
        definition = RelationDefinition(ref=ref, field=ref_field or DEFAULT_RELATION_FIELD)
        root.metadata.relations.setdefault(collection, {})[field] = definition
        _LOGGER.info(
            "relation_defined",
            collection=collection,
            field=field,
            ref=definition.ref,
            ref_field=definition.field,
        )
        self.save()

    def begin_transaction(self) -> None:
        """Reload from the backend and open a sandbox copy of it.

        Raises:
            LitheTransactionError: If a transaction is already open.
            LitheStoreError: If the reload fails.
        """
        if self._sandbox is not None:
            raise LitheTransactionError(
                "A transaction is already open. Commit or roll it back before beginning another."
            )
        self.load()
        self._sandbox = copy.deepcopy(self._snapshot)
        _LOGGER.debug("transaction_begun", serial=self._snapshot.metadata.serial)

    def commit(self) -> None:
        """Persist the sandbox, then promote it to the live snapshot.

        The sandbox is promoted only after the backend write succeeds. On
        failure the transaction stays open so the caller can roll back.

        Raises:
            LitheStoreError: If backup or write fails.
        """
        if self._sandbox is None:
            return
        self._persist(self._sandbox)
        self._snapshot = self._sandbox
        self._sandbox = None
        _LOGGER.debug("transaction_committed", serial=self._snapshot.metadata.serial)

    def rollback(self) -> None:
        """Discard the sandbox without persisting anything."""
        if self._sandbox is None:
            return
        self._sandbox = None
        _LOGGER.debug("transaction_rolled_back", serial=self._snapshot.metadata.serial)

    @contextmanager
    def transaction(self) -> Iterator["DocumentStore"]:
        """Run a block in a transaction, committing on success.

        Any exception, including a failed commit, rolls the transaction
        back and is re-raised.
        """
        self.begin_transaction()
        try:
            yield self
            self.commit()
        except BaseException:
            self.rollback()
            raise

    def save(self) -> None:
        """Persist the live snapshot unless a transaction is open.

        Raises:
            LitheStoreError: If backup or write fails.
        """
        if self._sandbox is not None:
            return
        self._persist(self._snapshot)

    def _persist(self, snapshot: Snapshot) -> None:
        if self._backup:
            self._storage.backup()
        self._storage.write(snapshot)
        _LOGGER.debug("snapshot_saved", serial=snapshot.metadata.serial)

    def snapshot(self) -> Snapshot:
        """Return a deep copy of the active root for inspection."""
        return copy.deepcopy(self.active_root())

    def active_root(self) -> Snapshot:
        """Return the sandbox while a transaction is open, else the live snapshot."""
        return self._sandbox if self._sandbox is not None else self._snapshot

    def next_serial(self) -> int:
        """Issue the next record serial from the active root."""
        metadata = self.active_root().metadata
        metadata.serial += 1
        return metadata.serial

    def next_timestamp(self) -> str:
        """Return a UTC ISO-8601 timestamp later than any this store issued."""
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now.strftime(TIMESTAMP_FORMAT)

    def check_relations(self, collection: str, document: Record) -> None:
        """Validate a document's related fields against the active root."""
        relations.check_relations(self.active_root(), collection, document)

    def populate(self, collection: str, document: Record) -> Record:
        """Return a clone of a document with related fields expanded."""
        return relations.populate(self.active_root(), collection, document)
