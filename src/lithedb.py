"""Public SDK surface for LitheDB.

This module provides a stable import path for library users.
It re-exports the store engine, backends and typed models.
"""

from __future__ import annotations

from core.config import LitheConfig
from core.errors import (
    LitheError,
    LitheStoreError,
    LitheTransactionError,
    RelationIntegrityError,
    UniquenessError,
)
from core.types import IndexDefinition, RelationDefinition, Snapshot, SnapshotMetadata
from store.collection import Collection
from store.document_store import DocumentStore
from store.query_matching import MISSING
from store.record_ids import build_record_id, parse_record_id
from store.s3_storage import S3Storage
from store.storage import FileStorage, MemoryStorage, StorageBackend, create_storage

__all__ = [
    "Collection",
    "DocumentStore",
    "FileStorage",
    "IndexDefinition",
    "LitheConfig",
    "LitheError",
    "LitheStoreError",
    "LitheTransactionError",
    "MISSING",
    "MemoryStorage",
    "RelationDefinition",
    "RelationIntegrityError",
    "S3Storage",
    "Snapshot",
    "SnapshotMetadata",
    "StorageBackend",
    "UniquenessError",
    "build_record_id",
    "create_storage",
    "parse_record_id",
]
