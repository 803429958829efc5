"""LitheDB exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class LitheError(Exception):
    """Base exception for all LitheDB failures."""


class LitheConfigError(LitheError):
    """Raised for invalid runtime configuration."""


class LitheStoreError(LitheError):
    """Raised for snapshot persistence and backend failures."""


class UniquenessError(LitheStoreError):
    """Raised when a unique index would hold a duplicate value.

    Attributes:
        collection: Collection holding the unique index.
        field: Indexed field name.
        value: Duplicate value that was rejected.
    """

    def __init__(self, collection: str, field: str, value: object) -> None:
        self.collection = collection
        self.field = field
        self.value = value
        super().__init__(
            f"Unique constraint violation: {collection}.{field} "
            f"already exists with value {value!r}"
        )


class RelationIntegrityError(LitheStoreError):
    """Raised when a related field points at a missing record.

    Attributes:
        collection: Collection of the offending document.
        field: Related field name.
        value: Referenced value that has no match.
        ref_collection: Referenced collection name.
        ref_field: Referenced field name.
    """

    def __init__(
        self,
        collection: str,
        field: str,
        value: object,
        ref_collection: str,
        ref_field: str,
    ) -> None:
        self.collection = collection
        self.field = field
        self.value = value
        self.ref_collection = ref_collection
        self.ref_field = ref_field
        super().__init__(
            f"Relation integrity error: {collection}.{field} value {value!r} "
            f"not found in {ref_collection}.{ref_field}"
        )


class LitheTransactionError(LitheError):
    """Raised for invalid transaction lifecycle usage."""


class LitheHookError(LitheError):
    """Raised for lifecycle hook registration and invocation failures."""


class LitheDependencyError(LitheError):
    """Raised when an optional runtime dependency is missing."""


class LitheScriptError(LitheError):
    """Raised for invalid or unsupported batch script files."""
