"""Persistence backends for whole-store snapshots.

This module defines the backend contract consumed by the document store
and the local file and in-memory implementations of it. The file backend
writes through a temp file and an atomic rename, with a bounded retry.
"""

from __future__ import annotations

import copy
import os
import shutil
import time
from pathlib import Path
from typing import Callable, Protocol

from core.config import LitheConfig
from core.constants import (
    BACKUP_FILE_SUFFIX,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_WRITE_ATTEMPTS,
    MEMORY_TARGET,
    TEMP_FILE_SUFFIX,
)
from core.errors import LitheStoreError
from core.logging_config import get_logger
from core.s3_uri import is_s3_uri, parse_s3_uri
from core.types import Snapshot
from store.s3_storage import S3Storage
from store.snapshot_payload import decode_snapshot, encode_snapshot

_LOGGER = get_logger(__name__)


class StorageBackend(Protocol):
    """Operations every snapshot persistence target must provide."""

    def read(self) -> Snapshot: ...

    def write(self, snapshot: Snapshot) -> None: ...

    def exists(self) -> bool: ...

    def backup(self) -> None: ...


class FileStorage:
    """Local JSON file backend with crash-safe writes.

    Writes land in ``<path>.tmp`` first and are renamed over the target,
    so readers only ever observe a complete snapshot. Backups copy the
    current file to ``<path>.bak`` before it is replaced.
    """

    def __init__(
        self,
        path: str | Path,
        write_attempts: int = DEFAULT_WRITE_ATTEMPTS,
        retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS,
    ) -> None:
        """Create a file backend.

        Args:
            path: Snapshot JSON file path.
            write_attempts: Rename/copy attempts before failing.
            retry_delay_ms: Base delay, multiplied by the attempt number.
        """
        self._path = Path(path).expanduser()
        self._write_attempts = write_attempts
        self._retry_delay_ms = retry_delay_ms

    @property
    def path(self) -> Path:
        """Return the snapshot file path."""
        return self._path

    @property
    def temp_path(self) -> Path:
        """Return the staging file path used during writes."""
        return self._path.with_name(self._path.name + TEMP_FILE_SUFFIX)

    @property
    def backup_path(self) -> Path:
        """Return the backup copy path."""
        return self._path.with_name(self._path.name + BACKUP_FILE_SUFFIX)

    def read(self) -> Snapshot:
        """Read the snapshot file, or an empty snapshot if none exists.

        Returns:
            Parsed snapshot.

        Raises:
            LitheStoreError: If the file cannot be read or parsed.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Snapshot()
        except OSError as error:
            raise LitheStoreError(
                f"Failed to read snapshot file {self._path}: {error}."
            ) from error
        return decode_snapshot(text, str(self._path))

    def write(self, snapshot: Snapshot) -> None:
        """Persist a snapshot through temp-file-then-rename.

        Args:
            snapshot: Snapshot to persist.

        Raises:
            LitheStoreError: If staging fails or rename exhausts its retries.
        """
        temp_path = self.temp_path
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(encode_snapshot(snapshot), encoding="utf-8")
        except OSError as error:
            raise LitheStoreError(
                f"Failed to stage snapshot at {temp_path}: {error}. "
                "Check write permissions and available disk space."
            ) from error
        self._retry("rename", lambda: os.replace(temp_path, self._path))

    def exists(self) -> bool:
        """Return whether a snapshot file has been written."""
        return self._path.exists()

    def backup(self) -> None:
        """Copy the current snapshot file to its ``.bak`` path.

        Raises:
            LitheStoreError: If the copy exhausts its retries.
        """
        if not self.exists():
            return
        self._retry("backup", lambda: shutil.copyfile(self._path, self.backup_path))

    def _retry(self, operation: str, action: Callable[[], object]) -> None:
        for attempt in range(1, self._write_attempts + 1):
            try:
                action()
                return
            except OSError as error:
                if attempt == self._write_attempts:
                    raise LitheStoreError(
                        f"Snapshot {operation} failed for {self._path} after "
                        f"{attempt} attempts: {error}."
                    ) from error
                _LOGGER.warning(
                    "file_operation_retry",
                    operation=operation,
                    path=str(self._path),
                    attempt=attempt,
                    error=str(error),
                )
                time.sleep(self._retry_delay_ms * attempt / 1000)


class MemoryStorage:
    """In-process backend for tests and throwaway stores."""

    def __init__(self, initial: Snapshot | None = None) -> None:
        self._snapshot = copy.deepcopy(initial) if initial is not None else None
        self._backup: Snapshot | None = None

    @property
    def backup_snapshot(self) -> Snapshot | None:
        """Return a copy of the last backup, if any was taken."""
        return copy.deepcopy(self._backup)

    def read(self) -> Snapshot:
        if self._snapshot is None:
            return Snapshot()
        return copy.deepcopy(self._snapshot)

    def write(self, snapshot: Snapshot) -> None:
        self._snapshot = copy.deepcopy(snapshot)

    def exists(self) -> bool:
        return self._snapshot is not None

    def backup(self) -> None:
        self._backup = copy.deepcopy(self._snapshot)


def create_storage(target: str, config: LitheConfig | None = None) -> StorageBackend:
    """Select a backend for a storage target string.

    Args:
        target: ``:memory:``, ``s3://bucket/key`` or a local file path.
        config: Optional runtime config for retry and S3 session settings.

    Returns:
        Backend bound to the target.
    """
    resolved_config = config or LitheConfig()
    if target == MEMORY_TARGET:
        return MemoryStorage()
    if is_s3_uri(target):
        location = parse_s3_uri(target)
        return S3Storage(
            bucket=location.bucket,
            key=location.key,
            region=resolved_config.s3_region,
            profile=resolved_config.s3_profile,
        )
    return FileStorage(
        target,
        write_attempts=resolved_config.write_attempts,
        retry_delay_ms=resolved_config.retry_delay_ms,
    )
