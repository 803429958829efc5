"""Unit tests for the S3 snapshot backend."""

from __future__ import annotations

import io
import json
from typing import Any

import pytest

from core.errors import LitheStoreError
from core.types import Snapshot, SnapshotMetadata
from store.s3_storage import S3Storage


class _ClientError(Exception):
    def __init__(self, code: str) -> None:
        super().__init__(f"An error occurred ({code})")
        self.response = {"Error": {"Code": code}}


class _FakeS3Client:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.fail_copy = False

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if Key not in self.objects:
            raise _ClientError("NoSuchKey")
        return {"Body": io.BytesIO(self.objects[Key])}

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str) -> None:
        self.objects[Key] = Body

    def head_object(self, Bucket: str, Key: str) -> None:
        if Key not in self.objects:
            raise _ClientError("404")

    def copy_object(self, Bucket: str, Key: str, CopySource: dict[str, str]) -> None:
        if self.fail_copy or CopySource["Key"] not in self.objects:
            raise _ClientError("AccessDenied")
        self.objects[Key] = self.objects[CopySource["Key"]]


def test_s3_storage_reads_missing_object_as_empty() -> None:
    """A missing object should load as an empty snapshot."""
    storage = S3Storage("bucket", "db.json", client=_FakeS3Client())

    snapshot = storage.read()

    assert snapshot.data == {} and storage.exists() is False


def test_s3_storage_writes_json_object() -> None:
    """Writes should upload the snapshot JSON under the key."""
    client = _FakeS3Client()
    storage = S3Storage("bucket", "db.json", client=client)

    storage.write(Snapshot(metadata=SnapshotMetadata(serial=2), data={"users": []}))

    assert json.loads(client.objects["db.json"])["metadata"]["serial"] == 2
    assert storage.read().metadata.serial == 2 and storage.exists()


def test_s3_storage_backup_copies_object() -> None:
    """Backup should copy the current object to its .bak key."""
    client = _FakeS3Client()
    storage = S3Storage("bucket", "db.json", client=client)
    storage.write(Snapshot())

    storage.backup()

    assert client.objects["db.json.bak"] == client.objects["db.json"]


def test_s3_storage_backup_failure_is_not_raised() -> None:
    """Backup failures should be logged and swallowed."""
    client = _FakeS3Client()
    client.fail_copy = True
    storage = S3Storage("bucket", "db.json", client=client)

    storage.backup()

    assert "db.json.bak" not in client.objects


def test_s3_storage_wraps_unexpected_read_errors() -> None:
    """Non-missing read failures should surface as store errors."""

    class _DeniedClient(_FakeS3Client):
        def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
            raise _ClientError("AccessDenied")

    storage = S3Storage("bucket", "db.json", client=_DeniedClient())

    with pytest.raises(LitheStoreError, match="Failed to read snapshot object"):
        storage.read()
