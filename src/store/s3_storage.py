"""S3 object backend for whole-store snapshots.

This module keeps the snapshot as one JSON object. A single PUT replaces
the object atomically, so no staging object is needed. Backups are
best-effort: a failed copy is logged and never blocks the primary write.
"""

from __future__ import annotations

from typing import Any

from core.constants import BACKUP_FILE_SUFFIX
from core.errors import LitheDependencyError, LitheStoreError
from core.logging_config import get_logger
from core.types import Snapshot
from store.snapshot_payload import decode_snapshot, encode_snapshot

_LOGGER = get_logger(__name__)
_MISSING_OBJECT_CODES = ("NoSuchKey", "404", "NotFound")


class S3Storage:
    """Snapshot backend stored as one S3 object."""

    def __init__(
        self,
        bucket: str,
        key: str,
        region: str | None = None,
        profile: str | None = None,
        client: Any = None,
    ) -> None:
        """Create an S3 backend.

        Args:
            bucket: Destination bucket.
            key: Snapshot object key.
            region: Optional AWS region for the boto3 session.
            profile: Optional AWS profile for the boto3 session.
            client: Optional preconfigured S3 client.
        """
        self._bucket = bucket
        self._key = key
        self._region = region
        self._profile = profile
        self._client = client

    @property
    def uri(self) -> str:
        """Return the snapshot object URI."""
        return f"s3://{self._bucket}/{self._key}"

    def read(self) -> Snapshot:
        """Fetch and parse the snapshot object.

        Returns:
            Parsed snapshot, or an empty one when the object is absent.

        Raises:
            LitheStoreError: If the fetch fails for another reason.
        """
        client = self._s3_client()
        try:
            response = client.get_object(Bucket=self._bucket, Key=self._key)
            text = response["Body"].read().decode("utf-8")
        except Exception as error:
            if _is_missing_object(error):
                return Snapshot()
            raise LitheStoreError(
                f"Failed to read snapshot object {self.uri}: {error}. "
                "Check AWS credentials and bucket access."
            ) from error
        return decode_snapshot(text, self.uri)

    def write(self, snapshot: Snapshot) -> None:
        """Replace the snapshot object.

        Raises:
            LitheStoreError: If the upload fails.
        """
        client = self._s3_client()
        try:
            client.put_object(
                Bucket=self._bucket,
                Key=self._key,
                Body=encode_snapshot(snapshot).encode("utf-8"),
                ContentType="application/json",
            )
        except Exception as error:
            raise LitheStoreError(
                f"Failed to write snapshot object {self.uri}: {error}. "
                "Check AWS credentials and retry."
            ) from error

    def exists(self) -> bool:
        """Return whether the snapshot object exists."""
        client = self._s3_client()
        try:
            client.head_object(Bucket=self._bucket, Key=self._key)
        except Exception as error:
            if _is_missing_object(error):
                return False
            raise LitheStoreError(
                f"Failed to inspect snapshot object {self.uri}: {error}."
            ) from error
        return True

    def backup(self) -> None:
        """Copy the snapshot object to its ``.bak`` key, logging failures."""
        client = self._s3_client()
        backup_key = self._key + BACKUP_FILE_SUFFIX
        try:
            client.copy_object(
                Bucket=self._bucket,
                Key=backup_key,
                CopySource={"Bucket": self._bucket, "Key": self._key},
            )
        except Exception as error:
            _LOGGER.warning(
                "backup_failed",
                uri=self.uri,
                backup_key=backup_key,
                error=str(error),
            )

    def _s3_client(self) -> Any:
        if self._client is None:
            self._client = _create_s3_client(self._region, self._profile)
        return self._client


def _create_s3_client(region: str | None, profile: str | None) -> Any:
    """Create boto3 S3 client for snapshot objects.

    Args:
        region: Optional AWS region.
        profile: Optional AWS profile.

    Returns:
        Boto3 S3 client.

    Raises:
        LitheDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise LitheDependencyError(
            "S3 storage targets require boto3, but it is not installed. "
            "Install boto3 to use s3:// targets."
        ) from error
    session_kwargs: dict[str, str] = {}
    if profile:
        session_kwargs["profile_name"] = profile
    if region:
        session_kwargs["region_name"] = region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


def _is_missing_object(error: Exception) -> bool:
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return False
    code = str(response.get("Error", {}).get("Code", ""))
    return code in _MISSING_OBJECT_CODES
