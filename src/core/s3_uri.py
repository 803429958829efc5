"""S3 URI parsing helpers.

This module validates ``s3://bucket/key`` storage targets
before an object-store backend is constructed.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import S3_URI_PREFIX
from core.errors import LitheConfigError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 object location."""

    bucket: str
    key: str


def is_s3_uri(target: str) -> bool:
    """Return whether a storage target names an S3 object."""
    return target.startswith(S3_URI_PREFIX)


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 object URI.

    Args:
        uri: URI in format ``s3://bucket/key``.

    Returns:
        Parsed bucket and object key pair.

    Raises:
        LitheConfigError: If bucket or key is missing.
    """
    stripped_uri = uri.removeprefix(S3_URI_PREFIX)
    bucket, _, key = stripped_uri.partition("/")
    if not bucket or not key or key.endswith("/"):
        raise LitheConfigError(
            f"Invalid S3 URI '{uri}': expected s3://bucket/key. "
            "Provide both bucket and an object key for the snapshot."
        )
    return S3Location(bucket=bucket, key=key)
