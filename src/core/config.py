"""Runtime configuration model for LitheDB.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import DEFAULT_RETRY_DELAY_MS, DEFAULT_TARGET, DEFAULT_WRITE_ATTEMPTS
from core.errors import LitheConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class LitheConfig:
    """Validated runtime configuration.

    Attributes:
        target: Storage target: file path, ``:memory:`` or ``s3://bucket/key``.
        backup: Whether to back up the persisted snapshot before each write.
        write_attempts: Rename/copy attempts before a file write fails.
        retry_delay_ms: Base delay between attempts, multiplied by attempt number.
        s3_region: Optional default AWS region for S3 targets.
        s3_profile: Optional AWS profile for boto3 session initialization.
    """

    target: str = DEFAULT_TARGET
    backup: bool = True
    write_attempts: int = DEFAULT_WRITE_ATTEMPTS
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    s3_region: str | None = None
    s3_profile: str | None = None

    @classmethod
    def from_env(cls) -> "LitheConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            LitheConfigError: If environment values are invalid.
        """
        return cls(
            target=os.getenv("LITHEDB_TARGET", DEFAULT_TARGET),
            backup=_parse_bool("LITHEDB_BACKUP", os.getenv("LITHEDB_BACKUP", "true")),
            write_attempts=_parse_int(
                "LITHEDB_WRITE_RETRIES",
                os.getenv("LITHEDB_WRITE_RETRIES", str(DEFAULT_WRITE_ATTEMPTS)),
                minimum=1,
            ),
            retry_delay_ms=_parse_int(
                "LITHEDB_RETRY_DELAY_MS",
                os.getenv("LITHEDB_RETRY_DELAY_MS", str(DEFAULT_RETRY_DELAY_MS)),
                minimum=0,
            ),
            s3_region=os.getenv("LITHEDB_S3_REGION"),
            s3_profile=os.getenv("LITHEDB_S3_PROFILE"),
        )


def _parse_bool(variable: str, raw_value: str) -> bool:
    """Parse a boolean environment flag.

    Args:
        variable: Environment variable name, used in error messages.
        raw_value: Raw string from environment.

    Returns:
        Parsed flag.

    Raises:
        LitheConfigError: If value is not a recognised boolean.
    """
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise LitheConfigError(
        f"Invalid {variable} value: expected one of "
        f"{', '.join(_TRUE_VALUES + _FALSE_VALUES)}, got '{raw_value}'."
    )


def _parse_int(variable: str, raw_value: str, minimum: int) -> int:
    """Parse a bounded integer environment value.

    Args:
        variable: Environment variable name, used in error messages.
        raw_value: Raw string from environment.
        minimum: Smallest accepted value.

    Returns:
        Parsed integer.

    Raises:
        LitheConfigError: If value is not an integer or is below minimum.
    """
    try:
        parsed = int(raw_value)
    except ValueError as error:
        raise LitheConfigError(
            f"Invalid {variable} value: expected integer, got '{raw_value}'. "
            f"Set {variable} to a numeric value."
        ) from error
    if parsed < minimum:
        raise LitheConfigError(
            f"Invalid {variable} value {parsed}: expected value >= {minimum}."
        )
    return parsed
