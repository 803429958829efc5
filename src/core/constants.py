"""Core constants used across LitheDB modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_TARGET = "database.json"
MEMORY_TARGET = ":memory:"
S3_URI_PREFIX = "s3://"
TEMP_FILE_SUFFIX = ".tmp"
BACKUP_FILE_SUFFIX = ".bak"
DEFAULT_WRITE_ATTEMPTS = 5
DEFAULT_RETRY_DELAY_MS = 100
RECORD_ID_SERIAL_WIDTH = 6
RECORD_ID_SEPARATOR = "_"
DEFAULT_RELATION_FIELD = "id"
SYSTEM_FIELDS = ("id", "created_at", "updated_at")
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
SORT_ASCENDING = "asc"
SORT_DESCENDING = "desc"
SUPPORTED_SCRIPT_VERSION = 1
