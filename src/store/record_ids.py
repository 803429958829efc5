"""Record identifier encoding.

Ids are the zero-padded store serial joined to the owning collection
name, e.g. ``000001_users``, so they sort in insertion order and name
the collection they were issued for.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import RECORD_ID_SEPARATOR, RECORD_ID_SERIAL_WIDTH
from core.errors import LitheStoreError


@dataclass(frozen=True)
class RecordId:
    """Decoded record identifier."""

    serial: int
    collection: str


def build_record_id(serial: int, collection: str) -> str:
    """Build the id for a newly issued serial."""
    return f"{serial:0{RECORD_ID_SERIAL_WIDTH}d}{RECORD_ID_SEPARATOR}{collection}"


def parse_record_id(record_id: str) -> RecordId:
    """Decode serial and collection name from a record id.

    Raises:
        LitheStoreError: If the id does not follow ``<serial>_<collection>``.
    """
    serial_text, separator, collection = record_id.partition(RECORD_ID_SEPARATOR)
    if not separator or not serial_text.isdigit() or not collection:
        raise LitheStoreError(
            f"Invalid record id '{record_id}': expected <serial>_<collection>."
        )
    return RecordId(serial=int(serial_text), collection=collection)
