"""JSON value validation for record payloads.

Records are persisted as JSON, so every stored value must be one JSON
can represent and read back unchanged.
"""

from __future__ import annotations

import math
from typing import Any, Mapping


def find_non_json_value(value: Any, path: str = "") -> str | None:
    """Locate the first value JSON cannot round-trip.

    Args:
        value: Candidate value, usually a document mapping.
        path: Dotted location of ``value`` used in the result.

    Returns:
        ``"<path>: <type name>"`` for the first offending value, or ``None``
        when the whole value is JSON-safe.
    """
    if value is None or isinstance(value, (str, bool, int)):
        return None
    if isinstance(value, float):
        return None if math.isfinite(value) else f"{path or '<root>'}: non-finite float"
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                return f"{path or '<root>'}: non-string key {key!r}"
            problem = find_non_json_value(item, f"{path}.{key}" if path else key)
            if problem is not None:
                return problem
        return None
    if isinstance(value, list):
        for index, item in enumerate(value):
            problem = find_non_json_value(item, f"{path}[{index}]")
            if problem is not None:
                return problem
        return None
    return f"{path or '<root>'}: {type(value).__name__}"
