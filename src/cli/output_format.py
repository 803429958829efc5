"""CLI result rendering in JSON or aligned text form."""

from __future__ import annotations

import json
from typing import Any

RECORD_SEPARATOR = "-" * 50


def render_result(result: Any, output_format: str, pretty: bool) -> str:
    """Render a command result for stdout.

    Args:
        result: Record, record list, or status mapping.
        output_format: ``json`` or ``text``.
        pretty: Indent JSON output.

    Returns:
        Printable text.
    """
    if result is None:
        return "null"
    if output_format != "text":
        return json.dumps(result, indent=2 if pretty else None, ensure_ascii=False)
    if isinstance(result, list):
        blocks = []
        for index, item in enumerate(result, 1):
            record_id = item.get("id", "N/A") if isinstance(item, dict) else "N/A"
            blocks.append(
                f"[ Record {index}: {record_id} ]\n"
                f"{format_text(item).lstrip()}\n\n{RECORD_SEPARATOR}\n"
            )
        return "\n".join(blocks)
    return format_text(result).lstrip()


def format_text(data: Any, indent: int = 0) -> str:
    """Format a JSON value as ``key : value`` lines with nested indentation."""
    spaces = "  " * indent
    if data is None:
        return "null"
    if isinstance(data, bool):
        return "true" if data else "false"
    if isinstance(data, list):
        if not data:
            return "[]"
        items = "".join(
            f"\n{spaces}- {format_text(item, indent + 1).lstrip()}" for item in data
        )
        return f"(Array[{len(data)}]){items}"
    if not isinstance(data, dict):
        return str(data)
    if not data:
        return "{}"
    key_width = max(len(str(key)) for key in data)
    lines = []
    for key, value in data.items():
        label = str(key).ljust(key_width)
        if isinstance(value, (dict, list)):
            lines.append(f"\n{spaces}{label} : {format_text(value, indent + 1)}")
        else:
            lines.append(f"\n{spaces}{label} : {format_text(value)}")
    return "".join(lines)
