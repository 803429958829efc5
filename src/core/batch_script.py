"""Typed batch script parsing for grouped store operations.

This module loads and validates YAML batch scripts used by the CLI.
A script lists write steps that the store applies as one transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Mapping, Sequence, cast

from core.constants import SUPPORTED_SCRIPT_VERSION
from core.errors import LitheDependencyError, LitheScriptError
from core.json_values import find_non_json_value

BatchCommand = Literal["insert", "update", "upsert", "remove", "index", "relation"]
SUPPORTED_BATCH_COMMANDS: tuple[BatchCommand, ...] = (
    "insert",
    "update",
    "upsert",
    "remove",
    "index",
    "relation",
)
_REQUIRED_ARGS: dict[BatchCommand, tuple[str, ...]] = {
    "insert": ("data",),
    "update": ("query", "patch"),
    "upsert": ("query", "data"),
    "remove": ("query",),
    "index": ("field",),
    "relation": ("field", "ref"),
}
_OPTIONAL_ARGS: dict[BatchCommand, tuple[str, ...]] = {
    "insert": (),
    "update": (),
    "upsert": (),
    "remove": (),
    "index": ("unique",),
    "relation": ("ref_field",),
}
_MAPPING_ARGS = ("data", "query", "patch")
_STRING_ARGS = ("field", "ref", "ref_field")


@dataclass(frozen=True)
class BatchStep:
    """One write step from a batch script."""

    command: BatchCommand
    collection: str
    args: Mapping[str, object]


@dataclass(frozen=True)
class BatchScript:
    """Validated batch script root object."""

    version: int
    steps: tuple[BatchStep, ...]


def load_batch_script(script_path: str) -> BatchScript:
    """Load and validate a YAML batch script from disk.

    Args:
        script_path: File path to YAML batch script.

    Returns:
        Fully validated batch script.

    Raises:
        LitheDependencyError: If PyYAML is unavailable.
        LitheScriptError: If file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(script_path)
    return parse_batch_script(payload)


def parse_batch_script(payload: object) -> BatchScript:
    """Validate an already-decoded batch script payload."""
    root_mapping = _expect_mapping(payload, "batch script root")
    unknown_keys = sorted(set(root_mapping) - {"version", "steps"})
    if unknown_keys:
        raise LitheScriptError(
            f"Batch script contains unknown root fields: {', '.join(unknown_keys)}."
        )
    version = root_mapping.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise LitheScriptError("Batch script field 'version' must be an integer. Set version: 1.")
    if version != SUPPORTED_SCRIPT_VERSION:
        raise LitheScriptError(f"Unsupported batch script version {version}. Use version: 1.")
    raw_steps = root_mapping.get("steps")
    if raw_steps is None:
        raise LitheScriptError("Batch script missing required field 'steps'.")
    step_rows = _expect_sequence(raw_steps, "batch script steps")
    if len(step_rows) == 0:
        raise LitheScriptError("Batch script field 'steps' must include at least one step.")
    steps = tuple(_parse_step(step_value, index) for index, step_value in enumerate(step_rows))
    return BatchScript(version=version, steps=steps)


def _load_yaml_payload(script_path: str) -> object:
    try:
        import yaml
    except ImportError as error:  # pragma: no cover - dependency failure
        raise LitheDependencyError(
            "Batch scripts require PyYAML. Install with 'pip install pyyaml'."
        ) from error
    script_file = Path(script_path).expanduser().resolve()
    if not script_file.exists():
        raise LitheScriptError(
            f"Batch script does not exist at {script_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(script_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise LitheScriptError(
            f"Failed to read batch script at {script_file}: {error}."
        ) from error
    except yaml.YAMLError as error:
        raise LitheScriptError(
            f"Failed to parse YAML batch script at {script_file}: {error}."
        ) from error
    if payload is None:
        raise LitheScriptError(f"Batch script at {script_file} is empty. Define 'version' and 'steps'.")
    return payload


def _parse_step(step_value: object, step_index: int) -> BatchStep:
    context = f"batch script step #{step_index + 1}"
    step_mapping = _expect_mapping(step_value, context)
    raw_command = step_mapping.get("command")
    if raw_command not in SUPPORTED_BATCH_COMMANDS:
        supported_rows = ", ".join(SUPPORTED_BATCH_COMMANDS)
        raise LitheScriptError(
            f"Unsupported command {raw_command!r} in {context}. Use one of: {supported_rows}."
        )
    command = cast(BatchCommand, raw_command)
    collection = step_mapping.get("collection")
    if not isinstance(collection, str) or not collection.strip():
        raise LitheScriptError(f"Invalid {context}: field 'collection' must be a non-empty string.")
    args = {key: value for key, value in step_mapping.items() if key not in ("command", "collection")}
    _validate_args(command, args, context)
    return BatchStep(command=command, collection=collection.strip(), args=args)


def _validate_args(command: BatchCommand, args: Mapping[str, object], context: str) -> None:
    required = _REQUIRED_ARGS[command]
    allowed = set(required) | set(_OPTIONAL_ARGS[command])
    missing = [name for name in required if name not in args]
    if missing:
        raise LitheScriptError(
            f"Invalid {context}: '{command}' requires {', '.join(missing)}."
        )
    unknown = sorted(set(args) - allowed)
    if unknown:
        raise LitheScriptError(
            f"Invalid {context}: unknown fields for '{command}': {', '.join(unknown)}."
        )
    for name, value in args.items():
        if name in _MAPPING_ARGS:
            _expect_mapping(value, f"{context} field '{name}'")
            problem = find_non_json_value(value)
            if problem is not None:
                raise LitheScriptError(
                    f"Invalid {context}: field '{name}' holds a non-JSON value ({problem}). "
                    "Quote dates and timestamps as strings."
                )
        elif name in _STRING_ARGS and not isinstance(value, str):
            raise LitheScriptError(f"Invalid {context}: field '{name}' must be a string.")
        elif name == "unique" and not isinstance(value, bool):
            raise LitheScriptError(f"Invalid {context}: field 'unique' must be true or false.")


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise LitheScriptError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise LitheScriptError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise LitheScriptError(f"Invalid {context}: expected list, got {type(value).__name__}.")
