"""Batch script execution against a document store.

Every step of a script runs inside one transaction, so a failing step
leaves the persisted snapshot exactly as it was before the script.
"""

from __future__ import annotations

from typing import Any, Mapping, cast

from core.batch_script import BatchScript, BatchStep, load_batch_script
from core.constants import DEFAULT_RELATION_FIELD
from core.logging_config import get_logger
from store.document_store import DocumentStore

_LOGGER = get_logger(__name__)


def execute_batch_script_file(store: DocumentStore, script_file: str) -> tuple[str, ...]:
    """Load and execute a batch script file, returning printable output lines."""
    script = load_batch_script(script_file)
    return execute_batch_script(store, script)


def execute_batch_script(store: DocumentStore, script: BatchScript) -> tuple[str, ...]:
    """Execute a parsed batch script in one transaction.

    Args:
        store: Target document store.
        script: Validated batch script.

    Returns:
        One output line per step.

    Raises:
        LitheError: Any step failure, after the transaction is rolled back.
    """
    output_lines: list[str] = []
    with store.transaction():
        for step in script.steps:
            output_lines.append(_execute_step(store, step))
    _LOGGER.info("batch_script_applied", steps=len(script.steps))
    return tuple(output_lines)


def _execute_step(store: DocumentStore, step: BatchStep) -> str:
    collection = store.collection(step.collection)
    args = step.args
    if step.command == "insert":
        record = collection.insert(_mapping_arg(args, "data"))
        return f"inserted={record['id']}"
    if step.command == "update":
        count = collection.update(_mapping_arg(args, "query"), _mapping_arg(args, "patch"))
        return f"updated={count}"
    if step.command == "upsert":
        record = collection.upsert(_mapping_arg(args, "query"), _mapping_arg(args, "data"))
        return f"upserted={record['id']}"
    if step.command == "remove":
        count = collection.remove(_mapping_arg(args, "query"))
        return f"removed={count}"
    if step.command == "index":
        field = str(args["field"])
        store.create_index(step.collection, field, unique=bool(args.get("unique", False)))
        return f"index={step.collection}.{field}"
    field = str(args["field"])
    ref = str(args["ref"])
    ref_field = str(args.get("ref_field", DEFAULT_RELATION_FIELD))
    store.define_relation(step.collection, field, ref=ref, ref_field=ref_field)
    return f"relation={step.collection}.{field}->{ref}.{ref_field}"


def _mapping_arg(args: Mapping[str, object], name: str) -> Mapping[str, Any]:
    return cast(Mapping[str, Any], args[name])
