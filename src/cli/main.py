"""LitheDB CLI entry points.
This module exposes document store commands for shell and agent use.
It maps argparse commands onto DocumentStore and Collection calls.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import Any, Sequence

from cli.output_format import render_result
from core.config import LitheConfig
from core.constants import DEFAULT_RELATION_FIELD
from core.errors import LitheError
from store.batch_execution import execute_batch_script_file
from store.document_store import DocumentStore


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="lithedb",
        description="LitheDB - lightweight JSON document store",
    )
    parser.add_argument("-d", "--db", help="Override LITHEDB_TARGET for this command")
    parser.add_argument("-p", "--pretty", action="store_true", help="Pretty print JSON output")
    parser.add_argument(
        "-f",
        "--format",
        choices=("json", "text"),
        default="json",
        help="Output format",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_insert_command(subparsers)
    _add_find_command(subparsers)
    _add_find_one_command(subparsers)
    _add_update_command(subparsers)
    _add_upsert_command(subparsers)
    _add_remove_command(subparsers)
    _add_count_command(subparsers)
    _add_index_command(subparsers)
    _add_relation_command(subparsers)
    _add_schema_command(subparsers)
    _add_run_script_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the LitheDB CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        store = _build_store(args.db)
        if args.command == "run-script":
            for line in execute_batch_script_file(store, args.script):
                print(line)
            return 0
        result = _run_command(store, args)
    except LitheError as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    print(render_result(result, args.format, args.pretty))
    return 0


def _build_store(target: str | None) -> DocumentStore:
    """Build a loaded store with optional target override.

    Args:
        target: Optional storage target override.

    Returns:
        Loaded document store.
    """
    config = LitheConfig.from_env()
    if target:
        config = replace(config, target=target)
    return DocumentStore.open(config=config)


def _run_command(store: DocumentStore, args: argparse.Namespace) -> Any:
    """Dispatch one data command and return its printable result."""
    if args.command == "index":
        store.create_index(args.collection, args.field, unique=args.unique)
        return {"message": f"Index created on {args.collection}.{args.field}"}
    if args.command == "relation":
        store.define_relation(args.collection, args.field, ref=args.ref, ref_field=args.ref_field)
        return {
            "message": (
                f"Relation defined: {args.collection}.{args.field} -> {args.ref}.{args.ref_field}"
            )
        }
    collection = store.collection(args.collection)
    if args.command == "insert":
        return collection.insert(args.document)
    if args.command == "find":
        results = collection.find(args.query, sort=args.sort, populate=args.populate)
        return results[: args.limit] if args.limit is not None else results
    if args.command == "find-one":
        return collection.find_one(args.query, populate=args.populate)
    if args.command == "update":
        return {"updated": collection.update(args.query, args.patch)}
    if args.command == "upsert":
        return collection.upsert(args.query, args.document)
    if args.command == "remove":
        return {"removed": collection.remove(args.query)}
    if args.command == "count":
        return {"count": collection.count(args.query)}
    if args.command == "schema":
        return collection.get_schema()
    raise LitheError(f"Unsupported command: {args.command}")


def _json_object(raw_value: str) -> dict[str, Any]:
    """Parse a JSON object argument for argparse."""
    try:
        payload = json.loads(raw_value)
    except json.JSONDecodeError as error:
        raise argparse.ArgumentTypeError(f"invalid JSON ({error.msg}): {raw_value}") from error
    if not isinstance(payload, dict):
        raise argparse.ArgumentTypeError(f"expected a JSON object, got: {raw_value}")
    return payload


def _non_negative_int(raw_value: str) -> int:
    """Parse a non-negative integer argument for argparse."""
    try:
        value = int(raw_value)
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"expected an integer, got: {raw_value}") from error
    if value < 0:
        raise argparse.ArgumentTypeError(f"expected a value >= 0, got: {raw_value}")
    return value


def _add_insert_command(subparsers: Any) -> None:
    """Register insert subcommand."""
    parser = subparsers.add_parser("insert", help="Insert a new record")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("document", type=_json_object, help="Record fields as JSON object")


def _add_find_command(subparsers: Any) -> None:
    """Register find subcommand."""
    parser = subparsers.add_parser("find", help="Find records matching a query")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument(
        "query", nargs="?", type=_json_object, default=None, help="Query JSON object"
    )
    parser.add_argument("--populate", action="store_true", help="Expand related fields")
    parser.add_argument("--sort", type=_json_object, help='Sort spec, e.g. \'{"id":"desc"}\'')
    parser.add_argument("--limit", type=_non_negative_int, help="Maximum records to print")


def _add_find_one_command(subparsers: Any) -> None:
    """Register find-one subcommand."""
    parser = subparsers.add_parser("find-one", help="Find the first record matching a query")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("query", type=_json_object, help="Query JSON object")
    parser.add_argument("--populate", action="store_true", help="Expand related fields")


def _add_update_command(subparsers: Any) -> None:
    """Register update subcommand."""
    parser = subparsers.add_parser("update", help="Update records matching a query")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("query", type=_json_object, help="Query JSON object")
    parser.add_argument("patch", type=_json_object, help="Fields to merge as JSON object")


def _add_upsert_command(subparsers: Any) -> None:
    """Register upsert subcommand."""
    parser = subparsers.add_parser("upsert", help="Update the first match or insert")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("query", type=_json_object, help="Query JSON object")
    parser.add_argument("document", type=_json_object, help="Record fields as JSON object")


def _add_remove_command(subparsers: Any) -> None:
    """Register remove subcommand."""
    parser = subparsers.add_parser("remove", help="Remove records matching a query")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("query", type=_json_object, help="Query JSON object")


def _add_count_command(subparsers: Any) -> None:
    """Register count subcommand."""
    parser = subparsers.add_parser("count", help="Count records matching a query")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument(
        "query", nargs="?", type=_json_object, default=None, help="Query JSON object"
    )


def _add_index_command(subparsers: Any) -> None:
    """Register index subcommand."""
    parser = subparsers.add_parser("index", help="Create an index on a field")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("field", help="Indexed field")
    parser.add_argument("--unique", action="store_true", help="Reject duplicate values")


def _add_relation_command(subparsers: Any) -> None:
    """Register relation subcommand."""
    parser = subparsers.add_parser("relation", help="Define a relation to another collection")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("field", help="Field holding the referenced value")
    parser.add_argument("--ref", required=True, help="Referenced collection")
    parser.add_argument(
        "--ref-field",
        default=DEFAULT_RELATION_FIELD,
        help="Referenced field (default: id)",
    )


def _add_schema_command(subparsers: Any) -> None:
    """Register schema subcommand."""
    parser = subparsers.add_parser("schema", help="Infer the structure of a collection")
    parser.add_argument("collection", help="Collection name")


def _add_run_script_command(subparsers: Any) -> None:
    """Register run-script subcommand."""
    parser = subparsers.add_parser(
        "run-script",
        help="Apply a YAML batch script as one transaction",
    )
    parser.add_argument("script", help="Path to YAML batch script")
