"""Unit tests for collection lifecycle hooks."""

from __future__ import annotations

import pytest

from core.errors import LitheHookError


def test_hooks_run_in_registration_order(memory_store) -> None:
    """Hooks for one event should run sequentially in order."""
    users = memory_store.collection("users")
    calls: list[str] = []
    users.on("before_insert", lambda document: calls.append("first"))
    users.on("before_insert", lambda document: calls.append("second"))

    users.insert({"name": "a"})

    assert calls == ["first", "second"]


def test_before_insert_hook_can_modify_document(memory_store) -> None:
    """Changes made by before_insert should be stored."""
    users = memory_store.collection("users")

    def _normalize(document: dict) -> None:
        document["email"] = document["email"].lower()

    users.on("before_insert", _normalize)

    record = users.insert({"email": "A@X.COM"})

    assert record["email"] == "a@x.com"


def test_after_hooks_receive_results(memory_store) -> None:
    """After hooks should see the stored record and affected counts."""
    users = memory_store.collection("users")
    seen: dict[str, object] = {}
    users.on("after_insert", lambda record: seen.setdefault("insert", record["id"]))
    users.on("after_update", lambda query, changes, count: seen.setdefault("update", count))
    users.on("after_upsert", lambda record, inserted: seen.setdefault("upsert", inserted))
    users.on("after_remove", lambda query, count: seen.setdefault("remove", count))

    record = users.insert({"name": "a"})
    users.update({"name": "a"}, {"name": "b"})
    users.upsert({"name": "c"}, {"name": "c"})
    users.remove({})

    assert seen == {"insert": record["id"], "update": 1, "upsert": True, "remove": 2}


def test_failing_before_hook_aborts_operation(memory_store) -> None:
    """A failing before hook should stop the write and raise a hook error."""
    users = memory_store.collection("users")

    def _reject(document: dict) -> None:
        raise ValueError("name is required")

    users.on("before_insert", _reject)

    with pytest.raises(LitheHookError, match="name is required"):
        users.insert({})

    assert users.count() == 0


def test_unknown_hook_event_is_rejected(memory_store) -> None:
    """Registration should fail for unsupported event names."""
    with pytest.raises(LitheHookError, match="Unsupported hook event"):
        memory_store.collection("users").on("before_find", print)
