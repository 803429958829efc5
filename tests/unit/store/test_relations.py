"""Unit tests for relation integrity and population."""

from __future__ import annotations

import pytest

from core.errors import RelationIntegrityError


def _seed_author(memory_store) -> dict:
    memory_store.define_relation("posts", "author_id", "users")
    return memory_store.collection("users").insert({"name": "Ada"})


def test_insert_with_dangling_reference_fails(memory_store) -> None:
    """Inserting a reference to a missing record should fail and not store."""
    _seed_author(memory_store)
    posts = memory_store.collection("posts")

    with pytest.raises(RelationIntegrityError) as excinfo:
        posts.insert({"title": "x", "author_id": "999999_users"})

    assert excinfo.value.ref_collection == "users" and excinfo.value.ref_field == "id"
    assert posts.count() == 0


def test_null_and_missing_references_are_allowed(memory_store) -> None:
    """Absent or null related fields should skip the integrity check."""
    _seed_author(memory_store)
    posts = memory_store.collection("posts")

    posts.insert({"title": "draft"})
    posts.insert({"title": "orphan", "author_id": None})

    assert posts.count() == 2


def test_find_populates_related_records(memory_store) -> None:
    """Populate should swap related values for referenced record clones."""
    author = _seed_author(memory_store)
    memory_store.collection("posts").insert({"title": "x", "author_id": author["id"]})

    posts = memory_store.collection("posts").find(populate=True)

    assert posts[0]["author_id"] == author
    assert memory_store.collection("posts").find_one()["author_id"] == author["id"]


def test_relation_on_custom_field(memory_store) -> None:
    """Relations should resolve against the configured referenced field."""
    memory_store.define_relation("orders", "sku", "products", ref_field="code")
    memory_store.collection("products").insert({"code": "P-1", "price": 3})

    order = memory_store.collection("orders").insert({"sku": "P-1"})
    populated = memory_store.collection("orders").find_one({"id": order["id"]}, populate=True)

    assert populated["sku"]["price"] == 3


def test_update_cannot_create_dangling_reference(memory_store) -> None:
    """Updates should be checked against relation integrity too."""
    author = _seed_author(memory_store)
    posts = memory_store.collection("posts")
    post = posts.insert({"title": "x", "author_id": author["id"]})

    with pytest.raises(RelationIntegrityError):
        posts.update({"id": post["id"]}, {"author_id": "000404_users"})

    assert posts.find_one({"id": post["id"]})["author_id"] == author["id"]


def test_transaction_sees_its_own_referenced_records(memory_store) -> None:
    """References to records inserted earlier in the same transaction should pass."""
    memory_store.define_relation("posts", "author_id", "users")

    with memory_store.transaction():
        author = memory_store.collection("users").insert({"name": "Ada"})
        memory_store.collection("posts").insert({"author_id": author["id"]})

    assert memory_store.collection("posts").count() == 1


def test_relation_by_email_checks_and_populates(memory_store) -> None:
    """Posts referencing users by email should validate and populate."""
    memory_store.define_relation("posts", "author_email", "users", ref_field="email")
    user = memory_store.collection("users").insert({"email": "a@x.com"})
    posts = memory_store.collection("posts")
    posts.insert({"title": "t", "author_email": "a@x.com"})

    with pytest.raises(RelationIntegrityError):
        posts.insert({"title": "t2", "author_email": "nobody@x.com"})

    assert posts.count() == 1
    assert posts.find_one({"title": "t"}, populate=True)["author_email"] == user
