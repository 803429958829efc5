"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def memory_store():
    """Loaded document store over a fresh in-memory backend."""
    from store.document_store import DocumentStore
    from store.storage import MemoryStorage

    store = DocumentStore(MemoryStorage())
    store.load()
    return store


@pytest.fixture
def failing_storage():
    """In-memory backend whose writes fail once ``fail_writes`` is set."""
    from core.errors import LitheStoreError
    from store.storage import MemoryStorage

    class FailingWriteStorage(MemoryStorage):
        def __init__(self) -> None:
            super().__init__()
            self.fail_writes = False

        def write(self, snapshot) -> None:
            if self.fail_writes:
                raise LitheStoreError("disk full")
            super().write(snapshot)

    return FailingWriteStorage()
