"""
Shared fixtures: in-memory and SQLite storage, a notifier-wired store, record factory.
"""

import os
import tempfile
import shutil

import pytest

from casefile.core.db import MemoryBackend, SQLiteBackend
from casefile.core.notifier import ChangeNotifier
from casefile.core.schema import Record
from casefile.core.store import RecordStore


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def notifier(memory_backend):
    return ChangeNotifier(memory_backend)


@pytest.fixture
def store(memory_backend, notifier):
    """Store over an in-memory backend, initialized and wired to a notifier."""
    record_store = RecordStore(memory_backend, notifier)
    record_store.init()
    return record_store


@pytest.fixture
def test_db():
    """Create a temporary database file for testing."""
    test_dir = tempfile.mkdtemp()
    db_path = os.path.join(test_dir, "test_casefile.db")

    yield db_path

    shutil.rmtree(test_dir)


@pytest.fixture
def sqlite_backend(test_db):
    return SQLiteBackend(test_db)


@pytest.fixture
def make_record():
    """Factory for valid records; keyword arguments override defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "id": f"rec-{counter['n']}",
            "name": f"Suspect {counter['n']}",
            "phone": "+1-555-0100",
            "case_details": "Seen near the warehouse",
            "image": "",
            "category": "Theft",
            "tags": [],
            "created_at": 1700000000000 + counter["n"],
        }
        fields.update(overrides)
        return Record(**fields)

    return _make
