"""
Shared pytest fixtures for tagit tests.

Provides in-memory and failure-injecting storage so the tag store can be
tested without touching disk.
"""

import pytest

from tagit.config import BackendConfig, StoreConfig
from tagit.errors import PersistenceError
from tagit.storage import MemoryStorage
from tagit.tag_store import TagStore


class FailingStorage:
    """Storage wrapper that raises PersistenceError on demand."""

    def __init__(self, real=None):
        self._real = real if real is not None else MemoryStorage()
        self.fail_write = False
        self.fail_delete = False
        self.fail_read = False
        self.write_calls = 0

    def __getattr__(self, name):
        return getattr(self._real, name)

    def read(self, key):
        if self.fail_read:
            raise PersistenceError("simulated read failure")
        return self._real.read(key)

    def write(self, key, value):
        self.write_calls += 1
        if self.fail_write:
            raise PersistenceError("simulated write failure")
        return self._real.write(key, value)

    def delete(self, key):
        if self.fail_delete:
            raise PersistenceError("simulated delete failure")
        return self._real.delete(key)

    def keys(self):
        return self._real.keys()


@pytest.fixture
def memory_storage():
    """Create a fresh MemoryStorage instance."""
    return MemoryStorage()


@pytest.fixture
def store(memory_storage):
    """TagStore over in-memory storage."""
    return TagStore(memory_storage)


@pytest.fixture
def failing_storage():
    """Storage that can be told to fail."""
    return FailingStorage()


@pytest.fixture
def memory_config(tmp_path):
    """Config for a store that keeps everything in memory."""
    return StoreConfig(path=tmp_path, backend=BackendConfig("memory"))
