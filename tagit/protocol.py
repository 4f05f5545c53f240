"""
Protocol definitions for tagit storage backends.

The tag store persists through a small key-value capability so that it
can run against SQLite, a JSON file, memory, or an external backend
registered through the ``tagit.backends`` entry point group.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class StorageProtocol(Protocol):
    """
    Durable mapping from file identity to a list of tag names.

    Implemented by:
    - SQLiteStorage (local SQLite database, the default)
    - JsonFileStorage (single JSON object on disk)
    - MemoryStorage (tests and throwaway stores)

    Implementations raise PersistenceError when the medium fails.
    A failed write or delete must leave the previous value in place.
    """

    def read(self, key: str) -> Optional[list[str]]: ...

    def write(self, key: str, value: list[str]) -> None: ...

    def delete(self, key: str) -> bool: ...

    def keys(self) -> list[str]: ...

    def close(self) -> None: ...
