"""
Pluggable storage backend factory.

Creates the storage backend for a tag store based on configuration.
Built-in backends are ``sqlite`` (default), ``json`` and ``memory``.
External backends register via the ``tagit.backends`` entry point group.

External backend packages provide a factory function::

    def create_storage(config: StoreConfig) -> StorageProtocol:
        ...

and register it in their pyproject.toml::

    [project.entry-points."tagit.backends"]
    my-backend = "my_package.backend:create_storage"
"""

from .config import StoreConfig
from .protocol import StorageProtocol


def create_storage(config: StoreConfig) -> StorageProtocol:
    """
    Create the storage backend from configuration.

    Backend params:
        sqlite: ``filename`` (default ``tags.db``)
        json: ``filename`` (default ``tags.json``)
    """
    name = config.backend.name
    params = config.backend.params
    if name == "sqlite":
        from .sqlite_store import SQLiteStorage
        return SQLiteStorage(config.path / params.get("filename", "tags.db"))
    if name == "json":
        from .storage import JsonFileStorage
        return JsonFileStorage(config.path / params.get("filename", "tags.json"))
    if name == "memory":
        from .storage import MemoryStorage
        return MemoryStorage()
    return _load_backend(name, config)


def _load_backend(name: str, config: StoreConfig) -> StorageProtocol:
    """Load a backend by entry point name."""
    from importlib.metadata import entry_points

    eps = entry_points(group="tagit.backends")
    for ep in eps:
        if ep.name == name:
            factory = ep.load()
            return factory(config)

    available = ["sqlite", "json", "memory"] + [ep.name for ep in eps]
    raise ValueError(
        f"Unknown backend: {name!r}. Available: {available}"
    )
