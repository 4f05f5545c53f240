"""
Core API for file tagging.

This is the layer the CLI (or an editor integration) talks to. It turns
user input into tag store calls, runs queries over every tagged file, and
builds the browsing records (tag -> files, file -> tags).
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from .backend import create_storage
from .config import StoreConfig, get_default_store_path, load_or_create_config
from .logging_config import configure_ops_log
from .protocol import StorageProtocol
from .query import compile_query
from .tag_store import TagStore
from .types import (
    TaggedFile,
    TagGroup,
    dedupe_tags,
    is_uri,
    normalize_id,
    require_tag_collection,
)

logger = logging.getLogger(__name__)


def file_exists(id: str) -> bool:
    """
    Check whether a file identity still points at an existing file.

    Handles ``file://`` URIs and plain paths.

    Raises:
        ValueError: for identities with any other URI scheme, which cannot
            be checked locally
    """
    if not is_uri(id):
        return Path(id).expanduser().exists()
    parsed = urlparse(id)
    if parsed.scheme.lower() != "file":
        raise ValueError(f"Cannot check existence of {parsed.scheme}: identity {id!r}")
    if parsed.netloc and parsed.netloc != "localhost":
        return Path(f"//{parsed.netloc}{unquote(parsed.path)}").exists()
    return Path(url2pathname(parsed.path)).exists()


class Tagger:
    """
    File tagging with boolean tag queries.

    Example:
        tg = Tagger()
        tg.tag("notes/heap.md", ["#heap", "#tree"])
        files = tg.find("#heap & #tree")
    """

    def __init__(
        self,
        store_path: Optional[str | Path] = None,
        *,
        config: Optional[StoreConfig] = None,
        storage: Optional[StorageProtocol] = None,
    ) -> None:
        """
        Open (or create) a tag store.

        Args:
            store_path: Path to store directory. Uses default if not specified.
            config: Pre-loaded StoreConfig (skips filesystem config discovery).
            storage: Injected storage backend (skips default backend creation).
        """
        if config is not None:
            self._config = config
        else:
            path = Path(store_path).resolve() if store_path is not None else get_default_store_path()
            self._config = load_or_create_config(path)
        self._store_path = self._config.path

        self._ops_log_handler: Optional[logging.Handler] = None
        if storage is None:
            storage = create_storage(self._config)
            if self._config.backend.name != "memory":
                self._ops_log_handler = configure_ops_log(self._store_path)

        self._tags = TagStore(storage)

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def store(self) -> TagStore:
        return self._tags

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def tag(self, id: str, tags: Iterable[str], *, replace: bool = True) -> TaggedFile:
        """
        Set the tags of a file.

        Args:
            id: File URI or path
            tags: Tag names
            replace: If False, add to the existing tags instead of replacing

        Returns:
            The file with its stored tags

        Raises:
            ValidationError: if any tag is invalid (nothing is written)
            PersistenceError: if storage fails
        """
        id = normalize_id(id)
        require_tag_collection(tags)
        tags = list(tags)
        if not replace:
            tags = self._tags.get_tags(id) + tags
        self._tags.set_tags(id, tags)
        logger.info("Tagged %s: %s", id, ", ".join(dedupe_tags(tags)))
        return self.get(id)

    def untag(self, id: str, tags: Optional[Iterable[str]] = None) -> TaggedFile:
        """
        Remove some or all tags of a file.

        Args:
            id: File URI or path
            tags: Tags to remove; None removes every tag
        """
        id = normalize_id(id)
        if tags is None:
            self._tags.clear_tags(id)
            logger.info("Untagged %s", id)
        else:
            require_tag_collection(tags)
            remove = set(tags)
            remaining = [t for t in self._tags.get_tags(id) if t not in remove]
            self._tags.set_tags(id, remaining)
            logger.info("Removed %s from %s", ", ".join(sorted(remove)), id)
        return self.get(id)

    # -------------------------------------------------------------------------
    # Host events
    # -------------------------------------------------------------------------

    def renamed(self, old_id: str, new_id: str) -> bool:
        """A file was renamed or moved: carry its tags over.

        Returns:
            True if tags were moved, False if there was nothing to move or
            the move failed
        """
        return self._tags.rename_identity(normalize_id(old_id), normalize_id(new_id))

    def deleted(self, id: str) -> None:
        """A file was deleted: drop its tags."""
        self._tags.clear_tags(normalize_id(id))

    def sweep(self, exists: Callable[[str], bool] = file_exists) -> list[str]:
        """Drop tags of files that no longer exist.

        Returns:
            Identities whose tags were removed
        """
        return self._tags.sweep_stale(exists)

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def get(self, id: str) -> TaggedFile:
        """Tags of a single file (empty if untagged)."""
        id = normalize_id(id)
        return TaggedFile(id=id, tags=self._tags.get_tags(id))

    def list_files(self) -> list[TaggedFile]:
        """Every tagged file, sorted by identity."""
        if self._config.sweep_on_list:
            self.sweep()
        return [
            TaggedFile(id=id, tags=tags)
            for id, tags in sorted(self._tags.items())
        ]

    def list_tags(self) -> list[TagGroup]:
        """Every tag in use with the files carrying it, sorted by tag."""
        groups: dict[str, list[str]] = {}
        for f in self.list_files():
            for tag in f.tags:
                groups.setdefault(tag, []).append(f.id)
        return [TagGroup(tag=tag, ids=groups[tag]) for tag in sorted(groups)]

    def find(self, query: str) -> list[TaggedFile]:
        """
        Files whose tags satisfy a boolean query.

        Example queries: ``#heap & #tree``, ``#a | (#b & #c)``

        Raises:
            QuerySyntaxError: if the query cannot be parsed
        """
        predicate = compile_query(query)
        matches = [f for f in self.list_files() if predicate(f.tags)]
        logger.debug("Query %r matched %d files", query, len(matches))
        return matches

    def close(self) -> None:
        """Close storage and detach the operations log."""
        self._tags.storage.close()
        if self._ops_log_handler is not None:
            logging.getLogger("tagit").removeHandler(self._ops_log_handler)
            self._ops_log_handler.close()
            self._ops_log_handler = None

    def __enter__(self) -> "Tagger":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
