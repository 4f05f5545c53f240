"""
Tag store: the authoritative mapping from file identity to tags.

All reads go straight to the storage backend; nothing is cached, so the
committed state in storage is always the source of truth.
"""

import logging
from typing import Callable, Iterable

from .errors import PersistenceError, ValidationError
from .protocol import StorageProtocol
from .types import dedupe_tags, validate_tags

logger = logging.getLogger(__name__)


class TagStore:
    """
    Validated read/write access to file tags.

    Tags are replaced as a whole on every write. An empty tag list means
    the file has no association and is removed from storage.
    """

    def __init__(self, storage: StorageProtocol):
        """
        Args:
            storage: Backend holding the id -> tag list mapping
        """
        self._storage = storage

    @property
    def storage(self) -> StorageProtocol:
        return self._storage

    def get_tags(self, id: str) -> list[str]:
        """
        Get the tags of a file.

        Returns:
            Tag names without duplicates; empty if the file has no tags

        Raises:
            PersistenceError: if the backend cannot be read
        """
        return dedupe_tags(self._storage.read(id) or [])

    def set_tags(self, id: str, tags: Iterable[str]) -> None:
        """
        Replace the tags of a file.

        The previous tags are discarded, not merged. An empty tag list
        removes the file's association.

        Raises:
            ValidationError: if any tag is invalid (nothing is written)
            PersistenceError: if the backend write fails (previous tags stay)
        """
        tag_set = validate_tags(tags)
        if not tag_set:
            self._storage.delete(id)
            logger.debug("Cleared tags for %s", id)
            return
        self._storage.write(id, tag_set)
        logger.debug("Set %d tags for %s", len(tag_set), id)

    def clear_tags(self, id: str) -> None:
        """Remove all tags of a file. Missing files are ignored."""
        if self._storage.delete(id):
            logger.debug("Cleared tags for %s", id)

    def rename_identity(self, old_id: str, new_id: str) -> bool:
        """
        Move the tags of ``old_id`` to ``new_id``.

        Any tags already on ``new_id`` are replaced.

        Returns:
            True if tags were moved. False if there was nothing to move or
            the move failed, in which case ``old_id`` keeps its tags.
        """
        if old_id == new_id:
            return False
        tags = self.get_tags(old_id)
        if not tags:
            return False

        try:
            previous = self._storage.read(new_id)
            self.set_tags(new_id, tags)
        except (ValidationError, PersistenceError) as e:
            logger.warning("Failed to move tags from %s to %s: %s", old_id, new_id, e)
            return False

        try:
            self._storage.delete(old_id)
        except PersistenceError as e:
            logger.warning("Failed to remove tags of %s after rename: %s", old_id, e)
            self._restore(new_id, previous)
            return False

        logger.info("Moved tags from %s to %s", old_id, new_id)
        return True

    def _restore(self, id: str, previous: list[str] | None) -> None:
        """Put back the value ``id`` had before a failed rename."""
        try:
            if previous:
                self._storage.write(id, previous)
            else:
                self._storage.delete(id)
        except PersistenceError as e:
            logger.error("Could not restore tags of %s: %s", id, e)

    def items(self) -> list[tuple[str, list[str]]]:
        """
        Snapshot of every tagged file and its tags.

        Keys removed between listing and reading are skipped.
        """
        result = []
        for id in dict.fromkeys(self._storage.keys()):
            tags = self.get_tags(id)
            if tags:
                result.append((id, tags))
        return result

    def list_identities(self) -> list[str]:
        """List every file that has at least one tag."""
        return [id for id, _ in self.items()]

    def sweep_stale(self, exists_check: Callable[[str], bool]) -> list[str]:
        """
        Remove tags of files that no longer exist.

        Args:
            exists_check: Liveness probe for a file identity. If it raises,
                the file is left alone and the sweep continues.

        Returns:
            The identities whose tags were removed
        """
        removed = []
        for id in self.list_identities():
            try:
                alive = exists_check(id)
            except Exception as e:
                logger.warning("Skipping %s during sweep, probe failed: %s", id, e)
                continue
            if not alive:
                self.clear_tags(id)
                removed.append(id)
        if removed:
            logger.info("Swept %d stale tagged files", len(removed))
        return removed
