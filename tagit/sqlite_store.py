"""
Tag storage using SQLite.

One row per tagged file: the file identity and its tags as a JSON list.
Each write runs in its own transaction, so readers never see a partial
update.
"""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from .errors import PersistenceError

logger = logging.getLogger(__name__)


class SQLiteStorage:
    """
    SQLite-backed key-value storage for tag associations.

    Satisfies StorageProtocol. Every sqlite3 error is raised as
    PersistenceError with the original exception chained.
    """

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to SQLite database file
        """
        self._db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the SQLite database."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS associations (
                    id TEXT PRIMARY KEY,
                    tags_json TEXT NOT NULL
                )
            """)
            self._conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"Cannot open tag database {self._db_path}: {e}") from e

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise PersistenceError(f"Tag database is closed: {self._db_path}")
        return self._conn

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def write(self, key: str, value: list[str]) -> None:
        """
        Insert or replace the tags for a file.

        Args:
            key: File identity
            value: Complete tag list (replaces any existing list)
        """
        tags_json = json.dumps(list(value), ensure_ascii=False)
        with self._lock:
            conn = self._require_conn()
            try:
                with conn:
                    conn.execute("""
                        INSERT OR REPLACE INTO associations (id, tags_json)
                        VALUES (?, ?)
                    """, (key, tags_json))
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to write tags for {key}: {e}") from e

    def delete(self, key: str) -> bool:
        """
        Delete the tags for a file.

        Returns:
            True if a row existed and was deleted
        """
        with self._lock:
            conn = self._require_conn()
            try:
                with conn:
                    cursor = conn.execute(
                        "DELETE FROM associations WHERE id = ?", (key,)
                    )
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to delete tags for {key}: {e}") from e
        return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def read(self, key: str) -> Optional[list[str]]:
        """
        Get the tags for a file.

        Returns:
            The stored tag list, or None if the file has no row
        """
        with self._lock:
            conn = self._require_conn()
            try:
                row = conn.execute(
                    "SELECT tags_json FROM associations WHERE id = ?", (key,)
                ).fetchone()
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to read tags for {key}: {e}") from e
        if row is None:
            return None
        try:
            value = json.loads(row["tags_json"])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt tag record for {key}: {e}") from e
        if not isinstance(value, list):
            raise PersistenceError(f"Corrupt tag record for {key}: expected a list")
        return [str(t) for t in value]

    def keys(self) -> list[str]:
        """List every stored file identity, sorted."""
        with self._lock:
            conn = self._require_conn()
            try:
                cursor = conn.execute("SELECT id FROM associations ORDER BY id")
                return [row["id"] for row in cursor]
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to list tagged files: {e}") from e

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("Closed tag database %s", self._db_path)
