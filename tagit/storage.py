"""
In-memory and JSON-file tag storage.

Both satisfy StorageProtocol. The JSON file holds a single object mapping
file identity to a list of tag names, the same flat layout an editor's
workspace state uses, and is re-read on every call so it never diverges
from what is on disk.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from .errors import PersistenceError

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Dict-backed storage. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, list[str]]] = None):
        self._data: dict[str, list[str]] = {
            k: list(v) for k, v in (initial or {}).items()
        }

    def read(self, key: str) -> Optional[list[str]]:
        value = self._data.get(key)
        return list(value) if value is not None else None

    def write(self, key: str, value: list[str]) -> None:
        self._data[key] = list(value)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)

    def close(self) -> None:
        pass


class JsonFileStorage:
    """
    Storage in a single JSON file.

    Writes go to a temporary file in the same directory which then
    replaces the original, so a failed write leaves the old file intact.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict[str, list[str]]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read tag file {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Tag file {self._path} must contain a JSON object")
        return data

    def _save(self, data: dict[str, list[str]]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", dir=self._path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write tag file {self._path}: {e}") from e

    def read(self, key: str) -> Optional[list[str]]:
        with self._lock:
            value = self._load().get(key)
        if value is None:
            return None
        if not isinstance(value, list):
            raise PersistenceError(f"Corrupt tag record for {key}: expected a list")
        return [str(t) for t in value]

    def write(self, key: str, value: list[str]) -> None:
        with self._lock:
            data = self._load()
            data[key] = list(value)
            self._save(data)

    def delete(self, key: str) -> bool:
        with self._lock:
            data = self._load()
            if key not in data:
                return False
            del data[key]
            self._save(data)
            return True

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._load())

    def close(self) -> None:
        pass
