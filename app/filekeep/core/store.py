"""Process-local key-value store.

Small pieces of persistent state (recent searches and files, the
persisted file index, the permission instructions flag) live under
well-known keys in a single JSON document. Writes go through a
temporary file and ``os.replace`` so a crash never leaves a
half-written store behind.
"""

import json
import logging
import os
import threading
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from filekeep.core.paths import get_store_path

logger = logging.getLogger(__name__)

# Well-known keys
RECENT_SEARCHES_KEY = "recent_searches"
RECENT_FILES_KEY = "recent_files"
FILE_INDEX_KEY = "file_index"
INSTRUCTIONS_SHOWN_KEY = "has_shown_full_access_instructions"


class StoreError(Exception):
    """Raised when the store cannot be written."""


class KeyValueStore:
    """JSON-file backed key-value store.

    Storage location: ~/.local/state/filekeep/store.json

    Every mutation is a read-modify-write of the whole document under an
    in-process lock, so two threads cannot lose each other's updates.
    Concurrent writers in separate processes are last-writer-wins.

    A missing file is an empty store. A corrupt file is logged and
    treated as empty; the next write replaces it.
    """

    def __init__(self, path: Path | None = None) -> None:
        """Initialize KeyValueStore.

        Args:
            path: Optional override for the store file.
                  Default: ~/.local/state/filekeep/store.json
        """
        self._path = path if path is not None else get_store_path()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """Path to the backing JSON file."""
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default."""
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key.

        Raises:
            StoreError: If the store file cannot be written.
        """
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> bool:
        """Remove key from the store.

        Returns:
            True if the key existed, False otherwise.
        """
        with self._lock:
            data = self._read()
            if key not in data:
                return False
            del data[key]
            self._write(data)
            return True

    def keys(self) -> list[str]:
        """Return all keys currently in the store."""
        with self._lock:
            return list(self._read().keys())

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot read store %s: %s", self._path, e)
            return {}
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring corrupt store %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring store %s: top-level value is not an object", self._path)
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                json.dump(data, f, separators=(",", ":"))
            os.replace(str(tmp_path), str(self._path))
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise StoreError(f"Failed to write store {self._path}: {e}") from e
