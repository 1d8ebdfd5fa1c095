"""Recently opened files, persisted in the key-value store.

Opening a file (``filekeep info``) moves it to the front of the list.
Reading the list drops entries whose path no longer exists and writes
the pruned list back.
"""

from __future__ import annotations

import logging
import os

from filekeep.core.store import RECENT_FILES_KEY, KeyValueStore, StoreError
from filekeep.models.entry import Entry
from filekeep.models.recent import RecentFile

logger = logging.getLogger(__name__)

MAX_RECENT_FILES = 50


class RecentFiles:
    """Most-recent-first list of distinct paths.

    Args:
        store: Store holding the list.
        limit: Number of entries kept.
    """

    def __init__(self, store: KeyValueStore, limit: int = MAX_RECENT_FILES) -> None:
        self._store = store
        self._limit = limit

    def add(self, entry: Entry, now: float | None = None) -> RecentFile:
        """Record entry as just opened.

        Raises:
            StoreError: If the store cannot be written.
        """
        recent = RecentFile.from_entry(entry, now)
        items = [recent] + [r for r in self._load() if r.path != recent.path]
        self._save(items[: self._limit])
        return recent

    def list(self) -> list[RecentFile]:
        """Recent entries whose path still exists, newest first."""
        stored = self._load()
        existing = [r for r in stored if os.path.lexists(r.path)]
        if len(existing) != len(stored):
            logger.debug("Dropping %d missing recent file(s)", len(stored) - len(existing))
            try:
                self._save(existing)
            except StoreError as e:
                logger.warning("Cannot prune recent files: %s", e)
        return existing[: self._limit]

    def clear(self) -> None:
        self._store.delete(RECENT_FILES_KEY)

    def _load(self) -> list[RecentFile]:
        data = self._store.get(RECENT_FILES_KEY, [])
        if not isinstance(data, list):
            return []
        items: list[RecentFile] = []
        for raw in data:
            try:
                items.append(RecentFile.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("Skipping malformed recent file %r: %s", raw, e)
        return items

    def _save(self, items: list[RecentFile]) -> None:
        self._store.set(RECENT_FILES_KEY, [r.to_dict() for r in items])
