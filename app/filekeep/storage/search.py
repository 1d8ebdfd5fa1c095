"""Name search over the file index or a live walk.

Queries are matched case-insensitively as substrings of the entry name,
falling back to the full path. Exact name matches rank first; everything
else is ordered by lowercased name, then path. The result set is capped
and is always the exact top-ranked slice.

The index answers a query only when its snapshot is fresh and covers
every requested root down to the requested depth. Anything else is
walked live.
"""

from __future__ import annotations

import heapq
import logging
import os
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from filekeep.core.paths import is_within
from filekeep.core.store import RECENT_SEARCHES_KEY, KeyValueStore, StoreError
from filekeep.models.entry import Entry, IndexSnapshot
from filekeep.storage.index import FileIndex, walk
from filekeep.storage.reader import DirectoryReader

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 100
DEFAULT_RECENT_LIMIT = 5


class SearchMode(str, Enum):
    """Where search results came from.

    Attributes:
        INDEXED: Scanned the in-memory snapshot; no disk access.
        LIVE: Walked the roots on disk.
    """

    INDEXED = "indexed"
    LIVE = "live"


@dataclass(frozen=True, slots=True)
class SearchScope:
    """Restricts a search to a set of roots and file types.

    Attributes:
        roots: Absolute directories to search (empty = index roots).
        max_depth: Depth limit below each root.
        file_types: Only files of these types match (empty = anything).
    """

    roots: tuple[str, ...] = ()
    max_depth: int | None = None
    file_types: tuple[str, ...] = ()

    @classmethod
    def of(
        cls,
        roots: Iterable[str | Path] = (),
        max_depth: int | None = None,
        file_types: Iterable[str] = (),
    ) -> SearchScope:
        return cls(
            roots=tuple(os.path.abspath(os.fspath(r)) for r in roots),
            max_depth=max_depth,
            file_types=tuple(file_types),
        )

    def accepts_type(self, entry: Entry) -> bool:
        """Check the file-type filter; directories never pass a non-empty one."""
        if not self.file_types:
            return True
        return entry.is_file and entry.file_type in self.file_types


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Outcome of one search.

    Attributes:
        query: The query as given.
        entries: Top-ranked matches, best first.
        mode: Whether the index or a live walk produced the matches.
        truncated: True if more matches existed than were returned.
        total_matches: Number of matches before capping.
        warnings: Per-root or per-subtree failures during a live walk.
    """

    query: str
    entries: tuple[Entry, ...]
    mode: SearchMode
    truncated: bool = False
    total_matches: int = 0
    warnings: tuple[str, ...] = ()


def rank_key(entry: Entry, needle: str) -> tuple[bool, str, str]:
    """Sort key placing exact name matches first, then by name and path."""
    name = entry.name.lower()
    return (name != needle, name, entry.path)


def recency_key(entry: Entry) -> tuple[float, str, str]:
    """Sort key placing the most recently modified files first."""
    return (-entry.modified_time, entry.name.lower(), entry.path)


def matches(entry: Entry, needle: str) -> bool:
    """Case-insensitive substring match on name, falling back to path."""
    return needle in entry.name.lower() or needle in entry.path.lower()


def level_below(path: str, root: str) -> int | None:
    """Depth of path under root (0 for a direct child), None if outside."""
    if path == root or not is_within(path, root):
        return None
    return len(Path(os.path.relpath(path, root)).parts) - 1


def covers(snapshot: IndexSnapshot, roots: Iterable[str], max_depth: int | None) -> bool:
    """Check whether a snapshot holds every entry below roots up to max_depth.

    A root is covered when it lies inside one of the snapshot's roots
    and the snapshot's depth limit reaches max_depth levels below it.
    """
    for root in roots:
        if not any(
            _root_covered(root, max_depth, base, snapshot.max_depth) for base in snapshot.roots
        ):
            return False
    return True


def _root_covered(root: str, depth: int | None, base: str, base_depth: int | None) -> bool:
    if not is_within(root, base):
        return False
    if base_depth is None:
        return True
    if depth is None:
        return False
    offset = 0 if root == base else len(Path(os.path.relpath(root, base)).parts)
    return offset + depth <= base_depth


class RecentSearches:
    """Most-recent-first list of distinct queries, persisted in the store."""

    def __init__(self, store: KeyValueStore, limit: int = DEFAULT_RECENT_LIMIT) -> None:
        self._store = store
        self._limit = limit

    def list(self) -> list[str]:
        data = self._store.get(RECENT_SEARCHES_KEY, [])
        if not isinstance(data, list):
            return []
        return [q for q in data if isinstance(q, str)][: self._limit]

    def add(self, query: str) -> None:
        """Move query to the front, dropping the oldest beyond the limit.

        Raises:
            StoreError: If the store cannot be written.
        """
        query = query.strip()
        if not query or self._limit == 0:
            return
        items = [query] + [q for q in self.list() if q != query]
        self._store.set(RECENT_SEARCHES_KEY, items[: self._limit])

    def remove(self, query: str) -> bool:
        """Forget one query. Returns True if it was present."""
        items = self.list()
        if query not in items:
            return False
        items.remove(query)
        self._store.set(RECENT_SEARCHES_KEY, items)
        return True

    def clear(self) -> None:
        self._store.delete(RECENT_SEARCHES_KEY)


class SearchEngine:
    """Answers name queries from the index, or by walking the disk.

    Indexed mode is used whenever the index holds a fresh snapshot that
    covers the requested scope. Otherwise each root is walked on its
    own worker thread and the matches are merged once every root has
    finished.

    Args:
        index: File index supplying snapshots and default roots.
        reader: Directory reader for live walks.
        recent: Recent-search list updated on each remembered query.
        max_results: Result cap.
        max_workers: Upper bound on concurrent root walks.
    """

    def __init__(
        self,
        index: FileIndex,
        reader: DirectoryReader,
        recent: RecentSearches | None = None,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        max_workers: int = 8,
    ) -> None:
        self._index = index
        self._reader = reader
        self._recent = recent
        self._max_results = max_results
        self._max_workers = max_workers

    def search(
        self,
        query: str,
        scope: SearchScope | None = None,
        cancel: threading.Event | None = None,
        remember: bool = True,
        *,
        mode: SearchMode | None = None,
        limit: int | None = None,
    ) -> SearchResult:
        """Find entries whose name (or path) contains query.

        Args:
            query: Search text; surrounding whitespace is ignored.
            scope: Roots, depth and file types to restrict the search to.
            cancel: Stops a live walk early; partial matches are ranked.
            remember: Record the query in the recent-search list.
            mode: LIVE skips the index. Otherwise the index answers when
                a fresh snapshot covers the scope.
            limit: Override the configured result cap.

        Returns:
            SearchResult with at most limit entries, best first.
        """
        needle = query.strip().lower()
        if not needle:
            return SearchResult(query=query, entries=(), mode=SearchMode.INDEXED)

        scope = scope or SearchScope()
        result = self._collect(
            query,
            scope,
            lambda e: matches(e, needle) and scope.accepts_type(e),
            lambda e: rank_key(e, needle),
            cancel=cancel,
            limit=limit,
            snapshot=self._fresh_snapshot(scope) if mode != SearchMode.LIVE else None,
        )
        logger.debug("Search %r (%s): %d matches", needle, result.mode.value, result.total_matches)

        if remember and self._recent is not None:
            try:
                self._recent.add(query)
            except StoreError as e:
                logger.warning("Cannot save recent search: %s", e)
        return result

    def browse(
        self,
        file_types: Iterable[str],
        scope: SearchScope | None = None,
        cancel: threading.Event | None = None,
        *,
        limit: int | None = None,
    ) -> SearchResult:
        """List files of the given types, most recently modified first.

        Backs the category galleries. An expired snapshot is rebuilt
        first (see FileIndex.ensure_fresh), so repeated browsing stays
        on the index; roots the index does not cover are walked live.

        Args:
            file_types: Values of FileCategory to include.
            scope: Roots and depth to restrict the listing to.
            cancel: Stops a live walk early.
            limit: Override the configured result cap.
        """
        types = tuple(file_types)
        base = scope or SearchScope()
        scope = SearchScope(roots=base.roots, max_depth=base.max_depth, file_types=types)
        return self._collect(
            " ".join(types),
            scope,
            scope.accepts_type,
            recency_key,
            cancel=cancel,
            limit=limit,
            snapshot=self._refreshed_snapshot(scope),
        )

    def _collect(
        self,
        query: str,
        scope: SearchScope,
        accept: Callable[[Entry], bool],
        key: Callable[[Entry], Any],
        *,
        cancel: threading.Event | None,
        limit: int | None,
        snapshot: IndexSnapshot | None,
    ) -> SearchResult:
        cap = limit if limit is not None else self._max_results
        warnings: tuple[str, ...] = ()
        if snapshot is not None:
            found = [e for e in snapshot if self._in_scope(e, scope) and accept(e)]
            used = SearchMode.INDEXED
        else:
            found, warnings = self._live(accept, scope, cancel)
            used = SearchMode.LIVE

        top = heapq.nsmallest(cap, found, key=key)
        return SearchResult(
            query=query,
            entries=tuple(top),
            mode=used,
            truncated=len(found) > cap,
            total_matches=len(found),
            warnings=warnings,
        )

    def _scope_depth(self, scope: SearchScope) -> int | None:
        return scope.max_depth if scope.max_depth is not None else self._index.default_max_depth

    def _fresh_snapshot(self, scope: SearchScope) -> IndexSnapshot | None:
        """The fresh snapshot, if it covers scope."""
        snapshot = self._index.fresh()
        if snapshot is None or not covers(snapshot, scope.roots, self._scope_depth(scope)):
            return None
        return snapshot

    def _refreshed_snapshot(self, scope: SearchScope) -> IndexSnapshot | None:
        """Like _fresh_snapshot(), rebuilding an expired snapshot first.

        Nothing is rebuilt when the result could not cover scope anyway.
        """
        current = self._index.current()
        if current is None and scope.roots:
            return None
        if current is not None and not covers(current, scope.roots, self._scope_depth(scope)):
            return None
        snapshot = self._index.ensure_fresh()
        if snapshot.cancelled or not covers(snapshot, scope.roots, self._scope_depth(scope)):
            return None
        return snapshot

    def _in_scope(self, entry: Entry, scope: SearchScope) -> bool:
        if not scope.roots:
            return True
        depth = self._scope_depth(scope)
        for root in scope.roots:
            level = level_below(entry.path, root)
            if level is not None and (depth is None or level <= depth):
                return True
        return False

    def _live(
        self,
        accept: Callable[[Entry], bool],
        scope: SearchScope,
        cancel: threading.Event | None,
    ) -> tuple[list[Entry], tuple[str, ...]]:
        roots = list(scope.roots or self._index.default_roots)
        if not roots:
            return [], ()

        max_depth = self._scope_depth(scope)
        stop = cancel if cancel is not None else threading.Event()
        seen: dict[str, Entry] = {}
        seen_lock = threading.Lock()

        def search_one_root(root: str) -> list[str]:
            root_warnings: list[str] = []
            for entry in walk(
                self._reader,
                [root],
                max_depth=max_depth,
                include_hidden=self._index.include_hidden,
                skip=self._index.skip_dirs,
                cancel=stop,
                warnings=root_warnings,
            ):
                if not accept(entry):
                    continue
                with seen_lock:
                    seen.setdefault(entry.path, entry)
            return root_warnings

        warnings: list[str] = []
        max_workers = min(self._max_workers, len(roots))
        with ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="filekeep-search",
        ) as executor:
            futures = [executor.submit(search_one_root, root) for root in roots]
            for root, future in zip(roots, futures, strict=True):
                try:
                    warnings.extend(future.result())
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Search of %s failed: %s", root, exc)
                    warnings.append(f"Search of {root} failed: {exc}")

        return list(seen.values()), tuple(warnings)
