"""Recursive file index over configured roots.

The index walks its roots once, collapses duplicate files and publishes
the result as an immutable IndexSnapshot. Readers keep whatever snapshot
they were handed; a refresh replaces the published reference instead of
mutating it.
"""

import logging
import os
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path

from filekeep.core.errors import FilekeepError
from filekeep.core.paths import is_within
from filekeep.core.store import FILE_INDEX_KEY, KeyValueStore, StoreError
from filekeep.models.entry import Entry, IndexSnapshot
from filekeep.storage.permissions import PermissionGate
from filekeep.storage.reader import DirectoryReader

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


def walk(
    reader: DirectoryReader,
    roots: Iterable[str],
    *,
    max_depth: int | None = None,
    include_hidden: bool = False,
    skip: Iterable[str] = (),
    cancel: threading.Event | None = None,
    warnings: list[str] | None = None,
) -> Iterator[Entry]:
    """Yield every entry below roots, depth-first.

    Directories that cannot be read are skipped and reported through
    warnings. Symlink loops are broken by remembering the real path of
    every visited directory.

    Args:
        reader: Reader used to list each directory.
        roots: Absolute directories to walk.
        max_depth: Depth limit; 0 lists only the roots' own children.
        include_hidden: Whether dot-entries are yielded and descended into.
        skip: Directories never entered (e.g. the recycle bin).
        cancel: Checked between directory visits; stops the walk when set.
        warnings: Collects one message per skipped subtree or child.

    Yields:
        Entries in walk order (not sorted).
    """
    skipped = tuple(skip)
    sink = warnings if warnings is not None else []
    visited: set[str] = set()
    stack = [(root, 0) for root in reversed(list(roots))]

    while stack:
        if cancel is not None and cancel.is_set():
            logger.debug("Walk cancelled with %d directories pending", len(stack))
            return

        directory, depth = stack.pop()
        real = os.path.realpath(directory)
        if real in visited:
            continue
        visited.add(real)

        try:
            listing = reader.list(
                directory,
                include_hidden=include_hidden,
                count_children=False,
            )
        except FilekeepError as e:
            logger.debug("Skipping %s: %s", directory, e)
            sink.append(f"Skipped {directory}: {e}")
            continue

        sink.extend(listing.warnings)
        subdirs: list[str] = []
        for entry in listing:
            if entry.is_dir and any(is_within(entry.path, s) for s in skipped):
                continue
            yield entry
            if entry.is_dir and (max_depth is None or depth < max_depth):
                subdirs.append(entry.path)

        stack.extend((path, depth + 1) for path in reversed(subdirs))


class FileIndex:
    """Snapshot-publishing index of files under a set of roots.

    Duplicate files are collapsed by (lowercased name, size), keeping
    the one modified most recently. This is an approximation, not a
    content hash: two different files sharing name and size collapse
    into one entry.

    When persistence is enabled the last snapshot is saved to the
    key-value store and loaded back on construction without checking it
    against the disk, so a loaded snapshot may describe files that have
    since changed. The TTL bounds how long that lasts.

    Args:
        reader: Directory reader used by the walk.
        gate: Permission gate consulted for each root.
        store: Key-value store for persistence (None disables it).
        ttl: Seconds a snapshot stays fresh.
        default_roots: Roots used when build() is called without any.
        default_max_depth: Depth limit used when build() gets none.
        include_hidden: Whether dot-entries are indexed.
        holding_dir: Recycle bin holding directory, never indexed.
        persist: Whether snapshots are saved and loaded.
    """

    def __init__(
        self,
        reader: DirectoryReader,
        gate: PermissionGate,
        store: KeyValueStore | None = None,
        *,
        ttl: float = DEFAULT_TTL_SECONDS,
        default_roots: Iterable[str | Path] = (),
        default_max_depth: int | None = None,
        include_hidden: bool = False,
        holding_dir: str | Path | None = None,
        persist: bool = True,
    ) -> None:
        self._reader = reader
        self._gate = gate
        self._store = store if persist else None
        self._ttl = ttl
        self._default_roots = tuple(os.path.abspath(os.fspath(r)) for r in default_roots)
        self._default_max_depth = default_max_depth
        self._include_hidden = include_hidden
        self._skip = (os.path.abspath(os.fspath(holding_dir)),) if holding_dir else ()
        self._publish_lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._snapshot: IndexSnapshot | None = self._load()

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def default_roots(self) -> tuple[str, ...]:
        return self._default_roots

    @property
    def default_max_depth(self) -> int | None:
        return self._default_max_depth

    @property
    def include_hidden(self) -> bool:
        return self._include_hidden

    @property
    def skip_dirs(self) -> tuple[str, ...]:
        """Directories the walk never enters."""
        return self._skip

    def build(
        self,
        roots: Iterable[str | Path] | None = None,
        max_depth: int | None = None,
        cancel: threading.Event | None = None,
    ) -> IndexSnapshot:
        """Walk roots and publish a new snapshot.

        A cancelled walk returns a partial snapshot marked cancelled;
        it is not published, so the previous snapshot stays current.

        Args:
            roots: Directories to index. Defaults to the configured roots.
            max_depth: Depth limit. Defaults to the configured limit.
            cancel: Event that stops the walk between directory visits.

        Returns:
            The snapshot produced by the walk.
        """
        root_paths = (
            tuple(os.path.abspath(os.fspath(r)) for r in roots)
            if roots is not None
            else self._default_roots
        )
        depth = max_depth if max_depth is not None else self._default_max_depth
        snapshot = self._walk(root_paths, depth, cancel)
        if snapshot.cancelled:
            logger.info("Index build cancelled; keeping previous snapshot")
        else:
            self._publish(snapshot)
        return snapshot

    def refresh(self, snapshot: IndexSnapshot | None = None) -> IndexSnapshot:
        """Rebuild over the roots and depth of snapshot (or the current one)."""
        base = snapshot if snapshot is not None else self.current()
        if base is None:
            return self.build()
        return self.build(base.roots, base.max_depth)

    def current(self) -> IndexSnapshot | None:
        """The published snapshot, however old."""
        return self._snapshot

    def fresh(self, now: float | None = None) -> IndexSnapshot | None:
        """The published snapshot if it is within the TTL, else None."""
        snapshot = self._snapshot
        if snapshot is not None and snapshot.is_fresh(self._ttl, now):
            return snapshot
        return None

    def ensure_fresh(self) -> IndexSnapshot:
        """Return a fresh snapshot, rebuilding if the current one expired.

        Concurrent callers share one rebuild.
        """
        snapshot = self.fresh()
        if snapshot is not None:
            return snapshot
        with self._refresh_lock:
            snapshot = self.fresh()
            if snapshot is not None:
                return snapshot
            return self.refresh()

    def get(self, path: str | Path) -> Entry | None:
        """Look up an entry in the current snapshot."""
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return snapshot.get(os.path.abspath(os.fspath(path)))

    def clear(self) -> None:
        """Drop the published snapshot and its persisted copy."""
        with self._publish_lock:
            self._snapshot = None
        if self._store is not None:
            try:
                self._store.delete(FILE_INDEX_KEY)
            except StoreError as e:
                logger.warning("Cannot clear persisted index: %s", e)

    def _walk(
        self,
        roots: tuple[str, ...],
        max_depth: int | None,
        cancel: threading.Event | None,
    ) -> IndexSnapshot:
        warnings: list[str] = []
        allowed: list[str] = []
        for root in roots:
            if not self._gate.ensure_access(root).allowed:
                logger.debug("Skipping index root %s: access denied", root)
                warnings.append(f"Skipped {root}: access denied")
                continue
            allowed.append(root)

        entries: dict[str, Entry] = {}
        by_key: dict[tuple[str, int], str] = {}
        for entry in walk(
            self._reader,
            allowed,
            max_depth=max_depth,
            include_hidden=self._include_hidden,
            skip=self._skip,
            cancel=cancel,
            warnings=warnings,
        ):
            if entry.is_dir:
                entries[entry.path] = entry
            else:
                _add_file(entries, by_key, entry)

        cancelled = cancel is not None and cancel.is_set()
        logger.debug(
            "Indexed %d entries under %d roots (%d warnings)",
            len(entries),
            len(allowed),
            len(warnings),
        )
        return IndexSnapshot.create(
            entries,
            roots=roots,
            max_depth=max_depth,
            warnings=warnings,
            cancelled=cancelled,
        )

    def _publish(self, snapshot: IndexSnapshot) -> None:
        with self._publish_lock:
            self._snapshot = snapshot
        if self._store is not None:
            try:
                self._store.set(FILE_INDEX_KEY, snapshot.to_dict())
            except StoreError as e:
                logger.warning("Cannot persist index: %s", e)

    def _load(self) -> IndexSnapshot | None:
        if self._store is None:
            return None
        data = self._store.get(FILE_INDEX_KEY)
        if not isinstance(data, dict):
            return None
        try:
            return IndexSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring corrupt persisted index: %s", e)
            return None


def _add_file(
    entries: dict[str, Entry],
    by_key: dict[tuple[str, int], str],
    entry: Entry,
) -> None:
    """Insert a file entry, keeping the later mtime among duplicates."""
    existing_path = by_key.get(entry.dedup_key)
    if existing_path is not None:
        existing = entries[existing_path]
        if existing.modified_time >= entry.modified_time:
            return
        del entries[existing_path]
    by_key[entry.dedup_key] = entry.path
    entries[entry.path] = entry
