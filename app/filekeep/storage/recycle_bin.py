"""Soft-delete holding area.

Deleted files are moved into a hidden holding directory under the
storage root and renamed ``{id}_{original_name}``. Each one gets a
``.meta`` sidecar describing where it came from, so items can be
listed, restored to their original location, or purged for good.

Within a process every mutation runs under one lock. Separate
processes sharing a holding directory are last-writer-wins per item.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from tempfile import NamedTemporaryFile

from filekeep.core.errors import (
    AccessDeniedError,
    ErrorKind,
    FilekeepError,
    NotFoundError,
    RecycleBinInconsistencyError,
    UnsupportedOperationError,
    error_from_os,
)
from filekeep.core.paths import is_within
from filekeep.models.entry import file_type_for
from filekeep.models.recycle import META_SUFFIX, RecycleBinItem, split_recycle_name
from filekeep.storage.permissions import PermissionGate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecycleActionResult:
    """Result of a restore or purge of one item.

    Attributes:
        item: The item operated on.
        success: Whether the operation completed.
        error: Human-readable failure message, None on success.
        error_kind: Failure category, None on success.
    """

    item: RecycleBinItem
    success: bool
    error: str | None = None
    error_kind: ErrorKind | None = None


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Aggregated outcome of a multi-item operation.

    Attributes:
        results: One result per item attempted.
    """

    results: tuple[RecycleActionResult, ...] = ()

    @property
    def succeeded(self) -> list[RecycleActionResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[RecycleActionResult]:
        return [r for r in self.results if not r.success]

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass(frozen=True, slots=True)
class ReconcileReport:
    """What reconcile() fixed.

    Attributes:
        rebuilt: Items whose sidecar was missing or corrupt and was rebuilt.
        removed_sidecars: Sidecars removed because their file was gone.
        diagnostics: One entry per inconsistency found.
    """

    rebuilt: int = 0
    removed_sidecars: int = 0
    diagnostics: tuple[RecycleBinInconsistencyError, ...] = field(default=())

    @property
    def clean(self) -> bool:
        return not self.diagnostics


class RecycleBin:
    """Holding area for soft-deleted files.

    Args:
        holding_dir: Hidden directory holding recycled files and sidecars.
        storage_root: Root used to guess original locations for items
            whose metadata had to be rebuilt.
        gate: Permission gate consulted before touching any path.
    """

    def __init__(
        self,
        holding_dir: str | Path,
        storage_root: str | Path,
        gate: PermissionGate,
    ) -> None:
        self._holding_dir = os.path.abspath(os.fspath(holding_dir))
        self._storage_root = os.path.abspath(os.fspath(storage_root))
        self._gate = gate
        self._lock = threading.Lock()
        self._last_token = 0
        self._startup_report: ReconcileReport | None = None

    @property
    def holding_dir(self) -> str:
        return self._holding_dir

    @property
    def startup_report(self) -> ReconcileReport | None:
        """Report of the reconciliation run on first use, if one ran."""
        return self._startup_report

    def initialize(self) -> ReconcileReport:
        """Create the holding directory if needed and reconcile it.

        Safe to call any number of times.

        Raises:
            AccessDeniedError: If the holding directory cannot be written.
            IOFailureError: If it cannot be created.
        """
        self._gate.require(self._holding_dir, write=True)
        with self._lock:
            self._ensure_holding_dir()
        report = self.reconcile()
        if self._startup_report is None:
            self._startup_report = report
        return report

    def reconcile(self) -> ReconcileReport:
        """Bring sidecars and holding-area files back in agreement.

        Files without a readable sidecar get minimal metadata rebuilt
        (their original location is guessed under the storage root and
        marked reconstructed). Sidecars whose file is gone are deleted.
        Inconsistencies are reported, never raised.

        Raises:
            AccessDeniedError: If the holding directory cannot be read.
            IOFailureError: If it cannot be listed.
        """
        self._gate.require(self._holding_dir)
        with self._lock:
            names = self._scan()
            if names is None:
                return ReconcileReport()

            present = set(names)
            sidecars: set[str] = set()
            files: set[str] = set()
            orphans: list[str] = []
            for name in names:
                stem = name[: -len(META_SUFFIX)]
                if not name.endswith(META_SUFFIX) or name + META_SUFFIX in present:
                    files.add(name)
                elif stem in present:
                    sidecars.add(stem)
                elif self._is_sidecar(os.path.join(self._holding_dir, stem)):
                    orphans.append(name)
                else:
                    # A recycled file that merely ends in .meta
                    files.add(name)

            diagnostics: list[RecycleBinInconsistencyError] = []
            removed = 0
            rebuilt = 0

            for name in sorted(orphans):
                meta_path = os.path.join(self._holding_dir, name)
                diagnostics.append(
                    RecycleBinInconsistencyError(f"Sidecar without file: {name}", meta_path)
                )
                if self._unlink_quietly(meta_path):
                    removed += 1

            for name in sorted(files):
                recycle_path = os.path.join(self._holding_dir, name)
                if os.path.isdir(recycle_path) and not os.path.islink(recycle_path):
                    diagnostics.append(
                        RecycleBinInconsistencyError(
                            f"Unexpected directory in holding area: {name}", recycle_path
                        )
                    )
                    continue
                if name in sidecars:
                    try:
                        self._read_sidecar(recycle_path)
                        continue
                    except (OSError, KeyError, TypeError, ValueError) as e:
                        diagnostics.append(
                            RecycleBinInconsistencyError(
                                f"Corrupt sidecar for {name}: {e}", recycle_path + META_SUFFIX
                            )
                        )
                else:
                    diagnostics.append(
                        RecycleBinInconsistencyError(f"File without sidecar: {name}", recycle_path)
                    )
                try:
                    self._write_sidecar(self._reconstruct(name, recycle_path))
                    rebuilt += 1
                except OSError as e:
                    logger.warning("Cannot rebuild metadata for %s: %s", name, e)

        for diagnostic in diagnostics:
            logger.info("Recycle bin: %s", diagnostic)
        return ReconcileReport(
            rebuilt=rebuilt,
            removed_sidecars=removed,
            diagnostics=tuple(diagnostics),
        )

    def move_to_recycle_bin(self, path: str | Path) -> RecycleBinItem:
        """Soft-delete a file.

        The sidecar is written before the file moves; if the move fails
        the sidecar is removed again and nothing changes.

        Args:
            path: File to recycle. Directories are rejected.

        Returns:
            The new RecycleBinItem.

        Raises:
            AccessDeniedError: If the gate refuses the path.
            NotFoundError: If the path does not exist.
            UnsupportedOperationError: If the path is a directory or
                already inside the holding area.
            IOFailureError: If the file cannot be moved.
        """
        source = os.path.abspath(os.fspath(path))
        self._gate.require(source, write=True)
        self._ensure_initialized()

        if not os.path.lexists(source):
            raise NotFoundError(f"No such file: {source}", source)
        if os.path.isdir(source) and not os.path.islink(source):
            raise UnsupportedOperationError(
                f"Cannot recycle a directory as a single item: {source}", source
            )
        if is_within(source, self._holding_dir):
            raise UnsupportedOperationError(f"Already in the recycle bin: {source}", source)

        name = os.path.basename(source)
        with self._lock:
            self._ensure_holding_dir()
            try:
                size = os.lstat(source).st_size
            except OSError as e:
                raise error_from_os(e, source, "recycle") from e

            item_id = self._new_id(name)
            item = RecycleBinItem(
                id=item_id,
                original_path=source,
                original_name=name,
                recycle_path=os.path.join(self._holding_dir, f"{item_id}_{name}"),
                deleted_at=datetime.now(UTC).isoformat(),
                size=size,
                type=file_type_for(name),
            )

            try:
                self._write_sidecar(item)
            except OSError as e:
                raise error_from_os(e, item.meta_path, "write metadata for") from e
            try:
                shutil.move(source, item.recycle_path)
            except OSError as e:
                self._unlink_quietly(item.meta_path)
                raise error_from_os(e, source, "recycle") from e

        logger.info("Recycled %s as %s", source, item.id)
        return item

    def list(self) -> list[RecycleBinItem]:
        """All recycled items, newest first.

        The first call reconciles the holding directory, so files left
        without metadata show up with a rebuilt record.

        Raises:
            AccessDeniedError: If the holding directory cannot be read.
        """
        self._ensure_initialized()
        self._gate.require(self._holding_dir)
        with self._lock:
            return self._list_unlocked()

    def get(self, item_id: str) -> RecycleBinItem | None:
        """Find an item by its id."""
        for item in self.list():
            if item.id == item_id:
                return item
        return None

    def restore(self, item: RecycleBinItem) -> RecycleActionResult:
        """Move an item back to its original path.

        Missing parent directories are recreated. An existing file at
        the original path is never overwritten.
        """
        with self._lock:
            if not os.path.lexists(item.recycle_path):
                return _failure(item, NotFoundError(f"Item no longer in recycle bin: {item.id}"))
            try:
                self._gate.require(item.original_path, write=True)
            except AccessDeniedError as e:
                return _failure(item, e)
            if os.path.lexists(item.original_path):
                return RecycleActionResult(
                    item=item,
                    success=False,
                    error=f"Cannot restore: {item.original_path} already exists",
                    error_kind=ErrorKind.ALREADY_EXISTS,
                )

            try:
                os.makedirs(os.path.dirname(item.original_path), exist_ok=True)
                shutil.move(item.recycle_path, item.original_path)
            except OSError as e:
                return _failure(item, error_from_os(e, item.original_path, "restore"))
            self._unlink_quietly(item.meta_path)

        logger.info("Restored %s to %s", item.id, item.original_path)
        return RecycleActionResult(item=item, success=True)

    def purge(self, item: RecycleBinItem) -> RecycleActionResult:
        """Permanently delete an item.

        A stale item (already purged or restored) yields a NOT_FOUND
        result rather than an exception.
        """
        with self._lock:
            return self._purge_unlocked(item)

    def empty_all(self) -> BatchResult:
        """Purge every item.

        An item whose file cannot be deleted keeps its sidecar and can
        be retried.
        """
        self._ensure_initialized()
        self._gate.require(self._holding_dir)
        with self._lock:
            results = tuple(self._purge_unlocked(item) for item in self._list_unlocked())
        batch = BatchResult(results=results)
        if batch.failed:
            logger.warning("Emptying recycle bin: %d of %d failed", len(batch.failed), len(results))
        return batch

    def total_size(self) -> int:
        """Sum of recorded sizes of all items in bytes."""
        return sum(item.size for item in self.list())

    def _ensure_initialized(self) -> None:
        """Run initialize() once, before the bin is first used."""
        if self._startup_report is not None:
            return
        try:
            self.initialize()
        except FilekeepError as e:
            logger.debug("Recycle bin not initialized: %s", e)

    def _purge_unlocked(self, item: RecycleBinItem) -> RecycleActionResult:
        if not os.path.lexists(item.recycle_path):
            self._unlink_quietly(item.meta_path)
            return _failure(item, NotFoundError(f"Item no longer in recycle bin: {item.id}"))
        try:
            self._gate.require(item.recycle_path, write=True)
            os.unlink(item.recycle_path)
        except AccessDeniedError as e:
            return _failure(item, e)
        except OSError as e:
            return _failure(item, error_from_os(e, item.recycle_path, "purge"))
        self._unlink_quietly(item.meta_path)
        logger.info("Purged %s (%s)", item.id, item.original_name)
        return RecycleActionResult(item=item, success=True)

    def _list_unlocked(self) -> list[RecycleBinItem]:
        names = self._scan()
        if names is None:
            return []
        items: list[RecycleBinItem] = []
        for name in names:
            if not name.endswith(META_SUFFIX):
                continue
            recycle_path = os.path.join(self._holding_dir, name[: -len(META_SUFFIX)])
            if not os.path.lexists(recycle_path):
                continue
            try:
                items.append(self._read_sidecar(recycle_path))
            except (OSError, KeyError, TypeError, ValueError) as e:
                logger.debug("Skipping unreadable sidecar %s: %s", name, e)
        items.sort(key=lambda i: (i.deleted_at, i.id), reverse=True)
        return items

    def _scan(self) -> list[str] | None:
        """Names in the holding directory, ignoring temp files."""
        try:
            with os.scandir(self._holding_dir) as it:
                return [e.name for e in it if not e.name.startswith(".")]
        except FileNotFoundError:
            return None
        except OSError as e:
            raise error_from_os(e, self._holding_dir, "read") from e

    def _ensure_holding_dir(self) -> None:
        try:
            os.makedirs(self._holding_dir, exist_ok=True)
        except OSError as e:
            raise error_from_os(e, self._holding_dir, "create") from e

    def _new_id(self, name: str) -> str:
        token = max(time.time_ns(), self._last_token + 1)
        while os.path.lexists(os.path.join(self._holding_dir, f"{token}_{name}")):
            token += 1
        self._last_token = token
        return str(token)

    def _reconstruct(self, name: str, recycle_path: str) -> RecycleBinItem:
        st = os.lstat(recycle_path)
        parsed = split_recycle_name(name)
        if parsed is not None:
            item_id, original_name = parsed
        else:
            item_id, original_name = str(time.time_ns()), name
        return RecycleBinItem(
            id=item_id,
            original_path=os.path.join(self._storage_root, original_name),
            original_name=original_name,
            recycle_path=recycle_path,
            deleted_at=datetime.fromtimestamp(st.st_mtime, tz=UTC).isoformat(),
            size=st.st_size,
            type=file_type_for(original_name),
            reconstructed=True,
        )

    @staticmethod
    def _read_sidecar(recycle_path: str) -> RecycleBinItem:
        with open(recycle_path + META_SUFFIX, encoding="utf-8") as f:
            return RecycleBinItem.from_sidecar(f.read(), recycle_path)

    def _is_sidecar(self, recycle_path: str) -> bool:
        try:
            self._read_sidecar(recycle_path)
        except (OSError, KeyError, TypeError, ValueError):
            return False
        return True

    def _write_sidecar(self, item: RecycleBinItem) -> None:
        """Write item's sidecar atomically."""
        tmp_path: str | None = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._holding_dir,
                prefix=".",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                f.write(item.to_sidecar())
            os.replace(tmp_path, item.meta_path)
        except OSError:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @staticmethod
    def _unlink_quietly(path: str) -> bool:
        try:
            os.unlink(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Cannot remove %s: %s", path, e)
            return False
        return True


def _failure(item: RecycleBinItem, error: FilekeepError) -> RecycleActionResult:
    return RecycleActionResult(
        item=item,
        success=False,
        error=str(error),
        error_kind=error.kind,
    )
