"""Unit tests for RecycleBin.

Tests soft delete, restore, purge, emptying and reconciliation of the
holding directory against its metadata sidecars.
"""

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import get_type_hints

import pytest
from filekeep.core.errors import (
    AccessDeniedError,
    ErrorKind,
    NotFoundError,
    UnsupportedOperationError,
)
from filekeep.core.store import KeyValueStore
from filekeep.storage.permissions import ConfiguredPermissionOracle, PermissionGate
from filekeep.models.recycle import RecycleBinItem
from filekeep.storage.recycle_bin import RecycleBin


class TestInitialize:
    """Tests for RecycleBin.initialize."""

    def test_creates_holding_dir(self, recycle_bin: RecycleBin) -> None:
        """initialize creates the hidden holding directory."""
        report = recycle_bin.initialize()

        assert os.path.isdir(recycle_bin.holding_dir)
        assert report.clean

    def test_is_idempotent(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Calling initialize repeatedly leaves existing items untouched."""
        recycle_bin.initialize()
        item = recycle_bin.move_to_recycle_bin(make_file(storage_root / "a.txt"))

        first = recycle_bin.initialize()
        second = recycle_bin.initialize()

        assert first.clean and second.clean
        assert [i.id for i in recycle_bin.list()] == [item.id]


class TestMoveToRecycleBin:
    """Tests for RecycleBin.move_to_recycle_bin."""

    def test_moves_file_and_writes_sidecar(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """The file leaves its location and a sidecar describes it."""
        source = make_file(storage_root / "Download" / "report.pdf", b"x" * 42)

        item = recycle_bin.move_to_recycle_bin(source)

        assert not source.exists()
        assert os.path.exists(item.recycle_path)
        assert os.path.basename(item.recycle_path) == f"{item.id}_report.pdf"
        assert item.original_path == str(source)
        assert item.size == 42
        assert item.type == "document"

        sidecar = json.loads(Path(item.meta_path).read_text(encoding="utf-8"))
        assert sidecar["originalPath"] == str(source)
        assert sidecar["fileName"] == "report.pdf"
        assert "deletedAt" in sidecar

    def test_missing_path_raises(self, recycle_bin: RecycleBin, storage_root: Path) -> None:
        """Recycling a path that does not exist raises NotFoundError."""
        with pytest.raises(NotFoundError):
            recycle_bin.move_to_recycle_bin(storage_root / "nope.txt")

    def test_directory_rejected(self, recycle_bin: RecycleBin, storage_root: Path) -> None:
        """Directories cannot be recycled as a single item."""
        (storage_root / "folder").mkdir()

        with pytest.raises(UnsupportedOperationError):
            recycle_bin.move_to_recycle_bin(storage_root / "folder")

    def test_item_inside_holding_dir_rejected(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """A file already in the holding area cannot be recycled again."""
        item = recycle_bin.move_to_recycle_bin(make_file(storage_root / "a.txt"))

        with pytest.raises(UnsupportedOperationError):
            recycle_bin.move_to_recycle_bin(item.recycle_path)

    def test_same_name_gets_distinct_records(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Two files named a.txt from different folders stay separate."""
        first = recycle_bin.move_to_recycle_bin(make_file(storage_root / "one" / "a.txt", b"1"))
        second = recycle_bin.move_to_recycle_bin(make_file(storage_root / "two" / "a.txt", b"2"))

        assert first.id != second.id
        assert first.recycle_path != second.recycle_path
        assert {i.original_path for i in recycle_bin.list()} == {
            str(storage_root / "one" / "a.txt"),
            str(storage_root / "two" / "a.txt"),
        }


class TestList:
    """Tests for RecycleBin.list and get."""

    def test_empty_when_holding_dir_missing(self, recycle_bin: RecycleBin) -> None:
        """Listing a bin that does not exist yet creates it empty."""
        assert recycle_bin.list() == []
        assert os.path.isdir(recycle_bin.holding_dir)

    def test_newest_first(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Items are listed most recently deleted first."""
        older = recycle_bin.move_to_recycle_bin(make_file(storage_root / "old.txt"))
        newer = recycle_bin.move_to_recycle_bin(make_file(storage_root / "new.txt"))

        assert [i.id for i in recycle_bin.list()] == [newer.id, older.id]

    def test_get_by_id(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """get returns the item with a matching id, or None."""
        item = recycle_bin.move_to_recycle_bin(make_file(storage_root / "a.txt"))

        assert recycle_bin.get(item.id) == item
        assert recycle_bin.get("0") is None

    def test_total_size(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """total_size sums the recorded sizes."""
        recycle_bin.move_to_recycle_bin(make_file(storage_root / "a.txt", b"abc"))
        recycle_bin.move_to_recycle_bin(make_file(storage_root / "b.txt", b"defgh"))

        assert recycle_bin.total_size() == 8


class TestRestore:
    """Tests for RecycleBin.restore."""

    def test_round_trip_is_byte_identical(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Deleting then restoring brings back the same bytes at the same path."""
        content = bytes(range(256)) * 4
        source = make_file(storage_root / "Pictures" / "photo.jpg", content)

        item = recycle_bin.move_to_recycle_bin(source)
        result = recycle_bin.restore(item)

        assert result.success
        assert source.read_bytes() == content
        assert recycle_bin.list() == []
        assert not os.path.exists(item.meta_path)

    def test_restore_one_leaves_the_other(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Restoring one of two same-named items keeps the other in the bin."""
        first = recycle_bin.move_to_recycle_bin(make_file(storage_root / "one" / "a.txt", b"1"))
        second = recycle_bin.move_to_recycle_bin(make_file(storage_root / "two" / "a.txt", b"2"))

        assert recycle_bin.restore(first).success

        assert (storage_root / "one" / "a.txt").read_bytes() == b"1"
        assert not (storage_root / "two" / "a.txt").exists()
        assert [i.id for i in recycle_bin.list()] == [second.id]

    def test_recreates_missing_parent(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Parent directories removed after deletion are recreated."""
        source = make_file(storage_root / "gone" / "deep" / "a.txt")
        item = recycle_bin.move_to_recycle_bin(source)
        (storage_root / "gone" / "deep").rmdir()
        (storage_root / "gone").rmdir()

        result = recycle_bin.restore(item)

        assert result.success
        assert source.exists()

    def test_existing_original_not_overwritten(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Restore fails with ALREADY_EXISTS when the original path is taken."""
        source = make_file(storage_root / "a.txt", b"old")
        item = recycle_bin.move_to_recycle_bin(source)
        source.write_bytes(b"new")

        result = recycle_bin.restore(item)

        assert not result.success
        assert result.error_kind == ErrorKind.ALREADY_EXISTS
        assert source.read_bytes() == b"new"
        assert recycle_bin.get(item.id) is not None

    def test_missing_recycled_file(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Restoring an item whose file vanished reports NOT_FOUND."""
        item = recycle_bin.move_to_recycle_bin(make_file(storage_root / "a.txt"))
        os.unlink(item.recycle_path)

        result = recycle_bin.restore(item)

        assert not result.success
        assert result.error_kind == ErrorKind.NOT_FOUND

    def test_access_denied(
        self,
        recycle_bin: RecycleBin,
        storage_root: Path,
        store: KeyValueStore,
        tmp_path: Path,
        make_file: Callable[..., Path],
    ) -> None:
        """A gate without grants refuses the restore and the item stays put."""
        item = recycle_bin.move_to_recycle_bin(make_file(storage_root / "a.txt"))
        denied = PermissionGate(
            ConfiguredPermissionOracle([]), store, sandbox_dir=tmp_path / "state"
        )
        locked_bin = RecycleBin(recycle_bin.holding_dir, storage_root, denied)

        result = locked_bin.restore(item)

        assert not result.success
        assert result.error_kind == ErrorKind.ACCESS_DENIED
        assert os.path.exists(item.recycle_path)


class TestPurge:
    """Tests for RecycleBin.purge and empty_all."""

    def test_purge_removes_file_and_sidecar(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """purge deletes the recycled file and its metadata."""
        item = recycle_bin.move_to_recycle_bin(make_file(storage_root / "a.txt"))

        result = recycle_bin.purge(item)

        assert result.success
        assert not os.path.exists(item.recycle_path)
        assert not os.path.exists(item.meta_path)

    def test_purge_twice_reports_not_found(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Purging a stale item reports NOT_FOUND instead of raising."""
        item = recycle_bin.move_to_recycle_bin(make_file(storage_root / "a.txt"))
        recycle_bin.purge(item)

        result = recycle_bin.purge(item)

        assert not result.success
        assert result.error_kind == ErrorKind.NOT_FOUND

    def test_empty_all(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """empty_all purges every item and reports each one."""
        for name in ("a.txt", "b.txt", "c.txt"):
            recycle_bin.move_to_recycle_bin(make_file(storage_root / name))

        batch = recycle_bin.empty_all()

        assert batch.ok
        assert len(batch.succeeded) == 3
        assert recycle_bin.list() == []
        assert os.listdir(recycle_bin.holding_dir) == []

    def test_empty_all_on_empty_bin(self, recycle_bin: RecycleBin) -> None:
        """Emptying an empty bin succeeds with no results."""
        recycle_bin.initialize()

        batch = recycle_bin.empty_all()

        assert batch.ok
        assert batch.results == ()


class TestReconcile:
    """Tests for RecycleBin.reconcile."""

    @pytest.fixture
    def holding(self, recycle_bin: RecycleBin) -> Path:
        """Initialized holding directory."""
        recycle_bin.initialize()
        return Path(recycle_bin.holding_dir)

    def test_rebuilds_missing_sidecar(
        self, recycle_bin: RecycleBin, holding: Path, storage_root: Path
    ) -> None:
        """A file without a sidecar gets reconstructed metadata."""
        (holding / "1700000000000_song.mp3").write_bytes(b"abc")

        report = recycle_bin.reconcile()

        assert report.rebuilt == 1
        assert not report.clean
        assert report.diagnostics[0].kind == ErrorKind.RECYCLE_BIN_INCONSISTENCY
        [item] = recycle_bin.list()
        assert item.id == "1700000000000"
        assert item.original_name == "song.mp3"
        assert item.original_path == str(storage_root / "song.mp3")
        assert item.reconstructed is True
        assert item.size == 3

    def test_rebuilds_corrupt_sidecar(
        self, recycle_bin: RecycleBin, holding: Path, storage_root: Path
    ) -> None:
        """A sidecar that cannot be parsed is replaced."""
        (holding / "42_a.txt").write_bytes(b"x")
        (holding / "42_a.txt.meta").write_text("{not json", encoding="utf-8")

        report = recycle_bin.reconcile()

        assert report.rebuilt == 1
        assert recycle_bin.get("42") is not None

    def test_removes_orphan_sidecar(self, recycle_bin: RecycleBin, holding: Path) -> None:
        """A sidecar whose file is gone is deleted."""
        (holding / "7_gone.txt.meta").write_text(
            json.dumps({"originalPath": "/x/gone.txt", "deletedAt": 1700000000000}),
            encoding="utf-8",
        )

        report = recycle_bin.reconcile()

        assert report.removed_sidecars == 1
        assert os.listdir(holding) == []

    def test_recycled_meta_file_is_not_an_orphan(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """A user file whose name ends in .meta survives reconciliation."""
        item = recycle_bin.move_to_recycle_bin(make_file(storage_root / "notes.meta", b"n"))

        report = recycle_bin.reconcile()

        assert report.clean
        assert recycle_bin.get(item.id) == item

    def test_reports_directory_in_holding_area(
        self, recycle_bin: RecycleBin, holding: Path
    ) -> None:
        """Directories in the holding area are reported but left alone."""
        (holding / "stray").mkdir()

        report = recycle_bin.reconcile()

        assert len(report.diagnostics) == 1
        assert report.rebuilt == 0
        assert (holding / "stray").is_dir()

    def test_missing_holding_dir(self, recycle_bin: RecycleBin) -> None:
        """Reconciling a bin that does not exist yet is a no-op."""
        report = recycle_bin.reconcile()

        assert report.clean
        assert report.rebuilt == 0


class TestFirstUse:
    """Tests for reconciling the holding directory on first use."""

    def test_file_without_sidecar_listed(
        self, recycle_bin: RecycleBin, storage_root: Path
    ) -> None:
        """A file left in the holding area without metadata shows up in list()."""
        holding = storage_root / ".recyclebin"
        holding.mkdir()
        (holding / "1700000000000000000_lost.txt").write_bytes(b"lost")

        [item] = recycle_bin.list()

        assert item.original_name == "lost.txt"
        assert item.reconstructed is True
        report = recycle_bin.startup_report
        assert report is not None
        assert report.rebuilt == 1

    def test_reconciles_only_once(
        self, recycle_bin: RecycleBin, storage_root: Path
    ) -> None:
        """Later calls keep the first report and do not reconcile again."""
        recycle_bin.list()
        (storage_root / ".recyclebin" / "5_late.txt").write_bytes(b"x")

        assert recycle_bin.list() == []
        report = recycle_bin.startup_report
        assert report is not None
        assert report.clean

    def test_move_initializes(
        self, recycle_bin: RecycleBin, storage_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """Recycling a file runs the first-use reconciliation as well."""
        recycle_bin.move_to_recycle_bin(make_file(storage_root / "a.txt"))

        assert recycle_bin.startup_report is not None

    def test_list_denied_without_read_access(
        self, storage_root: Path, store: KeyValueStore, tmp_path: Path
    ) -> None:
        """list() refuses a holding directory the gate will not let it read."""
        (storage_root / ".recyclebin").mkdir()
        denied = PermissionGate(
            ConfiguredPermissionOracle([]), store, sandbox_dir=tmp_path / "state"
        )
        locked_bin = RecycleBin(storage_root / ".recyclebin", storage_root, denied)

        with pytest.raises(AccessDeniedError):
            locked_bin.list()
        with pytest.raises(AccessDeniedError):
            locked_bin.reconcile()
        assert locked_bin.startup_report is None


class TestEmptyAllPartialFailure:
    """Tests for empty_all when some items cannot be deleted."""

    def test_failed_item_kept_for_retry(
        self,
        recycle_bin: RecycleBin,
        storage_root: Path,
        make_file: Callable[..., Path],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """An item whose file cannot be unlinked stays listed and can be purged later."""
        stuck = recycle_bin.move_to_recycle_bin(make_file(storage_root / "stuck.txt"))
        recycle_bin.move_to_recycle_bin(make_file(storage_root / "free.txt"))
        real_unlink = os.unlink

        def failing_unlink(path: str, *args: object, **kwargs: object) -> None:
            if os.fspath(path) == stuck.recycle_path:
                raise PermissionError(13, "Permission denied", path)
            real_unlink(path, *args, **kwargs)

        monkeypatch.setattr(os, "unlink", failing_unlink)
        batch = recycle_bin.empty_all()

        assert not batch.ok
        [failure] = batch.failed
        assert failure.item.id == stuck.id
        assert failure.error_kind == ErrorKind.ACCESS_DENIED
        assert len(batch.succeeded) == 1
        assert [i.id for i in recycle_bin.list()] == [stuck.id]
        assert os.path.exists(stuck.meta_path)

        monkeypatch.setattr(os, "unlink", real_unlink)
        retry = recycle_bin.empty_all()

        assert retry.ok
        assert recycle_bin.list() == []


class TestAnnotations:
    """Tests for annotations of methods declared after RecycleBin.list."""

    def test_builtin_list_annotations_resolve(self) -> None:
        """Annotations naming list refer to the builtin, not the list method."""
        hints = get_type_hints(RecycleBin._list_unlocked)

        assert hints["return"] == list[RecycleBinItem]
