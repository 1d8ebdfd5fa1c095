"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
from collections.abc import Callable
from pathlib import Path

import pytest
from filekeep.core.config import FilekeepConfig, IndexSettings, save_config
from filekeep.core.store import KeyValueStore
from filekeep.models.permission import PermissionKind
from filekeep.storage.operations import MutationOps
from filekeep.storage.permissions import ConfiguredPermissionOracle, PermissionGate
from filekeep.storage.reader import DirectoryReader
from filekeep.storage.recycle_bin import RecycleBin


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG directory into the test's temporary directory."""
    base = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(base / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(base / "state"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(base / "cache"))
    return base


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Empty storage root."""
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def store(tmp_path: Path) -> KeyValueStore:
    """Key-value store in a temporary state directory."""
    return KeyValueStore(tmp_path / "state" / "store.json")


@pytest.fixture
def gate(store: KeyValueStore, storage_root: Path, tmp_path: Path) -> PermissionGate:
    """Gate with every permission granted."""
    return PermissionGate(
        ConfiguredPermissionOracle(PermissionKind),
        store,
        restricted_dirs=[storage_root / "Android" / "data"],
        sandbox_dir=tmp_path / "state",
    )


@pytest.fixture
def reader(gate: PermissionGate) -> DirectoryReader:
    """Directory reader that skips the recycle bin holding directory."""
    return DirectoryReader(gate, skip_names=frozenset({".recyclebin"}))


@pytest.fixture
def recycle_bin(storage_root: Path, gate: PermissionGate) -> RecycleBin:
    """Recycle bin rooted in the storage root."""
    return RecycleBin(storage_root / ".recyclebin", storage_root, gate)


@pytest.fixture
def ops(gate: PermissionGate, recycle_bin: RecycleBin) -> MutationOps:
    """Mutation operations backed by the test recycle bin."""
    return MutationOps(gate, recycle_bin)


@pytest.fixture
def make_file() -> Callable[..., Path]:
    """Factory creating a file with content and an optional mtime."""

    def _make(path: Path, content: bytes = b"data", mtime: float | None = None) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _make


@pytest.fixture
def configured_root(storage_root: Path) -> Path:
    """Storage root saved to the default config file, indexed as a whole."""
    save_config(FilekeepConfig(storage_root=storage_root, index=IndexSettings(roots=["."])))
    return storage_root
