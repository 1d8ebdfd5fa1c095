"""Wiring of storage components from configuration."""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from filekeep.core.config import FilekeepConfig
from filekeep.core.paths import get_state_dir
from filekeep.core.state import StateManager
from filekeep.core.store import KeyValueStore
from filekeep.storage.index import FileIndex
from filekeep.storage.operations import MutationOps
from filekeep.storage.permissions import (
    ConfiguredPermissionOracle,
    PermissionGate,
    PermissionOracle,
)
from filekeep.storage.reader import DirectoryReader
from filekeep.storage.recent_files import RecentFiles
from filekeep.storage.recycle_bin import RecycleBin
from filekeep.storage.search import RecentSearches, SearchEngine


@dataclass(frozen=True, slots=True)
class StorageContext:
    """All storage components sharing one gate and one store.

    Attributes:
        config: Configuration the components were built from.
        store: Key-value store for index, recent lists and flags.
        gate: Permission gate every component consults.
        reader: Single-level directory reader.
        index: Recursive file index.
        recent: Recent-search list.
        recent_files: Recently opened files.
        search: Search engine.
        recycle_bin: Soft-delete holding area.
        ops: Mutating operations.
        state: Operation audit log.
    """

    config: FilekeepConfig
    store: KeyValueStore
    gate: PermissionGate
    reader: DirectoryReader
    index: FileIndex
    recent: RecentSearches
    recent_files: RecentFiles
    search: SearchEngine
    recycle_bin: RecycleBin
    ops: MutationOps
    state: StateManager


def build_context(
    config: FilekeepConfig,
    *,
    oracle: PermissionOracle | None = None,
    presenter: Callable[[str], None] | None = None,
    store: KeyValueStore | None = None,
    state_dir: Path | None = None,
) -> StorageContext:
    """Build every storage component from configuration.

    Args:
        config: Loaded configuration.
        oracle: Permission oracle. Defaults to one answering from
            config.permissions.granted.
        presenter: Receives full-access guidance the first time access
            is denied.
        store: Key-value store override.
        state_dir: State directory override (store, history, sandbox).

    Returns:
        A StorageContext with all components wired together.
    """
    state_root = state_dir if state_dir is not None else get_state_dir()
    if store is None:
        store = KeyValueStore(state_root / "store.json")

    gate = PermissionGate(
        oracle or ConfiguredPermissionOracle(config.permissions.granted),
        store,
        restricted_dirs=config.restricted_dirs,
        sandbox_dir=state_root,
        presenter=presenter,
    )
    holding_dir = config.holding_dir
    reader = DirectoryReader(
        gate,
        include_hidden=config.index.include_hidden,
        skip_names=frozenset({holding_dir.name}),
    )
    index = FileIndex(
        reader,
        gate,
        store,
        ttl=config.index.ttl_seconds,
        default_roots=config.index_roots,
        default_max_depth=config.index.max_depth,
        include_hidden=config.index.include_hidden,
        holding_dir=holding_dir,
        persist=config.index.persist,
    )
    recent = RecentSearches(store, limit=config.search.recent_limit)
    recycle_bin = RecycleBin(holding_dir, config.storage_root, gate)

    return StorageContext(
        config=config,
        store=store,
        gate=gate,
        reader=reader,
        index=index,
        recent=recent,
        recent_files=RecentFiles(store),
        search=SearchEngine(
            index,
            reader,
            recent,
            max_results=config.search.max_results,
            max_workers=config.search.max_workers,
        ),
        recycle_bin=recycle_bin,
        ops=MutationOps(gate, recycle_bin),
        state=StateManager(state_root),
    )
