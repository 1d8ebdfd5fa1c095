"""Storage core.

This package provides the permission gate, directory reader, file
index, search engine, recycle bin, recent files, disk usage and
mutating operations, plus the context that wires them together from
configuration.
"""

from filekeep.storage.context import StorageContext, build_context
from filekeep.storage.index import FileIndex, walk
from filekeep.storage.operations import MutationOps, OperationResult, validate_name
from filekeep.storage.permissions import (
    ConfiguredPermissionOracle,
    PermissionGate,
    PermissionOracle,
)
from filekeep.storage.reader import DirectoryListing, DirectoryReader
from filekeep.storage.recent_files import RecentFiles
from filekeep.storage.recycle_bin import (
    BatchResult,
    ReconcileReport,
    RecycleActionResult,
    RecycleBin,
)
from filekeep.storage.search import (
    RecentSearches,
    SearchEngine,
    SearchMode,
    SearchResult,
    SearchScope,
)
from filekeep.storage.usage import StorageInfo, storage_info

__all__ = [
    "BatchResult",
    "ConfiguredPermissionOracle",
    "DirectoryListing",
    "DirectoryReader",
    "FileIndex",
    "MutationOps",
    "OperationResult",
    "PermissionGate",
    "PermissionOracle",
    "RecentFiles",
    "RecentSearches",
    "ReconcileReport",
    "RecycleActionResult",
    "RecycleBin",
    "SearchEngine",
    "SearchMode",
    "SearchResult",
    "SearchScope",
    "StorageContext",
    "StorageInfo",
    "build_context",
    "storage_info",
    "validate_name",
    "walk",
]
