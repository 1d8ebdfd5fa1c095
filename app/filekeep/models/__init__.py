"""Data models for filekeep.

This module exports the core data structures used throughout the application.
"""

from filekeep.models.entry import (
    Entry,
    EntryKind,
    FileCategory,
    IndexSnapshot,
    SortPolicy,
    file_type_for,
    sort_entries,
)
from filekeep.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)
from filekeep.models.permission import (
    AccessResult,
    AccessTier,
    PermissionKind,
    PermissionState,
)
from filekeep.models.recent import RecentFile
from filekeep.models.recycle import RecycleBinItem

__all__ = [
    "AccessResult",
    "AccessTier",
    "Entry",
    "EntryKind",
    "FileCategory",
    "HistoryActionType",
    "HistoryEntry",
    "HistoryItem",
    "IndexSnapshot",
    "PermissionKind",
    "PermissionState",
    "RecentFile",
    "RecycleBinItem",
    "SortPolicy",
    "create_history_entry",
    "file_type_for",
    "sort_entries",
]
