"""History entry model for auditing storage operations.

This module defines data structures for recording mutating operations
(soft deletes, restores, purges, creates, moves...) in a history file,
so every destructive action leaves an audit trail.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class HistoryActionType(str, Enum):
    """Type of action recorded in history.

    Attributes:
        DELETE: Item moved into the recycle bin.
        RESTORE: Item restored from the recycle bin.
        PURGE: Item permanently removed from the recycle bin.
        EMPTY: Recycle bin emptied.
        CREATE_FILE: File created.
        CREATE_DIRECTORY: Directory created.
        RENAME: Item renamed in place.
        MOVE: Item moved to another location.
        COPY: Item copied to another location.
    """

    DELETE = "delete"
    RESTORE = "restore"
    PURGE = "purge"
    EMPTY = "empty"
    CREATE_FILE = "create_file"
    CREATE_DIRECTORY = "create_directory"
    RENAME = "rename"
    MOVE = "move"
    COPY = "copy"


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """Single path affected by an action.

    Attributes:
        path: Absolute path the action operated on.
        destination: Target path for rename/move/copy/restore.
        recycle_id: Recycle bin item ID, when the action involved the bin.
    """

    path: str
    destination: str | None = None
    recycle_id: str | None = None

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.path:
            msg = "History item path cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        Returns:
            Dictionary representation of the history item.
        """
        result: dict[str, Any] = {"path": self.path}
        if self.destination is not None:
            result["destination"] = self.destination
        if self.recycle_id is not None:
            result["recycle_id"] = self.recycle_id
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryItem":
        """Deserialize from dictionary.

        Args:
            data: Dictionary containing item data.

        Returns:
            HistoryItem instance.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            path=data["path"],
            destination=data.get("destination"),
            recycle_id=data.get("recycle_id"),
        )


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of a single action in history.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the action occurred (ISO 8601 format with timezone).
        action_type: Type of action (delete, restore, etc.).
        items: Tuple of paths affected by this action.
        reversible: Whether the action can be undone from the recycle bin.
        success: Whether the action completed successfully.
        metadata: Additional context (command, failures, etc.).
    """

    id: str
    timestamp: str
    action_type: HistoryActionType
    items: tuple[HistoryItem, ...]
    reversible: bool = False
    success: bool = True
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)
        if not self.items:
            msg = "History entry must have at least one item"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        Returns:
            Dictionary representation of the history entry.
        """
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action_type": self.action_type.value,
            "items": [item.to_dict() for item in self.items],
            "reversible": self.reversible,
            "success": self.success,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        """Deserialize from dictionary.

        Args:
            data: Dictionary containing entry data.

        Returns:
            HistoryEntry instance.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If action_type or item data is invalid.
        """
        items = tuple(HistoryItem.from_dict(item) for item in data["items"])
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action_type=HistoryActionType(data["action_type"]),
            items=items,
            reversible=data.get("reversible", False),
            success=data.get("success", True),
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """Serialize to JSON line for JSONL storage.

        Returns:
            Single JSON line (no trailing newline).
        """
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> "HistoryEntry":
        """Deserialize from JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        data = json.loads(line.strip())
        return cls.from_dict(data)


def create_history_entry(
    action_type: HistoryActionType,
    items: list[HistoryItem],
    reversible: bool = False,
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Factory function to create a new HistoryEntry.

    Automatically generates a unique ID and current timestamp.

    Args:
        action_type: Type of action being recorded.
        items: List of paths affected by this action.
        reversible: Whether this action can be undone (default False).
        metadata: Optional additional context.

    Returns:
        New HistoryEntry with auto-generated ID and timestamp.

    Raises:
        ValueError: If items list is empty.
    """
    if not items:
        msg = "Cannot create history entry with no items"
        raise ValueError(msg)

    return HistoryEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        action_type=action_type,
        items=tuple(items),
        reversible=reversible,
        success=True,
        metadata=metadata or {},
    )
