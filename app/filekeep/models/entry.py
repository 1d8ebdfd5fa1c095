"""Normalized filesystem entry and index snapshot models.

Every component that reads the filesystem produces Entry instances;
the FileIndex publishes them in immutable IndexSnapshot views.
"""

import time
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

# Extension table used to classify files for display and recycle-bin records
_FILE_TYPES: dict[str, tuple[str, ...]] = {
    "image": ("jpg", "jpeg", "png", "gif", "webp", "heic", "bmp"),
    "video": ("mp4", "mkv", "avi", "mov", "webm", "3gp"),
    "audio": ("mp3", "wav", "m4a", "ogg", "flac", "aac"),
    "document": ("pdf", "doc", "docx", "txt", "xlsx", "xls", "pptx", "odt", "md"),
    "apk": ("apk",),
}


class FileCategory(str, Enum):
    """File categories browsable as galleries.

    Values match what file_type_for() returns.
    """

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    APK = "apk"
    OTHER = "other"


def file_type_for(name: str) -> str:
    """Classify a file name by its extension.

    Args:
        name: File name (or path).

    Returns:
        One of "image", "video", "audio", "document", "apk" or "other".
    """
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    for file_type, extensions in _FILE_TYPES.items():
        if ext in extensions:
            return file_type
    return "other"


class EntryKind(str, Enum):
    """Kind of filesystem node.

    Attributes:
        FILE: Regular file (also used for dangling symlinks).
        DIRECTORY: Directory.
    """

    FILE = "file"
    DIRECTORY = "directory"


class SortPolicy(str, Enum):
    """Sort orders offered at the presentation boundary.

    Attributes:
        DIRECTORIES_FIRST: Directories before files, then by name.
        NAME: Case-insensitive name only.
        SIZE: Largest first.
        MODIFIED: Most recently modified first.
    """

    DIRECTORIES_FIRST = "dirs"
    NAME = "name"
    SIZE = "size"
    MODIFIED = "modified"


@dataclass(frozen=True, slots=True)
class Entry:
    """One filesystem node, normalized across platforms.

    Attributes:
        name: Last path segment.
        path: Absolute path; unique within a snapshot.
        kind: File or directory. Fixed once read.
        size: Size in bytes (0 for directories).
        modified_time: Modification time as epoch seconds (device clock).
        child_count: Number of immediate children, directories only.
    """

    name: str
    path: str
    kind: EntryKind
    size: int = 0
    modified_time: float = 0.0
    child_count: int | None = None

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.path:
            msg = "Path cannot be empty"
            raise ValueError(msg)
        if self.size < 0:
            msg = f"Size cannot be negative, got {self.size}"
            raise ValueError(msg)

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE

    @property
    def extension(self) -> str:
        """Lowercased extension without the dot, or empty string."""
        if self.is_dir or "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[-1].lower()

    @property
    def file_type(self) -> str:
        """Display category ("folder" for directories)."""
        if self.is_dir:
            return "folder"
        return file_type_for(self.name)

    @property
    def dedup_key(self) -> tuple[str, int]:
        """Approximate identity used to collapse duplicates across roots.

        Name plus size is not a content hash: two different files with
        the same name and size are treated as one.
        """
        return (self.name.lower(), self.size)

    @property
    def modified_iso(self) -> str:
        """Modification time as an ISO 8601 UTC string."""
        return datetime.fromtimestamp(self.modified_time, tz=UTC).isoformat()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "kind": self.kind.value,
            "size": self.size,
            "modified_time": self.modified_time,
        }
        if self.child_count is not None:
            result["child_count"] = self.child_count
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entry":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If kind is invalid.
        """
        return cls(
            name=data["name"],
            path=data["path"],
            kind=EntryKind(data["kind"]),
            size=int(data.get("size", 0)),
            modified_time=float(data.get("modified_time", 0.0)),
            child_count=data.get("child_count"),
        )


def sort_entries(
    entries: Iterable[Entry],
    policy: SortPolicy = SortPolicy.DIRECTORIES_FIRST,
) -> list[Entry]:
    """Sort entries for presentation.

    The reader and index never sort; callers apply a policy at the
    boundary. The default groups directories first and then orders
    names case-insensitively.

    Args:
        entries: Entries to sort.
        policy: Sort policy to apply.

    Returns:
        New sorted list.
    """
    items = list(entries)
    if policy == SortPolicy.NAME:
        return sorted(items, key=lambda e: (e.name.lower(), e.name))
    if policy == SortPolicy.SIZE:
        return sorted(items, key=lambda e: (-e.size, e.name.lower()))
    if policy == SortPolicy.MODIFIED:
        return sorted(items, key=lambda e: (-e.modified_time, e.name.lower()))
    return sorted(items, key=lambda e: (not e.is_dir, e.name.lower(), e.name))


@dataclass(frozen=True, slots=True)
class IndexSnapshot:
    """Immutable point-in-time view of the file index.

    Readers hold a reference and never observe later refreshes; a
    refresh publishes a new snapshot instead of mutating this one.

    Attributes:
        entries: Read-only mapping of path to Entry.
        built_at: Epoch seconds when the walk finished.
        roots: Root directories the snapshot was built from.
        max_depth: Depth limit used for the walk (None = unbounded).
        warnings: Subtrees skipped during the walk.
        cancelled: True if the walk was cancelled and is partial.
    """

    entries: Mapping[str, Entry]
    built_at: float
    roots: tuple[str, ...] = ()
    max_depth: int | None = None
    warnings: tuple[str, ...] = ()
    cancelled: bool = False

    @classmethod
    def create(
        cls,
        entries: Mapping[str, Entry],
        *,
        built_at: float | None = None,
        roots: Iterable[str] = (),
        max_depth: int | None = None,
        warnings: Iterable[str] = (),
        cancelled: bool = False,
    ) -> "IndexSnapshot":
        """Build a snapshot, freezing the entry mapping."""
        frozen = MappingProxyType(dict(entries))
        return cls(
            entries=frozen,
            built_at=time.time() if built_at is None else built_at,
            roots=tuple(roots),
            max_depth=max_depth,
            warnings=tuple(warnings),
            cancelled=cancelled,
        )

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries.values())

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def get(self, path: str) -> Entry | None:
        """Look up an entry by absolute path."""
        return self.entries.get(path)

    def age(self, now: float | None = None) -> float:
        """Seconds elapsed since the snapshot was built."""
        return (time.time() if now is None else now) - self.built_at

    def is_fresh(self, ttl: float, now: float | None = None) -> bool:
        """Check whether the snapshot is younger than ttl seconds."""
        return self.age(now) < ttl

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for the key-value store."""
        return {
            "built_at": self.built_at,
            "roots": list(self.roots),
            "max_depth": self.max_depth,
            "warnings": list(self.warnings),
            "cancelled": self.cancelled,
            "entries": [entry.to_dict() for entry in self.entries.values()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IndexSnapshot":
        """Deserialize from dictionary.

        Entries are taken as stored; nothing is re-validated against disk.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If entry data is invalid.
        """
        entries = (Entry.from_dict(item) for item in data["entries"])
        return cls.create(
            {entry.path: entry for entry in entries},
            built_at=float(data["built_at"]),
            roots=data.get("roots", []),
            max_depth=data.get("max_depth"),
            warnings=data.get("warnings", []),
            cancelled=bool(data.get("cancelled", False)),
        )
