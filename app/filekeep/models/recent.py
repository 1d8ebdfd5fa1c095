"""Recently opened files and directories."""

import os
import time
from dataclasses import dataclass
from typing import Any

from filekeep.models.entry import Entry


@dataclass(frozen=True, slots=True)
class RecentFile:
    """One entry in the recent-files list.

    Attributes:
        path: Absolute path of the file or directory.
        name: Last path component.
        last_accessed: Epoch seconds when it was last opened.
        is_file: False for directories.
        size: Size in bytes when it was opened.
    """

    path: str
    name: str
    last_accessed: float
    is_file: bool
    size: int = 0

    @classmethod
    def from_entry(cls, entry: Entry, now: float | None = None) -> "RecentFile":
        return cls(
            path=entry.path,
            name=entry.name,
            last_accessed=time.time() if now is None else now,
            is_file=entry.is_file,
            size=entry.size,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "last_accessed": self.last_accessed,
            "is_file": self.is_file,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecentFile":
        """Deserialize from dictionary.

        Raises:
            KeyError: If path is missing.
            TypeError, ValueError: If a field has the wrong type.
        """
        path = str(data["path"])
        return cls(
            path=path,
            name=str(data.get("name") or os.path.basename(path)),
            last_accessed=float(data.get("last_accessed", 0.0)),
            is_file=bool(data.get("is_file", True)),
            size=int(data.get("size", 0)),
        )
