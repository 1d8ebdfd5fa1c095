"""Recycle bin item model.

A RecycleBinItem is the immutable metadata record for one soft-deleted
file. It is persisted as a ``.meta`` sidecar next to the recycled file
inside the holding directory.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from filekeep.models.entry import file_type_for

META_SUFFIX = ".meta"


def _normalize_deleted_at(value: Any) -> str:
    """Accept an ISO string or epoch milliseconds and return ISO 8601 UTC."""
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value / 1000, tz=UTC).isoformat()
    if isinstance(value, str) and value:
        # Validate; raises ValueError on garbage
        datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value
    msg = f"Invalid deletedAt value: {value!r}"
    raise ValueError(msg)


def split_recycle_name(recycle_name: str) -> tuple[str, str] | None:
    """Split a holding-area file name into (token, original name).

    Args:
        recycle_name: File name of the form ``{token}_{originalName}``.

    Returns:
        Tuple of token and original name, or None if the name does not
        carry a numeric token.
    """
    token, sep, original = recycle_name.partition("_")
    if not sep or not token.isdigit() or not original:
        return None
    return token, original


@dataclass(frozen=True, slots=True)
class RecycleBinItem:
    """Metadata record for one soft-deleted file.

    Attributes:
        id: Time-based unique token assigned at deletion.
        original_path: Absolute path the file was deleted from.
        original_name: Base name of the file before deletion.
        recycle_path: Current location inside the holding directory.
        deleted_at: Deletion time (ISO 8601 format with timezone).
        size: Size in bytes at deletion time.
        type: Display category derived from the extension.
        reconstructed: True if the record was rebuilt during reconciliation
            and original_path is a best guess.
    """

    id: str
    original_path: str
    original_name: str
    recycle_path: str
    deleted_at: str
    size: int = 0
    type: str = "other"
    reconstructed: bool = False

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.id:
            msg = "Recycle bin item ID cannot be empty"
            raise ValueError(msg)
        if not self.original_path:
            msg = "Original path cannot be empty"
            raise ValueError(msg)
        if not self.recycle_path:
            msg = "Recycle path cannot be empty"
            raise ValueError(msg)

    @property
    def meta_path(self) -> str:
        """Path of the sidecar metadata file."""
        return self.recycle_path + META_SUFFIX

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for display and JSON output."""
        return {
            "id": self.id,
            "original_path": self.original_path,
            "original_name": self.original_name,
            "recycle_path": self.recycle_path,
            "deleted_at": self.deleted_at,
            "size": self.size,
            "type": self.type,
            "reconstructed": self.reconstructed,
        }

    def to_sidecar(self) -> str:
        """Serialize to the sidecar JSON document.

        The holding path is implied by the sidecar's own location and
        is not stored.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "originalPath": self.original_path,
            "fileName": self.original_name,
            "deletedAt": self.deleted_at,
            "size": self.size,
        }
        if self.reconstructed:
            data["reconstructed"] = True
        return json.dumps(data, separators=(",", ":"))

    @classmethod
    def from_sidecar(cls, text: str, recycle_path: str) -> "RecycleBinItem":
        """Deserialize a sidecar document.

        Accepts both the full schema and the minimal
        ``{originalPath, deletedAt, fileName}`` shape, where deletedAt
        may be epoch milliseconds. A missing id is recovered from the
        holding-area file name.

        Args:
            text: Sidecar JSON content.
            recycle_path: Path of the recycled file the sidecar describes.

        Raises:
            json.JSONDecodeError: If text is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If field values are invalid.
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            msg = "Sidecar must contain a JSON object"
            raise ValueError(msg)

        recycle_name = recycle_path.replace("\\", "/").rsplit("/", 1)[-1]
        item_id = data.get("id")
        if not item_id:
            parsed = split_recycle_name(recycle_name)
            if parsed is None:
                msg = f"Cannot determine item id for {recycle_name}"
                raise ValueError(msg)
            item_id = parsed[0]

        original_path = data["originalPath"]
        if not isinstance(original_path, str):
            msg = f"originalPath must be a string, got {original_path!r}"
            raise ValueError(msg)
        original_name = str(data.get("fileName") or original_path.rsplit("/", 1)[-1])
        return cls(
            id=str(item_id),
            original_path=original_path,
            original_name=original_name,
            recycle_path=recycle_path,
            deleted_at=_normalize_deleted_at(data["deletedAt"]),
            size=int(data.get("size", 0)),
            type=file_type_for(original_name),
            reconstructed=bool(data.get("reconstructed", False)),
        )
