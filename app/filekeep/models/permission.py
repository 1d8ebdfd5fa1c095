"""Permission models for the storage access gate."""

from dataclasses import dataclass
from enum import Enum


class PermissionKind(str, Enum):
    """Platform permission that can be checked or requested.

    Attributes:
        READ_IMAGES: Scoped read access to images.
        READ_VIDEO: Scoped read access to video.
        READ_AUDIO: Scoped read access to audio.
        READ_LEGACY_STORAGE: Broad legacy read grant.
        WRITE_LEGACY_STORAGE: Broad legacy write grant.
        MANAGE_ALL_FILES: Elevated grant covering the whole filesystem.
    """

    READ_IMAGES = "read-images"
    READ_VIDEO = "read-video"
    READ_AUDIO = "read-audio"
    READ_LEGACY_STORAGE = "read-legacy-storage"
    WRITE_LEGACY_STORAGE = "write-legacy-storage"
    MANAGE_ALL_FILES = "manage-all-files"


MEDIA_KINDS: tuple[PermissionKind, ...] = (
    PermissionKind.READ_IMAGES,
    PermissionKind.READ_VIDEO,
    PermissionKind.READ_AUDIO,
)

LEGACY_KINDS: tuple[PermissionKind, ...] = (
    PermissionKind.READ_LEGACY_STORAGE,
    PermissionKind.WRITE_LEGACY_STORAGE,
)


class AccessTier(str, Enum):
    """Logical capability tier derived from the individual grants.

    Attributes:
        NONE: No storage access.
        SCOPED_MEDIA: Media categories or legacy storage, excluding
            restricted directories.
        FULL_FILESYSTEM: Everything the process can physically reach.
    """

    NONE = "none"
    SCOPED_MEDIA = "scoped-media"
    FULL_FILESYSTEM = "full-filesystem"


class AccessResult(str, Enum):
    """Outcome of an access check for one path.

    Attributes:
        GRANTED: Full access.
        DEGRADED: Access through scoped-media grants only.
        DENIED: No access; callers must not touch the path.
    """

    GRANTED = "granted"
    DEGRADED = "degraded"
    DENIED = "denied"

    @property
    def allowed(self) -> bool:
        """Whether the caller may proceed."""
        return self != AccessResult.DENIED


@dataclass(frozen=True, slots=True)
class PermissionState:
    """Cached result of probing the permission oracle.

    Never persisted; recomputed lazily per process and on refresh.

    Attributes:
        granted: Whether any storage tier is available.
        full_access: Whether full-filesystem access is available.
        tier: The derived capability tier.
        checked_at: Epoch seconds when the probe ran.
    """

    granted: bool
    full_access: bool
    tier: AccessTier
    checked_at: float
