"""Disk capacity of the volume holding the storage root."""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from filekeep.core.errors import error_from_os
from filekeep.storage.permissions import PermissionGate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StorageInfo:
    """Totals for one volume, in bytes.

    Attributes:
        path: Path the totals were measured at.
        total: Capacity of the volume.
        used: Capacity minus free space.
        free: Space available.
    """

    path: str
    total: int
    used: int
    free: int

    @property
    def percent_used(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.used / self.total * 100

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "total": self.total,
            "used": self.used,
            "free": self.free,
        }


def storage_info(path: str | Path, gate: PermissionGate) -> StorageInfo:
    """Measure the volume path lives on.

    Used space is derived from capacity and free space, so space
    reserved for the superuser counts as used.

    Raises:
        AccessDeniedError: If the gate refuses to read path.
        NotFoundError: If path does not exist.
        IOFailureError: If the volume cannot be measured.
    """
    target = os.path.abspath(os.fspath(path))
    gate.require(target)
    try:
        usage = shutil.disk_usage(target)
    except OSError as e:
        raise error_from_os(e, target, "measure") from e
    info = StorageInfo(
        path=target, total=usage.total, used=usage.total - usage.free, free=usage.free
    )
    logger.debug("Storage at %s: %d of %d bytes free", target, info.free, info.total)
    return info
