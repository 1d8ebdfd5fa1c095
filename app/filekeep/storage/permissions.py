"""Permission probing and the storage access gate.

The gate turns individual platform grants into one of three capability
tiers (none, scoped-media, full-filesystem) and answers, per path,
whether a storage operation may proceed. Every other storage component
consults it before touching a path outside the app sandbox.
"""

import logging
import os
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Protocol

from filekeep.core.errors import AccessDeniedError
from filekeep.core.paths import get_state_dir, is_within
from filekeep.core.store import INSTRUCTIONS_SHOWN_KEY, KeyValueStore, StoreError
from filekeep.models.permission import (
    LEGACY_KINDS,
    MEDIA_KINDS,
    AccessResult,
    AccessTier,
    PermissionKind,
    PermissionState,
)

logger = logging.getLogger(__name__)

FULL_ACCESS_GUIDANCE = (
    "filekeep needs full file access to reach this location.\n"
    "1. Open your system settings for filekeep\n"
    "2. Open 'Permissions'\n"
    "3. Enable 'All files access' (manage all files)\n"
    "4. Run 'filekeep access status' to check again"
)


class PermissionOracle(Protocol):
    """Platform capability check.

    Implementations wrap whatever the host platform offers; the gate
    treats them as opaque boolean oracles.
    """

    def check(self, kind: PermissionKind) -> bool: ...

    def request(self, kind: PermissionKind) -> bool: ...


class ConfiguredPermissionOracle:
    """Oracle answering from a configured set of granted kinds.

    Desktop processes have no runtime permission dialogs, so request()
    behaves like check().
    """

    def __init__(self, granted: Iterable[PermissionKind]) -> None:
        self._granted = frozenset(granted)

    def check(self, kind: PermissionKind) -> bool:
        return kind in self._granted

    def request(self, kind: PermissionKind) -> bool:
        return self.check(kind)


class PermissionGate:
    """Decides whether storage paths may be read or written.

    The PermissionState is computed lazily on first use and cached on
    the gate; refresh() recomputes it. Only the "instructions already
    shown" flag is persisted.

    Args:
        oracle: Platform permission oracle.
        store: Key-value store holding the instructions flag.
        restricted_dirs: Directories only full-filesystem access can list;
            they double as the empirical full-access probe.
        sandbox_dir: App-private directory that never needs a grant.
        presenter: Called with guidance text the first time access is denied.
    """

    def __init__(
        self,
        oracle: PermissionOracle,
        store: KeyValueStore,
        *,
        restricted_dirs: Iterable[Path] = (),
        sandbox_dir: Path | None = None,
        presenter: Callable[[str], None] | None = None,
    ) -> None:
        self._oracle = oracle
        self._store = store
        self._restricted_dirs = tuple(restricted_dirs)
        self._sandbox_dir = sandbox_dir if sandbox_dir is not None else get_state_dir()
        self._presenter = presenter
        self._state: PermissionState | None = None

    @property
    def state(self) -> PermissionState:
        """Cached permission state, probing on first access."""
        if self._state is None:
            self._state = self._probe()
        return self._state

    def refresh(self) -> PermissionState:
        """Discard the cached state and probe again."""
        self._state = self._probe()
        return self._state

    def reset(self) -> None:
        """Forget the cached state and the persisted instructions flag."""
        self._state = None
        try:
            self._store.delete(INSTRUCTIONS_SHOWN_KEY)
        except StoreError as e:
            logger.warning("Cannot reset instructions flag: %s", e)

    @staticmethod
    def guidance() -> str:
        """Actionable instructions for granting full file access."""
        return FULL_ACCESS_GUIDANCE

    def ensure_access(self, path: str | Path, *, write: bool = False) -> AccessResult:
        """Check whether path may be accessed.

        Any failure while resolving the decision is treated as DENIED.
        A denial triggers the one-time instruction flow.

        Args:
            path: Path about to be read or written.
            write: Whether the caller intends to modify the path.

        Returns:
            GRANTED, DEGRADED (scoped-media tier) or DENIED.
        """
        try:
            result = self._decide(Path(path), write=write)
        except Exception as e:  # noqa: BLE001
            logger.warning("Cannot resolve access for %s: %s", path, e)
            result = AccessResult.DENIED

        if result == AccessResult.DENIED:
            self._show_instructions_once()
        return result

    def require(self, path: str | Path, *, write: bool = False) -> AccessResult:
        """Like ensure_access(), but raise when access is denied.

        Raises:
            AccessDeniedError: If the gate denies access.
        """
        result = self.ensure_access(path, write=write)
        if not result.allowed:
            verb = "write to" if write else "read"
            raise AccessDeniedError(
                f"Permission denied: cannot {verb} {path}",
                str(path),
                guidance=self.guidance(),
            )
        return result

    def instructions_shown(self) -> bool:
        """Whether the instruction flow has already run."""
        return bool(self._store.get(INSTRUCTIONS_SHOWN_KEY, False))

    def _decide(self, path: Path, *, write: bool) -> AccessResult:
        if is_within(path, self._sandbox_dir):
            return AccessResult.GRANTED

        tier = self.state.tier
        if tier == AccessTier.NONE:
            return AccessResult.DENIED

        if write and not _nearest_existing_writable(path):
            return AccessResult.DENIED

        if tier == AccessTier.FULL_FILESYSTEM:
            return AccessResult.GRANTED

        if any(is_within(path, restricted) for restricted in self._restricted_dirs):
            return AccessResult.DENIED
        return AccessResult.DEGRADED

    def _probe(self) -> PermissionState:
        try:
            full = self._oracle.check(PermissionKind.MANAGE_ALL_FILES) or self._probe_full_access()
            media = all(self._oracle.check(kind) for kind in MEDIA_KINDS)
            legacy = all(self._oracle.check(kind) for kind in LEGACY_KINDS)
        except Exception as e:  # noqa: BLE001
            logger.warning("Permission probe failed, treating as denied: %s", e)
            full = media = legacy = False

        if full:
            tier = AccessTier.FULL_FILESYSTEM
        elif media or legacy:
            tier = AccessTier.SCOPED_MEDIA
        else:
            tier = AccessTier.NONE

        state = PermissionState(
            granted=tier != AccessTier.NONE,
            full_access=full,
            tier=tier,
            checked_at=time.time(),
        )
        logger.debug("Permission state: %s", state)
        return state

    def _probe_full_access(self) -> bool:
        """List known-restricted directories; any success implies full access.

        This is a heuristic, not a guarantee: a directory that happens to
        be readable for other reasons also counts.
        """
        for directory in self._restricted_dirs:
            if not directory.is_dir():
                continue
            try:
                with os.scandir(directory) as it:
                    next(it, None)
            except OSError as e:
                logger.debug("Full-access probe failed for %s: %s", directory, e)
                continue
            logger.debug("Full file access confirmed via %s", directory)
            return True
        return False

    def _show_instructions_once(self) -> None:
        try:
            if self.instructions_shown():
                return
            self._store.set(INSTRUCTIONS_SHOWN_KEY, True)
        except StoreError as e:
            logger.warning("Cannot persist instructions flag: %s", e)
            return

        if self._presenter is not None:
            self._presenter(self.guidance())


def _nearest_existing_writable(path: Path) -> bool:
    """Check write permission on path or its closest existing ancestor."""
    candidate = path
    while not candidate.exists():
        parent = candidate.parent
        if parent == candidate:
            return False
        candidate = parent
    return os.access(candidate, os.W_OK)
