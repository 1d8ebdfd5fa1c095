"""Single-level directory listing.

DirectoryReader turns one directory's children into normalized Entry
instances. Per-child failures (vanished files, dangling symlinks,
unreadable subdirectories) degrade to warnings instead of aborting the
listing.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import overload

from filekeep.core.errors import NotFoundError, UnsupportedOperationError, error_from_os
from filekeep.models.entry import Entry, EntryKind
from filekeep.storage.permissions import PermissionGate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DirectoryListing(Sequence[Entry]):
    """Entries of one directory plus soft warnings.

    Ordering is whatever the filesystem returned; use sort_entries()
    for presentation.

    Attributes:
        path: Directory that was listed.
        entries: Normalized child entries.
        warnings: One message per child that could not be fully read.
    """

    path: str
    entries: tuple[Entry, ...]
    warnings: tuple[str, ...] = ()

    @overload
    def __getitem__(self, index: int) -> Entry: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Entry]: ...

    def __getitem__(self, index: int | slice) -> Entry | Sequence[Entry]:
        return self.entries[index]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)


class DirectoryReader:
    """Lists directories one level at a time.

    Args:
        gate: Permission gate consulted before every listing.
        include_hidden: Default for listing dot-entries.
        skip_names: Child names never reported (e.g. the recycle bin
            holding directory).
    """

    def __init__(
        self,
        gate: PermissionGate,
        *,
        include_hidden: bool = False,
        skip_names: frozenset[str] = frozenset(),
    ) -> None:
        self._gate = gate
        self._include_hidden = include_hidden
        self._skip_names = skip_names

    def list(
        self,
        path: str | Path,
        *,
        include_hidden: bool | None = None,
        count_children: bool = True,
    ) -> DirectoryListing:
        """List the immediate children of a directory.

        Args:
            path: Directory to list.
            include_hidden: Override the reader's hidden-entry default.
            count_children: Populate child_count for subdirectories with a
                secondary listing.

        Returns:
            DirectoryListing with entries and per-child warnings.

        Raises:
            AccessDeniedError: If the gate or the OS refuses access.
            NotFoundError: If the directory does not exist.
            UnsupportedOperationError: If path is not a directory.
        """
        directory = os.path.abspath(os.fspath(path))
        self._gate.require(directory)

        show_hidden = self._include_hidden if include_hidden is None else include_hidden
        entries: list[Entry] = []
        warnings: list[str] = []

        try:
            with os.scandir(directory) as it:
                children = list(it)
        except NotADirectoryError as e:
            raise UnsupportedOperationError(f"Not a directory: {directory}", directory) from e
        except OSError as e:
            raise error_from_os(e, directory, "list") from e

        for child in children:
            if child.name in self._skip_names:
                continue
            if not show_hidden and child.name.startswith("."):
                continue
            entry = self._read_child(child, count_children, warnings)
            if entry is not None:
                entries.append(entry)

        return DirectoryListing(path=directory, entries=tuple(entries), warnings=tuple(warnings))

    def stat(self, path: str | Path, *, count_children: bool = True) -> Entry:
        """Normalize a single path into an Entry.

        Raises:
            AccessDeniedError: If the gate or the OS refuses access.
            NotFoundError: If the path does not exist.
        """
        target = os.path.abspath(os.fspath(path))
        self._gate.require(target)

        try:
            st = os.stat(target)
        except FileNotFoundError:
            if os.path.islink(target):
                return Entry(name=os.path.basename(target), path=target, kind=EntryKind.FILE)
            raise NotFoundError(f"No such file or directory: {target}", target) from None
        except OSError as e:
            raise error_from_os(e, target, "stat") from e

        is_dir = os.path.isdir(target)
        child_count = None
        if is_dir:
            child_count = self._count_children(target, []) if count_children else None
        return Entry(
            name=os.path.basename(target.rstrip(os.sep)) or target,
            path=target,
            kind=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
            size=0 if is_dir else st.st_size,
            modified_time=st.st_mtime,
            child_count=child_count,
        )

    def _read_child(
        self,
        child: os.DirEntry[str],
        count_children: bool,
        warnings: list[str],
    ) -> Entry | None:
        """Build an Entry for one child, degrading on stat failures."""
        try:
            st = child.stat(follow_symlinks=True)
        except FileNotFoundError:
            if child.is_symlink():
                self._warn(warnings, f"Dangling symlink: {child.path}")
                return Entry(name=child.name, path=child.path, kind=EntryKind.FILE)
            self._warn(warnings, f"Vanished during listing: {child.path}")
            return None
        except OSError as e:
            self._warn(warnings, f"Cannot stat {child.path}: {e.strerror or e}")
            is_dir = _safe_is_dir(child)
            return Entry(
                name=child.name,
                path=child.path,
                kind=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
                child_count=0 if is_dir else None,
            )

        if _safe_is_dir(child):
            child_count = self._count_children(child.path, warnings) if count_children else None
            return Entry(
                name=child.name,
                path=child.path,
                kind=EntryKind.DIRECTORY,
                modified_time=st.st_mtime,
                child_count=child_count,
            )

        return Entry(
            name=child.name,
            path=child.path,
            kind=EntryKind.FILE,
            size=st.st_size,
            modified_time=st.st_mtime,
        )

    def _count_children(self, path: str, warnings: list[str]) -> int:
        try:
            with os.scandir(path) as it:
                return sum(1 for _ in it)
        except OSError as e:
            self._warn(warnings, f"Cannot read subdirectory {path}: {e.strerror or e}")
            return 0

    @staticmethod
    def _warn(warnings: list[str], message: str) -> None:
        logger.debug(message)
        warnings.append(message)


def _safe_is_dir(child: os.DirEntry[str]) -> bool:
    try:
        return child.is_dir(follow_symlinks=True)
    except OSError:
        return False
