"""Create, rename, copy, move and delete with recycle-bin safety.

Every operation checks the permission gate first and reports its
outcome as an OperationResult instead of raising. Deletes never unlink
directly: files go to the recycle bin, and so does anything an
overwrite would replace.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from filekeep.core.errors import (
    AlreadyExistsError,
    ErrorKind,
    FilekeepError,
    InvalidNameError,
    NotFoundError,
    UnsupportedOperationError,
    error_from_os,
)
from filekeep.core.paths import is_within
from filekeep.models.recycle import RecycleBinItem
from filekeep.storage.permissions import PermissionGate
from filekeep.storage.recycle_bin import RecycleBin

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Result of a single mutation.

    Attributes:
        path: Absolute path the operation targeted.
        success: Whether the operation completed successfully.
        error: Error message if the operation failed, None otherwise.
        error_kind: Failure category, None on success.
        destination: Resulting path for rename/copy/move.
        recycled: Items sent to the recycle bin along the way.
    """

    path: str
    success: bool
    error: str | None = None
    error_kind: ErrorKind | None = None
    destination: str | None = None
    recycled: tuple[RecycleBinItem, ...] = ()


def validate_name(name: str) -> str:
    """Check a single file or directory name.

    Raises:
        InvalidNameError: If the name is empty, "." or "..", or contains
            a path separator or NUL byte.
    """
    if not name or not name.strip():
        raise InvalidNameError("Name cannot be empty")
    if name in (".", ".."):
        raise InvalidNameError(f"Invalid name: {name!r}")
    if "/" in name or os.sep in name or "\0" in name:
        raise InvalidNameError(f"Name cannot contain a path separator: {name!r}")
    return name


class MutationOps:
    """Mutating storage operations.

    There is no per-path locking: two processes racing on the same path
    may both pass the existence checks.

    Args:
        gate: Permission gate consulted before every operation.
        recycle_bin: Destination for deleted and overwritten items.
    """

    def __init__(self, gate: PermissionGate, recycle_bin: RecycleBin) -> None:
        self._gate = gate
        self._recycle_bin = recycle_bin

    def create_file(self, path: str | Path, content: bytes = b"") -> OperationResult:
        """Create a new file; never replaces an existing one."""
        target = _abspath(path)
        try:
            validate_name(os.path.basename(target))
            self._gate.require(target, write=True)
            self._require_parent(target)
            with open(target, "xb") as f:
                f.write(content)
        except FilekeepError as e:
            return _failure(target, e)
        except OSError as e:
            return _failure(target, error_from_os(e, target, "create"))
        logger.info("Created file %s", target)
        return OperationResult(path=target, success=True)

    def create_directory(self, path: str | Path, parents: bool = False) -> OperationResult:
        """Create a directory (and, with parents, any missing ancestors)."""
        target = _abspath(path)
        try:
            validate_name(os.path.basename(target))
            self._gate.require(target, write=True)
            if os.path.lexists(target):
                raise AlreadyExistsError(f"Already exists: {target}", target)
            if parents:
                os.makedirs(target)
            else:
                self._require_parent(target)
                os.mkdir(target)
        except FilekeepError as e:
            return _failure(target, e)
        except OSError as e:
            return _failure(target, error_from_os(e, target, "create"))
        logger.info("Created directory %s", target)
        return OperationResult(path=target, success=True)

    def rename(self, path: str | Path, new_name: str) -> OperationResult:
        """Rename an item in place, keeping its parent directory."""
        source = _abspath(path)
        try:
            validate_name(new_name)
            destination = os.path.join(os.path.dirname(source), new_name)
            self._require_exists(source)
            self._gate.require(source, write=True)
            if destination != source and os.path.lexists(destination):
                raise AlreadyExistsError(f"Already exists: {destination}", destination)
            os.rename(source, destination)
        except FilekeepError as e:
            return _failure(source, e)
        except OSError as e:
            return _failure(source, error_from_os(e, source, "rename"))
        logger.info("Renamed %s to %s", source, new_name)
        return OperationResult(path=source, success=True, destination=destination)

    def copy(self, src: str | Path, dst: str | Path, overwrite: bool = False) -> OperationResult:
        """Copy a file or directory tree to dst.

        With overwrite, an existing dst is recycled first.
        """
        return self._transfer(src, dst, overwrite=overwrite, move=False)

    def move(self, src: str | Path, dst: str | Path, overwrite: bool = False) -> OperationResult:
        """Move a file or directory tree to dst.

        With overwrite, an existing dst is recycled first.
        """
        return self._transfer(src, dst, overwrite=overwrite, move=True)

    def delete(self, path: str | Path) -> OperationResult:
        """Soft-delete a file or directory.

        A directory is deleted by recycling every file below it and then
        removing the emptied directories. Files that cannot be recycled
        stay where they are, along with their parent directories.
        """
        target = _abspath(path)
        try:
            self._require_exists(target)
            self._gate.require(target, write=True)
            if os.path.isdir(target) and not os.path.islink(target):
                return self._delete_tree(target)
            item = self._recycle_bin.move_to_recycle_bin(target)
        except FilekeepError as e:
            return _failure(target, e)
        return OperationResult(path=target, success=True, recycled=(item,))

    def _transfer(
        self,
        src: str | Path,
        dst: str | Path,
        *,
        overwrite: bool,
        move: bool,
    ) -> OperationResult:
        source = _abspath(src)
        destination = _abspath(dst)
        verb = "move" if move else "copy"
        recycled: tuple[RecycleBinItem, ...] = ()
        try:
            validate_name(os.path.basename(destination))
            self._require_exists(source)
            self._gate.require(source, write=move)
            self._gate.require(destination, write=True)
            if source == destination:
                raise UnsupportedOperationError(
                    f"Source and destination are the same: {source}", source
                )
            if os.path.isdir(source) and is_within(destination, source):
                raise UnsupportedOperationError(
                    f"Cannot {verb} a directory into itself: {source}", source
                )
            self._require_parent(destination)
            if os.path.lexists(destination):
                if not overwrite:
                    raise AlreadyExistsError(f"Already exists: {destination}", destination)
                replaced = self.delete(destination)
                if not replaced.success:
                    return OperationResult(
                        path=source,
                        success=False,
                        error=f"Cannot replace {destination}: {replaced.error}",
                        error_kind=replaced.error_kind,
                        destination=destination,
                        recycled=replaced.recycled,
                    )
                recycled = replaced.recycled

            if move:
                shutil.move(source, destination)
            elif os.path.isdir(source) and not os.path.islink(source):
                shutil.copytree(source, destination, symlinks=True)
            else:
                shutil.copy2(source, destination, follow_symlinks=False)
        except FilekeepError as e:
            return _failure(source, e, destination=destination, recycled=recycled)
        except OSError as e:
            return _failure(
                source,
                error_from_os(e, source, verb),
                destination=destination,
                recycled=recycled,
            )

        logger.info("%s %s to %s", "Moved" if move else "Copied", source, destination)
        return OperationResult(
            path=source,
            success=True,
            destination=destination,
            recycled=recycled,
        )

    def _delete_tree(self, root: str) -> OperationResult:
        if is_within(self._recycle_bin.holding_dir, root):
            raise UnsupportedOperationError(
                f"Cannot delete a directory containing the recycle bin: {root}", root
            )

        recycled: list[RecycleBinItem] = []
        failures: list[FilekeepError] = []

        def on_error(e: OSError) -> None:
            failures.append(error_from_os(e, e.filename or root, "read"))

        for dirpath, dirnames, filenames in os.walk(root, topdown=False, onerror=on_error):
            # Symlinks to directories are recycled as links, not followed
            links = [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
            for name in filenames + links:
                try:
                    recycled.append(
                        self._recycle_bin.move_to_recycle_bin(os.path.join(dirpath, name))
                    )
                except FilekeepError as e:
                    failures.append(e)
            try:
                os.rmdir(dirpath)
            except OSError as e:
                if not failures:
                    failures.append(error_from_os(e, dirpath, "remove"))

        if failures:
            for failure in failures:
                logger.debug("Delete of %s incomplete: %s", root, failure)
            return OperationResult(
                path=root,
                success=False,
                error=f"{len(failures)} item(s) under {root} could not be deleted: {failures[0]}",
                error_kind=failures[0].kind,
                recycled=tuple(recycled),
            )
        logger.info("Deleted directory %s (%d files recycled)", root, len(recycled))
        return OperationResult(path=root, success=True, recycled=tuple(recycled))

    @staticmethod
    def _require_exists(path: str) -> None:
        if not os.path.lexists(path):
            raise NotFoundError(f"No such file or directory: {path}", path)

    @staticmethod
    def _require_parent(path: str) -> None:
        parent = os.path.dirname(path)
        if not os.path.isdir(parent):
            raise NotFoundError(f"Parent directory does not exist: {parent}", parent)


def _abspath(path: str | Path) -> str:
    return os.path.abspath(os.fspath(path))


def _failure(
    path: str,
    error: FilekeepError,
    *,
    destination: str | None = None,
    recycled: tuple[RecycleBinItem, ...] = (),
) -> OperationResult:
    logger.debug("Operation on %s failed: %s", path, error)
    return OperationResult(
        path=path,
        success=False,
        error=str(error),
        error_kind=error.kind,
        destination=destination,
        recycled=recycled,
    )
