"""Error taxonomy for storage operations.

Every failure the storage core can report maps onto one ErrorKind.
Single-item operations raise the matching FilekeepError subclass (or
carry the kind in a result object); batch operations collect them
per item instead of aborting.
"""

import errno
from enum import Enum


class ErrorKind(str, Enum):
    """Category of a storage failure.

    Attributes:
        ACCESS_DENIED: Permission not granted or path outside accessible roots.
        NOT_FOUND: Path vanished or never existed.
        ALREADY_EXISTS: Destination collision on create/copy/move/rename/restore.
        UNSUPPORTED: Operation not supported for this kind of node.
        INVALID_NAME: Name rejected by validation.
        PARTIAL_ENUMERATION: One subtree failed during a walk.
        RECYCLE_BIN_INCONSISTENCY: Metadata and holding area disagree.
        IO_FAILURE: Any other OS-level error.
    """

    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    UNSUPPORTED = "unsupported"
    INVALID_NAME = "invalid_name"
    PARTIAL_ENUMERATION = "partial_enumeration"
    RECYCLE_BIN_INCONSISTENCY = "recycle_bin_inconsistency"
    IO_FAILURE = "io_failure"


class FilekeepError(Exception):
    """Base exception for storage core errors.

    Attributes:
        kind: Error category.
        path: Path the error refers to, if any.
    """

    kind: ErrorKind = ErrorKind.IO_FAILURE

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class AccessDeniedError(FilekeepError):
    """Raised when the permission gate refuses access to a path.

    Attributes:
        guidance: Actionable instructions for granting access.
    """

    kind = ErrorKind.ACCESS_DENIED

    def __init__(self, message: str, path: str | None = None, guidance: str = "") -> None:
        super().__init__(message, path)
        self.guidance = guidance


class NotFoundError(FilekeepError):
    """Raised when a path does not exist."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(FilekeepError):
    """Raised when a destination already exists and overwrite is not allowed."""

    kind = ErrorKind.ALREADY_EXISTS


class UnsupportedOperationError(FilekeepError):
    """Raised when an operation does not apply to the given node."""

    kind = ErrorKind.UNSUPPORTED


class InvalidNameError(FilekeepError):
    """Raised when a file or directory name fails validation."""

    kind = ErrorKind.INVALID_NAME


class IOFailureError(FilekeepError):
    """Raised for unexpected OS-level failures on a single item."""

    kind = ErrorKind.IO_FAILURE


class RecycleBinInconsistencyError(FilekeepError):
    """Diagnostic for a metadata/holding-area mismatch."""

    kind = ErrorKind.RECYCLE_BIN_INCONSISTENCY


def error_from_os(exc: OSError, path: str, action: str = "access") -> FilekeepError:
    """Translate an OSError into the matching typed error.

    The message is kept short and free of raw errno codes.

    Args:
        exc: The original OS error.
        path: Path the operation targeted.
        action: Verb describing the failed operation (used in the message).

    Returns:
        A FilekeepError subclass instance (not raised).
    """
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return NotFoundError(f"Cannot {action} {path}: no such file or directory", path)
    if isinstance(exc, FileExistsError) or exc.errno == errno.EEXIST:
        return AlreadyExistsError(f"Cannot {action} {path}: already exists", path)
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return AccessDeniedError(f"Cannot {action} {path}: permission denied", path)
    reason = exc.strerror or exc.__class__.__name__
    return IOFailureError(f"Cannot {action} {path}: {reason}", path)
