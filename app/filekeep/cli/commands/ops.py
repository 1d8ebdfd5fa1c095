"""File operation commands.

Provides mkdir, touch, rename, cp, mv and rm. Deletions and overwrites
go through the recycle bin, so they can be undone with
`filekeep bin restore`.
"""

from pathlib import Path
from typing import Annotated

import typer

from filekeep.cli.display import create_results_table
from filekeep.cli.types import get_storage, print_guidance, record_history
from filekeep.core.errors import ErrorKind
from filekeep.models.history import HistoryActionType
from filekeep.storage.context import StorageContext
from filekeep.storage.history import items_from_operation
from filekeep.storage.operations import OperationResult
from filekeep.storage.permissions import FULL_ACCESS_GUIDANCE
from filekeep.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Create, rename, copy, move and delete files.",
    no_args_is_help=True,
)

Overwrite = Annotated[
    bool,
    typer.Option("--overwrite", help="Recycle an existing destination first."),
]


@app.command()
def mkdir(
    path: Annotated[Path, typer.Argument(help="Directory to create.")],
    parents: Annotated[
        bool,
        typer.Option("--parents", "-p", help="Create missing parent directories."),
    ] = False,
) -> None:
    """Create a directory."""
    storage = get_storage()
    result = storage.ops.create_directory(path, parents=parents)
    _finish(storage, result, HistoryActionType.CREATE_DIRECTORY, "filekeep ops mkdir")
    print_success(f"Created {result.path}")


@app.command()
def touch(
    path: Annotated[Path, typer.Argument(help="File to create.")],
) -> None:
    """Create an empty file. Existing files are left alone."""
    storage = get_storage()
    result = storage.ops.create_file(path)
    _finish(storage, result, HistoryActionType.CREATE_FILE, "filekeep ops touch")
    print_success(f"Created {result.path}")


@app.command()
def rename(
    path: Annotated[Path, typer.Argument(help="File or directory to rename.")],
    new_name: Annotated[str, typer.Argument(help="New name (no path separators).")],
) -> None:
    """Rename a file or directory in place."""
    storage = get_storage()
    result = storage.ops.rename(path, new_name)
    _finish(storage, result, HistoryActionType.RENAME, "filekeep ops rename")
    print_success(f"Renamed to {result.destination}")


@app.command()
def cp(
    src: Annotated[Path, typer.Argument(help="File or directory to copy.")],
    dst: Annotated[Path, typer.Argument(help="Destination path.")],
    overwrite: Overwrite = False,
) -> None:
    """Copy a file or directory tree."""
    storage = get_storage()
    result = storage.ops.copy(src, dst, overwrite=overwrite)
    _finish(storage, result, HistoryActionType.COPY, "filekeep ops cp")
    print_success(f"Copied to {result.destination}")
    _report_replaced(result)


@app.command()
def mv(
    src: Annotated[Path, typer.Argument(help="File or directory to move.")],
    dst: Annotated[Path, typer.Argument(help="Destination path.")],
    overwrite: Overwrite = False,
) -> None:
    """Move a file or directory tree."""
    storage = get_storage()
    result = storage.ops.move(src, dst, overwrite=overwrite)
    _finish(storage, result, HistoryActionType.MOVE, "filekeep ops mv")
    print_success(f"Moved to {result.destination}")
    _report_replaced(result)


@app.command()
def rm(
    paths: Annotated[list[Path], typer.Argument(help="Files or directories to delete.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Move files or directories to the recycle bin."""
    storage = get_storage()

    if not yes:
        confirmed = typer.confirm(
            f"Move {len(paths)} path(s) to the recycle bin?",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    results = [storage.ops.delete(path) for path in paths]
    record_history(
        storage,
        HistoryActionType.DELETE,
        [item for r in results for item in items_from_operation(r)],
        command="filekeep ops rm",
        reversible=True,
    )

    recycled = sum(len(r.recycled) for r in results)
    failed = [r for r in results if not r.success]
    if failed:
        console.print(create_results_table(results))
        _print_guidance_if_denied(failed)
        print_error(f"{len(failed)} of {len(results)} path(s) could not be deleted.")
        raise typer.Exit(code=1)
    print_success(f"Moved {recycled} file(s) to the recycle bin.")


def _finish(
    storage: StorageContext,
    result: OperationResult,
    action_type: HistoryActionType,
    command: str,
) -> None:
    """Record the operation in history, then exit 1 if it failed.

    A failed copy or move may already have recycled its destination,
    so anything recycled is recorded either way.
    """
    record_history(
        storage,
        action_type,
        items_from_operation(result),
        command=command,
        reversible=bool(result.recycled),
    )
    if not result.success:
        print_error(result.error or "Operation failed")
        _print_guidance_if_denied([result])
        raise typer.Exit(code=1)


def _report_replaced(result: OperationResult) -> None:
    if result.recycled:
        count = len(result.recycled)
        print_info(f"Previous destination moved to the recycle bin ({count} file(s)).")


def _print_guidance_if_denied(results: list[OperationResult]) -> None:
    if any(r.error_kind == ErrorKind.ACCESS_DENIED for r in results):
        print_guidance(FULL_ACCESS_GUIDANCE)
