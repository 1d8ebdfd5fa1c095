"""Recycle bin commands.

Provides commands to list, restore, purge and empty soft-deleted items,
and to reconcile the holding directory with its metadata.
"""

from typing import Annotated

import typer

from filekeep.cli.display import create_recycle_table, create_results_table, print_warnings
from filekeep.cli.types import exit_with_error, get_storage, record_history
from filekeep.core.errors import FilekeepError
from filekeep.models.history import HistoryActionType
from filekeep.models.recycle import RecycleBinItem
from filekeep.storage.context import StorageContext
from filekeep.storage.history import items_from_recycle_results
from filekeep.utils.formatting import console, format_size, print_error, print_info, print_success

app = typer.Typer(
    help="Manage the recycle bin.",
    no_args_is_help=True,
)


@app.command("list")
def list_items() -> None:
    """List recycled items, newest first."""
    storage = get_storage()
    try:
        items = storage.recycle_bin.list()
        total = storage.recycle_bin.total_size()
    except FilekeepError as e:
        exit_with_error(e)
    _print_repairs(storage)

    if not items:
        print_info("Recycle bin is empty.")
        return
    console.print(create_recycle_table(items))
    console.print(f"\n[dim]{len(items)} items ({format_size(total)} total)[/dim]")


@app.command()
def restore(
    item_id: Annotated[str, typer.Argument(help="ID of the item to restore.")],
) -> None:
    """Move an item back to where it was deleted from."""
    storage = get_storage()
    item = _require_item(storage, item_id)

    result = storage.recycle_bin.restore(item)
    if not result.success:
        print_error(result.error or "Restore failed")
        raise typer.Exit(code=1)

    print_success(f"Restored {item.original_name} to {item.original_path}")
    record_history(
        storage,
        HistoryActionType.RESTORE,
        items_from_recycle_results([result]),
        command="filekeep bin restore",
    )


@app.command()
def purge(
    item_id: Annotated[str, typer.Argument(help="ID of the item to delete permanently.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Permanently delete one item."""
    storage = get_storage()
    item = _require_item(storage, item_id)

    if not yes:
        confirmed = typer.confirm(
            f"Permanently delete {item.original_name}? This cannot be undone.",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    result = storage.recycle_bin.purge(item)
    if not result.success:
        print_error(result.error or "Purge failed")
        raise typer.Exit(code=1)

    print_success(f"Permanently deleted {item.original_name}")
    record_history(
        storage,
        HistoryActionType.PURGE,
        items_from_recycle_results([result]),
        command="filekeep bin purge",
    )


@app.command()
def empty(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Permanently delete every item in the recycle bin."""
    storage = get_storage()
    try:
        items = storage.recycle_bin.list()
    except FilekeepError as e:
        exit_with_error(e)
    _print_repairs(storage)

    if not items:
        print_info("Recycle bin is already empty.")
        return

    if not yes:
        confirmed = typer.confirm(
            f"Permanently delete {len(items)} item(s)? This cannot be undone.",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    try:
        batch = storage.recycle_bin.empty_all()
    except FilekeepError as e:
        exit_with_error(e)
    record_history(
        storage,
        HistoryActionType.EMPTY,
        items_from_recycle_results(batch.succeeded),
        command="filekeep bin empty",
    )

    if batch.failed:
        console.print(create_results_table(batch.failed))
        print_error(f"{len(batch.failed)} of {len(batch.results)} items could not be deleted.")
        raise typer.Exit(code=1)
    print_success(f"Recycle bin emptied ({len(batch.succeeded)} items).")


@app.command()
def reconcile() -> None:
    """Repair metadata that disagrees with the holding directory."""
    storage = get_storage()
    try:
        report = storage.recycle_bin.initialize()
    except FilekeepError as e:
        exit_with_error(e)

    if report.clean:
        print_success("Recycle bin is consistent.")
        return
    for diagnostic in report.diagnostics:
        console.print(f"[warning]-[/warning] {diagnostic}")
    print_success(
        f"Rebuilt {report.rebuilt} record(s), removed {report.removed_sidecars} stale sidecar(s)."
    )


def _require_item(storage: StorageContext, item_id: str) -> RecycleBinItem:
    """Look up an item or exit with an error."""
    try:
        item = storage.recycle_bin.get(item_id)
    except FilekeepError as e:
        exit_with_error(e)
    if item is None:
        print_error(f"No recycle bin item with ID {item_id}")
        print_info("Run 'filekeep bin list' to see item IDs.")
        raise typer.Exit(code=1)
    return item


def _print_repairs(storage: StorageContext) -> None:
    """Show what the first-use reconciliation of the bin repaired."""
    report = storage.recycle_bin.startup_report
    if report is None or report.clean:
        return
    print_warnings([str(diagnostic) for diagnostic in report.diagnostics])
    print_info(
        f"Recycle bin repaired: rebuilt {report.rebuilt} record(s), "
        f"removed {report.removed_sidecars} stale sidecar(s)."
    )
