"""Single-file commands.

This module provides `filekeep info` for opening a file's details,
`filekeep recent-files` for the files opened most recently, and
`filekeep usage` for the capacity of the storage volume.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from filekeep.cli.display import create_recent_files_table
from filekeep.cli.types import OutputFormat, exit_with_error, get_storage
from filekeep.core.errors import FilekeepError
from filekeep.core.store import StoreError
from filekeep.storage.usage import storage_info
from filekeep.utils.formatting import (
    console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)


def info(
    path: Annotated[Path, typer.Argument(help="File or directory to open.")],
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
) -> None:
    """Show details of a file or directory and add it to recent files.

    Examples:
        filekeep info ~/Download/report.pdf
        filekeep info ~/DCIM --format json
    """
    storage = get_storage()
    try:
        entry = storage.reader.stat(path)
    except FilekeepError as e:
        exit_with_error(e)

    try:
        storage.recent_files.add(entry)
    except StoreError as e:
        print_warning(f"Could not update recent files: {e}")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(entry.to_dict()))
        return

    console.print(f"[bold]{entry.name}[/bold]")
    console.print(f"  Path:     {entry.path}")
    console.print(f"  Type:     {entry.file_type}")
    if entry.is_dir:
        items = "-" if entry.child_count is None else str(entry.child_count)
        console.print(f"  Items:    {items}")
    else:
        console.print(f"  Size:     {format_size(entry.size)}")
    console.print(f"  Modified: {entry.modified_iso}")


def recent_files(
    clear: Annotated[
        bool,
        typer.Option("--clear", help="Forget all recent files."),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
) -> None:
    """Show (or clear) recently opened files, most recent first.

    Files that no longer exist are dropped from the list.
    """
    storage = get_storage()

    if clear:
        try:
            storage.recent_files.clear()
        except StoreError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_success("Recent files cleared.")
        return

    items = storage.recent_files.list()
    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps([item.to_dict() for item in items]))
        return
    if not items:
        print_info("No recent files.")
        return
    console.print(create_recent_files_table(items))


def usage(
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
) -> None:
    """Show total, used and free space of the storage volume."""
    storage = get_storage()
    try:
        totals = storage_info(storage.config.storage_root, storage.gate)
    except FilekeepError as e:
        exit_with_error(e)

    try:
        recycled: int | None = storage.recycle_bin.total_size()
    except FilekeepError as e:
        print_warning(f"Could not measure the recycle bin: {e}")
        recycled = None

    if output_format == OutputFormat.JSON:
        data: dict[str, object] = totals.to_dict()
        data["recycle_bin"] = recycled
        console.print_json(json.dumps(data))
        return

    console.print(f"[bold]Storage at {totals.path}[/bold]")
    console.print(f"  Total: {format_size(totals.total)}")
    console.print(f"  Used:  {format_size(totals.used)} ({totals.percent_used:.1f}%)")
    console.print(f"  Free:  {format_size(totals.free)}")
    if recycled is not None:
        console.print(f"  Recycle bin: {format_size(recycled)}")
