"""Shared Rich display functions for entries, recycle bin items and results.

Provides reusable table builders and summary printers used across CLI
commands (ls, search, index, bin, ops, files, gallery).
"""

from datetime import datetime

from rich.table import Table

from filekeep.models.entry import Entry
from filekeep.models.recent import RecentFile
from filekeep.models.recycle import RecycleBinItem
from filekeep.storage.operations import OperationResult
from filekeep.storage.recycle_bin import RecycleActionResult
from filekeep.utils.formatting import console, format_size, print_warning

# Warnings beyond this count are summarized instead of listed
MAX_LISTED_WARNINGS = 10


def create_entries_table(entries: list[Entry], title: str, show_path: bool = False) -> Table:
    """Create a Rich table of filesystem entries.

    Directories are styled distinctly and show their child count in
    place of a size.

    Args:
        entries: Entries to display, already sorted.
        title: Table title.
        show_path: Show the full path instead of just the name.

    Returns:
        Rich Table configured for entry display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Type", width=9, style="muted")
    table.add_column("Size", justify="right", style="size")
    table.add_column("Modified", style="muted")

    for entry in entries:
        label = entry.path if show_path else entry.name
        if entry.is_dir:
            name = f"[directory]{label}/[/]"
            size = "-" if entry.child_count is None else f"{entry.child_count} items"
        else:
            name = f"[file]{label}[/]"
            size = format_size(entry.size)
        table.add_row(name, entry.file_type, size, _format_mtime(entry.modified_time))

    return table


def create_recycle_table(items: list[RecycleBinItem]) -> Table:
    """Create a Rich table of recycle bin items, newest first."""
    table = Table(
        title="Recycle Bin",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="recycled", no_wrap=True)
    table.add_column("Original Location")
    table.add_column("Size", justify="right", style="size")
    table.add_column("Deleted", style="muted")

    for item in items:
        location = item.original_path
        if item.reconstructed:
            location += " [warning](guessed)[/]"
        table.add_row(
            item.id,
            item.original_name,
            location,
            format_size(item.size),
            _format_timestamp(item.deleted_at),
        )

    return table


def create_recent_files_table(items: list[RecentFile]) -> Table:
    """Create a Rich table of recently opened files, newest first."""
    table = Table(
        title="Recent Files",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Path", no_wrap=True)
    table.add_column("Size", justify="right", style="size")
    table.add_column("Opened", style="muted")

    for item in items:
        opened = _format_mtime(item.last_accessed)
        if item.is_file:
            table.add_row(f"[file]{item.path}[/]", format_size(item.size), opened)
        else:
            table.add_row(f"[directory]{item.path}/[/]", "-", opened)

    return table


def create_results_table(results: list[OperationResult] | list[RecycleActionResult]) -> Table:
    """Create a Rich table with one OK/FAIL row per result."""
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Path")
    table.add_column("Message")

    for result in results:
        if isinstance(result, RecycleActionResult):
            path = result.item.original_path
            message = "" if result.success else result.error or "Unknown error"
        else:
            path = result.path
            message = (result.destination or "") if result.success else (result.error or "")
        status = "[success]OK[/success]" if result.success else "[error]FAIL[/error]"
        table.add_row(status, path, f"[muted]{message}[/muted]")

    return table


def print_warnings(warnings: tuple[str, ...] | list[str]) -> None:
    """Print soft warnings, summarizing long lists."""
    for message in warnings[:MAX_LISTED_WARNINGS]:
        print_warning(message)
    hidden = len(warnings) - MAX_LISTED_WARNINGS
    if hidden > 0:
        console.print(f"[dim]({hidden} more warnings; use --verbose to see all)[/dim]")


def _format_mtime(epoch: float) -> str:
    if epoch <= 0:
        return "-"
    return datetime.fromtimestamp(epoch).strftime("%Y-%m-%d %H:%M")


def _format_timestamp(iso_timestamp: str) -> str:
    """Format an ISO 8601 timestamp as YYYY-MM-DD HH:MM."""
    try:
        dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    except ValueError:
        return iso_timestamp
    return dt.strftime("%Y-%m-%d %H:%M")
