"""History command for viewing past operations.

This module provides the `filekeep history` command for viewing the
audit log of deletes, restores, purges and other file operations.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from filekeep.core.state import StateManager
from filekeep.models.history import HistoryActionType, HistoryEntry
from filekeep.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View history of file operations.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    action: Annotated[
        HistoryActionType | None,
        typer.Option(
            "--action",
            "-a",
            help="Only show entries of this action type.",
            case_sensitive=False,
        ),
    ] = None,
    since: Annotated[
        str | None,
        typer.Option(
            "--since",
            help="Show entries since date (YYYY-MM-DD).",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show history of file operations.

    Every delete, restore, purge, create, rename, copy and move made
    through filekeep is recorded. Deletes can be undone with
    `filekeep bin restore`.

    Examples:
        filekeep history              # Show last 20 entries
        filekeep history -n 50        # Show last 50 entries
        filekeep history -a delete    # Only deletions
        filekeep history --since 2026-01-01
        filekeep history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    state = StateManager()
    entries = state.get_history(limit=limit, action_type=action)

    if since:
        try:
            since_parsed = datetime.fromisoformat(since)
        except ValueError:
            typer.echo(f"Invalid date format: {since}. Use YYYY-MM-DD.", err=True)
            raise typer.Exit(code=1) from None
        if since_parsed.tzinfo is None:
            # Naive dates compare as start of day against the stored UTC timestamps
            since_date = since_parsed.strftime("%Y-%m-%d")
            entries = [e for e in entries if e.timestamp[:10] >= since_date]
        else:
            entries = [
                e
                for e in entries
                if datetime.fromisoformat(e.timestamp.replace("Z", "+00:00")) >= since_parsed
            ]

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        _print_json(entries)
    else:
        _print_table(entries)


def _print_table(entries: list[HistoryEntry]) -> None:
    """Print history as a Rich table.

    Args:
        entries: List of history entries to display.
    """
    table = Table(title="Operation History", header_style="bold_header", border_style="border")
    table.add_column("ID", style="dim")
    table.add_column("Timestamp", style="info")
    table.add_column("Action", style="success")
    table.add_column("Paths", style="text")
    table.add_column("Restorable?", style="warning")

    for entry in entries:
        count = len(entry.items)
        paths = ", ".join(item.path for item in entry.items[:3])
        if count > 3:
            paths += f" (+{count - 3} more)"

        table.add_row(
            entry.id[:8],
            _format_timestamp(entry.timestamp),
            entry.action_type.value,
            paths,
            "[success]Yes[/]" if entry.reversible else "[muted]No[/]",
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp for display (YYYY-MM-DD HH:MM)."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")


def _print_json(entries: list[HistoryEntry]) -> None:
    """Print history as JSON for scripting."""
    output = [entry.to_dict() for entry in entries]
    console.print_json(json.dumps(output))
