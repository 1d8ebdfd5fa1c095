"""Search commands.

This module provides the `filekeep search` command and the
`filekeep recent` command for the recent-search list.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from filekeep.cli.display import create_entries_table, print_warnings
from filekeep.cli.types import OutputFormat, get_storage
from filekeep.core.store import StoreError
from filekeep.models.entry import FileCategory
from filekeep.storage.search import SearchMode, SearchScope
from filekeep.utils.formatting import console, print_error, print_info, print_success


def search(
    query: Annotated[str, typer.Argument(help="Text to look for in file names.")],
    roots: Annotated[
        list[Path] | None,
        typer.Option("--root", "-r", help="Restrict to this directory (repeatable)."),
    ] = None,
    live: Annotated[
        bool,
        typer.Option("--live", help="Walk the disk even if the index is fresh."),
    ] = False,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", min=1, help="Maximum number of results."),
    ] = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", min=0, help="Depth limit for live searches."),
    ] = None,
    file_types: Annotated[
        list[FileCategory] | None,
        typer.Option(
            "--type",
            "-t",
            help="Only files of this category (repeatable).",
            case_sensitive=False,
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
) -> None:
    """Search file and directory names.

    Uses the file index when it is fresh and covers the roots, and walks
    the roots otherwise. Exact name matches are listed first.

    Examples:
        filekeep search holiday
        filekeep search .pdf --root ~/Documents
        filekeep search img --live --limit 20
        filekeep search beach --type image --type video
    """
    storage = get_storage()
    scope = SearchScope.of(
        roots or [],
        max_depth=max_depth,
        file_types=[t.value for t in file_types or []],
    )
    result = storage.search.search(
        query,
        scope,
        mode=SearchMode.LIVE if live else None,
        limit=limit,
    )

    if output_format == OutputFormat.JSON:
        console.print_json(
            json.dumps(
                {
                    "query": result.query,
                    "mode": result.mode.value,
                    "total_matches": result.total_matches,
                    "truncated": result.truncated,
                    "entries": [entry.to_dict() for entry in result.entries],
                }
            )
        )
        return

    if not result.entries:
        print_info(f"No matches for '{query}'.")
    else:
        table = create_entries_table(
            list(result.entries), title=f"Results for '{query}'", show_path=True
        )
        console.print(table)
        summary = f"{result.total_matches} matches ({result.mode.value})"
        if result.truncated:
            summary += f", showing top {len(result.entries)}"
        console.print(f"\n[dim]{summary}[/dim]")
    print_warnings(result.warnings)


def recent(
    clear: Annotated[
        bool,
        typer.Option("--clear", help="Forget all recent searches."),
    ] = False,
) -> None:
    """Show (or clear) recent search queries, most recent first."""
    storage = get_storage()

    if clear:
        try:
            storage.recent.clear()
        except StoreError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_success("Recent searches cleared.")
        return

    queries = storage.recent.list()
    if not queries:
        print_info("No recent searches.")
        return
    for position, query in enumerate(queries, start=1):
        console.print(f"[muted]{position}.[/muted] {query}")
