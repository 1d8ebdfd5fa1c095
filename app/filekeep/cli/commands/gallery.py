"""Category gallery command.

This module provides `filekeep gallery`, which lists every image,
video, audio file, document or APK below the index roots, newest first.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from filekeep.cli.display import create_entries_table, print_warnings
from filekeep.cli.types import OutputFormat, get_storage
from filekeep.models.entry import FileCategory
from filekeep.storage.search import SearchScope
from filekeep.utils.formatting import console, print_info


def gallery(
    category: Annotated[
        FileCategory,
        typer.Argument(help="Category to list.", case_sensitive=False),
    ],
    roots: Annotated[
        list[Path] | None,
        typer.Option("--root", "-r", help="Restrict to this directory (repeatable)."),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", min=1, help="Maximum number of files."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
) -> None:
    """List files of one category, most recently modified first.

    An expired index is rebuilt before listing.

    Examples:
        filekeep gallery image
        filekeep gallery document --root ~/Download --limit 20
    """
    storage = get_storage()
    result = storage.search.browse(
        [category.value],
        SearchScope.of(roots or []),
        limit=limit,
    )

    if output_format == OutputFormat.JSON:
        console.print_json(
            json.dumps(
                {
                    "category": category.value,
                    "mode": result.mode.value,
                    "total": result.total_matches,
                    "truncated": result.truncated,
                    "entries": [entry.to_dict() for entry in result.entries],
                }
            )
        )
        return

    if not result.entries:
        print_info(f"No {category.value} files found.")
    else:
        table = create_entries_table(
            list(result.entries), title=f"{category.value.title()} files", show_path=True
        )
        console.print(table)
        summary = f"{result.total_matches} files"
        if result.truncated:
            summary += f", showing newest {len(result.entries)}"
        console.print(f"\n[dim]{summary}[/dim]")
    print_warnings(result.warnings)
