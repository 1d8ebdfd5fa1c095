"""List command for browsing a single directory.

This module provides the `filekeep ls` command.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from filekeep.cli.display import create_entries_table, print_warnings
from filekeep.cli.types import OutputFormat, exit_with_error, get_storage
from filekeep.core.errors import FilekeepError
from filekeep.models.entry import SortPolicy, sort_entries
from filekeep.utils.formatting import console, format_size, print_info


def ls(
    path: Annotated[
        Path | None,
        typer.Argument(help="Directory to list (default: storage root)."),
    ] = None,
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include hidden entries."),
    ] = False,
    sort: Annotated[
        SortPolicy,
        typer.Option("--sort", "-s", help="Sort order.", case_sensitive=False),
    ] = SortPolicy.DIRECTORIES_FIRST,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
) -> None:
    """List the immediate children of a directory.

    Examples:
        filekeep ls                     # Storage root
        filekeep ls ~/Download --all    # Include hidden entries
        filekeep ls ~/Music --sort size
    """
    storage = get_storage()
    target = path if path is not None else storage.config.storage_root

    try:
        listing = storage.reader.list(target, include_hidden=show_all)
    except FilekeepError as e:
        exit_with_error(e)

    entries = sort_entries(listing, sort)

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps([entry.to_dict() for entry in entries]))
        return

    if not entries:
        print_info(f"{listing.path} is empty.")
    else:
        console.print(create_entries_table(entries, title=listing.path))
        dirs = sum(1 for e in entries if e.is_dir)
        total = sum(e.size for e in entries)
        console.print(
            f"\n[dim]{dirs} directories, {len(entries) - dirs} files ({format_size(total)})[/dim]"
        )
    print_warnings(listing.warnings)
