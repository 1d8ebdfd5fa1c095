"""File index commands.

Provides commands to build, inspect and clear the persisted file index.
"""

import time
from pathlib import Path
from typing import Annotated

import typer

from filekeep.cli.display import print_warnings
from filekeep.cli.types import get_storage
from filekeep.utils.formatting import console, format_size, print_info, print_success, print_warning

app = typer.Typer(
    help="Build and inspect the file index.",
    no_args_is_help=True,
)


@app.command()
def build(
    roots: Annotated[
        list[Path] | None,
        typer.Option("--root", "-r", help="Directory to index (repeatable)."),
    ] = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", min=0, help="Depth limit below each root."),
    ] = None,
) -> None:
    """Walk the index roots and publish a new snapshot."""
    storage = get_storage()
    started = time.monotonic()
    snapshot = storage.index.build(roots, max_depth=max_depth)
    elapsed = time.monotonic() - started

    files = sum(1 for e in snapshot if e.is_file)
    print_success(
        f"Indexed {files} files and {len(snapshot) - files} directories "
        f"under {len(snapshot.roots)} roots in {elapsed:.1f}s."
    )
    print_warnings(snapshot.warnings)


@app.command()
def show() -> None:
    """Show the current snapshot's age, roots and size."""
    storage = get_storage()
    snapshot = storage.index.current()
    if snapshot is None:
        print_info("No index yet. Run 'filekeep index build'.")
        return

    files = [e for e in snapshot if e.is_file]
    age = snapshot.age()
    state = "[success]fresh[/]" if snapshot.is_fresh(storage.index.ttl) else "[warning]stale[/]"
    console.print(f"Entries:  {len(snapshot)} ({len(files)} files)")
    console.print(f"Size:     {format_size(sum(e.size for e in files))}")
    console.print(f"Age:      {age:.0f}s ({state})")
    console.print(f"Depth:    {'unbounded' if snapshot.max_depth is None else snapshot.max_depth}")
    console.print("Roots:")
    for root in snapshot.roots:
        console.print(f"  [muted]{root}[/muted]")
    if snapshot.warnings:
        print_warning(f"{len(snapshot.warnings)} subtrees were skipped during the last build.")


@app.command()
def clear() -> None:
    """Drop the in-memory and persisted index."""
    storage = get_storage()
    storage.index.clear()
    print_success("Index cleared.")
