"""Main CLI application entry point.

Defines the Typer application, global options and logging setup.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from filekeep import __version__
from filekeep.cli.commands import (
    access,
    bin,
    config,
    files,
    gallery,
    history,
    index,
    ls,
    ops,
    search,
)
from filekeep.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="filekeep",
    help="Browse, search and safely delete files with a recoverable recycle bin.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"filekeep version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route filekeep log records to stderr through Rich.

    Args:
        verbose: Show DEBUG records (with module paths).
        quiet: Show only errors.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logger = logging.getLogger("filekeep")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=err_console, show_time=verbose, show_path=verbose)
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """filekeep - storage browser with a recoverable recycle bin.

    List directories, search by name, and delete files into a recycle
    bin they can be restored from.
    """
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose=verbose, quiet=quiet)


# Register commands
app.command(name="ls")(ls.ls)
app.command(name="search")(search.search)
app.command(name="recent")(search.recent)
app.command(name="gallery")(gallery.gallery)
app.command(name="info")(files.info)
app.command(name="recent-files")(files.recent_files)
app.command(name="usage")(files.usage)
app.add_typer(index.app, name="index")
app.add_typer(bin.app, name="bin")
app.add_typer(ops.app, name="ops")
app.add_typer(access.app, name="access")
app.add_typer(config.app, name="config")
app.add_typer(history.app, name="history")


if __name__ == "__main__":
    app()
