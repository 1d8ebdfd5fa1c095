"""CLI package for filekeep.

This package contains the Typer application and all subcommands.
"""

from filekeep.cli.main import app

__all__ = ["app"]
