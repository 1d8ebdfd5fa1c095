"""CLI commands for filekeep.

This package contains all subcommand implementations.
"""

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

__all__ = [
    "access",
    "bin",
    "config",
    "files",
    "gallery",
    "history",
    "index",
    "ls",
    "ops",
    "search",
]
