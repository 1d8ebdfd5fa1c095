"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from enum import Enum
from typing import NoReturn

import typer
from rich.panel import Panel

from filekeep.core.config import require_config
from filekeep.core.errors import AccessDeniedError, FilekeepError
from filekeep.models.history import HistoryActionType, HistoryItem
from filekeep.storage.context import StorageContext, build_context
from filekeep.storage.history import record_operation
from filekeep.utils.formatting import err_console, print_error, print_warning


class OutputFormat(str, Enum):
    """Output format options for listing commands."""

    TABLE = "table"
    JSON = "json"


def get_storage() -> StorageContext:
    """Load configuration and build the storage components.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    return build_context(require_config())


def print_guidance(text: str) -> None:
    """Show full-access instructions in a panel on stderr."""
    err_console.print(Panel(text, title="Full file access", border_style="warning"))


def exit_with_error(error: FilekeepError) -> NoReturn:
    """Print a storage error (with guidance for denials) and exit 1."""
    print_error(str(error))
    if isinstance(error, AccessDeniedError) and error.guidance:
        print_guidance(error.guidance)
    raise typer.Exit(code=1) from error


def record_history(
    storage: StorageContext,
    action_type: HistoryActionType,
    items: list[HistoryItem],
    command: str,
    reversible: bool = False,
) -> None:
    """Append an audit entry, warning instead of failing if it cannot be written."""
    if not items:
        return
    try:
        record_operation(storage.state, action_type, items, command, reversible=reversible)
    except (OSError, RuntimeError) as e:
        print_warning(f"Could not record to history: {e}")
