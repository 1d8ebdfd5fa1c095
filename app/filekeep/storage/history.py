"""Audit-log recording for storage mutations.

Successful mutations are appended to the shared history file so every
destructive action leaves a trail. A failure to record is reported to
the caller and never undoes the operation itself.
"""

import logging

from filekeep.core.state import StateManager
from filekeep.models.history import (
    HistoryActionType,
    HistoryItem,
    create_history_entry,
)
from filekeep.storage.operations import OperationResult
from filekeep.storage.recycle_bin import RecycleActionResult

logger = logging.getLogger(__name__)


def record_operation(
    state: StateManager,
    action_type: HistoryActionType,
    items: list[HistoryItem],
    command: str,
    reversible: bool = False,
) -> None:
    """Append one history entry.

    Args:
        state: Audit log to write to.
        action_type: Kind of mutation.
        items: Paths affected; nothing is recorded when empty.
        command: CLI command that triggered the mutation.
        reversible: Whether the action can be undone from the recycle bin.

    Raises:
        RuntimeError: If the state directory cannot be created.
        OSError: If the history file cannot be written.
    """
    if not items:
        return

    entry = create_history_entry(
        action_type=action_type,
        items=items,
        reversible=reversible,
        metadata={"command": command},
    )
    state.record_action(entry)
    logger.debug("Recorded %s (%d items) in history", action_type.value, len(items))


def items_from_operation(result: OperationResult) -> list[HistoryItem]:
    """History items for an operation.

    The target is included when the operation succeeded (unless it was
    itself recycled). Anything recycled is always included, since a
    partially failed directory delete still moved files into the bin.
    """
    items: list[HistoryItem] = []
    if result.success and all(i.original_path != result.path for i in result.recycled):
        items.append(HistoryItem(path=result.path, destination=result.destination))
    items.extend(
        HistoryItem(path=item.original_path, destination=item.recycle_path, recycle_id=item.id)
        for item in result.recycled
    )
    return items


def items_from_recycle_results(results: list[RecycleActionResult]) -> list[HistoryItem]:
    """History items for the successful entries of a restore or purge batch."""
    return [
        HistoryItem(path=r.item.original_path, recycle_id=r.item.id)
        for r in results
        if r.success
    ]
