"""State management for the operation audit log.

This module provides the StateManager class for persisting and querying
history entries in a JSONL file format.
"""

import json
import logging
from pathlib import Path

from filekeep.core.paths import ensure_state_dir, get_state_dir
from filekeep.models.history import HistoryActionType, HistoryEntry

logger = logging.getLogger(__name__)


class StateManager:
    """Manages history state in JSONL file.

    Storage location: ~/.local/state/filekeep/history.jsonl

    The history file uses JSON Lines format where each line is a complete
    JSON object representing a HistoryEntry. This format allows for
    efficient append-only writes and easy parsing.
    """

    HISTORY_FILENAME = "history.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize StateManager.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/filekeep
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        """Path to history.jsonl file."""
        return self._state_dir / self.HISTORY_FILENAME

    def record_action(self, entry: HistoryEntry) -> None:
        """Append action to history file.

        Creates file and parent directories if they don't exist.

        Args:
            entry: The history entry to record.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        if self._state_dir == get_state_dir():
            ensure_state_dir()
        else:
            self._state_dir.mkdir(parents=True, exist_ok=True)

        line = entry.to_json_line()

        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()

    def get_history(
        self,
        limit: int | None = None,
        action_type: HistoryActionType | None = None,
    ) -> list[HistoryEntry]:
        """Read history entries, newest first.

        Args:
            limit: Maximum number of entries to return.
                  If None, returns all entries.
            action_type: Only return entries of this type.

        Returns:
            List of HistoryEntry, newest first.
            Returns empty list if file doesn't exist.
        """
        if not self.history_path.exists():
            return []

        entries: list[HistoryEntry] = []

        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    entry = HistoryEntry.from_json_line(line)
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning(
                        "Skipping corrupt history line %d: %s",
                        line_num,
                        str(e),
                    )
                    continue

                if action_type is None or entry.action_type == action_type:
                    entries.append(entry)

        entries.reverse()

        if limit is not None:
            return entries[:limit]

        return entries

    def get_entry_by_id(self, entry_id: str) -> HistoryEntry | None:
        """Find entry by ID (or unique ID prefix).

        Args:
            entry_id: The entry ID to find.

        Returns:
            HistoryEntry if found, None otherwise.
        """
        for entry in self.get_history():
            if entry.id == entry_id or entry.id.startswith(entry_id):
                return entry

        return None
