"""Unit tests for StateManager.

Tests for the StateManager class that handles history persistence.
"""

# pyright: reportPrivateUsage=false

import json
import logging
from pathlib import Path

import pytest
from filekeep.core.state import StateManager
from filekeep.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)


def _entry(
    action: HistoryActionType = HistoryActionType.DELETE, path: str = "/s/a.txt"
) -> HistoryEntry:
    return create_history_entry(action_type=action, items=[HistoryItem(path=path)])


@pytest.fixture
def manager(tmp_path: Path) -> StateManager:
    """Create a StateManager with temporary directory."""
    return StateManager(state_dir=tmp_path)


class TestStateManagerInit:
    """Tests for StateManager initialization."""

    def test_init_with_default_state_dir(self, isolated_xdg: Path) -> None:
        """StateManager defaults to the XDG state directory."""
        manager = StateManager()

        assert manager.history_path == isolated_xdg / "state" / "filekeep" / "history.jsonl"

    def test_history_path_property(self, tmp_path: Path) -> None:
        """history_path returns correct path."""
        assert StateManager(state_dir=tmp_path).history_path == tmp_path / "history.jsonl"


class TestRecordAction:
    """Tests for StateManager.record_action method."""

    def test_record_action_creates_directories(self, tmp_path: Path) -> None:
        """record_action creates parent directories if needed."""
        nested_dir = tmp_path / "deep" / "nested" / "state"
        manager = StateManager(state_dir=nested_dir)

        manager.record_action(_entry())

        assert manager.history_path.exists()

    def test_record_action_writes_valid_jsonl(self, manager: StateManager) -> None:
        """record_action writes one JSON object per line."""
        entry = _entry()

        manager.record_action(entry)

        content = manager.history_path.read_text(encoding="utf-8")
        assert content.endswith("\n")
        data = json.loads(content.strip())
        assert data["id"] == entry.id
        assert data["action_type"] == "delete"
        assert data["items"] == [{"path": "/s/a.txt"}]

    def test_record_action_appends_to_file(self, manager: StateManager) -> None:
        """record_action appends new entries without overwriting."""
        manager.record_action(_entry())
        manager.record_action(_entry(HistoryActionType.RESTORE))

        lines = manager.history_path.read_text(encoding="utf-8").strip().split("\n")
        assert len(lines) == 2


class TestGetHistory:
    """Tests for StateManager.get_history method."""

    def test_get_history_empty_file(self, manager: StateManager) -> None:
        """get_history returns empty list when file doesn't exist."""
        assert manager.get_history() == []

    def test_get_history_newest_first(self, manager: StateManager) -> None:
        """get_history returns entries in reverse order (newest first)."""
        entries = [_entry(path=f"/s/{i}.txt") for i in range(3)]
        for entry in entries:
            manager.record_action(entry)

        result = manager.get_history()

        assert [e.id for e in result] == [e.id for e in reversed(entries)]

    def test_get_history_with_limit(self, manager: StateManager) -> None:
        """get_history respects limit parameter."""
        for i in range(5):
            manager.record_action(_entry(path=f"/s/{i}.txt"))

        assert len(manager.get_history(limit=2)) == 2
        assert manager.get_history(limit=0) == []

    def test_get_history_filters_by_action(self, manager: StateManager) -> None:
        """get_history only returns the requested action type."""
        manager.record_action(_entry(HistoryActionType.DELETE))
        purge = _entry(HistoryActionType.PURGE)
        manager.record_action(purge)

        result = manager.get_history(action_type=HistoryActionType.PURGE)

        assert [e.id for e in result] == [purge.id]

    def test_get_history_skips_corrupt_lines(
        self, manager: StateManager, caplog: pytest.LogCaptureFixture
    ) -> None:
        """get_history skips corrupt JSON lines with warning."""
        entry = _entry()
        with manager.history_path.open("w", encoding="utf-8") as f:
            f.write(entry.to_json_line() + "\n")
            f.write("not valid json\n")
            f.write('{"incomplete": true}\n')
            f.write("\n")

        with caplog.at_level(logging.WARNING):
            result = manager.get_history()

        assert [e.id for e in result] == [entry.id]
        assert "Skipping corrupt history line" in caplog.text


class TestGetEntryById:
    """Tests for StateManager.get_entry_by_id method."""

    def test_missing(self, manager: StateManager) -> None:
        """get_entry_by_id returns None when nothing matches."""
        assert manager.get_entry_by_id("nonexistent") is None

    def test_full_id_and_prefix(self, manager: StateManager) -> None:
        """Entries are found by full ID or by a unique prefix."""
        entry = _entry()
        manager.record_action(entry)

        assert manager.get_entry_by_id(entry.id) == entry
        assert manager.get_entry_by_id(entry.id[:6]) == entry
