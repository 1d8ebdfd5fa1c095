"""Unit tests for shared Rich display helpers."""

import io
from unittest.mock import patch

from filekeep.cli.display import (
    create_entries_table,
    create_recycle_table,
    create_results_table,
    print_warnings,
)
from filekeep.core.errors import ErrorKind
from filekeep.core.theme import get_theme
from filekeep.models.entry import Entry, EntryKind
from filekeep.models.recycle import RecycleBinItem
from filekeep.storage.operations import OperationResult
from filekeep.storage.recycle_bin import RecycleActionResult
from rich.console import Console
from rich.table import Table


def _render(table: Table) -> str:
    buffer = io.StringIO()
    console = Console(theme=get_theme(), file=buffer, color_system=None, width=160)
    console.print(table)
    return buffer.getvalue()


def _item(item_id: str = "1700000000000") -> RecycleBinItem:
    return RecycleBinItem(
        id=item_id,
        original_path="/storage/Music/song.mp3",
        original_name="song.mp3",
        recycle_path=f"/storage/.recyclebin/{item_id}_song.mp3",
        deleted_at="2026-03-01T12:30:00+00:00",
        size=2048,
        type="audio",
    )


class TestCreateEntriesTable:
    """Tests for create_entries_table."""

    def test_files_and_directories(self) -> None:
        """Directories show a trailing slash and their child count."""
        entries = [
            Entry("Music", "/s/Music", EntryKind.DIRECTORY, child_count=3),
            Entry("a.jpg", "/s/a.jpg", EntryKind.FILE, size=1536, modified_time=1.7e9),
        ]

        output = _render(create_entries_table(entries, title="/s"))

        assert "Music/" in output
        assert "3 items" in output
        assert "1.5 KB" in output
        assert "image" in output

    def test_show_path(self) -> None:
        """show_path prints the full path instead of the name."""
        entries = [Entry("a.jpg", "/s/deep/a.jpg", EntryKind.FILE)]

        output = _render(create_entries_table(entries, title="Results", show_path=True))

        assert "/s/deep/a.jpg" in output

    def test_unknown_mtime(self) -> None:
        """A zero modification time renders as a dash."""
        table = create_entries_table([Entry("a", "/s/a", EntryKind.FILE)], title="t")

        assert table.row_count == 1
        assert " - " in _render(table)


class TestCreateRecycleTable:
    """Tests for create_recycle_table."""

    def test_rows(self) -> None:
        """Each item shows its ID, name, location and deletion time."""
        output = _render(create_recycle_table([_item()]))

        assert "1700000000000" in output
        assert "song.mp3" in output
        assert "/storage/Music/song.mp3" in output
        assert "2026-03-01 12:30" in output
        assert "guessed" not in output

    def test_reconstructed_marked(self) -> None:
        """Rebuilt records flag their guessed location."""
        item = RecycleBinItem(
            id="1",
            original_path="/storage/song.mp3",
            original_name="song.mp3",
            recycle_path="/storage/.recyclebin/1_song.mp3",
            deleted_at="2026-03-01T12:30:00+00:00",
            reconstructed=True,
        )

        assert "(guessed)" in _render(create_recycle_table([item]))


class TestCreateResultsTable:
    """Tests for create_results_table."""

    def test_operation_results(self) -> None:
        """Failures show FAIL with their message."""
        results = [
            OperationResult(path="/s/a", success=True, destination="/s/b"),
            OperationResult(
                path="/s/c",
                success=False,
                error="Not found: /s/c",
                error_kind=ErrorKind.NOT_FOUND,
            ),
        ]

        output = _render(create_results_table(results))

        assert "OK" in output
        assert "FAIL" in output
        assert "Not found: /s/c" in output

    def test_recycle_results(self) -> None:
        """Recycle results are labelled by original path."""
        results = [RecycleActionResult(item=_item(), success=True)]

        assert "/storage/Music/song.mp3" in _render(create_results_table(results))


class TestPrintWarnings:
    """Tests for print_warnings."""

    def test_short_list_printed_in_full(self) -> None:
        """Every warning is printed when there are few."""
        with (
            patch("filekeep.cli.display.print_warning") as mock_warn,
            patch("filekeep.cli.display.console") as mock_console,
        ):
            print_warnings(["one", "two"])

        assert mock_warn.call_count == 2
        mock_console.print.assert_not_called()

    def test_long_list_summarized(self) -> None:
        """Warnings beyond ten are counted instead of listed."""
        with (
            patch("filekeep.cli.display.print_warning") as mock_warn,
            patch("filekeep.cli.display.console") as mock_console,
        ):
            print_warnings([f"w{i}" for i in range(15)])

        assert mock_warn.call_count == 10
        assert "5 more warnings" in mock_console.print.call_args[0][0]
