"""Unit tests for the file operation commands."""

from collections.abc import Callable
from pathlib import Path

from filekeep.cli.main import app
from filekeep.core.config import load_config
from filekeep.models.history import HistoryActionType
from filekeep.storage.context import build_context
from typer.testing import CliRunner

runner = CliRunner()


class TestCreateCommands:
    """Tests for filekeep ops mkdir and touch."""

    def test_mkdir(self, configured_root: Path) -> None:
        """mkdir creates the directory and records it."""
        target = configured_root / "Photos"

        result = runner.invoke(app, ["ops", "mkdir", str(target)])

        assert result.exit_code == 0
        assert target.is_dir()
        history = build_context(load_config()).state.get_history()
        assert history[0].action_type == HistoryActionType.CREATE_DIRECTORY

    def test_mkdir_parents(self, configured_root: Path) -> None:
        """-p creates missing ancestors."""
        target = configured_root / "a" / "b" / "c"

        result = runner.invoke(app, ["ops", "mkdir", "-p", str(target)])

        assert result.exit_code == 0
        assert target.is_dir()

    def test_mkdir_existing_fails(self, configured_root: Path) -> None:
        """Creating an existing directory exits 1."""
        (configured_root / "Photos").mkdir()

        result = runner.invoke(app, ["ops", "mkdir", str(configured_root / "Photos")])

        assert result.exit_code == 1
        assert "Already exists" in result.output

    def test_touch(self, configured_root: Path) -> None:
        """touch creates an empty file."""
        target = configured_root / "notes.txt"

        result = runner.invoke(app, ["ops", "touch", str(target)])

        assert result.exit_code == 0
        assert target.read_bytes() == b""


class TestRenameCommand:
    """Tests for filekeep ops rename."""

    def test_rename(self, configured_root: Path, make_file: Callable[..., Path]) -> None:
        """rename keeps the parent directory."""
        make_file(configured_root / "old.txt", b"x")

        result = runner.invoke(app, ["ops", "rename", str(configured_root / "old.txt"), "new.txt"])

        assert result.exit_code == 0
        assert (configured_root / "new.txt").read_bytes() == b"x"
        assert not (configured_root / "old.txt").exists()

    def test_rename_missing_source(self, configured_root: Path) -> None:
        """Renaming a missing file exits 1."""
        result = runner.invoke(app, ["ops", "rename", str(configured_root / "gone"), "x"])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestCopyMoveCommands:
    """Tests for filekeep ops cp and mv."""

    def test_cp(self, configured_root: Path, make_file: Callable[..., Path]) -> None:
        """cp leaves the source in place."""
        source = make_file(configured_root / "a.txt", b"abc")
        dest = configured_root / "b.txt"

        result = runner.invoke(app, ["ops", "cp", str(source), str(dest)])

        assert result.exit_code == 0
        assert source.exists()
        assert dest.read_bytes() == b"abc"

    def test_cp_existing_without_overwrite(
        self, configured_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """An existing destination is not replaced without --overwrite."""
        source = make_file(configured_root / "a.txt", b"new")
        dest = make_file(configured_root / "b.txt", b"old")

        result = runner.invoke(app, ["ops", "cp", str(source), str(dest)])

        assert result.exit_code == 1
        assert dest.read_bytes() == b"old"

    def test_mv_overwrite_recycles_destination(
        self, configured_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """--overwrite moves the old destination into the recycle bin."""
        source = make_file(configured_root / "a.txt", b"new")
        dest = make_file(configured_root / "b.txt", b"old")

        result = runner.invoke(app, ["ops", "mv", "--overwrite", str(source), str(dest)])

        assert result.exit_code == 0
        assert "Previous destination moved to the recycle bin" in result.stdout
        assert not source.exists()
        assert dest.read_bytes() == b"new"
        [item] = build_context(load_config()).recycle_bin.list()
        assert item.original_name == "b.txt"


class TestRmCommand:
    """Tests for filekeep ops rm."""

    def test_rm_with_yes(self, configured_root: Path, make_file: Callable[..., Path]) -> None:
        """rm -y recycles the files and records a reversible delete."""
        first = make_file(configured_root / "a.txt")
        second = make_file(configured_root / "b.txt")

        result = runner.invoke(app, ["ops", "rm", "-y", str(first), str(second)])

        assert result.exit_code == 0
        assert "Moved 2 file(s) to the recycle bin" in result.stdout
        assert not first.exists()
        storage = build_context(load_config())
        assert len(storage.recycle_bin.list()) == 2
        [entry] = storage.state.get_history(action_type=HistoryActionType.DELETE)
        assert entry.reversible
        assert all(item.recycle_id for item in entry.items)

    def test_rm_declined(self, configured_root: Path, make_file: Callable[..., Path]) -> None:
        """Answering no leaves the file alone."""
        target = make_file(configured_root / "a.txt")

        result = runner.invoke(app, ["ops", "rm", str(target)], input="n\n")

        assert result.exit_code == 0
        assert "Aborted" in result.stdout
        assert target.exists()

    def test_rm_missing_path(self, configured_root: Path, make_file: Callable[..., Path]) -> None:
        """A missing path fails the command but the other paths are still recycled."""
        target = make_file(configured_root / "a.txt")

        result = runner.invoke(
            app, ["ops", "rm", "-y", str(target), str(configured_root / "missing.txt")]
        )

        assert result.exit_code == 1
        assert "1 of 2 path(s) could not be deleted" in result.output
        assert not target.exists()
