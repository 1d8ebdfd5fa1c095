"""Unit tests for the history command."""

import json
from collections.abc import Callable
from pathlib import Path

from filekeep.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestHistoryCommand:
    """Tests for filekeep history."""

    def test_empty(self, configured_root: Path) -> None:
        """No recorded operations prints a notice."""
        result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "No history entries found" in result.stdout

    def test_json_after_delete(
        self, configured_root: Path, make_file: Callable[..., Path]
    ) -> None:
        """A delete shows up as a reversible entry with its recycle ID."""
        target = make_file(configured_root / "a.txt")
        runner.invoke(app, ["ops", "rm", "-y", str(target)])

        result = runner.invoke(app, ["history", "--json"])

        assert result.exit_code == 0
        [entry] = json.loads(result.stdout)
        assert entry["action_type"] == "delete"
        assert entry["reversible"] is True
        assert entry["items"][0]["path"] == str(target)
        assert entry["items"][0]["recycle_id"]

    def test_action_filter(self, configured_root: Path, make_file: Callable[..., Path]) -> None:
        """-a keeps only matching entries."""
        runner.invoke(app, ["ops", "mkdir", str(configured_root / "d")])
        runner.invoke(app, ["ops", "rm", "-y", str(make_file(configured_root / "a.txt"))])

        result = runner.invoke(app, ["history", "-a", "create_directory", "--json"])

        data = json.loads(result.stdout)
        assert [e["action_type"] for e in data] == ["create_directory"]

    def test_table(self, configured_root: Path) -> None:
        """The table lists the action type."""
        runner.invoke(app, ["ops", "touch", str(configured_root / "a.txt")])

        result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "Operation History" in result.stdout
        assert "create_file" in result.stdout

    def test_since_future_date(self, configured_root: Path) -> None:
        """Entries before --since are dropped."""
        runner.invoke(app, ["ops", "touch", str(configured_root / "a.txt")])

        result = runner.invoke(app, ["history", "--since", "2999-01-01"])

        assert "No history entries found" in result.stdout

    def test_invalid_since(self, configured_root: Path) -> None:
        """A malformed --since exits 1."""
        result = runner.invoke(app, ["history", "--since", "yesterday"])

        assert result.exit_code == 1
        assert "Invalid date format" in result.output
