"""Unit tests for XDG path management.

Tests for the paths module that provides XDG-compliant directory paths.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from filekeep.core.paths import (
    APP_NAME,
    ensure_config_dir,
    ensure_state_dir,
    get_cache_dir,
    get_config_dir,
    get_config_path,
    get_history_path,
    get_state_dir,
    get_store_path,
    is_within,
)


class TestXdgDirs:
    """Tests for the XDG directory getters."""

    def test_default_config_dir(self) -> None:
        """get_config_dir returns default path when XDG_CONFIG_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_config_dir() == Path.home() / ".config" / APP_NAME

    def test_default_state_dir(self) -> None:
        """get_state_dir returns default path when XDG_STATE_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_state_dir() == Path.home() / ".local" / "state" / APP_NAME

    def test_default_cache_dir(self) -> None:
        """get_cache_dir returns default path when XDG_CACHE_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_cache_dir() == Path.home() / ".cache" / APP_NAME

    def test_respects_xdg_overrides(self, tmp_path: Path) -> None:
        """Each getter honors its XDG environment variable."""
        env = {
            "XDG_CONFIG_HOME": str(tmp_path / "c"),
            "XDG_STATE_HOME": str(tmp_path / "s"),
            "XDG_CACHE_HOME": str(tmp_path / "k"),
        }
        with patch.dict(os.environ, env):
            assert get_config_dir() == tmp_path / "c" / APP_NAME
            assert get_state_dir() == tmp_path / "s" / APP_NAME
            assert get_cache_dir() == tmp_path / "k" / APP_NAME

    def test_empty_xdg_var_uses_default(self) -> None:
        """An empty XDG variable falls back to the default location."""
        with patch.dict(os.environ, {"XDG_STATE_HOME": ""}):
            assert get_state_dir() == Path.home() / ".local" / "state" / APP_NAME


class TestFilePaths:
    """Tests for well-known file paths."""

    def test_file_paths(self, tmp_path: Path) -> None:
        """Config, history and store files live in their directories."""
        env = {"XDG_CONFIG_HOME": str(tmp_path / "c"), "XDG_STATE_HOME": str(tmp_path / "s")}
        with patch.dict(os.environ, env):
            assert get_config_path() == tmp_path / "c" / APP_NAME / "config.toml"
            assert get_history_path() == tmp_path / "s" / APP_NAME / "history.jsonl"
            assert get_store_path() == tmp_path / "s" / APP_NAME / "store.json"


class TestEnsureDirs:
    """Tests for directory creation helpers."""

    def test_creates_directories(self, tmp_path: Path) -> None:
        """ensure_* helpers create missing directories."""
        env = {"XDG_CONFIG_HOME": str(tmp_path / "c"), "XDG_STATE_HOME": str(tmp_path / "s")}
        with patch.dict(os.environ, env):
            assert ensure_config_dir().is_dir()
            assert ensure_state_dir().is_dir()

    def test_permission_error_becomes_runtime_error(self, tmp_path: Path) -> None:
        """An unwritable location raises RuntimeError."""
        with (
            patch.dict(os.environ, {"XDG_STATE_HOME": str(tmp_path)}),
            patch.object(Path, "mkdir", side_effect=PermissionError("denied")),
            pytest.raises(RuntimeError, match="Permission denied"),
        ):
            ensure_state_dir()


class TestIsWithin:
    """Tests for is_within."""

    @pytest.mark.parametrize(
        ("path", "parent", "expected"),
        [
            ("/a/b/c", "/a/b", True),
            ("/a/b", "/a/b", True),
            ("/a/bc", "/a/b", False),
            ("/a", "/a/b", False),
            ("/a/b/../c", "/a/b", False),
        ],
    )
    def test_is_within(self, path: str, parent: str, expected: bool) -> None:
        """Containment is checked on normalized paths, not string prefixes."""
        assert is_within(path, parent) is expected
