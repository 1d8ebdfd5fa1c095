"""XDG-compliant path management for filekeep.

This module provides standardized paths following the XDG Base Directory
Specification for configuration, state, and cache storage.

XDG defaults:
- Config: ~/.config/filekeep/
- State: ~/.local/state/filekeep/
- Cache: ~/.cache/filekeep/

The state directory doubles as the application's private sandbox: paths
beneath it never require a storage permission grant.
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "filekeep"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/filekeep/ (or XDG_CONFIG_HOME/filekeep/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the key-value store, the operation history and
    anything else that should persist between runs but is not
    configuration.

    Returns:
        Path to ~/.local/state/filekeep/ (or XDG_STATE_HOME/filekeep/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_cache_dir() -> Path:
    """Get the cache directory path.

    Returns:
        Path to ~/.cache/filekeep/ (or XDG_CACHE_HOME/filekeep/).
    """
    return _get_xdg_dir("XDG_CACHE_HOME", ".cache")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/filekeep/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_history_path() -> Path:
    """Get the operation history file path.

    Returns:
        Path to ~/.local/state/filekeep/history.jsonl.
    """
    return get_state_dir() / "history.jsonl"


def get_store_path() -> Path:
    """Get the key-value store file path.

    Returns:
        Path to ~/.local/state/filekeep/store.json.
    """
    return get_state_dir() / "store.json"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Returns:
        Path to the configuration directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Returns:
        Path to the state directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state")


def is_within(path: str | Path, parent: str | Path) -> bool:
    """Check whether ``path`` lies at or below ``parent``.

    Both paths are made absolute and normalized (without resolving
    symlinks) before comparison.

    Args:
        path: Candidate path.
        parent: Directory that may contain the candidate.

    Returns:
        True if path equals parent or is nested inside it.
    """
    candidate = os.path.abspath(os.fspath(path))
    base = os.path.abspath(os.fspath(parent))
    try:
        return os.path.commonpath([candidate, base]) == base
    except ValueError:
        return False
