"""Configuration model and file I/O.

Configuration is stored in ~/.config/filekeep/config.toml and validated
with Pydantic. A missing file means "use the defaults": every setting
has a sensible default so filekeep works without a config file.

Example::

    storage_root = "/storage/emulated/0"

    [index]
    roots = ["Download", "Pictures"]
    max_depth = 6
    ttl_seconds = 300

    [search]
    max_results = 100

    [permissions]
    granted = ["read-images", "read-video", "read-audio"]
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from filekeep.core.paths import get_config_path
from filekeep.models.permission import PermissionKind

# Category directories indexed by default (relative to the storage root)
DEFAULT_INDEX_ROOTS: tuple[str, ...] = (
    "Download",
    "Documents",
    "DCIM",
    "Pictures",
    "Music",
    "Movies",
)

# Directories that only full-filesystem access can list
DEFAULT_RESTRICTED_DIRS: tuple[str, ...] = (
    "Android/data",
    "Android/obb",
    "Android/media",
)


class IndexSettings(BaseModel):
    """File index settings.

    Attributes:
        roots: Directories to index; relative entries resolve against
            the storage root.
        max_depth: Maximum walk depth below each root (None = unbounded).
        ttl_seconds: Snapshot lifetime before the next caller refreshes it.
        include_hidden: Whether dot-files and dot-directories are indexed.
        persist: Whether snapshots are saved to the key-value store.
    """

    model_config = ConfigDict(extra="forbid")

    roots: Annotated[
        list[str],
        Field(default_factory=lambda: list(DEFAULT_INDEX_ROOTS), description="Index roots"),
    ]
    max_depth: Annotated[
        int | None,
        Field(ge=0, description="Walk depth limit (None = unbounded)"),
    ] = None
    ttl_seconds: Annotated[
        float,
        Field(gt=0, description="Snapshot TTL in seconds"),
    ] = 300.0
    include_hidden: Annotated[bool, Field(description="Index hidden entries")] = False
    persist: Annotated[bool, Field(description="Persist snapshots across runs")] = True


class SearchSettings(BaseModel):
    """Search engine settings.

    Attributes:
        max_results: Result cap per query.
        recent_limit: Number of recent queries remembered.
        max_workers: Upper bound on concurrent root walks in live mode.
    """

    model_config = ConfigDict(extra="forbid")

    max_results: Annotated[int, Field(ge=1, le=10_000, description="Result cap")] = 100
    recent_limit: Annotated[int, Field(ge=0, le=100, description="Recent queries kept")] = 5
    max_workers: Annotated[int, Field(ge=1, le=64, description="Live-search workers")] = 8


class RecycleBinSettings(BaseModel):
    """Recycle bin settings.

    Attributes:
        dir_name: Name of the hidden holding directory under the storage root.
    """

    model_config = ConfigDict(extra="forbid")

    dir_name: Annotated[str, Field(min_length=1, description="Holding directory name")] = (
        ".recyclebin"
    )

    @field_validator("dir_name")
    @classmethod
    def validate_dir_name(cls, v: str) -> str:
        """Reject names that would escape the storage root."""
        if "/" in v or "\\" in v or v in (".", ".."):
            msg = f"dir_name must be a single path component, got {v!r}"
            raise ValueError(msg)
        return v


class PermissionSettings(BaseModel):
    """Permission oracle settings.

    Attributes:
        granted: Permission kinds the configured oracle reports as granted.
        restricted_dirs: Directories probed to detect full-filesystem access;
            relative entries resolve against the storage root.
    """

    model_config = ConfigDict(extra="forbid")

    granted: Annotated[
        list[PermissionKind],
        Field(default_factory=lambda: list(PermissionKind), description="Granted kinds"),
    ]
    restricted_dirs: Annotated[
        list[str],
        Field(
            default_factory=lambda: list(DEFAULT_RESTRICTED_DIRS),
            description="Directories requiring full access",
        ),
    ]


class FilekeepConfig(BaseModel):
    """Top-level filekeep configuration."""

    model_config = ConfigDict(extra="forbid")

    storage_root: Annotated[
        Path,
        Field(default_factory=Path.home, description="Accessible storage root"),
    ]
    index: Annotated[IndexSettings, Field(default_factory=IndexSettings)]
    search: Annotated[SearchSettings, Field(default_factory=SearchSettings)]
    recycle_bin: Annotated[RecycleBinSettings, Field(default_factory=RecycleBinSettings)]
    permissions: Annotated[PermissionSettings, Field(default_factory=PermissionSettings)]

    @field_validator("storage_root", mode="after")
    @classmethod
    def expand_storage_root(cls, v: Path) -> Path:
        """Expand ~ and make the storage root absolute."""
        return Path(os.path.abspath(v.expanduser()))

    def resolve(self, path: str) -> Path:
        """Resolve a configured path against the storage root."""
        candidate = Path(path).expanduser()
        if candidate.is_absolute():
            return candidate
        return self.storage_root / candidate

    @property
    def index_roots(self) -> list[Path]:
        """Index roots as absolute paths."""
        return [self.resolve(root) for root in self.index.roots]

    @property
    def restricted_dirs(self) -> list[Path]:
        """Restricted probe directories as absolute paths."""
        return [self.resolve(path) for path in self.permissions.restricted_dirs]

    @property
    def holding_dir(self) -> Path:
        """Absolute path of the recycle bin holding directory."""
        return self.storage_root / self.recycle_bin.dir_name


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when config content is invalid."""


def load_config(path: Path | None = None) -> FilekeepConfig:
    """Load and validate configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated FilekeepConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return FilekeepConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> FilekeepConfig:
    """Load configuration, falling back to defaults when no file exists.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        return FilekeepConfig()


def save_config(config: FilekeepConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        config: The FilekeepConfig to save.
        path: Path to save the config. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def require_config(config_path: Path | None = None) -> FilekeepConfig:
    """Load configuration or exit with a helpful error message.

    A missing file yields the defaults; only unreadable or invalid files
    abort.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    import typer

    from filekeep.utils.formatting import print_error, print_info

    try:
        return load_config_or_default(config_path)
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        print_info("Fix the file or run 'filekeep config init --force' to reset it.")
        raise typer.Exit(code=1) from e


def config_to_dict(config: FilekeepConfig) -> dict[str, Any]:
    """Convert FilekeepConfig to a dictionary for TOML serialization.

    TOML has no null, so an unset max_depth is omitted.
    """
    index: dict[str, Any] = {
        "roots": list(config.index.roots),
        "ttl_seconds": config.index.ttl_seconds,
        "include_hidden": config.index.include_hidden,
        "persist": config.index.persist,
    }
    if config.index.max_depth is not None:
        index["max_depth"] = config.index.max_depth

    return {
        "storage_root": str(config.storage_root),
        "index": index,
        "search": config.search.model_dump(),
        "recycle_bin": config.recycle_bin.model_dump(),
        "permissions": {
            "granted": [kind.value for kind in config.permissions.granted],
            "restricted_dirs": list(config.permissions.restricted_dirs),
        },
    }
