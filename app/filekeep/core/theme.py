"""Colour theme for the filekeep CLI.

Colours default to the values below. Any subset can be overridden in
the ``[colors]`` table of ~/.config/filekeep/theme.toml.
"""

import logging
import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints, ValidationError
from rich.theme import Theme

from filekeep.core.paths import get_config_dir

logger = logging.getLogger(__name__)

HexColor = Annotated[
    str, StringConstraints(strip_whitespace=True, pattern=r"^#(?:[0-9a-fA-F]{3}){1,2}$")
]


class ThemeColors(BaseModel):
    """Colours used by tables and messages, as #RGB or #RRGGBB."""

    model_config = ConfigDict(extra="forbid")

    text: HexColor = "#ffffff"
    muted: HexColor = "#b2bec3"
    header: HexColor = "#69B9A1"
    border: HexColor = "#29526d"

    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"

    directory: HexColor = "#0e8ac8"
    file: HexColor = "#ffffff"
    size: HexColor = "#0ec1c8"
    recycled: HexColor = "#d44ebc"


def get_user_theme_path() -> Path:
    return get_config_dir() / "theme.toml"


def load_theme(path: Path | None = None) -> ThemeColors:
    """Load colours, overriding the defaults with the user theme file.

    A missing file means defaults. An unreadable or invalid file is
    logged and ignored as a whole.
    """
    theme_path = path if path is not None else get_user_theme_path()
    try:
        with open(theme_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return ThemeColors()
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", theme_path, e)
        return ThemeColors()

    try:
        return ThemeColors.model_validate(data.get("colors", {}))
    except ValidationError as e:
        logger.warning("Invalid colours in %s, using defaults: %s", theme_path, e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Map ThemeColors onto the Rich style names the CLI uses."""
    if colors is None:
        colors = load_theme()
    return Theme(
        {
            "text": colors.text,
            "muted": colors.muted,
            "dim": colors.muted,
            "border": colors.border,
            "bold_header": f"bold {colors.header}",
            "success": colors.success,
            "warning": colors.warning,
            "error": f"bold {colors.error}",
            "info": colors.info,
            "directory": f"bold {colors.directory}",
            "file": colors.file,
            "size": colors.size,
            "recycled": colors.recycled,
        }
    )


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Get the Rich theme, loading and caching it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme
