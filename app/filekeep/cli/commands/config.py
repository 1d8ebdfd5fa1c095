"""Configuration commands.

Provides `filekeep config show` to print the effective configuration and
`filekeep config init` to write a config file with the defaults.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from filekeep.core.config import (
    ConfigError,
    FilekeepConfig,
    config_to_dict,
    require_config,
    save_config,
)
from filekeep.core.paths import get_config_path
from filekeep.utils.formatting import console, print_error, print_info, print_success, print_warning

app = typer.Typer(
    help="Show or create the configuration file.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Print the effective configuration as TOML."""
    config_path = get_config_path()
    config = require_config(config_path)

    if config_path.exists():
        print_info(f"# {config_path}")
    else:
        print_info("# No config file; showing defaults")
    console.print(
        tomli_w.dumps(config_to_dict(config)), markup=False, highlight=False, soft_wrap=True
    )


@app.command()
def init(
    storage_root: Annotated[
        Path | None,
        typer.Option("--storage-root", help="Root of accessible storage (default: home)."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file populated with the defaults.

    Examples:
        filekeep config init
        filekeep config init --storage-root /storage/emulated/0
        filekeep config init --force      # Reset to defaults
    """
    config_path = get_config_path()

    if config_path.exists():
        if not force:
            print_error(f"Config already exists: {config_path}")
            print_info("Use --force to overwrite.")
            raise typer.Exit(code=1)
        print_warning(f"Overwriting existing config: {config_path}")

    config = FilekeepConfig() if storage_root is None else FilekeepConfig(storage_root=storage_root)

    try:
        saved_path = save_config(config, config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved_path}")
