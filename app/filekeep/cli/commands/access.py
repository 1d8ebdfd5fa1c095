"""Storage access commands.

Provides commands to inspect the current permission tier and to reset
the remembered permission state.
"""

import typer

from filekeep.cli.types import get_storage, print_guidance
from filekeep.models.permission import AccessTier, PermissionKind
from filekeep.storage.permissions import ConfiguredPermissionOracle
from filekeep.utils.formatting import console, print_success

app = typer.Typer(
    help="Inspect storage permissions.",
    no_args_is_help=True,
)

_TIER_LABELS = {
    AccessTier.NONE: "[error]none[/]",
    AccessTier.SCOPED_MEDIA: "[warning]scoped media[/]",
    AccessTier.FULL_FILESYSTEM: "[success]full filesystem[/]",
}


@app.command()
def status() -> None:
    """Show the access tier and which permissions are granted."""
    storage = get_storage()
    state = storage.gate.refresh()
    oracle = ConfiguredPermissionOracle(storage.config.permissions.granted)

    console.print(f"Access tier:  {_TIER_LABELS[state.tier]}")
    console.print(f"Storage root: [muted]{storage.config.storage_root}[/muted]")
    console.print("Permissions:")
    for kind in PermissionKind:
        mark = "[success]granted[/]" if oracle.check(kind) else "[muted]not granted[/]"
        console.print(f"  {kind.value:<22} {mark}")

    if not state.full_access:
        console.print()
        print_guidance(storage.gate.guidance())


@app.command()
def reset() -> None:
    """Forget the cached permission state and show instructions again next time."""
    storage = get_storage()
    storage.gate.reset()
    print_success("Permission state reset.")
