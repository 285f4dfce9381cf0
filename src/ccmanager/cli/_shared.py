"""
Shared CLI state: Typer apps, console, and helpers.
"""

from typing import Annotated, Optional

import typer
from rich import print as rprint
from rich.console import Console

from ..presets import CommandPreset, PresetsConfig

# Main app
app = typer.Typer(
    name="ccmanager",
    help="Run coding-assistant sessions side by side, one per git worktree",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Presets subcommand group
presets_app = typer.Typer(
    name="presets",
    help="Manage command presets.",
    no_args_is_help=False,
    invoke_without_command=True,
)
app.add_typer(presets_app, name="presets")

# Hooks subcommand group
hooks_app = typer.Typer(
    name="hooks",
    help="Manage status and worktree hooks.",
    no_args_is_help=False,
    invoke_without_command=True,
)
app.add_typer(hooks_app, name="hooks")

# Config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage configuration",
    no_args_is_help=False,
    invoke_without_command=True,
)
app.add_typer(config_app, name="config")

# Worktree subcommand group
worktree_app = typer.Typer(
    name="worktree",
    help="Worktree directory settings.",
    no_args_is_help=True,
)
app.add_typer(worktree_app, name="worktree")

# Console for rich output
console = Console()

VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging"),
]


def get_config_manager():
    """Open the user's configuration."""
    from ..config import ConfigurationManager

    return ConfigurationManager()


def find_preset(presets: PresetsConfig, ref: str) -> Optional[CommandPreset]:
    """Look a preset up by id, then by name."""
    if ref in presets.presets:
        return presets.presets[ref]
    return presets.find_by_name(ref)


def require_preset(presets: PresetsConfig, ref: str) -> CommandPreset:
    preset = find_preset(presets, ref)
    if preset is None:
        rprint(f"[red]Error:[/red] no preset with id or name '{ref}'")
        raise typer.Exit(1)
    return preset
