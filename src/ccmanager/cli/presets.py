"""
Preset commands: list, add, edit, delete, default, select-on-start.
"""

from typing import Annotated, Optional

import typer
from rich import print as rprint
from rich.table import Table

from ..exceptions import CCManagerError
from ..presets import CommandPreset, generate_preset_id, parse_args
from ..state_constants import DEFAULT_COMMAND, parse_strategy
from ._shared import console, get_config_manager, presets_app, require_preset


def _format_args(args: Optional[list]) -> str:
    return " ".join(args) if args else "[dim](none)[/dim]"


@presets_app.callback(invoke_without_command=True)
def presets_default(ctx: typer.Context):
    """List presets (default when no subcommand given)."""
    if ctx.invoked_subcommand is None:
        _presets_list()


@presets_app.command("list")
def presets_list():
    """List command presets."""
    _presets_list()


def _presets_list():
    presets = get_config_manager().get_command_presets()

    table = Table(title="Command presets", show_lines=False)
    table.add_column("", width=1)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Command")
    table.add_column("Args")
    table.add_column("Fallback args")
    table.add_column("Detection")

    for preset in presets.presets.values():
        marker = "[green]*[/green]" if preset.id == presets.default_preset_id else ""
        table.add_row(
            marker,
            preset.id,
            preset.name,
            preset.command,
            _format_args(preset.args),
            _format_args(preset.fallback_args),
            preset.detection_strategy.value,
        )

    console.print(table)
    if presets.select_preset_on_start:
        rprint("[dim]Preset selection is prompted when starting a session.[/dim]")


@presets_app.command("add")
def presets_add(
    name: Annotated[str, typer.Argument(help="Unique preset name")],
    command: Annotated[str, typer.Option("--command", "-c", help="Executable to launch")] = DEFAULT_COMMAND,
    args: Annotated[Optional[str], typer.Option("--args", "-a", help="Space-separated arguments")] = None,
    fallback_args: Annotated[
        Optional[str], typer.Option("--fallback-args", "-f", help="Space-separated alternate arguments")
    ] = None,
    strategy: Annotated[str, typer.Option("--strategy", "-s", help="Detection strategy (claude, gemini)")] = "claude",
    make_default: Annotated[bool, typer.Option("--default", help="Make this the default preset")] = False,
):
    """Add a command preset."""
    try:
        preset = CommandPreset(
            id=generate_preset_id(),
            name=name,
            command=command,
            args=parse_args(args),
            fallback_args=parse_args(fallback_args),
            detection_strategy=parse_strategy(strategy),
        )
        manager = get_config_manager()
        manager.add_preset(preset)
        if make_default:
            manager.set_default_preset(preset.id)
    except (CCManagerError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    rprint(f"[green]✓[/green] Added preset [bold]{preset.name}[/bold] ({preset.id})")


@presets_app.command("edit")
def presets_edit(
    preset_ref: Annotated[str, typer.Argument(help="Preset id or name")],
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="New name")] = None,
    command: Annotated[Optional[str], typer.Option("--command", "-c", help="Executable to launch")] = None,
    args: Annotated[Optional[str], typer.Option("--args", "-a", help="Arguments ('' to clear)")] = None,
    fallback_args: Annotated[
        Optional[str], typer.Option("--fallback-args", "-f", help="Alternate arguments ('' to clear)")
    ] = None,
    strategy: Annotated[Optional[str], typer.Option("--strategy", "-s", help="Detection strategy")] = None,
):
    """Edit fields of a command preset."""
    manager = get_config_manager()
    preset = require_preset(manager.get_command_presets(), preset_ref)

    fields = {}
    if name is not None:
        fields["name"] = name
    if command is not None:
        fields["command"] = command or DEFAULT_COMMAND
    if args is not None:
        fields["args"] = parse_args(args)
    if fallback_args is not None:
        fields["fallback_args"] = parse_args(fallback_args)
    try:
        if strategy is not None:
            fields["detection_strategy"] = parse_strategy(strategy)
        if not fields:
            rprint("[yellow]Nothing to change[/yellow]")
            raise typer.Exit(1)
        updated = manager.update_preset(preset.id, **fields)
    except (CCManagerError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    rprint(f"[green]✓[/green] Updated preset [bold]{updated.name}[/bold]")


@presets_app.command("delete")
def presets_delete(
    preset_ref: Annotated[str, typer.Argument(help="Preset id or name")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
):
    """Delete a command preset (the last preset cannot be deleted)."""
    manager = get_config_manager()
    preset = require_preset(manager.get_command_presets(), preset_ref)

    if not yes and not typer.confirm(f"Delete preset '{preset.name}'?"):
        raise typer.Exit(0)

    try:
        manager.delete_preset(preset.id)
    except CCManagerError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    rprint(f"[green]✓[/green] Deleted preset [bold]{preset.name}[/bold]")
    default = manager.get_command_presets().get_default_preset()
    rprint(f"  Default preset: {default.name}")


@presets_app.command("default")
def presets_set_default(
    preset_ref: Annotated[str, typer.Argument(help="Preset id or name")],
):
    """Set the default command preset."""
    manager = get_config_manager()
    preset = require_preset(manager.get_command_presets(), preset_ref)
    manager.set_default_preset(preset.id)
    rprint(f"[green]✓[/green] Default preset is now [bold]{preset.name}[/bold]")


@presets_app.command("select-on-start")
def presets_select_on_start(
    enabled: Annotated[bool, typer.Argument(help="Prompt for a preset when starting sessions")],
):
    """Toggle prompting for a preset each time a session starts."""
    get_config_manager().set_select_preset_on_start(enabled)
    state = "enabled" if enabled else "disabled"
    rprint(f"[green]✓[/green] Preset selection on start {state}")
