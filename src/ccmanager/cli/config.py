"""
Config commands: init, show, path.
"""

from typing import Annotated

import typer
import yaml
from rich import print as rprint

from ._shared import config_app, get_config_manager


@config_app.callback(invoke_without_command=True)
def config_default(ctx: typer.Context):
    """Show current configuration (default when no subcommand given)."""
    if ctx.invoked_subcommand is None:
        _config_show()


@config_app.command("init")
def config_init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite existing config file")
    ] = False,
):
    """Create a config file with documented defaults.

    Creates ~/.ccmanager/config.yaml with all options commented out.
    Use --force to overwrite an existing config file.
    """
    from .. import config

    path = config.CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists() and not force:
        rprint(f"[yellow]Config file already exists:[/yellow] {path}")
        rprint("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)

    path.write_text(config.DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]✓[/green] Created config file: [bold]{path}[/bold]")
    rprint("[dim]Edit to customize your settings[/dim]")


@config_app.command("show")
def config_show():
    """Show current configuration."""
    _config_show()


@config_app.command("path")
def config_path():
    """Print the config file location."""
    from .. import config

    print(config.CONFIG_PATH)


def _config_show():
    from .. import config

    if not config.CONFIG_PATH.exists():
        rprint(f"[dim]No config file at {config.CONFIG_PATH}[/dim]")
        rprint("[dim]Run 'ccmanager config init' to create one[/dim]")
        return

    data = get_config_manager().as_dict()
    rprint(f"[bold]{config.CONFIG_PATH}[/bold]\n")
    if not data:
        rprint("[dim](empty or invalid)[/dim]")
        return
    print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), end="")
