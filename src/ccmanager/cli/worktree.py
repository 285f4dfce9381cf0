"""
Worktree commands: settings, path.
"""

from typing import Annotated, Optional

import typer
from rich import print as rprint

from ..worktree import generate_worktree_directory
from ._shared import get_config_manager, worktree_app


@worktree_app.command("settings")
def worktree_settings(
    auto: Annotated[
        Optional[bool], typer.Option("--auto/--no-auto", help="Derive new worktree directories from the branch")
    ] = None,
    pattern: Annotated[
        Optional[str], typer.Option("--pattern", "-p", help="Directory pattern with {branch}, e.g. ../{branch}")
    ] = None,
):
    """Show or change auto-directory settings for new worktrees."""
    manager = get_config_manager()
    settings = manager.get_worktree_config()

    if auto is not None or pattern is not None:
        if pattern is not None and "{branch" not in pattern:
            rprint("[red]Error:[/red] pattern must contain {branch} or {branch-name}")
            raise typer.Exit(1)
        if auto is not None:
            settings.auto_directory = auto
        if pattern is not None:
            settings.auto_directory_pattern = pattern
        manager.set_worktree_config(settings)
        rprint("[green]✓[/green] Worktree settings saved")

    state = "on" if settings.auto_directory else "off"
    print(f"auto_directory: {state}")
    print(f"auto_directory_pattern: {settings.auto_directory_pattern}")


@worktree_app.command("path")
def worktree_path(
    branch: Annotated[str, typer.Argument(help="Branch name")],
):
    """Print the directory a new worktree for BRANCH would get."""
    settings = get_config_manager().get_worktree_config()
    print(generate_worktree_directory(branch, settings.auto_directory_pattern))
