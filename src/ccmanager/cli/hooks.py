"""
Hooks commands: list, set, enable, disable, clear, test, worktree-created.
"""

from typing import Annotated, Optional

import typer
from rich import print as rprint
from rich.table import Table

from ..config import POST_CREATION_HOOK, WORKTREE_HOOK_NAMES
from ..state_constants import ALL_STATES, SessionState, get_state_label, parse_state
from ._shared import console, get_config_manager, hooks_app

HOOK_NAMES = [s.value for s in ALL_STATES] + list(WORKTREE_HOOK_NAMES)
WAIT_TIMEOUT = 60.0


def _check_hook_name(name: str) -> str:
    name = name.strip().lower()
    if name not in HOOK_NAMES:
        rprint(f"[red]Error:[/red] unknown hook '{name}' (expected one of: {', '.join(HOOK_NAMES)})")
        raise typer.Exit(1)
    return name


def _current_entry(manager, name: str):
    if name in WORKTREE_HOOK_NAMES:
        return manager.get_worktree_hooks().get(name)
    return manager.get_status_hooks().get(parse_state(name))


def _store(manager, name: str, command: str, enabled: bool) -> None:
    if name in WORKTREE_HOOK_NAMES:
        manager.set_worktree_hook(name, command, enabled)
    else:
        manager.set_status_hook(parse_state(name), command, enabled)


@hooks_app.callback(invoke_without_command=True)
def hooks_default(ctx: typer.Context):
    """List hooks (default when no subcommand given)."""
    if ctx.invoked_subcommand is None:
        _hooks_list()


@hooks_app.command("list")
def hooks_list():
    """Show configured hooks."""
    _hooks_list()


def _hooks_list():
    manager = get_config_manager()
    status_hooks = manager.get_status_hooks()
    worktree_hooks = manager.get_worktree_hooks()

    table = Table(title="Hooks")
    table.add_column("Hook")
    table.add_column("Enabled", justify="center")
    table.add_column("Command")

    for state in ALL_STATES:
        _add_row(table, f"Status: {get_state_label(state)}", status_hooks.get(state))
    _add_row(table, "Worktree: post creation", worktree_hooks.get(POST_CREATION_HOOK))
    console.print(table)


def _add_row(table: Table, label: str, entry) -> None:
    if entry is None:
        table.add_row(label, "[dim]-[/dim]", "[dim](not set)[/dim]")
        return
    enabled = "[green]✓[/green]" if entry.enabled else "[red]✗[/red]"
    table.add_row(label, enabled, entry.command)


@hooks_app.command("set")
def hooks_set(
    name: Annotated[str, typer.Argument(help="idle, busy, waiting_input or post_creation")],
    command: Annotated[str, typer.Argument(help="Shell command to run")],
    disabled: Annotated[bool, typer.Option("--disabled", help="Save the hook but keep it switched off")] = False,
):
    """Configure the command for a hook."""
    name = _check_hook_name(name)
    if not command.strip():
        rprint("[red]Error:[/red] command cannot be empty")
        raise typer.Exit(1)
    _store(get_config_manager(), name, command, not disabled)
    rprint(f"[green]✓[/green] Hook [bold]{name}[/bold] set{' (disabled)' if disabled else ''}")


def _toggle(name: str, enabled: bool) -> None:
    name = _check_hook_name(name)
    manager = get_config_manager()
    entry = _current_entry(manager, name)
    if entry is None:
        rprint(f"[red]Error:[/red] hook '{name}' has no command configured")
        raise typer.Exit(1)
    _store(manager, name, entry.command, enabled)
    rprint(f"[green]✓[/green] Hook [bold]{name}[/bold] {'enabled' if enabled else 'disabled'}")


@hooks_app.command("enable")
def hooks_enable(name: Annotated[str, typer.Argument(help="Hook name")]):
    """Enable a configured hook."""
    _toggle(name, True)


@hooks_app.command("disable")
def hooks_disable(name: Annotated[str, typer.Argument(help="Hook name")]):
    """Disable a hook without removing its command."""
    _toggle(name, False)


@hooks_app.command("clear")
def hooks_clear(name: Annotated[str, typer.Argument(help="Status hook name")]):
    """Remove a status hook."""
    name = _check_hook_name(name)
    if name in WORKTREE_HOOK_NAMES:
        rprint("[red]Error:[/red] worktree hooks can only be disabled")
        raise typer.Exit(1)
    if get_config_manager().remove_status_hook(parse_state(name)):
        rprint(f"[green]✓[/green] Removed hook [bold]{name}[/bold]")
    else:
        rprint(f"[dim]Hook '{name}' was not configured[/dim]")


def _wait_and_report(future) -> None:
    if future is None:
        rprint("[yellow]Hook is not configured or disabled; nothing ran[/yellow]")
        raise typer.Exit(1)
    try:
        returncode = future.result(timeout=WAIT_TIMEOUT)
    except TimeoutError:
        rprint(f"[yellow]Hook still running after {WAIT_TIMEOUT:.0f}s; left running[/yellow]")
        return
    except Exception as e:
        rprint(f"[red]Hook failed:[/red] {e}")
        raise typer.Exit(1)
    if returncode == 0:
        rprint("[green]✓[/green] Hook exited with status 0")
    else:
        rprint(f"[red]Hook exited with status {returncode}[/red]")
        raise typer.Exit(1)


@hooks_app.command("test")
def hooks_test(
    name: Annotated[str, typer.Argument(help="Status hook to fire")],
    old_state: Annotated[str, typer.Option("--from", help="Previous state to report")] = "idle",
    worktree: Annotated[str, typer.Option("--worktree", "-w", help="Worktree path to report")] = ".",
    branch: Annotated[str, typer.Option("--branch", "-b", help="Branch to report")] = "main",
):
    """Fire a status hook once with sample context and wait for it."""
    from ..hook_dispatcher import HookDispatcher

    name = _check_hook_name(name)
    if name in WORKTREE_HOOK_NAMES:
        rprint("[red]Error:[/red] use 'ccmanager hooks worktree-created' for worktree hooks")
        raise typer.Exit(1)
    try:
        previous = parse_state(old_state)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    dispatcher = HookDispatcher(get_config_manager())
    future = dispatcher.dispatch_status_transition("test-session", worktree, branch, previous, SessionState(name))
    _wait_and_report(future)


@hooks_app.command("worktree-created")
def hooks_worktree_created(
    worktree: Annotated[str, typer.Argument(help="Path of the new worktree")],
    branch: Annotated[str, typer.Option("--branch", "-b", help="Branch of the new worktree")],
    git_root: Annotated[str, typer.Option("--git-root", "-g", help="Repository root")],
    base_branch: Annotated[Optional[str], typer.Option("--base-branch", help="Branch it was created from")] = None,
):
    """Run the post-creation hook for a worktree and wait for it."""
    from ..hook_dispatcher import HookDispatcher

    dispatcher = HookDispatcher(get_config_manager())
    future = dispatcher.dispatch_worktree_created(worktree, branch, base_branch, git_root)
    _wait_and_report(future)
