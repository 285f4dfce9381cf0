"""
Monitoring commands: detect, monitor.
"""

import subprocess
import sys
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich import print as rprint
from rich.text import Text

from ..exceptions import CCManagerError
from ..state_constants import get_state_label, get_state_symbol
from ._shared import VerboseOption, app, console, get_config_manager, require_preset


@app.command("detect")
def detect(
    file: Annotated[Optional[Path], typer.Argument(help="Captured screen text (stdin if omitted)")] = None,
    strategy: Annotated[str, typer.Option("--strategy", "-s", help="Detection strategy (claude, gemini)")] = "claude",
    show_match: Annotated[bool, typer.Option("--show-match", "-m", help="Also print the line that decided the state")] = False,
):
    """Classify captured terminal output as idle, busy or waiting_input."""
    from ..state_detector import create_state_detector

    try:
        detector = create_state_detector(strategy.strip().lower())
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if file is not None:
        try:
            text = file.read_text(errors="replace")
        except OSError as e:
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
    else:
        text = sys.stdin.read()

    lines = text.splitlines()
    print(detector.detect_state(lines).value)
    if show_match:
        line = detector.matching_line(lines)
        print(f"matched: {line.strip()}" if line is not None else "matched: (nothing)")


def _current_branch(worktree: Path) -> str:
    try:
        result = subprocess.run(
            ["git", "-C", str(worktree), "rev-parse", "--abbrev-ref", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (subprocess.SubprocessError, OSError):
        return ""
    return result.stdout.strip() if result.returncode == 0 else ""


def _choose_preset(presets) -> str:
    """Prompt for a preset when select_preset_on_start is enabled."""
    choices = list(presets.presets.values())
    for i, preset in enumerate(choices, 1):
        marker = " (default)" if preset.id == presets.default_preset_id else ""
        rprint(f"  {i}. {preset.name}{marker}")
    default_index = next(i for i, p in enumerate(choices, 1) if p.id == presets.default_preset_id)
    index = typer.prompt("Preset", default=default_index, type=int)
    if not 1 <= index <= len(choices):
        rprint("[red]Error:[/red] no such preset")
        raise typer.Exit(1)
    return choices[index - 1].id


def _print_change(change) -> None:
    symbol, color = get_state_symbol(change.new_state)
    line = Text()
    line.append(f"{change.timestamp:%H:%M:%S} ", style="dim")
    line.append(f"{symbol} ", style=color)
    line.append(change.branch or change.worktree_path, style="bold")
    line.append(f"  {get_state_label(change.old_state)} → {get_state_label(change.new_state)}")
    console.print(line)


@app.command("monitor")
def monitor(
    worktrees: Annotated[List[Path], typer.Argument(help="Worktrees to start sessions in")],
    preset: Annotated[Optional[str], typer.Option("--preset", "-p", help="Preset id or name")] = None,
    fallback: Annotated[bool, typer.Option("--fallback", help="Launch with the preset's fallback arguments")] = False,
    tmux_session: Annotated[str, typer.Option("--tmux-session", help="tmux session to run in")] = "ccmanager",
    interval: Annotated[float, typer.Option("--interval", help="Seconds between screen captures")] = 0.5,
    verbose: VerboseOption = False,
):
    """Start a session per worktree in tmux and watch their states.

    State changes are printed and configured status hooks are fired until
    interrupted with Ctrl-C. Sessions keep running in tmux afterwards.
    """
    from ..hook_dispatcher import HookDispatcher
    from ..implementations import TmuxTerminal
    from ..logging_config import setup_monitor_logging
    from ..monitor import OutputWatcher
    from ..session_manager import SessionManager

    setup_monitor_logging(console=verbose)

    config = get_config_manager()
    presets = config.get_command_presets()
    if preset is not None:
        preset_id: Optional[str] = require_preset(presets, preset).id
    elif presets.select_preset_on_start:
        preset_id = _choose_preset(presets)
    else:
        preset_id = None

    terminal = TmuxTerminal(tmux_session)
    manager = SessionManager(
        config,
        HookDispatcher(config),
        buffer_reader=terminal,
        spawner=terminal,
    )
    manager.subscribe(_print_change)

    missing = [w for w in worktrees if not w.is_dir()]
    if missing:
        for worktree in missing:
            rprint(f"[red]Error:[/red] {worktree} is not a directory")
        raise typer.Exit(1)

    for worktree in worktrees:
        path = worktree.resolve()
        try:
            session_id = manager.create_session(str(path), _current_branch(path), preset_id, use_fallback_args=fallback)
        except CCManagerError as e:
            rprint(f"[red]Error:[/red] {e}")
            for started in manager.list_sessions():
                manager.remove_session(started.id)
            raise typer.Exit(1)
        record = manager.get_session(session_id)
        rprint(f"[green]✓[/green] Started [bold]{' '.join([record.command, *record.args])}[/bold] in {path}")

    rprint(f"[dim]Attach with: tmux attach -t {tmux_session}   (Ctrl-C here stops monitoring)[/dim]")
    watcher = OutputWatcher(manager, terminal, interval=interval)
    try:
        watcher.run_until_interrupted()
    finally:
        rprint(f"\n[dim]Stopped monitoring; sessions are still running in tmux session '{tmux_session}'[/dim]")
