"""
Sample screens and builders shared by unit tests.
"""

from ccmanager.config import ConfigurationManager
from ccmanager.hook_dispatcher import HookDispatcher
from ccmanager.mocks import MockProcessSpawner, MockTerminal
from ccmanager.session_manager import SessionManager


# Claude Code screens
CLAUDE_WAITING = [
    "Some previous output",
    "Do you want to continue? (y/n)",
    "> ",
]

CLAUDE_PERMISSION_BOX = [
    "╭──────────────────────────────────────────╮",
    "│ Bash command                             │",
    "│   npm install                            │",
    "│ Do you want to proceed?                  │",
    "│ ❯ 1. Yes                                 │",
    "│   2. No, and tell Claude what to do      │",
    "╰──────────────────────────────────────────╯",
]

CLAUDE_BUSY = [
    "Processing...",
    "Press ESC to interrupt",
]

CLAUDE_SPINNER = [
    "⏺ Reading src/app.py",
    "✽ Cogitating… (12s · ↑ 1.2k tokens · esc to interrupt)",
    "",
    "╭──────────────────────────────────────────╮",
    "│ >                                        │",
    "╰──────────────────────────────────────────╯",
]

CLAUDE_IDLE = [
    "Command completed successfully",
    "Ready for next command",
    "> ",
]

# Gemini CLI screens
GEMINI_WAITING = [
    "Some output from Gemini",
    "│ Apply this change?",
    "│ > ",
]

GEMINI_BUSY = [
    "Processing your request...",
    "Press ESC to cancel",
]

GEMINI_IDLE = [
    "Welcome to Gemini CLI",
    "Type your message below",
]


def make_config(status_hooks=None, worktree_hooks=None, presets=None) -> ConfigurationManager:
    """In-memory configuration (never touches disk)."""
    data = {}
    if status_hooks is not None:
        data["status_hooks"] = status_hooks
    if worktree_hooks is not None:
        data["worktree_hooks"] = worktree_hooks
    if presets is not None:
        data["command_presets"] = presets
    return ConfigurationManager(data=data, autosave=False)


def make_manager(config=None, spawner=None, terminal=None, use_spawner=True):
    """SessionManager wired to mocks. Returns (manager, process_spawner, terminal)."""
    config = config or make_config()
    spawner = spawner or MockProcessSpawner()
    terminal = terminal or MockTerminal()
    manager = SessionManager(
        config,
        HookDispatcher(config, spawner=spawner),
        buffer_reader=terminal,
        spawner=terminal if use_spawner else None,
    )
    return manager, spawner, terminal
