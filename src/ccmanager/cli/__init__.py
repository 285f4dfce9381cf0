"""
CLI interface for ccmanager using Typer.
"""

# Shared apps and helpers must be imported first
from ._shared import app  # noqa: F401

# Import submodules to register their commands with the Typer apps
from . import presets  # noqa: F401
from . import hooks  # noqa: F401
from . import config  # noqa: F401
from . import monitoring  # noqa: F401
from . import worktree  # noqa: F401


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
