"""
Protocol definitions for external collaborators.

The session core never talks to tmux, subprocess or the config file
directly; it is handed objects implementing these protocols. Production
implementations live in implementations.py, in-memory ones in mocks.py.
"""

from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from .config import HookEntry
    from .presets import PresetsConfig
    from .state_constants import SessionState


@runtime_checkable
class BufferReader(Protocol):
    """Read access to a session's rendered terminal screen."""

    def get_recent_lines(self, session_id: str, max_lines: int = 30) -> List[str]:
        """Return the last max_lines rendered lines, newest last.

        Raises:
            DetectionInputUnavailableError: If the buffer cannot be read
        """
        ...


@runtime_checkable
class SessionSpawner(Protocol):
    """Starts and stops the interactive process behind a session."""

    def start(self, session_id: str, command: str, args: Sequence[str], cwd: Optional[str] = None) -> bool:
        """Start the assistant program for a session.

        Returns:
            True if the process was started
        """
        ...

    def stop(self, session_id: str) -> bool:
        """Stop a session's process. Returns False if it was not running."""
        ...


@runtime_checkable
class ProcessHandle(Protocol):
    """Handle to a launched hook process."""

    def wait(self, timeout: Optional[float] = None) -> int:
        ...


@runtime_checkable
class ProcessSpawner(Protocol):
    """Launches independent external processes (hook commands)."""

    def spawn(
        self,
        command: str,
        args: Sequence[str],
        env: Dict[str, str],
        cwd: Optional[str] = None,
    ) -> ProcessHandle:
        """Start a process without waiting for it.

        Raises:
            OSError: If the process cannot be started
        """
        ...


@runtime_checkable
class HookConfigSource(Protocol):
    """Read side of configuration used by the hook dispatcher."""

    def get_status_hooks(self) -> Dict["SessionState", "HookEntry"]:
        ...

    def get_worktree_hooks(self) -> Dict[str, "HookEntry"]:
        ...


@runtime_checkable
class PresetSource(Protocol):
    """Read side of configuration used by the session manager."""

    def get_command_presets(self) -> "PresetsConfig":
        ...
