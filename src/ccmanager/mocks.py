"""
In-memory implementations of protocol interfaces for tests.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .exceptions import DetectionInputUnavailableError
from .state_constants import MAX_DETECTION_LINES


class MockTerminal:
    """Fake terminal implementing BufferReader and SessionSpawner.

    Screens are plain line lists set by the test. start() can be made to
    fail with fail_start=True.
    """

    def __init__(self, fail_start: bool = False):
        self.fail_start = fail_start
        self.screens: Dict[str, List[str]] = {}
        self.started: Dict[str, dict] = {}
        self.stopped: List[str] = []
        self.unreadable: set = set()
        self.exited: set = set()

    # SessionSpawner

    def start(self, session_id: str, command: str, args: Sequence[str], cwd: Optional[str] = None) -> bool:
        if self.fail_start:
            return False
        self.started[session_id] = {"command": command, "args": list(args), "cwd": cwd}
        self.screens.setdefault(session_id, [])
        return True

    def stop(self, session_id: str) -> bool:
        if session_id not in self.started:
            return False
        self.stopped.append(session_id)
        self.exited.add(session_id)
        return True

    def is_running(self, session_id: str) -> bool:
        return session_id in self.started and session_id not in self.exited

    # BufferReader

    def get_recent_lines(self, session_id: str, max_lines: int = MAX_DETECTION_LINES) -> List[str]:
        if session_id in self.unreadable or session_id not in self.screens:
            raise DetectionInputUnavailableError(session_id)
        return list(self.screens[session_id][-max_lines:])

    # Test helpers

    def set_screen(self, session_id: str, lines: Sequence[str]) -> None:
        self.screens[session_id] = list(lines)

    def set_unreadable(self, session_id: str, unreadable: bool = True) -> None:
        if unreadable:
            self.unreadable.add(session_id)
        else:
            self.unreadable.discard(session_id)

    def exit(self, session_id: str) -> None:
        """Simulate the session's process ending on its own."""
        self.exited.add(session_id)


class MockProcessHandle:
    """Handle returned by MockProcessSpawner."""

    def __init__(self, returncode: int = 0, release: Optional[threading.Event] = None):
        self.returncode = returncode
        self._release = release

    def wait(self, timeout: Optional[float] = None) -> int:
        if self._release is not None:
            self._release.wait(timeout)
        return self.returncode


@dataclass
class SpawnCall:
    command: str
    args: List[str]
    env: Dict[str, str]
    cwd: Optional[str]

    @property
    def shell_command(self) -> Optional[str]:
        """The hook command when launched as `sh -c <command>`."""
        if len(self.args) >= 2 and self.args[0] == "-c":
            return self.args[1]
        return None


@dataclass
class MockProcessSpawner:
    """Records spawn() calls instead of starting processes.

    Attributes:
        returncode: Exit code every fake process reports
        launch_error: If set, spawn() raises it (simulates a failed launch)
        release: If set, fake processes block in wait() until it is set
    """

    returncode: int = 0
    launch_error: Optional[Exception] = None
    release: Optional[threading.Event] = None
    calls: List[SpawnCall] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def spawn(self, command: str, args: Sequence[str], env: Dict[str, str], cwd: Optional[str] = None) -> MockProcessHandle:
        with self._lock:
            self.calls.append(SpawnCall(command, list(args), dict(env), cwd))
        if self.launch_error is not None:
            raise self.launch_error
        return MockProcessHandle(self.returncode, self.release)

    @property
    def commands(self) -> List[Optional[str]]:
        with self._lock:
            return [call.shell_command for call in self.calls]
