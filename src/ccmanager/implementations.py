"""
Real implementations of protocol interfaces.

RealProcessSpawner launches hook commands with subprocess. TmuxTerminal runs
each assistant session in its own tmux window (via libtmux) and serves as
both the session spawner and the terminal buffer reader.
"""

import os
import shlex
import subprocess
import threading
from typing import Dict, List, Optional, Sequence

import libtmux
from libtmux.exc import LibTmuxException
from libtmux._internal.query_list import ObjectDoesNotExist

from .exceptions import DetectionInputUnavailableError
from .logging_config import get_logger
from .state_constants import MAX_DETECTION_LINES

logger = get_logger("tmux")

DEFAULT_TMUX_SESSION = "ccmanager"


class RealProcessSpawner:
    """Production implementation of ProcessSpawner."""

    def spawn(
        self,
        command: str,
        args: Sequence[str],
        env: Dict[str, str],
        cwd: Optional[str] = None,
    ) -> subprocess.Popen:
        # New process group: Ctrl-C in the monitor must not kill running hooks
        return subprocess.Popen(
            [command, *args],
            env=env,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )


class TmuxTerminal:
    """Runs sessions in tmux windows and reads their panes.

    Implements both SessionSpawner and BufferReader. Each ccmanager session
    gets one window in a shared tmux session; windows are tracked by
    session id.
    """

    def __init__(self, tmux_session: str = DEFAULT_TMUX_SESSION, socket_name: Optional[str] = None):
        """Initialize with optional socket name for test isolation.

        If no socket_name is provided, checks CCMANAGER_TMUX_SOCKET env var.
        """
        self.tmux_session = tmux_session
        self._socket_name = socket_name or os.environ.get("CCMANAGER_TMUX_SOCKET")
        self._server: Optional[libtmux.Server] = None
        self._windows: Dict[str, libtmux.Window] = {}
        self._lock = threading.Lock()

    @property
    def server(self) -> libtmux.Server:
        """Lazy-load the tmux server connection."""
        if self._server is None:
            if self._socket_name:
                self._server = libtmux.Server(socket_name=self._socket_name)
            else:
                self._server = libtmux.Server()
        return self._server

    def _get_session(self, create: bool = False) -> Optional[libtmux.Session]:
        try:
            return self.server.sessions.get(session_name=self.tmux_session)
        except (LibTmuxException, ObjectDoesNotExist):
            if not create:
                return None
        try:
            return self.server.new_session(session_name=self.tmux_session, attach=False)
        except LibTmuxException as e:
            logger.error(f"Cannot create tmux session '{self.tmux_session}': {e}")
            return None

    # ------------------------------------------------------------------
    # SessionSpawner
    # ------------------------------------------------------------------

    def start(self, session_id: str, command: str, args: Sequence[str], cwd: Optional[str] = None) -> bool:
        sess = self._get_session(create=True)
        if sess is None:
            return False

        kwargs = {
            "window_name": session_id[:32],
            "attach": False,
            "window_shell": shlex.join([command, *args]),
        }
        if cwd:
            kwargs["start_directory"] = cwd
        try:
            window = sess.new_window(**kwargs)
        except LibTmuxException as e:
            logger.error(f"Cannot start '{command}' for session {session_id}: {e}")
            return False

        with self._lock:
            self._windows[session_id] = window
        return True

    def stop(self, session_id: str) -> bool:
        with self._lock:
            window = self._windows.pop(session_id, None)
        if window is None:
            return False
        try:
            window.kill()
            return True
        except LibTmuxException:
            return False

    def is_running(self, session_id: str) -> bool:
        """Whether the session's window still exists.

        A window found gone is forgotten, so session_ids() stops listing it.
        """
        with self._lock:
            window = self._windows.get(session_id)
        if window is None:
            return False
        sess = self._get_session()
        try:
            alive = sess is not None and any(w.window_id == window.window_id for w in sess.windows)
        except LibTmuxException:
            return False
        if not alive:
            with self._lock:
                if self._windows.get(session_id) is window:
                    del self._windows[session_id]
        return alive

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._windows)

    # ------------------------------------------------------------------
    # BufferReader
    # ------------------------------------------------------------------

    def get_recent_lines(self, session_id: str, max_lines: int = MAX_DETECTION_LINES) -> List[str]:
        with self._lock:
            window = self._windows.get(session_id)
        if window is None:
            raise DetectionInputUnavailableError(session_id, "no tmux window")
        try:
            pane = window.panes[0]
            # Visible screen plus enough scrollback to fill the window
            captured = pane.capture_pane(start=-max_lines)
        except (LibTmuxException, IndexError) as e:
            raise DetectionInputUnavailableError(session_id, str(e)) from e
        if isinstance(captured, str):
            captured = captured.split("\n")
        return list(captured)
