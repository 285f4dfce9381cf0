"""
Output watcher for terminal backends without push notifications.

tmux does not tell us when a pane prints something, so OutputWatcher
captures each session's pane on a short interval and raises an output
event only when the captured content actually changed. Detection itself
stays event driven: unchanged screens never reach the session manager.

Sessions whose window disappeared are reported as exited.
"""

import threading
from typing import Dict, List, Optional, Tuple

from .exceptions import DetectionInputUnavailableError
from .implementations import TmuxTerminal
from .logging_config import get_logger
from .session_manager import SessionManager

logger = get_logger("monitor")

DEFAULT_INTERVAL = 0.5  # seconds between pane captures


class OutputWatcher:
    """Turns pane content changes into SessionManager.on_output() calls."""

    def __init__(
        self,
        manager: SessionManager,
        terminal: TmuxTerminal,
        interval: float = DEFAULT_INTERVAL,
    ):
        self.manager = manager
        self.terminal = terminal
        self.interval = interval
        self._last_seen: Dict[str, Optional[Tuple[str, ...]]] = {}
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll_once(self) -> List[str]:
        """Capture every session once and emit events for changed screens.

        Returns:
            Ids of sessions that produced an output event
        """
        changed = []
        live_ids = set()
        for record in self.manager.list_sessions():
            live_ids.add(record.id)

            if not self.terminal.is_running(record.id):
                logger.info(f"Session {record.id} exited")
                self.manager.on_session_exit(record.id)
                self._last_seen.pop(record.id, None)
                continue

            try:
                snapshot: Optional[Tuple[str, ...]] = tuple(
                    self.terminal.get_recent_lines(record.id, self.manager.max_lines)
                )
            except DetectionInputUnavailableError as e:
                logger.debug(str(e))
                snapshot = None

            if record.id in self._last_seen and self._last_seen[record.id] == snapshot:
                continue
            self._last_seen[record.id] = snapshot

            # An unreadable screen is still an event; the manager treats it as idle
            self.manager.on_output(record.id, list(snapshot) if snapshot is not None else [])
            changed.append(record.id)

        for stale in set(self._last_seen) - live_ids:
            del self._last_seen[stale]
        return changed

    def run(self) -> None:
        """Poll until stop() is called."""
        logger.info(f"Output watcher started (interval {self.interval}s)")
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Output watcher poll failed")
            self._stop.wait(self.interval)
        logger.info("Output watcher stopped")

    def run_until_interrupted(self) -> None:
        """Poll in the foreground until Ctrl-C or every session has exited."""
        try:
            while not self._stop.is_set():
                self.poll_once()
                if len(self.manager) == 0:
                    logger.info("All sessions exited")
                    break
                self._stop.wait(self.interval)
        except KeyboardInterrupt:
            logger.info("Interrupted")

    def start(self) -> threading.Thread:
        """Run the watcher on a daemon thread."""
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="ccmanager-output-watcher", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
