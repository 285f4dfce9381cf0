"""
Session manager: the authoritative registry of assistant sessions.

Every output event for a session goes through on_output(), which runs the
session's detector over the latest screen lines and, when the classified
state changes, updates the record, notifies subscribers and hands the
transition to the hook dispatcher.

Locking:
- a registry lock guards only the id -> record mapping
- each record has its own lock; detect/compare/update/dispatch for one
  session runs under it, so one session's events are totally ordered while
  different sessions never wait on each other
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from .exceptions import DetectionInputUnavailableError, SessionStartError
from .hook_dispatcher import HookDispatcher
from .logging_config import get_structured_logger
from .presets import CommandPreset, resolve_preset
from .protocols import BufferReader, PresetSource, SessionSpawner
from .state_constants import INITIAL_STATE, MAX_DETECTION_LINES, SessionState
from .state_detector import PatternStateDetector, create_state_detector

logger = get_structured_logger("sessions")


@dataclass
class SessionRecord:
    """One tracked assistant session bound to a worktree."""

    id: str
    worktree_path: str
    branch: str
    preset: CommandPreset
    detector: PatternStateDetector
    command: str
    args: List[str]
    base_branch: Optional[str] = None
    state: SessionState = INITIAL_STATE
    created_at: datetime = field(default_factory=datetime.now)
    last_transition: datetime = field(default_factory=datetime.now)
    removed: bool = field(default=False, repr=False)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)


@dataclass(frozen=True)
class StateChange:
    """A detected state transition."""

    session_id: str
    worktree_path: str
    branch: str
    old_state: SessionState
    new_state: SessionState
    timestamp: datetime


StateChangeCallback = Callable[[StateChange], None]


class SessionManager:
    """Owns all SessionRecords and turns output events into transitions.

    Args:
        config: Source of command presets (read on each create_session)
        dispatcher: Hook dispatcher for state transitions
        buffer_reader: Reads a session's screen when on_output gets no snapshot
        spawner: Starts/stops session processes; None if the caller does it
        max_lines: Detection window size
    """

    def __init__(
        self,
        config: PresetSource,
        dispatcher: HookDispatcher,
        buffer_reader: Optional[BufferReader] = None,
        spawner: Optional[SessionSpawner] = None,
        max_lines: int = MAX_DETECTION_LINES,
    ):
        self.config = config
        self.dispatcher = dispatcher
        self.buffer_reader = buffer_reader
        self.spawner = spawner
        self.max_lines = max_lines
        self._sessions: Dict[str, SessionRecord] = {}
        self._registry_lock = threading.Lock()
        self._subscribers: List[StateChangeCallback] = []
        self._subscribers_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_session(
        self,
        worktree_path: str,
        branch: str = "",
        preset_id: Optional[str] = None,
        base_branch: Optional[str] = None,
        use_fallback_args: bool = False,
    ) -> str:
        """Register a session for a worktree and start its process.

        Args:
            worktree_path: Worktree the session runs in
            branch: Branch checked out in the worktree
            preset_id: Preset to launch with (None for the default preset)
            base_branch: Branch the worktree was created from, if new
            use_fallback_args: Launch with the preset's fallback arguments

        Returns:
            The new session id

        Raises:
            PresetNotFoundError: If preset_id is unknown
            SessionStartError: If the spawner could not start the process
        """
        launch = resolve_preset(self.config.get_command_presets(), preset_id, use_fallback=use_fallback_args)
        record = SessionRecord(
            id=str(uuid.uuid4()),
            worktree_path=str(worktree_path),
            branch=branch,
            base_branch=base_branch,
            preset=launch.preset,
            detector=create_state_detector(launch.detection_strategy, max_lines=self.max_lines),
            command=launch.command,
            args=launch.args,
        )

        with self._registry_lock:
            self._sessions[record.id] = record

        if self.spawner is not None:
            if not self.spawner.start(record.id, record.command, record.args, cwd=record.worktree_path):
                self.remove_session(record.id, stop_process=False)
                raise SessionStartError(record.worktree_path, " ".join(launch.argv))

        logger.info(
            "Session created",
            session_id=record.id,
            worktree=record.worktree_path,
            preset=record.preset.name,
            strategy=record.detector.strategy,
        )
        return record.id

    def remove_session(self, session_id: str, stop_process: bool = True) -> bool:
        """Stop tracking a session. Idempotent.

        Hook processes already launched for the session keep running.

        Returns:
            True if the session was registered
        """
        with self._registry_lock:
            record = self._sessions.pop(session_id, None)
        if record is None:
            return False

        with record.lock:
            record.removed = True

        if stop_process and self.spawner is not None:
            self.spawner.stop(session_id)
        logger.info("Session removed", session_id=session_id)
        return True

    def on_session_exit(self, session_id: str) -> bool:
        """The session's process ended on its own."""
        return self.remove_session(session_id, stop_process=False)

    # ------------------------------------------------------------------
    # Output events
    # ------------------------------------------------------------------

    def on_output(self, session_id: str, snapshot: Optional[Sequence[str]] = None) -> Optional[StateChange]:
        """Process an output event for a session.

        Args:
            session_id: Session that produced output
            snapshot: Latest screen lines (newest last); read from the
                buffer reader when omitted

        Returns:
            The StateChange if the state changed, else None. Unknown or
            removed sessions are ignored.
        """
        record = self.get_session(session_id)
        if record is None:
            return None

        with record.lock:
            if record.removed:
                return None

            lines = snapshot if snapshot is not None else self._read_buffer(record)
            new_state = record.detector.detect_state(lines)
            if new_state == record.state:
                return None

            old_state = record.state
            now = datetime.now()
            record.state = new_state
            record.last_transition = now

            change = StateChange(
                session_id=record.id,
                worktree_path=record.worktree_path,
                branch=record.branch,
                old_state=old_state,
                new_state=new_state,
                timestamp=now,
            )
            logger.info("State changed", session_id=record.id, old=old_state, new=new_state)
            self._notify(change)
            self._dispatch(change)
            return change

    def _read_buffer(self, record: SessionRecord) -> Sequence[str]:
        if self.buffer_reader is None:
            return []
        try:
            return self.buffer_reader.get_recent_lines(record.id, self.max_lines)
        except (DetectionInputUnavailableError, OSError) as e:
            # Assistant state is advisory: unreadable screen counts as idle
            logger.debug("Buffer unavailable, treating as idle", session_id=record.id, error=e)
            return []

    def _dispatch(self, change: StateChange) -> None:
        try:
            self.dispatcher.dispatch_status_transition(
                change.session_id,
                change.worktree_path,
                change.branch,
                change.old_state,
                change.new_state,
            )
        except Exception as e:
            logger.error("Hook dispatch failed", session_id=change.session_id, error=e)

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, callback: StateChangeCallback) -> Callable[[], None]:
        """Register a state-change callback. Returns an unsubscribe function.

        Callbacks run on the thread that delivered the output event, while
        that session's lock is held.
        """
        with self._subscribers_lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._subscribers_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, change: StateChange) -> None:
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(change)
            except Exception:
                logger.exception("State change subscriber failed", session_id=change.session_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        with self._registry_lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> List[SessionRecord]:
        with self._registry_lock:
            return list(self._sessions.values())

    def get_state(self, session_id: str) -> Optional[SessionState]:
        record = self.get_session(session_id)
        return record.state if record is not None else None

    def find_by_worktree(self, worktree_path: str) -> Optional[SessionRecord]:
        for record in self.list_sessions():
            if record.worktree_path == str(worktree_path):
                return record
        return None

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._sessions)
