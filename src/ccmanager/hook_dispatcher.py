"""
Hook dispatcher: runs user-configured commands on state transitions and
worktree creation.

Each hook runs as an independent shell process. The launch and the wait
for its exit happen on a short-lived daemon thread, so dispatch returns
immediately and a hook that hangs never stalls session monitoring. The
returned Future is only for observers (logging, tests); the monitoring path
never waits on it.

Hook processes are never killed by ccmanager. Overlapping runs of the same
hook are allowed.
"""

import os
import threading
from concurrent.futures import Future, wait
from pathlib import Path
from typing import Dict, Optional, Set

from .config import POST_CREATION_HOOK, HookEntry
from .exceptions import HookLaunchFailedError
from .logging_config import get_structured_logger
from .protocols import HookConfigSource, ProcessSpawner
from .state_constants import SessionState

logger = get_structured_logger("hooks")

# Status hook environment
ENV_OLD_STATE = "CCMANAGER_OLD_STATE"
ENV_NEW_STATE = "CCMANAGER_NEW_STATE"
ENV_SESSION_ID = "CCMANAGER_SESSION_ID"
# Shared by status and worktree hooks
ENV_WORKTREE = "CCMANAGER_WORKTREE"
ENV_WORKTREE_BRANCH = "CCMANAGER_WORKTREE_BRANCH"
# Worktree creation hook environment
ENV_BASE_BRANCH = "CCMANAGER_BASE_BRANCH"
ENV_GIT_ROOT = "CCMANAGER_GIT_ROOT"

DEFAULT_SHELL = "/bin/sh"


def build_status_hook_env(
    session_id: str,
    worktree: str,
    branch: str,
    old_state: SessionState,
    new_state: SessionState,
) -> Dict[str, str]:
    """Context variables for a status hook."""
    return {
        ENV_OLD_STATE: str(old_state),
        ENV_NEW_STATE: str(new_state),
        ENV_WORKTREE: str(worktree),
        ENV_WORKTREE_BRANCH: branch or "",
        ENV_SESSION_ID: str(session_id),
    }


def build_worktree_hook_env(
    worktree: str,
    branch: str,
    base_branch: Optional[str],
    git_root: str,
) -> Dict[str, str]:
    """Context variables for the worktree post-creation hook."""
    return {
        ENV_WORKTREE: str(worktree),
        ENV_WORKTREE_BRANCH: branch or "",
        ENV_BASE_BRANCH: base_branch or "",
        ENV_GIT_ROOT: str(git_root),
    }


class HookDispatcher:
    """Fires configured hooks without blocking the caller.

    Args:
        config: Source of hook configuration, read on every dispatch
        spawner: Process launcher (defaults to RealProcessSpawner)
        shell: Shell used to interpret hook commands
    """

    def __init__(
        self,
        config: HookConfigSource,
        spawner: Optional[ProcessSpawner] = None,
        shell: str = DEFAULT_SHELL,
    ):
        if spawner is None:
            from .implementations import RealProcessSpawner
            spawner = RealProcessSpawner()
        self.config = config
        self.spawner = spawner
        self.shell = shell
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public dispatch API
    # ------------------------------------------------------------------

    def dispatch_status_transition(
        self,
        session_id: str,
        worktree: str,
        branch: str,
        old_state: SessionState,
        new_state: SessionState,
    ) -> Optional[Future]:
        """Run the hook configured for new_state, if any and enabled.

        Returns:
            Future resolving to the hook's exit code, or None if no hook ran
        """
        entry = self._status_hook(new_state)
        if entry is None:
            return None

        env = build_status_hook_env(session_id, worktree, branch, old_state, new_state)
        return self._launch(f"status:{new_state}", entry, env, cwd=worktree)

    def dispatch_worktree_created(
        self,
        worktree: str,
        branch: str,
        base_branch: Optional[str],
        git_root: str,
    ) -> Optional[Future]:
        """Run the post-creation worktree hook, if configured and enabled."""
        entry = self._worktree_hook(POST_CREATION_HOOK)
        if entry is None:
            return None

        env = build_worktree_hook_env(worktree, branch, base_branch, git_root)
        return self._launch(f"worktree:{POST_CREATION_HOOK}", entry, env, cwd=worktree)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait for hooks launched so far to finish. Returns True if all did."""
        with self._pending_lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    @property
    def active_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    # ------------------------------------------------------------------
    # Config lookup
    # ------------------------------------------------------------------

    def _status_hook(self, state: SessionState) -> Optional[HookEntry]:
        try:
            entry = self.config.get_status_hooks().get(SessionState(state))
        except Exception as e:
            logger.warning("Cannot read status hooks", error=e)
            return None
        return entry if entry is not None and entry.enabled else None

    def _worktree_hook(self, name: str) -> Optional[HookEntry]:
        try:
            entry = self.config.get_worktree_hooks().get(name)
        except Exception as e:
            logger.warning("Cannot read worktree hooks", error=e)
            return None
        return entry if entry is not None and entry.enabled else None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _launch(self, hook: str, entry: HookEntry, context: Dict[str, str], cwd: Optional[str]) -> Future:
        future: Future = Future()
        future.set_running_or_notify_cancel()
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

        env = {**os.environ, **context}
        run_dir = cwd if cwd and Path(cwd).is_dir() else None
        thread = threading.Thread(
            target=self._run,
            args=(future, hook, entry.command, env, run_dir),
            name=f"ccmanager-hook-{hook}",
            daemon=True,
        )
        thread.start()
        return future

    def _forget(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def _run(self, future: Future, hook: str, command: str, env: Dict[str, str], cwd: Optional[str]) -> None:
        log = logger.with_context(hook=hook)
        try:
            handle = self.spawner.spawn(self.shell, ["-c", command], env, cwd=cwd)
        except Exception as e:
            error = HookLaunchFailedError(hook, command, str(e))
            log.error(str(error))
            future.set_exception(error)
            return

        log.debug("Hook launched", command=command)
        try:
            returncode = handle.wait()
        except Exception as e:
            log.warning("Lost track of hook process", error=e)
            future.set_exception(e)
            return

        if returncode != 0:
            log.warning("Hook exited with non-zero status", returncode=returncode, command=command)
        else:
            log.debug("Hook finished")
        future.set_result(returncode)
