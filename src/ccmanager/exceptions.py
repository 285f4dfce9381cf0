"""
Exceptions raised by the ccmanager core.

Only preset lookups and preset edits surface errors to callers. Hook launch
failures and unreadable terminal buffers are caught inside the core and
logged; the exception types exist so the failure can be named in logs and
carried on hook futures.
"""


class CCManagerError(Exception):
    """Base class for all ccmanager errors."""


class ConfigError(CCManagerError):
    """Configuration could not be read or written."""


class PresetNotFoundError(CCManagerError):
    """A command preset id is not present in the preset mapping."""

    def __init__(self, preset_id: str):
        self.preset_id = preset_id
        super().__init__(f"Command preset '{preset_id}' not found")


class InvalidPresetError(CCManagerError):
    """A command preset edit would break the preset invariants."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid preset name '{name}': {reason}")


class LastPresetError(CCManagerError):
    """Attempted to delete the only remaining command preset."""

    def __init__(self, preset_id: str):
        self.preset_id = preset_id
        super().__init__(f"Cannot delete preset '{preset_id}': it is the last remaining preset")


class HookLaunchFailedError(CCManagerError):
    """A hook command could not be started."""

    def __init__(self, hook: str, command: str, reason: str):
        self.hook = hook
        self.command = command
        self.reason = reason
        super().__init__(f"Hook '{hook}' failed to launch ({command!r}): {reason}")


class DetectionInputUnavailableError(CCManagerError):
    """The terminal buffer for a session could not be read."""

    def __init__(self, session_id: str, reason: str = "buffer unavailable"):
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"Cannot read terminal buffer for session {session_id}: {reason}")


class SessionStartError(CCManagerError):
    """The session spawner could not start the assistant process."""

    def __init__(self, worktree: str, command: str):
        self.worktree = worktree
        self.command = command
        super().__init__(f"Failed to start '{command}' in {worktree}")
