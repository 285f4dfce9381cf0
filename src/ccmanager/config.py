"""
Configuration loading and the ConfigurationManager.

Config lives at ~/.ccmanager/config.yaml (directory overridable with
CCMANAGER_CONFIG_DIR). load_config()/save_config() handle the raw YAML;
ConfigurationManager wraps them with typed, thread-safe accessors for
hooks, command presets and worktree settings.

Reads go through an in-memory copy that is re-read whenever the file
changes on disk, so a write made by another ccmanager process is visible
to the next read; every write is persisted immediately.
"""

import copy
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .exceptions import ConfigError
from .logging_config import get_logger
from .presets import CommandPreset, PresetsConfig
from .state_constants import ALL_STATES, SessionState
from .worktree import WorktreeConfig

logger = get_logger("config")


def _default_config_dir() -> Path:
    env_dir = os.environ.get("CCMANAGER_CONFIG_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".ccmanager"


CONFIG_DIR = _default_config_dir()
CONFIG_PATH = CONFIG_DIR / "config.yaml"

POST_CREATION_HOOK = "post_creation"
WORKTREE_HOOK_NAMES = (POST_CREATION_HOOK,)

DEFAULT_CONFIG_TEMPLATE = """\
# ccmanager configuration
# Location: ~/.ccmanager/config.yaml

# Commands run when a session changes state.
# Environment: CCMANAGER_OLD_STATE, CCMANAGER_NEW_STATE, CCMANAGER_WORKTREE,
#              CCMANAGER_WORKTREE_BRANCH, CCMANAGER_SESSION_ID
# status_hooks:
#   waiting_input:
#     command: notify-send "ccmanager" "$CCMANAGER_WORKTREE_BRANCH needs input"
#     enabled: true
#   idle:
#     command: echo "done" >> /tmp/ccmanager.log
#     enabled: false

# Commands run after a worktree is created.
# Environment: CCMANAGER_WORKTREE, CCMANAGER_WORKTREE_BRANCH,
#              CCMANAGER_BASE_BRANCH, CCMANAGER_GIT_ROOT
# worktree_hooks:
#   post_creation:
#     command: npm install
#     enabled: true

# Launch presets
# command_presets:
#   presets:
#     - id: "1"
#       name: Main
#       command: claude
#       detection_strategy: claude
#     - id: "2"
#       name: Resume
#       command: claude
#       args: ["--resume"]
#       fallback_args: []
#   default_preset_id: "1"
#   select_preset_on_start: false

# New worktree directories
# worktree:
#   auto_directory: false
#   auto_directory_pattern: "../{branch}"
"""


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the raw config mapping.

    Returns an empty dict when the file is missing, unparsable, or not a
    mapping.
    """
    path = path or CONFIG_PATH
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        logger.warning(f"Ignoring unreadable config {path}: {e}")
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def save_config(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    """Write the raw config mapping atomically, creating parent dirs."""
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    with open(temp_path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    temp_path.replace(path)


@dataclass(frozen=True)
class HookEntry:
    """One configured hook command."""

    command: str
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"command": self.command, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["HookEntry"]:
        """Parse a hook entry; None when it is malformed."""
        if not isinstance(data, dict):
            return None
        command = data.get("command")
        if not isinstance(command, str) or not command.strip():
            return None
        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            return None
        return cls(command=command, enabled=enabled)


class ConfigurationManager:
    """Typed, thread-safe access to ccmanager configuration.

    Args:
        path: Config file to use (defaults to CONFIG_PATH)
        data: Initial raw data; when given, nothing is read from disk
        autosave: Persist every write (disable for in-memory use in tests)
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        data: Optional[Dict[str, Any]] = None,
        autosave: bool = True,
    ):
        self.path = path or CONFIG_PATH
        self.autosave = autosave
        self._lock = threading.RLock()
        self._tracks_file = data is None
        self._file_stamp: Optional[Tuple[int, int, int]] = None
        self._data: Dict[str, Any] = {}
        if data is not None:
            self._data = data
        else:
            self.reload()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _stamp(self) -> Optional[Tuple[int, int, int]]:
        try:
            st = self.path.stat()
        except OSError:
            return None
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def _refresh(self) -> None:
        """Pick up writes made to the file by other processes."""
        if self._tracks_file and self._stamp() != self._file_stamp:
            self.reload()

    def _save(self) -> None:
        if not self.autosave:
            return
        try:
            save_config(self._data, self.path)
        except OSError as e:
            raise ConfigError(f"Cannot write config {self.path}: {e}") from e
        if self._tracks_file:
            self._file_stamp = self._stamp()

    def reload(self) -> None:
        """Re-read the config file, discarding the in-memory copy."""
        with self._lock:
            self._file_stamp = self._stamp()
            self._data = load_config(self.path)

    def as_dict(self) -> Dict[str, Any]:
        with self._lock:
            self._refresh()
            return copy.deepcopy(self._data)

    # ------------------------------------------------------------------
    # Status hooks
    # ------------------------------------------------------------------

    def get_status_hooks(self) -> Dict[SessionState, HookEntry]:
        """Configured status hooks; malformed entries are left out."""
        with self._lock:
            self._refresh()
            raw = self._data.get("status_hooks")
        hooks: Dict[SessionState, HookEntry] = {}
        if not isinstance(raw, dict):
            return hooks
        for state in ALL_STATES:
            if state.value not in raw:
                continue
            entry = HookEntry.from_dict(raw[state.value])
            if entry is None:
                logger.debug(f"Ignoring malformed status hook for '{state.value}'")
                continue
            hooks[state] = entry
        return hooks

    def set_status_hook(self, state: SessionState, command: str, enabled: bool = True) -> None:
        with self._lock:
            self._refresh()
            hooks = self._data.setdefault("status_hooks", {})
            if not isinstance(hooks, dict):
                hooks = self._data["status_hooks"] = {}
            hooks[SessionState(state).value] = HookEntry(command, enabled).to_dict()
            self._save()

    def set_status_hooks(self, hooks: Dict[SessionState, HookEntry]) -> None:
        with self._lock:
            self._refresh()
            self._data["status_hooks"] = {SessionState(s).value: h.to_dict() for s, h in hooks.items()}
            self._save()

    def remove_status_hook(self, state: SessionState) -> bool:
        with self._lock:
            self._refresh()
            hooks = self._data.get("status_hooks")
            if not isinstance(hooks, dict) or SessionState(state).value not in hooks:
                return False
            del hooks[SessionState(state).value]
            self._save()
            return True

    # ------------------------------------------------------------------
    # Worktree hooks
    # ------------------------------------------------------------------

    def get_worktree_hooks(self) -> Dict[str, HookEntry]:
        with self._lock:
            self._refresh()
            raw = self._data.get("worktree_hooks")
        hooks: Dict[str, HookEntry] = {}
        if not isinstance(raw, dict):
            return hooks
        for name in WORKTREE_HOOK_NAMES:
            if name not in raw:
                continue
            entry = HookEntry.from_dict(raw[name])
            if entry is None:
                logger.debug(f"Ignoring malformed worktree hook '{name}'")
                continue
            hooks[name] = entry
        return hooks

    def set_worktree_hook(self, name: str, command: str, enabled: bool = True) -> None:
        if name not in WORKTREE_HOOK_NAMES:
            raise ValueError(f"Unknown worktree hook '{name}'")
        with self._lock:
            self._refresh()
            hooks = self._data.setdefault("worktree_hooks", {})
            if not isinstance(hooks, dict):
                hooks = self._data["worktree_hooks"] = {}
            hooks[name] = HookEntry(command, enabled).to_dict()
            self._save()

    # ------------------------------------------------------------------
    # Command presets
    # ------------------------------------------------------------------

    def get_command_presets(self) -> PresetsConfig:
        """Current presets. The result is a copy; edit through the setters."""
        with self._lock:
            self._refresh()
            return PresetsConfig.from_dict(self._data.get("command_presets"))

    def set_command_presets(self, presets: PresetsConfig) -> None:
        with self._lock:
            self._refresh()
            self._data["command_presets"] = presets.to_dict()
            self._save()

    def _edit_presets(self, edit) -> Any:
        with self._lock:
            self._refresh()
            presets = self.get_command_presets()
            result = edit(presets)
            self.set_command_presets(presets)
            return result

    def add_preset(self, preset: CommandPreset) -> CommandPreset:
        return self._edit_presets(lambda p: p.add_preset(preset))

    def update_preset(self, preset_id: str, **fields: Any) -> CommandPreset:
        return self._edit_presets(lambda p: p.update_preset(preset_id, **fields))

    def delete_preset(self, preset_id: str) -> None:
        self._edit_presets(lambda p: p.delete_preset(preset_id))

    def set_default_preset(self, preset_id: str) -> None:
        self._edit_presets(lambda p: p.set_default_preset(preset_id))

    def get_select_preset_on_start(self) -> bool:
        return self.get_command_presets().select_preset_on_start

    def set_select_preset_on_start(self, value: bool) -> None:
        def _set(presets: PresetsConfig) -> None:
            presets.select_preset_on_start = value
        self._edit_presets(_set)

    # ------------------------------------------------------------------
    # Worktree settings
    # ------------------------------------------------------------------

    def get_worktree_config(self) -> WorktreeConfig:
        with self._lock:
            self._refresh()
            return WorktreeConfig.from_dict(self._data.get("worktree"))

    def set_worktree_config(self, worktree_config: WorktreeConfig) -> None:
        with self._lock:
            self._refresh()
            self._data["worktree"] = worktree_config.to_dict()
            self._save()
