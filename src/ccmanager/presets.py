"""
Command presets and the preset resolver.

A preset is a named launch configuration: executable, arguments, optional
fallback arguments, and the detection strategy for sessions it starts.
PresetsConfig is the collection; it enforces the collection invariants:

- names are unique and never the reserved word "default"
- the last remaining preset cannot be deleted
- the default preset id always references an existing preset

resolve_preset() turns a preset id into a LaunchSpec without touching the
stored presets.
"""

import copy
import dataclasses
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .exceptions import InvalidPresetError, LastPresetError, PresetNotFoundError
from .state_constants import (
    DEFAULT_COMMAND,
    DEFAULT_STRATEGY,
    RESERVED_PRESET_NAME,
    DetectionStrategy,
    parse_strategy,
)


def generate_preset_id() -> str:
    """Generate a new stable preset id."""
    return uuid.uuid4().hex[:12]


def parse_args(value: Optional[str]) -> Optional[List[str]]:
    """Split a whitespace separated argument string; empty means no args."""
    if value is None:
        return None
    tokens = value.split()
    return tokens or None


@dataclass
class CommandPreset:
    """A named, reusable launch configuration."""

    id: str
    name: str
    command: str = DEFAULT_COMMAND
    args: Optional[List[str]] = None
    fallback_args: Optional[List[str]] = None
    detection_strategy: DetectionStrategy = DEFAULT_STRATEGY

    def __post_init__(self):
        if not self.command:
            self.command = DEFAULT_COMMAND
        if not self.args:
            self.args = None
        if not self.fallback_args:
            self.fallback_args = None
        if not isinstance(self.detection_strategy, DetectionStrategy):
            self.detection_strategy = parse_strategy(self.detection_strategy or "")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "command": self.command,
            "detection_strategy": self.detection_strategy.value,
        }
        if self.args:
            data["args"] = list(self.args)
        if self.fallback_args:
            data["fallback_args"] = list(self.fallback_args)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommandPreset":
        """Build a preset from config data (accepts camelCase keys too)."""
        args = data.get("args")
        fallback = data.get("fallback_args", data.get("fallbackArgs"))
        strategy = data.get("detection_strategy", data.get("detectionStrategy")) or ""
        return cls(
            id=str(data.get("id") or generate_preset_id()),
            name=str(data.get("name") or "New Preset"),
            command=str(data.get("command") or DEFAULT_COMMAND),
            args=[str(a) for a in args] if isinstance(args, list) else parse_args(args),
            fallback_args=[str(a) for a in fallback] if isinstance(fallback, list) else parse_args(fallback),
            detection_strategy=parse_strategy(strategy),
        )


def default_preset() -> CommandPreset:
    """The preset a fresh configuration starts with."""
    return CommandPreset(id="1", name="Main", command=DEFAULT_COMMAND)


@dataclass(frozen=True)
class LaunchSpec:
    """Concrete launch derived from a preset."""

    command: str
    args: List[str]
    detection_strategy: DetectionStrategy
    preset: CommandPreset

    @property
    def argv(self) -> List[str]:
        return [self.command, *self.args]


@dataclass
class PresetsConfig:
    """The preset collection plus which preset is the default."""

    presets: Dict[str, CommandPreset] = field(default_factory=dict)
    default_preset_id: str = ""
    select_preset_on_start: bool = False

    def __post_init__(self):
        if not self.presets:
            preset = default_preset()
            self.presets = {preset.id: preset}
        if self.default_preset_id not in self.presets:
            self.default_preset_id = next(iter(self.presets))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_preset(self, preset_id: str) -> CommandPreset:
        """Get a preset by id.

        Raises:
            PresetNotFoundError: If the id is unknown
        """
        try:
            return self.presets[preset_id]
        except KeyError:
            raise PresetNotFoundError(preset_id) from None

    def get_default_preset(self) -> CommandPreset:
        return self.presets[self.default_preset_id]

    def find_by_name(self, name: str) -> Optional[CommandPreset]:
        for preset in self.presets.values():
            if preset.name == name:
                return preset
        return None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def validate_name(self, name: str, preset_id: Optional[str] = None) -> None:
        """Check a name is usable for preset_id (None for a new preset).

        Raises:
            InvalidPresetError: If the name is empty, reserved or taken
        """
        if not name or not name.strip():
            raise InvalidPresetError(name, "name cannot be empty")
        if name.strip().lower() == RESERVED_PRESET_NAME:
            raise InvalidPresetError(name, f'"{RESERVED_PRESET_NAME}" is reserved')
        existing = self.find_by_name(name)
        if existing is not None and existing.id != preset_id:
            raise InvalidPresetError(name, "another preset already uses this name")

    def add_preset(self, preset: CommandPreset) -> CommandPreset:
        """Add a preset, or replace the preset with the same id."""
        self.validate_name(preset.name, preset.id)
        self.presets[preset.id] = preset
        return preset

    def update_preset(self, preset_id: str, **fields: Any) -> CommandPreset:
        """Edit fields of an existing preset in place.

        Raises:
            PresetNotFoundError: If the id is unknown
            InvalidPresetError: If the new name is not allowed
        """
        preset = self.get_preset(preset_id)
        for key in fields:
            if key == "id" or not hasattr(preset, key):
                raise AttributeError(f"CommandPreset has no editable field '{key}'")
        if "name" in fields:
            self.validate_name(fields["name"], preset_id)
        # replace() re-runs normalization and rejects bad strategies first
        updated = dataclasses.replace(preset, **fields)
        for key in fields:
            setattr(preset, key, getattr(updated, key))
        return preset

    def delete_preset(self, preset_id: str) -> None:
        """Delete a preset; reassigns default when the default is deleted.

        Raises:
            PresetNotFoundError: If the id is unknown
            LastPresetError: If it is the only preset
        """
        self.get_preset(preset_id)
        if len(self.presets) <= 1:
            raise LastPresetError(preset_id)
        del self.presets[preset_id]
        if self.default_preset_id == preset_id:
            self.default_preset_id = next(iter(self.presets))

    def set_default_preset(self, preset_id: str) -> None:
        self.get_preset(preset_id)
        self.default_preset_id = preset_id

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def copy(self) -> "PresetsConfig":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "presets": [p.to_dict() for p in self.presets.values()],
            "default_preset_id": self.default_preset_id,
            "select_preset_on_start": self.select_preset_on_start,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PresetsConfig":
        """Build from config data; malformed entries are skipped."""
        data = data if isinstance(data, dict) else {}
        raw = data.get("presets") or []
        if isinstance(raw, dict):
            raw = [dict(value, id=key) for key, value in raw.items() if isinstance(value, dict)]

        presets: Dict[str, CommandPreset] = {}
        seen_names = set()
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            try:
                preset = CommandPreset.from_dict(entry)
            except ValueError:
                continue
            if preset.id in presets or preset.name in seen_names:
                continue
            if preset.name.strip().lower() == RESERVED_PRESET_NAME:
                continue
            presets[preset.id] = preset
            seen_names.add(preset.name)

        default_id = data.get("default_preset_id", data.get("defaultPresetId"))
        return cls(
            presets=presets,
            default_preset_id=str(default_id) if default_id is not None else "",
            select_preset_on_start=bool(data.get("select_preset_on_start", False)),
        )


def resolve_preset(
    presets_config: PresetsConfig,
    preset_id: Optional[str] = None,
    use_fallback: bool = False,
) -> LaunchSpec:
    """Derive the launch command for a preset.

    Args:
        presets_config: The preset collection
        preset_id: Preset to resolve; None resolves the default preset
        use_fallback: Use fallback_args instead of args (caller's choice)

    Returns:
        LaunchSpec with command, argument list and detection strategy

    Raises:
        PresetNotFoundError: If preset_id is not in the collection
    """
    if preset_id is None:
        preset = presets_config.get_default_preset()
    else:
        preset = presets_config.get_preset(preset_id)

    chosen = preset.fallback_args if use_fallback else preset.args
    return LaunchSpec(
        command=preset.command or DEFAULT_COMMAND,
        args=list(chosen or []),
        detection_strategy=preset.detection_strategy,
        preset=copy.deepcopy(preset),
    )
