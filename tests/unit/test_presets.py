"""
Unit tests for command presets and the preset resolver.
"""

import random

import pytest

from ccmanager.exceptions import InvalidPresetError, LastPresetError, PresetNotFoundError
from ccmanager.presets import (
    CommandPreset,
    PresetsConfig,
    default_preset,
    parse_args,
    resolve_preset,
)
from ccmanager.state_constants import DetectionStrategy


def _presets(*presets: CommandPreset, default: str = "") -> PresetsConfig:
    return PresetsConfig(presets={p.id: p for p in presets}, default_preset_id=default)


class TestCommandPreset:

    def test_empty_command_defaults_to_claude(self):
        preset = CommandPreset(id="x", name="X", command="")
        assert preset.command == "claude"

    def test_empty_args_become_none(self):
        preset = CommandPreset(id="x", name="X", args=[], fallback_args=[])
        assert preset.args is None
        assert preset.fallback_args is None

    def test_strategy_string_is_parsed(self):
        preset = CommandPreset(id="x", name="X", detection_strategy="gemini")
        assert preset.detection_strategy is DetectionStrategy.GEMINI

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError):
            CommandPreset(id="x", name="X", detection_strategy="copilot")

    def test_round_trip_through_dict(self):
        preset = CommandPreset(
            id="7", name="Resume", command="claude", args=["--resume"], fallback_args=["--continue"],
            detection_strategy=DetectionStrategy.CLAUDE,
        )
        assert CommandPreset.from_dict(preset.to_dict()) == preset

    def test_from_dict_accepts_camel_case(self):
        preset = CommandPreset.from_dict({
            "id": "2", "name": "Gem", "command": "gemini",
            "fallbackArgs": ["--yolo"], "detectionStrategy": "gemini",
        })
        assert preset.fallback_args == ["--yolo"]
        assert preset.detection_strategy is DetectionStrategy.GEMINI

    def test_from_dict_splits_string_args(self):
        preset = CommandPreset.from_dict({"id": "3", "name": "S", "args": "--model  opus"})
        assert preset.args == ["--model", "opus"]


class TestParseArgs:

    def test_splits_on_whitespace(self):
        assert parse_args("  -a  b\tc ") == ["-a", "b", "c"]

    def test_blank_is_none(self):
        assert parse_args("   ") is None
        assert parse_args(None) is None


class TestPresetsConfig:

    def test_empty_config_gets_default_preset(self):
        presets = PresetsConfig()
        assert len(presets.presets) == 1
        assert presets.get_default_preset().name == "Main"
        assert presets.get_default_preset().command == "claude"

    def test_dangling_default_id_is_repaired(self):
        presets = _presets(CommandPreset(id="a", name="A"), default="missing")
        assert presets.default_preset_id == "a"

    def test_add_preset(self):
        presets = PresetsConfig()
        presets.add_preset(CommandPreset(id="g", name="Gemini", command="gemini"))
        assert presets.get_preset("g").command == "gemini"

    @pytest.mark.parametrize("name", ["default", "Default", "  DEFAULT "])
    def test_reserved_name_rejected(self, name):
        presets = PresetsConfig()
        with pytest.raises(InvalidPresetError, match="reserved"):
            presets.add_preset(CommandPreset(id="z", name=name))

    def test_duplicate_name_rejected(self):
        presets = _presets(CommandPreset(id="a", name="Main"))
        with pytest.raises(InvalidPresetError, match="already uses"):
            presets.add_preset(CommandPreset(id="b", name="Main"))

    def test_empty_name_rejected(self):
        with pytest.raises(InvalidPresetError):
            PresetsConfig().add_preset(CommandPreset(id="b", name=" "))

    def test_update_keeps_own_name(self):
        presets = _presets(CommandPreset(id="a", name="Main"))
        presets.update_preset("a", name="Main", args=["--resume"])
        assert presets.get_preset("a").args == ["--resume"]

    def test_update_rename_to_taken_name_rejected(self):
        presets = _presets(CommandPreset(id="a", name="A"), CommandPreset(id="b", name="B"))
        with pytest.raises(InvalidPresetError):
            presets.update_preset("b", name="A")
        assert presets.get_preset("b").name == "B"

    def test_update_unknown_field_rejected(self):
        presets = _presets(CommandPreset(id="a", name="A"))
        with pytest.raises(AttributeError):
            presets.update_preset("a", colour="blue")

    def test_update_empty_command_falls_back(self):
        presets = _presets(CommandPreset(id="a", name="A", command="gemini"))
        presets.update_preset("a", command="")
        assert presets.get_preset("a").command == "claude"

    def test_update_unknown_id(self):
        with pytest.raises(PresetNotFoundError):
            PresetsConfig().update_preset("nope", name="x")

    def test_delete_last_preset_rejected(self):
        presets = PresetsConfig()
        only = presets.default_preset_id
        with pytest.raises(LastPresetError):
            presets.delete_preset(only)
        assert only in presets.presets

    def test_delete_default_reassigns_default(self):
        presets = _presets(CommandPreset(id="a", name="A"), CommandPreset(id="b", name="B"), default="a")
        presets.delete_preset("a")
        assert presets.default_preset_id == "b"

    def test_delete_non_default_keeps_default(self):
        presets = _presets(CommandPreset(id="a", name="A"), CommandPreset(id="b", name="B"), default="a")
        presets.delete_preset("b")
        assert presets.default_preset_id == "a"

    def test_delete_unknown_id(self):
        with pytest.raises(PresetNotFoundError):
            PresetsConfig().delete_preset("nope")

    def test_set_default(self):
        presets = _presets(CommandPreset(id="a", name="A"), CommandPreset(id="b", name="B"))
        presets.set_default_preset("b")
        assert presets.get_default_preset().id == "b"

    def test_set_default_unknown_id(self):
        presets = _presets(CommandPreset(id="a", name="A"))
        with pytest.raises(PresetNotFoundError):
            presets.set_default_preset("zzz")
        assert presets.default_preset_id == "a"

    def test_default_always_resolves_after_random_edits(self):
        rng = random.Random(1234)
        presets = PresetsConfig()
        counter = 0
        for _ in range(300):
            op = rng.choice(["add", "delete", "default"])
            ids = list(presets.presets)
            if op == "add":
                counter += 1
                presets.add_preset(CommandPreset(id=f"p{counter}", name=f"Preset {counter}"))
            elif op == "delete":
                try:
                    presets.delete_preset(rng.choice(ids))
                except LastPresetError:
                    assert len(ids) == 1
            else:
                presets.set_default_preset(rng.choice(ids))
            assert presets.presets
            assert presets.default_preset_id in presets.presets

    def test_from_dict_skips_malformed_and_duplicates(self):
        presets = PresetsConfig.from_dict({
            "presets": [
                {"id": "1", "name": "Main"},
                "not a preset",
                {"id": "2", "name": "Main"},
                {"id": "3", "name": "Default"},
                {"id": "4", "name": "Bad", "detection_strategy": "copilot"},
                {"id": "5", "name": "Gem", "command": "gemini", "detection_strategy": "gemini"},
            ],
            "default_preset_id": "5",
        })
        assert list(presets.presets) == ["1", "5"]
        assert presets.default_preset_id == "5"

    def test_from_dict_accepts_mapping_of_presets(self):
        presets = PresetsConfig.from_dict({"presets": {"a": {"name": "A"}, "b": {"name": "B"}}})
        assert set(presets.presets) == {"a", "b"}

    def test_from_dict_none(self):
        presets = PresetsConfig.from_dict(None)
        assert presets.get_default_preset() == default_preset()


class TestResolvePreset:

    @pytest.fixture
    def presets(self):
        return _presets(
            CommandPreset(id="main", name="Main"),
            CommandPreset(
                id="resume", name="Resume", args=["--resume"], fallback_args=["--new"],
            ),
            CommandPreset(id="gem", name="Gemini", command="gemini", detection_strategy="gemini"),
            default="main",
        )

    def test_no_args_is_bare_command(self, presets):
        spec = resolve_preset(presets, "main")
        assert spec.command == "claude"
        assert spec.args == []
        assert spec.argv == ["claude"]

    def test_primary_args(self, presets):
        spec = resolve_preset(presets, "resume")
        assert spec.args == ["--resume"]

    def test_fallback_args_on_request(self, presets):
        spec = resolve_preset(presets, "resume", use_fallback=True)
        assert spec.args == ["--new"]

    def test_fallback_without_fallback_args_is_bare(self, presets):
        assert resolve_preset(presets, "main", use_fallback=True).args == []

    def test_detection_strategy(self, presets):
        assert resolve_preset(presets, "gem").detection_strategy is DetectionStrategy.GEMINI
        assert resolve_preset(presets, "main").detection_strategy is DetectionStrategy.CLAUDE

    def test_none_resolves_default(self, presets):
        assert resolve_preset(presets).preset.id == "main"

    def test_unknown_id_raises(self, presets):
        with pytest.raises(PresetNotFoundError) as exc_info:
            resolve_preset(presets, "missing")
        assert exc_info.value.preset_id == "missing"

    def test_does_not_mutate_stored_preset(self, presets):
        spec = resolve_preset(presets, "resume")
        spec.args.append("--extra")
        spec.preset.args.append("--extra")
        assert presets.get_preset("resume").args == ["--resume"]
