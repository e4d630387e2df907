"""Tests for the preset model and per-file selection."""
import itertools
import re

from presetgate.rules.filters import FileContext, FilterSpec
from presetgate.rules.presets import (
    Environment,
    Preset,
    compile_presets,
    define_preset,
    is_annotated,
    preset_label,
    select_presets,
    unwrap_preset,
)


def select(context, presets):
    return select_presets(context, presets, compile_presets(presets))


class TestPresetModel:
    """Tests for Preset and helpers."""

    def test_filter_mapping_coerced(self):
        """Test mapping filters become FilterSpec."""
        preset = Preset("react", filter={"path": "*.tsx"})
        assert preset.filter == FilterSpec(path="*.tsx")

    def test_define_preset(self):
        """Test define_preset wraps with capabilities."""
        hook = lambda config: True  # noqa: E731
        preset = define_preset({"runtime": "automatic"}, config_resolved_hook=hook, name="jsx")
        assert is_annotated(preset)
        assert preset.preset == {"runtime": "automatic"}
        assert preset.config_resolved_hook is hook
        assert preset.filter is None

    def test_is_annotated(self):
        """Test plain values are not annotated."""
        assert not is_annotated("env")
        assert not is_annotated({"name": "env"})
        assert is_annotated(Preset("env"))

    def test_unwrap(self):
        """Test payload extraction."""
        payload = object()
        assert unwrap_preset(Preset(payload)) is payload
        assert unwrap_preset(payload) is payload

    def test_labels(self):
        """Test labels for reports and logs."""

        def custom_preset():
            pass

        assert preset_label("env") == "env"
        assert preset_label(Preset("react")) == "react"
        assert preset_label(Preset({"x": 1}, name="named")) == "named"
        assert preset_label(custom_preset) == "custom_preset"
        assert preset_label(Preset(custom_preset)) == "custom_preset"

    def test_environment_equality_ignores_config(self):
        """Test environments compare by name."""
        assert Environment("client", {"a": 1}) == Environment("client", {"b": 2})
        assert Environment("client") != Environment("ssr")


class TestSelectPresets:
    """Tests for per-file preset selection."""

    def test_plain_always_selected(self, tsx_context):
        """Test plain presets are always kept."""
        assert select(tsx_context, ["env", "typescript"]) == ["env", "typescript"]

    def test_annotated_without_filter(self, tsx_context):
        """Test annotated presets without filter are kept."""
        preset = Preset("env")
        assert select(tsx_context, [preset]) == [preset]

    def test_filter_decides(self, tsx_context, react_preset, vue_preset, styled_preset):
        """Test filters decide selection."""
        selected = select(tsx_context, [react_preset, vue_preset, styled_preset])
        assert selected == [react_preset, styled_preset]

    def test_order_preserved(self, tsx_context):
        """Test matching presets keep input order for every permutation."""
        presets = [
            Preset("a", filter={"path": "*.tsx"}),
            Preset("b", filter={"path": "*.vue"}),
            "c",
            Preset("d", filter={"category": "tsx"}),
            Preset("e", filter={"content": re.compile("nothing-here")}),
        ]
        for permutation in itertools.permutations(presets):
            selected = select(tsx_context, list(permutation))
            expected = [p for p in permutation if preset_label(p) in {"a", "c", "d"}]
            assert selected == expected

    def test_empty_result(self):
        """Test no matching presets."""
        preset = Preset("vue", filter={"path": "*.vue"})
        assert select(FileContext("a.ts", "ts", ""), [preset]) == []

    def test_compile_presets_aligned(self, react_preset):
        """Test compiled predicates align with presets."""
        compiled = compile_presets(["env", Preset("x"), react_preset])
        assert compiled[0] is None
        assert compiled[1] is None
        assert callable(compiled[2])
