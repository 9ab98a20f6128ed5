"""
Tests for tools/presets.py — catalog contents and index lookup.
"""

import pytest

from tools.presets import (
    LEAVE_UNCHANGED,
    LIGHT_PRESETS,
    VISION_PRESETS,
    find_preset,
    format_catalog,
    get_light_preset,
    get_vision_preset,
)
from tools.vision_errors import InvalidPresetIndex


class TestCatalogs:

    def test_vision_names_in_order(self):
        names = [p.name for p in VISION_PRESETS]
        assert names == [
            "Leave Unchanged",
            "Self",
            "Devil's Sight",
            "Darkvision (30 feet)",
            "Darkvision (60 feet)",
            "Darkvision (90 feet)",
            "Darkvision (120 feet)",
            "Darkvision (150 feet)",
            "Darkvision (180 feet)",
        ]

    def test_light_names_in_order(self):
        names = [p.name for p in LIGHT_PRESETS]
        assert names == [
            "Leave Unchanged",
            "None",
            "Candle",
            "Torch / Light Cantrip",
            "Lamp",
            "Hooded Lantern",
            "Hooded Lantern (Dim)",
            "Bullseye Lantern",
        ]

    def test_first_entry_is_empty_overlay(self):
        assert VISION_PRESETS[0].overlay.is_empty
        assert LIGHT_PRESETS[0].overlay.is_empty

    def test_darkvision_is_dim_only(self):
        dv = find_preset(VISION_PRESETS, "Darkvision (120 feet)")
        assert dv.overlay.dim_sight == 120
        assert dv.overlay.bright_sight == 0

    def test_devils_sight(self):
        ds = find_preset(VISION_PRESETS, "Devil's Sight")
        assert ds.overlay.dim_sight == 0
        assert ds.overlay.bright_sight == 120

    def test_light_presets_leave_vision_alone(self):
        for preset in LIGHT_PRESETS:
            assert preset.overlay.dim_sight is None
            assert preset.overlay.bright_sight is None

    def test_only_bullseye_sets_rotation_lock(self):
        locking = [p.name for p in LIGHT_PRESETS if p.overlay.lock_rotation is not None]
        assert locking == ["Bullseye Lantern"]

    def test_presets_are_frozen(self):
        with pytest.raises(Exception):
            VISION_PRESETS[1].name = "Other"


class TestLookup:

    def test_in_range(self):
        assert get_vision_preset(4).name == "Darkvision (60 feet)"
        assert get_light_preset(3).name == "Torch / Light Cantrip"

    def test_out_of_range_falls_back(self):
        assert get_vision_preset(99).name == LEAVE_UNCHANGED
        assert get_light_preset(len(LIGHT_PRESETS)).name == LEAVE_UNCHANGED

    def test_negative_falls_back(self):
        assert get_vision_preset(-1).name == LEAVE_UNCHANGED

    def test_strict_raises(self):
        with pytest.raises(InvalidPresetIndex) as info:
            get_light_preset(42, strict=True)
        assert info.value.index == 42
        assert info.value.size == len(LIGHT_PRESETS)

    def test_find_is_case_insensitive(self):
        assert find_preset(LIGHT_PRESETS, "  candle ").name == "Candle"

    def test_find_missing(self):
        assert find_preset(LIGHT_PRESETS, "Everburning Torch") is None

    def test_format_catalog(self):
        text = format_catalog(LIGHT_PRESETS)
        lines = text.splitlines()
        assert len(lines) == len(LIGHT_PRESETS)
        assert lines[0].endswith("no change")
        assert "dimLight=40" in lines[3]
