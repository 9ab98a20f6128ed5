"""
Preset catalogs — the vision types and light sources offered in the dialog.

Compatible with the dnd5e system. Both catalogs start with "Leave Unchanged"
(an empty overlay) so index 0 is always a safe fallback.
"""

import logging
from typing import List, Optional, Sequence

from models.token_vision import FieldSet, Preset
from tools.vision_errors import InvalidPresetIndex

logger = logging.getLogger("Presets")

LEAVE_UNCHANGED = "Leave Unchanged"

# Darkvision comes in steps of 30 feet, up to 180
DARKVISION_STEP = 30
DARKVISION_MAX = 180


def _vision(name: str, dim: Optional[float], bright: Optional[float]) -> Preset:
    return Preset(name=name, overlay=FieldSet(dim_sight=dim, bright_sight=bright))


def _light(name: str, dim: Optional[float], bright: Optional[float],
           angle: Optional[float], lock_rotation: Optional[bool]) -> Preset:
    return Preset(name=name, overlay=FieldSet(
        dim_light=dim,
        bright_light=bright,
        light_angle=angle,
        lock_rotation=lock_rotation,
    ))


def _build_vision_presets() -> List[Preset]:
    presets = [
        _vision(LEAVE_UNCHANGED, None, None),
        _vision("Self", 5, 0),
        _vision("Devil's Sight", 0, 120),
    ]
    for feet in range(DARKVISION_STEP, DARKVISION_MAX + 1, DARKVISION_STEP):
        presets.append(_vision(f"Darkvision ({feet} feet)", feet, 0))
    return presets


VISION_PRESETS: Sequence[Preset] = tuple(_build_vision_presets())

# Sources of light a character may be holding
LIGHT_PRESETS: Sequence[Preset] = (
    _light(LEAVE_UNCHANGED, None, None, None, None),
    _light("None", 0, 0, 360, None),
    _light("Candle", 10, 5, 360, None),
    _light("Torch / Light Cantrip", 40, 20, 360, None),
    _light("Lamp", 45, 15, 360, None),
    _light("Hooded Lantern", 60, 30, 360, None),
    _light("Hooded Lantern (Dim)", 5, 0, 360, None),
    _light("Bullseye Lantern", 120, 60, 52.5, False),
)


def _lookup(catalog: Sequence[Preset], label: str, index: int, strict: bool) -> Preset:
    if 0 <= index < len(catalog):
        return catalog[index]
    if strict:
        raise InvalidPresetIndex(label, index, len(catalog))
    logger.warning(f"{label} preset index {index} out of range — using '{LEAVE_UNCHANGED}'")
    return catalog[0]


def get_vision_preset(index: int, strict: bool = False) -> Preset:
    """Vision preset by index. Out-of-range falls back to entry 0 unless strict."""
    return _lookup(VISION_PRESETS, "Vision", index, strict)


def get_light_preset(index: int, strict: bool = False) -> Preset:
    """Light preset by index. Out-of-range falls back to entry 0 unless strict."""
    return _lookup(LIGHT_PRESETS, "Light", index, strict)


def find_preset(catalog: Sequence[Preset], name: str) -> Optional[Preset]:
    """Case-insensitive lookup by name."""
    wanted = name.strip().lower()
    for preset in catalog:
        if preset.name.lower() == wanted:
            return preset
    return None


def format_catalog(catalog: Sequence[Preset]) -> str:
    """Numbered listing for chat output."""
    lines = []
    for index, preset in enumerate(catalog):
        overlay = preset.overlay.model_dump(by_alias=True, exclude_none=True)
        detail = ", ".join(
            f"{k}={v:g}" if isinstance(v, float) else f"{k}={v}" for k, v in overlay.items()
        ) or "no change"
        lines.append(f"`{index}` {preset.name} — {detail}")
    return "\n".join(lines)
