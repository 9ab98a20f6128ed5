"""
Overlay resolver — merges a partial preset over a token's current fields.

Pure functions, no I/O. Snapshots never pass through here.
"""

from models.token_vision import FieldSet, Preset, VISION_FIELDS, LIGHT_FIELDS


def resolve(current: FieldSet, overlay: FieldSet) -> FieldSet:
    """Overlay value where it has one, current value otherwise.

    Only None counts as "no opinion": 0 and False override.
    """
    merged = {}
    for name in FieldSet.model_fields:
        value = getattr(overlay, name)
        merged[name] = value if value is not None else getattr(current, name)
    return FieldSet(**merged)


def resolve_presets(current: FieldSet, vision: Preset, light: Preset) -> FieldSet:
    """Apply the vision preset to the vision fields and the light preset to the light fields."""
    vision_part = resolve(current, vision.overlay.subset(VISION_FIELDS))
    light_part = resolve(current, light.overlay.subset(LIGHT_FIELDS))
    combined = {name: getattr(vision_part, name) for name in VISION_FIELDS}
    combined.update({name: getattr(light_part, name) for name in LIGHT_FIELDS})
    return FieldSet(**combined)
