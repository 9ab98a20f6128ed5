"""
Pydantic v2 data models — the contract for token vision state.

Every field read from or written to a Foundry token passes through FieldSet.
"""

from models.token_vision import (
    FieldSet,
    Preset,
    TokenSubject,
    TokenSnapshot,
    VisionRequest,
    ApplyReport,
    VISION_FIELDS,
    LIGHT_FIELDS,
)

__all__ = [
    "FieldSet",
    "Preset",
    "TokenSubject",
    "TokenSnapshot",
    "VisionRequest",
    "ApplyReport",
    "VISION_FIELDS",
    "LIGHT_FIELDS",
]
