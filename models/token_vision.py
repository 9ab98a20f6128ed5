"""
Token vision schemas — field overlays, presets, snapshots and requests.

A FieldSet is the vision/light slice of a Foundry token. Every field is
optional: None means "no opinion" (leave the token's value alone), while
0 and False are real values that overwrite.
"""

from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator


VISION_FIELDS: Tuple[str, ...] = ("dim_sight", "bright_sight")
LIGHT_FIELDS: Tuple[str, ...] = ("dim_light", "bright_light", "light_angle", "lock_rotation")


class FieldSet(BaseModel):
    """Vision and light values of a token. Aliases are the Foundry data keys."""

    dim_sight: Optional[float] = Field(default=None, alias="dimSight")
    bright_sight: Optional[float] = Field(default=None, alias="brightSight")
    dim_light: Optional[float] = Field(default=None, alias="dimLight")
    bright_light: Optional[float] = Field(default=None, alias="brightLight")
    light_angle: Optional[float] = Field(default=None, alias="lightAngle")
    lock_rotation: Optional[bool] = Field(default=None, alias="lockRotation")

    # Raw token data carries plenty of unrelated keys (name, x, y, img...)
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_update(self) -> Dict[str, Any]:
        """Foundry update payload. Vision is always switched on; absent fields are omitted."""
        payload: Dict[str, Any] = {"vision": True}
        payload.update(self.model_dump(by_alias=True, exclude_none=True))
        return payload

    def subset(self, names: Tuple[str, ...]) -> "FieldSet":
        """Copy with only the named fields kept; the rest become None."""
        return FieldSet(**{name: getattr(self, name) for name in names})

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)


class Preset(BaseModel):
    """A named, user-selectable partial overlay."""

    name: str
    overlay: FieldSet = Field(default_factory=FieldSet)

    model_config = ConfigDict(frozen=True)


@runtime_checkable
class TokenSubject(Protocol):
    """Anything whose vision/light fields can be read and written."""

    name: str

    async def get_fields(self) -> FieldSet: ...

    async def update_fields(self, fields: FieldSet) -> None: ...


class TokenSnapshot(BaseModel):
    """Immutable copy of a token's fields taken before an overlay is applied.

    Each scheduled callback gets its own snapshot. Nothing else holds a
    reference to it, and the model is frozen, so a restore always sees the
    pre-overlay values regardless of what happened to the token since.
    """

    token_name: str
    fields: FieldSet
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, token_name: str, fields: FieldSet) -> "TokenSnapshot":
        return cls(token_name=token_name, fields=fields.model_copy(deep=True))

    @classmethod
    async def capture(cls, subject: TokenSubject) -> "TokenSnapshot":
        """Read the subject now and freeze a deep copy of its fields."""
        current = await subject.get_fields()
        return cls.of(subject.name, current)


class VisionRequest(BaseModel):
    """One submission from the vision dialog.

    Unparsable numbers become 0, matching what a blank form field means:
    "Leave Unchanged" for the presets and "no duration" for the timer.
    """

    vision_index: int = 0
    light_index: int = 0
    duration_minutes: int = Field(default=0, ge=0)

    @field_validator("vision_index", "light_index", mode="before")
    @classmethod
    def coerce_index(cls, v):
        return _parse_int(v)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def coerce_duration(cls, v):
        return max(_parse_int(v), 0)


class ApplyReport(BaseModel):
    """What one invocation did, per token."""

    updated: List[str] = []
    failed: List[str] = []
    scheduled: List[str] = []
    errors: List[str] = []

    @property
    def ok(self) -> bool:
        return not self.failed and not self.errors


def _parse_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return 0
