"""
Shared pytest fixtures for the Token Vision test suite.

FakeToken stands in for a Foundry token: it keeps its fields in memory and
applies updates the way Foundry does (only the keys sent change).
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from models.token_vision import FieldSet
from tools.effect_scheduler import EffectScheduler
from tools.game_clock import GameClock
from tools.notifier import Severity
from tools.token_vision import TokenVisionService


# ---------------------------------------------------------------------------
# Fakes (reusable classes)
# ---------------------------------------------------------------------------

class FakeToken:
    """In-memory TokenSubject that records every update it receives."""

    def __init__(self, name: str = "Hadrian", fail_read: bool = False,
                 fail_update: bool = False, **fields):
        self.name = name
        self.fields = FieldSet(**fields)
        self.vision_enabled = False
        self.updates = []
        self.fail_read = fail_read
        self.fail_update = fail_update

    async def get_fields(self) -> FieldSet:
        if self.fail_read:
            raise RuntimeError("relay unreachable")
        return self.fields.model_copy(deep=True)

    async def update_fields(self, fields: FieldSet) -> None:
        if self.fail_update:
            raise RuntimeError("relay unreachable")
        payload = fields.to_update()
        self.updates.append(payload)
        self.vision_enabled = payload["vision"]
        changed = fields.model_dump(exclude_none=True)
        self.fields = self.fields.model_copy(update=changed)


class RecordingNotifier:
    """Collects (message, severity) pairs."""

    def __init__(self):
        self.messages = []

    async def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.messages.append((message, severity))

    @property
    def errors(self):
        return [m for m, s in self.messages if s == Severity.ERROR]

    @property
    def infos(self):
        return [m for m, s in self.messages if s == Severity.INFO]


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def token():
    """The scenario token: Self-like vision, no light."""
    return FakeToken(
        "Hadrian",
        dim_sight=5, bright_sight=0, dim_light=0, bright_light=0,
        light_angle=360, lock_rotation=True,
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return GameClock()


@pytest.fixture
def scheduler(clock):
    return EffectScheduler(clock)


@pytest.fixture
def service(scheduler, notifier):
    return TokenVisionService(scheduler, notifier)


@pytest.fixture
def mock_foundry():
    """MagicMock FoundryClient with the token/chat calls stubbed."""
    foundry = MagicMock()
    foundry.is_connected = True
    foundry.get_token_data = AsyncMock(return_value={
        "name": "Hadrian",
        "dimSight": 5,
        "brightSight": 0,
        "dimLight": 0,
        "brightLight": 0,
        "lightAngle": 360,
        "lockRotation": False,
        "x": 1400,
        "y": 900,
    })
    foundry.update_entity = AsyncMock(return_value={"success": True})
    foundry.post_chat_message = AsyncMock(return_value={"success": True})
    foundry.get_selected_tokens = AsyncMock(return_value=[])
    return foundry
