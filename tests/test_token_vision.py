"""
Tests for tools/token_vision.py — the apply pipeline end to end.

Uses FakeToken + RecordingNotifier + a manually advanced GameClock.
"""

import asyncio

from conftest import FakeToken, RecordingNotifier
from models.token_vision import FieldSet
from tools.effect_scheduler import CLOCK_INACTIVE, CLOCK_MISSING, EffectScheduler
from tools.game_clock import GameClock
from tools.token_vision import EXPIRE_MESSAGE, WARN_MESSAGE, TokenVisionService

DARKVISION_60 = 4
TORCH = 3
CANDLE = 2


def scenario_token(name="Hadrian"):
    return FakeToken(name, dim_sight=5, bright_sight=0, dim_light=0, bright_light=0,
                     light_angle=180, lock_rotation=True)


ORIGINAL = FieldSet(dim_sight=5, bright_sight=0, dim_light=0, bright_light=0,
                    light_angle=180, lock_rotation=True)
TORCHLIT = FieldSet(dim_sight=60, bright_sight=0, dim_light=40, bright_light=20,
                    light_angle=360, lock_rotation=True)


class TestImmediateApply:

    def test_no_duration(self, service, clock, notifier):
        token = scenario_token()
        report = asyncio.run(service.apply([token], DARKVISION_60, TORCH, 0))

        assert token.fields == TORCHLIT
        assert token.vision_enabled is True
        assert len(token.updates) == 1
        assert clock.pending == []
        assert report.updated == ["Hadrian"]
        assert report.scheduled == []
        assert notifier.messages == []

    def test_leave_unchanged_still_writes_vision_on(self, service):
        token = scenario_token()
        asyncio.run(service.apply([token], 0, 0, 0))
        assert token.fields == ORIGINAL
        assert token.updates[0]["vision"] is True

    def test_multiple_tokens(self, service):
        a, b = scenario_token("Hadrian"), FakeToken("Kallisar", dim_sight=60, bright_sight=0)
        report = asyncio.run(service.apply([a, b], 0, CANDLE, 0))
        assert report.updated == ["Hadrian", "Kallisar"]
        assert a.fields.dim_light == 10
        assert b.fields.dim_light == 10
        assert b.fields.dim_sight == 60

    def test_out_of_range_indices_leave_unchanged(self, service):
        token = scenario_token()
        report = asyncio.run(service.apply([token], 99, -3, 0))
        assert token.fields == ORIGINAL
        assert report.ok

    def test_string_inputs_from_form(self, service):
        token = scenario_token()
        asyncio.run(service.apply([token], "4", "3", ""))
        assert token.fields == TORCHLIT

    def test_apply_to_token_returns_resolved(self, service):
        from tools.presets import get_light_preset, get_vision_preset
        token = scenario_token()
        resolved = asyncio.run(service.apply_to_token(
            token, get_vision_preset(DARKVISION_60), get_light_preset(TORCH), 0,
        ))
        assert resolved == TORCHLIT


class TestScheduledExpiry:

    def test_schedules_warn_and_restore(self, service, clock):
        token = scenario_token()
        report = asyncio.run(service.apply([token], DARKVISION_60, TORCH, 40))

        assert report.scheduled == ["Hadrian"]
        assert [e.fire_at for e in clock.pending] == [30, 40]
        # immediate apply happened before anything fired
        assert token.fields == TORCHLIT

    def test_warning_at_three_quarters(self, service, clock, notifier):
        token = scenario_token()

        async def run():
            await service.apply([token], DARKVISION_60, TORCH, 40)
            await clock.advance(29)
            assert notifier.infos == []
            await clock.advance(1)

        asyncio.run(run())
        assert notifier.infos == [WARN_MESSAGE]
        # warning does not touch the token
        assert token.fields == TORCHLIT
        assert len(token.updates) == 1

    def test_restore_to_pre_overlay_state(self, service, clock, notifier):
        token = scenario_token()

        async def run():
            await service.apply([token], DARKVISION_60, TORCH, 40)
            await clock.advance(40)

        asyncio.run(run())
        assert notifier.infos == [WARN_MESSAGE, EXPIRE_MESSAGE]
        assert token.fields == ORIGINAL
        assert len(token.updates) == 2
        assert token.updates[1] == {
            "vision": True,
            "dimSight": 5, "brightSight": 0, "dimLight": 0, "brightLight": 0,
            "lightAngle": 180, "lockRotation": True,
        }

    def test_restore_ignores_changes_made_in_between(self, service, clock):
        token = scenario_token()

        async def run():
            await service.apply([token], DARKVISION_60, TORCH, 40)
            await token.update_fields(FieldSet(dim_light=5, bright_light=0))
            await clock.advance(40)

        asyncio.run(run())
        assert token.fields == ORIGINAL

    def test_duration_100_timing(self, service, clock):
        asyncio.run(service.apply([scenario_token()], 0, TORCH, 100))
        assert [e.fire_at for e in clock.pending] == [75, 100]

    def test_each_token_restores_its_own_state(self, service, clock):
        a = scenario_token("Hadrian")
        b = FakeToken("Kallisar", dim_sight=90, bright_sight=0, dim_light=10, bright_light=5,
                      light_angle=360, lock_rotation=False)

        async def run():
            await service.apply([a, b], 0, TORCH, 10)
            await clock.advance(10)

        asyncio.run(run())
        assert a.fields == ORIGINAL
        assert b.fields.dim_light == 10
        assert b.fields.dim_sight == 90


class TestErrors:

    def test_no_tokens_selected(self, service, notifier, clock):
        report = asyncio.run(service.apply([], DARKVISION_60, TORCH, 40))
        assert notifier.errors == ["Please select a token"]
        assert report.errors == ["Please select a token"]
        assert report.updated == []
        assert clock.pending == []

    def test_inactive_clock_still_applies(self):
        notifier = RecordingNotifier()
        clock = GameClock(active=False)
        service = TokenVisionService(EffectScheduler(clock), notifier)
        token = scenario_token()

        report = asyncio.run(service.apply([token], DARKVISION_60, TORCH, 40))

        assert notifier.errors == [CLOCK_INACTIVE]
        assert token.fields == TORCHLIT
        assert report.updated == ["Hadrian"]
        assert report.scheduled == []
        assert clock.pending == []

    def test_missing_clock_still_applies(self):
        notifier = RecordingNotifier()
        service = TokenVisionService(EffectScheduler(None), notifier)
        token = scenario_token()

        asyncio.run(service.apply([token], DARKVISION_60, TORCH, 40))

        assert notifier.errors == [CLOCK_MISSING]
        assert token.fields == TORCHLIT

    def test_missing_clock_without_duration_is_silent(self):
        notifier = RecordingNotifier()
        service = TokenVisionService(EffectScheduler(None), notifier)
        asyncio.run(service.apply([scenario_token()], DARKVISION_60, TORCH, 0))
        assert notifier.messages == []

    def test_failed_token_does_not_stop_others(self, service, notifier):
        broken = FakeToken("Ghost", fail_update=True, dim_sight=5)
        ok = scenario_token("Hadrian")

        report = asyncio.run(service.apply([broken, ok], DARKVISION_60, TORCH, 0))

        assert report.failed == ["Ghost"]
        assert report.updated == ["Hadrian"]
        assert ok.fields == TORCHLIT
        assert len(notifier.errors) == 1
        assert "Ghost" in notifier.errors[0]

    def test_unreadable_token_skipped_without_scheduling(self, service, clock):
        broken = FakeToken("Ghost", fail_read=True)
        report = asyncio.run(service.apply([broken], DARKVISION_60, TORCH, 40))
        assert report.failed == ["Ghost"]
        assert clock.pending == []

    def test_failed_restore_is_reported(self, service, clock, notifier):
        token = scenario_token()

        async def run():
            await service.apply([token], DARKVISION_60, TORCH, 40)
            token.fail_update = True
            await clock.advance(40)

        asyncio.run(run())
        assert notifier.infos == [WARN_MESSAGE, EXPIRE_MESSAGE]
        assert len(notifier.errors) == 1
        assert "Hadrian" in notifier.errors[0]
        assert token.fields == TORCHLIT


class BrokenSink:
    """Notifier that always fails, used without a CompositeNotifier around it."""

    async def notify(self, message, severity=None):
        raise RuntimeError("chat down")


class TestBrokenNotifier:

    def test_restore_runs_when_expiry_notice_fails(self, clock):
        service = TokenVisionService(EffectScheduler(clock), RecordingNotifier())
        token = scenario_token()

        async def run():
            await service.apply([token], DARKVISION_60, TORCH, 40)
            service.notifier = BrokenSink()
            await clock.advance(40)

        asyncio.run(run())
        assert token.fields == ORIGINAL
        assert len(token.updates) == 2
