"""
TokenVisionService — applies vision/light presets to tokens and schedules
their expiry.

Per token:
  1. read the current fields
  2. resolve the chosen presets over them
  3. if a duration was given, freeze two snapshots of the step-1 fields and
     schedule the "burns low" warning and the "goes out" restore, each with
     its own snapshot
  4. write the resolved fields, whether or not step 3 worked

Snapshots come from step 1, never from the resolved fields; otherwise the
restore would put the new light back instead of the old one.

Two invocations on the same token are not coordinated: a pending restore
from the first will overwrite whatever the second set.

Nothing raises out of apply(). Problems are reported through the notifier
and the remaining tokens are still processed.
"""

import logging
from typing import Iterable, Optional

from models.token_vision import ApplyReport, FieldSet, Preset, TokenSnapshot, TokenSubject, VisionRequest
from tools.effect_scheduler import EffectScheduler
from tools.notifier import Notifier, Severity
from tools.overlay_resolver import resolve_presets
from tools.presets import get_light_preset, get_vision_preset
from tools.vision_errors import NoSubjectSelected, SchedulingUnavailable

logger = logging.getLogger("TokenVision")

WARN_MESSAGE = "The fire burns low..."
EXPIRE_MESSAGE = "The fire goes out, leaving you in darkness."


class TokenVisionService:
    """Entry point used by the Discord dialog (and anything else that selects tokens)."""

    def __init__(self, scheduler: EffectScheduler, notifier: Notifier):
        self.scheduler = scheduler
        self.notifier = notifier

    async def apply(
        self,
        subjects: Iterable[TokenSubject],
        vision_index: int = 0,
        light_index: int = 0,
        duration_minutes: int = 0,
    ) -> ApplyReport:
        """Apply the chosen presets to every subject. Returns once all immediate updates ran."""
        request = VisionRequest(
            vision_index=vision_index,
            light_index=light_index,
            duration_minutes=duration_minutes,
        )
        report = ApplyReport()

        subjects = list(subjects)
        if not subjects:
            error = NoSubjectSelected()
            report.errors.append(str(error))
            await self.notifier.notify(str(error), Severity.ERROR)
            return report

        vision = get_vision_preset(request.vision_index)
        light = get_light_preset(request.light_index)
        logger.info(
            f"Applying vision '{vision.name}' / light '{light.name}' to {len(subjects)} token(s), "
            f"duration {request.duration_minutes} min"
        )

        for subject in subjects:
            await self.apply_to_token(subject, vision, light, request.duration_minutes, report)
        return report

    async def apply_to_token(
        self,
        subject: TokenSubject,
        vision: Preset,
        light: Preset,
        duration: int,
        report: Optional[ApplyReport] = None,
    ) -> Optional[FieldSet]:
        """Run the four steps for one token. Returns the resolved fields, or None if it failed."""
        if report is None:
            report = ApplyReport()

        try:
            current = await subject.get_fields()
        except Exception as e:
            logger.error(f"Could not read {subject.name}: {e}", exc_info=True)
            report.failed.append(subject.name)
            await self.notifier.notify(f"Could not read token {subject.name}: {e}", Severity.ERROR)
            return None

        resolved = resolve_presets(current, vision, light)

        if duration > 0:
            warn_snapshot = TokenSnapshot.of(subject.name, current)
            restore_snapshot = TokenSnapshot.of(subject.name, current)
            try:
                self.scheduler.schedule_expiry(
                    subject.name,
                    duration,
                    self._warn_action(warn_snapshot),
                    self._restore_action(subject, restore_snapshot),
                )
                report.scheduled.append(subject.name)
            except SchedulingUnavailable as e:
                logger.warning(f"Expiry not scheduled for {subject.name}: {e}")
                report.errors.append(str(e))
                await self.notifier.notify(str(e), Severity.ERROR)

        try:
            await subject.update_fields(resolved)
        except Exception as e:
            logger.error(f"Could not update {subject.name}: {e}", exc_info=True)
            report.failed.append(subject.name)
            await self.notifier.notify(f"Could not update token {subject.name}: {e}", Severity.ERROR)
            return None

        report.updated.append(subject.name)
        return resolved

    # ------------------------------------------------------------------
    # Scheduled callbacks
    # ------------------------------------------------------------------

    def _warn_action(self, snapshot: TokenSnapshot):
        async def warn() -> None:
            logger.info(f"{snapshot.token_name}: light running low")
            await self.notifier.notify(WARN_MESSAGE, Severity.INFO)
        return warn

    def _restore_action(self, subject: TokenSubject, snapshot: TokenSnapshot):
        async def restore() -> None:
            try:
                await self.notifier.notify(EXPIRE_MESSAGE, Severity.INFO)
            except Exception as e:
                logger.error(f"Expiry notice for {snapshot.token_name} failed: {e}", exc_info=True)
            try:
                await subject.update_fields(snapshot.fields)
            except Exception as e:
                logger.error(f"Could not restore {snapshot.token_name}: {e}", exc_info=True)
                await self.notifier.notify(
                    f"Could not restore vision for {snapshot.token_name}: {e}", Severity.ERROR
                )
                return
            logger.info(f"{snapshot.token_name}: vision and light restored")
        return restore
