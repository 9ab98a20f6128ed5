"""
EffectScheduler — registers delayed one-shot effects with the game clock.

Does no timekeeping of its own. It checks the clock is usable, works out
the warn/expire offsets for a duration and hands the callbacks over.
"""

import logging
from typing import List, Optional

from tools.game_clock import GameClock, ScheduledEffect, EffectAction
from tools.vision_errors import SchedulingUnavailable

logger = logging.getLogger("EffectScheduler")

CLOCK_MISSING = "Please install and activate the About Time module to use the duration field!"
CLOCK_INACTIVE = "Please activate the About Time module to use the duration field!"


def warning_delay(duration: int) -> int:
    """Game minutes until the low-fuel warning: a quarter of the duration left."""
    return (3 * duration) // 4


class EffectScheduler:
    """Thin layer over GameClock.do_in() with availability checks.

    `clock` may be None, which means no clock service is installed at all.
    """

    def __init__(self, clock: Optional[GameClock] = None):
        self.clock = clock

    @property
    def available(self) -> bool:
        return self.clock is not None and self.clock.active

    def ensure_available(self) -> GameClock:
        """Return the clock, or raise SchedulingUnavailable with a user-facing reason."""
        if self.clock is None:
            raise SchedulingUnavailable(CLOCK_MISSING)
        if not self.clock.active:
            raise SchedulingUnavailable(CLOCK_INACTIVE)
        return self.clock

    def schedule_after(self, delay: int, action: EffectAction, label: str = "") -> ScheduledEffect:
        """Fire `action` once `delay` game minutes have passed."""
        clock = self.ensure_available()
        return clock.do_in(delay, action, label=label)

    def schedule_expiry(
        self,
        subject_name: str,
        duration: int,
        warn_action: EffectAction,
        restore_action: EffectAction,
    ) -> List[ScheduledEffect]:
        """Register the warning at 3/4 of `duration` and the restore at `duration`.

        A duration of 0 or less schedules nothing. Raises SchedulingUnavailable
        before registering anything if the clock is missing or inactive.
        """
        if duration <= 0:
            return []

        self.ensure_available()
        warn = self.schedule_after(
            warning_delay(duration), warn_action, label=f"{subject_name}: burns low"
        )
        restore = self.schedule_after(
            duration, restore_action, label=f"{subject_name}: goes out"
        )
        logger.info(
            f"Expiry set for {subject_name}: warn at +{warn.delay:g} min, "
            f"restore at +{restore.delay:g} min"
        )
        return [warn, restore]
