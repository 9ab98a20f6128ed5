"""
GameClock — in-game time that fires callbacks after a number of game minutes.

Pure Python + asyncio. No Foundry or Discord imports.

Game time only moves when something advances it: the GM via advance(), or
the optional ticker started with start(), which advances one game minute
every `seconds_per_minute` real seconds. Effects whose time has come fire
in (fire_at, registration order), one at a time.

Pending effects live in memory only. If the process stops they are gone.
"""

import asyncio
import heapq
import inspect
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union
from uuid import uuid4

logger = logging.getLogger("GameClock")

EffectAction = Callable[[], Union[Awaitable[None], None]]


@dataclass
class ScheduledEffect:
    """A one-shot callback waiting for its game minute."""

    delay: float
    fire_at: float
    action: EffectAction
    label: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))
    fired: bool = False


class GameClock:
    """In-game clock with one-shot delayed callbacks.

    Usage:
        clock = GameClock()
        clock.do_in(30, warn_callback, label="warn")
        await clock.advance(30)     # warn_callback fires
    """

    def __init__(self, start_minute: float = 0.0, active: bool = True):
        self._now: float = float(start_minute)
        self._active: bool = active
        self._queue: List[Tuple[float, int, ScheduledEffect]] = []
        self._counter = itertools.count()
        self._lock = asyncio.Lock()
        self._ticker: Optional[asyncio.Task] = None
        self.seconds_per_minute: float = 0.0

    @property
    def now(self) -> float:
        """Elapsed game minutes."""
        return self._now

    @property
    def active(self) -> bool:
        return self._active

    def activate(self) -> None:
        self._active = True
        logger.info("Game clock ACTIVE")

    def deactivate(self) -> None:
        self._active = False
        logger.info("Game clock INACTIVE")

    @property
    def pending(self) -> List[ScheduledEffect]:
        """Effects not yet fired, soonest first."""
        return [entry[2] for entry in sorted(self._queue)]

    @property
    def is_running(self) -> bool:
        """True while the real-time ticker task is alive."""
        return self._ticker is not None and not self._ticker.done()

    def do_in(self, minutes: float, action: EffectAction, label: str = "") -> ScheduledEffect:
        """Register `action` to fire once `minutes` of game time have passed."""
        delay = max(float(minutes), 0.0)
        effect = ScheduledEffect(delay=delay, fire_at=self._now + delay, action=action, label=label)
        heapq.heappush(self._queue, (effect.fire_at, next(self._counter), effect))
        logger.info(
            f"Scheduled '{label or effect.id}' in {delay:g} min "
            f"(fires at minute {effect.fire_at:g})"
        )
        return effect

    async def advance(self, minutes: float) -> List[ScheduledEffect]:
        """Move game time forward and fire everything that came due.

        Returns the effects fired, in firing order. A failing callback is
        logged and does not stop the others.
        """
        if minutes < 0:
            raise ValueError("Game time cannot run backwards.")

        fired: List[ScheduledEffect] = []
        async with self._lock:
            self._now += minutes
            while self._queue and self._queue[0][0] <= self._now:
                _, _, effect = heapq.heappop(self._queue)
                effect.fired = True
                fired.append(effect)
                await self._run(effect)

        if fired:
            logger.info(f"Advanced to minute {self._now:g}, fired {len(fired)} effect(s).")
        return fired

    async def _run(self, effect: ScheduledEffect) -> None:
        try:
            result = effect.action()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Effect '{effect.label or effect.id}' failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Real-time ticker
    # ------------------------------------------------------------------

    def start(self, seconds_per_minute: float) -> None:
        """Advance one game minute every `seconds_per_minute` real seconds."""
        if seconds_per_minute <= 0:
            raise ValueError("seconds_per_minute must be positive.")
        if self.is_running:
            return
        self.seconds_per_minute = seconds_per_minute
        self._ticker = asyncio.create_task(self._tick_loop())
        logger.info(f"Game clock ticking: 1 game minute per {seconds_per_minute:g}s")

    async def _tick_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.seconds_per_minute)
                if self._active:
                    await self.advance(1)
        except asyncio.CancelledError:
            return

    async def stop(self) -> None:
        """Stop the ticker. Pending effects stay queued."""
        if self._ticker and not self._ticker.done():
            self._ticker.cancel()
            try:
                await self._ticker
            except asyncio.CancelledError:
                pass
        self._ticker = None
        logger.info("Game clock ticker stopped.")

    def describe(self) -> Dict[str, Any]:
        """Status dict for chat output."""
        return {
            "minute": self._now,
            "active": self._active,
            "ticking": self.is_running,
            "pending": len(self._queue),
        }
