"""
RateLimiter — Token bucket rate limiter for relay calls.

A burst of selected tokens means a burst of /get and /update calls, plus
restore callbacks that can all come due on the same game minute. The
bucket keeps the relay from answering with 429s.
"""

import time
import asyncio
import logging

logger = logging.getLogger('RateLimiter')


class RateLimiter:
    """Token bucket rate limiter.

    Holds up to `max_tokens` permits, refilled at `refill_rate` per second.
    `await limiter.acquire()` before each request; it sleeps while the
    bucket is empty.

    Args:
        max_tokens: Maximum burst size.
        refill_rate: Permits added per second.
        name: Label for logging.
    """

    def __init__(self, max_tokens: int = 10, refill_rate: float = 5.0, name: str = "default"):
        if max_tokens < 1 or refill_rate <= 0:
            raise ValueError("RateLimiter needs max_tokens >= 1 and a positive refill_rate.")
        self.max_tokens = max_tokens
        self.refill_rate = refill_rate
        self.name = name
        self._permits = float(max_tokens)
        self._stamp = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        self._permits = min(self.max_tokens, self._permits + (now - self._stamp) * self.refill_rate)
        self._stamp = now

    async def acquire(self) -> None:
        """Take one permit, waiting for the refill if the bucket is empty."""
        async with self._lock:
            self._refill()
            shortfall = 1.0 - self._permits
            if shortfall > 0:
                wait_time = shortfall / self.refill_rate
                logger.warning(f"[{self.name}] Rate limit — waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)
                self._refill()
            self._permits -= 1.0

    @property
    def available(self) -> float:
        """Permits available right now (without consuming)."""
        self._refill()
        return self._permits


# Shared by every FoundryClient unless one is passed in
foundry_limiter = RateLimiter(max_tokens=10, refill_rate=5.0, name="foundry")
