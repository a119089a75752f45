"""Request pacing shared by every fetch worker."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional


class RateLimiter:
    """Spaces request starts at least ``1 / rate`` seconds apart.

    One instance is shared by all workers of a fetch, so the ceiling holds
    regardless of how many lookups are in flight.  ``rate`` of ``0`` or
    ``None`` disables pacing.  The lock is created lazily so the limiter
    binds to whichever event loop first uses it.
    """

    def __init__(
        self,
        rate: Optional[float],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.interval = 1.0 / rate if rate else 0.0
        self._clock = clock
        self._sleep = sleep
        self._next_slot: Optional[float] = None
        self._lock: Optional[asyncio.Lock] = None

    async def acquire(self) -> float:
        """Wait for the next free slot; returns the seconds waited."""
        if self.interval <= 0:
            return 0.0

        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            now = self._clock()
            waited = 0.0
            if self._next_slot is not None and self._next_slot > now:
                waited = self._next_slot - now
                await self._sleep(waited)
                now = self._clock()
            self._next_slot = max(now, self._next_slot or now) + self.interval
            return waited
