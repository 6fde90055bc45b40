"""
Per-source call throttling.

Each source gets a minimum spacing between calls derived from its
calls-per-minute budget. This is a "never faster than X" throttle: there is no
burst allowance, so a source idle for an hour still has to wait the full
interval between its next two calls. Sources are independent of each other.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CALLS_PER_MINUTE = 60


class RateLimiter:
    """Cooperative per-source throttle for asyncio callers."""

    def __init__(
        self,
        default_calls_per_minute: float = DEFAULT_CALLS_PER_MINUTE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the limiter.

        Args:
            default_calls_per_minute: Budget for sources that were never configured
            clock: Monotonic time source in seconds
            sleep: Coroutine used to wait (swapped out in tests)
        """
        if default_calls_per_minute <= 0:
            raise ValueError("default_calls_per_minute must be positive")
        self.default_calls_per_minute = default_calls_per_minute
        self._clock = clock
        self._sleep = sleep
        self._intervals: Dict[str, float] = {}
        self._last_call: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def configure(self, source_id: str, calls_per_minute: float) -> None:
        """Set the calls-per-minute budget of a source."""
        if calls_per_minute <= 0:
            raise ValueError(f"calls_per_minute must be positive for {source_id}")
        self._intervals[source_id] = 60.0 / calls_per_minute
        logger.debug(f"Rate limit for {source_id}: {calls_per_minute} requests/minute")

    def min_interval(self, source_id: str) -> float:
        """Minimum seconds between two calls to ``source_id``."""
        return self._intervals.get(source_id, 60.0 / self.default_calls_per_minute)

    def last_call_at(self, source_id: str) -> Optional[float]:
        return self._last_call.get(source_id)

    async def acquire(self, source_id: str) -> float:
        """Wait until ``source_id`` may be called again and claim the slot.

        Concurrent callers for one source are serialized: reading the last
        call time, sleeping and recording the new call time happen under the
        source's lock.

        Returns:
            Seconds spent waiting
        """
        lock = self._locks.get(source_id)
        if lock is None:
            lock = self._locks.setdefault(source_id, asyncio.Lock())

        async with lock:
            waited = 0.0
            last = self._last_call.get(source_id)
            if last is not None:
                wait = self.min_interval(source_id) - (self._clock() - last)
                if wait > 0:
                    logger.debug(f"Throttling {source_id} for {wait:.3f}s")
                    await self._sleep(wait)
                    waited = wait
            self._last_call[source_id] = self._clock()
            return waited

    def reset(self, source_id: Optional[str] = None) -> None:
        """Forget call history for one source, or for all of them."""
        if source_id is None:
            self._last_call.clear()
        else:
            self._last_call.pop(source_id, None)
