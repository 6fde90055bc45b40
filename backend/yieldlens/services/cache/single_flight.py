"""
Coalescing of concurrent requests for the same key.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class SingleFlight:
    """Run at most one in-flight call per key; concurrent callers share its outcome."""

    def __init__(self):
        self._in_flight: Dict[str, asyncio.Future] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    async def do(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        """Await ``fn()`` for ``key``, or join the call already running for it.

        The result (or exception) of the leading call is delivered to every
        waiter. Once it settles the key is released, so a later call starts a
        fresh fetch.
        """
        pending = self._in_flight.get(key)
        if pending is not None:
            logger.debug(f"Waiting for pending request: {key}")
            # Shielded: one waiter being cancelled must not cancel the shared call
            return await asyncio.shield(pending)

        future = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            result = await fn()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved: there may be no other waiter
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._in_flight.pop(key, None)
