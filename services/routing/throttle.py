"""
Rate-limited task queue: one call in flight, fixed gap between calls.
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Optional


class ThrottledQueue:
    """
    Serialize awaitables and space them at least min_interval_s apart,
    measured from the end of one call to the start of the next.
    """

    def __init__(
        self,
        min_interval_s: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.min_interval_s = max(0.0, float(min_interval_s))
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_finished: Optional[float] = None
        self.calls = 0

    async def submit(self, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        async with self._lock:
            if self._last_finished is not None:
                wait = self.min_interval_s - (self._clock() - self._last_finished)
                if wait > 0:
                    await self._sleep(wait)
            try:
                return await fn(*args, **kwargs)
            finally:
                self.calls += 1
                self._last_finished = self._clock()
