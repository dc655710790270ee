"""FIFO rate limiter for calls to the external service."""

import asyncio
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional, Tuple

logger = logging.getLogger(__name__)

Work = Callable[[], Awaitable[Any]]


class RateLimiter:
    """
    Serialize async calls so that consecutive starts are at least
    ``interval_seconds`` apart.

    Producers call :meth:`submit` concurrently; a single drain task runs
    the queued work one unit at a time in submission order and exits when
    the queue is empty. One instance should be shared by everything that
    talks to the same provider.
    """

    def __init__(
        self,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the limiter.

        Args:
            interval_seconds: Minimum gap between two dispatches
            clock: Monotonic clock, replaceable in tests
        """
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._queue: Deque[Tuple[Work, asyncio.Future]] = deque()
        self._drain_task: Optional[asyncio.Task] = None
        self._last_dispatch: Optional[float] = None
        self._current: Optional[asyncio.Future] = None
        self.dispatched = 0

    @property
    def calls_per_minute(self) -> float:
        """Ceiling on dispatches per minute."""
        if self.interval_seconds == 0:
            return float("inf")
        return 60.0 / self.interval_seconds

    @property
    def pending(self) -> int:
        """Number of queued units not yet dispatched."""
        return len(self._queue)

    async def submit(self, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """
        Queue ``fn(*args, **kwargs)`` and wait for its result.

        Exceptions raised by the work are re-raised here and affect no
        other queued unit.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._queue.append((lambda: fn(*args, **kwargs), future))

        if self._drain_task is None or self._drain_task.done():
            self._drain_task = loop.create_task(self._drain())

        return await future

    async def _drain(self) -> None:
        while self._queue:
            work, future = self._queue.popleft()
            if future.done():
                # Caller gave up before dispatch
                continue

            if self._last_dispatch is not None:
                wait = self.interval_seconds - (self._clock() - self._last_dispatch)
                if wait > 0:
                    await asyncio.sleep(wait)

            if future.done():
                continue

            self._last_dispatch = self._clock()
            self.dispatched += 1
            self._current = future
            try:
                result = await work()
            except Exception as e:
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._current = None

    async def aclose(self) -> None:
        """Stop draining and cancel every queued unit."""
        while self._queue:
            _, future = self._queue.popleft()
            future.cancel()
        in_flight = self._current
        if self._drain_task is not None and not self._drain_task.done():
            self._drain_task.cancel()
            try:
                await self._drain_task
            except asyncio.CancelledError:
                pass
        if in_flight is not None and not in_flight.done():
            in_flight.cancel()
        self._drain_task = None
