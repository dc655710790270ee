"""Tests for the FIFO rate limiter."""

import asyncio
import time

import pytest

from newsdesk.scheduler import RateLimiter

INTERVAL = 0.05


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_dispatches_in_submission_order_with_minimum_gap(self):
        limiter = RateLimiter(INTERVAL)
        started = []

        async def work(i):
            started.append((i, time.monotonic()))
            return i * 10

        results = await asyncio.gather(*(limiter.submit(work, i) for i in range(5)))

        assert results == [0, 10, 20, 30, 40]
        assert [i for i, _ in started] == [0, 1, 2, 3, 4]
        gaps = [b - a for (_, a), (_, b) in zip(started, started[1:])]
        assert all(gap >= INTERVAL * 0.9 for gap in gaps)

    @pytest.mark.asyncio
    async def test_concurrent_producers_share_one_queue(self):
        limiter = RateLimiter(INTERVAL)
        started = []

        async def work(tag):
            started.append(time.monotonic())
            return tag

        async def producer(name):
            return [await limiter.submit(work, f"{name}-{n}") for n in range(3)]

        results = await asyncio.gather(producer("a"), producer("b"))

        assert results == [["a-0", "a-1", "a-2"], ["b-0", "b-1", "b-2"]]
        assert limiter.dispatched == 6
        gaps = [b - a for a, b in zip(started, started[1:])]
        assert all(gap >= INTERVAL * 0.9 for gap in gaps)

    @pytest.mark.asyncio
    async def test_failure_reaches_only_its_caller(self):
        limiter = RateLimiter(0)

        async def work(i):
            if i == 1:
                raise ValueError("boom")
            return i

        results = await asyncio.gather(
            *(limiter.submit(work, i) for i in range(3)), return_exceptions=True
        )

        assert results[0] == 0
        assert isinstance(results[1], ValueError)
        assert results[2] == 2

    @pytest.mark.asyncio
    async def test_goes_idle_and_restarts(self):
        limiter = RateLimiter(INTERVAL)

        async def work():
            return time.monotonic()

        first = await limiter.submit(work)
        await asyncio.sleep(0)
        assert limiter.pending == 0

        second = await limiter.submit(work)
        assert second - first >= INTERVAL * 0.9

    @pytest.mark.asyncio
    async def test_idle_longer_than_interval_dispatches_immediately(self):
        limiter = RateLimiter(INTERVAL)

        async def work():
            return time.monotonic()

        await limiter.submit(work)
        await asyncio.sleep(INTERVAL * 2)
        before = time.monotonic()
        dispatched = await limiter.submit(work)
        assert dispatched - before < INTERVAL

    @pytest.mark.asyncio
    async def test_aclose_cancels_queued_work(self):
        limiter = RateLimiter(0)
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return "slow"

        async def fast():
            return "fast"

        first = asyncio.create_task(limiter.submit(slow))
        second = asyncio.create_task(limiter.submit(fast))
        await asyncio.sleep(0.01)

        await limiter.aclose()

        with pytest.raises(asyncio.CancelledError):
            await second
        with pytest.raises(asyncio.CancelledError):
            await first

    def test_rejects_negative_interval(self):
        with pytest.raises(ValueError):
            RateLimiter(-1)

    def test_calls_per_minute(self):
        assert RateLimiter(4.0).calls_per_minute == 15
