"""Retry strategies for generation calls."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from ..errors import NewsdeskError, ParseFailure, PollTimeout, RemoteTaskFailed, SubmissionFailed

logger = logging.getLogger(__name__)


class RetryPolicy(ABC):
    """Decides whether a failed call is tried again."""

    @abstractmethod
    def next_delay(self, attempt: int, error: Exception) -> Optional[float]:
        """
        Delay before retry number ``attempt + 1``.

        Returns:
            Seconds to wait, or None to give up and re-raise
        """

    async def run(self, fn: Callable[[], Awaitable[Any]], label: str = "call") -> Any:
        """Await ``fn()`` until it succeeds or the policy gives up."""
        attempt = 0
        while True:
            try:
                return await fn()
            except NewsdeskError as e:
                delay = self.next_delay(attempt, e)
                if delay is None:
                    raise
                attempt += 1
                logger.warning("%s failed (%s), retry %d in %.1fs", label, e, attempt, delay)
                await asyncio.sleep(delay)


class NoRetry(RetryPolicy):
    """Never retry; failed items wait for a manual re-queue."""

    def next_delay(self, attempt: int, error: Exception) -> Optional[float]:
        return None


class BackoffRetry(RetryPolicy):
    """Bounded retries with exponential backoff."""

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 5.0,
        factor: float = 2.0,
        retry_on: Tuple[Type[Exception], ...] = (
            SubmissionFailed,
            PollTimeout,
            RemoteTaskFailed,
            ParseFailure,
        ),
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.factor = factor
        self.retry_on = retry_on

    def next_delay(self, attempt: int, error: Exception) -> Optional[float]:
        if attempt >= self.max_retries or not isinstance(error, self.retry_on):
            return None
        return self.base_delay * (self.factor ** attempt)


def retry_policy_from_config(max_retries: int, base_delay: float, factor: float) -> RetryPolicy:
    """Pick a policy from rewrite settings."""
    if max_retries <= 0:
        return NoRetry()
    return BackoffRetry(max_retries=max_retries, base_delay=base_delay, factor=factor)
