"""Submit-then-poll client for the asynchronous query service."""

import asyncio
import logging
from typing import Any, Optional, Set

import httpx

from ..errors import PollTimeout, QueryCancelled, RemoteTaskFailed, SubmissionFailed
from .models import PollResult, QueryOptions, extract_request_id
from .parsing import parse_json_answer, strip_code_fences

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/query_queue_async"
RESULT_PATH = "/api/queue/result/{request_id}"


class AsyncQueryClient:
    """
    Client for a service that answers queries asynchronously.

    A query is submitted, its result polled every ``poll_interval`` seconds
    up to ``max_polls`` times, and the stored result deleted remotely once
    read. Calls are not rate limited here; route them through a
    :class:`~newsdesk.scheduler.RateLimiter`.
    """

    def __init__(
        self,
        base_url: str,
        default_options: Optional[QueryOptions] = None,
        poll_interval: float = 2.0,
        max_polls: int = 150,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Service root URL
            default_options: Routing options used when a call passes none
            poll_interval: Seconds to wait before each poll
            max_polls: Poll attempts before giving up with PollTimeout
            timeout: HTTP timeout per request
            http_client: Pre-built client (tests pass one with a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.default_options = default_options or QueryOptions()
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self._cleanups: Set[asyncio.Task] = set()

    async def __aenter__(self) -> "AsyncQueryClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Wait for outstanding cleanup calls, then close the HTTP client."""
        if self._cleanups:
            await asyncio.gather(*list(self._cleanups), return_exceptions=True)
        await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def submit(self, query: str, options: Optional[QueryOptions] = None) -> str:
        """
        Submit a query.

        Returns:
            Request id to poll

        Raises:
            SubmissionFailed: Non-success response, transport error or no request id
        """
        options = options or self.default_options
        try:
            response = await self._client.get(
                self._url(SUBMIT_PATH), params=options.to_params(query)
            )
        except httpx.HTTPError as e:
            raise SubmissionFailed(f"Submit request failed: {e}") from e

        if response.status_code >= 400:
            raise SubmissionFailed(f"Submit failed: {response.status_code} {response.text}")

        try:
            payload = response.json()
        except ValueError as e:
            raise SubmissionFailed("Submit response is not JSON") from e

        request_id = extract_request_id(payload) if isinstance(payload, dict) else None
        if not request_id:
            raise SubmissionFailed("Submit response missing request_id")

        logger.info("Queued query %r as %s", query[:30], request_id)
        return request_id

    async def _wait(self, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleep one poll interval. Returns True if cancelled meanwhile."""
        if cancel_event is None:
            await asyncio.sleep(self.poll_interval)
            return False
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            return False
        return True

    async def poll(
        self,
        request_id: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Poll until the request completes.

        Returns:
            Answer text

        Raises:
            RemoteTaskFailed: Service reported failed or not_found
            PollTimeout: No terminal status after ``max_polls`` attempts
            QueryCancelled: ``cancel_event`` was set
        """
        url = self._url(RESULT_PATH.format(request_id=request_id))

        for attempt in range(self.max_polls):
            try:
                cancelled = await self._wait(cancel_event)
            except asyncio.CancelledError:
                self._schedule_cleanup(url)
                raise
            if cancelled:
                self._schedule_cleanup(url)
                raise QueryCancelled(f"Query {request_id} cancelled by caller")

            try:
                response = await self._client.get(url)
            except httpx.HTTPError as e:
                logger.warning("Poll for %s failed (%s), retrying", request_id, e)
                continue

            if response.status_code >= 400:
                logger.warning("Poll for %s failed %s, retrying", request_id, response.status_code)
                continue

            try:
                result = PollResult.from_payload(response.json())
            except ValueError:
                logger.warning("Poll for %s returned an unusable payload, retrying", request_id)
                continue

            if result.completed:
                self._schedule_cleanup(url)
                return result.answer

            if result.failed:
                raise RemoteTaskFailed(f"Query {request_id} failed: {result.error or result.status}")

            if attempt % 5 == 0:
                logger.debug("Polling %s: %s", request_id, result.status)

        raise PollTimeout(request_id, self.max_polls)

    def _schedule_cleanup(self, url: str) -> None:
        task = asyncio.get_running_loop().create_task(self._cleanup(url))
        self._cleanups.add(task)
        task.add_done_callback(self._cleanups.discard)

    async def _cleanup(self, url: str) -> None:
        try:
            await self._client.delete(url)
        except httpx.HTTPError as e:
            logger.debug("Cleanup of %s failed: %s", url, e)

    async def query(
        self,
        query: str,
        options: Optional[QueryOptions] = None,
        expect_json: bool = True,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """
        Submit a query and wait for its answer.

        Args:
            query: Query text
            options: Routing options (defaults to ``default_options``)
            expect_json: Parse the answer as JSON instead of returning text
            cancel_event: Set it to abandon polling early

        Returns:
            Parsed JSON when ``expect_json``, else the answer text with any
            code fences removed

        Raises:
            SubmissionFailed, RemoteTaskFailed, PollTimeout, QueryCancelled,
            ParseFailure
        """
        request_id = await self.submit(query, options)
        answer = await self.poll(request_id, cancel_event=cancel_event)
        if not expect_json:
            return strip_code_fences(answer)
        return parse_json_answer(answer)
