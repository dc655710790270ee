"""Headline discovery engine."""

import asyncio
import logging
from datetime import date
from typing import Any, List, Optional, Sequence

from ..client import AsyncQueryClient, QueryOptions
from ..errors import ParseFailure
from ..scheduler import RateLimiter
from ..storage import StorageGateway
from .models import DiscoveryResult, HeadlineCandidate
from .prompts import build_headline_query

logger = logging.getLogger(__name__)


class DiscoveryEngine:
    """Find new headline candidates for a topic."""

    def __init__(
        self,
        storage: StorageGateway,
        limiter: RateLimiter,
        client: AsyncQueryClient,
        options: Optional[QueryOptions] = None,
    ) -> None:
        """
        Initialize discovery engine.

        Args:
            storage: Used for the source-URL existence check
            limiter: Shared outbound call scheduler
            client: Query service client
            options: Default routing options for headline searches
        """
        self.storage = storage
        self.limiter = limiter
        self.client = client
        self.options = options or client.default_options

    async def fetch_answer(
        self,
        query: str,
        account_name: Optional[str] = None,
        collection_uuid: Optional[str] = None,
        published_after: Optional[date] = None,
    ) -> Any:
        """
        Run the headline search.

        Returns the parsed JSON answer, or the raw text when it is not JSON.
        Submission, remote and timeout errors propagate.
        """
        prompt = build_headline_query(query, published_after)
        options = self.options.with_routing(account_name, collection_uuid)

        try:
            return await self.limiter.submit(self.client.query, prompt, options, expect_json=True)
        except ParseFailure as e:
            logger.warning("Headline answer for %r was not JSON: %s", query, e)
            return e.answer

    @staticmethod
    def to_candidates(answer: Any) -> List[HeadlineCandidate]:
        """Candidates from a parsed answer; anything but a JSON array yields none."""
        if not isinstance(answer, list):
            return []
        return [HeadlineCandidate.from_raw(item) for item in answer if isinstance(item, dict)]

    async def fetch_headlines(
        self,
        query: str,
        account_name: Optional[str] = None,
        collection_uuid: Optional[str] = None,
        published_after: Optional[date] = None,
    ) -> List[HeadlineCandidate]:
        """Run the headline search and parse the candidates."""
        answer = await self.fetch_answer(query, account_name, collection_uuid, published_after)
        return self.to_candidates(answer)

    def deduplicate(
        self,
        candidates: Sequence[HeadlineCandidate],
        exclude_article_ids: Sequence[int] = (),
    ) -> DiscoveryResult:
        """
        Drop candidates without a URL, repeated in the batch, or already stored.

        Articles in ``exclude_article_ids`` are about to be replaced and do
        not count as stored.
        """
        result = DiscoveryResult(found=len(candidates))
        seen = set()

        for candidate in candidates:
            if not candidate.url:
                result.skipped_no_url += 1
                continue
            if candidate.url in seen:
                result.skipped_duplicate += 1
                continue
            seen.add(candidate.url)

            if self.storage.find_article_by_source_url(candidate.url, exclude_article_ids):
                result.skipped_existing += 1
                continue
            result.candidates.append(candidate)

        return result

    async def discover(
        self,
        query: str,
        account_name: Optional[str] = None,
        collection_uuid: Optional[str] = None,
        published_after: Optional[date] = None,
        exclude_article_ids: Sequence[int] = (),
    ) -> DiscoveryResult:
        """Search for headlines and keep only new ones."""
        answer = await self.fetch_answer(query, account_name, collection_uuid, published_after)
        if answer is not None and not isinstance(answer, list):
            logger.warning("Headline answer for %r is not an array", query)
        result = await asyncio.to_thread(self.deduplicate, self.to_candidates(answer), exclude_article_ids)
        result.raw_response = answer
        logger.info(
            "Discovery for %r: %d found, %d new, %d without URL, %d repeated, %d already stored",
            query,
            result.found,
            len(result.candidates),
            result.skipped_no_url,
            result.skipped_duplicate,
            result.skipped_existing,
        )
        return result
