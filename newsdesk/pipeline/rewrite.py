"""Rewrite queue: turn placeholder articles into generated, translated ones."""

import asyncio
import logging

from ..errors import InconsistentState, NotFound
from ..generation import ArticleWriter
from ..models import Article, Lead, LeadStatus
from ..storage import StorageGateway
from .models import BatchResult, ItemOutcome, Outcome

logger = logging.getLogger(__name__)


class RewritePipeline:
    """Drain leads waiting for content, one at a time."""

    def __init__(
        self,
        storage: StorageGateway,
        writer: ArticleWriter,
        batch_size: int = 10,
    ) -> None:
        """
        Initialize rewrite pipeline.

        Args:
            storage: Storage gateway
            writer: Generates and translates article content
            batch_size: Leads read from storage per query while draining
        """
        self.storage = storage
        self.writer = writer
        self.batch_size = batch_size
        self._lock = asyncio.Lock()

    async def drain(self) -> BatchResult:
        """
        Rewrite every ``rewrite_pending`` lead, including ones queued while
        draining. A failing lead is marked ``error`` and the drain goes on.
        """
        async with self._lock:
            result = BatchResult()
            while True:
                leads = await asyncio.to_thread(
                    self.storage.list_leads_by_status, LeadStatus.REWRITE_PENDING, self.batch_size
                )
                if not leads:
                    break
                for lead in leads:
                    result.add(await self._rewrite_lead(lead))

            logger.info(
                "Rewrite drain finished: %d processed, %d rewritten, %d failed",
                result.processed,
                result.succeeded,
                result.failed,
            )
            return result

    async def _rewrite_lead(self, lead: Lead) -> ItemOutcome:
        try:
            current = await asyncio.to_thread(self.storage.get_lead, lead.id)
            if current is None:
                raise InconsistentState(f"Lead {lead.id} disappeared while queued")
            if current.article_id is None:
                raise InconsistentState(f"Lead {lead.id} has no article")
            article = await asyncio.to_thread(self.storage.get_article, current.article_id)
            if article is None:
                raise InconsistentState(f"Lead {lead.id} references missing article {current.article_id}")

            outcome = await self._rewrite_article(article, current.headline)
            await asyncio.to_thread(self.storage.set_lead_status, lead.id, LeadStatus.REWRITTEN)

        except Exception as e:
            logger.error("Failed to rewrite lead %s: %s", lead.id, e)
            if await asyncio.to_thread(self.storage.get_lead, lead.id) is not None:
                await asyncio.to_thread(self.storage.set_lead_status, lead.id, LeadStatus.ERROR)
            return ItemOutcome(id=lead.id, outcome=Outcome.ERROR, headline=lead.headline, error=str(e))

        return outcome.model_copy(update={"id": lead.id})

    async def _rewrite_article(self, article: Article, headline: str) -> ItemOutcome:
        category = None
        if article.category_id is not None:
            category = await asyncio.to_thread(self.storage.get_category, article.category_id)

        content = await self.writer.write(headline, category)
        await asyncio.to_thread(
            self.storage.update_article_content,
            article.id,
            titles=content.titles,
            bodies=content.bodies,
            sources=content.sources,
            image_url=content.image_url,
            category_id=article.category_id,
        )
        return ItemOutcome(
            id=article.id,
            outcome=Outcome.SUCCESS,
            headline=headline,
            article_id=article.id,
            fallbacks=content.fallbacks,
        )

    async def rewrite_article(self, article_id: int) -> BatchResult:
        """
        Rewrite one article by ID, whatever its state.

        The linked lead, if any, is moved to ``rewritten`` or ``error``.

        Raises:
            NotFound: Article does not exist
        """
        async with self._lock:
            article = await asyncio.to_thread(self.storage.get_article, article_id)
            if article is None:
                raise NotFound("Article", article_id)
            lead = await asyncio.to_thread(self.storage.get_lead_for_article, article_id)

            result = BatchResult()
            try:
                outcome = await self._rewrite_article(article, article.headline)
            except Exception as e:
                logger.error("Failed to rewrite article %s: %s", article_id, e)
                if lead is not None:
                    await asyncio.to_thread(self.storage.set_lead_status, lead.id, LeadStatus.ERROR)
                result.add(
                    ItemOutcome(
                        id=article_id,
                        outcome=Outcome.ERROR,
                        headline=article.headline,
                        article_id=article_id,
                        error=str(e),
                    )
                )
                return result

            if lead is not None:
                await asyncio.to_thread(self.storage.set_lead_status, lead.id, LeadStatus.REWRITTEN)
            result.add(outcome)
            return result

    def requeue_lead(self, lead_id: int) -> Lead:
        """
        Put an errored lead back in the rewrite queue.

        Raises:
            NotFound: Lead does not exist
            InconsistentState: Lead is not in ``error`` or has no article
        """
        lead = self.storage.get_lead(lead_id)
        if lead is None:
            raise NotFound("Lead", lead_id)
        if lead.status != LeadStatus.ERROR:
            raise InconsistentState(f"Lead {lead_id} is {lead.status.value}, not error")
        if lead.article_id is None or self.storage.get_article(lead.article_id) is None:
            raise InconsistentState(f"Lead {lead_id} has no article to rewrite")

        self.storage.set_lead_status(lead_id, LeadStatus.REWRITE_PENDING)
        return lead.model_copy(update={"status": LeadStatus.REWRITE_PENDING})