"""Discovery task state machine."""

import asyncio
import logging
import time
from datetime import date
from typing import Callable, List, Optional

import pendulum

from ..discovery import DiscoveryEngine
from ..errors import NotFound
from ..models import Lead, LeadStatus, LocalizedText, TaskStatus
from ..storage import StorageGateway
from .models import TaskRunResult

logger = logging.getLogger(__name__)


class TaskRunner:
    """
    Run a discovery task: pending -> running -> completed | failed.

    Every run replaces the leads and placeholder articles of the previous
    run, so running the same task twice never accumulates duplicates.
    """

    def __init__(
        self,
        storage: StorageGateway,
        discovery: DiscoveryEngine,
        sentinel_prefix: str,
        on_completed: Optional[Callable[[TaskRunResult], None]] = None,
    ) -> None:
        """
        Initialize task runner.

        Args:
            storage: Storage gateway
            discovery: Headline discovery engine
            sentinel_prefix: Body prefix for placeholder articles
            on_completed: Called after a successful run; its errors are only logged
        """
        self.storage = storage
        self.discovery = discovery
        self.sentinel_prefix = sentinel_prefix
        self.on_completed = on_completed

    def _previous_articles(self, task_id: int) -> List[int]:
        leads = self.storage.list_leads_for_task(task_id)
        return [lead.article_id for lead in leads if lead.article_id is not None]

    def _remove_previous_run(self, task_id: int) -> int:
        leads = self.storage.list_leads_for_task(task_id)
        article_ids = [lead.article_id for lead in leads if lead.article_id is not None]
        self.storage.delete_leads_and_articles([lead.id for lead in leads], article_ids)
        return len(leads)

    def _create_placeholders(self, task, leads: List[Lead], discovered_at) -> List[int]:
        article_ids: List[int] = []
        for lead in leads:
            article = self.storage.create_placeholder_article(
                titles=LocalizedText.same(lead.headline),
                body=f"{self.sentinel_prefix}{lead.headline}",
                published_at=lead.published_at or discovered_at,
                sources=[lead.source],
                category_id=task.category_id,
            )
            self.storage.link_lead_to_article(lead.id, article.id, LeadStatus.REWRITE_PENDING)
            article_ids.append(article.id)
        return article_ids

    async def run(self, task_id: int, published_after: Optional[date] = None) -> TaskRunResult:
        """
        Run discovery for a task and create leads with placeholder articles.

        Raises:
            NotFound: Task does not exist
            Exception: Whatever failed the run, after the task is marked failed
        """
        task = await asyncio.to_thread(self.storage.get_task, task_id)
        if task is None:
            raise NotFound("Task", task_id)

        self.storage.set_task_status(task_id, TaskStatus.RUNNING, None)
        started = time.time()

        try:
            discovery = await self.discovery.discover(
                task.query,
                account_name=task.account_name,
                collection_uuid=task.collection_uuid,
                published_after=published_after,
                exclude_article_ids=await asyncio.to_thread(self._previous_articles, task_id),
            )

            removed = await asyncio.to_thread(self._remove_previous_run, task_id)

            new_leads = [
                Lead(
                    task_id=task_id,
                    headline=candidate.title,
                    source=candidate.source_ref,
                    published_at=candidate.published_at,
                    status=LeadStatus.PENDING,
                )
                for candidate in discovery.candidates
            ]
            leads = await asyncio.to_thread(self.storage.create_leads, new_leads)

            discovered_at = pendulum.now("UTC")
            article_ids = await asyncio.to_thread(self._create_placeholders, task, leads, discovered_at)

            self.storage.set_task_status(task_id, TaskStatus.COMPLETED, None)

        except asyncio.CancelledError:
            logger.warning("Task %s cancelled", task_id)
            self.storage.set_task_status(task_id, TaskStatus.FAILED, "Run cancelled")
            raise
        except Exception as e:
            logger.error("Task %s failed: %s", task_id, e)
            self.storage.set_task_status(task_id, TaskStatus.FAILED, str(e))
            raise

        result = TaskRunResult(
            task_id=task_id,
            status=TaskStatus.COMPLETED,
            found=discovery.found,
            created=len(leads),
            removed=removed,
            skipped_no_url=discovery.skipped_no_url,
            skipped_duplicate=discovery.skipped_duplicate,
            skipped_existing=discovery.skipped_existing,
            lead_ids=[lead.id for lead in leads],
            article_ids=article_ids,
            duration=time.time() - started,
            raw_response=discovery.raw_response,
        )
        logger.info("Task %s completed: %d leads created, %d replaced", task_id, result.created, removed)

        if self.on_completed is not None:
            try:
                self.on_completed(result)
            except Exception:
                logger.exception("Post-completion hook for task %s failed", task_id)

        return result
