"""Service facade wiring storage, the rate limiter and the query client."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, List, Optional, Set

import pendulum

from ..client import AsyncQueryClient, QueryOptions
from ..config import Config, ConfigModel
from ..discovery import DiscoveryEngine
from ..generation import ArticleWriter, retry_policy_from_config
from ..models import Lead, SearchLog, Task, TaskStatus
from ..scheduler import RateLimiter
from ..storage import InMemoryStorage, PostgresStorage, StorageGateway
from .models import BatchResult, SearchOutcome, TaskRunResult
from .rewrite import RewritePipeline
from .tasks import TaskRunner

logger = logging.getLogger(__name__)


class NewsdeskService:
    """Entry point for every operation the CLI exposes."""

    def __init__(
        self,
        storage: StorageGateway,
        limiter: RateLimiter,
        client: AsyncQueryClient,
        config: ConfigModel,
    ) -> None:
        """
        Initialize service.

        Args:
            storage: Storage gateway
            limiter: Shared outbound call scheduler
            client: Query service client
            config: Loaded configuration
        """
        self.storage = storage
        self.limiter = limiter
        self.client = client
        self.config = config

        base_options = client.default_options
        self.discovery = DiscoveryEngine(
            storage,
            limiter,
            client,
            base_options.with_routing(collection_uuid=config.discovery.collection_uuid),
        )
        self.writer = ArticleWriter(
            limiter,
            client,
            base_options.with_routing(collection_uuid=config.rewrite.collection_uuid),
            retry_policy=retry_policy_from_config(
                config.rewrite.max_retries,
                config.rewrite.retry_base_delay,
                config.rewrite.retry_backoff,
            ),
        )
        self.rewrites = RewritePipeline(storage, self.writer, config.rewrite.batch_size)
        self.tasks = TaskRunner(
            storage,
            self.discovery,
            config.rewrite.sentinel_prefix,
            on_completed=self._on_task_completed if config.rewrite.auto_start else None,
        )
        self._background: Set[asyncio.Task] = set()

    # Tasks

    def create_task(
        self,
        query: str,
        account_name: Optional[str] = None,
        collection_uuid: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> Task:
        """Create a pending discovery task."""
        task = self.storage.create_task(query, account_name, collection_uuid, category_id)
        logger.info("Created task %s for %r", task.id, query)
        return task

    async def run_discovery(
        self,
        task_id: int,
        published_after: Optional[date] = None,
    ) -> TaskRunResult:
        """Run discovery for a task, replacing its previous leads."""
        return await self.tasks.run(task_id, published_after)

    # Rewrites

    async def drain_rewrite_queue(self) -> BatchResult:
        """Rewrite every lead waiting for content."""
        return await self.rewrites.drain()

    async def rewrite_one(self, article_id: int) -> BatchResult:
        """Rewrite a single article."""
        return await self.rewrites.rewrite_article(article_id)

    def requeue_lead(self, lead_id: int) -> Lead:
        """Send an errored lead back to the rewrite queue."""
        return self.rewrites.requeue_lead(lead_id)

    def _on_task_completed(self, result: TaskRunResult) -> None:
        if result.created:
            self.start_rewrite_drain()

    def start_rewrite_drain(self) -> asyncio.Task:
        """Start draining the rewrite queue in the background."""
        task = asyncio.get_running_loop().create_task(self.rewrites.drain())
        self._background.add(task)
        task.add_done_callback(self._background_done)
        return task

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background rewrite drain failed: %s", error, exc_info=error)

    async def wait_background(self) -> None:
        """Wait for background drains started so far."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # Scheduled searches

    async def run_due_searches(self, now: Optional[datetime] = None) -> List[SearchOutcome]:
        """
        Run every scheduled search that is due.

        Each search creates a task limited to articles published since its
        previous window. Every run, failed or not, leaves a search log. A
        failing search is reported and retried on the next check; the others
        still run.
        """
        now = pendulum.instance(now) if now is not None else pendulum.now("UTC")
        outcomes: List[SearchOutcome] = []

        for search in await asyncio.to_thread(self.storage.list_due_searches, now):
            window_start = now.subtract(hours=search.interval_hours).date()
            time_span = f"after {window_start.isoformat()}"
            task = self.create_task(search.topic, category_id=search.category_id)
            try:
                result = await self.run_discovery(task.id, published_after=window_start)
            except Exception as e:
                logger.error("Scheduled search %s (%r) failed: %s", search.id, search.topic, e)
                await asyncio.to_thread(
                    self.storage.create_search_log,
                    SearchLog(
                        search_id=search.id,
                        topic=search.topic,
                        time_span=time_span,
                        status=TaskStatus.FAILED,
                        error=str(e),
                    )
                )
                outcomes.append(
                    SearchOutcome(
                        search_id=search.id,
                        topic=search.topic,
                        task_id=task.id,
                        status=TaskStatus.FAILED,
                        error=str(e),
                    )
                )
                continue

            await asyncio.to_thread(
                self.storage.create_search_log,
                SearchLog(
                    search_id=search.id,
                    topic=search.topic,
                    time_span=time_span,
                    raw_response=result.raw_response,
                    items_found=result.found,
                    items_processed=result.created,
                    status=result.status,
                )
            )
            await asyncio.to_thread(self.storage.mark_search_run, search.id, now)
            outcomes.append(
                SearchOutcome(
                    search_id=search.id,
                    topic=search.topic,
                    task_id=task.id,
                    status=result.status,
                    created=result.created,
                )
            )

        return outcomes

    async def aclose(self) -> None:
        """Finish background drains, then release the limiter and client."""
        await self.wait_background()
        await self.limiter.aclose()
        await self.client.aclose()


def build_client(config: Config) -> AsyncQueryClient:
    """Query client from the service section of the config."""
    service = config.get_service_config()
    options = QueryOptions(
        account_name=service.get("account_name"),
        mode=service["mode"],
        sources=service["sources"],
    )
    return AsyncQueryClient(
        service["base_url"],
        default_options=options,
        poll_interval=service["poll_interval"],
        max_polls=service["max_polls"],
        timeout=service["request_timeout"],
    )


@asynccontextmanager
async def open_service(
    config: Config,
    storage: Optional[StorageGateway] = None,
    client: Optional[AsyncQueryClient] = None,
    in_memory: bool = False,
) -> AsyncIterator[NewsdeskService]:
    """
    Build a service from configuration and close everything on exit.

    Storage passed in is left open; storage built here is closed.
    """
    owns_storage = storage is None
    if storage is None:
        storage = InMemoryStorage() if in_memory else PostgresStorage(config.get_db_config())

    service = NewsdeskService(
        storage,
        RateLimiter(config.config.scheduler.interval_seconds),
        client or build_client(config),
        config.config,
    )
    try:
        yield service
    finally:
        await service.aclose()
        if owns_storage:
            storage.close()
