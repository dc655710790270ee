"""Postgres-backed storage gateway."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from psycopg_pool import ConnectionPool

from ..db.articles import ArticleStorage
from ..db.connection import create_connection_pool
from ..db.leads import LeadManager
from ..db.searches import SearchManager
from ..db.tasks import TaskManager
from ..errors import NotFound
from ..models import (
    Article,
    Category,
    Lead,
    LeadStatus,
    LocalizedText,
    ScheduledSearch,
    SearchLog,
    SourceRef,
    Task,
    TaskStatus,
)
from .base import StorageGateway

logger = logging.getLogger(__name__)


class PostgresStorage(StorageGateway):
    """
    Storage gateway over a psycopg connection pool.

    Every call runs on its own pooled connection and commits when it
    returns; multi-row operations run inside one transaction.
    """

    def __init__(
        self,
        db_config: Optional[Dict[str, Any]] = None,
        pool: Optional[ConnectionPool] = None,
    ) -> None:
        """
        Initialize storage.

        Args:
            db_config: Database config dict (see Config.get_db_config)
            pool: Existing pool to use instead of opening one
        """
        if pool is None:
            if db_config is None:
                raise ValueError("Either db_config or pool is required")
            pool = create_connection_pool(db_config)
        self._pool = pool
        self.tasks = TaskManager()
        self.leads = LeadManager()
        self.articles = ArticleStorage()
        self.searches = SearchManager()

    def close(self) -> None:
        self._pool.close()

    # Tasks

    def create_task(
        self,
        query: str,
        account_name: Optional[str] = None,
        collection_uuid: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> Task:
        with self._pool.connection() as conn:
            return self.tasks.create_task(conn, query, account_name, collection_uuid, category_id)

    def get_task(self, task_id: int) -> Optional[Task]:
        with self._pool.connection() as conn:
            return self.tasks.get_task(conn, task_id)

    def list_tasks(self, limit: int = 50) -> List[Task]:
        with self._pool.connection() as conn:
            return self.tasks.list_tasks(conn, limit)

    def set_task_status(
        self,
        task_id: int,
        status: TaskStatus,
        error: Optional[str] = None,
    ) -> None:
        with self._pool.connection() as conn:
            self.tasks.update_status(conn, task_id, status, error)

    # Leads

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        with self._pool.connection() as conn:
            return self.leads.get_lead(conn, lead_id)

    def list_leads_for_task(self, task_id: int) -> List[Lead]:
        with self._pool.connection() as conn:
            return self.leads.list_for_task(conn, task_id)

    def list_leads_by_status(self, status: LeadStatus, limit: Optional[int] = None) -> List[Lead]:
        with self._pool.connection() as conn:
            return self.leads.list_by_status(conn, status, limit)

    def get_lead_for_article(self, article_id: int) -> Optional[Lead]:
        with self._pool.connection() as conn:
            return self.leads.get_for_article(conn, article_id)

    def create_leads(self, leads: Sequence[Lead]) -> List[Lead]:
        created: List[Lead] = []
        with self._pool.connection() as conn:
            with conn.transaction():
                for lead in leads:
                    stored = self.leads.insert_lead(conn, lead)
                    if stored is None:
                        logger.debug("Lead %r already exists for task %s", lead.headline, lead.task_id)
                        continue
                    created.append(stored)
        return created

    def link_lead_to_article(self, lead_id: int, article_id: int, status: LeadStatus) -> None:
        with self._pool.connection() as conn:
            self.leads.link_article(conn, lead_id, article_id, status)

    def set_lead_status(self, lead_id: int, status: LeadStatus) -> None:
        with self._pool.connection() as conn:
            self.leads.update_status(conn, lead_id, status)

    def delete_leads_and_articles(
        self,
        lead_ids: Sequence[int],
        article_ids: Sequence[int],
    ) -> None:
        with self._pool.connection() as conn:
            with conn.transaction():
                leads_deleted = self.leads.delete_leads(conn, lead_ids)
                articles_deleted = self.articles.delete_articles(conn, article_ids)
        logger.debug("Deleted %d leads and %d articles", leads_deleted, articles_deleted)

    # Articles

    def get_article(self, article_id: int) -> Optional[Article]:
        with self._pool.connection() as conn:
            return self.articles.get_article(conn, article_id)

    def create_placeholder_article(
        self,
        titles: LocalizedText,
        body: str,
        published_at: datetime,
        sources: Sequence[SourceRef] = (),
        category_id: Optional[int] = None,
    ) -> Article:
        with self._pool.connection() as conn:
            return self.articles.create_placeholder(
                conn, titles, body, published_at, sources, category_id
            )

    def update_article_content(
        self,
        article_id: int,
        titles: LocalizedText,
        bodies: LocalizedText,
        sources: Sequence[SourceRef],
        image_url: Optional[str],
        category_id: Optional[int],
    ) -> Article:
        with self._pool.connection() as conn:
            article = self.articles.update_content(
                conn, article_id, titles, bodies, sources, image_url, category_id
            )
        if article is None:
            raise NotFound("Article", article_id)
        return article

    def find_article_by_source_url(self, url: str, exclude_ids: Sequence[int] = ()) -> bool:
        with self._pool.connection() as conn:
            return self.articles.source_url_exists(conn, url, exclude_ids)

    # Categories

    def get_category(self, category_id: int) -> Optional[Category]:
        with self._pool.connection() as conn:
            return self.articles.get_category(conn, category_id)

    def create_category(self, name_en: str, description_en: Optional[str] = None) -> Category:
        with self._pool.connection() as conn:
            return self.articles.create_category(conn, name_en, description_en)

    # Scheduled searches

    def create_scheduled_search(
        self,
        topic: str,
        interval_hours: int,
        category_id: Optional[int] = None,
    ) -> ScheduledSearch:
        with self._pool.connection() as conn:
            return self.searches.create_search(conn, topic, interval_hours, category_id)

    def list_due_searches(self, now: datetime) -> List[ScheduledSearch]:
        with self._pool.connection() as conn:
            return self.searches.list_due(conn, now)

    def mark_search_run(self, search_id: int, when: datetime) -> None:
        with self._pool.connection() as conn:
            self.searches.mark_run(conn, search_id, when)

    def create_search_log(self, log: SearchLog) -> SearchLog:
        with self._pool.connection() as conn:
            return self.searches.insert_log(conn, log)

    def list_search_logs(self, search_id: Optional[int] = None, limit: int = 50) -> List[SearchLog]:
        with self._pool.connection() as conn:
            return self.searches.list_logs(conn, search_id, limit)
