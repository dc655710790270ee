"""In-memory storage, used by tests and dry runs."""

import itertools
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pendulum

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


def _now() -> datetime:
    return pendulum.now("UTC")


class InMemoryStorage(StorageGateway):
    """Dict-backed storage with the same semantics as the Postgres one."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self.tasks: Dict[int, Task] = {}
        self.leads: Dict[int, Lead] = {}
        self.articles: Dict[int, Article] = {}
        self.categories: Dict[int, Category] = {}
        self.searches: Dict[int, ScheduledSearch] = {}
        self.search_logs: Dict[int, SearchLog] = {}

    def _stamp(self) -> Dict[str, object]:
        now = _now()
        return {"id": next(self._ids), "created_at": now, "updated_at": now}

    def _touch(self, record) -> None:
        record.updated_at = _now()

    @staticmethod
    def _copy(record):
        return record.model_copy(deep=True) if record is not None else None

    # Tasks

    def create_task(
        self,
        query: str,
        account_name: Optional[str] = None,
        collection_uuid: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> Task:
        with self._lock:
            task = Task(
                query=query,
                account_name=account_name,
                collection_uuid=collection_uuid,
                category_id=category_id,
                status=TaskStatus.PENDING,
                **self._stamp(),
            )
            self.tasks[task.id] = task
            return self._copy(task)

    def get_task(self, task_id: int) -> Optional[Task]:
        with self._lock:
            return self._copy(self.tasks.get(task_id))

    def list_tasks(self, limit: int = 50) -> List[Task]:
        with self._lock:
            tasks = sorted(self.tasks.values(), key=lambda t: t.id, reverse=True)
            return [self._copy(t) for t in tasks[:limit]]

    def set_task_status(
        self,
        task_id: int,
        status: TaskStatus,
        error: Optional[str] = None,
    ) -> None:
        with self._lock:
            task = self.tasks[task_id]
            task.status = status
            task.error = error
            self._touch(task)

    # Leads

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        with self._lock:
            return self._copy(self.leads.get(lead_id))

    def list_leads_for_task(self, task_id: int) -> List[Lead]:
        with self._lock:
            leads = sorted(self.leads.values(), key=lambda x: x.id)
            return [self._copy(lead) for lead in leads if lead.task_id == task_id]

    def list_leads_by_status(self, status: LeadStatus, limit: Optional[int] = None) -> List[Lead]:
        with self._lock:
            leads = sorted(self.leads.values(), key=lambda x: x.id)
            leads = [lead for lead in leads if lead.status == status]
            if limit is not None:
                leads = leads[:limit]
            return [self._copy(lead) for lead in leads]

    def get_lead_for_article(self, article_id: int) -> Optional[Lead]:
        with self._lock:
            for lead in self.leads.values():
                if lead.article_id == article_id:
                    return self._copy(lead)
            return None

    def create_leads(self, leads: Sequence[Lead]) -> List[Lead]:
        with self._lock:
            existing = {(lead.task_id, lead.headline) for lead in self.leads.values()}
            staged: List[Lead] = []
            for lead in leads:
                if lead.task_id not in self.tasks:
                    raise KeyError(f"Task {lead.task_id} does not exist")
                key = (lead.task_id, lead.headline)
                if key in existing:
                    continue
                existing.add(key)
                staged.append(lead.model_copy(update=self._stamp(), deep=True))

            for lead in staged:
                self.leads[lead.id] = lead
            return [self._copy(lead) for lead in staged]

    def link_lead_to_article(self, lead_id: int, article_id: int, status: LeadStatus) -> None:
        with self._lock:
            if article_id not in self.articles:
                raise KeyError(f"Article {article_id} does not exist")
            other = self.get_lead_for_article(article_id)
            if other is not None and other.id != lead_id:
                raise ValueError(f"Article {article_id} already linked to lead {other.id}")
            lead = self.leads[lead_id]
            lead.article_id = article_id
            lead.status = status
            self._touch(lead)

    def set_lead_status(self, lead_id: int, status: LeadStatus) -> None:
        with self._lock:
            lead = self.leads[lead_id]
            lead.status = status
            self._touch(lead)

    def delete_leads_and_articles(
        self,
        lead_ids: Sequence[int],
        article_ids: Sequence[int],
    ) -> None:
        with self._lock:
            for lead_id in lead_ids:
                self.leads.pop(lead_id, None)
            for article_id in article_ids:
                self.articles.pop(article_id, None)
            # Mirror ON DELETE SET NULL for leads outside the batch
            for lead in self.leads.values():
                if lead.article_id in article_ids:
                    lead.article_id = None

    # Articles

    def get_article(self, article_id: int) -> Optional[Article]:
        with self._lock:
            return self._copy(self.articles.get(article_id))

    def create_placeholder_article(
        self,
        titles: LocalizedText,
        body: str,
        published_at: datetime,
        sources: Sequence[SourceRef] = (),
        category_id: Optional[int] = None,
    ) -> Article:
        with self._lock:
            article = Article(
                title_en=titles.en,
                title_cn=titles.cn,
                title_my=titles.my,
                content_en=body,
                content_cn=body,
                content_my=body,
                news_date=published_at,
                sources=list(sources),
                category_id=category_id,
                **self._stamp(),
            )
            self.articles[article.id] = article
            return self._copy(article)

    def update_article_content(
        self,
        article_id: int,
        titles: LocalizedText,
        bodies: LocalizedText,
        sources: Sequence[SourceRef],
        image_url: Optional[str],
        category_id: Optional[int],
    ) -> Article:
        with self._lock:
            article = self.articles.get(article_id)
            if article is None:
                raise NotFound("Article", article_id)
            article.title_en, article.title_cn, article.title_my = titles.en, titles.cn, titles.my
            article.content_en, article.content_cn, article.content_my = (
                bodies.en,
                bodies.cn,
                bodies.my,
            )
            article.sources = list(sources)
            article.image_url = image_url
            article.category_id = category_id
            self._touch(article)
            return self._copy(article)

    def find_article_by_source_url(self, url: str, exclude_ids: Sequence[int] = ()) -> bool:
        with self._lock:
            return any(
                source.url == url
                for article in self.articles.values()
                if article.id not in exclude_ids
                for source in article.sources
            )

    # Categories

    def get_category(self, category_id: int) -> Optional[Category]:
        with self._lock:
            return self._copy(self.categories.get(category_id))

    def create_category(self, name_en: str, description_en: Optional[str] = None) -> Category:
        with self._lock:
            category = Category(name_en=name_en, description_en=description_en, **self._stamp())
            self.categories[category.id] = category
            return self._copy(category)

    # Scheduled searches

    def create_scheduled_search(
        self,
        topic: str,
        interval_hours: int,
        category_id: Optional[int] = None,
    ) -> ScheduledSearch:
        with self._lock:
            search = ScheduledSearch(
                topic=topic,
                interval_hours=interval_hours,
                category_id=category_id,
                **self._stamp(),
            )
            self.searches[search.id] = search
            return self._copy(search)

    def list_due_searches(self, now: datetime) -> List[ScheduledSearch]:
        with self._lock:
            due = [
                s for s in sorted(self.searches.values(), key=lambda s: s.id)
                if s.active and (
                    s.last_run_at is None
                    or now >= s.last_run_at + timedelta(hours=s.interval_hours)
                )
            ]
            return [self._copy(s) for s in due]

    def mark_search_run(self, search_id: int, when: datetime) -> None:
        with self._lock:
            search = self.searches[search_id]
            search.last_run_at = when
            self._touch(search)

    def create_search_log(self, log: SearchLog) -> SearchLog:
        with self._lock:
            stored = log.model_copy(update=self._stamp(), deep=True)
            self.search_logs[stored.id] = stored
            return self._copy(stored)

    def list_search_logs(self, search_id: Optional[int] = None, limit: int = 50) -> List[SearchLog]:
        with self._lock:
            logs = sorted(self.search_logs.values(), key=lambda x: x.id, reverse=True)
            if search_id is not None:
                logs = [log for log in logs if log.search_id == search_id]
            return [self._copy(log) for log in logs[:limit]]
