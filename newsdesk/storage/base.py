"""Abstract storage interface for tasks, leads and articles."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

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


class StorageGateway(ABC):
    """Persistence operations the pipeline depends on."""

    # Tasks

    @abstractmethod
    def create_task(
        self,
        query: str,
        account_name: Optional[str] = None,
        collection_uuid: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> Task:
        """Create a task in ``pending`` status."""

    @abstractmethod
    def get_task(self, task_id: int) -> Optional[Task]:
        """Get task by ID."""

    @abstractmethod
    def list_tasks(self, limit: int = 50) -> List[Task]:
        """Most recent tasks first."""

    @abstractmethod
    def set_task_status(
        self,
        task_id: int,
        status: TaskStatus,
        error: Optional[str] = None,
    ) -> None:
        """Set task status and error (``None`` clears it)."""

    # Leads

    @abstractmethod
    def get_lead(self, lead_id: int) -> Optional[Lead]:
        """Get lead by ID."""

    @abstractmethod
    def list_leads_for_task(self, task_id: int) -> List[Lead]:
        """Leads owned by a task, oldest first."""

    @abstractmethod
    def list_leads_by_status(self, status: LeadStatus, limit: Optional[int] = None) -> List[Lead]:
        """Leads in a status, oldest first."""

    @abstractmethod
    def get_lead_for_article(self, article_id: int) -> Optional[Lead]:
        """Lead linked to an article, if any."""

    @abstractmethod
    def create_leads(self, leads: Sequence[Lead]) -> List[Lead]:
        """
        Insert leads atomically.

        A lead whose (task_id, headline) already exists, in storage or
        earlier in the batch, is skipped. Any other failure leaves nothing
        committed.

        Returns:
            The leads actually created
        """

    def create_lead(
        self,
        task_id: int,
        headline: str,
        source: SourceRef,
        published_at: Optional[datetime] = None,
    ) -> Optional[Lead]:
        """Create one lead; ``None`` if the headline already exists for the task."""
        created = self.create_leads(
            [Lead(task_id=task_id, headline=headline, source=source, published_at=published_at)]
        )
        return created[0] if created else None

    @abstractmethod
    def link_lead_to_article(self, lead_id: int, article_id: int, status: LeadStatus) -> None:
        """Attach an article to a lead and move the lead to ``status``."""

    @abstractmethod
    def set_lead_status(self, lead_id: int, status: LeadStatus) -> None:
        """Set lead status."""

    @abstractmethod
    def delete_leads_and_articles(
        self,
        lead_ids: Sequence[int],
        article_ids: Sequence[int],
    ) -> None:
        """Delete leads then articles as one atomic unit."""

    # Articles

    @abstractmethod
    def get_article(self, article_id: int) -> Optional[Article]:
        """Get article by ID."""

    @abstractmethod
    def create_placeholder_article(
        self,
        titles: LocalizedText,
        body: str,
        published_at: datetime,
        sources: Sequence[SourceRef] = (),
        category_id: Optional[int] = None,
    ) -> Article:
        """Create an unpublished article whose body is ``body`` in every language."""

    @abstractmethod
    def update_article_content(
        self,
        article_id: int,
        titles: LocalizedText,
        bodies: LocalizedText,
        sources: Sequence[SourceRef],
        image_url: Optional[str],
        category_id: Optional[int],
    ) -> Article:
        """Replace generated content of an article."""

    @abstractmethod
    def find_article_by_source_url(self, url: str, exclude_ids: Sequence[int] = ()) -> bool:
        """Whether any article, other than ``exclude_ids``, lists ``url`` among its sources."""

    # Categories

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""

    @abstractmethod
    def create_category(self, name_en: str, description_en: Optional[str] = None) -> Category:
        """Create a category."""

    # Scheduled searches

    @abstractmethod
    def create_scheduled_search(
        self,
        topic: str,
        interval_hours: int,
        category_id: Optional[int] = None,
    ) -> ScheduledSearch:
        """Create an active scheduled search."""

    @abstractmethod
    def list_due_searches(self, now: datetime) -> List[ScheduledSearch]:
        """Active searches never run or last run ``interval_hours`` or more ago."""

    @abstractmethod
    def mark_search_run(self, search_id: int, when: datetime) -> None:
        """Record when a scheduled search ran."""

    @abstractmethod
    def create_search_log(self, log: SearchLog) -> SearchLog:
        """Store the audit record of one scheduled search run."""

    @abstractmethod
    def list_search_logs(self, search_id: Optional[int] = None, limit: int = 50) -> List[SearchLog]:
        """Most recent search logs first, optionally for one search."""

    def close(self) -> None:
        """Release resources."""
