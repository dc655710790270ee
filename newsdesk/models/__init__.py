"""Data models for the newsdesk pipeline."""

from .article import LANGUAGES, Article, LocalizedText
from .category import Category
from .lead import Lead, LeadStatus
from .search import ScheduledSearch, SearchLog
from .source import SourceRef
from .task import Task, TaskStatus

__all__ = [
    "Article",
    "Category",
    "LANGUAGES",
    "Lead",
    "LeadStatus",
    "LocalizedText",
    "ScheduledSearch",
    "SearchLog",
    "SourceRef",
    "Task",
    "TaskStatus",
]
