"""Scheduled topic search model."""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from .base import DBModel
from .task import TaskStatus


class ScheduledSearch(DBModel):
    """A topic searched automatically every few hours."""

    topic: str = Field(..., description="Topic to search for")
    interval_hours: int = Field(24, description="Hours between runs", ge=1)
    active: bool = Field(True, description="Whether the search is scheduled")
    category_id: Optional[int] = Field(None, description="Category for created articles")
    last_run_at: Optional[datetime] = Field(None, description="Last time the search ran")


class SearchLog(DBModel):
    """Audit record of one scheduled search run."""

    search_id: Optional[int] = Field(None, description="Scheduled search that ran")
    topic: str = Field(..., description="Topic searched")
    time_span: Optional[str] = Field(None, description="Publication window used, e.g. 'after 2026-06-09'")
    raw_response: Optional[Any] = Field(None, description="Answer returned by the search service")
    items_found: int = Field(0, description="Headlines returned")
    items_processed: int = Field(0, description="Leads created")
    status: TaskStatus = Field(..., description="completed or failed")
    error: Optional[str] = Field(None, description="Error message when failed")
