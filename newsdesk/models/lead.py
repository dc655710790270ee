"""Lead model: a discovered headline waiting to become an article."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import DBModel
from .source import SourceRef


class LeadStatus(str, Enum):
    """Lead lifecycle states."""

    PENDING = "pending"
    REWRITE_PENDING = "rewrite_pending"
    REWRITTEN = "rewritten"
    ERROR = "error"


class Lead(DBModel):
    """Headline lead model."""

    task_id: int = Field(..., description="Foreign key to news_tasks table")
    headline: str = Field(..., description="Headline text")
    source: SourceRef = Field(default_factory=SourceRef, description="Source descriptor")
    published_at: Optional[datetime] = Field(None, description="Publication timestamp")
    status: LeadStatus = Field(LeadStatus.PENDING, description="Lead status")
    article_id: Optional[int] = Field(None, description="Linked article, at most one")
