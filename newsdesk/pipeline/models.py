"""Result models returned by pipeline operations."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import TaskStatus


class Outcome(str, Enum):
    """Per-item result of a rewrite."""

    SUCCESS = "success"
    ERROR = "error"


class ItemOutcome(BaseModel):
    """Result for one lead or article."""

    id: int = Field(..., description="Lead ID (or article ID for single rewrites)")
    outcome: Outcome = Field(..., description="success or error")
    headline: Optional[str] = Field(None, description="Headline that was rewritten")
    article_id: Optional[int] = Field(None, description="Article updated")
    error: Optional[str] = Field(None, description="Error message when failed")
    fallbacks: Dict[str, str] = Field(
        default_factory=dict, description="Translated fields that kept the English text"
    )


class BatchResult(BaseModel):
    """Result of draining the rewrite queue or rewriting one article."""

    processed: int = Field(0, description="Items attempted")
    succeeded: int = Field(0, description="Items rewritten")
    failed: int = Field(0, description="Items marked as error")
    details: List[ItemOutcome] = Field(default_factory=list, description="Per-item results")

    def add(self, item: ItemOutcome) -> None:
        """Record one item's outcome."""
        self.details.append(item)
        self.processed += 1
        if item.outcome == Outcome.SUCCESS:
            self.succeeded += 1
        else:
            self.failed += 1


class TaskRunResult(BaseModel):
    """Result of one discovery run."""

    task_id: int = Field(..., description="Task that ran")
    status: TaskStatus = Field(..., description="Final task status")
    found: int = Field(0, description="Candidates returned by the search")
    created: int = Field(0, description="Leads created")
    removed: int = Field(0, description="Leads from the previous run that were deleted")
    skipped_no_url: int = Field(0)
    skipped_duplicate: int = Field(0)
    skipped_existing: int = Field(0)
    lead_ids: List[int] = Field(default_factory=list)
    article_ids: List[int] = Field(default_factory=list)
    duration: float = Field(0.0, description="Run time in seconds")
    raw_response: Optional[Any] = Field(None, description="Discovery answer as returned by the service")


class SearchOutcome(BaseModel):
    """Result of one scheduled search."""

    search_id: int
    topic: str
    task_id: Optional[int] = None
    status: TaskStatus
    created: int = 0
    error: Optional[str] = None
