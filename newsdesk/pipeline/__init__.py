"""Discovery and rewrite pipeline."""

from .models import BatchResult, ItemOutcome, Outcome, SearchOutcome, TaskRunResult
from .rewrite import RewritePipeline
from .service import NewsdeskService, build_client, open_service
from .tasks import TaskRunner

__all__ = [
    "BatchResult",
    "ItemOutcome",
    "NewsdeskService",
    "Outcome",
    "RewritePipeline",
    "SearchOutcome",
    "TaskRunResult",
    "TaskRunner",
    "build_client",
    "open_service",
]
