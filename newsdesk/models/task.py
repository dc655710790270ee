"""Task model: one discovery request for a topic."""

from enum import Enum
from typing import Optional

from pydantic import Field

from .base import DBModel


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Task(DBModel):
    """Discovery task model."""

    query: str = Field(..., description="Topic query")
    account_name: Optional[str] = Field(None, description="Account routing hint")
    collection_uuid: Optional[str] = Field(None, description="Collection routing hint")
    category_id: Optional[int] = Field(None, description="Category assigned to created articles")
    status: TaskStatus = Field(TaskStatus.PENDING, description="Task status")
    error: Optional[str] = Field(None, description="Error message of the last failed run")
