"""Storage gateway used by the pipeline."""

from .base import StorageGateway
from .memory import InMemoryStorage
from .postgres import PostgresStorage

__all__ = ["InMemoryStorage", "PostgresStorage", "StorageGateway"]
