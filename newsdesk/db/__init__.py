"""Database management for the newsdesk pipeline."""

from .connection import create_connection_pool, get_connection, get_connection_pool
from .init import init_database, validate_connection

__all__ = [
    "create_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
