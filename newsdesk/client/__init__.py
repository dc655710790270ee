"""Client for the asynchronous query service."""

from .models import PollResult, QueryOptions
from .parsing import parse_json_answer, strip_code_fences
from .protocol import AsyncQueryClient

__all__ = [
    "AsyncQueryClient",
    "PollResult",
    "QueryOptions",
    "parse_json_answer",
    "strip_code_fences",
]
