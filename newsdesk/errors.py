"""Error taxonomy for the discovery and rewrite pipeline."""

from typing import Optional


class NewsdeskError(Exception):
    """Base class for pipeline errors."""


class NotFound(NewsdeskError):
    """A referenced task, lead or article does not exist."""

    def __init__(self, kind: str, record_id: int) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class SubmissionFailed(NewsdeskError):
    """The service rejected a query or returned no request id."""


class PollTimeout(NewsdeskError):
    """The result never reached a terminal status within the poll ceiling."""

    def __init__(self, request_id: str, attempts: int) -> None:
        self.request_id = request_id
        self.attempts = attempts
        super().__init__(f"Query {request_id} timed out after {attempts} polls")


class RemoteTaskFailed(NewsdeskError):
    """The service reported the query as failed or unknown."""


class ParseFailure(NewsdeskError):
    """An answer expected to be JSON could not be parsed."""

    def __init__(self, message: str, answer: Optional[str] = None) -> None:
        self.answer = answer
        super().__init__(message)


class InconsistentState(NewsdeskError):
    """Stored records disagree, e.g. a lead without an article."""


class QueryCancelled(NewsdeskError):
    """The caller abandoned a query before it finished."""
