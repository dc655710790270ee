"""Request and response shapes for the query service."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

TERMINAL_FAILURES = ("failed", "not_found")


class QueryOptions(BaseModel):
    """Routing options sent with every query."""

    account_name: Optional[str] = Field(None, description="Account to run the query under")
    mode: str = Field("auto", description="Query mode")
    sources: str = Field("web", description="Search sources")
    collection_uuid: Optional[str] = Field(None, description="Collection to route the query to")
    answer_only: bool = Field(True, description="Ask for the answer text only")

    def with_routing(
        self,
        account_name: Optional[str] = None,
        collection_uuid: Optional[str] = None,
    ) -> "QueryOptions":
        """Copy with per-call routing hints applied where given."""
        update: Dict[str, Any] = {}
        if account_name:
            update["account_name"] = account_name
        if collection_uuid:
            update["collection_uuid"] = collection_uuid
        return self.model_copy(update=update)

    def to_params(self, query: str) -> Dict[str, str]:
        """Query-string parameters for the submit endpoint."""
        params = {
            "q": query,
            "mode": self.mode,
            "sources": self.sources,
        }
        if self.account_name:
            params["account_name"] = self.account_name
        if self.collection_uuid:
            params["collection_uuid"] = self.collection_uuid
        if self.answer_only:
            params["answer_only"] = "true"
        return params


class PollResult(BaseModel):
    """One poll response, normalised across provider versions."""

    status: str = Field(..., description="pending, processing, completed, failed or not_found")
    answer: str = Field("", description="Answer text when completed")
    error: Optional[str] = Field(None, description="Error message when failed")

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PollResult":
        """
        Normalise a raw status payload.

        Raises:
            ValueError: Payload is not a JSON object
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Poll payload is not an object: {type(payload).__name__}")
        result = payload.get("result") or {}
        if not isinstance(result, dict):
            result = {}
        data = result.get("data") or {}
        if not isinstance(data, dict):
            data = {}

        answer = result.get("answer") or data.get("answer") or payload.get("answer") or ""
        return cls(
            status=str(payload.get("status", "unknown")),
            answer=answer if isinstance(answer, str) else str(answer),
            error=payload.get("error") or payload.get("message"),
        )

    @property
    def completed(self) -> bool:
        return self.status == "completed"

    @property
    def failed(self) -> bool:
        return self.status in TERMINAL_FAILURES


def extract_request_id(payload: Dict[str, Any]) -> Optional[str]:
    """Pull the request id out of a submit response."""
    data = payload.get("data")
    candidates = [payload.get("request_id"), payload.get("requestId")]
    if isinstance(data, dict):
        candidates.append(data.get("request_id"))
    for value in candidates:
        if value:
            return str(value)
    return None
