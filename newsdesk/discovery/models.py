"""Data models for discovery."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import pendulum
from pydantic import BaseModel, Field

from ..models import SourceRef


def _parse_date(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = pendulum.parse(value, strict=False)
    except ValueError:
        return None
    return parsed if isinstance(parsed, datetime) else None


class HeadlineCandidate(BaseModel):
    """One headline returned by the search service."""

    title: str = Field("Untitled", description="Headline text")
    source: str = Field("Unknown", description="Outlet name")
    url: Optional[str] = Field(None, description="Article URL, the dedup key")
    published_at: Optional[datetime] = Field(None, description="Publication date")

    @classmethod
    def from_raw(cls, item: Dict[str, Any]) -> "HeadlineCandidate":
        """Build from one element of the service's JSON array."""
        url = item.get("url")
        return cls(
            title=str(item.get("title") or "Untitled").strip(),
            source=str(item.get("source") or "Unknown"),
            url=url.strip() if isinstance(url, str) and url.strip() else None,
            published_at=_parse_date(item.get("date") or item.get("published_at")),
        )

    @property
    def source_ref(self) -> SourceRef:
        return SourceRef(name=self.source, url=self.url)


class DiscoveryResult(BaseModel):
    """Outcome of one discovery query."""

    found: int = Field(0, description="Candidates returned by the service")
    candidates: List[HeadlineCandidate] = Field(
        default_factory=list, description="New candidates, in service order"
    )
    skipped_no_url: int = Field(0, description="Dropped for lacking a URL")
    skipped_duplicate: int = Field(0, description="Dropped as repeats within the response")
    skipped_existing: int = Field(0, description="Dropped because an article already cites the URL")
    raw_response: Optional[Any] = Field(None, description="Answer as returned by the service")
