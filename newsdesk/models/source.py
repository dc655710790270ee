"""Source descriptor attached to leads and articles."""

from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field


class SourceRef(BaseModel):
    """Where a story came from."""

    name: str = Field("Unknown", description="Outlet or source name")
    url: Optional[str] = Field(None, description="Source URL")

    @classmethod
    def from_url(cls, url: str) -> "SourceRef":
        """Build a descriptor named after the URL's host."""
        domain = urlparse(url).hostname or "unknown"
        if domain.startswith("www."):
            domain = domain[4:]
        return cls(name=domain, url=url)
