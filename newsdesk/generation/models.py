"""Data models for generation."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..errors import ParseFailure
from ..models import LocalizedText, SourceRef


def _first_text(*values: Any) -> str:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


class GeneratedArticle(BaseModel):
    """English article produced by the generation call."""

    title: str = Field(..., description="English title")
    content_html: str = Field(..., description="English body (HTML)")
    source_urls: List[str] = Field(default_factory=list, description="Cited URLs")
    image_url: Optional[str] = Field(None, description="Suggested image")

    @classmethod
    def from_payload(cls, payload: Any) -> "GeneratedArticle":
        """
        Normalise a generation answer.

        Accepts the flat shape requested by the prompt and the nested
        ``titles``/``article``/``meta`` shape some collections answer with.

        Raises:
            ParseFailure: Payload is not an object or lacks title or body
        """
        if not isinstance(payload, dict):
            raise ParseFailure("Generation answer is not a JSON object")

        titles = payload.get("titles") if isinstance(payload.get("titles"), dict) else {}
        article = payload.get("article") if isinstance(payload.get("article"), dict) else {}
        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}

        title = _first_text(payload.get("title"), titles.get("en"))
        content = _first_text(payload.get("content_html"), payload.get("content"), article.get("en_html"))
        if not title or not content:
            raise ParseFailure("Generation answer lacks a title or body")

        urls = payload.get("source_urls")
        source_urls = [u for u in urls if isinstance(u, str) and u] if isinstance(urls, list) else []
        image_url = _first_text(payload.get("image_url"), meta.get("image_url")) or None

        return cls(title=title, content_html=content, source_urls=source_urls, image_url=image_url)


class RewrittenContent(BaseModel):
    """Everything written back to an article after a rewrite."""

    titles: LocalizedText
    bodies: LocalizedText
    sources: List[SourceRef] = Field(default_factory=list)
    image_url: Optional[str] = None
    fallbacks: Dict[str, str] = Field(
        default_factory=dict, description="Fields that kept the English text, with the reason"
    )
