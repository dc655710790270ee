"""Article model for multilingual news content."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .base import DBModel
from .source import SourceRef

LANGUAGES = ("en", "cn", "my")


class LocalizedText(BaseModel):
    """One piece of text in every supported language."""

    en: str = ""
    cn: str = ""
    my: str = ""

    @classmethod
    def same(cls, text: str) -> "LocalizedText":
        """Use the same text for every language."""
        return cls(en=text, cn=text, my=text)


class Article(DBModel):
    """Article model."""

    title_en: str = Field(..., description="English title")
    title_cn: str = Field(..., description="Chinese title")
    title_my: str = Field(..., description="Malay title")
    content_en: str = Field(..., description="English body (HTML)")
    content_cn: str = Field(..., description="Chinese body (HTML)")
    content_my: str = Field(..., description="Malay body (HTML)")
    news_date: datetime = Field(..., description="Publication date")
    image_url: Optional[str] = Field(None, description="Image reference")
    sources: List[SourceRef] = Field(default_factory=list, description="Source descriptors")
    is_published: bool = Field(False, description="Visible on the public site")
    is_highlight: bool = Field(False, description="Featured article")
    category_id: Optional[int] = Field(None, description="Foreign key to categories table")

    @property
    def titles(self) -> LocalizedText:
        return LocalizedText(en=self.title_en, cn=self.title_cn, my=self.title_my)

    @property
    def bodies(self) -> LocalizedText:
        return LocalizedText(en=self.content_en, cn=self.content_cn, my=self.content_my)

    @property
    def headline(self) -> str:
        """First non-empty title, English first."""
        return self.title_en or self.title_cn or self.title_my

    def is_placeholder(self, sentinel_prefix: str) -> bool:
        """Whether the body still holds discovery placeholder content."""
        return self.content_en.startswith(sentinel_prefix)
