"""Category model (read-only context for generation)."""

from typing import Optional

from pydantic import Field

from .base import DBModel


class Category(DBModel):
    """Article category."""

    name_en: str = Field(..., description="English category name")
    description_en: Optional[str] = Field(None, description="English description")
