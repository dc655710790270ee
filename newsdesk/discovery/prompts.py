"""Prompt text for headline discovery."""

from datetime import date
from typing import Optional


def build_headline_query(topic: str, published_after: Optional[date] = None) -> str:
    """Ask for a JSON array of headline candidates about ``topic``."""
    window = f" published after {published_after.isoformat()}" if published_after else ""
    return (
        f'Find news headlines about "{topic}"{window}. '
        'Return ONLY a JSON array of objects with "title", "url", "source", and "date" '
        "(YYYY-MM-DD format). Do not include any other text. Ensure sources are distinct."
    )
