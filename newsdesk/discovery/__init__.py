"""Headline discovery and deduplication."""

from .engine import DiscoveryEngine
from .models import DiscoveryResult, HeadlineCandidate
from .prompts import build_headline_query

__all__ = ["DiscoveryEngine", "DiscoveryResult", "HeadlineCandidate", "build_headline_query"]
