"""Shared helpers."""

from .logger import console, setup_logger

__all__ = ["console", "setup_logger"]
