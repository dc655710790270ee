"""Newsdesk: headline discovery and multilingual article rewriting."""

__version__ = "0.1.0"
