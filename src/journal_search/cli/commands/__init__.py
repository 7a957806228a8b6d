"""CLI commands for journal-search."""

from . import db, search, serve

__all__ = ["db", "search", "serve"]
