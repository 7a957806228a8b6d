"""API routers."""

from journal_search.api.routers import search_router

__all__ = ["search_router"]
