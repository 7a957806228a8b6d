"""FastAPI dependencies for the search API."""

from typing import Annotated

from fastapi import Depends, Request

from journal_search.config import ConfigManager, SearchConfig
from journal_search.api.errors import SearchAPIError
from journal_search.services.search_service import SearchService


def get_app_config() -> SearchConfig:
    return ConfigManager().config


AppConfigDep = Annotated[SearchConfig, Depends(get_app_config)]


def get_search_service(request: Request) -> SearchService:
    """Search service built at startup and cached on app state."""
    service = getattr(request.app.state, "search_service", None)
    if service is None:  # pragma: no cover
        raise RuntimeError("Search service is not initialized")
    return service


SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]


def get_current_user_id(request: Request, config: AppConfigDep) -> str:
    """Resolve the user id from the session cookie.

    Authentication itself lives elsewhere; the cookie holds an opaque user id.
    """
    user_id = request.cookies.get(config.session_cookie_name)
    if not user_id:
        raise SearchAPIError(401, "UNAUTHORIZED", "Not authenticated")
    return user_id


CurrentUserIdDep = Annotated[str, Depends(get_current_user_id)]
