"""Router for global full-text search.

GET /search?q={query}&types={type}&types={type}&limit={limit}

The ``types[]`` form of the parameter is accepted as well, as sent by form
submissions.
"""

from fastapi import APIRouter, Request
from loguru import logger
from pydantic import ValidationError

from journal_search.api.deps import AppConfigDep, CurrentUserIdDep, SearchServiceDep
from journal_search.api.errors import SearchAPIError
from journal_search.schemas.search import (
    SearchParams,
    SearchResponse,
    first_error_message,
    validate_search_query,
)

router = APIRouter(tags=["search"])


@router.get("/search", response_model=SearchResponse)
async def search(
    request: Request,
    user_id: CurrentUserIdDep,
    search_service: SearchServiceDep,
    app_config: AppConfigDep,
) -> SearchResponse:
    """Search across all entity types, optionally filtered by type."""
    params = request.query_params
    types = params.getlist("types") or params.getlist("types[]")
    raw = {
        "q": params.get("q", ""),
        "types": types or None,
        "limit": params.get("limit", app_config.default_limit),
    }

    try:
        query = validate_search_query(raw)
    except ValidationError as e:
        message = first_error_message(e)
        logger.debug(f"Invalid search query {raw}: {message}")
        raise SearchAPIError(400, "INVALID_QUERY", message)

    try:
        return await search_service.search(
            SearchParams(query=query.q, types=query.types, limit=query.limit, user_id=user_id)
        )
    except Exception as e:
        logger.exception(f"Search API error: {e}")
        raise SearchAPIError(500, "SERVER_ERROR", "An error occurred while searching")
