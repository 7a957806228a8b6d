"""Error type rendered by the API as ``{"error": ..., "code": ...}``."""

from journal_search.schemas.search import SearchErrorCode, SearchErrorResponse


class SearchAPIError(Exception):
    """Raised by routes and dependencies to produce a search error response."""

    def __init__(self, status_code: int, code: SearchErrorCode, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(message)

    def to_response(self) -> SearchErrorResponse:
        return SearchErrorResponse(error=self.message, code=self.code)
