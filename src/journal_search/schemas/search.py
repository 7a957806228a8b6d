"""Search schemas: searchable entity types, query validation and responses.

The request side is validated with ``SearchQuery``; the response side is
``SearchResponse`` made of ``SearchResultGroup`` and ``SearchResultItem``.
JSON field names on the wire are camelCase (``totalCount``).
"""

from enum import Enum
from typing import Any, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

MIN_QUERY_CHARS = 2
MAX_QUERY_CHARS = 200
MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_LIMIT = 20


class SearchableEntityType(str, Enum):
    """Entity types that participate in global search.

    Day entries and media assets exist in the schema but are never searchable.
    """

    JOURNAL_ENTRY = "journal_entry"
    CONTACT = "contact"
    LOCATION = "location"
    TAXONOMY = "taxonomy"
    TASK = "task"
    ACT_VALUE = "act_value"
    ACT_GOAL = "act_goal"
    HABIT = "habit"
    BOOKMARK = "bookmark"
    CALENDAR_EVENT = "calendar_event"
    CONSUMPTION = "consumption"


SEARCHABLE_ENTITY_TYPES: tuple[SearchableEntityType, ...] = tuple(SearchableEntityType)

# Schema kinds deliberately kept out of search
EXCLUDED_ENTITY_TYPES = frozenset({"day_entry", "media_asset"})

ENTITY_TYPE_LABELS: dict[SearchableEntityType, str] = {
    SearchableEntityType.JOURNAL_ENTRY: "Journal",
    SearchableEntityType.CONTACT: "Kontakte",
    SearchableEntityType.LOCATION: "Orte",
    SearchableEntityType.TAXONOMY: "Tags",
    SearchableEntityType.TASK: "Aufgaben",
    SearchableEntityType.ACT_VALUE: "Werte",
    SearchableEntityType.ACT_GOAL: "Ziele",
    SearchableEntityType.HABIT: "Gewohnheiten",
    SearchableEntityType.BOOKMARK: "Lesezeichen",
    SearchableEntityType.CALENDAR_EVENT: "Termine",
    SearchableEntityType.CONSUMPTION: "Medien",
}

# Tabler icon names
ENTITY_TYPE_ICONS: dict[SearchableEntityType, str] = {
    SearchableEntityType.JOURNAL_ENTRY: "notebook",
    SearchableEntityType.CONTACT: "user",
    SearchableEntityType.LOCATION: "map-pin",
    SearchableEntityType.TAXONOMY: "tag",
    SearchableEntityType.TASK: "checkbox",
    SearchableEntityType.ACT_VALUE: "heart",
    SearchableEntityType.ACT_GOAL: "target",
    SearchableEntityType.HABIT: "repeat",
    SearchableEntityType.BOOKMARK: "bookmark",
    SearchableEntityType.CALENDAR_EVENT: "calendar",
    SearchableEntityType.CONSUMPTION: "movie",
}


class SearchQuery(BaseModel):
    """Validated query parameters for ``GET /search``.

    - q: required, 2 to 200 characters after trimming
    - types: entity type codes, defaults to every searchable type; unknown
      codes are rejected
    - limit: coerced to int, 1 to 100, defaults to 20
    """

    q: str
    types: List[SearchableEntityType] = Field(
        default_factory=lambda: list(SEARCHABLE_ENTITY_TYPES)
    )
    limit: int = DEFAULT_LIMIT

    @field_validator("q", mode="before")
    @classmethod
    def validate_q(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise PydanticCustomError("invalid_query", "Search term must be a string")
        value = value.strip()
        if len(value) < MIN_QUERY_CHARS:
            raise PydanticCustomError(
                "query_too_short",
                "Search term must be at least {min} characters",
                {"min": MIN_QUERY_CHARS},
            )
        if len(value) > MAX_QUERY_CHARS:
            raise PydanticCustomError(
                "query_too_long",
                "Search term must be at most {max} characters",
                {"max": MAX_QUERY_CHARS},
            )
        return value

    @field_validator("types", mode="before")
    @classmethod
    def validate_types(cls, value: Any) -> Any:
        if value is None:
            return list(SEARCHABLE_ENTITY_TYPES)
        if isinstance(value, (str, SearchableEntityType)):
            value = [value]
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise PydanticCustomError("invalid_entity_type", "Types must be a list of codes")
        valid_codes = {entity_type.value for entity_type in SearchableEntityType}
        for code in value:
            raw = code.value if isinstance(code, SearchableEntityType) else code
            if not isinstance(raw, str) or raw not in valid_codes:
                raise PydanticCustomError(
                    "invalid_entity_type",
                    "Unknown entity type: {value}",
                    {"value": raw},
                )
        return value

    @field_validator("limit", mode="after")
    @classmethod
    def validate_limit(cls, value: int) -> int:
        if value < MIN_LIMIT:
            raise PydanticCustomError(
                "limit_too_small", "Limit must be at least {min}", {"min": MIN_LIMIT}
            )
        if value > MAX_LIMIT:
            raise PydanticCustomError(
                "limit_too_large", "Limit must be at most {max}", {"max": MAX_LIMIT}
            )
        return value


def validate_search_query(raw: Mapping[str, Any]) -> SearchQuery:
    """Validate raw query parameters, dropping keys that were not supplied.

    Raises:
        pydantic.ValidationError: when any parameter is invalid
    """
    data = {key: value for key, value in raw.items() if value is not None}
    return SearchQuery.model_validate(data)


def first_error_message(exc: ValidationError) -> str:
    """Message of the first validation error, for the API error body."""
    errors = exc.errors()
    if not errors:
        return "Invalid search query"
    return errors[0]["msg"]


class SearchResultItem(BaseModel):
    """One matching record. ``snippet`` may contain <mark> highlight tags."""

    id: str
    type: SearchableEntityType
    title: str
    snippet: str = ""
    url: str
    date: Optional[str] = Field(None, description="ISO date (YYYY-MM-DD) if available")
    rank: float = Field(0.0, description="Relevance score, higher is more relevant")


class SearchResultGroup(BaseModel):
    """Results of a single entity type, ordered by descending rank."""

    type: SearchableEntityType
    label: str
    icon: str
    count: int
    items: List[SearchResultItem] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Complete response of ``GET /search``.

    ``total_count`` is the number of items returned after truncation to the
    limit, not the number of matches in the database.
    """

    model_config = ConfigDict(populate_by_name=True)

    query: str
    total_count: int = Field(0, alias="totalCount")
    results: List[SearchResultGroup] = Field(default_factory=list)


SearchErrorCode = Literal["INVALID_QUERY", "UNAUTHORIZED", "SERVER_ERROR"]


class SearchErrorResponse(BaseModel):
    error: str
    code: SearchErrorCode


class SearchParams(BaseModel):
    """Internal input of the search service."""

    query: str
    types: List[SearchableEntityType] = Field(
        default_factory=lambda: list(SEARCHABLE_ENTITY_TYPES)
    )
    limit: int = DEFAULT_LIMIT
    user_id: str
