"""Pydantic schemas for the search API."""

from journal_search.schemas.search import (
    ENTITY_TYPE_ICONS,
    ENTITY_TYPE_LABELS,
    EXCLUDED_ENTITY_TYPES,
    SEARCHABLE_ENTITY_TYPES,
    SearchableEntityType,
    SearchErrorResponse,
    SearchParams,
    SearchQuery,
    SearchResponse,
    SearchResultGroup,
    SearchResultItem,
    first_error_message,
    validate_search_query,
)

__all__ = [
    "ENTITY_TYPE_ICONS",
    "ENTITY_TYPE_LABELS",
    "EXCLUDED_ENTITY_TYPES",
    "SEARCHABLE_ENTITY_TYPES",
    "SearchableEntityType",
    "SearchErrorResponse",
    "SearchParams",
    "SearchQuery",
    "SearchResponse",
    "SearchResultGroup",
    "SearchResultItem",
    "first_error_message",
    "validate_search_query",
]
