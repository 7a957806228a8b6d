"""Query construction and snippet helpers."""

from journal_search.search.query_builder import (
    FTS_CONFIG,
    MIN_QUERY_LENGTH,
    SIMILARITY_THRESHOLD,
    build_headline_options,
    build_like_pattern,
    build_search_conditions,
    build_ts_query,
    escape_like_pattern,
    sanitize_search_term,
)
from journal_search.search.snippet import sanitize_snippet, strip_marks

__all__ = [
    "FTS_CONFIG",
    "MIN_QUERY_LENGTH",
    "SIMILARITY_THRESHOLD",
    "build_headline_options",
    "build_like_pattern",
    "build_search_conditions",
    "build_ts_query",
    "escape_like_pattern",
    "sanitize_search_term",
    "sanitize_snippet",
    "strip_marks",
]
