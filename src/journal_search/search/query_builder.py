"""Helpers for building PostgreSQL full-text search queries.

Covers query sanitization, tsquery construction, LIKE escaping and the SQL
fragments shared by all entity search strategies (tsvector, trigram
similarity, combined rank and ts_headline expressions).
"""

import re
from dataclasses import dataclass
from typing import Sequence

# Characters with operator meaning in tsquery (& | ! ( ) ' plus : \ * < > used by
# weights, escapes, prefixes and phrase distance)
TSQUERY_SPECIAL_CHARS = re.compile(r"[&|!():'\\*<>]")
WHITESPACE = re.compile(r"\s+")

# 0.3 is the pg_trgm default, lower gives more typo tolerance
SIMILARITY_THRESHOLD = 0.2

# No stemming: content is mixed German/English with many proper nouns
FTS_CONFIG = "simple"

FTS_WEIGHT = 0.7
TRIGRAM_WEIGHT = 0.3

MIN_QUERY_LENGTH = 2


def sanitize_search_term(term: str) -> str:
    """Make user input safe for use in a tsquery.

    Operator characters are replaced with a space rather than removed so that
    word boundaries survive ("it's" -> "it s"). Whitespace is collapsed and
    trimmed. Never raises.
    """
    if not term:
        return ""
    cleaned = TSQUERY_SPECIAL_CHARS.sub(" ", term)
    return WHITESPACE.sub(" ", cleaned).strip()


def build_ts_query(search_term: str, use_prefix: bool = True) -> str:
    """Build a tsquery string from user input.

    Words are joined with the AND operator. With ``use_prefix`` every word gets
    the ``:*`` suffix so that partially typed words match.

    Examples:
        "hello world" -> "hello:* & world:*"
        "hello world", use_prefix=False -> "hello & world"
        "test" -> "test:*"
    """
    sanitized = sanitize_search_term(search_term)
    if not sanitized:
        return ""

    words = [word for word in sanitized.split(" ") if word]
    if use_prefix:
        return " & ".join(f"{word}:*" for word in words)
    return " & ".join(words)


def build_headline_options(max_words: int = 35, min_words: int = 15) -> str:
    """Options string for ts_headline.

    Matches are wrapped in <mark>...</mark>; the word limits control how much
    context surrounds each match.
    """
    return (
        f"StartSel=<mark>, StopSel=</mark>, "
        f"MaxWords={max_words}, MinWords={min_words}, MaxFragments=3"
    )


def escape_like_pattern(pattern: str) -> str:
    """Escape LIKE metacharacters. Backslash goes first to avoid double escaping."""
    return pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_like_pattern(search_term: str) -> str:
    """Substring LIKE pattern for an already sanitized term."""
    return f"%{escape_like_pattern(search_term)}%"


def text_expression(columns: Sequence[str], separator: str = " ") -> str:
    """Concatenate nullable columns into one text expression."""
    return f" || '{separator}' || ".join(f"COALESCE({column}, '')" for column in columns)


@dataclass(frozen=True)
class SearchConditions:
    """SQL fragments for matching and ranking one set of columns.

    Fragments reference the bind parameters ``:ts_query`` and
    ``:search_text``; ``trigram_condition`` and ``trigram_headline_expression``
    use only ``:search_text`` and ``:like_pattern``, so the trigram pass still
    runs when Postgres rejects the tsquery.
    """

    tsvector_expression: str
    fts_condition: str
    trigram_condition: str
    rank_expression: str
    headline_expression: str
    trigram_headline_expression: str


def build_search_conditions(
    columns: Sequence[str],
    config: str = FTS_CONFIG,
    trigram_columns: Sequence[str] | None = None,
    headline_source: str | None = None,
    similarity_threshold: float = SIMILARITY_THRESHOLD,
    headline_options: str | None = None,
) -> SearchConditions:
    """Create the search SQL fragments for a table's columns.

    Args:
        columns: Columns feeding the tsvector
        config: Text search configuration name
        trigram_columns: Columns used for similarity(); defaults to ``columns``
        headline_source: Text expression ts_headline runs over; defaults to the
            second column (content over title) when there is one
        similarity_threshold: Minimum similarity for the trigram condition
        headline_options: ts_headline options, see build_headline_options()
    """
    if not columns:
        raise ValueError("At least one column is required to build search conditions")

    fts_text = text_expression(columns)
    trigram_text = text_expression(trigram_columns or columns)
    tsquery = f"to_tsquery('{config}', :ts_query)"
    tsvector = f"to_tsvector('{config}', {fts_text})"

    if headline_source is None:
        main_column = columns[1] if len(columns) > 1 else columns[0]
        headline_source = f"COALESCE({main_column}, '')"
    options = headline_options or build_headline_options()

    return SearchConditions(
        tsvector_expression=tsvector,
        fts_condition=f"{tsvector} @@ {tsquery}",
        trigram_condition=(
            f"(similarity({trigram_text}, :search_text) > {similarity_threshold:g}"
            f" OR {trigram_text} ILIKE :like_pattern ESCAPE '\\')"
        ),
        rank_expression=(
            f"(COALESCE(ts_rank({tsvector}, {tsquery}), 0) * {FTS_WEIGHT}"
            f" + COALESCE(similarity({trigram_text}, :search_text), 0) * {TRIGRAM_WEIGHT})"
        ),
        headline_expression=f"ts_headline('{config}', {headline_source}, {tsquery}, '{options}')",
        trigram_headline_expression=(
            f"ts_headline('{config}', {headline_source}, "
            f"plainto_tsquery('{config}', :search_text), '{options}')"
        ),
    )
