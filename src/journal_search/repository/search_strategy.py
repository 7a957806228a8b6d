"""Base class for per-entity search strategies.

Every searchable entity type has one strategy subclass that declares which
table and columns feed the tsvector, which columns are used for trigram
similarity, and how a raw row becomes a SearchResultItem. The base class owns
the SQL and the two-pass execution:

1. Full-text pass: ``to_tsvector(...) @@ to_tsquery(...)`` ranked by
   ``ts_rank * 0.7 + similarity * 0.3``.
2. Trigram pass: only when the strategy enables it and the FTS pass came back
   with too few rows. Matches ``similarity(...) > threshold`` or a substring
   ILIKE, ranked by ``similarity * 0.3``.

Both passes are always scoped to the requesting user.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, ClassVar, List, Optional, Sequence

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from journal_search import db
from journal_search.schemas.search import SearchableEntityType, SearchResultItem
from journal_search.search.query_builder import (
    FTS_CONFIG,
    SIMILARITY_THRESHOLD,
    TRIGRAM_WEIGHT,
    SearchConditions,
    build_headline_options,
    build_search_conditions,
    text_expression,
)
from journal_search.search.snippet import sanitize_snippet

TSQUERY_SYNTAX_ERRORS = (
    "syntax error in tsquery",
    "invalid input syntax for type tsquery",
    "no operand in tsquery",
    "no operator in tsquery",
)


@dataclass(frozen=True)
class StrategySettings:
    """Tunables shared by all strategies, usually taken from SearchConfig."""

    fts_config: str = FTS_CONFIG
    similarity_threshold: float = SIMILARITY_THRESHOLD
    trigram_fallback_min_results: int = 5
    headline_max_words: int = 35
    headline_min_words: int = 15
    statement_timeout_ms: Optional[int] = None

    @classmethod
    def from_config(cls, config) -> "StrategySettings":
        return cls(
            fts_config=config.fts_config,
            similarity_threshold=config.similarity_threshold,
            trigram_fallback_min_results=config.trigram_fallback_min_results,
            headline_max_words=config.headline_max_words,
            headline_min_words=config.headline_min_words,
            statement_timeout_ms=config.statement_timeout_ms,
        )


def is_tsquery_syntax_error(exc: Exception) -> bool:
    """True only for tsquery parse errors.

    Other database errors also mention ``to_tsquery(...)`` in the SQL text, so
    matching on "tsquery" alone would be too broad.
    """
    msg = str(exc).lower()
    return any(marker in msg for marker in TSQUERY_SYNTAX_ERRORS)


def iso_date(value: Any) -> Optional[str]:
    """Format a date, datetime or date string as YYYY-MM-DD."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    value = str(value)
    return value[:10] if value else None


class EntitySearchStrategy(ABC):
    """Ranked full-text search over one entity table.

    Subclasses set the class attributes below and implement ``to_result``.
    Column names are unqualified (quoted where Prisma uses camelCase); the
    strategy prefixes them with ``alias``.
    """

    entity_type: ClassVar[SearchableEntityType]
    table: ClassVar[str]
    alias: ClassVar[str]
    fts_columns: ClassVar[Sequence[str]]
    trigram_columns: ClassVar[Sequence[str]]
    # First column is shown as "<first> - <rest>" in the snippet
    headline_columns: ClassVar[Sequence[str]]
    # Extra select list entries, each aliased to a snake_case name
    select_columns: ClassVar[Sequence[str]] = ()
    joins: ClassVar[str] = ""
    filters: ClassVar[Sequence[str]] = ()
    owner_column: ClassVar[str] = '"userId"'
    trigram_fallback: ClassVar[bool] = True
    # Overrides StrategySettings.similarity_threshold when set
    similarity_threshold: ClassVar[Optional[float]] = None

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        settings: Optional[StrategySettings] = None,
    ):
        self.session_maker = session_maker
        self.settings = settings or StrategySettings()

    # --- SQL construction --------------------------------------------------

    def qualify(self, column: str) -> str:
        return f"{self.alias}.{column}"

    @property
    def threshold(self) -> float:
        if self.similarity_threshold is not None:
            return self.similarity_threshold
        return self.settings.similarity_threshold

    @property
    def headline_source(self) -> str:
        columns = [self.qualify(column) for column in self.headline_columns]
        if len(columns) == 1:
            return text_expression(columns)
        return f"{text_expression(columns[:1])} || ' - ' || {text_expression(columns[1:])}"

    @property
    def conditions(self) -> SearchConditions:
        return build_search_conditions(
            [self.qualify(column) for column in self.fts_columns],
            config=self.settings.fts_config,
            trigram_columns=[self.qualify(column) for column in self.trigram_columns],
            headline_source=self.headline_source,
            similarity_threshold=self.threshold,
            headline_options=build_headline_options(
                self.settings.headline_max_words, self.settings.headline_min_words
            ),
        )

    def _base_where(self) -> List[str]:
        return [f"{self.qualify(self.owner_column)} = :user_id", *self.filters]

    def _select_sql(
        self, rank_expression: str, match_condition: str, headline_expression: str
    ) -> str:
        select_list = ",\n                ".join(
            [f"{self.qualify('id')} AS id", *self.select_columns]
        )
        where_clause = " AND ".join([*self._base_where(), match_condition])
        return f"""
            SELECT
                {select_list},
                {headline_expression} AS snippet,
                {rank_expression} AS rank
            FROM {self.table} {self.alias}
            {self.joins}
            WHERE {where_clause}
            ORDER BY rank DESC, {self.qualify('id')} ASC
            LIMIT :limit
        """

    def build_fts_sql(self) -> str:
        conditions = self.conditions
        return self._select_sql(
            conditions.rank_expression,
            conditions.fts_condition,
            conditions.headline_expression,
        )

    def build_trigram_sql(self) -> str:
        conditions = self.conditions
        trigram_text = text_expression([self.qualify(column) for column in self.trigram_columns])
        rank_expression = (
            f"(COALESCE(similarity({trigram_text}, :search_text), 0) * {TRIGRAM_WEIGHT})"
        )
        return self._select_sql(
            rank_expression,
            conditions.trigram_condition,
            conditions.trigram_headline_expression,
        )

    # --- execution ---------------------------------------------------------

    async def _fetch_rows(self, sql: str, params: dict) -> Sequence[Any]:
        async with db.scoped_session(
            self.session_maker, statement_timeout_ms=self.settings.statement_timeout_ms
        ) as session:
            result = await session.execute(text(sql), params)
            return result.fetchall()

    def should_run_trigram(self, fts_count: int, limit: int) -> bool:
        if not self.trigram_fallback:
            return False
        return fts_count < min(limit, self.settings.trigram_fallback_min_results)

    async def search(
        self,
        ts_query: str,
        like_pattern: str,
        user_id: str,
        limit: int,
        *,
        search_text: str,
    ) -> List[SearchResultItem]:
        """Search this entity type for one user.

        Args:
            ts_query: tsquery built by build_ts_query()
            like_pattern: escaped substring pattern for the trigram pass
            user_id: owner of the rows; rows of other users are never returned
            limit: maximum number of items
            search_text: sanitized search text, compared with similarity()

        Returns:
            Items ordered by descending rank; FTS hits win ties over trigram hits.
        """
        if not ts_query:
            return []

        fts_params = {
            "ts_query": ts_query,
            "search_text": search_text,
            "user_id": user_id,
            "limit": limit,
        }
        logger.trace(f"{self.entity_type.value} FTS search params: {fts_params}")
        try:
            fts_rows = await self._fetch_rows(self.build_fts_sql(), fts_params)
        except Exception as e:
            if not is_tsquery_syntax_error(e):
                raise
            logger.warning(f"tsquery syntax error for search term: {ts_query}, error: {e}")
            fts_rows = []

        # (item, pass order) so that FTS beats trigram when ranks are equal
        ranked: list[tuple[SearchResultItem, int]] = [
            (self.to_result(row), 0) for row in fts_rows
        ]

        if self.should_run_trigram(len(fts_rows), limit):
            seen = {item.id for item, _ in ranked}
            trigram_params = {
                "search_text": search_text,
                "like_pattern": like_pattern,
                "user_id": user_id,
                # rows already found by FTS may come back again
                "limit": limit + len(seen),
            }
            trigram_rows = await self._fetch_rows(self.build_trigram_sql(), trigram_params)
            for row in trigram_rows:
                item = self.to_result(row)
                if item.id in seen:
                    continue
                seen.add(item.id)
                ranked.append((item, 1))
            logger.debug(
                f"{self.entity_type.value}: {len(fts_rows)} FTS rows, "
                f"{len(ranked) - len(fts_rows)} trigram rows"
            )

        ranked.sort(key=lambda pair: (-pair[0].rank, pair[1]))
        return [item for item, _ in ranked[:limit]]

    # --- row mapping -------------------------------------------------------

    @abstractmethod
    def to_result(self, row: Any) -> SearchResultItem:
        """Map a raw row to a search result item."""

    def _item(
        self,
        row: Any,
        title: Optional[str],
        url: str,
        date_value: Optional[str] = None,
    ) -> SearchResultItem:
        return SearchResultItem(
            id=str(row.id),
            type=self.entity_type,
            title=title or "",
            snippet=sanitize_snippet(row.snippet),
            url=url,
            date=date_value,
            rank=float(row.rank) if row.rank is not None else 0.0,
        )

    # --- index DDL ---------------------------------------------------------

    @classmethod
    def index_statements(cls, settings: Optional[StrategySettings] = None) -> List[str]:
        """CREATE INDEX statements backing this strategy's queries."""
        settings = settings or StrategySettings()
        table_key = cls.table.strip('"').lower()
        fts_text = text_expression(cls.fts_columns)
        statements = [
            f"CREATE INDEX IF NOT EXISTS idx_{table_key}_fts ON {cls.table} "
            f"USING GIN (to_tsvector('{settings.fts_config}', {fts_text}))"
        ]
        if cls.trigram_fallback:
            trigram_text = text_expression(cls.trigram_columns)
            statements.append(
                f"CREATE INDEX IF NOT EXISTS idx_{table_key}_trgm ON {cls.table} "
                f"USING GIN (({trigram_text}) gin_trgm_ops)"
            )
        return statements
