"""Service that runs a search across entity types and assembles the response."""

import asyncio
from typing import Dict, List, Mapping, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from journal_search.config import SearchConfig
from journal_search.repository.search_strategy import EntitySearchStrategy, StrategySettings
from journal_search.repository.strategies import (
    ActGoalSearch,
    ActValueSearch,
    BookmarkSearch,
    CalendarEventSearch,
    ConsumptionSearch,
    ContactSearch,
    HabitSearch,
    JournalEntrySearch,
    LocationSearch,
    TaskSearch,
    TaxonomySearch,
)
from journal_search.schemas.search import (
    ENTITY_TYPE_ICONS,
    ENTITY_TYPE_LABELS,
    SearchableEntityType,
    SearchParams,
    SearchResponse,
    SearchResultGroup,
    SearchResultItem,
)
from journal_search.search.query_builder import (
    MIN_QUERY_LENGTH,
    build_like_pattern,
    build_ts_query,
    sanitize_search_term,
)


class SearchService:
    """Fans a query out to the per-entity strategies and merges the results.

    Results of all requested types are merged, sorted by rank and truncated to
    ``limit`` in total, then grouped by type. A strategy that fails or runs
    past ``timeout_seconds`` is logged and left out; the remaining groups are
    still returned.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        settings: Optional[StrategySettings] = None,
        timeout_seconds: float = 5.0,
        strategies: Optional[Mapping[SearchableEntityType, EntitySearchStrategy]] = None,
    ):
        self.session_maker = session_maker
        self.settings = settings or StrategySettings()
        self.timeout_seconds = timeout_seconds
        self._strategies: Dict[SearchableEntityType, EntitySearchStrategy] = dict(
            strategies or {}
        )

    @classmethod
    def from_config(
        cls, session_maker: async_sessionmaker[AsyncSession], config: SearchConfig
    ) -> "SearchService":
        return cls(
            session_maker,
            settings=StrategySettings.from_config(config),
            timeout_seconds=config.strategy_timeout_seconds,
        )

    def strategy_for(self, entity_type: SearchableEntityType) -> EntitySearchStrategy:
        """Strategy instance for an entity type, created on first use."""
        strategy = self._strategies.get(entity_type)
        if strategy is not None:
            return strategy

        match entity_type:
            case SearchableEntityType.JOURNAL_ENTRY:
                strategy_class = JournalEntrySearch
            case SearchableEntityType.CONTACT:
                strategy_class = ContactSearch
            case SearchableEntityType.LOCATION:
                strategy_class = LocationSearch
            case SearchableEntityType.TAXONOMY:
                strategy_class = TaxonomySearch
            case SearchableEntityType.TASK:
                strategy_class = TaskSearch
            case SearchableEntityType.ACT_VALUE:
                strategy_class = ActValueSearch
            case SearchableEntityType.ACT_GOAL:
                strategy_class = ActGoalSearch
            case SearchableEntityType.HABIT:
                strategy_class = HabitSearch
            case SearchableEntityType.BOOKMARK:
                strategy_class = BookmarkSearch
            case SearchableEntityType.CALENDAR_EVENT:
                strategy_class = CalendarEventSearch
            case SearchableEntityType.CONSUMPTION:
                strategy_class = ConsumptionSearch
            case _:  # pragma: no cover
                raise ValueError(f"Unexpected entity type: {entity_type}")

        strategy = strategy_class(self.session_maker, self.settings)
        self._strategies[entity_type] = strategy
        return strategy

    async def search(self, params: SearchParams) -> SearchResponse:
        """Search all requested entity types for one user."""
        sanitized = sanitize_search_term(params.query)
        if len(sanitized) < MIN_QUERY_LENGTH:
            logger.debug(f"Search term too short after sanitizing: {params.query!r}")
            return SearchResponse(query=params.query, total_count=0, results=[])

        ts_query = build_ts_query(sanitized)
        like_pattern = build_like_pattern(sanitized)
        # keep request order, drop repeats
        types = list(dict.fromkeys(params.types))

        logger.debug(f"Searching {len(types)} types for tsquery {ts_query!r}")
        batches = await asyncio.gather(
            *(
                self._search_type(
                    entity_type, ts_query, like_pattern, sanitized, params.user_id, params.limit
                )
                for entity_type in types
            )
        )

        merged = [item for batch in batches for item in batch]
        # sort is stable: equal ranks keep the type order of the request
        merged.sort(key=lambda item: item.rank, reverse=True)
        returned = merged[: params.limit]

        return SearchResponse(
            query=params.query,
            total_count=len(returned),
            results=self.group_results(returned),
        )

    async def _search_type(
        self,
        entity_type: SearchableEntityType,
        ts_query: str,
        like_pattern: str,
        search_text: str,
        user_id: str,
        limit: int,
    ) -> List[SearchResultItem]:
        strategy = self.strategy_for(entity_type)
        try:
            return await asyncio.wait_for(
                strategy.search(ts_query, like_pattern, user_id, limit, search_text=search_text),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Search for {entity_type.value} exceeded {self.timeout_seconds}s, skipping"
            )
        except Exception as e:
            logger.error(f"Search error for {entity_type.value}: {type(e).__name__}: {e}")
        return []

    @staticmethod
    def group_results(items: List[SearchResultItem]) -> List[SearchResultGroup]:
        """Group ranked items by type.

        Groups appear in the order of their best item; items keep their order.
        """
        grouped: Dict[SearchableEntityType, List[SearchResultItem]] = {}
        for item in items:
            grouped.setdefault(item.type, []).append(item)

        return [
            SearchResultGroup(
                type=entity_type,
                label=ENTITY_TYPE_LABELS[entity_type],
                icon=ENTITY_TYPE_ICONS[entity_type],
                count=len(group_items),
                items=group_items,
            )
            for entity_type, group_items in grouped.items()
        ]
