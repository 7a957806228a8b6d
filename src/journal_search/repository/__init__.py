from journal_search.repository.search_strategy import EntitySearchStrategy, StrategySettings
from journal_search.repository.strategies import (
    ALL_STRATEGY_CLASSES,
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

__all__ = [
    "ALL_STRATEGY_CLASSES",
    "ActGoalSearch",
    "ActValueSearch",
    "BookmarkSearch",
    "CalendarEventSearch",
    "ConsumptionSearch",
    "ContactSearch",
    "EntitySearchStrategy",
    "HabitSearch",
    "JournalEntrySearch",
    "LocationSearch",
    "StrategySettings",
    "TaskSearch",
    "TaxonomySearch",
]
