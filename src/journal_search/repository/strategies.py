"""Search strategies for the eleven searchable entity types."""

from typing import Any

from journal_search.repository.search_strategy import EntitySearchStrategy, iso_date
from journal_search.schemas.search import SearchableEntityType, SearchResultItem


class JournalEntrySearch(EntitySearchStrategy):
    """Journal entries, excluding sensitive and soft-deleted ones.

    Entries are long free text, so similarity() over the content is not a
    useful fallback; only the FTS pass runs.
    """

    entity_type = SearchableEntityType.JOURNAL_ENTRY
    table = '"JournalEntry"'
    alias = "j"
    fts_columns = ("title", "content", '"aiSummary"', "analysis")
    trigram_columns = ("title", "content")
    headline_columns = ("content",)
    select_columns = ("j.title AS title", 't."localDate" AS local_date')
    joins = 'JOIN "TimeBox" t ON j."timeBoxId" = t.id'
    filters = ('j."isSensitive" = false', 'j."deletedAt" IS NULL')
    trigram_fallback = False

    def to_result(self, row: Any) -> SearchResultItem:
        local_date = iso_date(row.local_date)
        return self._item(
            row,
            row.title or "Tagebucheintrag",
            f"/?date={local_date}&entry={row.id}",
            local_date,
        )


class ContactSearch(EntitySearchStrategy):
    """Contacts. Short, typo-prone names make this the main trigram user."""

    entity_type = SearchableEntityType.CONTACT
    table = '"Contact"'
    alias = "c"
    fts_columns = (
        "name",
        '"givenName"',
        '"familyName"',
        "nickname",
        "notes",
        "company",
        '"jobTitle"',
    )
    trigram_columns = ("name", "nickname")
    headline_columns = ("name", "notes")
    select_columns = ("c.name AS name", "c.slug AS slug")
    filters = ('c."isArchived" = false',)

    def to_result(self, row: Any) -> SearchResultItem:
        return self._item(row, row.name or "Kontakt", f"/prm/{row.slug}")


class LocationSearch(EntitySearchStrategy):
    entity_type = SearchableEntityType.LOCATION
    table = '"Location"'
    alias = "l"
    fts_columns = ("name", "address", "city", "notes")
    trigram_columns = ("name", "city")
    headline_columns = ("name", "city", "address")
    select_columns = ("l.name AS name", "l.slug AS slug")

    def to_result(self, row: Any) -> SearchResultItem:
        return self._item(row, row.name or "Ort", f"/locations/{row.slug}")


class TaxonomySearch(EntitySearchStrategy):
    """Tags, matched on short and long name."""

    entity_type = SearchableEntityType.TAXONOMY
    table = '"Taxonomy"'
    alias = "t"
    fts_columns = ('"shortName"', '"longName"', "description")
    trigram_columns = ('"shortName"', '"longName"')
    headline_columns = ('"shortName"', '"longName"', "description")
    select_columns = ('t."shortName" AS short_name', 't."longName" AS long_name')
    filters = ('t."isArchived" = false',)

    def to_result(self, row: Any) -> SearchResultItem:
        return self._item(
            row,
            row.short_name or row.long_name or "Tag",
            f"/settings/tags?highlight={row.id}",
        )


class TaskSearch(EntitySearchStrategy):
    entity_type = SearchableEntityType.TASK
    table = '"Task"'
    alias = "t"
    fts_columns = ("title", "description")
    trigram_columns = ("title",)
    headline_columns = ("title", "description")
    select_columns = ("t.title AS title", 't."dueDate" AS due_date')

    def to_result(self, row: Any) -> SearchResultItem:
        return self._item(
            row,
            row.title or "Aufgabe",
            f"/tasks?highlight={row.id}",
            iso_date(row.due_date),
        )


class ActValueSearch(EntitySearchStrategy):
    entity_type = SearchableEntityType.ACT_VALUE
    table = '"ActValue"'
    alias = "v"
    fts_columns = ("title", "description")
    trigram_columns = ("title",)
    headline_columns = ("title", "description")
    select_columns = ("v.title AS title", "v.slug AS slug")

    def to_result(self, row: Any) -> SearchResultItem:
        return self._item(row, row.title or "Wert", f"/values/{row.slug}")


class ActGoalSearch(EntitySearchStrategy):
    entity_type = SearchableEntityType.ACT_GOAL
    table = '"ActGoal"'
    alias = "g"
    fts_columns = ("title", "description")
    trigram_columns = ("title",)
    headline_columns = ("title", "description")
    select_columns = ("g.title AS title", "g.slug AS slug")

    def to_result(self, row: Any) -> SearchResultItem:
        return self._item(row, row.title or "Ziel", f"/goals/{row.slug}")


class HabitSearch(EntitySearchStrategy):
    entity_type = SearchableEntityType.HABIT
    table = '"Habit"'
    alias = "h"
    fts_columns = ("title", "description")
    trigram_columns = ("title",)
    headline_columns = ("title", "description")
    select_columns = ("h.title AS title",)

    def to_result(self, row: Any) -> SearchResultItem:
        return self._item(row, row.title or "Gewohnheit", f"/habits?highlight={row.id}")


class BookmarkSearch(EntitySearchStrategy):
    entity_type = SearchableEntityType.BOOKMARK
    table = '"Bookmark"'
    alias = "b"
    fts_columns = ("title", "description", "url")
    trigram_columns = ("title",)
    headline_columns = ("title", "description")
    select_columns = ("b.title AS title",)

    def to_result(self, row: Any) -> SearchResultItem:
        return self._item(row, row.title or "Lesezeichen", f"/bookmarks?highlight={row.id}")


class CalendarEventSearch(EntitySearchStrategy):
    """Calendar events. Titles are mostly exact, so no fuzzy fallback."""

    entity_type = SearchableEntityType.CALENDAR_EVENT
    table = '"CalendarEvent"'
    alias = "e"
    fts_columns = ("title", "description", "location")
    trigram_columns = ("title",)
    headline_columns = ("title", "description", "location")
    select_columns = ("e.title AS title", 'e."startedAt" AS started_at')
    trigram_fallback = False

    def to_result(self, row: Any) -> SearchResultItem:
        started = iso_date(row.started_at)
        url = f"/?date={started}&event={row.id}" if started else f"/?event={row.id}"
        return self._item(row, row.title or "Termin", url, started)


class ConsumptionSearch(EntitySearchStrategy):
    """Consumed media (music, films, books)."""

    entity_type = SearchableEntityType.CONSUMPTION
    table = '"Consumption"'
    alias = "c"
    fts_columns = ("title", "artist")
    trigram_columns = ("title", "artist")
    headline_columns = ("title", "artist")
    select_columns = ("c.title AS title", 'c."occurredAt" AS occurred_at')

    def to_result(self, row: Any) -> SearchResultItem:
        occurred = iso_date(row.occurred_at)
        url = (
            f"/?date={occurred}&consumption={row.id}"
            if occurred
            else f"/bookmarks?highlight={row.id}"
        )
        return self._item(row, row.title or "Medium", url, occurred)


ALL_STRATEGY_CLASSES: tuple[type[EntitySearchStrategy], ...] = (
    JournalEntrySearch,
    ContactSearch,
    LocationSearch,
    TaxonomySearch,
    TaskSearch,
    ActValueSearch,
    ActGoalSearch,
    HabitSearch,
    BookmarkSearch,
    CalendarEventSearch,
    ConsumptionSearch,
)
