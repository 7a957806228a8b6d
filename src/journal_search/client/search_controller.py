"""Debounced search client with explicit state.

The controller keeps the state a search overlay renders from and talks to
``GET /search`` through an ``httpx.AsyncClient``. Keystrokes are debounced:
each ``set_query`` call restarts the timer so only the last value of a burst
reaches the network. Every request carries a sequence number and a new
request cancels the previous one, so a slow early response can never
overwrite the results of a later query.

Phases::

    IDLE -> PENDING (timer running) -> IN_FLIGHT (request running) -> SETTLED

``set_query`` / filter changes move back to PENDING from any phase;
``clear`` and ``aclose`` cancel the timer and the request.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from journal_search.schemas.search import (
    DEFAULT_LIMIT,
    SEARCHABLE_ENTITY_TYPES,
    SearchableEntityType,
    SearchResponse,
    SearchResultGroup,
)
from journal_search.search.query_builder import MIN_QUERY_LENGTH

DEBOUNCE_SECONDS = 0.3
DEFAULT_ERROR_MESSAGE = "Search failed"


class ControllerPhase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    SETTLED = "settled"


@dataclass
class SearchState:
    query: str = ""
    results: List[SearchResultGroup] = field(default_factory=list)
    total_count: int = 0
    is_loading: bool = False
    error: Optional[str] = None
    active_filters: List[SearchableEntityType] = field(
        default_factory=lambda: list(SEARCHABLE_ENTITY_TYPES)
    )
    is_open: bool = False


class SearchRequestError(Exception):
    """A search request failed; the message is meant for display."""


class SearchController:
    """Client-side search state machine.

    Args:
        client: HTTP client whose base_url points at the search API
        debounce_seconds: quiet period before a request is sent
        limit: result limit sent with every request
        path: path of the search endpoint
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        limit: int = DEFAULT_LIMIT,
        path: str = "/search",
    ):
        self.client = client
        self.debounce_seconds = debounce_seconds
        self.limit = limit
        self.path = path
        self.state = SearchState()
        self.phase = ControllerPhase.IDLE
        self._debounce_task: Optional[asyncio.Task] = None
        self._fetch_task: Optional[asyncio.Task] = None
        self._sequence = 0

    # --- query and filters ------------------------------------------------

    async def set_query(self, query: str) -> None:
        """Update the query right away and schedule the debounced search."""
        self.state.query = query
        await self._schedule(query, list(self.state.active_filters))

    async def toggle_filter(self, entity_type: SearchableEntityType) -> None:
        filters = list(self.state.active_filters)
        if entity_type in filters:
            filters.remove(entity_type)
        else:
            filters.append(entity_type)
        await self.set_filters(filters)

    async def set_filters(self, types: Iterable[SearchableEntityType]) -> None:
        self.state.active_filters = list(types)
        if len(self.state.query.strip()) >= MIN_QUERY_LENGTH:
            await self._schedule(self.state.query, list(self.state.active_filters))

    async def clear_filters(self) -> None:
        """Activate every entity type again."""
        await self.set_filters(SEARCHABLE_ENTITY_TYPES)

    # --- overlay ----------------------------------------------------------

    def open(self) -> None:
        self.state.is_open = True

    def close(self) -> None:
        self.state.is_open = False

    def toggle(self) -> None:
        self.state.is_open = not self.state.is_open

    def clear(self) -> None:
        """Reset query and results; the overlay stays as it is."""
        self._cancel_debounce()
        self._cancel_fetch()
        self._sequence += 1
        self.state.query = ""
        self.state.results = []
        self.state.total_count = 0
        self.state.is_loading = False
        self.state.error = None
        self.phase = ControllerPhase.IDLE

    async def aclose(self) -> None:
        """Cancel pending work, e.g. when the view goes away."""
        tasks = [task for task in (self._debounce_task, self._fetch_task) if task]
        self._cancel_debounce()
        self._cancel_fetch()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def wait_until_settled(self) -> None:
        """Wait for the pending timer and request, if any."""
        while True:
            task = self._debounce_task if self._is_running(self._debounce_task) else None
            task = task or (self._fetch_task if self._is_running(self._fetch_task) else None)
            if task is None:
                return
            try:
                await task
            except asyncio.CancelledError:
                # superseded by a newer task, loop picks it up
                continue

    # --- scheduling -------------------------------------------------------

    async def _schedule(self, query: str, filters: List[SearchableEntityType]) -> None:
        if self._is_running(self._debounce_task):
            self._debounce_task.cancel()  # pyright: ignore [reportOptionalMemberAccess]
            try:
                await self._debounce_task  # pyright: ignore [reportGeneralTypeIssues]
            except asyncio.CancelledError:
                pass

        self.phase = ControllerPhase.PENDING
        self._debounce_task = asyncio.create_task(self._debounced(query, filters))

    async def _debounced(self, query: str, filters: List[SearchableEntityType]) -> None:
        try:
            await asyncio.sleep(self.debounce_seconds)
        except asyncio.CancelledError:
            return
        self._start_fetch(query, filters)

    def _start_fetch(self, query: str, filters: List[SearchableEntityType]) -> None:
        # abort the request of an older query
        self._cancel_fetch()

        # the server trims before validating
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH:
            self.state.results = []
            self.state.total_count = 0
            self.state.is_loading = False
            self.state.error = None
            self.phase = ControllerPhase.SETTLED
            return

        self._sequence += 1
        self.state.is_loading = True
        self.state.error = None
        self.phase = ControllerPhase.IN_FLIGHT
        self._fetch_task = asyncio.create_task(self._fetch(self._sequence, query, filters))

    async def _fetch(
        self, sequence: int, query: str, filters: List[SearchableEntityType]
    ) -> None:
        try:
            response = await self.request(query, filters)
        except asyncio.CancelledError:
            return
        except SearchRequestError as e:
            if sequence != self._sequence:
                return
            logger.warning(f"Search request failed for {query!r}: {e}")
            # keep the last good results visible
            self.state.error = str(e)
            self.state.is_loading = False
            self.phase = ControllerPhase.SETTLED
            return

        if sequence != self._sequence:
            logger.debug(f"Discarding stale response for {query!r}")
            return

        self.state.results = response.results
        self.state.total_count = response.total_count
        self.state.is_loading = False
        self.state.error = None
        self.phase = ControllerPhase.SETTLED

    async def request(
        self, query: str, filters: Iterable[SearchableEntityType]
    ) -> SearchResponse:
        """Send one search request without debouncing.

        Raises:
            SearchRequestError: on network errors, non-2xx responses and
                unparseable bodies
        """
        params: list[tuple[str, str]] = [("q", query), ("limit", str(self.limit))]
        params.extend(("types", SearchableEntityType(t).value) for t in filters)

        try:
            response = await self.client.get(self.path, params=params)
        except httpx.HTTPError as e:
            raise SearchRequestError(f"{DEFAULT_ERROR_MESSAGE}: {e}") from e

        if response.is_error:
            raise SearchRequestError(self._error_message(response))

        try:
            return SearchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SearchRequestError(f"{DEFAULT_ERROR_MESSAGE}: invalid response") from e

    # --- helpers ----------------------------------------------------------

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return DEFAULT_ERROR_MESSAGE
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return DEFAULT_ERROR_MESSAGE

    @staticmethod
    def _is_running(task: Optional[asyncio.Task]) -> bool:
        return task is not None and not task.done()

    def _cancel_debounce(self) -> None:
        if self._is_running(self._debounce_task):
            self._debounce_task.cancel()  # pyright: ignore [reportOptionalMemberAccess]

    def _cancel_fetch(self) -> None:
        if self._is_running(self._fetch_task):
            self._fetch_task.cancel()  # pyright: ignore [reportOptionalMemberAccess]
