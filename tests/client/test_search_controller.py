"""Tests for the debounced search controller."""

import asyncio
from typing import List

import httpx
import pytest
import pytest_asyncio

from journal_search.client.search_controller import (
    ControllerPhase,
    SearchController,
    SearchRequestError,
)
from journal_search.schemas.search import SEARCHABLE_ENTITY_TYPES, SearchableEntityType

DEBOUNCE = 0.05


def response_body(query: str, count: int = 1) -> dict:
    items = [
        {
            "id": f"c{i}",
            "type": "contact",
            "title": f"{query} {i}",
            "snippet": "",
            "url": f"/prm/c{i}",
            "rank": 0.5,
        }
        for i in range(count)
    ]
    results = (
        [{"type": "contact", "label": "Kontakte", "icon": "user", "count": count, "items": items}]
        if count
        else []
    )
    return {"query": query, "totalCount": count, "results": results}


def default_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=response_body(request.url.params["q"]))


class Recorder:
    """MockTransport handler that records requests."""

    def __init__(self, handler=None):
        self.requests: List[httpx.Request] = []
        self.handler = handler or default_handler

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.handler(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    @property
    def queries(self) -> List[str]:
        return [request.url.params["q"] for request in self.requests]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest_asyncio.fixture
async def controller(recorder):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(recorder), base_url="http://test"
    ) as client:
        controller = SearchController(client, debounce_seconds=DEBOUNCE)
        yield controller
        await controller.aclose()


@pytest.mark.asyncio
async def test_burst_sends_single_request(controller, recorder):
    for prefix in ("t", "te", "tes", "test"):
        await controller.set_query(prefix)

    assert controller.state.query == "test"
    assert controller.phase == ControllerPhase.PENDING

    await controller.wait_until_settled()

    assert recorder.queries == ["test"]
    assert controller.phase == ControllerPhase.SETTLED
    assert controller.state.total_count == 1
    assert controller.state.results[0].items[0].title == "test 0"
    assert controller.state.is_loading is False


@pytest.mark.asyncio
async def test_request_params(controller, recorder):
    await controller.set_filters([SearchableEntityType.CONTACT, SearchableEntityType.TASK])
    await controller.set_query("anna")
    await controller.wait_until_settled()

    params = recorder.requests[0].url.params
    assert params["q"] == "anna"
    assert params["limit"] == "20"
    assert params.get_list("types") == ["contact", "task"]


@pytest.mark.asyncio
async def test_short_query_clears_without_request(controller, recorder):
    await controller.set_query("anna")
    await controller.wait_until_settled()
    assert controller.state.results

    await controller.set_query("a")
    await controller.wait_until_settled()

    assert recorder.queries == ["anna"]
    assert controller.state.results == []
    assert controller.state.total_count == 0
    assert controller.state.error is None


@pytest.mark.asyncio
async def test_padded_short_query_sends_nothing(controller, recorder):
    await controller.set_query("a ")
    await controller.wait_until_settled()

    assert recorder.requests == []
    assert controller.state.error is None
    assert controller.phase == ControllerPhase.SETTLED

    await controller.set_filters([SearchableEntityType.CONTACT])
    await controller.wait_until_settled()
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_query_is_sent_trimmed(controller, recorder):
    await controller.set_query("  anna ")
    await controller.wait_until_settled()

    assert recorder.queries == ["anna"]
    assert controller.state.query == "  anna "


@pytest.mark.asyncio
async def test_error_keeps_previous_results():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["q"] == "boom":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=response_body(request.url.params["q"]))

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(Recorder(handler)), base_url="http://test"
    ) as client:
        controller = SearchController(client, debounce_seconds=DEBOUNCE)
        await controller.set_query("anna")
        await controller.wait_until_settled()
        previous = controller.state.results

        await controller.set_query("boom")
        await controller.wait_until_settled()

        assert controller.state.error.startswith("Search failed")
        assert controller.state.results == previous
        assert controller.state.is_loading is False


@pytest.mark.asyncio
async def test_error_body_message():
    recorder = Recorder(
        lambda request: httpx.Response(
            400, json={"error": "Unknown entity type: notes", "code": "INVALID_QUERY"}
        )
    )
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(recorder), base_url="http://test"
    ) as client:
        controller = SearchController(client, debounce_seconds=DEBOUNCE)
        await controller.set_query("anna")
        await controller.wait_until_settled()

    assert controller.state.error == "Unknown entity type: notes"


@pytest.mark.asyncio
async def test_error_without_body_uses_default():
    recorder = Recorder(lambda request: httpx.Response(502, text="Bad Gateway"))
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(recorder), base_url="http://test"
    ) as client:
        controller = SearchController(client)
        with pytest.raises(SearchRequestError, match="^Search failed$"):
            await controller.request("anna", SEARCHABLE_ENTITY_TYPES)


@pytest.mark.asyncio
async def test_stale_response_is_discarded():
    release_first = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        query = request.url.params["q"]
        if query == "first":
            await release_first.wait()
        return httpx.Response(200, json=response_body(query))

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(Recorder(handler)), base_url="http://test"
    ) as client:
        controller = SearchController(client, debounce_seconds=DEBOUNCE)
        await controller.set_query("first")
        await asyncio.sleep(DEBOUNCE * 3)
        assert controller.phase == ControllerPhase.IN_FLIGHT

        await controller.set_query("second")
        await controller.wait_until_settled()
        release_first.set()
        await asyncio.sleep(0)

        assert controller.state.results[0].items[0].title == "second 0"
        await controller.aclose()


@pytest.mark.asyncio
async def test_toggle_filter_researches(controller, recorder):
    await controller.set_query("anna")
    await controller.wait_until_settled()

    await controller.toggle_filter(SearchableEntityType.CONTACT)
    await controller.wait_until_settled()

    assert SearchableEntityType.CONTACT not in controller.state.active_filters
    assert len(recorder.requests) == 2
    assert "contact" not in recorder.requests[1].url.params.get_list("types")

    await controller.toggle_filter(SearchableEntityType.CONTACT)
    assert SearchableEntityType.CONTACT in controller.state.active_filters


@pytest.mark.asyncio
async def test_filter_change_without_query_sends_nothing(controller, recorder):
    await controller.set_filters([SearchableEntityType.HABIT])
    await controller.clear_filters()
    await controller.wait_until_settled()

    assert recorder.requests == []
    assert controller.state.active_filters == list(SEARCHABLE_ENTITY_TYPES)


@pytest.mark.asyncio
async def test_open_close_toggle(controller):
    controller.open()
    assert controller.state.is_open
    controller.close()
    assert not controller.state.is_open
    controller.toggle()
    assert controller.state.is_open


@pytest.mark.asyncio
async def test_clear_resets_results_but_not_overlay(controller, recorder):
    controller.open()
    await controller.set_query("anna")
    await controller.wait_until_settled()

    await controller.set_query("annab")
    controller.clear()
    await controller.wait_until_settled()

    assert recorder.queries == ["anna"]
    assert controller.state.query == ""
    assert controller.state.results == []
    assert controller.state.is_open
    assert controller.phase == ControllerPhase.IDLE
