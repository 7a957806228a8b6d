"""Tests for GET /search."""

import pytest

from journal_search.schemas.search import (
    SEARCHABLE_ENTITY_TYPES,
    SearchableEntityType,
    SearchResponse,
    SearchResultGroup,
    SearchResultItem,
)


def sample_response() -> SearchResponse:
    contact = SearchResultItem(
        id="c1",
        type=SearchableEntityType.CONTACT,
        title="Anna Muster",
        snippet="<mark>Anna</mark> Muster",
        url="/prm/anna-muster",
        rank=0.61,
    )
    return SearchResponse(
        query="anna",
        total_count=1,
        results=[
            SearchResultGroup(
                type=SearchableEntityType.CONTACT,
                label="Kontakte",
                icon="users",
                count=1,
                items=[contact],
            )
        ],
    )


@pytest.mark.asyncio
async def test_requires_session_cookie(anonymous_client, search_service):
    response = await anonymous_client.get("/search", params={"q": "anna"})

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated", "code": "UNAUTHORIZED"}
    search_service.search.assert_not_called()


@pytest.mark.asyncio
async def test_returns_grouped_results(client, search_service):
    search_service.search.return_value = sample_response()

    response = await client.get("/search", params={"q": "anna"})

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "anna"
    assert body["totalCount"] == 1
    assert body["results"][0]["type"] == "contact"
    assert body["results"][0]["items"][0]["url"] == "/prm/anna-muster"


@pytest.mark.asyncio
async def test_defaults_passed_to_service(client, search_service):
    await client.get("/search", params={"q": "  anna  "})

    search_params = search_service.search.call_args.args[0]
    assert search_params.query == "anna"
    assert search_params.user_id == "user-1"
    assert search_params.limit == 20
    assert search_params.types == list(SEARCHABLE_ENTITY_TYPES)


@pytest.mark.asyncio
async def test_repeated_types_param(client, search_service):
    await client.get(
        "/search", params=[("q", "anna"), ("types", "contact"), ("types", "task"), ("limit", "5")]
    )

    search_params = search_service.search.call_args.args[0]
    assert search_params.types == [SearchableEntityType.CONTACT, SearchableEntityType.TASK]
    assert search_params.limit == 5


@pytest.mark.asyncio
async def test_bracket_types_param(client, search_service):
    await client.get("/search", params=[("q", "anna"), ("types[]", "habit")])

    search_params = search_service.search.call_args.args[0]
    assert search_params.types == [SearchableEntityType.HABIT]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {"q": "a"},
        {},
        {"q": "x" * 201},
        {"q": "anna", "limit": "0"},
        {"q": "anna", "limit": "101"},
        {"q": "anna", "limit": "many"},
        {"q": "anna", "types": "notes"},
    ],
)
async def test_invalid_query(client, search_service, params):
    response = await client.get("/search", params=params)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "INVALID_QUERY"
    assert body["error"]
    search_service.search.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_type_message(client):
    response = await client.get("/search", params={"q": "anna", "types": "notes"})
    assert "notes" in response.json()["error"]


@pytest.mark.asyncio
async def test_service_failure_is_500(client, search_service):
    search_service.search.side_effect = RuntimeError("pool exhausted")

    response = await client.get("/search", params={"q": "anna"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "An error occurred while searching",
        "code": "SERVER_ERROR",
    }
