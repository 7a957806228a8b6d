"""Fixtures for search API tests."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from journal_search.api.deps import get_app_config, get_search_service
from journal_search.schemas.search import SearchResponse


@pytest.fixture
def search_service() -> AsyncMock:
    service = AsyncMock()
    service.search.return_value = SearchResponse(query="test", total_count=0, results=[])
    return service


@pytest_asyncio.fixture
async def app(app_config, search_service) -> AsyncGenerator[FastAPI, None]:
    """FastAPI app with config and search service overridden."""
    from journal_search.api.app import app

    app.dependency_overrides[get_app_config] = lambda: app_config
    app.dependency_overrides[get_search_service] = lambda: search_service
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def anonymous_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client carrying the session cookie of user-1."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={"userId": "user-1"},
    ) as client:
        yield client
