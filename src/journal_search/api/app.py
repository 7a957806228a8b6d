"""FastAPI application for the journal-search API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from journal_search import __version__ as version
from journal_search import db
from journal_search.api.errors import SearchAPIError
from journal_search.api.routers import search_router
from journal_search.config import init_api_logging
from journal_search.services.search_service import SearchService


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    """Create the database pool and search service for the process lifetime."""
    app_config = init_api_logging()
    logger.info("Starting journal-search API")

    engine, session_maker = db.create_engine_and_session(app_config)
    app.state.engine = engine
    app.state.search_service = SearchService.from_config(session_maker, app_config)
    logger.info("Search service initialized")

    yield

    logger.info("Shutting down journal-search API")
    await engine.dispose()


app = FastAPI(
    title="journal-search API",
    description="Ranked full-text search across journal entries, contacts, tasks and more",
    version=version,
    lifespan=lifespan,
)

app.include_router(search_router.router)


@app.exception_handler(SearchAPIError)
async def search_error_handler(request: Request, exc: SearchAPIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_response().model_dump())
