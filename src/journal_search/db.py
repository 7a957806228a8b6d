import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
    AsyncEngine,
    async_scoped_session,
)

from journal_search.config import SearchConfig


def get_scoped_session_factory(
    session_maker: async_sessionmaker[AsyncSession],
) -> async_scoped_session:
    """Create a scoped session factory scoped to current task."""
    return async_scoped_session(session_maker, scopefunc=asyncio.current_task)


@asynccontextmanager
async def scoped_session(
    session_maker: async_sessionmaker[AsyncSession],
    statement_timeout_ms: Optional[int] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a scoped session with proper lifecycle management.

    Args:
        session_maker: Session maker to create scoped sessions from
        statement_timeout_ms: Optional Postgres statement_timeout for this transaction
    """
    factory = get_scoped_session_factory(session_maker)
    session = factory()
    try:
        if statement_timeout_ms:
            # SET LOCAL does not accept bind parameters
            await session.execute(text(f"SET LOCAL statement_timeout = {int(statement_timeout_ms)}"))
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
        await factory.remove()


def create_engine_and_session(
    config: SearchConfig,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create the engine and session maker for the configured database."""
    logger.debug(f"Creating engine for db_url: {_redact(config.database_url)}")
    engine = create_async_engine(
        config.database_url,
        pool_size=config.database_pool_size,
        pool_pre_ping=True,
    )
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    return engine, session_maker


@asynccontextmanager
async def engine_session_factory(
    config: SearchConfig,
) -> AsyncGenerator[tuple[AsyncEngine, async_sessionmaker[AsyncSession]], None]:
    """Create engine and session factory, disposing the engine on exit.

    Used by the CLI and by tests that want a short-lived connection pool.
    The API keeps its engine on ``app.state`` for the lifetime of the process.
    """
    engine, session_maker = create_engine_and_session(config)
    try:
        yield engine, session_maker
    finally:
        await engine.dispose()
        logger.debug("Disposed database engine")


def _redact(url: str) -> str:
    """Hide the password part of a database URL for logging."""
    if "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"
