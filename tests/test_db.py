"""Tests for session lifecycle helpers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from journal_search import db


def fake_factory(session):
    factory = MagicMock(return_value=session)
    factory.remove = AsyncMock()
    return factory


def fake_session():
    session = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.mark.asyncio
async def test_scoped_session_commits_and_sets_timeout():
    session = fake_session()
    factory = fake_factory(session)
    with patch.object(db, "get_scoped_session_factory", return_value=factory):
        async with db.scoped_session(MagicMock(), statement_timeout_ms=1500) as s:
            assert s is session

    statement = session.execute.call_args.args[0]
    assert str(statement) == "SET LOCAL statement_timeout = 1500"
    session.commit.assert_awaited_once()
    session.rollback.assert_not_awaited()
    session.close.assert_awaited_once()
    factory.remove.assert_awaited_once()


@pytest.mark.asyncio
async def test_scoped_session_rolls_back_on_error():
    session = fake_session()
    factory = fake_factory(session)
    with patch.object(db, "get_scoped_session_factory", return_value=factory):
        with pytest.raises(RuntimeError):
            async with db.scoped_session(MagicMock()):
                raise RuntimeError("query failed")

    session.execute.assert_not_awaited()
    session.commit.assert_not_awaited()
    session.rollback.assert_awaited_once()
    session.close.assert_awaited_once()


def test_redact_hides_password():
    assert (
        db._redact("postgresql+asyncpg://journal:secret@db:5432/journal")
        == "postgresql+asyncpg://journal:***@db:5432/journal"
    )
    assert db._redact("postgresql+asyncpg://localhost/journal") == (
        "postgresql+asyncpg://localhost/journal"
    )
