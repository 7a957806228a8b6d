"""Database setup for full-text search.

Enables pg_trgm and creates the GIN indexes used by the entity strategies.
Safe to run repeatedly, e.g. after every schema push or database reset.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from journal_search import db
from journal_search.repository.search_strategy import StrategySettings
from journal_search.repository.strategies import ALL_STRATEGY_CLASSES

TRIGRAM_EXTENSION_SQL = "CREATE EXTENSION IF NOT EXISTS pg_trgm"


@dataclass
class IndexSetupReport:
    executed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def search_setup_statements(settings: Optional[StrategySettings] = None) -> List[str]:
    """Every statement needed for search, extension first."""
    settings = settings or StrategySettings()
    statements = [TRIGRAM_EXTENSION_SQL]
    for strategy_class in ALL_STRATEGY_CLASSES:
        statements.extend(strategy_class.index_statements(settings))
    return statements


async def setup_search_indexes(
    session_maker: async_sessionmaker[AsyncSession],
    settings: Optional[StrategySettings] = None,
) -> IndexSetupReport:
    """Run the setup statements one by one, each in its own transaction."""
    report = IndexSetupReport()
    for statement in search_setup_statements(settings):
        try:
            async with db.scoped_session(session_maker) as session:
                await session.execute(text(statement))
        except Exception as e:
            if "already exists" in str(e):
                report.skipped.append(statement)
                logger.debug(f"Skipped existing object: {statement}")
                continue
            logger.warning(f"Search setup statement failed: {statement}, error: {e}")
            report.failed.append((statement, str(e)))
            continue
        report.executed.append(statement)
        logger.info(f"Executed: {statement}")

    logger.info(
        f"Search setup finished: {len(report.executed)} executed, "
        f"{len(report.skipped)} skipped, {len(report.failed)} failed"
    )
    return report
