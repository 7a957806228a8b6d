"""Database setup commands."""

import asyncio

import typer
from loguru import logger
from rich.console import Console

from journal_search import db
from journal_search.cli.app import db_app
from journal_search.config import ConfigManager
from journal_search.repository.index_setup import (
    IndexSetupReport,
    search_setup_statements,
    setup_search_indexes,
)
from journal_search.repository.search_strategy import StrategySettings

console = Console()


async def _setup(settings: StrategySettings) -> IndexSetupReport:
    app_config = ConfigManager().config
    async with db.engine_session_factory(app_config) as (_, session_maker):
        return await setup_search_indexes(session_maker, settings)


@db_app.command()
def setup(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print the SQL statements without running them"
    ),
):  # pragma: no cover
    """Enable pg_trgm and create the full-text and trigram indexes."""
    settings = StrategySettings.from_config(ConfigManager().config)

    if dry_run:
        for statement in search_setup_statements(settings):
            console.print(f"{statement};")
        return

    console.print("Setting up full-text search...")
    logger.info("Running search index setup")
    report = asyncio.run(_setup(settings))

    console.print(f"  [green]Executed:[/green] {len(report.executed)}")
    if report.skipped:
        console.print(f"  [yellow]Skipped (already exist):[/yellow] {len(report.skipped)}")
    for statement, error in report.failed:
        console.print(f"  [red]Failed:[/red] {statement}\n    {error}")

    if not report.ok:
        raise typer.Exit(1)
    console.print("[green]Full-text search setup complete[/green]")
