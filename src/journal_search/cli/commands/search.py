"""Search command: run a query directly against the database."""

import asyncio
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from journal_search import db
from journal_search.cli.app import app
from journal_search.config import ConfigManager
from journal_search.schemas.search import (
    SearchParams,
    SearchQuery,
    SearchResponse,
    first_error_message,
    validate_search_query,
)
from journal_search.search.snippet import strip_marks
from journal_search.services.search_service import SearchService

console = Console()


def build_results_table(response: SearchResponse) -> Table:
    """Render grouped results as a rich table."""
    table = Table(title=f"Results for {response.query!r} ({response.total_count})")
    table.add_column("Type", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Date")
    table.add_column("Rank", justify="right")
    table.add_column("Snippet")
    table.add_column("URL", style="dim")

    for group in response.results:
        for item in group.items:
            table.add_row(
                group.label,
                item.title,
                item.date or "",
                f"{item.rank:.3f}",
                strip_marks(item.snippet),
                item.url,
            )
    return table


async def _run_search(query: SearchQuery, user_id: str) -> SearchResponse:
    app_config = ConfigManager().config
    async with db.engine_session_factory(app_config) as (_, session_maker):
        service = SearchService.from_config(session_maker, app_config)
        return await service.search(
            SearchParams(query=query.q, types=query.types, limit=query.limit, user_id=user_id)
        )


@app.command()
def search(
    query: str = typer.Argument(..., help="Search text"),
    user: str = typer.Option(..., "--user", "-u", help="Id of the user whose data is searched"),
    types: Optional[List[str]] = typer.Option(
        None, "--type", "-t", help="Entity type to search (repeatable)"
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum results (1-100)"),
):  # pragma: no cover
    """Search journal entries, contacts, tasks and more for one user."""
    if limit is None:
        limit = ConfigManager().config.default_limit
    try:
        validated = validate_search_query({"q": query, "types": types or None, "limit": limit})
    except ValidationError as e:
        console.print(f"[red]Invalid query:[/red] {first_error_message(e)}")
        raise typer.Exit(2)

    response = asyncio.run(_run_search(validated, user))
    if not response.results:
        console.print("[yellow]No results[/yellow]")
        return
    console.print(build_results_table(response))
