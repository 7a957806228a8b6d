"""API server command."""

import typer
import uvicorn

from journal_search.cli.app import app


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):  # pragma: no cover
    """Run the search API."""
    uvicorn.run("journal_search.api.app:app", host=host, port=port, reload=reload)
