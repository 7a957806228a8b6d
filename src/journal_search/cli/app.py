from typing import Optional

import typer

from journal_search.config import ConfigManager, setup_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import journal_search

        typer.echo(f"journal-search version: {journal_search.__version__}")
        raise typer.Exit()


app = typer.Typer(name="journal-search")


@app.callback()
def app_callback(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """journal-search - ranked full-text search for the journal database."""
    if not version and ctx.invoked_subcommand is not None:
        setup_logging(ConfigManager().config)


db_app = typer.Typer(help="Database setup for full-text search")
app.add_typer(db_app, name="db")
