"""Main CLI entry point for journal-search."""  # pragma: no cover

from journal_search.cli.app import app  # pragma: no cover

# Register commands
from journal_search.cli.commands import db, search, serve  # noqa: F401  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
