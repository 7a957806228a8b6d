"""journal-search - ranked full-text search across journal, contacts, tasks and more."""

__version__ = "0.4.0"
