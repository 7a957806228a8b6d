"""Command line interface for journal-search."""
