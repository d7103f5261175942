"""Command-line interface for debrelease."""
