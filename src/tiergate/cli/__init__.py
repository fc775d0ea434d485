"""Command-line interface for tiergate."""
