"""Command-line interface for popcorn."""
