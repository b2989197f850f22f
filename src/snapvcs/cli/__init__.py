"""Command-line interface for snapvcs."""

from snapvcs.cli.main import app, main

__all__ = ["app", "main"]
