"""CLI application setup using Typer.

Provides the command-line interface for recordstream operations.
"""

from recordstream.cli.main import app

__all__ = ["app"]
