"""Command-line interface for telenoise."""

from telenoise.cli.main import cli

__all__ = ["cli"]
