"""Command line interface for genoprot."""

from genoprot.cli.main import cli, main

__all__ = ["cli", "main"]
