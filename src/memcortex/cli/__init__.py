"""CLI module for memcortex."""

from memcortex.cli.app import cli, main

__all__ = ["cli", "main"]
