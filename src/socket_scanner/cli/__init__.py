"""Command line interface."""

from .keys import cli, main

__all__ = ["cli", "main"]
