"""Command line interface for :mod:`rowbind`."""

from rowbind.cli.app import app, main

__all__ = ["app", "main"]
