"""Command-line interface for tagsmith."""

from __future__ import annotations

from tagsmith.cli.main import cli, main

__all__ = ["cli", "main"]
