"""Builders MCP command-line interface."""

from buildersmcp.cli.main import cli, main

__all__ = ["cli", "main"]
