"""Shared building blocks."""

from buildersmcp.core.cache import ResponseCache

__all__ = ["ResponseCache"]
