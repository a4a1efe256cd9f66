"""
Builders MCP validation module.

This module provides configuration loading and schema enforcement.
"""

from buildersmcp.validation.config import BuildersConfig, Config, ConfigError

__all__ = ["BuildersConfig", "Config", "ConfigError"]
