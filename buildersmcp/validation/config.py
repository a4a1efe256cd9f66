"""
Builders MCP Configuration - Configuration loading and validation.

This module provides the Config class for managing server configuration
from global (~/.buildersmcp/config.yaml) and local (.buildersmcp/config.yaml)
YAML files, with environment variable overrides on top.
"""

import os
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Tuple

import yaml
from pydantic import AfterValidator, AnyHttpUrl, BaseModel, Field, TypeAdapter, ValidationError


class ConfigError(Exception):
    """Raised when there's a configuration error."""

    pass


_HTTP_URL = TypeAdapter(AnyHttpUrl)


def _check_http_url(value: str) -> str:
    """Reject values that are not absolute http(s) URLs; keep the string as given."""
    try:
        _HTTP_URL.validate_python(value)
    except ValidationError as e:
        raise ValueError(f"not a valid http(s) URL: {value!r}") from e
    return value


HttpUrlStr = Annotated[str, AfterValidator(_check_http_url)]


class ServerConfig(BaseModel):
    """Configuration for the MCP server itself."""

    name: str = "builders-sodax-mcp-server"
    version: str = "1.0.0"
    transport: Literal["stdio", "http"] = "http"
    host: str = "0.0.0.0"
    port: int = 3000


class DocsProxyConfig(BaseModel):
    """Configuration for the SDK documentation MCP proxy."""

    url: HttpUrlStr = "https://docs.sodax.com/~gitbook/mcp"
    prefix: str = "docs"
    label: str = "SDK Docs"
    fallback_url: HttpUrlStr = "https://docs.sodax.com"
    cache_ttl_seconds: float = 600
    timeout_seconds: float = 30.0
    protocol_version: str = "2024-11-05"
    warmup_attempts: int = Field(default=3, ge=1)
    warmup_delay_seconds: float = Field(default=5.0, ge=0)


class ApiConfig(BaseModel):
    """Configuration for the SODAX REST API client."""

    base_url: HttpUrlStr = "https://api.sodax.com/v1"
    cache_ttl_seconds: float = 120
    timeout_seconds: float = 30.0


class AnalyticsConfig(BaseModel):
    """Configuration for tool call tracking."""

    enabled: bool = True
    distinct_id: str = "sodax-builders-mcp"
    server_name: str = "builders-mcp"


class LoggingConfig(BaseModel):
    level: str = "INFO"


class BuildersConfig(BaseModel):
    """Complete server configuration schema."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    docs: DocsProxyConfig = Field(default_factory=DocsProxyConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# Environment variable -> (section, key)
ENV_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "TRANSPORT": ("server", "transport"),
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "GITBOOK_MCP_URL": ("docs", "url"),
    "SODAX_API_BASE_URL": ("api", "base_url"),
    "ANALYTICS_ENABLED": ("analytics", "enabled"),
    "LOG_LEVEL": ("logging", "level"),
}


class Config:
    """
    Server configuration manager.

    Handles loading and merging configuration from:
    - Global: ~/.buildersmcp/config.yaml
    - Local: .buildersmcp/config.yaml (nearest parent directory)
    - Environment variables (see ``ENV_OVERRIDES``)

    Later sources override earlier ones.

    Example:
        >>> config = Config.load()
        >>> config.merged.docs.url
        'https://docs.sodax.com/~gitbook/mcp'
    """

    GLOBAL_CONFIG_DIR = Path.home() / ".buildersmcp"
    LOCAL_CONFIG_DIR = Path(".buildersmcp")

    def __init__(
        self,
        global_config: Optional[Dict[str, Any]] = None,
        local_config: Optional[Dict[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize Config.

        Args:
            global_config: Global configuration dictionary.
            local_config: Local (project) configuration dictionary.
            environ: Environment mapping; defaults to no overrides.
        """
        self._global_config = global_config or {}
        self._local_config = local_config or {}
        self._environ = environ or {}
        self._merged: Optional[BuildersConfig] = None

    @classmethod
    def load(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Load configuration from default locations and the process environment.

        Returns:
            Config instance with loaded configuration.
        """
        global_config = cls._load_yaml(cls.GLOBAL_CONFIG_DIR / "config.yaml")
        local_config = cls._load_yaml(cls._find_local_config())

        return cls(
            global_config=global_config,
            local_config=local_config,
            environ=os.environ if environ is None else environ,
        )

    @classmethod
    def _load_yaml(cls, path: Optional[Path]) -> Dict[str, Any]:
        """Load YAML file if it exists."""
        if path is None or not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if data else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}")

    @classmethod
    def _find_local_config(cls) -> Optional[Path]:
        """Find the local config file by walking up the directory tree."""
        current = Path.cwd()
        while current != current.parent:
            config_path = current / cls.LOCAL_CONFIG_DIR / "config.yaml"
            if config_path.exists():
                return config_path
            current = current.parent
        return None

    def _env_config(self) -> Dict[str, Any]:
        """Build a config fragment from environment overrides."""
        result: Dict[str, Any] = {}
        for env_var, (section, key) in ENV_OVERRIDES.items():
            value = self._environ.get(env_var)
            if value:
                result.setdefault(section, {})[key] = value
        # Anything other than "stdio" means HTTP.
        if "transport" in result.get("server", {}):
            result["server"]["transport"] = "stdio" if result["server"]["transport"] == "stdio" else "http"
        return result

    def get_merged_config(self) -> Dict[str, Any]:
        """Get the merged configuration as a dictionary."""
        merged = self._deep_merge(self._global_config.copy(), self._local_config)
        return self._deep_merge(merged, self._env_config())

    @property
    def merged(self) -> BuildersConfig:
        """Get the validated merged configuration."""
        if self._merged is None:
            try:
                merged_dict = self.get_merged_config()
                self._merged = BuildersConfig(**merged_dict)
            except ValidationError as e:
                raise ConfigError(f"Invalid configuration: {e}")
        return self._merged

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
