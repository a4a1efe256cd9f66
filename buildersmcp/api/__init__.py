"""SODAX REST API client and the ``sodax_*`` tools built on it."""

from buildersmcp.api.client import SODAX_API_BASE_URL, SodaxApiClient, SodaxApiError
from buildersmcp.api.formatting import ResponseFormat, format_response
from buildersmcp.api.tools import API_TOOL_NAMES, register_api_tools

__all__ = [
    "API_TOOL_NAMES",
    "ResponseFormat",
    "SODAX_API_BASE_URL",
    "SodaxApiClient",
    "SodaxApiError",
    "format_response",
    "register_api_tools",
]
