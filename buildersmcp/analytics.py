"""
Tool call tracking.

Every registered tool handler is wrapped (via ``ToolHost`` wrappers) so each
invocation emits one ``tool_called`` event with its duration, outcome, and
logical tool group. Events go to a sink; the default sink logs them as JSON.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from buildersmcp.server.host import ToolHandler

logger = logging.getLogger(__name__)

EventSink = Callable[[Dict[str, Any]], None]

# Update this when tools are added or removed.
TOOL_GROUPS: Dict[str, str] = {
    # SODAX API tools
    "sodax_get_supported_chains": "api",
    "sodax_get_swap_tokens": "api",
    "sodax_get_transaction": "api",
    "sodax_get_user_transactions": "api",
    "sodax_get_volume": "api",
    "sodax_get_orderbook": "api",
    "sodax_get_money_market_assets": "api",
    "sodax_get_user_position": "api",
    "sodax_get_partners": "api",
    "sodax_get_token_supply": "api",
    "sodax_refresh_cache": "api",
    # SDK docs meta-tools
    "docs_health": "sdk-docs",
    "docs_refresh": "sdk-docs",
    "docs_list_tools": "sdk-docs",
}

GROUP_PREFIXES: Dict[str, str] = {
    "docs_": "sdk-docs",
    "sodax_": "api",
}


def resolve_tool_group(tool_name: str) -> str:
    """Static map first, then prefix fallback for dynamically registered tools."""
    if tool_name in TOOL_GROUPS:
        return TOOL_GROUPS[tool_name]
    for prefix, group in GROUP_PREFIXES.items():
        if tool_name.startswith(prefix):
            return group
    return "unknown"


def log_sink(event: Dict[str, Any]) -> None:
    logger.info("%s", json.dumps(event, default=str))


class ToolCallTracker:
    """Wraps tool handlers to record one event per call."""

    def __init__(
        self,
        server_name: str = "builders-mcp",
        distinct_id: str = "sodax-builders-mcp",
        transport: str = "http",
        sink: Optional[EventSink] = None,
        enabled: bool = True,
    ):
        self.server_name = server_name
        self.distinct_id = distinct_id
        self.transport = transport
        self.sink = sink or log_sink
        self.enabled = enabled

    def track(self, tool_name: str, duration_ms: int, success: bool, error: Optional[str] = None) -> None:
        properties: Dict[str, Any] = {
            "server": self.server_name,
            "tool_name": tool_name,
            "tool_group": resolve_tool_group(tool_name),
            "duration_ms": duration_ms,
            "success": success,
            "transport": self.transport,
        }
        if error:
            properties["error_message"] = error
        try:
            self.sink({"event": "tool_called", "distinct_id": self.distinct_id, "properties": properties})
        except Exception:
            logger.exception("Failed to record tool call event for %s", tool_name)

    def wrap(self, tool_name: str, handler: ToolHandler) -> ToolHandler:
        if not self.enabled:
            return handler

        async def tracked(arguments: Dict[str, Any]):
            t0 = time.perf_counter()
            try:
                result = await handler(arguments)
            except Exception as exc:
                self.track(tool_name, int((time.perf_counter() - t0) * 1000), False, str(exc))
                raise
            error = result.text[:200] if result.is_error else None
            self.track(tool_name, int((time.perf_counter() - t0) * 1000), not result.is_error, error)
            return result

        return tracked
