"""
Server assembly: builds the tool host, registers API and docs tools, and
serves them over stdio or HTTP via FastMCP.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from buildersmcp.analytics import ToolCallTracker
from buildersmcp.api.client import SodaxApiClient
from buildersmcp.api.tools import API_TOOL_NAMES, register_api_tools
from buildersmcp.core.cache import ResponseCache
from buildersmcp.docs.cache import RemoteToolCache
from buildersmcp.docs.registrar import ProxyRegistrar
from buildersmcp.docs.transport import RemoteToolClient
from buildersmcp.server.host import FastMCPToolHost, ToolHost
from buildersmcp.validation.config import BuildersConfig

logger = logging.getLogger(__name__)

DESCRIPTION = "Live API data and SDK documentation for developers and integration partners"


class BuildersServer:
    """
    Owns every long-lived object of one server process.

    ``setup()`` warms the docs tool cache (with retries) before registering
    tools; when the docs server stays unreachable the server still starts
    with the API tools and the docs meta-tools.
    """

    def __init__(
        self,
        config: BuildersConfig,
        host: Optional[ToolHost] = None,
        docs_client: Optional[RemoteToolClient] = None,
        api_client: Optional[SodaxApiClient] = None,
        tracker: Optional[ToolCallTracker] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self.tracker = tracker or ToolCallTracker(
            server_name=config.analytics.server_name,
            distinct_id=config.analytics.distinct_id,
            transport=config.server.transport,
            enabled=config.analytics.enabled,
        )

        if host is None:
            self.mcp: Optional[FastMCP] = FastMCP(config.server.name, instructions=DESCRIPTION)
            host = FastMCPToolHost(self.mcp, wrappers=[self.tracker.wrap])
        else:
            self.mcp = getattr(host, "mcp", None)
        self.host = host

        docs = config.docs
        self.docs_client = docs_client or RemoteToolClient(
            docs.url,
            timeout=docs.timeout_seconds,
            protocol_version=docs.protocol_version,
            client_name=config.server.name,
            client_version=config.server.version,
        )
        self.docs_cache = RemoteToolCache(self.docs_client, ttl_seconds=docs.cache_ttl_seconds)
        self.registrar = ProxyRegistrar(
            host,
            self.docs_cache,
            self.docs_client,
            prefix=docs.prefix,
            label=docs.label,
            fallback_url=docs.fallback_url,
        )

        self.api_client = api_client or SodaxApiClient(
            config.api.base_url,
            timeout=config.api.timeout_seconds,
            cache=ResponseCache(ttl_seconds=config.api.cache_ttl_seconds),
        )

        self._sleep = sleep
        self._setup_done = False
        self.init_attempts = 0
        self.docs_ready = False

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def setup(self, warm: bool = True) -> None:
        if self._setup_done:
            return
        self._setup_done = True

        register_api_tools(self.host, self.api_client)
        if warm:
            logger.info("Initializing %s proxy...", self.config.docs.label)
            await self.warm_docs_cache()
        await self.registrar.register_all()

    async def warm_docs_cache(self) -> bool:
        """Try up to ``warmup_attempts`` times, with a fixed delay, to fetch docs tools."""
        attempts = self.config.docs.warmup_attempts
        delay = self.config.docs.warmup_delay_seconds

        for attempt in range(1, attempts + 1):
            self.init_attempts += 1
            logger.info("Docs proxy init attempt %d/%d...", attempt, attempts)
            tools = await self.docs_cache.get_tools()
            if tools:
                self.docs_ready = True
                logger.info("Docs proxy initialized: %d SDK docs tools available", len(tools))
                return True

            logger.warning("Docs MCP returned 0 tools")
            if attempt < attempts:
                # An empty but successful fetch is cached; force the next attempt to go live.
                self.docs_cache.invalidate()
                logger.info("Retrying in %gs...", delay)
                await self._sleep(delay)

        self.docs_ready = False
        logger.warning("Docs proxy unavailable after %d attempts. Meta-tools still available.", attempts)
        return False

    async def aclose(self) -> None:
        await self.docs_client.aclose()
        await self.api_client.aclose()

    # ── Status payloads ───────────────────────────────────────────────────

    async def health(self) -> Dict[str, Any]:
        docs = await self.registrar.check_health()
        return {
            "status": "healthy",
            "service": self.config.server.name,
            "version": self.config.server.version,
            "sdkDocsProxy": {"healthy": docs.healthy, "toolCount": docs.tool_count},
        }

    async def status(self) -> Dict[str, Any]:
        docs_tools = await self.registrar.tool_names()
        connected = len(docs_tools) > len(self.registrar.meta_tool_names)
        return {
            "name": "SODAX Builders MCP Server",
            "version": self.config.server.version,
            "description": DESCRIPTION,
            "endpoints": {"mcp": "/mcp", "health": "/health", "api": "/api"},
            "tools": {"api": list(API_TOOL_NAMES), "sdkDocs": docs_tools},
            "sdkDocsProxy": {
                "source": self.config.docs.url,
                "description": "SDK documentation tools are proxied from GitBook and update automatically",
                "status": "connected" if connected else "unavailable",
                "initAttempts": self.init_attempts,
                "hint": (
                    f"{self.registrar.prefix}_* tools are ready to use"
                    if connected
                    else f"Use {self.registrar.local_name('list_tools')} or {self.registrar.local_name('refresh')} to check availability"
                ),
            },
        }

    # ── Serving ───────────────────────────────────────────────────────────

    def _add_http_routes(self) -> None:
        @self.mcp.custom_route("/health", methods=["GET"])
        async def health_route(request: Request) -> JSONResponse:
            return JSONResponse(await self.health())

        @self.mcp.custom_route("/api", methods=["GET"])
        async def api_route(request: Request) -> JSONResponse:
            return JSONResponse(await self.status())

    async def run(self, transport: Optional[str] = None) -> None:
        """Set up, then serve until the transport exits. Uses one event loop throughout."""
        if self.mcp is None:
            raise RuntimeError("BuildersServer.run() requires a FastMCP-backed host")

        transport = transport or self.config.server.transport
        await self.setup()
        try:
            if transport == "stdio":
                logger.info("SODAX Builders MCP server running via stdio")
                await self.mcp.run_async(transport="stdio")
            else:
                self._add_http_routes()
                logger.info(
                    "SODAX Builders MCP server running on http://%s:%d",
                    self.config.server.host,
                    self.config.server.port,
                )
                await self.mcp.run_async(
                    transport="http",
                    host=self.config.server.host,
                    port=self.config.server.port,
                )
        finally:
            await self.aclose()


def run_server(config: BuildersConfig, transport: Optional[str] = None) -> None:
    asyncio.run(BuildersServer(config).run(transport))
