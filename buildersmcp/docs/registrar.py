"""Proxy registrar: re-exposes remote documentation tools as local tools."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol

from buildersmcp.docs.cache import RemoteToolCache
from buildersmcp.docs.errors import RegistrationFailure
from buildersmcp.docs.schema import (
    ContentBlock,
    HealthStatus,
    RemoteToolDef,
    ToolResult,
    build_params_model,
    translate_schema,
)
from buildersmcp.server.host import ToolHost

logger = logging.getLogger(__name__)

META_TOOLS = ("health", "refresh", "list_tools")


class ToolCaller(Protocol):
    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> ToolResult: ...


class ProxyRegistrar:
    """
    Registers one ``<prefix>_<name>`` tool per remote tool, plus three
    meta-tools (``health``, ``refresh``, ``list_tools``) that keep working
    when the remote server is down.

    ``register_all()`` may run many times against the same host: meta-tools
    are registered once, and remote tools already on the host are skipped.
    """

    def __init__(
        self,
        host: ToolHost,
        cache: RemoteToolCache,
        client: ToolCaller,
        prefix: str = "docs",
        label: str = "SDK Docs",
        fallback_url: str = "https://docs.sodax.com",
    ):
        self._host = host
        self._cache = cache
        self._client = client
        self.prefix = prefix
        self.label = label
        self.fallback_url = fallback_url
        self._meta_registered = False

    def local_name(self, remote_name: str) -> str:
        return f"{self.prefix}_{remote_name}"

    @property
    def meta_tool_names(self) -> List[str]:
        return [self.local_name(name) for name in META_TOOLS]

    def _remediation(self) -> str:
        return (
            f"Try `{self.local_name('refresh')}` to re-fetch the tool list, "
            f"`{self.local_name('health')}` to check the connection, "
            f"or browse the docs directly at {self.fallback_url}"
        )

    # ── Registration ──────────────────────────────────────────────────────

    async def register_all(self) -> int:
        """Register meta-tools (once) and any remote tools not yet on the host."""
        self._register_meta_tools()

        tools = await self._cache.get_tools()
        if not tools:
            logger.warning("No tools found from docs MCP, skipping proxy registration")
            return 0

        registered = 0
        for tool in tools:
            local_name = self.local_name(tool.name)
            if self._host.has_tool(local_name):
                continue
            try:
                self._register_proxy(tool)
            except RegistrationFailure as exc:
                logger.warning("%s", exc)
                continue
            registered += 1

        if registered:
            logger.info("Registered %d tools from docs MCP", registered)
        return registered

    def _register_proxy(self, tool: RemoteToolDef) -> None:
        local_name = self.local_name(tool.name)
        try:
            params_model = build_params_model(local_name, translate_schema(tool.input_schema))
            self._host.add_tool(
                local_name,
                f"[{self.label}] {tool.description}",
                params_model,
                self._make_proxy_handler(tool.name),
            )
        except Exception as exc:
            raise RegistrationFailure(f"Failed to register docs tool {tool.name}: {exc}") from exc

    def _make_proxy_handler(self, remote_name: str):
        async def handler(arguments: Dict[str, Any]) -> ToolResult:
            result = await self._client.call_tool(remote_name, arguments)
            if not result.is_error:
                return result
            hint = ContentBlock(
                type="text",
                text=f"The {self.label} server could not complete this request. {self._remediation()}.",
            )
            return ToolResult(content=[*result.content, hint], is_error=True)

        return handler

    def _register_meta_tools(self) -> None:
        # Set before anything awaits so overlapping register_all() calls can't both pass.
        if self._meta_registered:
            return
        self._meta_registered = True

        self._host.add_tool(
            self.local_name("health"),
            f"Check the health and availability of the {self.label} MCP server",
            None,
            self._health,
        )
        self._host.add_tool(
            self.local_name("refresh"),
            f"Refresh the list of available {self.label} tools",
            None,
            self._refresh,
        )
        self._host.add_tool(
            self.local_name("list_tools"),
            f"List all available {self.label} tools and their parameters",
            None,
            self._list_tools,
        )

    # ── Meta-tools ────────────────────────────────────────────────────────

    async def check_health(self) -> HealthStatus:
        tools = await self._cache.get_tools()
        return HealthStatus(
            healthy=len(tools) > 0,
            tool_count=len(tools),
            last_error=self._cache.last_error,
        )

    async def _health(self, arguments: Dict[str, Any]) -> ToolResult:
        health = await self.check_health()
        if health.healthy:
            return ToolResult.from_text(
                f"✅ {self.label} MCP is reachable. {health.tool_count} documentation tools available."
            )
        reason = f" Last error: {health.last_error}." if health.last_error else ""
        return ToolResult.from_text(
            f"⚠️ {self.label} MCP is degraded: 0 documentation tools available.{reason}\n\n{self._remediation()}."
        )

    async def _refresh(self, arguments: Dict[str, Any]) -> ToolResult:
        self._cache.invalidate()
        added = await self.register_all()
        tools = await self._cache.get_tools()
        if not tools:
            reason = f" ({self._cache.last_error})" if self._cache.last_error else ""
            return ToolResult.from_text(
                f"Refresh failed: 0 {self.label} tools available{reason}. "
                f"Check `{self.local_name('health')}` or browse {self.fallback_url} directly."
            )
        listing = "\n".join(f"- **{self.local_name(t.name)}**: {t.description}" for t in tools)
        added_note = f" ({added} newly registered)" if added else ""
        return ToolResult.from_text(
            f"Refreshed {self.label} tools. {len(tools)} documentation tools available{added_note}:\n\n{listing}"
        )

    async def _list_tools(self, arguments: Dict[str, Any]) -> ToolResult:
        tools = await self._cache.get_tools()
        if not tools:
            return ToolResult.from_text(
                f"No {self.label} tools available (0 proxied tools). "
                f"The documentation MCP may be unreachable. {self._remediation()}."
            )
        sections = "\n\n".join(t.full_schema_text(self.local_name(t.name)) for t in tools)
        return ToolResult.from_text(
            f"# {self.label} Tools\n\n{len(tools)} tools available:\n\n{sections}"
        )

    # ── Enumeration ───────────────────────────────────────────────────────

    async def tool_names(self) -> List[str]:
        """Local names of every proxyable tool; meta-tools only if the fetch fails."""
        tools = await self._cache.get_tools()
        return [self.local_name(t.name) for t in tools] + self.meta_tool_names
