"""Remote MCP server communication via JSON-RPC over HTTP."""

from __future__ import annotations

import itertools
import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from buildersmcp import __version__
from buildersmcp.docs.errors import HandshakeFailure, UpstreamUnavailable
from buildersmcp.docs.schema import RemoteToolDef, ToolResult

logger = logging.getLogger(__name__)

SESSION_HEADER = "Mcp-Session-Id"


class RemoteToolClient:
    """
    Talk to a single MCP server endpoint over HTTP POST (JSON-RPC 2.0).

    The ``initialize`` handshake is attempted before every operation but is
    optional: a failed handshake is logged and the request goes ahead anyway,
    since some servers don't implement it.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        protocol_version: str = "2024-11-05",
        client_name: str = "builders-sodax-mcp-server",
        client_version: str = __version__,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.protocol_version = protocol_version
        self.client_name = client_name
        self.client_version = client_version
        self._http = http_client
        self._owns_http = http_client is None
        self._ids = itertools.count(1)
        self._session_id: Optional[str] = None

    # ── HTTP plumbing ─────────────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout)
        return self._http

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json, text/event-stream",
        }
        if self._session_id:
            headers[SESSION_HEADER] = self._session_id
        return headers

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        try:
            response = await self._client().post(self.url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.InvalidURL as exc:
            raise UpstreamUnavailable(f"invalid MCP URL {self.url!r}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable(f"request to {self.url} timed out after {self.timeout:g}s") from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailable(f"HTTP {exc.response.status_code} from {self.url}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"cannot reach {self.url}: {exc}") from exc
        return response

    @staticmethod
    def _decode(response: httpx.Response, request_id: int) -> Dict[str, Any]:
        """Extract the JSON-RPC message for ``request_id`` from a JSON or SSE body."""
        content_type = response.headers.get("content-type", "")
        try:
            if content_type.startswith("text/event-stream"):
                messages = [
                    json.loads(line[len("data:"):].strip())
                    for line in response.text.splitlines()
                    if line.startswith("data:") and line[len("data:"):].strip()
                ]
            else:
                messages = [response.json()]
        except ValueError as exc:
            raise UpstreamUnavailable(f"invalid JSON from MCP server: {exc}") from exc

        for message in messages:
            if isinstance(message, dict) and message.get("id") == request_id:
                return message
        for message in messages:
            if isinstance(message, dict) and ("result" in message or "error" in message):
                return message
        raise UpstreamUnavailable("MCP server returned no response for the request")

    # ── JSON-RPC ──────────────────────────────────────────────────────────

    async def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send a JSON-RPC request and return its ``result`` member."""
        request_id = next(self._ids)
        request = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params or {},
        }
        response = await self._post(request)
        session_id = response.headers.get(SESSION_HEADER)
        if session_id:
            self._session_id = session_id

        message = self._decode(response, request_id)
        if message.get("error"):
            err = message["error"]
            detail = err.get("message") if isinstance(err, dict) else str(err)
            raise UpstreamUnavailable(detail or "MCP request failed")
        return message.get("result", {})

    async def notify(self, method: str) -> None:
        """Send a JSON-RPC notification (no ``id``, no response body expected)."""
        await self._post({"jsonrpc": "2.0", "method": method})

    # ── MCP Protocol ──────────────────────────────────────────────────────

    async def initialize(self) -> Dict[str, Any]:
        """Perform the MCP initialize handshake. Raises ``HandshakeFailure``."""
        try:
            result = await self.send("initialize", {
                "protocolVersion": self.protocol_version,
                "capabilities": {},
                "clientInfo": {"name": self.client_name, "version": self.client_version},
            })
            await self.notify("notifications/initialized")
        except UpstreamUnavailable as exc:
            raise HandshakeFailure(str(exc)) from exc
        return result if isinstance(result, dict) else {}

    async def _handshake(self) -> bool:
        try:
            await self.initialize()
        except HandshakeFailure as exc:
            logger.warning("Docs MCP init (optional) failed: %s", exc)
            return False
        return True

    async def list_tools(self) -> List[RemoteToolDef]:
        """Fetch the tool list. Raises ``UpstreamUnavailable``."""
        await self._handshake()
        result = await self.send("tools/list")
        raw_tools = result.get("tools") if isinstance(result, dict) else None
        if not isinstance(raw_tools, list):
            raise UpstreamUnavailable("tools/list response has no tool list")

        tools: List[RemoteToolDef] = []
        for raw in raw_tools:
            try:
                tools.append(RemoteToolDef.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping malformed tool definition %r: %s", raw, exc.errors()[0]["msg"])
        return tools

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Call a remote tool. Never raises: failures come back as an error result."""
        try:
            await self._handshake()
            result = await self.send("tools/call", {"name": name, "arguments": arguments or {}})
            return ToolResult.model_validate(result)
        except (UpstreamUnavailable, ValidationError) as exc:
            logger.warning("Docs tool %s failed: %s", name, exc)
            return ToolResult.from_text(f"Error calling documentation tool: {exc}", is_error=True)

    # ── Cleanup ───────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None
