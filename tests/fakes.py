"""Fakes shared across the test modules."""

from typing import Any, Dict, List, Optional, Tuple

from buildersmcp.docs.errors import UpstreamUnavailable
from buildersmcp.docs.schema import RemoteToolDef, ToolResult

SEARCH_TOOL = {
    "name": "search",
    "description": "Search the SDK documentation",
    "inputSchema": {
        "type": "object",
        "properties": {"query": {"type": "string", "description": "Search terms"}},
        "required": ["query"],
    },
}


class FakeRemoteClient:
    """In-memory stand-in for RemoteToolClient that counts calls."""

    def __init__(self, tools: Optional[List[Dict[str, Any]]] = None, fail: bool = False):
        self.tools = [RemoteToolDef.model_validate(t) for t in (tools or [])]
        self.fail = fail
        self.list_calls = 0
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.next_result: Optional[ToolResult] = None

    async def list_tools(self) -> List[RemoteToolDef]:
        self.list_calls += 1
        if self.fail:
            raise UpstreamUnavailable("connection refused")
        return list(self.tools)

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        self.calls.append((name, arguments))
        if self.fail:
            return ToolResult.from_text("Error calling documentation tool: connection refused", is_error=True)
        if self.next_result is not None:
            return self.next_result
        return ToolResult.from_text(f"results for {arguments}")

    async def aclose(self) -> None:
        pass


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


