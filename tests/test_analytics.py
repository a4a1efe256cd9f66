"""Tests for tool call tracking."""

import pytest

from buildersmcp.analytics import ToolCallTracker, resolve_tool_group
from buildersmcp.docs.schema import ToolResult
from buildersmcp.server.host import ToolHost


class TestResolveToolGroup:
    @pytest.mark.parametrize(
        "name, group",
        [
            ("sodax_get_volume", "api"),
            ("docs_health", "sdk-docs"),
            ("docs_searchDocumentation", "sdk-docs"),
            ("something_else", "unknown"),
        ],
    )
    def test_static_map_then_prefix(self, name, group):
        assert resolve_tool_group(name) == group


class TestToolCallTracker:
    """Tests for ToolCallTracker.wrap."""

    @pytest.fixture
    def events(self):
        return []

    @pytest.fixture
    def tracker(self, events):
        return ToolCallTracker(server_name="test-mcp", distinct_id="tester", transport="stdio", sink=events.append)

    @pytest.mark.asyncio
    async def test_success_event(self, tracker, events):
        async def ok(arguments):
            return ToolResult.from_text("fine")

        result = await tracker.wrap("docs_search", ok)({})

        assert result.text == "fine"
        assert len(events) == 1
        event = events[0]
        assert event["event"] == "tool_called"
        assert event["distinct_id"] == "tester"
        props = event["properties"]
        assert props["tool_name"] == "docs_search"
        assert props["tool_group"] == "sdk-docs"
        assert props["success"] is True
        assert props["transport"] == "stdio"
        assert props["server"] == "test-mcp"
        assert "error_message" not in props
        assert props["duration_ms"] >= 0

    @pytest.mark.asyncio
    async def test_error_result_is_tracked_as_failure(self, tracker, events):
        async def failing(arguments):
            return ToolResult.from_text("upstream down", is_error=True)

        await tracker.wrap("sodax_get_partners", failing)({})

        props = events[0]["properties"]
        assert props["success"] is False
        assert props["error_message"] == "upstream down"

    @pytest.mark.asyncio
    async def test_exception_is_tracked_and_reraised(self, tracker, events):
        async def broken(arguments):
            raise RuntimeError("kaboom")

        with pytest.raises(RuntimeError):
            await tracker.wrap("docs_search", broken)({})

        assert events[0]["properties"]["success"] is False
        assert events[0]["properties"]["error_message"] == "kaboom"

    @pytest.mark.asyncio
    async def test_broken_sink_does_not_affect_result(self):
        def sink(event):
            raise ValueError("sink down")

        tracker = ToolCallTracker(sink=sink)

        async def ok(arguments):
            return ToolResult.from_text("fine")

        assert (await tracker.wrap("docs_search", ok)({})).text == "fine"

    def test_disabled_tracker_returns_handler_unchanged(self):
        async def ok(arguments):
            return ToolResult.from_text("fine")

        assert ToolCallTracker(enabled=False).wrap("x", ok) is ok

    @pytest.mark.asyncio
    async def test_every_host_tool_is_tracked(self, tracker, events):
        host = ToolHost(wrappers=[tracker.wrap])

        async def ok(arguments):
            return ToolResult.from_text("fine")

        host.add_tool("docs_health", "Health", None, ok)
        host.add_tool("sodax_refresh_cache", "Refresh", None, ok)
        await host.call("docs_health")
        await host.call("sodax_refresh_cache")

        assert [e["properties"]["tool_name"] for e in events] == ["docs_health", "sodax_refresh_cache"]
