"""Tests for server assembly and its status payloads."""

import pytest

from buildersmcp.api.tools import API_TOOL_NAMES
from buildersmcp.server.app import BuildersServer
from buildersmcp.server.host import ToolHost
from buildersmcp.validation.config import BuildersConfig

from fakes import SEARCH_TOOL, FakeRemoteClient

META_NAMES = {"docs_health", "docs_refresh", "docs_list_tools"}


class FakeSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class EventuallyAvailable(FakeRemoteClient):
    """Returns no tools until the given list call."""

    def __init__(self, ready_on_call):
        super().__init__([SEARCH_TOOL])
        self.ready_on_call = ready_on_call

    async def list_tools(self):
        tools = await super().list_tools()
        return tools if self.list_calls >= self.ready_on_call else []


@pytest.fixture
def sleep():
    return FakeSleep()


def make_server(docs_client, sleep, **docs):
    config = BuildersConfig(docs=docs)
    return BuildersServer(config, host=ToolHost(), docs_client=docs_client, sleep=sleep)


class TestSetup:
    """Tests for BuildersServer.setup."""

    @pytest.mark.asyncio
    async def test_registers_api_and_docs_tools(self, remote, sleep):
        server = make_server(remote, sleep)

        await server.setup()

        assert set(server.host.names()) == set(API_TOOL_NAMES) | META_NAMES | {"docs_search"}
        assert server.docs_ready is True
        assert server.init_attempts == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_unreachable_docs_retries_then_starts_degraded(self, unreachable, sleep):
        server = make_server(unreachable, sleep, warmup_delay_seconds=2)

        await server.setup()

        assert server.init_attempts == 3
        assert sleep.delays == [2, 2]
        assert server.docs_ready is False
        assert set(server.host.names()) == set(API_TOOL_NAMES) | META_NAMES

    @pytest.mark.asyncio
    async def test_empty_tool_list_is_retried_live(self, sleep):
        client = EventuallyAvailable(ready_on_call=2)
        server = make_server(client, sleep)

        await server.setup()

        assert server.init_attempts == 2
        assert server.docs_ready is True
        assert server.host.has_tool("docs_search")

    @pytest.mark.asyncio
    async def test_setup_is_idempotent(self, remote, sleep):
        server = make_server(remote, sleep)

        await server.setup()
        await server.setup()

        assert remote.list_calls == 1
        assert len(server.host.names()) == len(API_TOOL_NAMES) + 4

    @pytest.mark.asyncio
    async def test_setup_without_warmup(self, remote, sleep):
        server = make_server(remote, sleep)

        await server.setup(warm=False)

        assert server.init_attempts == 0
        assert server.host.has_tool("docs_search")


class TestStatusPayloads:
    """Tests for the /health and /api payloads."""

    @pytest.mark.asyncio
    async def test_health(self, remote, sleep):
        server = make_server(remote, sleep)
        await server.setup()

        payload = await server.health()

        assert payload["status"] == "healthy"
        assert payload["service"] == "builders-sodax-mcp-server"
        assert payload["sdkDocsProxy"] == {"healthy": True, "toolCount": 1}

    @pytest.mark.asyncio
    async def test_status_connected(self, remote, sleep):
        server = make_server(remote, sleep)
        await server.setup()

        payload = await server.status()

        proxy = payload["sdkDocsProxy"]
        assert proxy["status"] == "connected"
        assert proxy["initAttempts"] == 1
        assert proxy["hint"] == "docs_* tools are ready to use"
        assert payload["tools"]["api"] == API_TOOL_NAMES
        assert payload["tools"]["sdkDocs"][0] == "docs_search"

    @pytest.mark.asyncio
    async def test_status_unavailable(self, unreachable, sleep):
        server = make_server(unreachable, sleep)
        await server.setup()

        payload = await server.status()

        proxy = payload["sdkDocsProxy"]
        assert proxy["status"] == "unavailable"
        assert "docs_list_tools" in proxy["hint"]
        assert set(payload["tools"]["sdkDocs"]) == META_NAMES

    @pytest.mark.asyncio
    async def test_health_still_healthy_when_docs_down(self, unreachable, sleep):
        server = make_server(unreachable, sleep)
        await server.setup()

        payload = await server.health()

        assert payload["status"] == "healthy"
        assert payload["sdkDocsProxy"] == {"healthy": False, "toolCount": 0}
