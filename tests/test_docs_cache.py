"""Tests for the remote tool cache."""

import pytest

from buildersmcp.docs.cache import DEFAULT_TTL_SECONDS, RemoteToolCache
from buildersmcp.docs.transport import RemoteToolClient

from fakes import SEARCH_TOOL, FakeRemoteClient


class TestRemoteToolCache:
    """Tests for RemoteToolCache."""

    @pytest.mark.asyncio
    async def test_second_call_within_ttl_is_a_cache_hit(self, remote, clock):
        cache = RemoteToolCache(remote, clock=clock)

        first = await cache.get_tools()
        clock.advance(DEFAULT_TTL_SECONDS - 1)
        second = await cache.get_tools()

        assert remote.list_calls == 1
        assert [t.name for t in first] == [t.name for t in second] == ["search"]

    @pytest.mark.asyncio
    async def test_expired_cache_refetches(self, remote, clock):
        cache = RemoteToolCache(remote, clock=clock)

        await cache.get_tools()
        clock.advance(DEFAULT_TTL_SECONDS)
        await cache.get_tools()

        assert remote.list_calls == 2

    @pytest.mark.asyncio
    async def test_invalidate_forces_fresh_fetch(self, remote, clock):
        cache = RemoteToolCache(remote, clock=clock)

        await cache.get_tools()
        cache.invalidate()
        assert cache.is_fresh is False
        await cache.get_tools()

        assert remote.list_calls == 2

    @pytest.mark.asyncio
    async def test_failed_fetch_returns_previous_set(self, clock):
        client = FakeRemoteClient([SEARCH_TOOL])
        cache = RemoteToolCache(client, clock=clock)
        await cache.get_tools()

        client.fail = True
        clock.advance(DEFAULT_TTL_SECONDS + 1)
        tools = await cache.get_tools()

        assert [t.name for t in tools] == ["search"]
        assert client.list_calls == 2
        assert cache.last_error == "connection refused"

    @pytest.mark.asyncio
    async def test_failed_fetch_without_previous_set_returns_empty(self, unreachable, clock):
        cache = RemoteToolCache(unreachable, clock=clock)

        assert await cache.get_tools() == []
        assert cache.fetched_at is None

    @pytest.mark.asyncio
    async def test_failure_after_invalidate_returns_empty(self, clock):
        client = FakeRemoteClient([SEARCH_TOOL])
        cache = RemoteToolCache(client, clock=clock)
        await cache.get_tools()

        cache.invalidate()
        client.fail = True

        assert await cache.get_tools() == []

    @pytest.mark.asyncio
    async def test_successful_fetch_replaces_whole_set(self, clock):
        client = FakeRemoteClient([SEARCH_TOOL, {"name": "ask"}])
        cache = RemoteToolCache(client, clock=clock)
        await cache.get_tools()

        client.tools = client.tools[1:]
        cache.invalidate()
        tools = await cache.get_tools()

        assert [t.name for t in tools] == ["ask"]
        assert cache.fetched_at == clock.now
        assert cache.last_error is None

    @pytest.mark.asyncio
    async def test_returned_list_is_a_copy(self, remote, clock):
        cache = RemoteToolCache(remote, clock=clock)

        tools = await cache.get_tools()
        tools.clear()

        assert len(await cache.get_tools()) == 1

    @pytest.mark.asyncio
    async def test_invalid_url_falls_back_to_empty(self, clock):
        client = RemoteToolClient("http://[::1")
        cache = RemoteToolCache(client, clock=clock)

        assert await cache.get_tools() == []
        assert "invalid MCP URL" in cache.last_error
        await client.aclose()
