"""Tests for the SODAX REST API client."""

import httpx
import pytest

from buildersmcp.api.client import SodaxApiClient, SodaxApiError
from buildersmcp.core.cache import ResponseCache

from fakes import FakeClock

BASE_URL = "https://api.test/v1"


class FakeApi:
    """Routes requests by path and records them."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.replace("/v1", "", 1)
        if path not in self.routes:
            return httpx.Response(404, json={"message": "not found"})
        route = self.routes[path]
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)


def make_client(routes, clock=None):
    api = FakeApi(routes)
    http = httpx.AsyncClient(transport=httpx.MockTransport(api))
    cache = ResponseCache(clock=clock or FakeClock())
    return SodaxApiClient(BASE_URL, cache=cache, http_client=http), api


class TestSodaxApiClient:
    """Tests for SodaxApiClient."""

    @pytest.mark.asyncio
    async def test_supported_chains_unwraps_and_caches(self):
        client, api = make_client({"/config/spoke/chains": {"data": [{"id": "sonic"}]}})

        first = await client.get_supported_chains()
        second = await client.get_supported_chains()

        assert first == second == [{"id": "sonic"}]
        assert len(api.requests) == 1

    @pytest.mark.asyncio
    async def test_swap_tokens_flattens_chain_keyed_response(self):
        client, _ = make_client({
            "/config/swap/tokens": {
                "sonic": [{"symbol": "S"}],
                "base": [{"symbol": "ETH"}, {"symbol": "USDC"}],
            },
        })

        tokens = await client.get_swap_tokens()

        assert {"symbol": "S", "chainId": "sonic"} in tokens
        assert {"symbol": "USDC", "chainId": "base"} in tokens
        assert len(tokens) == 3

    @pytest.mark.asyncio
    async def test_swap_tokens_for_one_chain(self):
        client, api = make_client({"/config/swap/base/tokens": [{"symbol": "ETH"}]})

        assert await client.get_swap_tokens("base") == [{"symbol": "ETH"}]
        assert api.requests[0].url.path.endswith("/config/swap/base/tokens")

    @pytest.mark.asyncio
    async def test_missing_transaction_returns_none(self):
        client, _ = make_client({})
        assert await client.get_transaction("0xdead") is None

    @pytest.mark.asyncio
    async def test_user_transactions_unwraps_items(self):
        client, api = make_client({"/intent/user/0xabc": {"items": [{"hash": "0x1"}], "total": 1}})

        txs = await client.get_user_transactions("0xabc", limit=5, offset=0)

        assert txs == [{"hash": "0x1"}]
        params = api.requests[0].url.params
        assert params["limit"] == "5"
        assert "offset" not in params

    @pytest.mark.asyncio
    async def test_volume_passes_filters(self):
        client, api = make_client({"/solver/volume": {"total": "100"}})

        assert await client.get_volume(chain_id="base", since="2026-01-01T00:00:00+00:00") == {"total": "100"}

        params = api.requests[0].url.params
        assert params["chainId"] == "base"
        assert params["since"] == "2026-01-01T00:00:00+00:00"
        assert "cursor" not in params

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        client, _ = make_client({"/partners": httpx.Response(500, text="boom")})

        with pytest.raises(SodaxApiError, match="Failed to fetch partners from SODAX API"):
            await client.get_partners()

    @pytest.mark.asyncio
    async def test_not_found_raises_for_list_endpoints(self):
        client, _ = make_client({})

        with pytest.raises(SodaxApiError):
            await client.get_orderbook()

    @pytest.mark.asyncio
    async def test_connect_error_raises(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        client = SodaxApiClient(BASE_URL, http_client=http)

        with pytest.raises(SodaxApiError, match="token supply"):
            await client.get_token_supply()

    @pytest.mark.asyncio
    async def test_cache_expires(self):
        clock = FakeClock()
        client, api = make_client({"/moneymarket/asset/all": [{"symbol": "USDC"}]}, clock=clock)

        await client.get_money_market_assets()
        clock.advance(121)
        await client.get_money_market_assets()

        assert len(api.requests) == 2

    @pytest.mark.asyncio
    async def test_invalid_base_url_raises(self):
        client = SodaxApiClient("http://[::1")

        with pytest.raises(SodaxApiError, match="partners"):
            await client.get_partners()
        await client.aclose()
