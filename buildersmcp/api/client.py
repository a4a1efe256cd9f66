"""Async client for the SODAX REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from buildersmcp.core.cache import ResponseCache

logger = logging.getLogger(__name__)

SODAX_API_BASE_URL = "https://api.sodax.com/v1"


class SodaxApiError(Exception):
    """Raised when a SODAX API request fails."""


def _unwrap(data: Any, *keys: str) -> Any:
    """Return the first envelope member present in ``data`` (``data``, ``items`` ...), else ``data``."""
    if isinstance(data, dict):
        for key in keys:
            if data.get(key) is not None:
                return data[key]
    return data


def _as_list(data: Any, *keys: str) -> List[Any]:
    data = _unwrap(data, *keys)
    return data if isinstance(data, list) else []


class SodaxApiClient:
    """
    Read-only client for chains, tokens, intents, solver, and money market data.

    Slow-changing endpoints are cached in a ``ResponseCache``; per-user and
    per-transaction lookups always go to the API.
    """

    def __init__(
        self,
        base_url: str = SODAX_API_BASE_URL,
        timeout: float = 30.0,
        cache: Optional[ResponseCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache or ResponseCache()
        self._http = http_client
        self._owns_http = http_client is None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._http

    async def _get(
        self,
        path: str,
        what: str,
        params: Optional[Dict[str, Any]] = None,
        allow_missing: bool = False,
    ) -> Any:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = await self._client().get(f"{self.base_url}{path}", params=query or None)
            if allow_missing and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.error("Error fetching %s: %s", what, exc)
            raise SodaxApiError(f"Failed to fetch {what} from SODAX API") from exc

    # ── Config ────────────────────────────────────────────────────────────

    async def get_supported_chains(self) -> List[Dict[str, Any]]:
        cached = self.cache.get("chains")
        if cached is not None:
            return cached
        chains = _as_list(await self._get("/config/spoke/chains", "supported chains"), "data")
        self.cache.set("chains", chains)
        return chains

    async def get_swap_tokens(self, chain_id: Optional[str] = None) -> List[Dict[str, Any]]:
        cache_key = f"tokens-{chain_id or 'all'}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        path = f"/config/swap/{chain_id}/tokens" if chain_id else "/config/swap/tokens"
        data = await self._get(path, "swap tokens")
        if isinstance(data, list):
            tokens = data
        elif isinstance(data, dict) and "data" not in data:
            # Keyed by chain ID; flatten and tag each token with its chain.
            tokens = [
                {**token, "chainId": chain}
                for chain, chain_tokens in data.items()
                if isinstance(chain_tokens, list)
                for token in chain_tokens
                if isinstance(token, dict)
            ]
        else:
            tokens = _as_list(data, "data")
        self.cache.set(cache_key, tokens)
        return tokens

    # ── Intents ───────────────────────────────────────────────────────────

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        data = await self._get(f"/intent/tx/{tx_hash}", "transaction", allow_missing=True)
        return _unwrap(data, "data") or None

    async def get_user_transactions(
        self,
        user_address: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        data = await self._get(
            f"/intent/user/{user_address}",
            "user transactions",
            params={"limit": limit or None, "offset": offset or None},
        )
        return _as_list(data, "items", "data")

    # ── Solver ────────────────────────────────────────────────────────────

    async def get_volume(
        self,
        chain_id: Optional[str] = None,
        since: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Any:
        cache_key = f"volume-{chain_id or 'all'}-{since or 'all'}-{limit or 50}-{cursor or 'start'}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached
        volume = await self._get(
            "/solver/volume",
            "volume data",
            params={"chainId": chain_id, "since": since, "limit": limit, "cursor": cursor},
        )
        self.cache.set(cache_key, volume)
        return volume

    async def get_orderbook(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        data = await self._get("/solver/orderbook", "orderbook", params={"limit": limit})
        return _as_list(data, "data")

    # ── Money market ──────────────────────────────────────────────────────

    async def get_money_market_assets(self) -> List[Dict[str, Any]]:
        cached = self.cache.get("mm-assets")
        if cached is not None:
            return cached
        assets = _as_list(await self._get("/moneymarket/asset/all", "money market assets"), "data")
        self.cache.set("mm-assets", assets)
        return assets

    async def get_user_position(self, user_address: str) -> Optional[Dict[str, Any]]:
        data = await self._get(f"/moneymarket/position/{user_address}", "user position", allow_missing=True)
        return _unwrap(data, "data") or None

    # ── Misc ──────────────────────────────────────────────────────────────

    async def get_partners(self) -> List[Dict[str, Any]]:
        cached = self.cache.get("partners")
        if cached is not None:
            return cached
        partners = _as_list(await self._get("/partners", "partners"), "data")
        self.cache.set("partners", partners)
        return partners

    async def get_token_supply(self) -> Dict[str, Any]:
        cached = self.cache.get("token-supply")
        if cached is not None:
            return cached
        supply = _unwrap(await self._get("/sodax/supply", "token supply"), "data")
        self.cache.set("token-supply", supply)
        return supply

    # ── Cleanup ───────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None
