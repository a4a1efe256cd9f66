"""SODAX API tools: live chain, token, intent, solver, and money market data."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from buildersmcp.api.client import SodaxApiClient, SodaxApiError
from buildersmcp.api.formatting import ResponseFormat, format_response
from buildersmcp.docs.schema import ToolResult
from buildersmcp.server.host import ToolHandler, ToolHost

API_TOOL_NAMES = [
    "sodax_get_supported_chains",
    "sodax_get_swap_tokens",
    "sodax_get_transaction",
    "sodax_get_user_transactions",
    "sodax_get_volume",
    "sodax_get_orderbook",
    "sodax_get_money_market_assets",
    "sodax_get_user_position",
    "sodax_get_partners",
    "sodax_get_token_supply",
    "sodax_refresh_cache",
]

PERIODS = {"24h": timedelta(hours=24), "7d": timedelta(days=7), "30d": timedelta(days=30)}


# ── Parameter models ──────────────────────────────────────────────────────


class FormatParams(BaseModel):
    format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Response format: 'json' for raw data or 'markdown' for formatted text",
    )


class ChainFilterParams(FormatParams):
    chainId: Optional[str] = Field(default=None, description="Filter by chain ID (e.g., 'base', 'ethereum', 'icon')")


class TransactionParams(FormatParams):
    txHash: str = Field(description="The transaction hash to look up (e.g., '0x...')")


class UserTransactionsParams(FormatParams):
    userAddress: str = Field(description="The wallet address to look up (e.g., '0x...' or 'hx...')")
    chainId: Optional[str] = Field(default=None, description="Filter by chain ID")
    limit: int = Field(default=20, ge=1, le=100, description="Maximum number of transactions to return (1-100)")
    offset: int = Field(default=0, ge=0, description="Number of transactions to skip for pagination")


class VolumeParams(ChainFilterParams):
    period: Literal["24h", "7d", "30d", "all"] = Field(default="24h", description="Time period for volume data")


class OrderbookParams(FormatParams):
    chainId: Optional[str] = Field(default=None, description="Filter by chain ID")
    tokenIn: Optional[str] = Field(default=None, description="Filter by input token address")
    tokenOut: Optional[str] = Field(default=None, description="Filter by output token address")
    limit: int = Field(default=20, ge=1, le=100, description="Maximum number of orders to return")


class UserPositionParams(FormatParams):
    userAddress: str = Field(description="The wallet address to look up")
    chainId: Optional[str] = Field(default=None, description="Filter by chain ID")


# ── Helpers ───────────────────────────────────────────────────────────────


def _api_handler(render: Callable[[Dict[str, Any]], Awaitable[str]]) -> ToolHandler:
    """Turn a text renderer into a tool handler; API failures become error results."""

    async def handler(arguments: Dict[str, Any]) -> ToolResult:
        try:
            return ToolResult.from_text(await render(arguments))
        except SodaxApiError as exc:
            return ToolResult.from_text(f"Error: {exc}", is_error=True)

    return handler


def _since(period: str) -> Optional[str]:
    delta = PERIODS.get(period)
    if delta is None:
        return None
    return (datetime.now(timezone.utc) - delta).isoformat()


def _token_address(token: Any) -> Optional[str]:
    if isinstance(token, dict):
        return token.get("address")
    return token if isinstance(token, str) else None


def _filter_orders(orders: List[Any], chain_id: Optional[str], token_in: Optional[str], token_out: Optional[str]) -> List[Any]:
    def keep(order: Any) -> bool:
        if not isinstance(order, dict):
            return True
        if chain_id and str(order.get("chainId", chain_id)) != chain_id:
            return False
        if token_in and (_token_address(order.get("tokenIn")) or "").lower() != token_in.lower():
            return False
        if token_out and (_token_address(order.get("tokenOut")) or "").lower() != token_out.lower():
            return False
        return True

    return [order for order in orders if keep(order)]


def _short_address(address: str) -> str:
    if len(address) <= 18:
        return address
    return f"{address[:10]}...{address[-8:]}"


# ── Registration ──────────────────────────────────────────────────────────


def register_api_tools(host: ToolHost, client: SodaxApiClient) -> None:
    """Register all SODAX API tools on ``host``."""

    async def supported_chains(args: Dict[str, Any]) -> str:
        chains = await client.get_supported_chains()
        return format_response(chains, args["format"])

    async def swap_tokens(args: Dict[str, Any]) -> str:
        chain_id = args.get("chainId")
        tokens = await client.get_swap_tokens(chain_id)
        summary = (
            f"## Swap Tokens on {chain_id}\n\n{len(tokens)} tokens available\n\n"
            if chain_id
            else f"## All Swap Tokens\n\n{len(tokens)} tokens available across all chains\n\n"
        )
        return summary + format_response(tokens, args["format"])

    async def transaction(args: Dict[str, Any]) -> str:
        tx = await client.get_transaction(args["txHash"])
        if not tx:
            return f"Transaction not found: {args['txHash']}"
        return "## Transaction Details\n\n" + format_response(tx, args["format"])

    async def user_transactions(args: Dict[str, Any]) -> str:
        address = args["userAddress"]
        txs = await client.get_user_transactions(address, limit=args["limit"], offset=args["offset"])
        chain_id = args.get("chainId")
        if chain_id:
            txs = [tx for tx in txs if not isinstance(tx, dict) or str(tx.get("chainId", chain_id)) == chain_id]
        header = f"## Transactions for {_short_address(address)}\n\n{len(txs)} transactions found\n\n"
        return header + format_response(txs, args["format"])

    async def volume(args: Dict[str, Any]) -> str:
        chain_id, period = args.get("chainId"), args["period"]
        data = await client.get_volume(chain_id=chain_id, since=_since(period))
        header = (
            f"## Trading Volume on {chain_id} ({period})\n\n"
            if chain_id
            else f"## SODAX Trading Volume ({period})\n\n"
        )
        return header + format_response(data, args["format"])

    async def orderbook(args: Dict[str, Any]) -> str:
        orders = await client.get_orderbook(limit=args["limit"])
        orders = _filter_orders(orders, args.get("chainId"), args.get("tokenIn"), args.get("tokenOut"))
        return f"## Orderbook\n\n{len(orders)} orders found\n\n" + format_response(orders, args["format"])

    async def money_market_assets(args: Dict[str, Any]) -> str:
        chain_id = args.get("chainId")
        assets = await client.get_money_market_assets()
        if chain_id:
            assets = [a for a in assets if not isinstance(a, dict) or str(a.get("chainId", chain_id)) == chain_id]
        header = f"## Money Market Assets on {chain_id}\n\n" if chain_id else "## Money Market Assets\n\n"
        return header + f"{len(assets)} assets available\n\n" + format_response(assets, args["format"])

    async def user_position(args: Dict[str, Any]) -> str:
        address = args["userAddress"]
        position = await client.get_user_position(address)
        if not position:
            return f"No money market position found for {address}"
        return f"## Money Market Position\n\n**Address:** {address}\n\n" + format_response(position, args["format"])

    async def partners(args: Dict[str, Any]) -> str:
        data = await client.get_partners()
        return f"## SODAX Partners\n\n{len(data)} integration partners\n\n" + format_response(data, args["format"])

    async def token_supply(args: Dict[str, Any]) -> str:
        supply = await client.get_token_supply()
        return "## SODA Token Supply\n\n" + format_response(supply, args["format"])

    async def refresh_cache(args: Dict[str, Any]) -> ToolResult:
        cleared = client.cache.clear()
        return ToolResult.from_text(f"Cache cleared. {cleared} cached entries removed.")

    host.add_tool(
        "sodax_get_supported_chains",
        "List all blockchain networks supported by SODAX for cross-chain swaps and DeFi operations",
        FormatParams,
        _api_handler(supported_chains),
    )
    host.add_tool(
        "sodax_get_swap_tokens",
        "Get available tokens for swapping on SODAX, optionally filtered by chain",
        ChainFilterParams,
        _api_handler(swap_tokens),
    )
    host.add_tool(
        "sodax_get_transaction",
        "Look up a specific transaction by its hash to see status, amounts, and details",
        TransactionParams,
        _api_handler(transaction),
    )
    host.add_tool(
        "sodax_get_user_transactions",
        "Get transaction history for a specific wallet address",
        UserTransactionsParams,
        _api_handler(user_transactions),
    )
    host.add_tool(
        "sodax_get_volume",
        "Get trading volume data for SODAX, optionally filtered by chain and time period",
        VolumeParams,
        _api_handler(volume),
    )
    host.add_tool(
        "sodax_get_orderbook",
        "Get current orderbook entries showing pending limit orders",
        OrderbookParams,
        _api_handler(orderbook),
    )
    host.add_tool(
        "sodax_get_money_market_assets",
        "List all assets available for lending and borrowing in the SODAX money market",
        ChainFilterParams,
        _api_handler(money_market_assets),
    )
    host.add_tool(
        "sodax_get_user_position",
        "Get a user's lending and borrowing position in the money market",
        UserPositionParams,
        _api_handler(user_position),
    )
    host.add_tool(
        "sodax_get_partners",
        "List all SODAX integration partners including wallets, DEXs, and other protocols",
        FormatParams,
        _api_handler(partners),
    )
    host.add_tool(
        "sodax_get_token_supply",
        "Get SODA token supply information including total, circulating, and burned amounts",
        FormatParams,
        _api_handler(token_supply),
    )
    host.add_tool(
        "sodax_refresh_cache",
        "Clear the cached API data to force fresh fetches on next requests",
        None,
        refresh_cache,
    )
