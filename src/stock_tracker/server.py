"""Stock tracker MCP server using FastMCP."""

import asyncio
import json
import logging
import os

from fastmcp import FastMCP

from stock_tracker import SCHEMA_VERSION, SERVER_VERSION
from stock_tracker.data.alphavantage_client import MarketDataClient
from stock_tracker.data.cache import ResultCache
from stock_tracker.data.store import DiskStore
from stock_tracker.data.watchlist import WatchlistStore
from stock_tracker.resources.watchlist_resource import read_watchlist_resource
from stock_tracker.tools import (
    add_to_watchlist,
    create_watchlist,
    delete_watchlist,
    list_watchlists,
    price_chart,
    remove_from_watchlist,
    stock_overview,
    symbol_search,
    top_movers,
)

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Process-lifetime services. One store backs both the cache and the watchlists.
store = DiskStore()
client = MarketDataClient(ResultCache(store))
watchlists = WatchlistStore(store)
_load_lock = asyncio.Lock()

# Create FastMCP server instance
mcp = FastMCP(
    name="stock-tracker",
)


async def _loaded_watchlists() -> WatchlistStore:
    """The watchlist store, loaded from disk on first use."""
    async with _load_lock:
        if not watchlists.loaded:
            await watchlists.load_all()
    return watchlists


def _dumps(result: dict) -> str:
    return json.dumps(result, indent=2, default=str)


# ============================================================================
# MARKET DATA TOOLS
# ============================================================================


@mcp.tool
async def search_symbol(query: str, limit: int = 10) -> str:
    """
    Search for stock symbols by company name or ticker.

    Args:
        query: Search query (company name or ticker symbol)
        limit: Maximum number of results (default: 10)

    Returns:
        JSON with search results and exact match info
    """
    return _dumps(await symbol_search(client, query=query, limit=limit))


@mcp.tool
async def get_overview(symbol: str) -> str:
    """
    Get company overview: name, sector, market cap, valuation ratios, 52-week range.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL, IBM)

    Returns:
        JSON with company info and key figures
    """
    return _dumps(await stock_overview(client, symbol=symbol))


@mcp.tool
async def get_price_chart(symbol: str, period: str = "1M") -> str:
    """
    Get a chart-ready price series with period change.

    Args:
        symbol: Stock ticker symbol
        period: 1D, 1W, 1M, 3M, 6M, 1Y or 5Y

    Returns:
        JSON with at most 50 sampled points, tick labels and price change
    """
    return _dumps(await price_chart(client, symbol=symbol, period=period))


@mcp.tool
async def get_top_movers(direction: str = "gainers", limit: int = 20) -> str:
    """
    Get today's top gainers, losers or most actively traded tickers.

    Args:
        direction: gainers, losers or most_active
        limit: Maximum number of rows (default: 20)

    Returns:
        JSON with ticker, price, change amount, change percent and volume
    """
    return _dumps(await top_movers(client, direction=direction, limit=limit))


# ============================================================================
# WATCHLIST TOOLS
# ============================================================================


@mcp.tool(name="list_watchlists")
async def list_watchlists_tool(ticker: str | None = None) -> str:
    """
    List all watchlists.

    Args:
        ticker: If given, also report which watchlists contain it

    Returns:
        JSON with watchlists (id, name, tickers)
    """
    return _dumps(list_watchlists(await _loaded_watchlists(), ticker=ticker))


@mcp.tool(name="create_watchlist")
async def create_watchlist_tool(name: str) -> str:
    """
    Create an empty watchlist. Names must be unique.

    Args:
        name: Watchlist name

    Returns:
        JSON with the new id, or an error if the name is blank or taken
    """
    return _dumps(create_watchlist(await _loaded_watchlists(), name=name))


@mcp.tool(name="add_to_watchlist")
async def add_to_watchlist_tool(watchlist_id: str, ticker: str) -> str:
    """
    Add a ticker to a watchlist. A ticker can be in several watchlists.

    Args:
        watchlist_id: Watchlist id
        ticker: Stock ticker symbol
    """
    return _dumps(add_to_watchlist(await _loaded_watchlists(), watchlist_id, ticker))


@mcp.tool(name="remove_from_watchlist")
async def remove_from_watchlist_tool(watchlist_id: str, ticker: str) -> str:
    """
    Remove a ticker from a watchlist.

    Args:
        watchlist_id: Watchlist id
        ticker: Stock ticker symbol
    """
    return _dumps(remove_from_watchlist(await _loaded_watchlists(), watchlist_id, ticker))


@mcp.tool(name="delete_watchlist")
async def delete_watchlist_tool(watchlist_id: str) -> str:
    """
    Delete a watchlist.

    Args:
        watchlist_id: Watchlist id
    """
    return _dumps(delete_watchlist(await _loaded_watchlists(), watchlist_id))


# ============================================================================
# RESOURCES
# ============================================================================


@mcp.resource("watchlist://all")
async def get_watchlists_resource() -> str:
    """All watchlists as JSON."""
    text, _ = read_watchlist_resource(await _loaded_watchlists())
    return text


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    logger.info(f"Starting Stock Tracker MCP Server v{SERVER_VERSION} (schema v{SCHEMA_VERSION})")
    try:
        mcp.run()
    finally:
        client.shutdown()
        store.close()


if __name__ == "__main__":
    main()
