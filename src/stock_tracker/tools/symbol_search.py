"""Symbol search tool."""

from datetime import datetime
from time import perf_counter
from typing import Any

from stock_tracker.data.alphavantage_client import MarketDataClient
from stock_tracker.tools._errors import market_error_response
from stock_tracker.utils.provenance import build_meta, build_provenance


async def symbol_search(client: MarketDataClient, query: str, limit: int = 10) -> dict[str, Any]:
    """
    Search for stock symbols.

    Args:
        client: Market data client
        query: Search query (company name or ticker)
        limit: Maximum number of results (default: 10)

    Returns:
        Dict with search results and exact match info
    """
    start_time = perf_counter()

    try:
        matches = await client.search_symbols(query)
    except Exception as e:
        return market_error_response(e)

    results = [m.to_dict() for m in matches[: max(limit, 0)]]

    # Best match by score is not always the exact ticker
    normalized_query = (query or "").upper().strip()
    exact_match = next(
        (r["symbol"] for r in results if r["symbol"] == normalized_query),
        None,
    )

    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("symbol_search", duration_ms),
        "data_provenance": {
            "search": build_provenance(
                source="alphavantage",
                as_of=datetime.utcnow().isoformat() + "Z",
                query=query,
            ),
        },
        "results": results,
        "exact_match": exact_match,
    }
