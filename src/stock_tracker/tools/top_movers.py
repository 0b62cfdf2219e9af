"""Top movers tool."""

from datetime import datetime
from time import perf_counter
from typing import Any

from stock_tracker.data.alphavantage_client import MarketDataClient
from stock_tracker.tools._errors import market_error_response
from stock_tracker.utils.provenance import build_meta, build_provenance


async def top_movers(
    client: MarketDataClient,
    direction: str = "gainers",
    limit: int = 20,
) -> dict[str, Any]:
    """
    Today's top gainers, losers or most actively traded tickers.

    Args:
        client: Market data client
        direction: gainers, losers or most_active
        limit: Maximum number of rows (default: 20)

    Returns:
        Dict with ranked rows as upstream display strings
    """
    start_time = perf_counter()

    try:
        movers = await client.fetch_top_movers(direction)
    except Exception as e:
        return market_error_response(e)

    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("top_movers", duration_ms),
        "data_provenance": {
            "movers": build_provenance(
                source="alphavantage",
                as_of=datetime.utcnow().isoformat() + "Z",
            ),
        },
        "direction": direction.strip().lower(),
        "total": len(movers),
        "results": [m.to_dict() for m in movers[: max(limit, 0)]],
    }
