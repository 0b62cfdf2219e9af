"""Price chart tool."""

from datetime import datetime
from time import perf_counter
from typing import Any

from stock_tracker.data.alphavantage_client import MarketDataClient
from stock_tracker.tools._errors import market_error_response
from stock_tracker.utils.ohlcv import MARKET_TZ, series_to_dict
from stock_tracker.utils.params import DEFAULT_PERIOD, PERIODS, normalize_period
from stock_tracker.utils.provenance import build_meta, build_provenance


async def price_chart(
    client: MarketDataClient,
    symbol: str,
    period: str = DEFAULT_PERIOD,
) -> dict[str, Any]:
    """
    Chart-ready price series for a ticker.

    Args:
        client: Market data client
        symbol: Stock ticker symbol
        period: 1D, 1W, 1M, 3M, 6M, 1Y or 5Y

    Returns:
        Dict with sampled points, tick labels and period change
    """
    start_time = perf_counter()

    try:
        period = normalize_period(period)
        series = await client.fetch_time_series(symbol, period)
    except Exception as e:
        return market_error_response(e, symbol)

    spec = PERIODS[period]
    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("price_chart", duration_ms),
        "data_provenance": {
            "price": build_provenance(
                source="alphavantage",
                as_of=datetime.utcnow().isoformat() + "Z",
                function=spec.function,
                resolution=spec.resolution,
                bar_timezone=MARKET_TZ,
                freshness_seconds=spec.ttl_seconds,
            ),
        },
        "symbol": symbol.upper().strip(),
        "period": period,
        **series_to_dict(series),
    }
