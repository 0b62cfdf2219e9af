"""Stock overview tool."""

from datetime import datetime
from time import perf_counter
from typing import Any

from stock_tracker.data.alphavantage_client import MarketDataClient
from stock_tracker.tools._errors import market_error_response
from stock_tracker.utils.provenance import build_meta, build_provenance
from stock_tracker.utils.values import (
    format_currency,
    format_date,
    format_large_number,
    format_percentage,
    format_value,
)


async def stock_overview(client: MarketDataClient, symbol: str) -> dict[str, Any]:
    """
    Get company overview with key figures.

    Args:
        client: Market data client
        symbol: Stock ticker symbol

    Returns:
        Dict with company info, raw figures and display strings
    """
    start_time = perf_counter()

    try:
        overview = await client.fetch_overview(symbol)
    except Exception as e:
        return market_error_response(e, symbol)

    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("stock_overview", duration_ms),
        "data_provenance": {
            "fundamentals": build_provenance(
                source="alphavantage",
                as_of=datetime.utcnow().isoformat() + "Z",
            ),
        },
        **overview.to_dict(),
        "display": {
            "exchange": format_value(overview.exchange),
            "sector": format_value(overview.sector),
            "industry": format_value(overview.industry),
            "country": format_value(overview.country),
            "market_cap": format_currency(overview.market_cap),
            "pe_ratio": format_value(overview.pe_ratio),
            "dividend_yield": format_percentage(overview.dividend_yield),
            "profit_margin": format_percentage(overview.profit_margin),
            "shares_outstanding": format_large_number(overview.shares_outstanding),
            "week_52_range": (
                f"{format_currency(overview.week_52_low)} - {format_currency(overview.week_52_high)}"
            ),
            "latest_quarter": format_date(overview.latest_quarter),
            "dividend_date": format_date(overview.dividend_date),
            "ex_dividend_date": format_date(overview.ex_dividend_date),
        },
    }
