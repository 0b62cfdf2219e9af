"""Shared error-to-response mapping for tools."""

from typing import Any

from stock_tracker.data.alphavantage_client import MarketDataError
from stock_tracker.utils.provenance import build_error_response


def market_error_response(error: Exception, symbol: str | None = None) -> dict[str, Any]:
    """Error document for an exception raised by a market data call."""
    if isinstance(error, MarketDataError):
        return build_error_response(
            error_type=error.kind,
            message=str(error),
            symbol=symbol,
            retryable=error.retryable,
        )
    if isinstance(error, ValueError):
        return build_error_response(
            error_type="invalid_parameters",
            message=str(error),
            symbol=symbol,
        )
    return build_error_response(
        error_type="data_unavailable",
        message=f"Failed to fetch data: {error}",
        symbol=symbol,
    )
