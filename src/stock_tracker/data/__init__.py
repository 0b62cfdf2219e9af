"""Data layer: persistence, caching, market data and watchlists."""

from stock_tracker.data.alphavantage_client import (
    ClientError,
    EmptyResultError,
    MarketDataClient,
    MarketDataError,
    RateLimitNoticeError,
    RequestTimeoutError,
    RetryPolicy,
    ServerError,
    TooManyRequestsError,
    UpstreamMessageError,
    is_retryable,
)
from stock_tracker.data.cache import ResultCache
from stock_tracker.data.models import OverviewRecord, StockSummary, SymbolMatch
from stock_tracker.data.store import DiskStore, MemoryStore, PersistentStore
from stock_tracker.data.watchlist import (
    DuplicateWatchlistError,
    InvalidWatchlistNameError,
    Watchlist,
    WatchlistError,
    WatchlistStore,
)

__all__ = [
    # Store / cache
    "DiskStore",
    "MemoryStore",
    "PersistentStore",
    "ResultCache",
    # Market data
    "ClientError",
    "EmptyResultError",
    "MarketDataClient",
    "MarketDataError",
    "OverviewRecord",
    "RateLimitNoticeError",
    "RequestTimeoutError",
    "RetryPolicy",
    "ServerError",
    "StockSummary",
    "SymbolMatch",
    "TooManyRequestsError",
    "UpstreamMessageError",
    "is_retryable",
    # Watchlists
    "DuplicateWatchlistError",
    "InvalidWatchlistNameError",
    "Watchlist",
    "WatchlistError",
    "WatchlistStore",
]
