"""Chart periods and upstream request parameters."""

from dataclasses import dataclass
from typing import Any

INTRADAY = "TIME_SERIES_INTRADAY"
DAILY = "TIME_SERIES_DAILY"
WEEKLY = "TIME_SERIES_WEEKLY"

# Rows returned by a "compact" daily request
COMPACT_ROWS = 100


@dataclass(frozen=True)
class PeriodSpec:
    """How one chart period is fetched, windowed, cached and labelled."""

    function: str
    lookback_days: int
    ttl_seconds: int
    interval: str | None = None
    # Bars always kept, however many calendar days they span
    min_bars: int = 0

    @property
    def ttl_ms(self) -> int:
        return self.ttl_seconds * 1000

    @property
    def outputsize(self) -> str | None:
        # Weekly series have no size selector
        if self.function == WEEKLY:
            return None
        if self.function == INTRADAY:
            return "compact"
        # ~5 trading days per 7 calendar days
        trading_days = self.lookback_days * 5 // 7
        return "compact" if trading_days <= COMPACT_ROWS else "full"

    @property
    def resolution(self) -> str:
        if self.interval:
            return self.interval
        return "weekly" if self.function == WEEKLY else "daily"

    @property
    def is_intraday(self) -> bool:
        return self.function == INTRADAY


# Shorter windows churn faster, so they go stale sooner
PERIODS: dict[str, PeriodSpec] = {
    "1D": PeriodSpec(INTRADAY, lookback_days=1, ttl_seconds=5 * 60, interval="5min"),
    "1W": PeriodSpec(DAILY, lookback_days=7, ttl_seconds=30 * 60, min_bars=5),
    "1M": PeriodSpec(DAILY, lookback_days=31, ttl_seconds=30 * 60, min_bars=22),
    "3M": PeriodSpec(DAILY, lookback_days=92, ttl_seconds=60 * 60, min_bars=63),
    "6M": PeriodSpec(DAILY, lookback_days=183, ttl_seconds=60 * 60, min_bars=126),
    "1Y": PeriodSpec(DAILY, lookback_days=366, ttl_seconds=4 * 60 * 60, min_bars=252),
    "5Y": PeriodSpec(WEEKLY, lookback_days=1827, ttl_seconds=4 * 60 * 60, min_bars=260),
}
VALID_PERIODS = tuple(PERIODS)
DEFAULT_PERIOD = "1M"


def normalize_period(period: str) -> str:
    """Uppercase and validate a period string."""
    value = (period or "").strip().upper()
    if value not in PERIODS:
        raise ValueError(f"Invalid period '{period}'. Must be one of: {', '.join(VALID_PERIODS)}")
    return value


def normalize_symbol(symbol: str) -> str:
    """Uppercase and strip a ticker symbol, rejecting blanks."""
    value = (symbol or "").strip().upper()
    if not value:
        raise ValueError("symbol is required")
    return value


@dataclass(frozen=True)
class TimeSeriesParams:
    """Immutable time-series request. Used for cache key + fetch."""

    symbol: str
    period: str = DEFAULT_PERIOD

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        object.__setattr__(self, "period", normalize_period(self.period))

    @property
    def spec(self) -> PeriodSpec:
        return PERIODS[self.period]

    def cache_key(self) -> str:
        return f"timeseries:{self.symbol}:{self.period}"

    def to_query(self) -> dict[str, Any]:
        """Query-string parameters, without the API key."""
        spec = self.spec
        query: dict[str, Any] = {"function": spec.function, "symbol": self.symbol}
        if spec.interval:
            query["interval"] = spec.interval
        if spec.outputsize:
            query["outputsize"] = spec.outputsize
        return query
