"""Async Alpha Vantage client with caching, bounded concurrency and retry logic."""

import asyncio
import contextlib
import logging
import os
import random
from collections.abc import Awaitable, Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, TypeVar

import requests

from stock_tracker.data.cache import TOP_MOVERS_KEY, ResultCache, overview_key, search_key
from stock_tracker.data.models import TOP_MOVER_LISTS, OverviewRecord, StockSummary, SymbolMatch
from stock_tracker.utils.ohlcv import NormalizedSeries, normalize_series
from stock_tracker.utils.params import TimeSeriesParams, normalize_symbol

logger = logging.getLogger(__name__)

API_KEY = os.environ.get("ALPHAVANTAGE_API_KEY", "demo")
BASE_URL = os.environ.get("ALPHAVANTAGE_BASE_URL", "https://www.alphavantage.co/query")

# Bounded concurrency for upstream calls
_max_workers = int(os.environ.get("MD_MAX_WORKERS", "4"))

# Retry configuration
_max_retries = int(os.environ.get("MD_MAX_RETRIES", "3"))
_base_delay = float(os.environ.get("MD_BASE_DELAY", "1.0"))  # seconds
_max_delay = float(os.environ.get("MD_MAX_DELAY", "30.0"))  # seconds
_jitter = float(os.environ.get("MD_RETRY_JITTER", "0.0"))  # fraction of delay

# Request timeouts (seconds), by endpoint weight
SEARCH_TIMEOUT = 8.0
OVERVIEW_TIMEOUT = 10.0
TOP_MOVERS_TIMEOUT = 10.0
TIME_SERIES_TIMEOUT = 15.0

# Cache freshness (milliseconds)
OVERVIEW_TTL_MS = 24 * 60 * 60 * 1000
TOP_MOVERS_TTL_MS = 60 * 60 * 1000
SEARCH_TTL_MS = 5 * 60 * 1000

T = TypeVar("T")

# Requests that could not be built; retrying cannot help
_MALFORMED_REQUEST = (
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidSchema,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidHeader,
    requests.exceptions.URLRequired,
)


class MarketDataError(Exception):
    """Base class for market data failures."""

    kind = "market_data_error"
    retryable = False


class RequestTimeoutError(MarketDataError):
    """Request timed out or the connection failed before a full response arrived."""

    kind = "timeout"
    retryable = True


class TooManyRequestsError(MarketDataError):
    """HTTP 429."""

    kind = "too_many_requests"
    retryable = True


class ServerError(MarketDataError):
    """HTTP 5xx."""

    kind = "server_error"
    retryable = True

    def __init__(self, status: int, message: str | None = None):
        super().__init__(message or f"Upstream server error (HTTP {status})")
        self.status = status


class ClientError(MarketDataError):
    """HTTP 4xx other than 429, or a request that could not be built."""

    kind = "client_error"

    def __init__(self, status: int | None, message: str | None = None):
        super().__init__(message or f"Request rejected (HTTP {status})")
        self.status = status


class UpstreamMessageError(MarketDataError):
    """The provider answered 200 with an "Error Message" body."""

    kind = "upstream_message"


class RateLimitNoticeError(MarketDataError):
    """The provider answered 200 with a rate-limit "Note" / "Information" body."""

    kind = "rate_limit_notice"


class EmptyResultError(MarketDataError):
    """The provider answered with an empty or unusable body."""

    kind = "empty_result"


NotFound = EmptyResultError
RateLimited = RateLimitNoticeError
UpstreamError = UpstreamMessageError


def is_retryable(error: Exception) -> bool:
    """Transient failures: timeout, 429 and 5xx."""
    return isinstance(error, MarketDataError) and error.retryable


@dataclass(frozen=True)
class RetryPolicy:
    """Retry ceiling, exponential backoff and the error classifier."""

    max_retries: int = _max_retries
    base_delay: float = _base_delay
    max_delay: float = _max_delay
    jitter: float = _jitter
    classifier: Callable[[Exception], bool] = field(default=is_retryable, compare=False)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    def backoff(self, attempt: int) -> float:
        """Delay before retry number attempt + 1 (attempt is 0-based)."""
        delay = self.base_delay * (2**attempt)
        if self.jitter:
            delay += delay * self.jitter * (2 * random.random() - 1)
        return min(delay, self.max_delay)


@dataclass
class RetryResult:
    """Result of a retried call with attempt accounting."""

    result: Any
    attempts: int
    total_backoff_seconds: float


async def _retry_with_backoff(
    operation_name: str,
    sync_func: Callable[[], T],
    policy: RetryPolicy,
    executor: ThreadPoolExecutor,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    limiter: asyncio.Semaphore | None = None,
) -> RetryResult:
    """
    Run a blocking call in the executor, retrying transient failures.

    Args:
        operation_name: Name for logging (e.g., "fetch_overview(AAPL)")
        sync_func: Blocking function to execute
        policy: Retry ceiling, backoff and classifier
        executor: Executor that runs sync_func
        sleep: Awaitable sleep used between attempts
        limiter: Held for each attempt only, never across backoff sleeps

    Returns:
        RetryResult with the function's result

    Raises:
        MarketDataError: Terminal errors immediately, transient ones once
            the retry ceiling is reached
    """
    total_backoff = 0.0

    for attempt in range(policy.max_retries + 1):
        try:
            loop = asyncio.get_running_loop()
            async with limiter or contextlib.nullcontext():
                result = await loop.run_in_executor(executor, sync_func)
            return RetryResult(
                result=result,
                attempts=attempt + 1,
                total_backoff_seconds=round(total_backoff, 2),
            )
        except Exception as e:
            if not policy.classifier(e):
                raise

            if attempt >= policy.max_retries:
                logger.warning(
                    f"{operation_name}: Failed after {attempt + 1} attempts. Last error: {e}"
                )
                raise

            delay = policy.backoff(attempt)
            total_backoff += delay
            logger.info(
                f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                f"Retrying in {delay:.1f}s..."
            )
            await sleep(delay)

    # Should never reach here, but just in case
    raise RuntimeError(f"{operation_name}: retry loop exited without a result")


def parse_response(response: requests.Response) -> dict[str, Any]:
    """
    Classify an upstream response, returning its JSON object body.

    HTTP status alone is not enough: the provider reports bad symbols and
    rate limiting inside 200 responses.
    """
    status = response.status_code
    if status == 429:
        raise TooManyRequestsError("Too many requests (HTTP 429)")
    if status >= 500:
        raise ServerError(status)
    if status >= 400:
        raise ClientError(status)

    try:
        payload = response.json()
    except ValueError as e:
        raise EmptyResultError("Malformed response body") from e

    if not isinstance(payload, dict) or not payload:
        raise EmptyResultError("No data returned")
    if "Error Message" in payload:
        raise UpstreamMessageError(str(payload["Error Message"]))
    for notice_key in ("Note", "Information"):
        if notice_key in payload:
            raise RateLimitNoticeError(str(payload[notice_key]))
    return payload


def extract_series(payload: dict[str, Any]) -> dict[str, Any] | None:
    """The date -> OHLCV mapping of a time-series payload, if present."""
    for key, value in payload.items():
        if "Time Series" in key and isinstance(value, dict):
            return value
    return None


class MarketDataClient:
    """
    Market data operations for the UI layer.

    Every operation checks the result cache first, then calls the provider
    under one retry policy. Blocking HTTP runs on a small thread pool.
    """

    def __init__(
        self,
        cache: ResultCache,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        session: requests.Session | None = None,
        retry_policy: RetryPolicy | None = None,
        max_workers: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cache = cache
        self.api_key = api_key or API_KEY
        self.base_url = base_url or BASE_URL
        self.session = session or requests.Session()
        self.retry_policy = retry_policy or RetryPolicy()
        workers = max_workers or _max_workers
        self._executor = ThreadPoolExecutor(max_workers=workers)
        self._semaphore = asyncio.Semaphore(workers)
        self._sleep = sleep

    async def _request(self, operation_name: str, query: dict[str, Any], timeout: float) -> dict[str, Any]:
        params = {**query, "apikey": self.api_key}

        def _call() -> dict[str, Any]:
            try:
                response = self.session.get(self.base_url, params=params, timeout=timeout)
            except _MALFORMED_REQUEST as e:
                raise ClientError(None, f"Request could not be sent: {e}") from e
            except requests.RequestException as e:
                raise RequestTimeoutError(f"Request failed: {e}") from e
            return parse_response(response)

        retry_result = await _retry_with_backoff(
            operation_name,
            _call,
            self.retry_policy,
            self._executor,
            self._sleep,
            limiter=self._semaphore,
        )
        if retry_result.attempts > 1:
            logger.info(
                f"{operation_name}: succeeded after {retry_result.attempts} attempts "
                f"({retry_result.total_backoff_seconds}s backoff)"
            )
        return retry_result.result

    async def fetch_overview(self, ticker: str) -> OverviewRecord:
        """
        Company overview, cached for a day.

        Raises:
            EmptyResultError: Unknown ticker (provider returned {})
            MarketDataError: Any other upstream failure
        """
        symbol = normalize_symbol(ticker)
        key = overview_key(symbol)

        payload = await self.cache.read(key, OVERVIEW_TTL_MS)
        if not isinstance(payload, dict):
            payload = await self._request(
                f"fetch_overview({symbol})",
                {"function": "OVERVIEW", "symbol": symbol},
                OVERVIEW_TIMEOUT,
            )
            await self.cache.write(key, payload)
        return OverviewRecord.from_payload(payload, symbol)

    async def fetch_time_series(self, ticker: str, period: str) -> NormalizedSeries:
        """
        Normalized chart series for ticker over period.

        The raw date -> OHLCV mapping is cached with the period's freshness;
        normalization runs on every call.
        """
        params = TimeSeriesParams(symbol=ticker, period=period)
        spec = params.spec
        key = params.cache_key()

        raw = await self.cache.read(key, spec.ttl_ms)
        if not isinstance(raw, dict):
            payload = await self._request(
                f"fetch_time_series({params.symbol}, {params.period})",
                params.to_query(),
                TIME_SERIES_TIMEOUT,
            )
            raw = extract_series(payload)
            if raw is None:
                logger.warning(f"fetch_time_series({params.symbol}): response had no series")
                raw = {}
            else:
                await self.cache.write(key, raw)

        return normalize_series(
            raw,
            params.period,
            lookback_days=spec.lookback_days,
            min_points=spec.min_bars,
        )

    async def fetch_top_movers(self, direction: str = "gainers") -> list[StockSummary]:
        """
        Top gainers, losers or most active tickers, cached for an hour.

        One upstream response carries all three lists, so it is cached whole.
        """
        list_key = TOP_MOVER_LISTS.get((direction or "").strip().lower())
        if list_key is None:
            raise ValueError(
                f"Invalid direction '{direction}'. Must be one of: {', '.join(TOP_MOVER_LISTS)}"
            )

        payload = await self.cache.read(TOP_MOVERS_KEY, TOP_MOVERS_TTL_MS)
        if not isinstance(payload, dict):
            payload = await self._request(
                "fetch_top_movers",
                {"function": "TOP_GAINERS_LOSERS"},
                TOP_MOVERS_TIMEOUT,
            )
            if not any(isinstance(payload.get(k), list) for k in TOP_MOVER_LISTS.values()):
                raise EmptyResultError("No top movers returned")
            await self.cache.write(TOP_MOVERS_KEY, payload)

        items = payload.get(list_key) or []
        return [StockSummary.from_payload(item) for item in items if isinstance(item, dict)]

    async def search_symbols(self, query: str) -> list[SymbolMatch]:
        """Symbol search, cached five minutes per query. Blank queries return []."""
        keywords = (query or "").strip()
        if not keywords:
            return []
        key = search_key(keywords)

        matches = await self.cache.read(key, SEARCH_TTL_MS)
        if not isinstance(matches, list):
            payload = await self._request(
                f"search_symbols({keywords})",
                {"function": "SYMBOL_SEARCH", "keywords": keywords},
                SEARCH_TIMEOUT,
            )
            matches = payload.get("bestMatches")
            if not isinstance(matches, list):
                matches = []
            await self.cache.write(key, matches)

        return [SymbolMatch.from_payload(m) for m in matches if isinstance(m, dict)]

    def shutdown(self) -> None:
        """Stop the worker pool and close the HTTP session."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.session.close()
