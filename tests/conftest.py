"""Pytest configuration and fixtures."""

from datetime import date, timedelta
from typing import Any

import pytest

from stock_tracker.data.alphavantage_client import MarketDataClient, RetryPolicy
from stock_tracker.data.cache import ResultCache
from stock_tracker.data.store import MemoryStore


def trading_sessions(start: date, count: int, holidays: tuple[date, ...] = ()) -> list[date]:
    """The first count weekdays from start, skipping holidays."""
    sessions = []
    day = start
    while len(sessions) < count:
        if day.weekday() < 5 and day not in holidays:
            sessions.append(day)
        day += timedelta(days=1)
    return sessions


def make_daily_series(
    closes: list[float],
    start: date = date(2024, 1, 1),
    dates: list[date] | None = None,
) -> dict[str, dict[str, str]]:
    """
    Alpha Vantage style daily mapping.

    One calendar day per close from start, or one close per entry of dates.
    """
    if dates is None:
        dates = [start + timedelta(days=i) for i in range(len(closes))]
    series = {}
    for day, close in zip(dates, closes):
        series[day.isoformat()] = {
            "1. open": f"{close - 0.5:.4f}",
            "2. high": f"{close + 1:.4f}",
            "3. low": f"{close - 1:.4f}",
            "4. close": f"{close:.4f}",
            "5. volume": "1000000",
        }
    return series


class FakeClock:
    """Settable millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload: Any = None, status_code: int = 200, text: str | None = None):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    def json(self) -> Any:
        if self.text is not None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions) and records calls."""

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def get(self, url: str, params: dict[str, Any] | None = None, timeout: float | None = None) -> FakeResponse:
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        if not self.responses:
            raise AssertionError("unexpected request")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def sample_daily_series() -> dict[str, dict[str, str]]:
    """Ten valid daily rows, closes rising from 100.5 to 106.0."""
    return make_daily_series(
        [100.5, 102.0, 101.5, 102.0, 104.0, 103.5, 104.5, 106.0, 105.5, 106.0]
    )


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def result_cache(memory_store: MemoryStore, clock: FakeClock) -> ResultCache:
    return ResultCache(memory_store, clock=clock)


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by the client's retry loop."""
    return []


@pytest.fixture
def make_client(result_cache: ResultCache, sleeps: list[float]):
    """Factory for a MarketDataClient wired to a FakeSession and no real sleeping."""
    clients: list[MarketDataClient] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    def _make(session: FakeSession, retry_policy: RetryPolicy | None = None) -> MarketDataClient:
        client = MarketDataClient(
            result_cache,
            api_key="test-key",
            base_url="https://example.test/query",
            session=session,
            retry_policy=retry_policy or RetryPolicy(max_retries=3, base_delay=1.0, max_delay=30.0, jitter=0.0),
            max_workers=2,
            sleep=fake_sleep,
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.shutdown()
