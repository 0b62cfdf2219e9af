"""OHLCV normalization and chart downsampling."""

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
import pytz

from stock_tracker.utils.params import DEFAULT_PERIOD, PERIODS, normalize_period
from stock_tracker.utils.values import parse_numeric

logger = logging.getLogger(__name__)

MARKET_TZ = os.environ.get("MARKET_TZ", "America/New_York")
MAX_CHART_POINTS = 50
MAX_LABELS = 6

OHLCV_FIELDS = ("open", "high", "low", "close", "volume")
_DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One OHLCV bar. timestamp is epoch milliseconds."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class NormalizedSeries:
    """
    Chart-ready series.

    points is the full chronological series; sampled_points is the capped
    subset used for drawing, with labels aligned index-for-index. The
    change figures are measured across sampled_points.
    """

    points: list[TimeSeriesPoint] = field(default_factory=list)
    sampled_points: list[TimeSeriesPoint] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    price_change: float = 0.0
    price_change_percent: float = 0.0

    @property
    def has_data(self) -> bool:
        return bool(self.sampled_points)

    @property
    def current_price(self) -> float:
        return self.sampled_points[-1].close if self.sampled_points else 0.0


def _field_name(key: Any) -> str:
    """Map "4. close" or "Close" to "close"."""
    return str(key).split(". ", 1)[-1].strip().lower()


def _canonical_row(values: Mapping[str, Any]) -> dict[str, Any]:
    row = {_field_name(k): v for k, v in values.items()}
    return {name: row.get(name) for name in OHLCV_FIELDS}


def parse_timestamp(date_str: Any, tz: str = MARKET_TZ) -> int | None:
    """
    Parse an upstream date key into epoch milliseconds.

    Naive dates are market-local (Alpha Vantage reports US/Eastern).
    Returns None when the value is not a date.
    """
    ts = pd.to_datetime(str(date_str).strip(), errors="coerce")
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize(pytz.timezone(tz), ambiguous=False, nonexistent="shift_forward")
    return int(ts.value // 1_000_000)


def standardize_ohlcv(raw: Mapping[str, Any] | None, tz: str = MARKET_TZ) -> pd.DataFrame:
    """
    Turn a date -> OHLCV mapping into a clean, sorted DataFrame.

    Output columns (in order): timestamp, open, high, low, close, volume.
    Rows with close <= 0 or an unparseable date are dropped; duplicate
    timestamps keep the last row.
    """
    columns = ["timestamp", *OHLCV_FIELDS]
    if not isinstance(raw, Mapping) or not raw:
        return pd.DataFrame(columns=columns)

    records = []
    for date_str, values in raw.items():
        if not isinstance(values, Mapping):
            continue
        row = _canonical_row(values)
        records.append({
            "timestamp": parse_timestamp(date_str, tz),
            **{name: parse_numeric(row[name]) for name in OHLCV_FIELDS},
        })

    df = pd.DataFrame.from_records(records, columns=columns)
    valid = df["timestamp"].notna() & (df["close"] > 0)
    dropped = len(raw) - int(valid.sum())
    if dropped:
        logger.debug(f"standardize_ohlcv: dropped {dropped} invalid rows")

    df = df[valid].astype({"timestamp": "int64"})
    df = df.sort_values("timestamp", kind="stable")
    df = df.drop_duplicates(subset="timestamp", keep="last")
    return df.reset_index(drop=True)


def df_to_points(df: pd.DataFrame) -> list[TimeSeriesPoint]:
    return [
        TimeSeriesPoint(
            timestamp=int(row.timestamp),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in df.itertuples(index=False)
    ]


def trim_to_lookback(
    points: list[TimeSeriesPoint],
    lookback_days: int,
    min_points: int = 0,
) -> list[TimeSeriesPoint]:
    """
    Keep points within lookback_days calendar days of the latest one.

    The latest min_points are kept even when they reach further back, so a
    window spanning weekends and market holidays still shows a full set of
    sessions.
    """
    if not points:
        return points
    cutoff = points[-1].timestamp - lookback_days * _DAY_MS
    start = next((i for i, p in enumerate(points) if p.timestamp >= cutoff), len(points))
    start = min(start, max(len(points) - min_points, 0))
    return points[start:]


def sample_indices(length: int, max_points: int = MAX_CHART_POINTS) -> list[int]:
    """
    Evenly strided indices, always including the first and last.

    The stride starts at floor(length / max_points) and grows to the
    smallest value that keeps the result within max_points.
    """
    if length <= max_points:
        return list(range(length))
    stride = max(length // max_points, math.ceil((length - 1) / (max_points - 1)))
    indices = np.arange(0, length, stride).tolist()
    if indices[-1] != length - 1:
        indices.append(length - 1)
    return indices


def label_indices(length: int, max_labels: int = MAX_LABELS) -> list[int]:
    """Indices that get a tick label: first, last and evenly spaced between."""
    if length <= max_labels:
        return list(range(length))
    return sorted({int(i) for i in np.linspace(0, length - 1, max_labels).round()})


def format_label(timestamp: int, period: str, tz: str = MARKET_TZ) -> str:
    """Tick label text for a point, by period granularity."""
    moment = pd.Timestamp(timestamp, unit="ms", tz="UTC").tz_convert(pytz.timezone(tz))
    if PERIODS[period].is_intraday:
        return f"{moment:%H:%M}"
    if period == "1W":
        return f"{moment:%a}"
    if period == "1M":
        return f"{moment:%b} {moment.day}"
    return f"{moment:%b %y}"


def build_labels(points: list[TimeSeriesPoint], period: str, tz: str = MARKET_TZ) -> list[str]:
    labels = [""] * len(points)
    for i in label_indices(len(points)):
        labels[i] = format_label(points[i].timestamp, period, tz)
    return labels


def price_change(points: list[TimeSeriesPoint]) -> tuple[float, float]:
    """Absolute and percent change from the first to the last point."""
    if len(points) < 2:
        return 0.0, 0.0
    first, last = points[0].close, points[-1].close
    change = last - first
    percent = change / first * 100 if first != 0 else 0.0
    return change, percent


def normalize_series(
    raw: Mapping[str, Any] | None,
    period: str = DEFAULT_PERIOD,
    *,
    lookback_days: int | None = None,
    min_points: int = 0,
    tz: str = MARKET_TZ,
    max_points: int = MAX_CHART_POINTS,
) -> NormalizedSeries:
    """
    Normalize a raw date -> OHLCV mapping for charting.

    Invalid rows are dropped rather than reported. An input with no valid
    rows yields an empty series with zero change, which is a normal
    outcome for new listings or holiday windows.

    Args:
        raw: Upstream mapping of date string to OHLCV fields (strings)
        period: Chart period, drives label formatting
        lookback_days: Optional calendar-day window ending at the latest point
        min_points: Points kept regardless of the lookback window
        tz: Market timezone for naive dates and labels
        max_points: Cap on sampled points

    Returns:
        NormalizedSeries
    """
    period = normalize_period(period)
    points = df_to_points(standardize_ohlcv(raw, tz))
    if lookback_days is not None:
        points = trim_to_lookback(points, lookback_days, min_points)

    if not points:
        return NormalizedSeries()

    sampled = [points[i] for i in sample_indices(len(points), max_points)]
    change, percent = price_change(sampled)

    return NormalizedSeries(
        points=points,
        sampled_points=sampled,
        labels=build_labels(sampled, period, tz),
        price_change=change,
        price_change_percent=percent,
    )


def series_to_dict(series: NormalizedSeries) -> dict[str, Any]:
    """JSON-friendly view of a normalized series (sampled points only)."""
    return {
        "has_data": series.has_data,
        "data_points": len(series.points),
        "current_price": series.current_price,
        "price_change": round(series.price_change, 4),
        "price_change_percent": round(series.price_change_percent, 4),
        "labels": series.labels,
        "points": [p.to_dict() for p in series.sampled_points],
    }
