"""Utility modules."""

from stock_tracker.utils.ohlcv import NormalizedSeries, TimeSeriesPoint, normalize_series
from stock_tracker.utils.params import PERIODS, VALID_PERIODS, TimeSeriesParams
from stock_tracker.utils.provenance import build_error_response, build_meta, build_provenance
from stock_tracker.utils.values import (
    format_currency,
    format_date,
    format_large_number,
    format_percentage,
    format_value,
    is_displayable,
    parse_numeric,
)

__all__ = [
    "NormalizedSeries",
    "TimeSeriesPoint",
    "normalize_series",
    "PERIODS",
    "VALID_PERIODS",
    "TimeSeriesParams",
    "build_error_response",
    "build_meta",
    "build_provenance",
    "format_currency",
    "format_date",
    "format_large_number",
    "format_percentage",
    "format_value",
    "is_displayable",
    "parse_numeric",
]
