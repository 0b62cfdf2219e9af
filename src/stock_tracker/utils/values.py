"""Coercion of untrusted upstream values into numbers and display text.

The market data API returns every field as a string and marks missing
values with a handful of sentinel strings. Everything in this module is
total: bad input yields 0 / "N/A" / None, never an exception.
"""

import math
import re
from datetime import datetime
from typing import Any

import pandas as pd

# Exact matches (after trimming) that mean "no value"
MISSING_SENTINELS: frozenset[str] = frozenset(
    {"N/A", "NaN", "None", "--", "null", "undefined"}
)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_NUMERIC_PREFIX = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")

_SUFFIXES = (
    (1e12, "T"),
    (1e9, "B"),
    (1e6, "M"),
    (1e3, "K"),
)


def _text(raw: Any) -> str | None:
    """Trimmed text for raw, or None when raw is missing or a sentinel."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text or text in MISSING_SENTINELS:
        return None
    return text


def is_displayable(raw: Any) -> bool:
    """True unless raw is None, empty, or one of the missing-value sentinels."""
    return _text(raw) is not None


def parse_numeric(raw: Any) -> float:
    """
    Parse an upstream value into a float, returning 0.0 when it has none.

    Strings that are already plain float literals (including exponent
    notation) parse directly. Anything else is reduced to ``[0-9.-]`` and
    its longest numeric prefix is used, so "$1,234.50" and "12.5%" work.

    Args:
        raw: String, number, or None

    Returns:
        Finite float, 0.0 for missing or unparseable input
    """
    if isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, (int, float)):
        value = float(raw)
        return value if math.isfinite(value) else 0.0

    text = _text(raw)
    if text is None:
        return 0.0

    try:
        value = float(text)
        if math.isfinite(value):
            return value
    except ValueError:
        pass

    match = _NUMERIC_PREFIX.match(_NON_NUMERIC.sub("", text))
    if not match:
        return 0.0
    value = float(match.group(0))
    return value if math.isfinite(value) else 0.0


def clean_text(raw: Any, max_length: int = 500) -> str | None:
    """
    Sanitize an upstream free-text field.

    Control characters are removed and long text is truncated with "...".
    Missing values and sentinels come back as None.
    """
    text = _text(raw)
    if text is None:
        return None
    text = _CONTROL_CHARS.sub("", text)
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text.strip() or None


def _abbreviate(value: float) -> tuple[float, str] | None:
    for threshold, suffix in _SUFFIXES:
        if abs(value) >= threshold:
            return value / threshold, suffix
    return None


def _group(value: float) -> str:
    """Thousands-grouped number with at most two decimals."""
    text = f"{value:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_currency(raw: Any) -> str:
    """USD amount with K/M/B/T suffixes for large magnitudes, "N/A" for zero."""
    value = parse_numeric(raw)
    if value == 0:
        return "N/A"
    if abbreviated := _abbreviate(value):
        scaled, suffix = abbreviated
        return f"${scaled:.2f}{suffix}"
    if value < 0:
        return f"-${abs(value):,.2f}"
    return f"${value:,.2f}"


def format_percentage(raw: Any) -> str:
    """
    Percentage with two decimals.

    Fractional inputs (strictly between -1 and 1) are scaled by 100, so the
    overview's "0.0044" dividend yield renders as "0.44%".
    """
    value = parse_numeric(raw)
    if value == 0:
        return "N/A"
    if -1 < value < 1:
        value *= 100
    return f"{value:,.2f}%"


def format_large_number(raw: Any) -> str:
    """Plain number with K/M/B/T suffixes, "N/A" for zero."""
    value = parse_numeric(raw)
    if value == 0:
        return "N/A"
    if abbreviated := _abbreviate(value):
        scaled, suffix = abbreviated
        return f"{scaled:.2f}{suffix}"
    return _group(value)


def format_value(raw: Any) -> str:
    """Grouped number when raw is numeric, otherwise the text itself."""
    text = _text(raw)
    if text is None:
        return "N/A"
    value = parse_numeric(text)
    if value != 0:
        return _group(value)
    return text


def format_date(raw: Any) -> str:
    """Date as "Jan 5, 2024", "N/A" when missing or unparseable."""
    text = _text(raw)
    if text is None:
        return "N/A"
    ts = pd.to_datetime(text, errors="coerce")
    if pd.isna(ts):
        return "N/A"
    moment: datetime = ts.to_pydatetime()
    return f"{moment:%b} {moment.day}, {moment.year}"
