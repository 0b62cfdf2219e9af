"""Typed records built from upstream JSON at the client boundary."""

from dataclasses import asdict, dataclass, field
from typing import Any

from stock_tracker.utils.values import clean_text, is_displayable, parse_numeric

TOP_MOVER_LISTS = {
    "gainers": "top_gainers",
    "losers": "top_losers",
    "most_active": "most_actively_traded",
}


def _number(raw: Any) -> float | None:
    """Numeric value, or None when upstream marked it missing."""
    return parse_numeric(raw) if is_displayable(raw) else None


def _display(raw: Any) -> str:
    """Upstream display string, "0" when absent."""
    return str(raw).strip() if is_displayable(raw) else "0"


@dataclass(frozen=True)
class OverviewRecord:
    """Company overview. Numeric fields are None when upstream has no value."""

    symbol: str
    name: str | None = None
    description: str | None = None
    asset_type: str | None = None
    exchange: str | None = None
    currency: str | None = None
    country: str | None = None
    sector: str | None = None
    industry: str | None = None
    market_cap: float | None = None
    pe_ratio: float | None = None
    peg_ratio: float | None = None
    eps: float | None = None
    beta: float | None = None
    dividend_yield: float | None = None
    profit_margin: float | None = None
    book_value: float | None = None
    analyst_target_price: float | None = None
    week_52_high: float | None = None
    week_52_low: float | None = None
    moving_average_50: float | None = None
    moving_average_200: float | None = None
    shares_outstanding: float | None = None
    latest_quarter: str | None = None
    dividend_date: str | None = None
    ex_dividend_date: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], symbol: str) -> "OverviewRecord":
        return cls(
            symbol=clean_text(payload.get("Symbol"), max_length=16) or symbol,
            name=clean_text(payload.get("Name"), max_length=200),
            description=clean_text(payload.get("Description")),
            asset_type=clean_text(payload.get("AssetType"), max_length=50),
            exchange=clean_text(payload.get("Exchange"), max_length=50),
            currency=clean_text(payload.get("Currency"), max_length=10),
            country=clean_text(payload.get("Country"), max_length=100),
            sector=clean_text(payload.get("Sector"), max_length=100),
            industry=clean_text(payload.get("Industry"), max_length=200),
            market_cap=_number(payload.get("MarketCapitalization")),
            pe_ratio=_number(payload.get("PERatio")),
            peg_ratio=_number(payload.get("PEGRatio")),
            eps=_number(payload.get("EPS")),
            beta=_number(payload.get("Beta")),
            dividend_yield=_number(payload.get("DividendYield")),
            profit_margin=_number(payload.get("ProfitMargin")),
            book_value=_number(payload.get("BookValue")),
            analyst_target_price=_number(payload.get("AnalystTargetPrice")),
            week_52_high=_number(payload.get("52WeekHigh")),
            week_52_low=_number(payload.get("52WeekLow")),
            moving_average_50=_number(payload.get("50DayMovingAverage")),
            moving_average_200=_number(payload.get("200DayMovingAverage")),
            shares_outstanding=_number(payload.get("SharesOutstanding")),
            latest_quarter=clean_text(payload.get("LatestQuarter"), max_length=20),
            dividend_date=clean_text(payload.get("DividendDate"), max_length=20),
            ex_dividend_date=clean_text(payload.get("ExDividendDate"), max_length=20),
            raw=dict(payload),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("raw")
        return data


@dataclass(frozen=True)
class StockSummary:
    """One row of the top movers lists. Values stay as upstream display strings."""

    ticker: str
    price: str
    change_amount: str
    change_percent: str
    volume: str

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> "StockSummary":
        return cls(
            ticker=_display(item.get("ticker")),
            price=_display(item.get("price")),
            change_amount=_display(item.get("change_amount")),
            change_percent=_display(item.get("change_percentage")),
            volume=_display(item.get("volume")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SymbolMatch:
    """One SYMBOL_SEARCH result."""

    symbol: str
    name: str | None
    type: str | None
    region: str | None
    currency: str | None
    match_score: float

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> "SymbolMatch":
        fields = {str(k).split(". ", 1)[-1]: v for k, v in item.items()}
        return cls(
            symbol=_display(fields.get("symbol")),
            name=clean_text(fields.get("name"), max_length=200),
            type=clean_text(fields.get("type"), max_length=50),
            region=clean_text(fields.get("region"), max_length=100),
            currency=clean_text(fields.get("currency"), max_length=10),
            match_score=parse_numeric(fields.get("matchScore")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
