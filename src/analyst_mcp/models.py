"""Report and scan data model.

Every entity is a frozen dataclass built fresh per call. `to_dict()` produces
the JSON shape served to the presentation layer.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar

HISTORY_LENGTH = 30


class Trend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Horizon(str, Enum):
    DAY_TRADE = "day_trade"
    SWING_TRADE = "swing_trade"
    LONG_TERM = "long_term"
    DEFENSIVE = "defensive"


class Call(str, Enum):
    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"
    AVOID = "avoid"
    SHORT = "short"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class Quote:
    """Current quote for one ticker."""

    ticker: str
    last_price: float
    change_percent: float
    session_high: float | None = None
    session_low: float | None = None
    source: str = "unknown"


@dataclass(frozen=True)
class PricePoint:
    date: str
    close_price: float

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "close_price": self.close_price}


# Chronological ascending, unique dates
PriceSeries = tuple[PricePoint, ...]


@dataclass(frozen=True)
class Indicators:
    """Technical indicators derived from a price series."""

    rsi_14: float = 50.0
    trend: Trend = Trend.NEUTRAL
    available: bool = False
    # Closes the indicators were computed from
    points: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "rsi_14": round(self.rsi_14, 2),
            "trend": self.trend.value,
            "available": self.available,
        }


@dataclass(frozen=True)
class Verdict:
    horizon: Horizon
    call: Call
    confidence: float
    rationale: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.rationale:
            raise ValueError(f"Verdict for {self.horizon.value} needs at least one rationale")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "call": self.call.value,
            "confidence": self.confidence,
            "rationale": list(self.rationale),
        }


@dataclass(frozen=True)
class Summary:
    one_liner: str
    market_mood: Trend
    risk_level: RiskLevel

    def to_dict(self) -> dict[str, Any]:
        return {
            "one_liner": self.one_liner,
            "market_mood": self.market_mood.value,
            "risk_level": self.risk_level.value,
        }


@dataclass(frozen=True)
class NewsAnalysis:
    sentiment: Sentiment
    narrative: str
    catalyst_risk: RiskLevel

    def to_dict(self) -> dict[str, Any]:
        return {
            "sentiment": self.sentiment.value,
            "narrative": self.narrative,
            "catalyst_risk": self.catalyst_risk.value,
        }


@dataclass(frozen=True)
class AnalystReport:
    """
    Canonical analyst report.

    All four horizons are always present. A price of 0 means no price source
    resolved and must be rendered as pending, never as $0.00.
    """

    ticker: str
    price: float
    change_percent: float
    summary: Summary
    verdicts: dict[Horizon, Verdict]
    news: NewsAnalysis
    history: PriceSeries = ()
    indicators: Indicators = field(default_factory=Indicators)
    confidence_notes: tuple[str, ...] = ()
    related_tickers: tuple[str, ...] = ()
    session_high: float | None = None
    session_low: float | None = None

    def __post_init__(self) -> None:
        missing = [h.value for h in Horizon if h not in self.verdicts]
        if missing:
            raise ValueError(f"Report for {self.ticker} is missing verdicts: {missing}")

    @property
    def price_pending(self) -> bool:
        return self.price == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticker": self.ticker,
            "price": self.price,
            "price_pending": self.price_pending,
            "change_percent": self.change_percent,
            "session_high": self.session_high,
            "session_low": self.session_low,
            "summary": self.summary.to_dict(),
            "verdicts": {h.value: self.verdicts[h].to_dict() for h in Horizon},
            "news": self.news.to_dict(),
            "indicators": self.indicators.to_dict(),
            "history": [p.to_dict() for p in self.history],
            "confidence_notes": list(self.confidence_notes),
            "related_tickers": list(self.related_tickers),
        }


# ============================================================================
# SCAN CANDIDATES
# ============================================================================


@dataclass(frozen=True)
class Sourced:
    """Value taken from a live provider response."""

    value: float
    is_estimated: ClassVar[bool] = False

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "provenance": "sourced"}


@dataclass(frozen=True)
class Estimated:
    """Heuristic stand-in for a value the provider does not expose."""

    value: float
    basis: str
    is_estimated: ClassVar[bool] = True

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "provenance": "estimated", "basis": self.basis}


FieldValue = Sourced | Estimated


class _ScanCandidate:
    """Shared behaviour for scan records."""

    @property
    def estimated_fields(self) -> list[str]:
        return [
            f.name
            for f in fields(self)  # type: ignore[arg-type]
            if isinstance(getattr(self, f.name), Estimated)
        ]

    @property
    def has_estimates(self) -> bool:
        return bool(self.estimated_fields)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            out[f.name] = value.to_dict() if isinstance(value, (Sourced, Estimated)) else value
        return out


@dataclass(frozen=True)
class Mover(_ScanCandidate):
    ticker: str
    company_name: str
    price: FieldValue
    change_percent: FieldValue
    volume: int
    catalyst: str


@dataclass(frozen=True)
class SqueezeCandidate(_ScanCandidate):
    ticker: str
    company_name: str
    price: FieldValue
    change_percent: FieldValue
    volume: int
    short_interest_pct: FieldValue
    days_to_cover: FieldValue
    squeeze_score: FieldValue
    float_size: str
    rationale: str


ScanCandidate = Mover | SqueezeCandidate


@dataclass(frozen=True)
class ScanResult:
    """
    Scan output with a mechanically derived provenance flag.

    `is_live` is True only when the provider call succeeded and no candidate
    carries an estimated field.
    """

    candidates: tuple[ScanCandidate, ...]
    provider_ok: bool

    @property
    def is_live(self) -> bool:
        return self.provider_ok and not any(c.has_estimates for c in self.candidates)

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidates": [c.to_dict() for c in self.candidates],
            "isLive": self.is_live,
        }
