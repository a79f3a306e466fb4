"""Sanitization of untrusted report payloads into the canonical schema.

Every field of an AnalystReport resolves to a type-correct value. When a
field is missing, null or the wrong type, these documented defaults apply:

    summary.one_liner      DEFAULT_ONE_LINER
    summary.market_mood    neutral
    summary.risk_level     medium
    verdict.call           hold
    verdict.confidence     0.5 (values in (1, 100] are read as percentages)
    verdict.rationale      [DEFAULT_RATIONALE]
    news.sentiment         neutral
    news.narrative         DEFAULT_NARRATIVE
    news.catalyst_risk     medium
    confidence_notes       [DEFAULT_NOTE]
    price                  0 (pending)
"""

import json
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any, TypeVar

from analyst_mcp.models import (
    AnalystReport,
    Call,
    Horizon,
    Indicators,
    NewsAnalysis,
    PriceSeries,
    Quote,
    RiskLevel,
    Sentiment,
    Summary,
    Trend,
    Verdict,
)
from analyst_mcp.utils.coerce import to_number
from analyst_mcp.utils.validators import dedupe_tickers, normalize_ticker

DEFAULT_ONE_LINER = "Synthesizing real-time market data..."
DEFAULT_NARRATIVE = "Scanning recent news flow..."
DEFAULT_RATIONALE = "Awaiting specific market catalysts."
DEFAULT_NOTE = "Model synthesizing data."
DEFAULT_CONFIDENCE = 0.5

# Checked in order when no live quote price is available
PRICE_KEYS = ("price", "current_price", "last_price", "market_price", "last")

RELATED_LIMIT = 6

E = TypeVar("E", bound=Enum)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def sanitize_text(text: Any, default: str = "", max_length: int = 500) -> str:
    """
    Clean an untrusted free-text field.

    Removes control characters and truncates to max_length. Non-strings and
    strings that end up empty resolve to `default`.
    """
    if not isinstance(text, str):
        return default

    text = _CONTROL_CHARS.sub("", text)
    if len(text) > max_length:
        text = text[:max_length] + "..."

    text = text.strip()
    return text or default


def sanitize_enum(value: Any, enum_cls: type[E], default: E) -> E:
    """Map a loose string (any case, surrounding whitespace) onto an enum member."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower().replace(" ", "_"))
        except ValueError:
            return default
    return default


def parse_model_json(text: Any) -> dict[str, Any] | None:
    """
    Extract a JSON object from model output.

    Strips markdown code fences. Returns None when no object can be parsed.
    """
    if isinstance(text, Mapping):
        return dict(text)
    if not isinstance(text, str):
        return None

    cleaned = _CODE_FENCE.sub("", text).strip()
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        # Model prose around the object: fall back to the outermost braces
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except ValueError:
            return None
    return parsed if isinstance(parsed, dict) else None


def find_price(payload: Any) -> float:
    """First non-zero price among PRICE_KEYS, else 0."""
    if not isinstance(payload, Mapping):
        return 0.0
    for key in PRICE_KEYS:
        price = to_number(payload.get(key))
        if price > 0:
            return float(price)
    return 0.0


def resolve_price(quote: Quote | None, auxiliary: Any = None) -> tuple[float, float, str]:
    """
    Apply price precedence.

    A live quote with a non-zero price wins. Otherwise the auxiliary payload
    is checked (PRICE_KEYS). Otherwise price is 0 and must be shown as pending.

    Returns:
        Tuple of (price, change_percent, source) where source is
        "quote", "auxiliary" or "pending"
    """
    if quote is not None and quote.last_price > 0:
        return float(quote.last_price), float(quote.change_percent), "quote"

    price = find_price(auxiliary)
    if price > 0:
        change = to_number(auxiliary.get("change_percent"))
        return price, float(change), "auxiliary"

    change = float(quote.change_percent) if quote is not None else 0.0
    return 0.0, change, "pending"


def sanitize_confidence(value: Any) -> float:
    confidence = float(to_number(value))
    if confidence <= 0:
        return DEFAULT_CONFIDENCE
    if confidence > 1:
        confidence = confidence / 100 if confidence <= 100 else 1.0
    return round(min(confidence, 1.0), 4)


def sanitize_rationale(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return (DEFAULT_RATIONALE,)
    lines = tuple(
        line for line in (sanitize_text(v, max_length=200) for v in value) if line
    )
    return lines or (DEFAULT_RATIONALE,)


def sanitize_verdict(raw: Any, horizon: Horizon) -> Verdict:
    """Coerce one verdict-shaped value. Verdict instances pass through."""
    if isinstance(raw, Verdict):
        return raw
    if not isinstance(raw, Mapping):
        raw = {}
    return Verdict(
        horizon=horizon,
        call=sanitize_enum(raw.get("call", raw.get("verdict")), Call, Call.HOLD),
        confidence=sanitize_confidence(raw.get("confidence")),
        rationale=sanitize_rationale(raw.get("rationale")),
    )


def _section(raw: Mapping, *keys: str) -> Mapping:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, Mapping):
            return value
    return {}


def sanitize_report(
    raw: Any,
    ticker: str,
    *,
    quote: Quote | None = None,
    history: PriceSeries = (),
    indicators: Indicators | None = None,
    auxiliary: Any = None,
) -> AnalystReport:
    """
    Build a fully-populated AnalystReport from an untrusted mapping.

    Args:
        raw: Report-shaped mapping (assembled fields, model output, anything)
        ticker: Requested ticker; always wins over any ticker in `raw`
        quote: Live quote, authoritative for price when non-zero
        history: Already-validated ascending series
        indicators: Indicators computed from `history`
        auxiliary: Extra payload searched for a price when the quote has none

    Returns:
        AnalystReport with every field defined
    """
    if not isinstance(raw, Mapping):
        raw = {}
    symbol = normalize_ticker(ticker)

    price, change_percent, _ = resolve_price(quote, auxiliary if auxiliary is not None else raw)

    summary_raw = _section(raw, "summary", "overall_summary")
    news_raw = _section(raw, "news", "news_analysis")
    verdicts_raw = _section(raw, "verdicts")

    notes_raw = raw.get("confidence_notes")
    notes = (
        tuple(n for n in (sanitize_text(v) for v in notes_raw) if n)
        if isinstance(notes_raw, (list, tuple))
        else ()
    )

    related_raw = raw.get("related_tickers", raw.get("related_stocks"))
    related = (
        dedupe_tickers(list(related_raw), exclude=symbol, limit=RELATED_LIMIT)
        if isinstance(related_raw, (list, tuple, set, frozenset))
        else ()
    )

    return AnalystReport(
        ticker=symbol,
        price=price,
        change_percent=change_percent,
        summary=Summary(
            one_liner=sanitize_text(summary_raw.get("one_liner"), DEFAULT_ONE_LINER, 280),
            market_mood=sanitize_enum(summary_raw.get("market_mood"), Trend, Trend.NEUTRAL),
            risk_level=sanitize_enum(summary_raw.get("risk_level"), RiskLevel, RiskLevel.MEDIUM),
        ),
        verdicts={h: sanitize_verdict(verdicts_raw.get(h.value), h) for h in Horizon},
        news=NewsAnalysis(
            sentiment=sanitize_enum(news_raw.get("sentiment"), Sentiment, Sentiment.NEUTRAL),
            narrative=sanitize_text(
                news_raw.get("narrative") or news_raw.get("narrative_summary"), DEFAULT_NARRATIVE
            ),
            catalyst_risk=sanitize_enum(
                news_raw.get("catalyst_risk"), RiskLevel, RiskLevel.MEDIUM
            ),
        ),
        history=tuple(history),
        indicators=indicators or Indicators(),
        confidence_notes=notes or (DEFAULT_NOTE,),
        related_tickers=related,
        session_high=quote.session_high if quote is not None else None,
        session_low=quote.session_low if quote is not None else None,
    )
