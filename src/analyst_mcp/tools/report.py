"""Analyst report assembly."""

import asyncio
import logging
from collections.abc import Awaitable, Mapping
from time import perf_counter
from typing import Any, TypeVar

from analyst_mcp.config import Settings
from analyst_mcp.data.base import Sources
from analyst_mcp.data.errors import (
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
    ReportAssemblyError,
)
from analyst_mcp.data.factory import build_sources
from analyst_mcp.data.http import build_client
from analyst_mcp.models import (
    AnalystReport,
    Indicators,
    PriceSeries,
    Quote,
    RiskLevel,
    Sentiment,
    Trend,
)
from analyst_mcp.tools.verdicts import synthesize_verdicts
from analyst_mcp.utils.indicators import RSI_PERIOD, TREND_LOOKBACK, compute_indicators
from analyst_mcp.utils.sanitize import resolve_price, sanitize_report
from analyst_mcp.utils.validators import normalize_ticker

logger = logging.getLogger(__name__)

T = TypeVar("T")

HIGH_RISK_MOVE = 4.0
LOW_RISK_MOVE = 1.0

_TREND_SENTIMENT = {
    Trend.BULLISH: Sentiment.POSITIVE,
    Trend.BEARISH: Sentiment.NEGATIVE,
    Trend.NEUTRAL: Sentiment.NEUTRAL,
}


async def run_bounded(
    name: str, coro: Awaitable[T], timeout: float
) -> tuple[str, T | Exception, float]:
    """
    Await one adapter call under a timeout, capturing failure as a value.

    A timeout is reported as ProviderUnavailableError so callers treat it
    exactly like any other failed call.

    Returns:
        Tuple of (name, result or exception, duration_ms)
    """
    start = perf_counter()
    try:
        result: T | Exception = await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError:
        result = ProviderUnavailableError(f"{name} exceeded {timeout:g}s", provider=name)
    except Exception as e:
        result = e
    duration = (perf_counter() - start) * 1000
    if isinstance(result, Exception):
        logger.warning(f"{name}: {type(result).__name__}: {result}")
    return name, result, duration


def describe_failure(error: Exception) -> str:
    if isinstance(error, RateLimitedError):
        return f"{error.provider} rate limit reached"
    if isinstance(error, ProviderError):
        return f"{error.provider} {error.error_type.replace('_', ' ')}"
    return type(error).__name__


def classify_risk(change_percent: float) -> RiskLevel:
    move = abs(change_percent)
    if move > HIGH_RISK_MOVE:
        return RiskLevel.HIGH
    if move < LOW_RISK_MOVE:
        return RiskLevel.LOW
    return RiskLevel.MEDIUM


def _format_one_liner(quote: Quote, indicators: Indicators) -> str:
    sign = "+" if quote.change_percent >= 0 else ""
    price = f"${quote.last_price:,.2f}" if quote.last_price > 0 else "price pending"
    line = f"{quote.ticker} is {price} ({sign}{quote.change_percent:.2f}%)."
    if indicators.available:
        line += f" RSI: {indicators.rsi_14:.0f}."
    return line


def _narrative_fields(payload: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split a narrative payload (nested or flat) into summary and news sections."""
    summary = payload.get("summary") or payload.get("overall_summary")
    news = payload.get("news") or payload.get("news_analysis")
    summary = dict(summary) if isinstance(summary, Mapping) else {}
    news = dict(news) if isinstance(news, Mapping) else {}

    if "one_liner" in payload:
        summary.setdefault("one_liner", payload["one_liner"])
    for key in ("sentiment", "narrative", "catalyst_risk"):
        if key in payload:
            news.setdefault(key, payload[key])
    return summary, news


async def get_analyst_report(
    ticker: str,
    *,
    settings: Settings | None = None,
    sources: Sources | None = None,
) -> AnalystReport:
    """
    Build the analyst report for one ticker.

    Quote, history and peers are fetched concurrently. Only the quote is
    mandatory; history, peer and narrative failures degrade the report and
    are disclosed in confidence_notes.

    Args:
        ticker: Ticker symbol (any case)
        settings: Provider configuration (default: from environment)
        sources: Adapter set (default: built from settings)

    Returns:
        Fully populated AnalystReport

    Raises:
        ValueError: If the ticker is malformed
        ReportAssemblyError: If no quote could be obtained
    """
    symbol = normalize_ticker(ticker)
    settings = settings or Settings.from_env()

    if sources is not None:
        return await _assemble(symbol, settings, sources)

    async with build_client(settings) as client:
        return await _assemble(symbol, settings, build_sources(settings, client))


async def _assemble(symbol: str, settings: Settings, sources: Sources) -> AnalystReport:
    timeout = settings.call_timeout

    calls: list[tuple[str, Awaitable[Any]]] = [
        ("quote", sources.quote.get_quote(symbol)),
        ("history", sources.history.get_history(symbol)),
    ]
    if sources.peers is not None:
        calls.append(("peers", sources.peers.get_peers(symbol)))

    results = await asyncio.gather(*[run_bounded(name, coro, timeout) for name, coro in calls])
    outcome = {name: result for name, result, _ in results}

    quote = outcome["quote"]
    if isinstance(quote, Exception):
        raise ReportAssemblyError(
            symbol,
            str(quote) or describe_failure(quote),
            error_type=getattr(quote, "error_type", "data_unavailable"),
            retry_after_seconds=getattr(quote, "retry_after_seconds", None),
        )

    notes: list[str] = [f"Live quote from {quote.source}."]

    history_result = outcome["history"]
    history: PriceSeries = ()
    if isinstance(history_result, Exception):
        notes.append(
            f"Technical analysis degraded: price history unavailable "
            f"({describe_failure(history_result)}). RSI and trend use neutral defaults."
        )
    elif not history_result:
        notes.append(
            f"Technical analysis degraded: {sources.history.name} returned no usable "
            "price history. RSI and trend use neutral defaults."
        )
    else:
        history = tuple(history_result)

    indicators = compute_indicators(history)
    if indicators.available:
        notes.append(f"RSI(14) calculated at {indicators.rsi_14:.1f}.")
        notes.append(f"{len(history)}-session trend identified as {indicators.trend.value}.")
    elif history:
        fallback = (
            "RSI and trend use neutral defaults."
            if len(history) < TREND_LOOKBACK
            else f"RSI uses the neutral default; trend identified as {indicators.trend.value}."
        )
        notes.append(f"Only {len(history)} sessions of history (need {RSI_PERIOD}); {fallback}")

    related: tuple[str, ...] = ()
    peers_result = outcome.get("peers")
    if isinstance(peers_result, Exception):
        notes.append(f"Related tickers unavailable ({describe_failure(peers_result)}).")
    elif peers_result:
        related = tuple(peers_result)

    verdicts = synthesize_verdicts(indicators, quote.change_percent)
    risk = classify_risk(quote.change_percent)

    summary: dict[str, Any] = {
        "one_liner": _format_one_liner(quote, indicators),
        "market_mood": indicators.trend,
        "risk_level": risk,
    }
    news: dict[str, Any] = {
        "sentiment": _TREND_SENTIMENT[indicators.trend],
        "narrative": f"Price action shows {indicators.trend.value} momentum.",
        "catalyst_risk": risk,
    }

    narrative_payload: dict[str, Any] | None = None
    if sources.narrative is not None:
        context = {
            "ticker": symbol,
            "price": quote.last_price,
            "change_percent": quote.change_percent,
            "rsi_14": round(indicators.rsi_14, 2),
            "trend": indicators.trend.value,
        }
        _, narrative_result, _ = await run_bounded(
            "narrative", sources.narrative.get_narrative(context), timeout
        )
        # Narrative-owned fields fall back to placeholders, never to computed text
        summary.pop("one_liner")
        news = {}
        if isinstance(narrative_result, Exception):
            notes.append(
                f"Narrative unavailable ({describe_failure(narrative_result)}); "
                "placeholder text shown."
            )
        else:
            narrative_payload = narrative_result
            narrative_summary, news = _narrative_fields(narrative_result)
            summary["one_liner"] = narrative_summary.get("one_liner")

    _, _, price_source = resolve_price(quote, narrative_payload)
    if price_source == "pending":
        notes.append("Price pending: no source returned a usable price.")
    elif price_source == "auxiliary":
        notes.append("Price taken from the narrative payload; live quote had none.")

    raw = {
        "summary": summary,
        "verdicts": verdicts,
        "news": news,
        "confidence_notes": notes,
        "related_tickers": related,
    }
    return sanitize_report(
        raw,
        symbol,
        quote=quote,
        history=history,
        indicators=indicators,
        auxiliary=narrative_payload,
    )
