"""Market scans: top gainers and squeeze candidates."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from analyst_mcp.config import Settings
from analyst_mcp.data.base import QuoteSource, Sources
from analyst_mcp.data.factory import build_sources
from analyst_mcp.data.http import build_client
from analyst_mcp.models import (
    Estimated,
    Mover,
    Quote,
    ScanCandidate,
    ScanResult,
    Sourced,
    SqueezeCandidate,
)
from analyst_mcp.tools.report import run_bounded
from analyst_mcp.utils.coerce import to_int, to_number
from analyst_mcp.utils.sanitize import sanitize_text
from analyst_mcp.utils.validators import normalize_ticker

logger = logging.getLogger(__name__)

SCAN_LIMIT = 8
# Hard cap on concurrent quote calls per scan
MAX_CONCURRENT_QUOTES = 5

MOVER_CATALYST = "Significant relative volume spike."
SQUEEZE_RATIONALE = "Abnormal volume detected relative to other active names."
FLOAT_SIZE_UNKNOWN = "N/A"

# (floor, span) per estimated squeeze field; the top volume rank gets floor + span
_SQUEEZE_ESTIMATES = {
    "short_interest_pct": (12.0, 15.0),
    "days_to_cover": (2.0, 3.0),
    "squeeze_score": (65.0, 25.0),
}


def _parse_records(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Coerce raw list entries, dropping ones without a usable ticker. Order preserved."""
    parsed: list[dict[str, Any]] = []
    seen: set[str] = set()
    for record in records:
        try:
            symbol = normalize_ticker(record.get("ticker"))
        except ValueError:
            logger.debug(f"Skipping scan record with bad ticker: {record.get('ticker')!r}")
            continue
        if symbol in seen:
            continue
        seen.add(symbol)
        parsed.append(
            {
                "ticker": symbol,
                "price": float(to_number(record.get("price"))),
                "change_percent": float(to_number(record.get("change_percentage"))),
                "volume": to_int(record.get("volume")),
            }
        )
        if len(parsed) >= SCAN_LIMIT:
            break
    return parsed


async def sync_quotes(
    quote_source: QuoteSource, tickers: list[str], timeout: float
) -> dict[str, Quote]:
    """
    Fetch live quotes for many tickers, at most MAX_CONCURRENT_QUOTES at a time.

    Failed lookups are simply absent from the result.
    """
    semaphore = asyncio.Semaphore(MAX_CONCURRENT_QUOTES)

    async def _one(symbol: str):
        async with semaphore:
            return await run_bounded(f"quote({symbol})", quote_source.get_quote(symbol), timeout)

    results = await asyncio.gather(*[_one(t) for t in tickers])

    quotes: dict[str, Quote] = {}
    for ticker, (_, result, _) in zip(tickers, results):
        if not isinstance(result, Exception):
            quotes[ticker] = result
    logger.info(f"Quote sync: {len(quotes)}/{len(tickers)} live")
    return quotes


def _live_fields(record: dict[str, Any], quote: Quote | None) -> tuple[Sourced, Sourced]:
    if quote is not None:
        return Sourced(quote.last_price), Sourced(quote.change_percent)
    return Sourced(record["price"]), Sourced(record["change_percent"])


def _volume_ranks(records: list[dict[str, Any]]) -> list[int]:
    """0-based rank by descending volume; ties keep provider order."""
    order = sorted(range(len(records)), key=lambda i: -records[i]["volume"])
    ranks = [0] * len(records)
    for rank, index in enumerate(order):
        ranks[index] = rank
    return ranks


def _build_mover(record: dict[str, Any], quote: Quote | None, **_: Any) -> Mover:
    price, change = _live_fields(record, quote)
    return Mover(
        ticker=record["ticker"],
        company_name=record["ticker"],
        price=price,
        change_percent=change,
        volume=record["volume"],
        catalyst=MOVER_CATALYST,
    )


def _build_squeeze(
    record: dict[str, Any], quote: Quote | None, *, rank: int, total: int
) -> SqueezeCandidate:
    price, change = _live_fields(record, quote)
    strength = 1 - rank / total
    basis = f"volume rank {rank + 1} of {total}"
    estimates = {
        name: Estimated(round(floor + span * strength, 2), basis)
        for name, (floor, span) in _SQUEEZE_ESTIMATES.items()
    }
    return SqueezeCandidate(
        ticker=record["ticker"],
        company_name=record["ticker"],
        price=price,
        change_percent=change,
        volume=record["volume"],
        float_size=FLOAT_SIZE_UNKNOWN,
        rationale=sanitize_text(f"{SQUEEZE_RATIONALE} Ranked {rank + 1} of {total} by volume."),
        **estimates,
    )


async def _scan(
    list_name: str,
    build: Callable[..., ScanCandidate],
    settings: Settings | None,
    sources: Sources | None,
) -> ScanResult:
    settings = settings or Settings.from_env()
    if sources is not None:
        return await _run_scan(list_name, build, settings, sources)

    async with build_client(settings) as client:
        return await _run_scan(list_name, build, settings, build_sources(settings, client))


async def _run_scan(
    list_name: str,
    build: Callable[..., ScanCandidate],
    settings: Settings,
    sources: Sources,
) -> ScanResult:
    if sources.movers is None:
        logger.warning("No movers source configured")
        return ScanResult((), provider_ok=False)

    _, lists, _ = await run_bounded(
        "movers", sources.movers.get_market_movers(), settings.call_timeout
    )
    if isinstance(lists, Exception):
        return ScanResult((), provider_ok=False)

    records = _parse_records(lists.get(list_name, []))
    if not records:
        logger.warning(f"Movers list '{list_name}' is empty")
        return ScanResult((), provider_ok=True)

    quotes = await sync_quotes(
        sources.quote, [r["ticker"] for r in records], settings.call_timeout
    )
    ranks = _volume_ranks(records)
    candidates = tuple(
        build(record, quotes.get(record["ticker"]), rank=rank, total=len(records))
        for record, rank in zip(records, ranks)
    )
    return ScanResult(candidates, provider_ok=True)


async def get_top_movers(
    *, settings: Settings | None = None, sources: Sources | None = None
) -> ScanResult:
    """
    Today's top gainers, provider order preserved, at most SCAN_LIMIT.

    Price and change come from a live quote when one syncs, otherwise from
    the movers list itself. Every field is provider-sourced.
    """
    return await _scan("top_gainers", _build_mover, settings, sources)


async def get_squeeze_candidates(
    *, settings: Settings | None = None, sources: Sources | None = None
) -> ScanResult:
    """
    Squeeze candidates from today's most actively traded list.

    The movers feed carries no short-interest data, so short interest,
    days to cover and squeeze score are Estimated values scaled by volume
    rank. Results are therefore never reported as live.
    """
    return await _scan("most_actively_traded", _build_squeeze, settings, sources)
