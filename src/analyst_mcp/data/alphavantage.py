"""Alpha Vantage daily history and market-mover adapters."""

import logging
import math
from typing import Any

import httpx

from analyst_mcp.config import Settings
from analyst_mcp.data.base import HistorySource, MoversSource
from analyst_mcp.data.errors import (
    MalformedPayloadError,
    ProviderUnavailableError,
    RateLimitedError,
    TickerNotFoundError,
)
from analyst_mcp.data.http import fetch_json, looks_rate_limited, with_retries
from analyst_mcp.models import HISTORY_LENGTH, PricePoint, PriceSeries
from analyst_mcp.utils.validators import normalize_ticker

logger = logging.getLogger(__name__)

PROVIDER = "alphavantage"
DAILY_SERIES_KEY = "Time Series (Daily)"
CLOSE_KEY = "4. close"
MOVER_LISTS = ("top_gainers", "top_losers", "most_actively_traded")

# Keys Alpha Vantage uses for notices embedded in a 200 response
_NOTICE_KEYS = ("Note", "Information")


def _check_notices(data: Any, symbol: str | None) -> None:
    """Raise for quota notices and explicit errors hidden in a 200 body."""
    if not isinstance(data, dict):
        return
    for key in _NOTICE_KEYS:
        notice = data.get(key)
        if notice is None:
            continue
        if looks_rate_limited(notice):
            raise RateLimitedError(
                f"Alpha Vantage API limit reached: {notice}", provider=PROVIDER, symbol=symbol
            )
        # Any other notice (premium endpoint, demo key) still means no data
        raise ProviderUnavailableError(
            f"Alpha Vantage notice: {notice}", provider=PROVIDER, symbol=symbol
        )
    if "Error Message" in data:
        raise TickerNotFoundError(
            f"Alpha Vantage rejected {symbol}: {data['Error Message']}",
            provider=PROVIDER,
            symbol=symbol,
        )


def parse_daily_series(data: Any, limit: int = HISTORY_LENGTH) -> PriceSeries:
    """
    Convert a TIME_SERIES_DAILY payload into an ascending PriceSeries.

    Alpha Vantage lists days most-recent-first. The newest `limit` dates are
    kept and returned oldest-first. Any structural problem (missing series
    key, non-numeric or non-finite close) yields an empty series.
    """
    if not isinstance(data, dict):
        return ()
    series = data.get(DAILY_SERIES_KEY)
    if not isinstance(series, dict):
        return ()

    points: dict[str, float] = {}
    # Sort explicitly rather than trusting mapping order
    for date in sorted(series, reverse=True):
        if len(points) >= limit:
            break
        record = series[date]
        if not isinstance(record, dict):
            return ()
        try:
            close = float(record[CLOSE_KEY])
        except (KeyError, TypeError, ValueError):
            return ()
        if not math.isfinite(close):
            return ()
        date_key = str(date)[:10]
        if date_key in points:
            continue
        points[date_key] = close

    return tuple(PricePoint(date=d, close_price=points[d]) for d in sorted(points))


class AlphaVantageClient(HistorySource, MoversSource):
    """Alpha Vantage REST adapter (free tier: 25 requests/day)."""

    name = PROVIDER

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http_client = http_client

    async def _query(self, params: dict[str, Any], symbol: str | None = None) -> Any:
        if not self.settings.alphavantage_api_key:
            raise ProviderUnavailableError(
                "ALPHAVANTAGE_API_KEY is not configured", provider=PROVIDER, symbol=symbol
            )

        async def _attempt() -> Any:
            return await fetch_json(
                self.http_client,
                self.settings.alphavantage_base_url,
                provider=PROVIDER,
                params={**params, "apikey": self.settings.alphavantage_api_key},
                symbol=symbol,
            )

        data = await with_retries(
            f"alphavantage.{params['function']}({symbol or '-'})", _attempt, self.settings
        )
        _check_notices(data, symbol)
        return data

    async def get_history(self, ticker: str) -> PriceSeries:
        """
        Fetch the most recent daily closes.

        Returns an empty series for malformed payloads. Rate-limit notices
        raise RateLimitedError so they are never mistaken for "no data".
        """
        symbol = normalize_ticker(ticker)
        data = await self._query({"function": "TIME_SERIES_DAILY", "symbol": symbol}, symbol)
        series = parse_daily_series(data)
        if not series:
            logger.warning(f"alphavantage: unusable daily series for {symbol}")
        return series

    async def get_market_movers(self) -> dict[str, list[dict[str, Any]]]:
        """Fetch today's top gainers/losers/most active lists, provider order preserved."""
        data = await self._query({"function": "TOP_GAINERS_LOSERS"})
        if not isinstance(data, dict):
            raise MalformedPayloadError("Alpha Vantage movers payload is not an object", provider=PROVIDER)

        lists: dict[str, list[dict[str, Any]]] = {}
        for key in MOVER_LISTS:
            raw = data.get(key)
            lists[key] = [r for r in raw if isinstance(r, dict)] if isinstance(raw, list) else []

        if not any(lists.values()):
            raise MalformedPayloadError("Alpha Vantage movers payload has no lists", provider=PROVIDER)
        return lists
