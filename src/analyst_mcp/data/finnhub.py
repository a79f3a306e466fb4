"""Finnhub quote and peer adapters."""

import logging
from typing import Any

import httpx

from analyst_mcp.config import Settings
from analyst_mcp.data.base import PeerSource, QuoteSource
from analyst_mcp.data.errors import (
    MalformedPayloadError,
    ProviderUnavailableError,
    RateLimitedError,
    TickerNotFoundError,
)
from analyst_mcp.data.http import fetch_json, looks_rate_limited, with_retries
from analyst_mcp.models import Quote
from analyst_mcp.utils.coerce import to_number, to_optional_number
from analyst_mcp.utils.validators import dedupe_tickers, normalize_ticker

logger = logging.getLogger(__name__)

PROVIDER = "finnhub"
PEER_LIMIT = 6


class FinnhubClient(QuoteSource, PeerSource):
    """
    Finnhub REST adapter.

    Quote payload: {"c": price, "d": change, "dp": change %, "h": high,
    "l": low, "o": open, "pc": previous close, "t": timestamp}. Unknown
    tickers come back as HTTP 200 with every field zero or null.
    """

    name = PROVIDER

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http_client = http_client
        self.base_url = settings.finnhub_base_url.rstrip("/")

    async def _get(self, path: str, symbol: str) -> Any:
        if not self.settings.finnhub_api_key:
            raise ProviderUnavailableError(
                "FINNHUB_API_KEY is not configured", provider=PROVIDER, symbol=symbol
            )

        async def _attempt() -> Any:
            return await fetch_json(
                self.http_client,
                f"{self.base_url}{path}",
                provider=PROVIDER,
                params={"symbol": symbol, "token": self.settings.finnhub_api_key},
                symbol=symbol,
            )

        data = await with_retries(f"finnhub{path}({symbol})", _attempt, self.settings)

        # Finnhub reports some failures as {"error": "..."} with a 200
        if isinstance(data, dict) and "error" in data:
            message = str(data["error"])
            if looks_rate_limited(message):
                raise RateLimitedError(
                    f"finnhub: {message}", provider=PROVIDER, symbol=symbol
                )
            raise MalformedPayloadError(f"finnhub: {message}", provider=PROVIDER, symbol=symbol)
        return data

    async def get_quote(self, ticker: str) -> Quote:
        """
        Fetch the current quote.

        Raises:
            ValueError: Invalid ticker
            TickerNotFoundError: Finnhub returned an all-zero quote
            MalformedPayloadError: No usable price field
            RateLimitedError / ProviderUnavailableError: Transport problems
        """
        symbol = normalize_ticker(ticker)
        data = await self._get("/quote", symbol)

        if not isinstance(data, dict):
            raise MalformedPayloadError(
                f"finnhub quote for {symbol} is not an object", provider=PROVIDER, symbol=symbol
            )

        price = to_number(data.get("c"))
        if price <= 0:
            if not to_number(data.get("pc")):
                raise TickerNotFoundError(
                    f"Ticker {symbol} not found on finnhub", provider=PROVIDER, symbol=symbol
                )
            raise MalformedPayloadError(
                f"finnhub quote for {symbol} has no usable price", provider=PROVIDER, symbol=symbol
            )

        return Quote(
            ticker=symbol,
            last_price=float(price),
            change_percent=float(to_number(data.get("dp"))),
            session_high=to_optional_number(data.get("h")),
            session_low=to_optional_number(data.get("l")),
            source=PROVIDER,
        )

    async def get_peers(self, ticker: str) -> tuple[str, ...]:
        """Related symbols, excluding the ticker itself, capped at PEER_LIMIT."""
        symbol = normalize_ticker(ticker)
        data = await self._get("/stock/peers", symbol)

        if not isinstance(data, list):
            raise MalformedPayloadError(
                f"finnhub peers for {symbol} is not a list", provider=PROVIDER, symbol=symbol
            )
        return dedupe_tickers(data, exclude=symbol, limit=PEER_LIMIT)
