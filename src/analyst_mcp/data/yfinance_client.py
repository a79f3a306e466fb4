"""yfinance quote and history adapters (keyless alternative to Finnhub/Alpha Vantage)."""

import asyncio
import logging
import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

import pandas as pd
import yfinance as yf
from requests.exceptions import HTTPError

from analyst_mcp.config import Settings
from analyst_mcp.data.base import HistorySource, QuoteSource
from analyst_mcp.data.errors import (
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
    TickerNotFoundError,
)
from analyst_mcp.data.http import with_retries
from analyst_mcp.models import PriceSeries, Quote
from analyst_mcp.utils.coerce import to_number, to_optional_number
from analyst_mcp.utils.ohlcv import frame_to_series
from analyst_mcp.utils.validators import normalize_ticker

logger = logging.getLogger(__name__)

PROVIDER = "yfinance"

# yfinance is synchronous; calls run on a small bounded pool
_max_workers = int(os.environ.get("YF_MAX_WORKERS", "4"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)

T = TypeVar("T")


def _classify_error(error: Exception, symbol: str) -> ProviderError:
    """Map a raw yfinance/requests exception onto the provider taxonomy."""
    if isinstance(error, ProviderError):
        return error

    if (
        isinstance(error, HTTPError)
        and hasattr(error, "response")
        and error.response is not None
    ):
        status_code = error.response.status_code
        if status_code == 429:
            return RateLimitedError(
                f"yfinance rate limited for {symbol}", provider=PROVIDER, symbol=symbol
            )
        if status_code == 404:
            return TickerNotFoundError(
                f"Ticker {symbol} not found on yfinance", provider=PROVIDER, symbol=symbol
            )

    error_str = str(error).lower()
    if "too many requests" in error_str or "rate limit" in error_str:
        return RateLimitedError(
            f"yfinance rate limited for {symbol}", provider=PROVIDER, symbol=symbol
        )
    return ProviderUnavailableError(
        f"yfinance failed for {symbol}: {type(error).__name__}: {error}",
        provider=PROVIDER,
        symbol=symbol,
    )


class YFinanceClient(QuoteSource, HistorySource):
    """Yahoo Finance adapter via yfinance, run off the event loop."""

    name = PROVIDER

    def __init__(self, settings: Settings, history_period: str = "3mo"):
        self.settings = settings
        self.history_period = history_period

    async def _run(self, operation_name: str, symbol: str, sync_func: Callable[[], T]) -> T:
        async def _attempt() -> T:
            loop = asyncio.get_running_loop()
            try:
                return await loop.run_in_executor(_executor, sync_func)
            except Exception as e:
                raise _classify_error(e, symbol) from e

        return await with_retries(operation_name, _attempt, self.settings)

    async def get_quote(self, ticker: str) -> Quote:
        symbol = normalize_ticker(ticker)

        def _fetch() -> dict[str, Any]:
            fast_info = yf.Ticker(symbol).fast_info
            return {
                "last_price": fast_info.last_price,
                "previous_close": fast_info.previous_close,
                "day_high": fast_info.day_high,
                "day_low": fast_info.day_low,
            }

        data = await self._run(f"yfinance.quote({symbol})", symbol, _fetch)

        price = to_number(data.get("last_price"))
        if price <= 0:
            raise TickerNotFoundError(
                f"Ticker {symbol} not found on yfinance", provider=PROVIDER, symbol=symbol
            )

        previous_close = to_number(data.get("previous_close"))
        change_percent = (
            (price - previous_close) / previous_close * 100 if previous_close > 0 else 0.0
        )
        return Quote(
            ticker=symbol,
            last_price=float(price),
            change_percent=round(float(change_percent), 4),
            session_high=to_optional_number(data.get("day_high")),
            session_low=to_optional_number(data.get("day_low")),
            source=PROVIDER,
        )

    async def get_history(self, ticker: str) -> PriceSeries:
        symbol = normalize_ticker(ticker)

        def _fetch() -> pd.DataFrame:
            return yf.download(
                tickers=symbol,
                period=self.history_period,
                interval="1d",
                auto_adjust=True,
                progress=False,
            )

        df = await self._run(f"yfinance.history({symbol})", symbol, _fetch)
        if df is None or df.empty:
            logger.warning(f"yfinance: no daily history for {symbol}")
            return ()
        return frame_to_series(df)


async def shutdown_executor() -> None:
    """Cleanup on server shutdown."""
    _executor.shutdown(wait=False, cancel_futures=True)
