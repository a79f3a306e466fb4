"""Provider adapters for quotes, history, peers, movers and narrative."""

from analyst_mcp.data.alphavantage import AlphaVantageClient, parse_daily_series
from analyst_mcp.data.base import (
    HistorySource,
    MoversSource,
    NarrativeSource,
    PeerSource,
    QuoteSource,
    Sources,
)
from analyst_mcp.data.errors import (
    CredentialsRejectedError,
    MalformedPayloadError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
    ReportAssemblyError,
    TickerNotFoundError,
)
from analyst_mcp.data.factory import build_sources
from analyst_mcp.data.finnhub import FinnhubClient
from analyst_mcp.data.narrative import HttpNarrativeClient
from analyst_mcp.data.yfinance_client import YFinanceClient, shutdown_executor

__all__ = [
    # Interfaces
    "HistorySource",
    "MoversSource",
    "NarrativeSource",
    "PeerSource",
    "QuoteSource",
    "Sources",
    "build_sources",
    # Adapters
    "AlphaVantageClient",
    "FinnhubClient",
    "HttpNarrativeClient",
    "YFinanceClient",
    "parse_daily_series",
    "shutdown_executor",
    # Errors
    "CredentialsRejectedError",
    "MalformedPayloadError",
    "ProviderError",
    "ProviderUnavailableError",
    "RateLimitedError",
    "ReportAssemblyError",
    "TickerNotFoundError",
]
