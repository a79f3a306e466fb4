"""Build the adapter set selected by configuration."""

import httpx

from analyst_mcp.config import Settings
from analyst_mcp.data.alphavantage import AlphaVantageClient
from analyst_mcp.data.base import HistorySource, QuoteSource, Sources
from analyst_mcp.data.finnhub import FinnhubClient
from analyst_mcp.data.narrative import HttpNarrativeClient
from analyst_mcp.data.yfinance_client import YFinanceClient


def build_sources(settings: Settings, http_client: httpx.AsyncClient) -> Sources:
    """
    Wire adapters for one invocation.

    Peers always come from Finnhub and movers from Alpha Vantage; quote and
    history providers are selectable. The narrative source is only present
    when NARRATIVE_URL is set.
    """
    finnhub = FinnhubClient(settings, http_client)
    alphavantage = AlphaVantageClient(settings, http_client)
    yfinance = None

    if settings.quote_provider == "yfinance" or settings.history_provider == "yfinance":
        yfinance = YFinanceClient(settings)

    quote: QuoteSource = yfinance if settings.quote_provider == "yfinance" else finnhub
    history: HistorySource = (
        yfinance if settings.history_provider == "yfinance" else alphavantage
    )
    narrative = (
        HttpNarrativeClient(settings, http_client) if settings.narrative_url else None
    )

    return Sources(
        quote=quote,
        history=history,
        peers=finnhub,
        movers=alphavantage,
        narrative=narrative,
    )
