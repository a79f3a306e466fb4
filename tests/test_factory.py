"""Tests for adapter wiring."""

import httpx

from analyst_mcp.config import Settings
from analyst_mcp.data.alphavantage import AlphaVantageClient
from analyst_mcp.data.factory import build_sources
from analyst_mcp.data.finnhub import FinnhubClient
from analyst_mcp.data.narrative import HttpNarrativeClient
from analyst_mcp.data.yfinance_client import YFinanceClient


class TestBuildSources:
    """Tests for build_sources."""

    def test_default_wiring(self) -> None:
        sources = build_sources(Settings(), httpx.AsyncClient())
        assert isinstance(sources.quote, FinnhubClient)
        assert isinstance(sources.history, AlphaVantageClient)
        assert isinstance(sources.peers, FinnhubClient)
        assert isinstance(sources.movers, AlphaVantageClient)
        assert sources.narrative is None

    def test_yfinance_selected(self) -> None:
        settings = Settings(quote_provider="yfinance", history_provider="yfinance")
        sources = build_sources(settings, httpx.AsyncClient())
        assert isinstance(sources.quote, YFinanceClient)
        assert sources.quote is sources.history

    def test_narrative_when_configured(self) -> None:
        settings = Settings(narrative_url="http://narrative.test/report")
        sources = build_sources(settings, httpx.AsyncClient())
        assert isinstance(sources.narrative, HttpNarrativeClient)
