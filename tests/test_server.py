"""Tests for MCP tool responses."""

import json

import pytest

from analyst_mcp import server
from analyst_mcp.data.errors import ReportAssemblyError
from analyst_mcp.models import Estimated, Mover, ScanResult, Sourced
from analyst_mcp.utils.indicators import compute_indicators
from analyst_mcp.utils.provenance import report_provenance
from analyst_mcp.utils.sanitize import sanitize_report


class TestReportResponse:
    """Tests for the analyst report tool response."""

    @pytest.mark.asyncio
    async def test_success_shape(self, monkeypatch: pytest.MonkeyPatch, aapl_quote) -> None:
        async def fake_report(ticker, *, settings=None, sources=None):
            return sanitize_report({}, ticker, quote=aapl_quote)

        monkeypatch.setattr(server, "get_analyst_report", fake_report)

        result = await server.report_response("AAPL")

        assert result["meta"]["tool"] == "get_analyst_report"
        assert "market_state" in result["data_provenance"]["quote"]
        assert result["data_provenance"]["history"]["status"] == "degraded"
        assert result["ticker"] == "AAPL"
        assert result["price"] == 227.5
        assert set(result["verdicts"]) == {"day_trade", "swing_trade", "long_term", "defensive"}
        json.dumps(result, default=str)

    @pytest.mark.asyncio
    async def test_assembly_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_report(ticker, *, settings=None, sources=None):
            raise ReportAssemblyError("ZZZZ", "Ticker ZZZZ not found on finnhub", error_type="not_found")

        monkeypatch.setattr(server, "get_analyst_report", fake_report)

        result = await server.report_response("ZZZZ")

        assert result["error"] is True
        assert result["error_type"] == "not_found"
        assert result["symbol"] == "ZZZZ"
        assert "ZZZZ" in result["message"]

    @pytest.mark.asyncio
    async def test_invalid_symbol(self) -> None:
        result = await server.report_response("$$$")
        assert result["error_type"] == "invalid_symbol"

    @pytest.mark.asyncio
    async def test_invalid_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QUOTE_PROVIDER", "bloomberg")
        result = await server.report_response("AAPL")
        assert result["error_type"] == "invalid_config"


class TestScanResponse:
    """Tests for scan tool responses."""

    def test_live_result(self) -> None:
        mover = Mover("NVDA", "NVDA", Sourced(131.0), Sourced(6.4), 1_000, "Volume spike.")
        result = server.scan_response("get_top_movers", ScanResult((mover,), provider_ok=True))

        assert result["isLive"] is True
        assert result["candidates"][0]["ticker"] == "NVDA"
        assert result["data_provenance"]["movers"]["warnings"] == []

    def test_estimated_result_warns(self) -> None:
        mover = Mover("NVDA", "NVDA", Sourced(131.0), Estimated(6.4, "test"), 1_000, "Volume spike.")
        result = server.scan_response("get_top_movers", ScanResult((mover,), provider_ok=True))

        assert result["isLive"] is False
        assert result["data_provenance"]["movers"]["warnings"]

    def test_provider_failure_warns(self) -> None:
        result = server.scan_response("get_squeeze_candidates", ScanResult((), provider_ok=False))
        assert result["candidates"] == []
        assert result["isLive"] is False
        assert "unavailable" in result["data_provenance"]["movers"]["warnings"][0]


class TestReportProvenance:
    """History provenance names exactly the indicators that fell back."""

    def _report(self, quote, closes, series_factory):
        history = series_factory(closes) if closes else ()
        return sanitize_report(
            {}, "AAPL", quote=quote, history=history, indicators=compute_indicators(history)
        )

    def test_no_history(self, settings, aapl_quote, series_factory) -> None:
        provenance = report_provenance(settings, self._report(aapl_quote, [], series_factory))
        assert provenance["history"]["warnings"] == [
            "Indicators use neutral defaults (RSI 50, trend neutral)."
        ]

    def test_short_history_names_rsi_only(self, settings, aapl_quote, series_factory) -> None:
        report = self._report(aapl_quote, [220, 221, 222, 223, 227], series_factory)
        history = report_provenance(settings, report)["history"]

        assert history["status"] == "degraded"
        assert history["points"] == 5
        assert history["warnings"] == ["Only 5 sessions; neutral defaults used (RSI 50)."]

    def test_full_history_has_no_warnings(
        self, settings, aapl_quote, uptrend_series
    ) -> None:
        report = sanitize_report(
            {},
            "AAPL",
            quote=aapl_quote,
            history=uptrend_series,
            indicators=compute_indicators(uptrend_series),
        )
        history = report_provenance(settings, report)["history"]
        assert history["status"] == "ok"
        assert history["warnings"] == []
