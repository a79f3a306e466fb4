"""Tests for the Finnhub adapter and shared HTTP handling."""

import httpx
import pytest

from analyst_mcp.config import Settings
from analyst_mcp.data.errors import (
    CredentialsRejectedError,
    MalformedPayloadError,
    ProviderUnavailableError,
    RateLimitedError,
    TickerNotFoundError,
)
from analyst_mcp.data.finnhub import FinnhubClient
from analyst_mcp.data.http import calculate_backoff, looks_rate_limited


def _client(settings: Settings, handler) -> FinnhubClient:
    return FinnhubClient(settings, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestQuote:
    """Tests for FinnhubClient.get_quote."""

    @pytest.mark.asyncio
    async def test_parses_quote(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/quote"
            assert request.url.params["symbol"] == "AAPL"
            assert request.url.params["token"] == "test-finnhub"
            return httpx.Response(
                200, json={"c": 227.5, "d": 2.7, "dp": 1.2, "h": 228.9, "l": 224.1, "o": 225, "pc": 224.8}
            )

        quote = await _client(settings, handler).get_quote(" aapl ")

        assert quote.ticker == "AAPL"
        assert quote.last_price == 227.5
        assert quote.change_percent == 1.2
        assert quote.session_high == 228.9
        assert quote.source == "finnhub"

    @pytest.mark.asyncio
    async def test_all_zero_quote_is_not_found(self, settings: Settings) -> None:
        """Finnhub answers unknown tickers with a zeroed 200."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"c": 0, "d": None, "dp": None, "h": 0, "l": 0, "pc": 0})

        with pytest.raises(TickerNotFoundError, match="ZZZZ"):
            await _client(settings, handler).get_quote("ZZZZ")

    @pytest.mark.asyncio
    async def test_missing_price_is_malformed(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"pc": 101.0})

        with pytest.raises(MalformedPayloadError):
            await _client(settings, handler).get_quote("AAPL")

    @pytest.mark.asyncio
    async def test_embedded_limit_not_retried(self, settings: Settings) -> None:
        """A limit notice in a 200 body fails immediately."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"error": "API limit reached. Please try again later."})

        with pytest.raises(RateLimitedError):
            await _client(settings, handler).get_quote("AAPL")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_429_not_retried(self, settings: Settings) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(429, headers={"Retry-After": "30"}, json={})

        with pytest.raises(RateLimitedError) as exc_info:
            await _client(settings, handler).get_quote("AAPL")
        assert exc_info.value.retry_after_seconds == 30
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_retried_then_raised(self, settings: Settings) -> None:
        """5xx is retried max_retries times."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, text="unavailable")

        with pytest.raises(ProviderUnavailableError):
            await _client(settings, handler).get_quote("AAPL")
        assert len(calls) == settings.max_retries + 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_rejected_key_not_retried(self, settings: Settings, status: int) -> None:
        """A bad API key fails on the first attempt."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(status, json={"error": "Invalid API key"})

        with pytest.raises(CredentialsRejectedError) as exc_info:
            await _client(settings, handler).get_quote("AAPL")
        assert exc_info.value.error_type == "provider_unavailable"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_transient_failure_recovers(self, settings: Settings) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection reset")
            return httpx.Response(200, json={"c": 10.0, "dp": -0.5, "pc": 10.05})

        quote = await _client(settings, handler).get_quote("F")
        assert quote.last_price == 10.0
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_html_body_is_malformed(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>", headers={"content-type": "text/html"})

        with pytest.raises(MalformedPayloadError):
            await _client(settings, handler).get_quote("AAPL")

    @pytest.mark.asyncio
    async def test_missing_key(self) -> None:
        """No API key fails without any request."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(ProviderUnavailableError, match="FINNHUB_API_KEY"):
            await _client(Settings(), handler).get_quote("AAPL")


class TestPeers:
    """Tests for FinnhubClient.get_peers."""

    @pytest.mark.asyncio
    async def test_peers_exclude_self(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/stock/peers"
            return httpx.Response(
                200, json=["AAPL", "DELL", "HPQ", "dell", "SMCI", "HPE", "NTAP", "WDC", "STX"]
            )

        peers = await _client(settings, handler).get_peers("AAPL")
        assert peers == ("DELL", "HPQ", "SMCI", "HPE", "NTAP", "WDC")

    @pytest.mark.asyncio
    async def test_non_list_is_malformed(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"peers": []})

        with pytest.raises(MalformedPayloadError):
            await _client(settings, handler).get_peers("AAPL")


class TestHttpHelpers:
    """Tests for shared HTTP helpers."""

    @pytest.mark.parametrize(
        "message",
        [
            "API limit reached",
            "You have reached the rate limit",
            "Our standard API call frequency is 5 calls per minute",
        ],
    )
    def test_rate_limit_markers(self, message: str) -> None:
        assert looks_rate_limited(message)

    def test_ordinary_message(self) -> None:
        assert not looks_rate_limited("Invalid API call")
        assert not looks_rate_limited(None)

    def test_backoff_is_capped(self) -> None:
        for attempt in range(6):
            assert calculate_backoff(attempt, 0.5, 4.0) <= 4.0
