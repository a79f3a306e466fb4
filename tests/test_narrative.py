"""Tests for the HTTP narrative adapter."""

import json

import httpx
import pytest

from analyst_mcp.config import Settings
from analyst_mcp.data.errors import MalformedPayloadError, ProviderUnavailableError, RateLimitedError
from analyst_mcp.data.narrative import HttpNarrativeClient

CONTEXT = {"ticker": "AAPL", "price": 227.5, "change_percent": 1.2, "rsi_14": 61.0, "trend": "bullish"}


def _client(handler) -> HttpNarrativeClient:
    settings = Settings(narrative_url="http://narrative.test/report")
    return HttpNarrativeClient(settings, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestHttpNarrativeClient:
    """Tests for HttpNarrativeClient."""

    @pytest.mark.asyncio
    async def test_posts_context(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert json.loads(request.content) == CONTEXT
            return httpx.Response(200, json={"one_liner": "Steady."})

        assert await _client(handler).get_narrative(CONTEXT) == {"one_liner": "Steady."}

    @pytest.mark.asyncio
    async def test_fenced_model_text(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text='```json\n{"news": {"sentiment": "negative"}}\n```')

        payload = await _client(handler).get_narrative(CONTEXT)
        assert payload == {"news": {"sentiment": "negative"}}

    @pytest.mark.asyncio
    async def test_prose_is_malformed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="I cannot help with that.")

        with pytest.raises(MalformedPayloadError):
            await _client(handler).get_narrative(CONTEXT)

    @pytest.mark.asyncio
    async def test_embedded_limit(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"error": "Rate limit exceeded for model"})

        with pytest.raises(RateLimitedError):
            await _client(handler).get_narrative(CONTEXT)

    @pytest.mark.asyncio
    async def test_http_errors(self) -> None:
        def limited(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429)

        def broken(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502)

        with pytest.raises(RateLimitedError):
            await _client(limited).get_narrative(CONTEXT)
        with pytest.raises(ProviderUnavailableError):
            await _client(broken).get_narrative(CONTEXT)

    def test_requires_url(self) -> None:
        with pytest.raises(ValueError):
            HttpNarrativeClient(Settings(), httpx.AsyncClient())
