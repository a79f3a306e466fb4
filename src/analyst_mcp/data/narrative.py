"""Optional narrative provider reached over HTTP."""

import logging
from typing import Any

import httpx

from analyst_mcp.config import Settings
from analyst_mcp.data.base import NarrativeSource
from analyst_mcp.data.errors import MalformedPayloadError, ProviderUnavailableError, RateLimitedError
from analyst_mcp.data.http import looks_rate_limited
from analyst_mcp.utils.sanitize import parse_model_json

logger = logging.getLogger(__name__)

PROVIDER = "narrative"


class HttpNarrativeClient(NarrativeSource):
    """
    POSTs the report context as JSON and expects narrative fields back.

    The endpoint may answer with a JSON object or with model text that
    contains one (optionally wrapped in markdown code fences).
    """

    name = PROVIDER

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.narrative_url:
            raise ValueError("narrative_url is not configured")
        self.url = settings.narrative_url
        self.http_client = http_client

    async def get_narrative(self, context: dict[str, Any]) -> dict[str, Any]:
        symbol = context.get("ticker")
        try:
            response = await self.http_client.post(self.url, json=context)
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(
                f"narrative provider unreachable: {type(e).__name__}",
                provider=PROVIDER,
                symbol=symbol,
            ) from e

        if response.status_code == 429:
            raise RateLimitedError("narrative provider rate limited", provider=PROVIDER, symbol=symbol)
        if response.status_code >= 400:
            raise ProviderUnavailableError(
                f"narrative provider returned HTTP {response.status_code}",
                provider=PROVIDER,
                symbol=symbol,
            )

        parsed = parse_model_json(response.text)
        if parsed is None:
            raise MalformedPayloadError(
                "narrative provider returned no JSON object", provider=PROVIDER, symbol=symbol
            )
        if isinstance(parsed.get("error"), str) and looks_rate_limited(parsed["error"]):
            raise RateLimitedError(parsed["error"], provider=PROVIDER, symbol=symbol)
        return parsed
