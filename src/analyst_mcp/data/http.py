"""Shared JSON-over-HTTP fetching with failure classification and capped retries."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from analyst_mcp.config import Settings
from analyst_mcp.data.errors import (
    CredentialsRejectedError,
    MalformedPayloadError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
    TickerNotFoundError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Phrases providers use for quota exhaustion inside otherwise-successful bodies
RATE_LIMIT_MARKERS = (
    "limit reached",
    "api limit",
    "rate limit",
    "call frequency",
    "requests per",
)


def looks_rate_limited(message: Any) -> bool:
    """Check whether a provider message is a quota/limit notice."""
    if not isinstance(message, str):
        return False
    text = message.lower()
    return any(marker in text for marker in RATE_LIMIT_MARKERS)


def build_client(settings: Settings) -> httpx.AsyncClient:
    """Create an AsyncClient bounded by the configured timeout."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout),
        headers={"Accept": "application/json"},
    )


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    provider: str,
    params: dict[str, Any] | None = None,
    symbol: str | None = None,
    method: str = "GET",
    json_body: Any = None,
) -> Any:
    """
    Perform one request and return the decoded JSON body.

    Raises:
        ProviderUnavailableError: Network failure, timeout, auth rejection, 5xx
        RateLimitedError: HTTP 429
        TickerNotFoundError: HTTP 404
        MalformedPayloadError: Non-JSON body (e.g. an HTML error page)
    """
    logger.debug(f"{provider}: {method} {url} symbol={symbol}")
    try:
        response = await client.request(method, url, params=params, json=json_body)
    except httpx.TimeoutException as e:
        raise ProviderUnavailableError(
            f"{provider} timed out", provider=provider, symbol=symbol
        ) from e
    except httpx.HTTPError as e:
        raise ProviderUnavailableError(
            f"{provider} unreachable: {type(e).__name__}", provider=provider, symbol=symbol
        ) from e

    status = response.status_code
    if status == 429:
        raise RateLimitedError(
            f"{provider} rate limit reached",
            provider=provider,
            symbol=symbol,
            retry_after_seconds=_retry_after(response),
        )
    if status in (401, 403):
        raise CredentialsRejectedError(
            f"{provider} rejected credentials (HTTP {status})", provider=provider, symbol=symbol
        )
    if status == 404:
        raise TickerNotFoundError(
            f"{provider} does not know {symbol}", provider=provider, symbol=symbol
        )
    if status >= 400:
        raise ProviderUnavailableError(
            f"{provider} returned HTTP {status}", provider=provider, symbol=symbol
        )

    content_type = response.headers.get("content-type", "")
    if "json" not in content_type:
        raise MalformedPayloadError(
            f"{provider} returned {content_type or 'no content type'} instead of JSON",
            provider=provider,
            symbol=symbol,
        )
    try:
        return response.json()
    except ValueError as e:
        raise MalformedPayloadError(
            f"{provider} returned invalid JSON", provider=provider, symbol=symbol
        ) from e


def is_retryable(error: Exception) -> bool:
    """
    Only transport-level failures are retried.

    Rate-limit, not-found, rejected-credential and malformed-payload errors
    are raised on the first attempt.
    """
    return isinstance(error, ProviderUnavailableError) and not isinstance(
        error, CredentialsRejectedError
    )


def calculate_backoff(attempt: int, base_delay: float, max_delay: float) -> float:
    """Calculate delay with exponential backoff and jitter."""
    delay = base_delay * (2**attempt)
    jitter = delay * 0.25 * (2 * random.random() - 1)
    return min(delay + jitter, max_delay)


async def with_retries(
    operation_name: str,
    func: Callable[[], Awaitable[T]],
    settings: Settings,
) -> T:
    """
    Run an async provider call, retrying transport failures a few times.

    Args:
        operation_name: Name for logging (e.g., "finnhub.quote(AAPL)")
        func: Zero-arg coroutine factory performing one attempt
        settings: Supplies max_retries and backoff bounds

    Returns:
        The first successful result

    Raises:
        ProviderError: The last error once retries are exhausted, or the
            first non-retryable error
    """
    for attempt in range(settings.max_retries + 1):
        try:
            return await func()
        except ProviderError as e:
            if not is_retryable(e) or attempt >= settings.max_retries:
                if attempt > 0:
                    logger.warning(
                        f"{operation_name}: Failed after {attempt + 1} attempts. Last error: {e}"
                    )
                raise

            delay = calculate_backoff(attempt, settings.retry_base_delay, settings.retry_max_delay)
            logger.info(
                f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
