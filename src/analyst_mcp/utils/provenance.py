"""Response metadata, data provenance and error envelopes for MCP tools."""

from datetime import datetime, timezone
from typing import Any

from analyst_mcp import SCHEMA_VERSION, SERVER_VERSION
from analyst_mcp.config import Settings
from analyst_mcp.models import AnalystReport, ScanResult
from analyst_mcp.utils.indicators import TREND_LOOKBACK
from analyst_mcp.utils.market_state import get_market_state

MOVERS_SOURCE = "alphavantage"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_meta(tool: str, duration_ms: float | None = None) -> dict[str, Any]:
    """Versions and timing for one tool response."""
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "schema_version": SCHEMA_VERSION,
        "tool": tool,
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    return meta


def build_provenance(source: str, as_of: str | None = None, **fields: Any) -> dict[str, Any]:
    """
    Provenance block for one upstream source.

    Args:
        source: Adapter name ("finnhub", "alphavantage", "yfinance")
        as_of: ISO timestamp the data was fetched (default: now)
        **fields: Extra fields such as status, points or market_state
    """
    block: dict[str, Any] = {"source": source, "as_of": as_of or utc_now_iso()}
    block.update(fields)
    block.setdefault("warnings", [])
    return block


def report_provenance(settings: Settings, report: AnalystReport) -> dict[str, Any]:
    """Provenance for the quote and history behind a report."""
    as_of = utc_now_iso()
    points = len(report.history)
    history_warnings = []
    if not points:
        history_warnings.append("Indicators use neutral defaults (RSI 50, trend neutral).")
    elif not report.indicators.available:
        defaulted = "RSI 50, trend neutral" if points < TREND_LOOKBACK else "RSI 50"
        history_warnings.append(f"Only {points} sessions; neutral defaults used ({defaulted}).")
    return {
        "quote": build_provenance(
            settings.quote_provider,
            as_of,
            status="pending" if report.price_pending else "ok",
            market_state=get_market_state(),
        ),
        "history": build_provenance(
            settings.history_provider,
            as_of,
            status="ok" if report.indicators.available else "degraded",
            points=points,
            warnings=history_warnings,
        ),
    }


def scan_provenance(result: ScanResult) -> dict[str, Any]:
    """Provenance for a scan; warnings spell out why a result is not live."""
    warnings = []
    if not result.provider_ok:
        warnings.append("Movers provider unavailable; no candidates returned.")
    elif not result.is_live:
        estimated = sorted({f for c in result.candidates for f in c.estimated_fields})
        warnings.append(f"Estimated, not provider-sourced: {', '.join(estimated)}.")

    return {
        "movers": build_provenance(
            MOVERS_SOURCE,
            status="ok" if result.provider_ok else "unavailable",
            is_live=result.is_live,
            market_state=get_market_state(),
            warnings=warnings,
        ),
    }


def build_error_response(
    error_type: str,
    message: str,
    symbol: str | None = None,
    retry_after_seconds: int | None = None,
) -> dict[str, Any]:
    """
    Standard error envelope returned instead of raising through the MCP host.

    Args:
        error_type: invalid_symbol, invalid_config, provider_unavailable,
            rate_limited, malformed_payload, not_found or data_unavailable
        message: Human-readable cause
        symbol: Ticker involved, when there is one
        retry_after_seconds: Provider-advised wait for rate limits
    """
    response: dict[str, Any] = {
        "error": True,
        "error_type": error_type,
        "message": message,
        "meta": build_meta("error"),
    }
    if symbol is not None:
        response["symbol"] = symbol
    if retry_after_seconds is not None:
        response["retry_after_seconds"] = retry_after_seconds
    return response
