"""Analyst Report MCP Server using FastMCP."""

import asyncio
import json
import logging
import os
from time import perf_counter
from typing import Any

from fastmcp import FastMCP

from analyst_mcp import SCHEMA_VERSION, SERVER_VERSION
from analyst_mcp.config import Settings
from analyst_mcp.data.errors import ReportAssemblyError
from analyst_mcp.data.yfinance_client import shutdown_executor
from analyst_mcp.models import ScanResult
from analyst_mcp.tools import get_analyst_report, get_squeeze_candidates, get_top_movers
from analyst_mcp.utils.provenance import (
    build_error_response,
    build_meta,
    report_provenance,
    scan_provenance,
)

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Create FastMCP server instance
mcp = FastMCP(
    name="analyst-report",
)


def _load_settings() -> Settings | dict[str, Any]:
    try:
        return Settings.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return build_error_response(error_type="invalid_config", message=str(e))


async def report_response(ticker: str) -> dict[str, Any]:
    """Build the analyst report tool response, errors included."""
    start_time = perf_counter()

    settings = _load_settings()
    if isinstance(settings, dict):
        return settings

    try:
        report = await get_analyst_report(ticker, settings=settings)
    except ValueError as e:
        return build_error_response(error_type="invalid_symbol", message=str(e), symbol=ticker)
    except ReportAssemblyError as e:
        logger.warning(str(e))
        return build_error_response(
            error_type=e.error_type,
            message=str(e),
            symbol=e.ticker,
            retry_after_seconds=e.retry_after_seconds,
        )

    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("get_analyst_report", duration_ms),
        "data_provenance": report_provenance(settings, report),
        **report.to_dict(),
    }


def scan_response(tool: str, result: ScanResult) -> dict[str, Any]:
    return {
        "meta": build_meta(tool),
        "data_provenance": scan_provenance(result),
        **result.to_dict(),
    }


# ============================================================================
# TOOLS
# ============================================================================


@mcp.tool(name="get_analyst_report")
async def analyst_report(ticker: str) -> str:
    """
    Build an analyst report for a stock.

    Combines a live quote, the last 30 daily closes, RSI(14) and a
    short-term trend into deterministic verdicts for four horizons
    (day_trade, swing_trade, long_term, defensive).

    Args:
        ticker: Stock ticker symbol (e.g., AAPL, MSFT, BRK.B)

    Returns:
        JSON with price, summary, verdicts, news, history, confidence notes
        and related tickers. A price of 0 with price_pending=true means no
        price could be resolved.
    """
    result = await report_response(ticker)
    return json.dumps(result, indent=2, default=str)


@mcp.tool(name="get_top_movers")
async def top_movers() -> str:
    """
    List today's top gainers (up to 8), with live quote prices where available.

    Returns:
        JSON with candidates and isLive (true only when every value is
        provider-sourced)
    """
    settings = _load_settings()
    if isinstance(settings, dict):
        return json.dumps(settings, indent=2, default=str)

    result = await get_top_movers(settings=settings)
    return json.dumps(scan_response("get_top_movers", result), indent=2, default=str)


@mcp.tool(name="get_squeeze_candidates")
async def squeeze_candidates() -> str:
    """
    List high-volume names as short squeeze candidates (up to 8).

    Short interest, days to cover and squeeze score are volume-rank
    estimates and are labeled with provenance "estimated".

    Returns:
        JSON with candidates and isLive (always false when estimates are present)
    """
    settings = _load_settings()
    if isinstance(settings, dict):
        return json.dumps(settings, indent=2, default=str)

    result = await get_squeeze_candidates(settings=settings)
    return json.dumps(
        scan_response("get_squeeze_candidates", result), indent=2, default=str
    )


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    logger.info(f"Starting Analyst Report MCP Server v{SERVER_VERSION} (schema v{SCHEMA_VERSION})")
    try:
        mcp.run()
    finally:
        asyncio.run(shutdown_executor())


if __name__ == "__main__":
    main()
