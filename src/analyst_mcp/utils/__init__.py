"""Utility modules."""

from analyst_mcp.utils.coerce import to_int, to_number, to_optional_number
from analyst_mcp.utils.indicators import calculate_rsi, classify_trend, compute_indicators
from analyst_mcp.utils.market_state import get_market_state
from analyst_mcp.utils.ohlcv import frame_to_series, standardize_closes
from analyst_mcp.utils.provenance import build_error_response, build_meta, build_provenance
from analyst_mcp.utils.sanitize import sanitize_report, sanitize_text
from analyst_mcp.utils.validators import dedupe_tickers, normalize_ticker

__all__ = [
    "to_int",
    "to_number",
    "to_optional_number",
    "calculate_rsi",
    "classify_trend",
    "compute_indicators",
    "get_market_state",
    "frame_to_series",
    "standardize_closes",
    "build_error_response",
    "build_meta",
    "build_provenance",
    "sanitize_report",
    "sanitize_text",
    "dedupe_tickers",
    "normalize_ticker",
]
