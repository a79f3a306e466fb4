"""Input validation helpers."""

import re

# Letters, digits, dot and dash (BRK.B, RDS-A); up to 10 characters
_TICKER_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9.\-]{0,9}$")


def normalize_ticker(ticker: str) -> str:
    """
    Normalize a ticker symbol: strip whitespace, uppercase, validate shape.

    Raises:
        ValueError: If the ticker is empty or contains unexpected characters
    """
    if not isinstance(ticker, str):
        raise ValueError(f"Ticker must be a string, got {type(ticker).__name__}")

    symbol = ticker.strip().upper()
    if not symbol:
        raise ValueError("Ticker must not be empty")
    if not _TICKER_PATTERN.match(symbol):
        raise ValueError(f"Invalid ticker '{ticker}'")
    return symbol


def dedupe_tickers(tickers: list, *, exclude: str | None = None, limit: int | None = None) -> tuple[str, ...]:
    """
    Uppercase, drop non-strings/blanks/duplicates and the excluded symbol.

    Provider order is preserved.
    """
    seen: set[str] = set()
    out: list[str] = []
    for item in tickers:
        if not isinstance(item, str):
            continue
        symbol = item.strip().upper()
        if not symbol or symbol == exclude or symbol in seen:
            continue
        seen.add(symbol)
        out.append(symbol)
        if limit is not None and len(out) >= limit:
            break
    return tuple(out)
