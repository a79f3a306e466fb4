"""Conversion of yfinance OHLCV frames into price series."""

import math

import pandas as pd

from analyst_mcp.models import HISTORY_LENGTH, PricePoint, PriceSeries


def standardize_closes(df: pd.DataFrame) -> pd.DataFrame:
    """
    Reduce a raw yfinance frame to two columns: date (YYYY-MM-DD) and close.

    Handles the MultiIndex columns yf.download returns even for a single
    ticker, and both naive and tz-aware date indexes.
    """
    df = df.copy()

    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)

    df.columns = [str(c).lower() for c in df.columns]
    df = df.reset_index()

    date_cols = [c for c in df.columns if str(c).lower() in ("date", "datetime", "index")]
    if date_cols:
        df = df.rename(columns={date_cols[0]: "date"})

    if "date" not in df.columns or "close" not in df.columns:
        return pd.DataFrame(columns=["date", "close"])

    if pd.api.types.is_datetime64_any_dtype(df["date"]):
        df["date"] = df["date"].dt.strftime("%Y-%m-%d")
    else:
        df["date"] = df["date"].astype(str).str[:10]

    df["close"] = pd.to_numeric(df["close"], errors="coerce")
    return df[["date", "close"]]


def frame_to_series(df: pd.DataFrame, limit: int = HISTORY_LENGTH) -> PriceSeries:
    """
    Most recent `limit` closes as an ascending PriceSeries.

    Rows with missing closes are dropped (gaps are not interpolated);
    duplicate dates keep the first row.
    """
    closes = standardize_closes(df).dropna(subset=["close"])
    closes = closes.drop_duplicates(subset="date", keep="first")
    closes = closes.sort_values("date").tail(limit)

    return tuple(
        PricePoint(date=row.date, close_price=float(row.close))
        for row in closes.itertuples(index=False)
        if math.isfinite(row.close)
    )
