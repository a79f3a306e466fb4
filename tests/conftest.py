"""Pytest configuration and fixtures."""

import pandas as pd
import pytest

from analyst_mcp.config import Settings
from analyst_mcp.models import PriceSeries, Quote
from fakes import make_series


@pytest.fixture
def settings() -> Settings:
    """Settings with keys set and no retry delays."""
    return Settings(
        finnhub_api_key="test-finnhub",
        alphavantage_api_key="test-av",
        finnhub_base_url="https://finnhub.test/api/v1",
        alphavantage_base_url="https://av.test/query",
        request_timeout=2.0,
        max_retries=2,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )


@pytest.fixture
def aapl_quote() -> Quote:
    return Quote(
        ticker="AAPL",
        last_price=227.50,
        change_percent=1.2,
        session_high=228.9,
        session_low=224.1,
        source="finnhub",
    )


@pytest.fixture
def uptrend_series() -> PriceSeries:
    """20 sessions drifting up; the last 5 rise about 3%."""
    closes = [214.0, 215.0, 214.5, 216.0, 215.5, 217.0, 216.5, 218.0, 217.5, 219.0,
              218.5, 219.5, 219.0, 220.0, 220.5, 220.9, 222.0, 223.5, 225.0, 227.5]
    return make_series(closes)


@pytest.fixture
def sample_download_df() -> pd.DataFrame:
    """yf.download-shaped frame with MultiIndex columns for one ticker."""
    index = pd.date_range("2024-01-02", periods=6, freq="D", name="Date")
    columns = pd.MultiIndex.from_product(
        [["Close", "High", "Low", "Open", "Volume"], ["AAPL"]], names=["Price", "Ticker"]
    )
    data = [
        [100.0, 101.0, 99.0, 99.5, 1_000_000],
        [101.0, 102.0, 100.0, 100.5, 1_100_000],
        [float("nan"), 103.0, 101.0, 101.5, 900_000],
        [103.0, 104.0, 102.0, 102.5, 1_200_000],
        [102.5, 103.5, 101.5, 103.0, 950_000],
        [104.0, 105.0, 103.0, 103.5, 1_300_000],
    ]
    return pd.DataFrame(data, index=index, columns=columns)


@pytest.fixture
def series_factory():
    """Build an ascending PriceSeries from a list of closes."""
    return make_series
