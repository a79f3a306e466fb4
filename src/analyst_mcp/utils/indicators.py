"""Technical indicator calculations over a daily close series."""

from collections.abc import Sequence

import pandas as pd

from analyst_mcp.models import Indicators, PriceSeries, Trend

RSI_PERIOD = 14
NEUTRAL_RSI = 50.0

TREND_LOOKBACK = 5
# Relative move over the lookback that counts as a trend (2%)
TREND_THRESHOLD = 0.02


def calculate_rsi(closes: Sequence[float], period: int = RSI_PERIOD) -> float:
    """
    Calculate a simplified fixed-window Relative Strength Index.

    Gains and losses are summed over the first `period` transitions of the
    series (13 when exactly 14 points are available). There is no rolling
    window and no Wilder smoothing. This is the intended definition, not an
    approximation of the textbook RSI.

    Args:
        closes: Close prices, chronological ascending
        period: Minimum number of points and maximum number of transitions

    Returns:
        RSI on a 0-100 scale; 50.0 when fewer than `period` points exist
    """
    if len(closes) < period:
        return NEUTRAL_RSI

    window = pd.Series(list(closes[: period + 1]), dtype="float64")
    delta = window.diff().dropna()

    gains = float(delta[delta > 0].sum())
    losses = float(-delta[delta < 0].sum())

    if losses == 0:
        return 100.0
    rs = gains / losses
    return 100 - (100 / (1 + rs))


def classify_trend(
    closes: Sequence[float],
    lookback: int = TREND_LOOKBACK,
    threshold: float = TREND_THRESHOLD,
) -> Trend:
    """
    Classify the short-window trend.

    Compares the latest close with the close `lookback - 1` positions
    earlier (the oldest of the last `lookback` points).

    Returns:
        bullish above +threshold, bearish below -threshold, otherwise
        neutral (also neutral with fewer than `lookback` points)
    """
    if len(closes) < lookback:
        return Trend.NEUTRAL

    recent = closes[-1]
    previous = closes[-lookback]
    if not previous:
        return Trend.NEUTRAL

    change = (recent - previous) / previous
    if change > threshold:
        return Trend.BULLISH
    if change < -threshold:
        return Trend.BEARISH
    return Trend.NEUTRAL


def compute_indicators(series: PriceSeries) -> Indicators:
    """Derive indicators from an ascending series. Recomputed on every call."""
    closes = [p.close_price for p in series]
    return Indicators(
        rsi_14=calculate_rsi(closes),
        trend=classify_trend(closes),
        available=len(closes) >= RSI_PERIOD,
        points=len(closes),
    )
