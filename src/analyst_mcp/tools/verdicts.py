"""Rule-based verdicts per trading horizon.

Confidence values are fixed per rule branch. They express how strong the
firing rule is considered, not a statistical probability.
"""

from analyst_mcp.models import Call, Horizon, Indicators, Trend, Verdict
from analyst_mcp.utils.indicators import RSI_PERIOD, TREND_LOOKBACK

OVERSOLD_RSI = 35.0
OVERBOUGHT_RSI = 65.0
# Below this RSI a red session is treated as a dip worth buying intraday
DIP_RSI = 45.0

# (call, confidence) per horizon and trend
_TREND_RULES: dict[Horizon, dict[Trend, tuple[Call, float]]] = {
    Horizon.SWING_TRADE: {
        Trend.BULLISH: (Call.BUY, 0.70),
        Trend.BEARISH: (Call.AVOID, 0.65),
        Trend.NEUTRAL: (Call.HOLD, 0.50),
    },
    Horizon.LONG_TERM: {
        Trend.BULLISH: (Call.BUY, 0.60),
        Trend.BEARISH: (Call.AVOID, 0.55),
        Trend.NEUTRAL: (Call.HOLD, 0.50),
    },
    Horizon.DEFENSIVE: {
        Trend.BULLISH: (Call.BUY, 0.55),
        Trend.BEARISH: (Call.HOLD, 0.60),
        Trend.NEUTRAL: (Call.HOLD, 0.60),
    },
}

_TREND_PROSE = {
    Trend.BULLISH: "Short-term trend is bullish (price up more than 2% over the last 5 sessions).",
    Trend.BEARISH: "Short-term trend is bearish (price down more than 2% over the last 5 sessions).",
    Trend.NEUTRAL: "No clear short-term trend; price is range-bound.",
}

_HORIZON_PROSE: dict[Horizon, dict[Call, str]] = {
    Horizon.SWING_TRADE: {
        Call.BUY: "Momentum supports a multi-day position.",
        Call.AVOID: "Avoid new swing entries against the downtrend.",
        Call.HOLD: "Wait for a directional break before entering.",
    },
    Horizon.LONG_TERM: {
        Call.BUY: "Trend supports accumulating a core position.",
        Call.AVOID: "Defer accumulation until the downtrend stabilizes.",
        Call.HOLD: "No trend signal to change an existing allocation.",
    },
    Horizon.DEFENSIVE: {
        Call.BUY: "Uptrend allows a modest defensive allocation.",
        Call.HOLD: "Preserve capital; hold existing exposure without adding.",
    },
}

UNAVAILABLE_NOTE = "Price history unavailable; indicators use neutral defaults."
SHORT_RSI_NOTE = f"Fewer than {RSI_PERIOD} sessions of history; RSI uses the neutral default of 50."
SHORT_TREND_NOTE = f"Fewer than {TREND_LOOKBACK} sessions of history; trend defaults to neutral."


def _default_note(indicators: Indicators, needed: int, short_note: str) -> str | None:
    """Disclose which inputs fell back to neutral defaults, if any."""
    if indicators.available:
        return None
    if indicators.points == 0:
        return UNAVAILABLE_NOTE
    if indicators.points < needed:
        return short_note
    return None


def _day_trade(indicators: Indicators, change_percent: float) -> Verdict:
    rsi = indicators.rsi_14

    if rsi < OVERSOLD_RSI:
        call, confidence = Call.BUY, 0.75
        rationale = [f"RSI {rsi:.0f} signals an oversold condition.", "Mean reversion likely."]
    elif rsi > OVERBOUGHT_RSI:
        call, confidence = Call.SELL, 0.70
        rationale = [f"RSI {rsi:.0f} signals an overbought condition.", "Pullback expected."]
    elif rsi < DIP_RSI and change_percent < 0:
        call, confidence = Call.BUY, 0.60
        rationale = [
            f"Down {abs(change_percent):.2f}% today with RSI {rsi:.0f} near oversold.",
            "Intraday dip entry with tight stops.",
        ]
    else:
        call, confidence = Call.HOLD, 0.50
        rationale = [f"Neutral momentum (RSI {rsi:.0f}).", "Consolidation pattern."]

    note = _default_note(indicators, RSI_PERIOD, SHORT_RSI_NOTE)
    if note:
        rationale.append(note)
    return Verdict(Horizon.DAY_TRADE, call, confidence, tuple(rationale))


def _trend_verdict(horizon: Horizon, indicators: Indicators) -> Verdict:
    call, confidence = _TREND_RULES[horizon][indicators.trend]
    rationale = [_TREND_PROSE[indicators.trend], _HORIZON_PROSE[horizon][call]]
    note = _default_note(indicators, TREND_LOOKBACK, SHORT_TREND_NOTE)
    if note:
        rationale.append(note)
    return Verdict(horizon, call, confidence, tuple(rationale))


def synthesize_verdicts(indicators: Indicators, change_percent: float) -> dict[Horizon, Verdict]:
    """
    Produce exactly one verdict per horizon.

    Deterministic: the same indicators and change always yield the same
    verdicts. Day trades follow RSI (and today's change); the other horizons
    follow the short-term trend.

    Args:
        indicators: RSI and trend from the price series
        change_percent: Today's percent change from the quote

    Returns:
        Dict mapping every Horizon to its Verdict
    """
    verdicts = {Horizon.DAY_TRADE: _day_trade(indicators, change_percent)}
    for horizon in (Horizon.SWING_TRADE, Horizon.LONG_TERM, Horizon.DEFENSIVE):
        verdicts[horizon] = _trend_verdict(horizon, indicators)
    return verdicts
