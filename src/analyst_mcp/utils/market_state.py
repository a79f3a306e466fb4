"""Clock-based US equity market session detection."""

from datetime import datetime

import pytz


def get_market_state(tz: str = "America/New_York") -> dict[str, str]:
    """
    Determine market state. Clock-based only (no holiday calendar).

    Args:
        tz: Timezone (default: America/New_York)

    Returns:
        Dict with state, method, and checked_at timestamp
    """
    eastern = pytz.timezone(tz)
    now = datetime.now(eastern)

    if now.weekday() >= 5:
        state = "closed"
    else:
        time_minutes = now.hour * 60 + now.minute

        if time_minutes < 4 * 60:
            state = "closed"
        elif time_minutes < 9 * 60 + 30:
            state = "pre_market"
        elif time_minutes < 16 * 60:
            state = "regular"
        elif time_minutes < 20 * 60:
            state = "after_hours"
        else:
            state = "closed"

    return {
        "state": state,
        "method": "clock_only_no_holidays",
        "checked_at": now.isoformat(),
    }
