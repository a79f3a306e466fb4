"""Numeric coercion for untrusted provider values."""

import math
import re
from typing import Any

import numpy as np

_NON_NUMERIC = re.compile(r"[^0-9.+-]")


def to_number(value: Any) -> float:
    """
    Coerce an arbitrary external value to a finite number.

    Numbers pass through unchanged. Text has every character other than
    digits, sign and decimal point stripped before parsing, so "$1,234.56"
    becomes 1234.56 and "12.5%" becomes 12.5. Anything else (None, bool,
    containers, unparseable text, NaN/inf) becomes 0.

    0 is the "unknown" sentinel. Callers decide from context whether a zero
    is plausible (it never is for a price).
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float, np.integer, np.floating)):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        try:
            parsed = float(cleaned)
        except ValueError:
            return 0
        return parsed if math.isfinite(parsed) else 0
    return 0


def to_int(value: Any) -> int:
    """Coerce to an int (volumes, counts). Same sentinel rules as to_number."""
    return int(to_number(value))


def to_optional_number(value: Any) -> float | None:
    """Like to_number but keeps "absent" distinguishable from zero."""
    if value is None:
        return None
    number = to_number(value)
    return float(number) if number else None
