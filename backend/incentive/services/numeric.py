"""Numeric coercion and rounding shared by schemas, engines and sessions."""
import math
from typing import Any

from incentive.config import CURRENCY_DECIMALS


def coerce_number(value: Any) -> float:
    """
    Best-effort float conversion for user-entered quantities.

    None, blanks, non-numeric strings, NaN and infinities all become 0.0 so a
    half-filled form still yields a usable (zeroed) derived state.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round_money(value: float) -> float:
    """Round to currency precision; -0.0 is normalised to 0.0."""
    return round(value, CURRENCY_DECIMALS) + 0.0
