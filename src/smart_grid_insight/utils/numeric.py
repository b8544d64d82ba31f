# stdlib
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional
# thirdpartylib
import numpy as np

def round_half_up(value: float, decimals: int = 0) -> float:
    """
    Round ``value`` to ``decimals`` places with ties going up.

    Python's built-in ``round`` uses banker's rounding; consumption
    figures are rounded away from the even neighbour so that 2.5 kWh
    reports as 3 kWh. Whole numbers round towards positive infinity on
    ties. Fractional places are rounded on the decimal representation
    with ties away from zero, so ``round_half_up(2.675, 2)`` is 2.68
    rather than the 2.67 binary floating point would give.
    """
    if decimals == 0:
        return float(np.floor(value + 0.5))
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)

def clamp(value: float, lower: float, upper: float) -> float:
    """Bound ``value`` to the closed interval ``[lower, upper]``."""
    return max(lower, min(upper, value))

def to_consumption(value: Any) -> Optional[float]:
    """
    Coerce a raw consumption cell to ``float``.

    Returns ``None`` for values that are not numeric at all (booleans,
    empty strings, free text). NaN and negative numbers are returned
    unchanged so validation can report them.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

def is_valid_consumption(value: Optional[float]) -> bool:
    """True for finite, non-negative consumption values."""
    return value is not None and math.isfinite(value) and value >= 0
