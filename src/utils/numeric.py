"""
Numeric helpers shared by the analytics modules.
"""

import math
from typing import Iterable, List, Optional


def is_number(value) -> bool:
    """True for finite ints/floats (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def finite(values: Iterable) -> List[float]:
    """Drop None and non-finite values."""
    return [v for v in values if is_number(v)]


def mean(values: Iterable) -> Optional[float]:
    """Arithmetic mean of the finite values, or None if there are none."""
    clean = finite(values)
    if not clean:
        return None
    result = sum(clean) / len(clean)
    return result if math.isfinite(result) else None


def round_half_up(value: Optional[float], digits: int = 0) -> Optional[float]:
    """
    Round halves towards +infinity (Math.round semantics).

    Python's round() uses banker's rounding, so 2.5 -> 2; dashboards
    expect 2.5 -> 3 and -2.5 -> -2.
    """
    if value is None:
        return None
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    if digits == 0:
        return int(rounded)
    return rounded


def percentage(part: int, total: int) -> int:
    """Integer percentage, 0 when total is 0."""
    if total <= 0:
        return 0
    return round_half_up(part / total * 100)
