"""
Zero-safe ratio helpers.

A rate is 0 when its denominator is 0 and is clamped into [0, 1], so no
calculator can emit NaN or infinity.
"""

import math
from typing import List, Optional, Sequence


def safe_ratio(
    numerator: Optional[float],
    denominator: Optional[float],
    digits: int = 4,
) -> float:
    """numerator / denominator clamped into [0, 1]"""
    if not denominator or denominator <= 0 or numerator is None:
        return 0.0
    value = numerator / denominator
    if math.isnan(value):
        return 0.0
    return round(min(max(value, 0.0), 1.0), digits)


def safe_divide(
    numerator: Optional[float],
    denominator: Optional[float],
    digits: int = 2,
) -> float:
    """Unclamped quotient (averages, frequencies); 0 on an empty denominator"""
    if not denominator or denominator <= 0 or numerator is None:
        return 0.0
    return round(numerator / denominator, digits)


def as_number(value: Optional[float], digits: int = 2) -> float:
    """Round a possibly-null aggregate, mapping null/NaN to 0"""
    if value is None or math.isnan(value):
        return 0.0
    return round(float(value), digits)


def allocate_percentages(values: Sequence[float], digits: int = 2) -> List[float]:
    """
    Split 100% across `values` proportionally.

    Uses largest-remainder rounding so the rounded shares add up to exactly
    100 whenever the total is positive. Negative values count as 0.
    """
    weights = [max(float(v), 0.0) for v in values]
    total = sum(weights)
    if total <= 0:
        return [0.0] * len(weights)

    scale = 10 ** digits
    raw = [w / total * 100 * scale for w in weights]
    units = [math.floor(r) for r in raw]
    leftover = int(round(100 * scale - sum(units)))

    by_remainder = sorted(range(len(raw)), key=lambda i: (-(raw[i] - units[i]), i))
    for i in by_remainder[:leftover]:
        units[i] += 1

    return [u / scale for u in units]
