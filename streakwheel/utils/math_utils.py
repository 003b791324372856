# File: utils/math_utils.py
"""Math and calculation utilities for StreakWheel.

⚠️ UTILS PURITY: NO imports from const.py, engines or managers.

Functions:
    - round_value: Consistent rounding to configured precision
    - calculate_percentage: Progress percentage calculations
    - clamp: Bound a value to a range
    - normalize_triple: Rescale three chance values so they sum to 100
"""

from __future__ import annotations

import logging

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

DATA_FLOAT_PRECISION = 2
CHANCE_PRECISION = 1
CHANCE_TOTAL = 100.0
CHANCE_TOLERANCE = 0.1


def round_value(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a value to the configured precision.

    Prevents float arithmetic drift (e.g., 27.499999999999996 → 27.5).

    Examples:
        round_value(10.456) → 10.46
        round_value(33.333, 1) → 33.3
    """
    return round(value, precision)


def calculate_percentage(
    current: float,
    target: float,
    precision: int = DATA_FLOAT_PRECISION,
) -> float:
    """Calculate progress percentage with proper rounding.

    Returns:
        Percentage with proper rounding, or 0.0 if target is 0

    Examples:
        calculate_percentage(50, 100) → 50.0
        calculate_percentage(1, 3) → 33.33
        calculate_percentage(5, 0) → 0.0  # Division by zero protection
    """
    if target <= 0:
        return 0.0
    return round_value((current / target) * 100, precision)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
    """
    return max(min_val, min(value, max_val))


def normalize_triple(
    first: float,
    second: float,
    third: float,
    total: float = CHANCE_TOTAL,
    tolerance: float = CHANCE_TOLERANCE,
    precision: int = CHANCE_PRECISION,
) -> tuple[float, float, float]:
    """Rescale three non-negative values so they sum to exactly `total`.

    Values already within `tolerance` of the total are returned unchanged.
    Otherwise the first two are scaled proportionally and rounded to
    `precision`, and the third absorbs the remainder.

    Args:
        first: First value (e.g. small chance)
        second: Second value (e.g. medium chance)
        third: Third value (e.g. large chance)
        total: Required sum
        tolerance: Allowed deviation before rescaling
        precision: Decimal places for the rescaled values

    Returns:
        Tuple (first, second, third) summing to `total` within tolerance.
        An all-zero triple cannot be scaled and is returned unchanged.

    Examples:
        normalize_triple(60, 30, 10) → (60, 30, 10)
        normalize_triple(30, 15, 5) → (60.0, 30.0, 10.0)
        normalize_triple(1, 1, 1) → (33.3, 33.3, 33.4)
    """
    current_total = first + second + third
    if abs(current_total - total) <= tolerance:
        return first, second, third

    if current_total <= 0:
        _LOGGER.warning(
            "Cannot normalize triple (%s, %s, %s): sum is not positive",
            first,
            second,
            third,
        )
        return first, second, third

    scale = total / current_total
    scaled_first = round_value(first * scale, precision)
    scaled_second = round_value(second * scale, precision)
    scaled_third = round_value(total - scaled_first - scaled_second, precision)
    return scaled_first, scaled_second, scaled_third
