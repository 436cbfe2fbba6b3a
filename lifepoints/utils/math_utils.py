# File: utils/math_utils.py
"""Math and calculation utilities for Life Points.

Pure Python math functions with ZERO storage or manager dependencies.

Functions:
    - proportional_xp: Partial-credit XP, floored to an integer
    - excess_penalty: Penalty for occurrences above a tolerated threshold
    - calculate_percentage: Progress percentage calculations
"""

from __future__ import annotations

# Default float precision for percentage rounding
DATA_FLOAT_PRECISION = 2


def proportional_xp(xp_value: int, completions: int, target: int) -> int:
    """Return floor(xp_value × completions / target).

    Integer arithmetic keeps the result exact (no float drift).

    Examples:
        proportional_xp(10, 1, 3) → 3
        proportional_xp(10, 2, 3) → 6
        proportional_xp(10, 0, 3) → 0
        proportional_xp(10, 5, 0) → 0  # Division by zero protection
    """
    if target <= 0 or completions <= 0:
        return 0
    return (xp_value * completions) // target


def excess_penalty(xp_value: int, occurrences: int, threshold: int) -> int:
    """Return the (positive) penalty for occurrences above `threshold`.

    Examples:
        excess_penalty(5, 2, 0) → 10
        excess_penalty(5, 3, 2) → 5
        excess_penalty(5, 1, 2) → 0
    """
    excess = occurrences - threshold
    if excess <= 0:
        return 0
    return xp_value * excess


def calculate_percentage(
    current: float,
    target: float,
    precision: int = DATA_FLOAT_PRECISION,
) -> float:
    """Calculate progress percentage with proper rounding.

    Returns:
        Percentage (0-100) with proper rounding, or 0.0 if target is 0

    Examples:
        calculate_percentage(1, 3) → 33.33
        calculate_percentage(5, 0) → 0.0
    """
    if target <= 0:
        return 0.0
    return round(min(current / target, 1.0) * 100, precision)
