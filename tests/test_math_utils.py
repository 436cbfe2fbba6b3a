"""Tests for utils/math_utils.py."""

from __future__ import annotations

import pytest

from lifepoints.utils.math_utils import (
    calculate_percentage,
    excess_penalty,
    proportional_xp,
)


class TestProportionalXp:
    """Partial credit is floored integer arithmetic."""

    @pytest.mark.parametrize(
        ("xp", "done", "target", "expected"),
        [
            (10, 1, 3, 3),
            (10, 2, 3, 6),
            (9, 1, 3, 3),
            (5, 1, 2, 2),
            (10, 0, 3, 0),
            (10, 5, 0, 0),
        ],
    )
    def test_values(self, xp: int, done: int, target: int, expected: int) -> None:
        """floor(xp × done / target), 0 for zero target or completions."""
        assert proportional_xp(xp, done, target) == expected


class TestExcessPenalty:
    """Penalty counts only occurrences above the threshold."""

    def test_above_threshold(self) -> None:
        """Each occurrence above the threshold costs xp."""
        assert excess_penalty(5, 2, 0) == 10
        assert excess_penalty(5, 3, 2) == 5

    def test_at_or_below_threshold(self) -> None:
        """Nothing is charged up to the threshold."""
        assert excess_penalty(5, 2, 2) == 0
        assert excess_penalty(5, 0, 0) == 0


class TestPercentage:
    """Progress percentage helper."""

    def test_percentage(self) -> None:
        """Percentages are rounded and capped at 100."""
        assert calculate_percentage(1, 3) == 33.33
        assert calculate_percentage(4, 2) == 100.0
        assert calculate_percentage(5, 0) == 0.0
