"""Tests for AttemptEngine - life transitions and catch-up planning."""

from __future__ import annotations

from lifepoints import const
from lifepoints.data_builders import build_attempt, build_game_state
from lifepoints.engines.attempt_engine import AttemptEngine
from tests.helpers import W0, W1, W2, W3, day


class TestLifeTransition:
    """apply_xp_change clamps at zero and flags game over."""

    def test_loss(self) -> None:
        """A loss that leaves lives above zero is not game over."""
        transition = AttemptEngine.apply_xp_change(100, -10)
        assert transition.new_lives == 90
        assert not transition.is_game_over

    def test_clamped_game_over(self) -> None:
        """Overshooting below zero stops at zero."""
        transition = AttemptEngine.apply_xp_change(5, -20)
        assert transition.new_lives == 0
        assert transition.is_game_over
        assert transition.previous_lives == 5

    def test_is_game_over(self) -> None:
        """Flag or zero lives both mean game over; no state means not over."""
        assert not AttemptEngine.is_game_over(None)
        assert not AttemptEngine.is_game_over(build_game_state(10))
        assert AttemptEngine.is_game_over(build_game_state(0))
        assert AttemptEngine.is_game_over(build_game_state(10, is_game_over=True))


class TestCatchUpPlanning:
    """Which weeks still need settlement."""

    def test_first_week_without_history(self) -> None:
        """Start at the attempt's week when nothing was settled yet."""
        assert AttemptEngine.first_unsettled_week(day(W0, 3), None) == W0

    def test_first_week_after_last_settlement(self) -> None:
        """Resume with the week after the last settled Sunday."""
        assert AttemptEngine.first_unsettled_week(W0, day(W0, 6)) == W1

    def test_first_week_clamped_to_attempt(self) -> None:
        """Never go back before the attempt's start week."""
        assert AttemptEngine.first_unsettled_week(W2, day(W0, 6)) == W2

    def test_pending_weeks_exclude_current(self) -> None:
        """The in-progress week is never settled."""
        assert AttemptEngine.pending_weeks(W0, day(W3, 2)) == [W0, W1, W2]
        assert AttemptEngine.pending_weeks(W3, day(W3, 2)) == []

    def test_week_precedes_attempt(self) -> None:
        """Only weeks ending before the attempt's start week are rejected."""
        assert AttemptEngine.week_precedes_attempt(W0, day(W1, 3))
        assert not AttemptEngine.week_precedes_attempt(W1, day(W1, 3))


class TestAttemptSummaries:
    """Status, duration and same-day detection."""

    def test_status(self) -> None:
        """Active, survived (closed with lives) and failed (closed at 0)."""
        active = build_attempt(W0, 100)
        survived = build_attempt(W0, 100, end_date=W1, ending_lives=40, is_active=False)
        failed = build_attempt(W0, 100, end_date=W1, ending_lives=0, is_active=False)
        assert AttemptEngine.attempt_status(active) == const.ATTEMPT_STATUS_ACTIVE
        assert AttemptEngine.attempt_status(survived) == const.ATTEMPT_STATUS_SURVIVED
        assert AttemptEngine.attempt_status(failed) == const.ATTEMPT_STATUS_FAILED

    def test_duration(self) -> None:
        """Duration counts the start day; open attempts run until today."""
        closed = build_attempt(W0, 100, end_date=day(W0, 6), is_active=False)
        assert AttemptEngine.duration_days(closed, W3) == 7
        assert AttemptEngine.duration_days(build_attempt(W0, 100), day(W0, 2)) == 3

    def test_same_day_attempt(self) -> None:
        """Only closed attempts that started and ended on the day match."""
        same_day = build_attempt(
            W0, 100, end_date=W0, ending_lives=100, is_active=False
        )
        assert AttemptEngine.is_same_day_attempt(same_day, W0)
        assert not AttemptEngine.is_same_day_attempt(same_day, W1)
        assert not AttemptEngine.is_same_day_attempt(build_attempt(W0, 100), W0)

    def test_sort_newest_first(self) -> None:
        """Later start dates come first."""
        old = build_attempt(W0, 100, end_date=W1, is_active=False)
        new = build_attempt(W2, 100)
        assert AttemptEngine.sort_newest_first([old, new]) == [new, old]
