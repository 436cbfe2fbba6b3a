"""Scoring Engine - Pure logic for daily and weekly life point deltas.

This engine provides stateless, pure Python functions for:
- Habit activity windows (created_at / soft-delete boundary)
- Daily scoring of beneficial daily-target habits and detrimental habits
- Weekly scoring of beneficial weekly-target habits and detrimental habits
  with a weekly threshold
- Per-habit impact figures shared by settlement and the weekly report

ARCHITECTURE: This is a pure logic engine with NO repository access.
All functions are static methods that operate on passed-in data.
Loading completions and persisting results belongs in SettlementManager.

Scoring rules:
    DAILY (per day, per habit active that day, tasks excluded)
    - Beneficial + daily target: 0 completions → 0, completions >= target →
      +xp, partial → floor(xp × done / target) if proportional else 0.
      A target of 0 is treated as 1.
    - Detrimental with weekly_threshold == 0: −xp per completion above
      daily_threshold.

    WEEKLY (per week, over the habit's active window inside the week)
    - Beneficial + weekly target: 0 completions → −2 × xp, partial →
      floor(xp × done / target) if proportional else 0, done >= target → +xp.
    - Detrimental with weekly_threshold > 0: −xp per completion above
      weekly_threshold.

A habit is scored by exactly one of the two passes, never both.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import dt_parse_date, dt_week_days
from ..utils.math_utils import excess_penalty, proportional_xp

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from ..type_defs import HabitData


class ScoringEngine:
    """Pure logic engine for life point scoring.

    All methods are static - no instance state. This enables easy unit testing
    without any repository fixtures.
    """

    # =========================================================================
    # ACTIVITY WINDOW
    # =========================================================================

    @staticmethod
    def active_window(habit: HabitData) -> tuple[date, date | None]:
        """Return the half-open activity interval [created_at, deleted_from_date).

        An unparsable created_at is treated as "always existed".
        """
        created = dt_parse_date(habit.get(const.DATA_HABIT_CREATED_AT)) or date.min
        deleted = dt_parse_date(habit.get(const.DATA_HABIT_DELETED_FROM_DATE))
        return created, deleted

    @staticmethod
    def is_active_on(habit: HabitData, day: date) -> bool:
        """Return True when the habit exists on `day`."""
        created, deleted = ScoringEngine.active_window(habit)
        return created <= day and (deleted is None or day < deleted)

    @staticmethod
    def week_window(habit: HabitData, week_start: date) -> tuple[date, date] | None:
        """Intersect the habit's activity interval with the week.

        Returns:
            Inclusive (first_day, last_day) inside the week, or None when the
            habit is not active on any day of the week.
        """
        week_end = week_start + timedelta(days=const.DAYS_PER_WEEK - 1)
        created, deleted = ScoringEngine.active_window(habit)
        first = max(week_start, created)
        last = week_end
        if deleted is not None:
            last = min(week_end, deleted - timedelta(days=1))
        if first > last:
            return None
        return first, last

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    @staticmethod
    def is_beneficial(habit: HabitData) -> bool:
        """Return True for beneficial habits."""
        return habit.get(const.DATA_HABIT_KIND) == const.HABIT_KIND_BENEFICIAL

    @staticmethod
    def is_detrimental(habit: HabitData) -> bool:
        """Return True for detrimental habits."""
        return habit.get(const.DATA_HABIT_KIND) == const.HABIT_KIND_DETRIMENTAL

    @staticmethod
    def scores_daily(habit: HabitData) -> bool:
        """Return True when the habit contributes to daily scoring."""
        if habit.get(const.DATA_HABIT_IS_TASK, False):
            return False
        if ScoringEngine.is_beneficial(habit):
            return habit.get(const.DATA_HABIT_TARGET_TYPE) == const.TARGET_TYPE_DAILY
        if ScoringEngine.is_detrimental(habit):
            return int(habit.get(const.DATA_HABIT_WEEKLY_THRESHOLD, 0)) <= 0
        return False

    @staticmethod
    def scores_weekly(habit: HabitData) -> bool:
        """Return True when the habit contributes to weekly scoring."""
        if habit.get(const.DATA_HABIT_IS_TASK, False):
            return False
        if ScoringEngine.is_beneficial(habit):
            return habit.get(const.DATA_HABIT_TARGET_TYPE) == const.TARGET_TYPE_WEEKLY
        if ScoringEngine.is_detrimental(habit):
            return int(habit.get(const.DATA_HABIT_WEEKLY_THRESHOLD, 0)) > 0
        return False

    @staticmethod
    def daily_target(habit: HabitData) -> int:
        """Return the per-day goal (beneficial) or tolerance (detrimental).

        Returns 0 for habits that are not scored daily.
        """
        if not ScoringEngine.scores_daily(habit):
            return 0
        if ScoringEngine.is_beneficial(habit):
            target = int(habit.get(const.DATA_HABIT_TARGET_VALUE, 0))
            return target if target > 0 else 1
        return int(habit.get(const.DATA_HABIT_DAILY_THRESHOLD, 0))

    @staticmethod
    def weekly_target(habit: HabitData) -> int:
        """Return the weekly goal (beneficial) or tolerance (detrimental)."""
        if not ScoringEngine.scores_weekly(habit):
            return 0
        if ScoringEngine.is_beneficial(habit):
            return int(habit.get(const.DATA_HABIT_TARGET_VALUE, 0))
        return int(habit.get(const.DATA_HABIT_WEEKLY_THRESHOLD, 0))

    # =========================================================================
    # PER-HABIT IMPACT
    # =========================================================================

    @staticmethod
    def daily_habit_impact(habit: HabitData, day: date, completions: int) -> int:
        """Return one habit's XP impact for one day.

        Returns 0 for habits inactive on `day` or not scored daily.
        """
        if not ScoringEngine.scores_daily(habit):
            return 0
        if not ScoringEngine.is_active_on(habit, day):
            return 0

        xp_value = int(habit.get(const.DATA_HABIT_XP_VALUE, 0))

        if ScoringEngine.is_beneficial(habit):
            if completions <= 0:
                return 0
            target = ScoringEngine.daily_target(habit)
            if completions >= target:
                return xp_value
            if habit.get(const.DATA_HABIT_PROPORTIONAL_REWARD, False):
                return proportional_xp(xp_value, completions, target)
            return 0

        threshold = int(habit.get(const.DATA_HABIT_DAILY_THRESHOLD, 0))
        return -excess_penalty(xp_value, completions, threshold)

    @staticmethod
    def weekly_habit_impact(
        habit: HabitData,
        week_start: date,
        daily_counts: Mapping[date, int],
    ) -> int | None:
        """Return one habit's weekly XP impact.

        Completions outside the habit's active window are ignored.

        Returns:
            The impact, or None when the habit is not scored weekly or is not
            active on any day of the week.
        """
        if not ScoringEngine.scores_weekly(habit):
            return None
        window = ScoringEngine.week_window(habit, week_start)
        if window is None:
            return None

        first, last = window
        total = sum(
            count for day, count in daily_counts.items() if first <= day <= last
        )
        xp_value = int(habit.get(const.DATA_HABIT_XP_VALUE, 0))

        if ScoringEngine.is_beneficial(habit):
            target = int(habit.get(const.DATA_HABIT_TARGET_VALUE, 0))
            if total == 0:
                if target > 0:
                    return -xp_value * const.ZERO_EFFORT_PENALTY_MULTIPLIER
                return 0
            if target > 0 and total >= target:
                return xp_value
            if habit.get(const.DATA_HABIT_PROPORTIONAL_REWARD, False):
                return proportional_xp(xp_value, total, target)
            return 0

        threshold = int(habit.get(const.DATA_HABIT_WEEKLY_THRESHOLD, 0))
        return -excess_penalty(xp_value, total, threshold)

    # =========================================================================
    # AGGREGATE DELTAS
    # =========================================================================

    @staticmethod
    def compute_daily_delta(
        day: date,
        habits: Iterable[HabitData],
        completion_counts: Mapping[str, int],
        attempt_start: date | None = None,
    ) -> int:
        """Compute one day's XP delta.

        Args:
            day: The day being scored
            habits: Candidate habits (inactive ones are filtered here)
            completion_counts: habit_id → completions on `day`
            attempt_start: Days before this date score 0 in total

        Returns:
            Signed XP delta for the day
        """
        if attempt_start is not None and day < attempt_start:
            return 0

        delta = 0
        for habit in habits:
            habit_id = habit[const.DATA_HABIT_INTERNAL_ID]
            delta += ScoringEngine.daily_habit_impact(
                habit, day, int(completion_counts.get(habit_id, 0))
            )
        return delta

    @staticmethod
    def compute_weekly_delta(
        week_start: date,
        habits: Iterable[HabitData],
        daily_completions: Mapping[str, Mapping[date, int]],
    ) -> int:
        """Compute one week's XP delta from weekly-scored habits.

        Args:
            week_start: Monday of the week
            habits: Candidate habits (daily-scored ones are ignored here)
            daily_completions: habit_id → {day: completions}

        Returns:
            Signed XP delta for the weekly pass
        """
        delta = 0
        for habit in habits:
            habit_id = habit[const.DATA_HABIT_INTERNAL_ID]
            impact = ScoringEngine.weekly_habit_impact(
                habit, week_start, daily_completions.get(habit_id, {})
            )
            if impact is not None:
                delta += impact
        return delta

    @staticmethod
    def compute_week_delta(
        week_start: date,
        habits: list[HabitData],
        daily_completions: Mapping[str, Mapping[date, int]],
        attempt_start: date | None = None,
    ) -> tuple[int, int]:
        """Compute (daily_total, weekly_total) for a full week.

        Sums compute_daily_delta over the seven days and adds the weekly pass.
        """
        daily_total = 0
        for day in dt_week_days(week_start):
            counts = {
                habit_id: int(per_day.get(day, 0))
                for habit_id, per_day in daily_completions.items()
            }
            daily_total += ScoringEngine.compute_daily_delta(
                day, habits, counts, attempt_start
            )
        weekly_total = ScoringEngine.compute_weekly_delta(
            week_start, habits, daily_completions
        )
        return daily_total, weekly_total
