"""Report Manager - Weekly audit reports and the life point chart.

This manager handles:
- Rebuilding the per-habit, per-day breakdown of a settled week
- The cumulative daily points series of the active attempt

Reports are recomputed from completions with the same ScoringEngine helpers
that settlement uses, so `computed_xp_change` matches the persisted weekly
value unless habits or completions changed after settlement.

Built reports are cached per (attempt, week) and dropped whenever a signal
reports a change that could affect them.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.scoring_engine import ScoringEngine
from ..type_defs import (
    ChartPoint,
    DayAnalysis,
    HabitWeeklyAnalysis,
    WeeklyReport,
)
from ..utils.dt_utils import (
    dt_add_days,
    dt_parse_date,
    dt_today_local,
    dt_week_days,
    dt_week_start,
)
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import HabitData


class ReportManager(BaseManager):
    """Manager for read-only reporting."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Initialize the ReportManager."""
        super().__init__(*args, **kwargs)
        # (attempt_id, week_start ISO) -> report
        self._report_cache: dict[tuple[str, str], WeeklyReport] = {}

    async def async_setup(self) -> None:
        """Set up the ReportManager.

        Subscribe to every signal that changes completions or settled weeks.
        """
        for suffix in (
            const.SIGNAL_WEEK_SETTLED,
            const.SIGNAL_HABIT_COMPLETED,
            const.SIGNAL_HABIT_DELETED,
            const.SIGNAL_HABIT_UPDATED,
            const.SIGNAL_GAME_RESET,
            const.SIGNAL_ATTEMPT_DELETED,
        ):
            self.listen(suffix, self._on_data_changed)

    def _on_data_changed(self, payload: dict[str, Any]) -> None:
        """Drop cached reports."""
        if self._report_cache:
            const.LOGGER.debug(
                "DEBUG: Clearing %s cached weekly reports", len(self._report_cache)
            )
            self._report_cache.clear()

    # =========================================================================
    # WEEKLY REPORT
    # =========================================================================

    def get_weekly_report(self, week_start: date) -> WeeklyReport | None:
        """Return the breakdown of a settled week of the active attempt.

        Returns:
            The report, or None when the week has no LifePoint (not settled)
        """
        week_start = dt_week_start(week_start)
        attempt = self.game_repo.get_active_attempt()
        if attempt is None:
            return None
        attempt_id = attempt[const.DATA_ATTEMPT_INTERNAL_ID]
        life_point = self.game_repo.get_life_point_for_week(week_start, attempt_id)
        if life_point is None:
            return None

        cache_key = (attempt_id, week_start.isoformat())
        if cache_key in self._report_cache:
            return self._report_cache[cache_key]

        attempt_start = dt_parse_date(attempt[const.DATA_ATTEMPT_START_DATE])
        analyses = [
            self._analyze_habit(habit, week_start, attempt_id, attempt_start)
            for habit in self.habit_repo.get_habits_for_week(week_start)
            if not habit.get(const.DATA_HABIT_IS_TASK, False)
        ]
        analyses.sort(key=lambda analysis: abs(analysis["total_impact"]), reverse=True)

        report = WeeklyReport(
            week_start_date=week_start.isoformat(),
            total_xp_change=int(life_point[const.DATA_LIFE_POINT_VALUE]),
            computed_xp_change=sum(a["total_impact"] for a in analyses),
            analyses=analyses,
        )
        if report["computed_xp_change"] != report["total_xp_change"]:
            const.LOGGER.debug(
                "DEBUG: Week %s recomputes to %s but settled at %s",
                week_start,
                report["computed_xp_change"],
                report["total_xp_change"],
            )
        self._report_cache[cache_key] = report
        return report

    def _analyze_habit(
        self,
        habit: HabitData,
        week_start: date,
        attempt_id: str,
        attempt_start: date | None,
    ) -> HabitWeeklyAnalysis:
        """Build one habit's daily rows and weekly impact."""
        habit_id = habit[const.DATA_HABIT_INTERNAL_ID]
        daily_counts = self.habit_repo.get_daily_completion_counts(
            habit_id, week_start, attempt_id
        )
        target = ScoringEngine.daily_target(habit)

        details: list[DayAnalysis] = []
        for day in dt_week_days(week_start):
            completions = daily_counts.get(day, 0)
            if attempt_start is not None and day < attempt_start:
                impact = 0
            else:
                impact = ScoringEngine.daily_habit_impact(habit, day, completions)
            details.append(
                DayAnalysis(
                    date=day.isoformat(),
                    completions=completions,
                    target=target,
                    impact=impact,
                )
            )

        weekly_impact = ScoringEngine.weekly_habit_impact(
            habit, week_start, daily_counts
        )
        return HabitWeeklyAnalysis(
            habit_id=habit_id,
            habit_name=habit.get(const.DATA_HABIT_NAME, ""),
            habit_kind=habit.get(const.DATA_HABIT_KIND, ""),
            total_impact=sum(d["impact"] for d in details) + (weekly_impact or 0),
            details=details,
            weekly_target_impact=weekly_impact,
        )

    # =========================================================================
    # CHART
    # =========================================================================

    def get_chart_series(self, today: date | None = None) -> list[ChartPoint]:
        """Return cumulative daily points from the attempt start to `today`.

        Only daily scoring contributes. Each point is clamped at zero; the
        running total itself is not.
        """
        today = today or dt_today_local()
        attempt = self.game_repo.get_active_attempt()
        if attempt is None:
            return []
        start = dt_parse_date(attempt[const.DATA_ATTEMPT_START_DATE])
        if start is None or start > today:
            return []

        counts: dict[date, dict[str, int]] = {}
        for completion in self.habit_repo.get_completions_between(
            start, today, attempt[const.DATA_ATTEMPT_INTERNAL_ID]
        ):
            day = dt_parse_date(completion[const.DATA_COMPLETION_DATE])
            if day is None:
                continue
            per_habit = counts.setdefault(day, {})
            habit_id = completion[const.DATA_COMPLETION_HABIT_ID]
            per_habit[habit_id] = per_habit.get(habit_id, 0) + 1

        habits = self.habit_repo.get_all_habits()
        series: list[ChartPoint] = []
        cumulative = 0
        day = start
        while day <= today:
            cumulative += ScoringEngine.compute_daily_delta(
                day, habits, counts.get(day, {}), start
            )
            series.append(ChartPoint(date=day.isoformat(), points=max(0, cumulative)))
            day = dt_add_days(day, 1)
        return series
