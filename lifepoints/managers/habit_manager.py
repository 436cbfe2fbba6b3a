"""Habit Manager - Habit definitions and completion editing.

This manager handles:
- Creating and updating habits (validated by data_builders)
- Soft-deleting habits from a given day onward
- Reordering habits and deleting them permanently (one or all)
- Recording, removing and setting completion counts for today
- Building the per-day habit list (HabitDayStatus)

Completion rules:
- Only today's completions are editable
- Beneficial daily habits cap at their target per day
- Beneficial weekly habits cap at their target per week
- Beneficial habits without a target cap at one per day
- Detrimental habits are unlimited
- Every completion is stamped with the active attempt
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import (
    EntityValidationError,
    build_completion,
    build_habit,
    validate_habit_data,
)
from ..engines.scoring_engine import ScoringEngine
from ..exceptions import InvalidStateError, NotFoundError
from ..utils.dt_utils import dt_today_local, dt_week_start
from ..utils.math_utils import calculate_percentage
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import AttemptData, HabitData


@dataclass
class HabitDayStatus:
    """One row of the daily habit list.

    Attributes:
        habit: The habit record
        is_completed: Goal reached (beneficial) or occurred (detrimental)
        completion_count: Completions on the day
        weekly_completion_count: Completions across the day's week
        can_edit: True only for today
        weekly_completion_dates: Days of the week with at least one completion
        progress_percent: Progress towards the daily/weekly target (0-100)
    """

    habit: HabitData
    is_completed: bool
    completion_count: int
    weekly_completion_count: int
    can_edit: bool
    weekly_completion_dates: list[date] = field(default_factory=list)
    progress_percent: float = 0.0


class HabitManager(BaseManager):
    """Manager for habits and their completions."""

    async def async_setup(self) -> None:
        """Set up the HabitManager (no subscriptions)."""
        const.LOGGER.debug("DEBUG: HabitManager ready for %s", self.instance_id)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _require_habit(self, habit_id: str) -> HabitData:
        habit = self.habit_repo.get_habit(habit_id)
        if habit is None:
            raise NotFoundError(const.LABEL_HABIT, habit_id)
        return habit

    def _require_active_attempt(self) -> AttemptData:
        attempt = self.game_repo.get_active_attempt()
        if attempt is None:
            raise NotFoundError(const.LABEL_ATTEMPT, const.LABEL_ACTIVE_ATTEMPT)
        return attempt

    @staticmethod
    def _require_editable(day: date, today: date) -> None:
        if day != today:
            raise InvalidStateError(
                const.TRANS_KEY_ERROR_PAST_DATE_NOT_EDITABLE,
                {"date": day.isoformat(), "today": today.isoformat()},
            )

    @staticmethod
    def _is_weekly_goal(habit: HabitData) -> bool:
        return ScoringEngine.is_beneficial(habit) and (
            habit.get(const.DATA_HABIT_TARGET_TYPE) == const.TARGET_TYPE_WEEKLY
        )

    def _existing_habits(self) -> dict[str, HabitData]:
        return {
            habit[const.DATA_HABIT_INTERNAL_ID]: habit
            for habit in self.habit_repo.get_all_habits()
        }

    def _is_capped(self, habit: HabitData, day: date, attempt_id: str) -> bool:
        """Return True when one more completion would exceed the habit's goal."""
        if not ScoringEngine.is_beneficial(habit):
            return False
        habit_id = habit[const.DATA_HABIT_INTERNAL_ID]
        target = int(habit.get(const.DATA_HABIT_TARGET_VALUE, 0))
        target_type = habit.get(const.DATA_HABIT_TARGET_TYPE)

        if target_type == const.TARGET_TYPE_WEEKLY:
            if target <= 0:
                return False
            weekly = self.habit_repo.get_weekly_completion_count(
                habit_id, dt_week_start(day), attempt_id
            )
            return weekly >= target

        daily_cap = max(target, 1) if target_type == const.TARGET_TYPE_DAILY else 1
        count = self.habit_repo.get_completion_count(habit_id, day, attempt_id)
        return count >= daily_cap

    # =========================================================================
    # HABIT DEFINITIONS
    # =========================================================================

    async def create_habit(self, user_input: dict[str, Any]) -> HabitData:
        """Validate and store a new habit.

        Raises:
            EntityValidationError: If a business rule fails
        """
        errors = validate_habit_data(user_input, self._existing_habits())
        if errors:
            error_field, trans_key = next(iter(errors.items()))
            raise EntityValidationError(
                error_field,
                trans_key,
                {"value": str(user_input.get(const.DATA_HABIT_NAME, ""))},
            )

        if const.DATA_HABIT_SORT_ORDER not in user_input:
            user_input = {
                **user_input,
                const.DATA_HABIT_SORT_ORDER: len(self.habit_repo.get_all_habits()),
            }
        habit = build_habit(user_input)
        self.habit_repo.add_habit(habit)
        await self._persist()

        const.LOGGER.info(
            "INFO: Created habit '%s' (%s)",
            habit[const.DATA_HABIT_NAME],
            habit[const.DATA_HABIT_INTERNAL_ID],
        )
        self.emit(
            const.SIGNAL_HABIT_UPDATED, habit_id=habit[const.DATA_HABIT_INTERNAL_ID]
        )
        return habit

    async def update_habit(
        self, habit_id: str, user_input: dict[str, Any]
    ) -> HabitData:
        """Apply a partial update to a habit.

        Raises:
            NotFoundError: If the habit does not exist
            EntityValidationError: If a business rule fails
        """
        existing = self._require_habit(habit_id)
        errors = validate_habit_data(
            user_input,
            self._existing_habits(),
            is_update=True,
            current_habit_id=habit_id,
        )
        if errors:
            error_field, trans_key = next(iter(errors.items()))
            raise EntityValidationError(
                error_field,
                trans_key,
                {"value": str(user_input.get(const.DATA_HABIT_NAME, ""))},
            )

        habit = build_habit(user_input, existing=existing)
        self.habit_repo.update_habit(habit)
        await self._persist()
        const.LOGGER.debug("DEBUG: Updated habit %s", habit_id)
        self.emit(const.SIGNAL_HABIT_UPDATED, habit_id=habit_id)
        return habit

    async def delete_habit_from(
        self, habit_id: str, day: date | None = None
    ) -> int:
        """Soft-delete a habit starting at `day` (default today).

        The habit keeps scoring for earlier days. Completions on or after
        `day` are removed.

        Returns:
            Number of completions removed
        """
        habit = self._require_habit(habit_id)
        day = day or dt_today_local()

        habit[const.DATA_HABIT_DELETED_FROM_DATE] = day.isoformat()
        self.habit_repo.update_habit(habit)
        removed = self.habit_repo.delete_completions_from(habit_id, day)
        await self._persist()

        const.LOGGER.info(
            "INFO: Habit '%s' deleted from %s (%s completions removed)",
            habit[const.DATA_HABIT_NAME],
            day,
            removed,
        )
        self.emit(
            const.SIGNAL_HABIT_DELETED,
            habit_id=habit_id,
            deleted_from_date=day.isoformat(),
        )
        return removed

    async def reorder_habits(self, habit_ids: list[str]) -> list[HabitData]:
        """Give each listed habit its list position as sort_order.

        Habits not listed keep their current sort_order.

        Returns:
            Every habit in its new display order

        Raises:
            NotFoundError: If any id is unknown (nothing is changed)
        """
        for habit_id in habit_ids:
            self._require_habit(habit_id)

        self.habit_repo.update_habit_order(habit_ids)
        await self._persist()

        const.LOGGER.debug("DEBUG: Reordered %s habits", len(habit_ids))
        for habit_id in habit_ids:
            self.emit(const.SIGNAL_HABIT_UPDATED, habit_id=habit_id)
        return self.habit_repo.get_all_habits()

    async def hard_delete_habit(self, habit_id: str) -> None:
        """Permanently remove a habit and all of its completions.

        Unlike delete_habit_from(), past weeks lose the habit too; already
        settled life points are kept.

        Raises:
            NotFoundError: If the habit does not exist
        """
        habit = self._require_habit(habit_id)
        self.habit_repo.hard_delete_habit(habit_id)
        await self._persist()

        const.LOGGER.info(
            "INFO: Habit '%s' (%s) permanently deleted",
            habit[const.DATA_HABIT_NAME],
            habit_id,
        )
        self.emit(const.SIGNAL_HABIT_DELETED, habit_id=habit_id, deleted_from_date=None)

    async def delete_all_habits(self) -> int:
        """Permanently remove every habit and their completions.

        Returns:
            Number of habits removed
        """
        habit_ids = list(self._existing_habits())
        removed = self.habit_repo.delete_all_habits()
        await self._persist()

        const.LOGGER.warning("WARNING: Deleted all %s habits", removed)
        for habit_id in habit_ids:
            self.emit(
                const.SIGNAL_HABIT_DELETED, habit_id=habit_id, deleted_from_date=None
            )
        return removed

    # =========================================================================
    # COMPLETIONS
    # =========================================================================

    async def complete_habit(
        self,
        habit_id: str,
        day: date | None = None,
        today: date | None = None,
    ) -> bool:
        """Record one completion for today.

        Returns:
            True if recorded, False if the habit's goal cap was already reached

        Raises:
            NotFoundError: If the habit is unknown/inactive or no attempt is active
            InvalidStateError: If `day` is not today
        """
        today = today or dt_today_local()
        day = day or today
        self._require_editable(day, today)
        habit = self._require_habit(habit_id)
        if not ScoringEngine.is_active_on(habit, day):
            raise NotFoundError(const.LABEL_HABIT, habit_id)
        attempt_id = self._require_active_attempt()[const.DATA_ATTEMPT_INTERNAL_ID]

        if self._is_capped(habit, day, attempt_id):
            const.LOGGER.debug(
                "DEBUG: Habit %s already at its target for %s", habit_id, day
            )
            return False

        self.habit_repo.add_completion(build_completion(habit_id, day, attempt_id))
        await self._persist()
        self._emit_completion_change(habit_id, day, attempt_id)
        return True

    async def remove_completion(
        self,
        habit_id: str,
        day: date | None = None,
        today: date | None = None,
    ) -> bool:
        """Remove one completion for today.

        Weekly-goal habits give back the latest completion in the week.

        Returns:
            True if a completion was removed
        """
        today = today or dt_today_local()
        day = day or today
        self._require_editable(day, today)
        habit = self._require_habit(habit_id)
        attempt_id = self._require_active_attempt()[const.DATA_ATTEMPT_INTERNAL_ID]

        if self._is_weekly_goal(habit):
            removed = self.habit_repo.remove_last_completion_for_week(
                habit_id, dt_week_start(day), attempt_id
            )
        else:
            removed = self.habit_repo.remove_last_completion(habit_id, day, attempt_id)

        if removed:
            await self._persist()
            self._emit_completion_change(habit_id, day, attempt_id)
        return removed

    async def set_completion_count(
        self,
        habit_id: str,
        day: date,
        count: int,
        today: date | None = None,
    ) -> int:
        """Add or remove completions so `day` has exactly `count`.

        Weekly-goal habits may not exceed their weekly target in total.

        Returns:
            The resulting completion count for `day`

        Raises:
            InvalidStateError: For negative counts, non-editable days or a
                weekly target overrun
        """
        today = today or dt_today_local()
        self._require_editable(day, today)
        if count < 0:
            raise InvalidStateError(
                const.TRANS_KEY_ERROR_INVALID_COUNT, {"count": str(count)}
            )
        habit = self._require_habit(habit_id)
        attempt_id = self._require_active_attempt()[const.DATA_ATTEMPT_INTERNAL_ID]

        current = self.habit_repo.get_completion_count(habit_id, day, attempt_id)
        week_start = dt_week_start(day)
        weekly_goal = self._is_weekly_goal(habit)

        if weekly_goal:
            target = int(habit.get(const.DATA_HABIT_TARGET_VALUE, 0))
            weekly = self.habit_repo.get_weekly_completion_count(
                habit_id, week_start, attempt_id
            )
            if target > 0 and weekly - current + count > target:
                raise InvalidStateError(
                    const.TRANS_KEY_ERROR_WEEKLY_LIMIT_EXCEEDED,
                    {"limit": str(target)},
                )

        if count == current:
            return current

        while current < count:
            self.habit_repo.add_completion(build_completion(habit_id, day, attempt_id))
            current += 1
        while current > count:
            if weekly_goal:
                removed = self.habit_repo.remove_last_completion_for_week(
                    habit_id, week_start, attempt_id
                )
            else:
                removed = self.habit_repo.remove_last_completion(
                    habit_id, day, attempt_id
                )
            if not removed:
                break
            current -= 1

        await self._persist()
        self._emit_completion_change(habit_id, day, attempt_id)
        return self.habit_repo.get_completion_count(habit_id, day, attempt_id)

    def _emit_completion_change(
        self, habit_id: str, day: date, attempt_id: str
    ) -> None:
        self.emit(
            const.SIGNAL_HABIT_COMPLETED,
            habit_id=habit_id,
            date=day.isoformat(),
            attempt_id=attempt_id,
            count=self.habit_repo.get_completion_count(habit_id, day, attempt_id),
        )

    # =========================================================================
    # DAILY LIST
    # =========================================================================

    def get_habits_for_day(
        self, day: date, today: date | None = None
    ) -> list[HabitDayStatus]:
        """Return every habit active on `day` with its completion status.

        Counts come from the active attempt only (all zero without one).
        """
        today = today or dt_today_local()
        attempt = self.game_repo.get_active_attempt()
        attempt_id = attempt[const.DATA_ATTEMPT_INTERNAL_ID] if attempt else None
        week_start = dt_week_start(day)

        statuses: list[HabitDayStatus] = []
        for habit in self.habit_repo.get_active_habits(day):
            habit_id = habit[const.DATA_HABIT_INTERNAL_ID]
            if attempt_id is None:
                daily_counts: dict[date, int] = {}
            else:
                daily_counts = self.habit_repo.get_daily_completion_counts(
                    habit_id, week_start, attempt_id
                )
            count = daily_counts.get(day, 0)
            weekly_count = sum(daily_counts.values())
            statuses.append(
                HabitDayStatus(
                    habit=habit,
                    is_completed=self._is_completed(habit, count, weekly_count),
                    completion_count=count,
                    weekly_completion_count=weekly_count,
                    can_edit=day == today,
                    weekly_completion_dates=sorted(
                        d for d, c in daily_counts.items() if c > 0
                    ),
                    progress_percent=self._progress(habit, count, weekly_count),
                )
            )
        return statuses

    @staticmethod
    def _is_completed(habit: HabitData, count: int, weekly_count: int) -> bool:
        if not ScoringEngine.is_beneficial(habit):
            return count > 0
        target = int(habit.get(const.DATA_HABIT_TARGET_VALUE, 0))
        target_type = habit.get(const.DATA_HABIT_TARGET_TYPE)
        if target_type == const.TARGET_TYPE_WEEKLY:
            return weekly_count >= max(target, 1)
        if target_type == const.TARGET_TYPE_DAILY:
            return count >= max(target, 1)
        return count > 0

    @staticmethod
    def _progress(habit: HabitData, count: int, weekly_count: int) -> float:
        if not ScoringEngine.is_beneficial(habit):
            return 0.0
        target = int(habit.get(const.DATA_HABIT_TARGET_VALUE, 0))
        target_type = habit.get(const.DATA_HABIT_TARGET_TYPE)
        if target_type == const.TARGET_TYPE_WEEKLY:
            return calculate_percentage(weekly_count, target)
        return calculate_percentage(count, max(target, 1))

