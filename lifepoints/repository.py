"""Repository contracts consumed by Life Points managers.

Managers never touch the storage document directly. They depend on these
abstract interfaces so the persistence layer can be swapped (the bundled
implementation lives in store.py).

All methods are synchronous and operate on an in-memory view; managers call
`LifePointsStore.async_save()` after each unit of mutation.

Every completion and life point query filters by attempt id. Passing
`attempt_id=None` matches legacy records that were never linked to an
attempt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from .type_defs import (
        AttemptData,
        CompletionData,
        GameStateData,
        HabitData,
        LifePointData,
    )


class HabitRepository(ABC):
    """Habits and their completion events."""

    # -------------------------------------------------------------------------
    # Habits
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_active_habits(self, as_of: date) -> list[HabitData]:
        """Return habits active on `as_of`, ordered by sort_order."""

    @abstractmethod
    def get_habits_for_week(self, week_start: date) -> list[HabitData]:
        """Return habits active on at least one day of the week.

        Includes habits soft-deleted later or inside the week.
        """

    @abstractmethod
    def get_habit(self, habit_id: str) -> HabitData | None:
        """Return one habit or None."""

    @abstractmethod
    def get_all_habits(self) -> list[HabitData]:
        """Return every habit including soft-deleted ones."""

    @abstractmethod
    def add_habit(self, habit: HabitData) -> None:
        """Insert a new habit."""

    @abstractmethod
    def update_habit(self, habit: HabitData) -> None:
        """Replace an existing habit record."""

    @abstractmethod
    def get_deleted_from_date(self, habit_id: str) -> date | None:
        """Return the soft-delete boundary of a habit, if any."""

    @abstractmethod
    def update_habit_order(self, habit_ids: Iterable[str]) -> int:
        """Set each listed habit's sort_order to its position in `habit_ids`.

        Unknown ids are skipped.

        Returns:
            Number of habits updated
        """

    @abstractmethod
    def hard_delete_habit(self, habit_id: str) -> bool:
        """Permanently remove a habit and every completion of it.

        Returns:
            True if the habit existed
        """

    @abstractmethod
    def delete_all_habits(self) -> int:
        """Permanently remove every habit and their completions.

        Returns:
            Number of habits removed
        """

    # -------------------------------------------------------------------------
    # Completions
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_completion_count(
        self, habit_id: str, day: date, attempt_id: str | None
    ) -> int:
        """Return completions of a habit on one day."""

    @abstractmethod
    def get_daily_completion_counts(
        self, habit_id: str, week_start: date, attempt_id: str | None
    ) -> dict[date, int]:
        """Return {day: count} for the seven days of the week (days with 0 omitted)."""

    @abstractmethod
    def get_weekly_completion_count(
        self, habit_id: str, week_start: date, attempt_id: str | None
    ) -> int:
        """Return completions of a habit across the week."""

    @abstractmethod
    def get_completions_between(
        self, start: date, end: date, attempt_id: str | None
    ) -> list[CompletionData]:
        """Return completions with start <= date <= end for one attempt."""

    @abstractmethod
    def add_completion(self, completion: CompletionData) -> None:
        """Insert a completion event."""

    @abstractmethod
    def remove_last_completion(
        self, habit_id: str, day: date, attempt_id: str | None
    ) -> bool:
        """Remove the most recently recorded completion on `day`.

        Returns:
            True if a completion was removed
        """

    @abstractmethod
    def remove_last_completion_for_week(
        self, habit_id: str, week_start: date, attempt_id: str | None
    ) -> bool:
        """Remove the completion with the latest date in the week.

        Returns:
            True if a completion was removed
        """

    @abstractmethod
    def delete_completions_from(self, habit_id: str, day: date) -> int:
        """Delete completions of a habit dated on or after `day`; return count."""

    @abstractmethod
    def get_orphaned_completions(self) -> list[CompletionData]:
        """Return completions without an attempt id."""

    @abstractmethod
    def assign_completions_to_attempt(
        self, completion_ids: Iterable[str], attempt_id: str
    ) -> int:
        """Link completions to an attempt; return how many were updated."""

    @abstractmethod
    def delete_completions_for_attempt(self, attempt_id: str) -> int:
        """Delete every completion of an attempt; return count."""


class GameRepository(ABC):
    """Attempts, the game state singleton and weekly life points."""

    # -------------------------------------------------------------------------
    # Attempts
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_active_attempt(self) -> AttemptData | None:
        """Return the active attempt, if any."""

    @abstractmethod
    def get_attempt(self, attempt_id: str) -> AttemptData | None:
        """Return one attempt or None."""

    @abstractmethod
    def create_attempt(self, attempt: AttemptData) -> None:
        """Insert a new attempt."""

    @abstractmethod
    def update_attempt(self, attempt: AttemptData) -> None:
        """Replace an existing attempt record."""

    @abstractmethod
    def delete_attempt(self, attempt_id: str) -> bool:
        """Remove an attempt record; return True if it existed."""

    @abstractmethod
    def get_all_attempts(self) -> list[AttemptData]:
        """Return every attempt."""

    # -------------------------------------------------------------------------
    # Game state
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_game_state(self) -> GameStateData | None:
        """Return the game state singleton, or None before initialization."""

    @abstractmethod
    def save_game_state(self, game_state: GameStateData) -> None:
        """Replace the game state singleton."""

    # -------------------------------------------------------------------------
    # Life points
    # -------------------------------------------------------------------------

    @abstractmethod
    def save_life_point(self, life_point: LifePointData) -> LifePointData:
        """Upsert by (week_start_date, attempt_id).

        An existing record keeps its id and has value/date overwritten.

        Returns:
            The stored record
        """

    @abstractmethod
    def get_life_point_for_week(
        self, week_start: date, attempt_id: str | None
    ) -> LifePointData | None:
        """Return the life point of one week, if settled."""

    @abstractmethod
    def get_all_life_points(
        self, attempt_id: str | None = None
    ) -> list[LifePointData]:
        """Return life points ordered by week (all attempts when id is None)."""

    @abstractmethod
    def get_orphaned_life_points(self) -> list[LifePointData]:
        """Return life points without an attempt id."""

    @abstractmethod
    def assign_life_points_to_attempt(
        self, life_point_ids: Iterable[str], attempt_id: str
    ) -> int:
        """Link life points to an attempt; return how many were updated."""

    @abstractmethod
    def delete_life_points_for_attempt(self, attempt_id: str) -> int:
        """Delete every life point of an attempt; return count."""
