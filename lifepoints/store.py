# File: store.py
"""Handles persistent data storage for Life Points.

`LifePointsStore` keeps the whole storage document in memory and optionally
mirrors it to a JSON file. `StoreHabitRepository` and `StoreGameRepository`
implement the repository contracts on top of that document. Every record is
keyed by its internal_id.
"""

from __future__ import annotations

import asyncio
from datetime import date
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from . import const
from .exceptions import StorageError
from .repository import GameRepository, HabitRepository
from .utils.dt_utils import dt_add_days, dt_now_iso, dt_parse_date

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .type_defs import (
        AttemptData,
        CompletionData,
        GameStateData,
        HabitData,
        LifePointData,
    )


class LifePointsStore:
    """Handles persistent storage operations for Life Points data.

    Thin in-memory cache with optional JSON file persistence. Without a
    storage path the store is purely in-memory (used by tests and embedders
    that persist elsewhere).
    """

    def __init__(self, storage_path: str | Path | None = None) -> None:
        """Initialize the store.

        Args:
            storage_path: JSON file location, or None for an in-memory store.
        """
        self._path: Path | None = Path(storage_path) if storage_path else None
        self._data: dict[str, Any] = LifePointsStore.get_default_structure()

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty data structure for fresh installations.

        This is the SINGLE SOURCE OF TRUTH for the storage schema.
        """
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT,
                const.DATA_META_LAST_MIGRATION_DATE: None,
                const.DATA_META_MIGRATIONS_APPLIED: [],
            },
            const.DATA_HABITS: {},
            const.DATA_COMPLETIONS: {},
            const.DATA_ATTEMPTS: {},
            const.DATA_LIFE_POINTS: {},
            const.DATA_GAME_STATE: None,
        }

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, initializes with an empty structure.
        """
        const.LOGGER.debug("DEBUG: LifePointsStore: Loading data from storage")
        existing_data = await self._async_load()

        if existing_data is None:
            # Keep the current in-memory document (default structure when new)
            const.LOGGER.info("INFO: No existing storage found. Using in-memory data")
            return

        # Fill sections added after the file was written
        for key, default in LifePointsStore.get_default_structure().items():
            existing_data.setdefault(key, default)
        self._data = existing_data
        const.LOGGER.debug(
            "DEBUG: Loaded existing data from storage: %s",
            {
                "habits": len(self._data[const.DATA_HABITS]),
                "completions": len(self._data[const.DATA_COMPLETIONS]),
                "attempts": len(self._data[const.DATA_ATTEMPTS]),
                "life_points": len(self._data[const.DATA_LIFE_POINTS]),
            },
        )

    async def _async_load(self) -> dict[str, Any] | None:
        if self._path is None or not self._path.exists():
            return None
        raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        document = json.loads(raw)
        # Files carry a version envelope around the data section
        return document.get("data", document)

    @staticmethod
    def _write(path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(path)

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    @property
    def storage_path(self) -> Path | None:
        """Return the storage file path (None for in-memory stores)."""
        return self._path

    def set_data(self, new_data: dict[str, Any]) -> None:
        """Replace the entire in-memory data structure."""
        self._data = new_data

    async def async_save(self) -> None:
        """Save the current data structure to storage asynchronously.

        Raises:
            StorageError: The file could not be written (OSError) or the data
                could not be serialized to JSON (TypeError, ValueError). The
                failure is logged before it is raised.
        """
        path = self._path
        if path is None:
            return
        try:
            payload = json.dumps(
                {
                    "version": const.STORAGE_VERSION,
                    "key": const.STORAGE_KEY,
                    "data": self._data,
                },
                indent=2,
            )
            await asyncio.to_thread(self._write, path, payload)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                path,
            )
            raise StorageError(
                const.TRANS_KEY_ERROR_STORAGE_SAVE_FAILED,
                {"path": str(path), "error": str(err)},
            ) from err
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s. "
                "Data contains values that cannot be converted to JSON",
                err,
            )
            raise StorageError(
                const.TRANS_KEY_ERROR_STORAGE_SAVE_FAILED,
                {"path": str(path), "error": str(err)},
            ) from err
        const.LOGGER.debug("DEBUG: Data saved successfully to storage")

    async def async_clear_data(self) -> None:
        """Clear all stored data and reset to default structure."""
        const.LOGGER.warning(
            "WARNING: Clearing all Life Points data and resetting storage"
        )
        self._data = LifePointsStore.get_default_structure()
        await self.async_save()


# ==============================================================================
# Store-backed repositories
# ==============================================================================


def _day(record: dict[str, Any], key: str) -> date | None:
    return dt_parse_date(record.get(key))


class StoreHabitRepository(HabitRepository):
    """HabitRepository over the LifePointsStore document."""

    def __init__(self, store: LifePointsStore) -> None:
        """Initialize the repository."""
        self._store = store

    @property
    def _habits(self) -> dict[str, HabitData]:
        return self._store.data[const.DATA_HABITS]

    @property
    def _completions(self) -> dict[str, CompletionData]:
        return self._store.data[const.DATA_COMPLETIONS]

    def _matching_completions(
        self, habit_id: str | None, attempt_id: str | None
    ) -> list[CompletionData]:
        return [
            completion
            for completion in self._completions.values()
            if (
                habit_id is None
                or completion[const.DATA_COMPLETION_HABIT_ID] == habit_id
            )
            and completion.get(const.DATA_COMPLETION_ATTEMPT_ID) == attempt_id
        ]

    @staticmethod
    def _sorted(habits: Iterable[HabitData]) -> list[HabitData]:
        return sorted(
            habits,
            key=lambda h: (
                h.get(const.DATA_HABIT_SORT_ORDER, 0),
                h.get(const.DATA_HABIT_NAME, ""),
            ),
        )

    # -------------------------------------------------------------------------
    # Habits
    # -------------------------------------------------------------------------

    def get_active_habits(self, as_of: date) -> list[HabitData]:
        result = []
        for habit in self._habits.values():
            created = _day(habit, const.DATA_HABIT_CREATED_AT) or date.min
            deleted = _day(habit, const.DATA_HABIT_DELETED_FROM_DATE)
            if created <= as_of and (deleted is None or as_of < deleted):
                result.append(habit)
        return self._sorted(result)

    def get_habits_for_week(self, week_start: date) -> list[HabitData]:
        week_end = dt_add_days(week_start, const.DAYS_PER_WEEK - 1)
        result = []
        for habit in self._habits.values():
            created = _day(habit, const.DATA_HABIT_CREATED_AT) or date.min
            deleted = _day(habit, const.DATA_HABIT_DELETED_FROM_DATE)
            if created <= week_end and (deleted is None or deleted > week_start):
                result.append(habit)
        return self._sorted(result)

    def get_habit(self, habit_id: str) -> HabitData | None:
        return self._habits.get(habit_id)

    def get_all_habits(self) -> list[HabitData]:
        return self._sorted(self._habits.values())

    def add_habit(self, habit: HabitData) -> None:
        self._habits[habit[const.DATA_HABIT_INTERNAL_ID]] = habit

    def update_habit(self, habit: HabitData) -> None:
        habit_id = habit[const.DATA_HABIT_INTERNAL_ID]
        if habit_id not in self._habits:
            raise KeyError(habit_id)
        self._habits[habit_id] = habit

    def get_deleted_from_date(self, habit_id: str) -> date | None:
        habit = self._habits.get(habit_id)
        if habit is None:
            return None
        return _day(habit, const.DATA_HABIT_DELETED_FROM_DATE)

    def update_habit_order(self, habit_ids: Iterable[str]) -> int:
        updated = 0
        for index, habit_id in enumerate(habit_ids):
            habit = self._habits.get(habit_id)
            if habit is None:
                continue
            habit[const.DATA_HABIT_SORT_ORDER] = index
            updated += 1
        return updated

    def hard_delete_habit(self, habit_id: str) -> bool:
        if self._habits.pop(habit_id, None) is None:
            return False
        self._delete_completions_of({habit_id})
        return True

    def delete_all_habits(self) -> int:
        habit_ids = set(self._habits)
        self._habits.clear()
        self._delete_completions_of(habit_ids)
        return len(habit_ids)

    def _delete_completions_of(self, habit_ids: set[str]) -> int:
        doomed = [
            completion_id
            for completion_id, completion in self._completions.items()
            if completion[const.DATA_COMPLETION_HABIT_ID] in habit_ids
        ]
        for completion_id in doomed:
            del self._completions[completion_id]
        return len(doomed)

    # -------------------------------------------------------------------------
    # Completions
    # -------------------------------------------------------------------------

    def get_completion_count(
        self, habit_id: str, day: date, attempt_id: str | None
    ) -> int:
        day_iso = day.isoformat()
        return sum(
            1
            for completion in self._matching_completions(habit_id, attempt_id)
            if completion[const.DATA_COMPLETION_DATE] == day_iso
        )

    def get_daily_completion_counts(
        self, habit_id: str, week_start: date, attempt_id: str | None
    ) -> dict[date, int]:
        week_end = dt_add_days(week_start, const.DAYS_PER_WEEK - 1)
        counts: dict[date, int] = {}
        for completion in self._matching_completions(habit_id, attempt_id):
            day = _day(completion, const.DATA_COMPLETION_DATE)
            if day is not None and week_start <= day <= week_end:
                counts[day] = counts.get(day, 0) + 1
        return counts

    def get_weekly_completion_count(
        self, habit_id: str, week_start: date, attempt_id: str | None
    ) -> int:
        return sum(
            self.get_daily_completion_counts(habit_id, week_start, attempt_id).values()
        )

    def get_completions_between(
        self, start: date, end: date, attempt_id: str | None
    ) -> list[CompletionData]:
        result = []
        for completion in self._matching_completions(None, attempt_id):
            day = _day(completion, const.DATA_COMPLETION_DATE)
            if day is not None and start <= day <= end:
                result.append(completion)
        return result

    def add_completion(self, completion: CompletionData) -> None:
        self._completions[completion[const.DATA_COMPLETION_INTERNAL_ID]] = completion

    def remove_last_completion(
        self, habit_id: str, day: date, attempt_id: str | None
    ) -> bool:
        day_iso = day.isoformat()
        matches = [
            completion
            for completion in self._matching_completions(habit_id, attempt_id)
            if completion[const.DATA_COMPLETION_DATE] == day_iso
        ]
        if not matches:
            return False
        # Stable sort: equal timestamps keep insertion order
        latest = sorted(
            matches, key=lambda c: c.get(const.DATA_COMPLETION_RECORDED_AT) or ""
        )[-1]
        del self._completions[latest[const.DATA_COMPLETION_INTERNAL_ID]]
        return True

    def remove_last_completion_for_week(
        self, habit_id: str, week_start: date, attempt_id: str | None
    ) -> bool:
        week_end = dt_add_days(week_start, const.DAYS_PER_WEEK - 1)
        latest: CompletionData | None = None
        latest_day = date.min
        for completion in self._matching_completions(habit_id, attempt_id):
            day = _day(completion, const.DATA_COMPLETION_DATE)
            if day is None or not week_start <= day <= week_end:
                continue
            if day >= latest_day:
                latest, latest_day = completion, day
        if latest is None:
            return False
        del self._completions[latest[const.DATA_COMPLETION_INTERNAL_ID]]
        return True

    def delete_completions_from(self, habit_id: str, day: date) -> int:
        doomed = [
            completion_id
            for completion_id, completion in self._completions.items()
            if completion[const.DATA_COMPLETION_HABIT_ID] == habit_id
            and (_day(completion, const.DATA_COMPLETION_DATE) or date.min) >= day
        ]
        for completion_id in doomed:
            del self._completions[completion_id]
        return len(doomed)

    def get_orphaned_completions(self) -> list[CompletionData]:
        return self._matching_completions(None, None)

    def assign_completions_to_attempt(
        self, completion_ids: Iterable[str], attempt_id: str
    ) -> int:
        updated = 0
        for completion_id in completion_ids:
            completion = self._completions.get(completion_id)
            if completion is None:
                continue
            completion[const.DATA_COMPLETION_ATTEMPT_ID] = attempt_id
            updated += 1
        return updated

    def delete_completions_for_attempt(self, attempt_id: str) -> int:
        doomed = [
            completion[const.DATA_COMPLETION_INTERNAL_ID]
            for completion in self._matching_completions(None, attempt_id)
        ]
        for completion_id in doomed:
            del self._completions[completion_id]
        return len(doomed)


class StoreGameRepository(GameRepository):
    """GameRepository over the LifePointsStore document."""

    def __init__(self, store: LifePointsStore) -> None:
        """Initialize the repository."""
        self._store = store

    @property
    def _attempts(self) -> dict[str, AttemptData]:
        return self._store.data[const.DATA_ATTEMPTS]

    @property
    def _life_points(self) -> dict[str, LifePointData]:
        return self._store.data[const.DATA_LIFE_POINTS]

    # -------------------------------------------------------------------------
    # Attempts
    # -------------------------------------------------------------------------

    def get_active_attempt(self) -> AttemptData | None:
        for attempt in self._attempts.values():
            if attempt.get(const.DATA_ATTEMPT_IS_ACTIVE):
                return attempt
        return None

    def get_attempt(self, attempt_id: str) -> AttemptData | None:
        return self._attempts.get(attempt_id)

    def create_attempt(self, attempt: AttemptData) -> None:
        self._attempts[attempt[const.DATA_ATTEMPT_INTERNAL_ID]] = attempt

    def update_attempt(self, attempt: AttemptData) -> None:
        attempt_id = attempt[const.DATA_ATTEMPT_INTERNAL_ID]
        if attempt_id not in self._attempts:
            raise KeyError(attempt_id)
        self._attempts[attempt_id] = attempt

    def delete_attempt(self, attempt_id: str) -> bool:
        return self._attempts.pop(attempt_id, None) is not None

    def get_all_attempts(self) -> list[AttemptData]:
        return list(self._attempts.values())

    # -------------------------------------------------------------------------
    # Game state
    # -------------------------------------------------------------------------

    def get_game_state(self) -> GameStateData | None:
        return self._store.data.get(const.DATA_GAME_STATE)

    def save_game_state(self, game_state: GameStateData) -> None:
        game_state[const.DATA_GAME_STATE_UPDATED_AT] = dt_now_iso()
        self._store.data[const.DATA_GAME_STATE] = game_state

    # -------------------------------------------------------------------------
    # Life points
    # -------------------------------------------------------------------------

    def save_life_point(self, life_point: LifePointData) -> LifePointData:
        existing = self.get_life_point_for_week(
            dt_parse_date(life_point[const.DATA_LIFE_POINT_WEEK_START_DATE])
            or date.min,
            life_point.get(const.DATA_LIFE_POINT_ATTEMPT_ID),
        )
        if existing is not None:
            existing[const.DATA_LIFE_POINT_VALUE] = life_point[
                const.DATA_LIFE_POINT_VALUE
            ]
            existing[const.DATA_LIFE_POINT_DATE] = life_point[
                const.DATA_LIFE_POINT_DATE
            ]
            return existing
        self._life_points[life_point[const.DATA_LIFE_POINT_INTERNAL_ID]] = life_point
        return life_point

    def get_life_point_for_week(
        self, week_start: date, attempt_id: str | None
    ) -> LifePointData | None:
        week_iso = week_start.isoformat()
        for life_point in self._life_points.values():
            if (
                life_point[const.DATA_LIFE_POINT_WEEK_START_DATE] == week_iso
                and life_point.get(const.DATA_LIFE_POINT_ATTEMPT_ID) == attempt_id
            ):
                return life_point
        return None

    def get_all_life_points(
        self, attempt_id: str | None = None
    ) -> list[LifePointData]:
        points = [
            life_point
            for life_point in self._life_points.values()
            if attempt_id is None
            or life_point.get(const.DATA_LIFE_POINT_ATTEMPT_ID) == attempt_id
        ]
        return sorted(points, key=lambda lp: lp[const.DATA_LIFE_POINT_WEEK_START_DATE])

    def get_orphaned_life_points(self) -> list[LifePointData]:
        return [
            life_point
            for life_point in self._life_points.values()
            if life_point.get(const.DATA_LIFE_POINT_ATTEMPT_ID) is None
        ]

    def assign_life_points_to_attempt(
        self, life_point_ids: Iterable[str], attempt_id: str
    ) -> int:
        updated = 0
        for life_point_id in life_point_ids:
            life_point = self._life_points.get(life_point_id)
            if life_point is None:
                continue
            life_point[const.DATA_LIFE_POINT_ATTEMPT_ID] = attempt_id
            updated += 1
        return updated

    def delete_life_points_for_attempt(self, attempt_id: str) -> int:
        doomed = [
            life_point_id
            for life_point_id, life_point in self._life_points.items()
            if life_point.get(const.DATA_LIFE_POINT_ATTEMPT_ID) == attempt_id
        ]
        for life_point_id in doomed:
            del self._life_points[life_point_id]
        return len(doomed)
