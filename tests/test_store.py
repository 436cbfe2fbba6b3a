"""Tests for LifePointsStore and the store-backed repositories."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from lifepoints import const
from lifepoints.data_builders import build_attempt, build_completion, build_life_point
from lifepoints.exceptions import StorageError
from lifepoints.store import LifePointsStore, StoreGameRepository, StoreHabitRepository
from tests.helpers import W0, W1, add_completions, day, make_habit

# =============================================================================
# TEST: PERSISTENCE
# =============================================================================


class TestLifePointsStore:
    """JSON persistence of the storage document."""

    async def test_round_trip(self, tmp_path: Path) -> None:
        """Saved data loads back into a new store unchanged."""
        path = tmp_path / "lifepoints.json"
        store = LifePointsStore(path)
        await store.async_initialize()
        habit = make_habit(name="Read")
        StoreHabitRepository(store).add_habit(habit)
        await store.async_save()

        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["version"] == const.STORAGE_VERSION
        assert document["key"] == const.STORAGE_KEY

        reloaded = LifePointsStore(path)
        await reloaded.async_initialize()
        assert StoreHabitRepository(reloaded).get_all_habits() == [habit]

    async def test_missing_sections_filled(self, tmp_path: Path) -> None:
        """Files written before a section existed gain the default."""
        path = tmp_path / "lifepoints.json"
        path.write_text(json.dumps({const.DATA_HABITS: {}}), encoding="utf-8")

        store = LifePointsStore(path)
        await store.async_initialize()

        assert store.data[const.DATA_ATTEMPTS] == {}
        assert store.data[const.DATA_GAME_STATE] is None

    async def test_in_memory_store_keeps_data(self) -> None:
        """Without a path, initialize and save leave the document alone."""
        store = LifePointsStore()
        store.data[const.DATA_HABITS]["x"] = make_habit(name="Read")
        await store.async_initialize()
        await store.async_save()
        assert store.storage_path is None
        assert "x" in store.data[const.DATA_HABITS]

    async def test_save_error_raised(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A path that cannot be written raises StorageError after logging."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        path = blocker / "lifepoints.json"
        store = LifePointsStore(path)

        with caplog.at_level(logging.ERROR), pytest.raises(StorageError) as err:
            await store.async_save()

        assert err.value.translation_key == const.TRANS_KEY_ERROR_STORAGE_SAVE_FAILED
        assert isinstance(err.value.__cause__, OSError)
        assert "Failed to save storage" in caplog.text
        assert not path.exists()

    async def test_unserializable_data_raised(self, tmp_path: Path) -> None:
        """Values JSON cannot encode raise StorageError and leave no file."""
        path = tmp_path / "lifepoints.json"
        store = LifePointsStore(path)
        store.data[const.DATA_HABITS]["x"] = {"bad": object()}

        with pytest.raises(StorageError):
            await store.async_save()
        assert not path.exists()

    async def test_clear_data(self) -> None:
        """Clearing restores the default structure."""
        store = LifePointsStore()
        store.data[const.DATA_HABITS]["x"] = make_habit(name="Read")
        await store.async_clear_data()
        assert store.data == LifePointsStore.get_default_structure()


# =============================================================================
# TEST: REPOSITORIES
# =============================================================================


class TestStoreHabitRepository:
    """Habit and completion queries."""

    def test_habits_for_week_include_deleted_inside_week(
        self, habit_repo: StoreHabitRepository
    ) -> None:
        """Habits deleted mid-week still score for that week."""
        kept = make_habit(name="A", sort_order=1)
        mid_week = make_habit(
            name="B", sort_order=0, deleted_from_date=day(W0, 3)
        )
        gone = make_habit(name="C", deleted_from_date=W0)
        later = make_habit(name="D", created_at=W1)
        for habit in (kept, mid_week, gone, later):
            habit_repo.add_habit(habit)

        names = [h[const.DATA_HABIT_NAME] for h in habit_repo.get_habits_for_week(W0)]
        assert names == ["B", "A"]
        assert habit_repo.get_deleted_from_date(
            mid_week[const.DATA_HABIT_INTERNAL_ID]
        ) == day(W0, 3)

    def test_counts_filtered_by_attempt(
        self, habit_repo: StoreHabitRepository
    ) -> None:
        """Completions of other attempts and orphans are not counted."""
        add_completions(habit_repo, "h", W0, "a1", count=2)
        add_completions(habit_repo, "h", W0, "a2")
        add_completions(habit_repo, "h", day(W0, 3), None)

        assert habit_repo.get_completion_count("h", W0, "a1") == 2
        assert habit_repo.get_daily_completion_counts("h", W0, "a2") == {W0: 1}
        assert habit_repo.get_weekly_completion_count("h", W0, None) == 1
        assert len(habit_repo.get_orphaned_completions()) == 1

    def test_remove_last_completion_for_week(
        self, habit_repo: StoreHabitRepository
    ) -> None:
        """The completion with the latest date goes first."""
        add_completions(habit_repo, "h", day(W0, 4), "a1")
        add_completions(habit_repo, "h", day(W0, 1), "a1")

        assert habit_repo.remove_last_completion_for_week("h", W0, "a1")
        assert habit_repo.get_daily_completion_counts("h", W0, "a1") == {
            day(W0, 1): 1
        }
        assert not habit_repo.remove_last_completion_for_week("h", W1, "a1")

    def test_delete_completions_from(
        self, habit_repo: StoreHabitRepository
    ) -> None:
        """Only completions on or after the day are deleted."""
        for offset in range(5):
            habit_repo.add_completion(build_completion("h", day(W0, offset), "a1"))
        assert habit_repo.delete_completions_from("h", day(W0, 3)) == 2
        assert habit_repo.get_weekly_completion_count("h", W0, "a1") == 3

    def test_remove_last_completion_uses_recorded_at(
        self, habit_repo: StoreHabitRepository
    ) -> None:
        """The most recently recorded completion of the day is removed."""
        later = build_completion("h", W0, "a1")
        later[const.DATA_COMPLETION_RECORDED_AT] = "2026-01-05T20:00:00+00:00"
        earlier = build_completion("h", W0, "a1")
        earlier[const.DATA_COMPLETION_RECORDED_AT] = "2026-01-05T08:00:00+00:00"
        habit_repo.add_completion(later)
        habit_repo.add_completion(earlier)

        assert habit_repo.remove_last_completion("h", W0, "a1")
        remaining = habit_repo.get_completions_between(W0, W0, "a1")
        assert [c[const.DATA_COMPLETION_INTERNAL_ID] for c in remaining] == [
            earlier[const.DATA_COMPLETION_INTERNAL_ID]
        ]

    def test_update_unknown_habit(self, habit_repo: StoreHabitRepository) -> None:
        """Updating a habit that was never added is a KeyError."""
        with pytest.raises(KeyError):
            habit_repo.update_habit(make_habit(name="Ghost"))

    def test_update_habit_order(self, habit_repo: StoreHabitRepository) -> None:
        """Listed habits take their position as sort_order; unknown ids skip."""
        first = make_habit(name="A", sort_order=0)
        second = make_habit(name="B", sort_order=1)
        habit_repo.add_habit(first)
        habit_repo.add_habit(second)

        updated = habit_repo.update_habit_order(
            [
                second[const.DATA_HABIT_INTERNAL_ID],
                "ghost",
                first[const.DATA_HABIT_INTERNAL_ID],
            ]
        )

        assert updated == 2
        assert [h[const.DATA_HABIT_NAME] for h in habit_repo.get_all_habits()] == [
            "B",
            "A",
        ]
        assert first[const.DATA_HABIT_SORT_ORDER] == 2

    def test_hard_delete_habit(self, habit_repo: StoreHabitRepository) -> None:
        """The habit and only its completions disappear."""
        doomed = make_habit(name="A")
        kept = make_habit(name="B")
        habit_repo.add_habit(doomed)
        habit_repo.add_habit(kept)
        doomed_id = doomed[const.DATA_HABIT_INTERNAL_ID]
        kept_id = kept[const.DATA_HABIT_INTERNAL_ID]
        add_completions(habit_repo, doomed_id, W0, "a1", count=2)
        add_completions(habit_repo, kept_id, W0, "a1")

        assert habit_repo.hard_delete_habit(doomed_id)
        assert not habit_repo.hard_delete_habit(doomed_id)
        assert habit_repo.get_habit(doomed_id) is None
        assert habit_repo.get_completion_count(doomed_id, W0, "a1") == 0
        assert habit_repo.get_completion_count(kept_id, W0, "a1") == 1

    def test_delete_all_habits(self, habit_repo: StoreHabitRepository) -> None:
        """Every habit and completion is removed."""
        for name in ("A", "B"):
            habit = make_habit(name=name)
            habit_repo.add_habit(habit)
            add_completions(habit_repo, habit[const.DATA_HABIT_INTERNAL_ID], W0, "a1")

        assert habit_repo.delete_all_habits() == 2
        assert habit_repo.get_all_habits() == []
        assert habit_repo.get_completions_between(W0, day(W0, 6), "a1") == []
        assert habit_repo.delete_all_habits() == 0


class TestStoreGameRepository:
    """Attempts and life points."""

    def test_life_point_upsert(self, game_repo: StoreGameRepository) -> None:
        """Saving a week twice keeps one record with the first id."""
        first = game_repo.save_life_point(build_life_point(W0, day(W0, 6), -5, "a1"))
        second = game_repo.save_life_point(build_life_point(W0, day(W0, 6), 7, "a1"))

        assert second[const.DATA_LIFE_POINT_INTERNAL_ID] == (
            first[const.DATA_LIFE_POINT_INTERNAL_ID]
        )
        points = game_repo.get_all_life_points("a1")
        assert len(points) == 1
        assert points[0][const.DATA_LIFE_POINT_VALUE] == 7

    def test_life_points_per_attempt(self, game_repo: StoreGameRepository) -> None:
        """The same week may be settled once per attempt."""
        game_repo.save_life_point(build_life_point(W1, day(W1, 6), 1, "a1"))
        game_repo.save_life_point(build_life_point(W0, day(W0, 6), 2, "a1"))
        game_repo.save_life_point(build_life_point(W0, day(W0, 6), 3, "a2"))

        assert [
            lp[const.DATA_LIFE_POINT_VALUE]
            for lp in game_repo.get_all_life_points("a1")
        ] == [2, 1]
        assert len(game_repo.get_all_life_points()) == 3
        assert game_repo.delete_life_points_for_attempt("a1") == 2

    def test_attempts(self, game_repo: StoreGameRepository) -> None:
        """Active lookup, update and delete."""
        closed = build_attempt(W0, 100, end_date=W1, ending_lives=3, is_active=False)
        active = build_attempt(W1, 100)
        game_repo.create_attempt(closed)
        game_repo.create_attempt(active)

        assert game_repo.get_active_attempt() == active
        assert game_repo.delete_attempt(closed[const.DATA_ATTEMPT_INTERNAL_ID])
        assert not game_repo.delete_attempt(closed[const.DATA_ATTEMPT_INTERNAL_ID])
        with pytest.raises(KeyError):
            game_repo.update_attempt(closed)
