"""Tests for migrate_orphaned_records - startup repair of legacy records."""

from __future__ import annotations

from lifepoints import const
from lifepoints.data_builders import (
    build_attempt,
    build_completion,
    build_game_state,
    build_life_point,
)
from lifepoints.migration import MIGRATION_ORPHAN_HEALING, migrate_orphaned_records
from lifepoints.store import LifePointsStore, StoreGameRepository, StoreHabitRepository
from tests.helpers import W0, W1, W2, W3, day


async def _migrate(
    store: LifePointsStore,
    habit_repo: StoreHabitRepository,
    game_repo: StoreGameRepository,
) -> dict[str, int]:
    return await migrate_orphaned_records(
        store, habit_repo, game_repo, starting_lives=100, today=W3
    )


def _add_orphans(
    habit_repo: StoreHabitRepository, game_repo: StoreGameRepository
) -> None:
    habit_repo.add_completion(build_completion("habit-1", day(W1, 2), None))
    habit_repo.add_completion(build_completion("habit-1", day(W0, 4), None))
    game_repo.save_life_point(build_life_point(W1, day(W1, 6), -5, None))


class TestFreshInstall:
    """Empty documents get a game state and an initial attempt."""

    async def test_creates_game_state_and_attempt(
        self,
        store: LifePointsStore,
        habit_repo: StoreHabitRepository,
        game_repo: StoreGameRepository,
    ) -> None:
        """Both singletons are created and the migration is recorded."""
        summary = await _migrate(store, habit_repo, game_repo)

        assert summary == {
            "game_state_created": 1,
            "attempts_created": 1,
            "completions_linked": 0,
            "life_points_linked": 0,
        }
        attempt = game_repo.get_active_attempt()
        assert attempt[const.DATA_ATTEMPT_START_DATE] == W3.isoformat()
        assert game_repo.get_game_state()[const.DATA_GAME_STATE_CURRENT_LIVES] == 100
        meta = store.data[const.DATA_META]
        assert MIGRATION_ORPHAN_HEALING in meta[const.DATA_META_MIGRATIONS_APPLIED]
        assert meta[const.DATA_META_LAST_MIGRATION_DATE] is not None

    async def test_second_run_is_noop(
        self,
        store: LifePointsStore,
        habit_repo: StoreHabitRepository,
        game_repo: StoreGameRepository,
    ) -> None:
        """A consistent document is left untouched."""
        await _migrate(store, habit_repo, game_repo)
        summary = await _migrate(store, habit_repo, game_repo)
        assert not any(summary.values())
        assert len(game_repo.get_all_attempts()) == 1

    async def test_game_over_without_attempts(
        self,
        store: LifePointsStore,
        habit_repo: StoreHabitRepository,
        game_repo: StoreGameRepository,
    ) -> None:
        """A finished legacy game restarts with the starting lives."""
        game_repo.save_game_state(build_game_state(0, is_game_over=True))
        await _migrate(store, habit_repo, game_repo)
        attempt = game_repo.get_active_attempt()
        assert attempt[const.DATA_ATTEMPT_STARTING_LIVES] == 100
        assert game_repo.get_game_state()[const.DATA_GAME_STATE_IS_GAME_OVER] is False

    async def test_existing_lives_carried_over(
        self,
        store: LifePointsStore,
        habit_repo: StoreHabitRepository,
        game_repo: StoreGameRepository,
    ) -> None:
        """A running legacy game keeps its lives in the initial attempt."""
        game_repo.save_game_state(build_game_state(64))
        await _migrate(store, habit_repo, game_repo)
        attempt = game_repo.get_active_attempt()
        assert attempt[const.DATA_ATTEMPT_STARTING_LIVES] == 64


class TestOrphans:
    """Completions and life points without an attempt id."""

    async def test_linked_to_active_attempt(
        self,
        store: LifePointsStore,
        habit_repo: StoreHabitRepository,
        game_repo: StoreGameRepository,
    ) -> None:
        """With an active attempt every orphan is linked to it."""
        attempt = build_attempt(W0, 100)
        game_repo.create_attempt(attempt)
        game_repo.save_game_state(build_game_state(100))
        _add_orphans(habit_repo, game_repo)

        summary = await _migrate(store, habit_repo, game_repo)

        assert summary["completions_linked"] == 2
        assert summary["life_points_linked"] == 1
        assert summary["attempts_created"] == 0
        assert habit_repo.get_orphaned_completions() == []
        assert game_repo.get_orphaned_life_points() == []
        assert (
            len(game_repo.get_all_life_points(attempt[const.DATA_ATTEMPT_INTERNAL_ID]))
            == 1
        )

    async def test_attempt_recreated_from_earliest_orphan(
        self,
        store: LifePointsStore,
        habit_repo: StoreHabitRepository,
        game_repo: StoreGameRepository,
    ) -> None:
        """Without an attempt, one is created starting at the earliest orphan."""
        game_repo.save_game_state(build_game_state(80))
        _add_orphans(habit_repo, game_repo)

        summary = await _migrate(store, habit_repo, game_repo)

        assert summary["attempts_created"] == 1
        attempt = game_repo.get_active_attempt()
        assert attempt[const.DATA_ATTEMPT_START_DATE] == day(W0, 4).isoformat()
        assert (
            habit_repo.get_weekly_completion_count(
                "habit-1", W1, attempt[const.DATA_ATTEMPT_INTERNAL_ID]
            )
            == 1
        )

    async def test_game_over_closes_legacy_attempt(
        self,
        store: LifePointsStore,
        habit_repo: StoreHabitRepository,
        game_repo: StoreGameRepository,
    ) -> None:
        """A finished legacy game becomes a failed attempt plus a fresh one."""
        game_repo.save_game_state(
            build_game_state(
                0, is_game_over=True, last_week_calculation_date=day(W1, 6)
            )
        )
        _add_orphans(habit_repo, game_repo)

        summary = await _migrate(store, habit_repo, game_repo)

        assert summary["attempts_created"] == 2
        attempts = game_repo.get_all_attempts()
        legacy = next(a for a in attempts if not a[const.DATA_ATTEMPT_IS_ACTIVE])
        assert legacy[const.DATA_ATTEMPT_START_DATE] == day(W0, 4).isoformat()
        assert legacy[const.DATA_ATTEMPT_END_DATE] == day(W1, 6).isoformat()
        assert legacy[const.DATA_ATTEMPT_ENDING_LIVES] == 0

        active = game_repo.get_active_attempt()
        assert active[const.DATA_ATTEMPT_START_DATE] == W3.isoformat()
        assert habit_repo.get_completions_between(
            W0, W2, active[const.DATA_ATTEMPT_INTERNAL_ID]
        ) == []
        game_state = game_repo.get_game_state()
        assert game_state[const.DATA_GAME_STATE_CURRENT_LIVES] == 100
        assert game_state[const.DATA_GAME_STATE_IS_GAME_OVER] is False
