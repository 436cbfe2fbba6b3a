"""Shared fixtures for Life Points tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from lifepoints import const
from lifepoints.coordinator import LifePointsCoordinator
from lifepoints.data_builders import build_attempt, build_game_state
from lifepoints.store import LifePointsStore, StoreGameRepository, StoreHabitRepository
from lifepoints.type_defs import AttemptData
from lifepoints.utils import dt_utils
from tests.helpers import W0


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Generator[None]:
    """Every test starts (and ends) with UTC as the local timezone."""
    dt_utils.set_default_timezone(ZoneInfo("UTC"))
    yield
    dt_utils.set_default_timezone(ZoneInfo("UTC"))


@pytest.fixture
def store() -> LifePointsStore:
    """In-memory store with the default structure."""
    return LifePointsStore()


@pytest.fixture
def habit_repo(store: LifePointsStore) -> StoreHabitRepository:
    """Habit repository over the in-memory store."""
    return StoreHabitRepository(store)


@pytest.fixture
def game_repo(store: LifePointsStore) -> StoreGameRepository:
    """Game repository over the in-memory store."""
    return StoreGameRepository(store)


@pytest.fixture
def coordinator(store: LifePointsStore) -> LifePointsCoordinator:
    """Coordinator over the in-memory store (async_setup not run)."""
    return LifePointsCoordinator(
        {const.CONF_STARTING_LIVES: 100}, store=store, instance_id="test"
    )


@pytest.fixture
def start_game(
    game_repo: StoreGameRepository,
) -> Callable[..., AttemptData]:
    """Return a factory creating an active attempt plus matching game state."""

    def _start(
        start_date: Any = W0, lives: int = 100, **game_state: Any
    ) -> AttemptData:
        attempt = build_attempt(start_date, lives)
        game_repo.create_attempt(attempt)
        game_repo.save_game_state(build_game_state(lives, **game_state))
        return attempt

    return _start


@pytest.fixture
def active_attempt(start_game: Callable[..., AttemptData]) -> AttemptData:
    """Active attempt starting on W0 with 100 lives."""
    return start_game()


@pytest.fixture
def signals(coordinator: LifePointsCoordinator) -> list[tuple[str, dict[str, Any]]]:
    """Record every signal the coordinator's managers emit."""
    received: list[tuple[str, dict[str, Any]]] = []
    for suffix in (
        const.SIGNAL_WEEK_SETTLED,
        const.SIGNAL_GAME_OVER,
        const.SIGNAL_GAME_RESET,
        const.SIGNAL_ATTEMPT_STARTED,
        const.SIGNAL_ATTEMPT_CLOSED,
        const.SIGNAL_ATTEMPT_DELETED,
        const.SIGNAL_HABIT_COMPLETED,
        const.SIGNAL_HABIT_DELETED,
        const.SIGNAL_HABIT_UPDATED,
    ):
        coordinator.connect(
            suffix, lambda payload, suffix=suffix: received.append((suffix, payload))
        )
    return received
