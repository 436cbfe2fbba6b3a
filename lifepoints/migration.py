"""Startup repair of records written before attempts existed.

Older data sets stored completions and life points without an attempt id and
may lack a game state entirely. `migrate_orphaned_records()` runs once from
LifePointsCoordinator.async_setup() and brings the storage document to the
current schema:

1. Create the game state singleton if it is missing
2. Link orphaned completions/life points to the active attempt, or
3. Without an active attempt, create one that starts at the earliest orphan
   (closed right away when the stored game is already over, followed by a
   fresh active attempt and a game state reset)
4. With no attempts and no orphans at all, create the initial attempt

Settlement and scoring never look at orphans; they only see records linked
to an attempt.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from . import const
from .data_builders import build_attempt, build_game_state
from .engines.attempt_engine import AttemptEngine
from .utils.dt_utils import dt_now_iso, dt_parse_date, dt_today_local

if TYPE_CHECKING:
    from .repository import GameRepository, HabitRepository
    from .store import LifePointsStore
    from .type_defs import CompletionData, LifePointData

MIGRATION_ORPHAN_HEALING = "orphan_healing"


def _earliest_orphan_date(
    completions: list[CompletionData], life_points: list[LifePointData]
) -> date | None:
    """Return the earliest day referenced by any orphaned record."""
    days = [
        dt_parse_date(completion.get(const.DATA_COMPLETION_DATE))
        for completion in completions
    ] + [
        dt_parse_date(life_point.get(const.DATA_LIFE_POINT_WEEK_START_DATE))
        for life_point in life_points
    ]
    valid = [day for day in days if day is not None]
    return min(valid) if valid else None


def _link_orphans(
    habit_repo: HabitRepository,
    game_repo: GameRepository,
    completions: list[CompletionData],
    life_points: list[LifePointData],
    attempt_id: str,
) -> tuple[int, int]:
    linked_completions = habit_repo.assign_completions_to_attempt(
        (c[const.DATA_COMPLETION_INTERNAL_ID] for c in completions), attempt_id
    )
    linked_life_points = game_repo.assign_life_points_to_attempt(
        (lp[const.DATA_LIFE_POINT_INTERNAL_ID] for lp in life_points), attempt_id
    )
    return linked_completions, linked_life_points


async def migrate_orphaned_records(
    store: LifePointsStore,
    habit_repo: HabitRepository,
    game_repo: GameRepository,
    starting_lives: int = const.DEFAULT_STARTING_LIVES,
    today: date | None = None,
) -> dict[str, int]:
    """Repair game state, attempts and orphaned records.

    Safe to run on every startup; a consistent document is left unchanged.

    Returns:
        Counters describing what was changed
    """
    today = today or dt_today_local()
    summary = {
        "game_state_created": 0,
        "attempts_created": 0,
        "completions_linked": 0,
        "life_points_linked": 0,
    }

    # 1. Game state
    game_state = game_repo.get_game_state()
    if game_state is None:
        game_state = build_game_state(starting_lives)
        game_repo.save_game_state(game_state)
        summary["game_state_created"] = 1
        const.LOGGER.info(
            "INFO: Created game state with %s starting lives", starting_lives
        )

    orphan_completions = habit_repo.get_orphaned_completions()
    orphan_life_points = game_repo.get_orphaned_life_points()
    has_orphans = bool(orphan_completions or orphan_life_points)
    active = game_repo.get_active_attempt()

    if active is not None:
        # 2. Link to the active attempt
        if has_orphans:
            linked = _link_orphans(
                habit_repo,
                game_repo,
                orphan_completions,
                orphan_life_points,
                active[const.DATA_ATTEMPT_INTERNAL_ID],
            )
            summary["completions_linked"], summary["life_points_linked"] = linked

    elif has_orphans:
        # 3. Recreate the attempt the orphans belonged to
        start = _earliest_orphan_date(orphan_completions, orphan_life_points) or today
        game_over = AttemptEngine.is_game_over(game_state)
        if game_over:
            end = (
                dt_parse_date(
                    game_state.get(const.DATA_GAME_STATE_LAST_WEEK_CALCULATION_DATE)
                )
                or today
            )
            legacy = build_attempt(
                start,
                starting_lives,
                end_date=max(start, end),
                ending_lives=int(game_state[const.DATA_GAME_STATE_CURRENT_LIVES]),
                is_active=False,
            )
        else:
            legacy = build_attempt(start, starting_lives)
        game_repo.create_attempt(legacy)
        summary["attempts_created"] += 1
        linked = _link_orphans(
            habit_repo,
            game_repo,
            orphan_completions,
            orphan_life_points,
            legacy[const.DATA_ATTEMPT_INTERNAL_ID],
        )
        summary["completions_linked"], summary["life_points_linked"] = linked

        if game_over:
            game_repo.create_attempt(build_attempt(today, starting_lives))
            game_repo.save_game_state(build_game_state(starting_lives))
            summary["attempts_created"] += 1
            const.LOGGER.info(
                "INFO: Closed legacy attempt from %s (game over) and started a new one",
                start,
            )

    elif not game_repo.get_all_attempts():
        # 4. Initial attempt
        if AttemptEngine.is_game_over(game_state):
            lives = starting_lives
            game_repo.save_game_state(build_game_state(starting_lives))
        else:
            lives = int(game_state[const.DATA_GAME_STATE_CURRENT_LIVES])
        game_repo.create_attempt(build_attempt(today, lives))
        summary["attempts_created"] += 1
        const.LOGGER.info("INFO: Created initial attempt with %s lives", lives)

    if any(summary.values()):
        meta = store.data.setdefault(const.DATA_META, {})
        meta[const.DATA_META_SCHEMA_VERSION] = const.SCHEMA_VERSION_CURRENT
        meta[const.DATA_META_LAST_MIGRATION_DATE] = dt_now_iso()
        applied = meta.setdefault(const.DATA_META_MIGRATIONS_APPLIED, [])
        if MIGRATION_ORPHAN_HEALING not in applied:
            applied.append(MIGRATION_ORPHAN_HEALING)
        await store.async_save()
        const.LOGGER.info("INFO: Record migration applied: %s", summary)
    else:
        const.LOGGER.debug("DEBUG: Record migration found nothing to repair")

    return summary
