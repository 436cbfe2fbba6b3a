"""Settlement Manager - Weekly settlement and missed-week catch-up.

This manager handles:
- Settling one week: scoring, LifePoint upsert, life total, game over
- Catching up every fully elapsed week since the last settlement
- Serializing both behind one asyncio.Lock (single-flight)

ARCHITECTURE:
- SettlementManager = "The Ledger" (STATEFUL, persists and emits)
- ScoringEngine = Daily/weekly XP rules (STATELESS)
- AttemptEngine = Life transition and catch-up planning (STATELESS)
- AttemptManager closes the attempt when a settlement ends the game

Write order inside one settlement:
    LifePoint → (attempt close on game over) → GameState → save
A failed write or save restores the document as it was before the week, so
last_week_calculation_date is untouched and the next catch-up retries the
same week. Signals are sent only after the save succeeds.
"""

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import build_game_state, build_life_point
from ..engines.attempt_engine import AttemptEngine
from ..engines.scoring_engine import ScoringEngine
from ..exceptions import InvalidStateError, NotFoundError
from ..utils.dt_utils import dt_parse_date, dt_today_local, dt_week_end, dt_week_start
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..dispatcher import SignalDispatcher
    from ..repository import GameRepository, HabitRepository
    from ..store import LifePointsStore
    from .attempt_manager import AttemptManager


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of settling one week.

    Attributes:
        week_start: Monday of the settled week
        week_end: Sunday of the settled week
        attempt_id: Attempt the week was settled for
        daily_xp: Sum of the seven daily deltas
        weekly_xp: Weekly-pass delta
        xp_change: daily_xp + weekly_xp (the persisted LifePoint value)
        previous_lives: Lives before settlement
        new_lives: Lives after settlement (never negative)
        is_game_over: True when this settlement ended the attempt
    """

    week_start: date
    week_end: date
    attempt_id: str
    daily_xp: int
    weekly_xp: int
    xp_change: int
    previous_lives: int
    new_lives: int
    is_game_over: bool


class SettlementManager(BaseManager):
    """Manager for weekly settlement."""

    def __init__(
        self,
        store: LifePointsStore,
        habit_repo: HabitRepository,
        game_repo: GameRepository,
        dispatcher: SignalDispatcher,
        options: dict[str, Any],
        instance_id: str,
        attempt_manager: AttemptManager,
    ) -> None:
        """Initialize the SettlementManager.

        Args:
            attempt_manager: Used to close the attempt on game over
        """
        super().__init__(
            store, habit_repo, game_repo, dispatcher, options, instance_id
        )
        self.attempt_manager = attempt_manager
        self._lock = asyncio.Lock()

    async def async_setup(self) -> None:
        """Set up the SettlementManager (no subscriptions)."""
        const.LOGGER.debug("DEBUG: SettlementManager ready for %s", self.instance_id)

    # =========================================================================
    # WEEK SETTLEMENT
    # =========================================================================

    async def settle_week(self, week_start: date) -> SettlementResult:
        """Settle one week for the active attempt.

        Re-settling a week applies its delta again; callers that need
        exactly-once semantics go through process_all_missed_weeks().

        Args:
            week_start: Any day of the week (normalized to its Monday)

        Raises:
            NotFoundError: If there is no game state or no active attempt
            InvalidStateError: If the week ends before the attempt's start week
        """
        async with self._lock:
            return await self._settle_week_locked(dt_week_start(week_start))

    async def _settle_week_locked(self, week_start: date) -> SettlementResult:
        """Settle one week. Caller holds self._lock."""
        game_state = self.game_repo.get_game_state()
        if game_state is None:
            raise NotFoundError(const.LABEL_GAME_STATE, const.DATA_GAME_STATE)
        attempt = self.game_repo.get_active_attempt()
        if attempt is None:
            raise NotFoundError(const.LABEL_ATTEMPT, const.LABEL_ACTIVE_ATTEMPT)

        attempt_id = attempt[const.DATA_ATTEMPT_INTERNAL_ID]
        attempt_start = dt_parse_date(attempt[const.DATA_ATTEMPT_START_DATE])
        if attempt_start is not None and AttemptEngine.week_precedes_attempt(
            week_start, attempt_start
        ):
            raise InvalidStateError(
                const.TRANS_KEY_ERROR_WEEK_BEFORE_ATTEMPT,
                {
                    "week_start": week_start.isoformat(),
                    "attempt_start": attempt_start.isoformat(),
                },
            )

        week_end = dt_week_end(week_start)
        habits = self.habit_repo.get_habits_for_week(week_start)
        daily_completions = {
            habit_id: self.habit_repo.get_daily_completion_counts(
                habit_id, week_start, attempt_id
            )
            for habit_id in (habit[const.DATA_HABIT_INTERNAL_ID] for habit in habits)
        }
        daily_xp, weekly_xp = ScoringEngine.compute_week_delta(
            week_start, habits, daily_completions, attempt_start
        )
        xp_change = daily_xp + weekly_xp
        transition = AttemptEngine.apply_xp_change(
            int(game_state[const.DATA_GAME_STATE_CURRENT_LIVES]), xp_change
        )

        snapshot = copy.deepcopy(self.store.data)
        try:
            # 1. LifePoint
            self.game_repo.save_life_point(
                build_life_point(week_start, week_end, xp_change, attempt_id)
            )

            # 2. Attempt close on game over
            if transition.is_game_over:
                self.attempt_manager.mark_attempt_closed(
                    attempt, week_end, transition.new_lives
                )

            # 3. GameState
            self.game_repo.save_game_state(
                build_game_state(
                    transition.new_lives,
                    is_game_over=transition.is_game_over,
                    last_week_calculation_date=week_end,
                )
            )
            await self._persist()
        except Exception:
            const.LOGGER.error(
                "ERROR: Settling week %s for attempt %s failed; rolled back",
                week_start,
                attempt_id,
            )
            self.store.set_data(snapshot)
            raise

        const.LOGGER.info(
            "INFO: Settled week %s for attempt %s: daily=%s weekly=%s lives %s → %s",
            week_start,
            attempt_id,
            daily_xp,
            weekly_xp,
            transition.previous_lives,
            transition.new_lives,
        )

        result = SettlementResult(
            week_start=week_start,
            week_end=week_end,
            attempt_id=attempt_id,
            daily_xp=daily_xp,
            weekly_xp=weekly_xp,
            xp_change=xp_change,
            previous_lives=transition.previous_lives,
            new_lives=transition.new_lives,
            is_game_over=transition.is_game_over,
        )
        self.emit(
            const.SIGNAL_WEEK_SETTLED,
            attempt_id=attempt_id,
            week_start=week_start.isoformat(),
            xp_change=xp_change,
            new_lives=transition.new_lives,
        )
        if transition.is_game_over:
            self.attempt_manager.emit_attempt_closed(attempt)
            self.emit(
                const.SIGNAL_GAME_OVER,
                attempt_id=attempt_id,
                week_end=week_end.isoformat(),
            )
        return result

    # =========================================================================
    # CATCH-UP
    # =========================================================================

    async def process_all_missed_weeks(
        self, today: date | None = None
    ) -> list[SettlementResult]:
        """Settle every fully elapsed week since the last settlement.

        Safe to call repeatedly: progress is tracked through the game state's
        last_week_calculation_date, so already settled weeks are never
        replayed. Stops after the week that ends the game. The first failure
        propagates and later weeks stay unsettled.

        Returns:
            Results for the weeks settled by this call (possibly empty)
        """
        today = today or dt_today_local()
        async with self._lock:
            game_state = self.game_repo.get_game_state()
            attempt = self.game_repo.get_active_attempt()
            if game_state is None or attempt is None:
                const.LOGGER.debug(
                    "DEBUG: Catch-up skipped (game state: %s, active attempt: %s)",
                    game_state is not None,
                    attempt is not None,
                )
                return []
            if AttemptEngine.is_game_over(game_state):
                const.LOGGER.debug("DEBUG: Catch-up skipped, game is over")
                return []

            attempt_start = (
                dt_parse_date(attempt[const.DATA_ATTEMPT_START_DATE]) or today
            )
            first_week = AttemptEngine.first_unsettled_week(
                attempt_start,
                dt_parse_date(
                    game_state.get(const.DATA_GAME_STATE_LAST_WEEK_CALCULATION_DATE)
                ),
            )
            weeks = AttemptEngine.pending_weeks(first_week, today)
            if not weeks:
                return []

            const.LOGGER.debug(
                "DEBUG: Catch-up settling %s week(s) starting %s", len(weeks), weeks[0]
            )
            results: list[SettlementResult] = []
            for week_start in weeks:
                result = await self._settle_week_locked(week_start)
                results.append(result)
                if result.is_game_over:
                    const.LOGGER.info(
                        "INFO: Game over after week %s; catch-up stopped", week_start
                    )
                    break
            return results
