"""Attempt Manager - Attempt lifecycle and game reset workflows.

This manager handles:
- Starting, closing and deleting attempts
- Game reset (close the current attempt, start a fresh one)
- Force reset (restore lives without starting a new attempt)
- Pruning throwaway attempts that started and ended on the same day
- Attempt history summaries

ARCHITECTURE:
- AttemptManager = "The Lifecycle" (STATEFUL, persists and emits)
- AttemptEngine = Pure status/duration rules (STATELESS)
- SettlementManager calls mark_attempt_closed() when a settlement ends the game
  and emit_attempt_closed() once the settlement is saved

At most one attempt has is_active=True at any time.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from .. import const
from ..data_builders import build_attempt, build_game_state
from ..engines.attempt_engine import AttemptEngine
from ..exceptions import InvalidStateError, NotFoundError
from ..type_defs import AttemptSummary
from ..utils.dt_utils import dt_to_date, dt_today_local
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import AttemptData, GameStateData


class AttemptManager(BaseManager):
    """Manager for attempts and the game state singleton."""

    async def async_setup(self) -> None:
        """Set up the AttemptManager (no subscriptions)."""
        const.LOGGER.debug("DEBUG: AttemptManager ready for %s", self.instance_id)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_active_attempt(self) -> AttemptData | None:
        """Return the active attempt, if any."""
        return self.game_repo.get_active_attempt()

    def require_active_attempt(self) -> AttemptData:
        """Return the active attempt.

        Raises:
            NotFoundError: If no attempt is active
        """
        attempt = self.game_repo.get_active_attempt()
        if attempt is None:
            raise NotFoundError(const.LABEL_ATTEMPT, const.LABEL_ACTIVE_ATTEMPT)
        return attempt

    def is_game_over(self) -> bool:
        """Return True when the stored game state is over (False without one)."""
        return AttemptEngine.is_game_over(self.game_repo.get_game_state())

    def get_attempt_history(self, today: date | None = None) -> list[AttemptSummary]:
        """Return every attempt newest first, with summary figures."""
        today = today or dt_today_local()
        history: list[AttemptSummary] = []
        for attempt in AttemptEngine.sort_newest_first(
            self.game_repo.get_all_attempts()
        ):
            life_points = self.game_repo.get_all_life_points(
                attempt[const.DATA_ATTEMPT_INTERNAL_ID]
            )
            history.append(
                AttemptSummary(
                    attempt=attempt,
                    status=AttemptEngine.attempt_status(attempt),
                    duration_days=AttemptEngine.duration_days(attempt, today),
                    weeks_settled=len(life_points),
                    net_change=sum(
                        int(lp[const.DATA_LIFE_POINT_VALUE]) for lp in life_points
                    ),
                )
            )
        return history

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start_attempt(
        self,
        starting_lives: int | None = None,
        start_date: date | None = None,
    ) -> AttemptData:
        """Create a new active attempt.

        Raises:
            InvalidStateError: If an attempt is already active
        """
        active = self.game_repo.get_active_attempt()
        if active is not None:
            raise InvalidStateError(
                const.TRANS_KEY_ERROR_ATTEMPT_ALREADY_ACTIVE,
                {"name": active[const.DATA_ATTEMPT_INTERNAL_ID]},
            )

        attempt = build_attempt(
            start_date or dt_today_local(),
            starting_lives if starting_lives is not None else self.starting_lives,
        )
        self.game_repo.create_attempt(attempt)
        await self._persist()

        const.LOGGER.info(
            "INFO: Started attempt %s on %s with %s lives",
            attempt[const.DATA_ATTEMPT_INTERNAL_ID],
            attempt[const.DATA_ATTEMPT_START_DATE],
            attempt[const.DATA_ATTEMPT_STARTING_LIVES],
        )
        self.emit(
            const.SIGNAL_ATTEMPT_STARTED,
            attempt_id=attempt[const.DATA_ATTEMPT_INTERNAL_ID],
            start_date=attempt[const.DATA_ATTEMPT_START_DATE],
            starting_lives=attempt[const.DATA_ATTEMPT_STARTING_LIVES],
        )
        return attempt

    def mark_attempt_closed(
        self, attempt: AttemptData, end_date: date, ending_lives: int
    ) -> None:
        """Mark an attempt closed in the repository (no save, no signal).

        Callers persist and then call emit_attempt_closed().
        """
        attempt[const.DATA_ATTEMPT_END_DATE] = end_date.isoformat()
        attempt[const.DATA_ATTEMPT_ENDING_LIVES] = ending_lives
        attempt[const.DATA_ATTEMPT_IS_ACTIVE] = False
        self.game_repo.update_attempt(attempt)

    def emit_attempt_closed(self, attempt: AttemptData) -> None:
        """Log and announce a closed attempt that has been saved."""
        const.LOGGER.info(
            "INFO: Closed attempt %s on %s with %s lives",
            attempt[const.DATA_ATTEMPT_INTERNAL_ID],
            attempt[const.DATA_ATTEMPT_END_DATE],
            attempt[const.DATA_ATTEMPT_ENDING_LIVES],
        )
        self.emit(
            const.SIGNAL_ATTEMPT_CLOSED,
            attempt_id=attempt[const.DATA_ATTEMPT_INTERNAL_ID],
            end_date=attempt[const.DATA_ATTEMPT_END_DATE],
            ending_lives=attempt[const.DATA_ATTEMPT_ENDING_LIVES],
            status=AttemptEngine.attempt_status(attempt),
        )

    async def close_attempt(
        self,
        attempt_id: str,
        end_date: date | str,
        ending_lives: int,
    ) -> AttemptData:
        """Close an attempt.

        Raises:
            NotFoundError: If the attempt does not exist
            InvalidStateError: If the attempt is already closed
        """
        attempt = self.game_repo.get_attempt(attempt_id)
        if attempt is None:
            raise NotFoundError(const.LABEL_ATTEMPT, attempt_id)
        if not attempt.get(const.DATA_ATTEMPT_IS_ACTIVE):
            raise InvalidStateError(
                const.TRANS_KEY_ERROR_ATTEMPT_ALREADY_CLOSED, {"name": attempt_id}
            )

        self.mark_attempt_closed(
            attempt, dt_to_date(end_date) or dt_today_local(), ending_lives
        )
        await self._persist()
        self.emit_attempt_closed(attempt)
        return attempt

    async def reset_game(self, today: date | None = None) -> AttemptData:
        """Close the active attempt (if any) and start a fresh one.

        Completions and life points stay attached to the old attempt, so the
        new attempt starts with an empty history.

        Returns:
            The new active attempt
        """
        today = today or dt_today_local()
        game_state = self.game_repo.get_game_state()

        active = self.game_repo.get_active_attempt()
        if active is not None:
            if game_state is not None:
                ending_lives = int(game_state[const.DATA_GAME_STATE_CURRENT_LIVES])
            else:
                ending_lives = int(active[const.DATA_ATTEMPT_STARTING_LIVES])
            self.mark_attempt_closed(active, today, ending_lives)

        attempt = build_attempt(today, self.starting_lives)
        self.game_repo.create_attempt(attempt)
        self.game_repo.save_game_state(build_game_state(self.starting_lives))
        await self._persist()

        if active is not None:
            self.emit_attempt_closed(active)
        const.LOGGER.info(
            "INFO: Game reset; new attempt %s with %s lives",
            attempt[const.DATA_ATTEMPT_INTERNAL_ID],
            self.starting_lives,
        )
        self.emit(
            const.SIGNAL_ATTEMPT_STARTED,
            attempt_id=attempt[const.DATA_ATTEMPT_INTERNAL_ID],
            start_date=attempt[const.DATA_ATTEMPT_START_DATE],
            starting_lives=attempt[const.DATA_ATTEMPT_STARTING_LIVES],
        )
        self.emit(
            const.SIGNAL_GAME_RESET,
            attempt_id=attempt[const.DATA_ATTEMPT_INTERNAL_ID],
            current_lives=self.starting_lives,
        )
        return attempt

    async def force_reset(self) -> GameStateData:
        """Restore the game state to the active attempt's starting lives.

        No new attempt is created and no history is removed.

        Raises:
            NotFoundError: If no attempt is active
        """
        attempt = self.require_active_attempt()
        game_state = build_game_state(int(attempt[const.DATA_ATTEMPT_STARTING_LIVES]))
        self.game_repo.save_game_state(game_state)
        await self._persist()

        const.LOGGER.warning(
            "WARNING: Force reset of attempt %s to %s lives",
            attempt[const.DATA_ATTEMPT_INTERNAL_ID],
            game_state[const.DATA_GAME_STATE_CURRENT_LIVES],
        )
        self.emit(
            const.SIGNAL_GAME_RESET,
            attempt_id=attempt[const.DATA_ATTEMPT_INTERNAL_ID],
            current_lives=game_state[const.DATA_GAME_STATE_CURRENT_LIVES],
        )
        return game_state

    async def delete_attempt(self, attempt_id: str) -> None:
        """Delete a closed attempt with its completions and life points.

        Raises:
            NotFoundError: If the attempt does not exist
            InvalidStateError: If the attempt is active
        """
        attempt = self.game_repo.get_attempt(attempt_id)
        if attempt is None:
            raise NotFoundError(const.LABEL_ATTEMPT, attempt_id)
        if attempt.get(const.DATA_ATTEMPT_IS_ACTIVE):
            raise InvalidStateError(
                const.TRANS_KEY_ERROR_DELETE_ACTIVE_ATTEMPT, {"name": attempt_id}
            )

        completions = self.habit_repo.delete_completions_for_attempt(attempt_id)
        life_points = self.game_repo.delete_life_points_for_attempt(attempt_id)
        self.game_repo.delete_attempt(attempt_id)
        await self._persist()

        const.LOGGER.info(
            "INFO: Deleted attempt %s (%s completions, %s life points)",
            attempt_id,
            completions,
            life_points,
        )
        self.emit(const.SIGNAL_ATTEMPT_DELETED, attempt_id=attempt_id)

    async def delete_same_day_attempts(self, day: date | None = None) -> int:
        """Delete closed attempts that started and ended on `day`.

        The active attempt is never touched.

        Returns:
            Number of attempts deleted
        """
        day = day or dt_today_local()
        doomed = [
            attempt[const.DATA_ATTEMPT_INTERNAL_ID]
            for attempt in self.game_repo.get_all_attempts()
            if AttemptEngine.is_same_day_attempt(attempt, day)
        ]
        for attempt_id in doomed:
            await self.delete_attempt(attempt_id)

        if doomed:
            const.LOGGER.debug(
                "DEBUG: Pruned %s same-day attempts for %s", len(doomed), day
            )
        return len(doomed)
