"""Attempt Engine - Pure logic for the attempt and game-over state machine.

This engine provides stateless, pure Python functions for:
- Life total transitions after a weekly settlement (LifeTransition)
- Game-over detection
- Catch-up week planning (which weeks still need settlement)
- Attempt status and history summaries

ARCHITECTURE: This is a pure logic engine with NO repository access.
Persistence belongs in AttemptManager / SettlementManager.

Attempt states:
    ACTIVE ──(lives reach 0 at settlement)──▶ FAILED
    ACTIVE ──(reset_game while lives > 0)──▶ SURVIVED
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import (
    dt_add_days,
    dt_add_weeks,
    dt_days_between,
    dt_parse_date,
    dt_week_start,
)

if TYPE_CHECKING:
    from ..type_defs import AttemptData, GameStateData


@dataclass(frozen=True)
class LifeTransition:
    """Outcome of applying one week's XP change to the life total.

    Attributes:
        previous_lives: Lives before the week was applied
        xp_change: Signed weekly delta
        new_lives: max(0, previous_lives + xp_change)
        is_game_over: True when new_lives reached 0
    """

    previous_lives: int
    xp_change: int
    new_lives: int
    is_game_over: bool


class AttemptEngine:
    """Pure logic engine for attempts and the game-over rule.

    All methods are static - no instance state.
    """

    # =========================================================================
    # LIFE TOTAL
    # =========================================================================

    @staticmethod
    def apply_xp_change(current_lives: int, xp_change: int) -> LifeTransition:
        """Apply a weekly XP change, clamping the result at zero."""
        new_lives = max(0, current_lives + xp_change)
        return LifeTransition(
            previous_lives=current_lives,
            xp_change=xp_change,
            new_lives=new_lives,
            is_game_over=new_lives <= 0,
        )

    @staticmethod
    def is_game_over(game_state: GameStateData | None) -> bool:
        """Return True when the stored state says the game has ended."""
        if game_state is None:
            return False
        return bool(game_state.get(const.DATA_GAME_STATE_IS_GAME_OVER)) or (
            int(game_state.get(const.DATA_GAME_STATE_CURRENT_LIVES, 0)) <= 0
        )

    # =========================================================================
    # CATCH-UP PLANNING
    # =========================================================================

    @staticmethod
    def first_unsettled_week(
        attempt_start: date,
        last_week_calculation_date: date | None,
    ) -> date:
        """Return the Monday of the first week that still needs settlement.

        Never earlier than the week containing the attempt start.
        """
        attempt_week = dt_week_start(attempt_start)
        if last_week_calculation_date is None:
            return attempt_week
        next_week = dt_add_weeks(dt_week_start(last_week_calculation_date), 1)
        return max(next_week, attempt_week)

    @staticmethod
    def pending_weeks(first_week: date, today: date) -> list[date]:
        """Return the Mondays of all fully elapsed weeks from `first_week`.

        The week containing `today` is still in progress and is excluded.
        """
        current_week = dt_week_start(today)
        weeks: list[date] = []
        week = first_week
        while week < current_week:
            weeks.append(week)
            week = dt_add_weeks(week, 1)
        return weeks

    @staticmethod
    def week_precedes_attempt(week_start: date, attempt_start: date) -> bool:
        """Return True when the whole week ends before the attempt's start week."""
        week_end = dt_add_days(week_start, const.DAYS_PER_WEEK - 1)
        return week_end < dt_week_start(attempt_start)

    # =========================================================================
    # ATTEMPT SUMMARIES
    # =========================================================================

    @staticmethod
    def attempt_status(attempt: AttemptData) -> str:
        """Classify an attempt as active, survived or failed."""
        if attempt.get(const.DATA_ATTEMPT_IS_ACTIVE):
            return const.ATTEMPT_STATUS_ACTIVE
        ending_lives = attempt.get(const.DATA_ATTEMPT_ENDING_LIVES)
        if ending_lives is not None and ending_lives <= 0:
            return const.ATTEMPT_STATUS_FAILED
        return const.ATTEMPT_STATUS_SURVIVED

    @staticmethod
    def duration_days(attempt: AttemptData, today: date) -> int:
        """Return the number of days the attempt has lasted (inclusive of start)."""
        start = dt_parse_date(attempt.get(const.DATA_ATTEMPT_START_DATE))
        if start is None:
            return 0
        end = dt_parse_date(attempt.get(const.DATA_ATTEMPT_END_DATE)) or today
        return dt_days_between(start, end) + 1

    @staticmethod
    def is_same_day_attempt(attempt: AttemptData, day: date) -> bool:
        """Return True for a closed attempt that started and ended on `day`."""
        if attempt.get(const.DATA_ATTEMPT_IS_ACTIVE):
            return False
        start = dt_parse_date(attempt.get(const.DATA_ATTEMPT_START_DATE))
        end = dt_parse_date(attempt.get(const.DATA_ATTEMPT_END_DATE))
        return start == day and end == day

    @staticmethod
    def sort_newest_first(attempts: list[AttemptData]) -> list[AttemptData]:
        """Order attempts by start date, most recent first."""
        return sorted(
            attempts,
            key=lambda a: (
                dt_parse_date(a.get(const.DATA_ATTEMPT_START_DATE)) or date.min,
                bool(a.get(const.DATA_ATTEMPT_IS_ACTIVE)),
            ),
            reverse=True,
        )
