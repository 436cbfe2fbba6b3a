"""Shared builders and dates for Life Points tests.

Usage:
    from tests.helpers import W0, add_completions, make_habit
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from lifepoints import const
from lifepoints.data_builders import build_completion, build_habit
from lifepoints.repository import HabitRepository
from lifepoints.type_defs import HabitData

# Mondays of consecutive ISO weeks (2026-01-05 is a Monday)
W0 = date(2026, 1, 5)
W1 = W0 + timedelta(weeks=1)
W2 = W0 + timedelta(weeks=2)
W3 = W0 + timedelta(weeks=3)

# Far enough back that habits are active for every test week
LONG_AGO = date(2025, 1, 1)


def day(week_start: date, offset: int) -> date:
    """Return week_start + offset days (0 = Monday, 6 = Sunday)."""
    return week_start + timedelta(days=offset)


def make_habit(
    name: str = "Habit",
    kind: str = const.HABIT_KIND_BENEFICIAL,
    created_at: date = LONG_AGO,
    **fields: Any,
) -> HabitData:
    """Build a habit; keyword fields use the DATA_HABIT_* names."""
    return build_habit(
        {
            const.DATA_HABIT_NAME: name,
            const.DATA_HABIT_KIND: kind,
            const.DATA_HABIT_CREATED_AT: created_at,
            **fields,
        }
    )


def add_completions(
    habit_repo: HabitRepository,
    habit_id: str,
    on: date,
    attempt_id: str | None,
    count: int = 1,
) -> None:
    """Insert `count` completions straight into the repository."""
    for _ in range(count):
        habit_repo.add_completion(build_completion(habit_id, on, attempt_id))


__all__ = [
    "LONG_AGO",
    "W0",
    "W1",
    "W2",
    "W3",
    "add_completions",
    "day",
    "make_habit",
]
