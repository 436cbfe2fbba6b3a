"""Type definitions for Life Points data structures.

ARCHITECTURE DECISION: TypedDict for stored records, dataclass for results
===========================================================================

1. **TypedDict for STORED structures** (habits, completions, attempts, life
   points, game state). These live in the JSON storage document and are
   passed to engines as plain dicts keyed by const.DATA_* names.

2. **dataclass for COMPUTED results** (HabitDayStatus, SettlementResult, see
   managers). These never hit storage.

Dates are ISO strings in storage ("2026-01-19"). Engines parse them with
utils.dt_utils.dt_parse_date.

IMPORTANT: This file must NOT import from managers or the coordinator to avoid
circular dependencies. Only typing machinery is imported here.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime defaults and validation live
in data_builders.py.
"""

from typing import NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

HabitId = str  # UUID string
AttemptId = str  # UUID string
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"


# =============================================================================
# Stored Records
# =============================================================================


class HabitData(TypedDict):
    """Type definition for a habit (or task) record.

    For beneficial habits target_type/target_value define the goal.
    For detrimental habits daily_threshold/weekly_threshold define how many
    occurrences are tolerated before penalties apply. A weekly_threshold > 0
    moves the detrimental penalty from daily to weekly settlement.
    """

    internal_id: HabitId
    name: str
    kind: str  # const.HABIT_KIND_*
    is_task: bool
    xp_value: int
    target_type: str | None  # const.TARGET_TYPE_* or None
    target_value: int
    daily_threshold: int
    weekly_threshold: int
    proportional_reward: bool
    created_at: ISODate
    deleted_from_date: ISODate | None
    sort_order: int


class CompletionData(TypedDict):
    """Type definition for a single completion event (counts, not booleans)."""

    internal_id: str
    habit_id: HabitId
    date: ISODate
    week_start_date: ISODate  # Cached ISO Monday of `date`
    attempt_id: AttemptId | None  # None only for legacy (orphaned) records
    recorded_at: NotRequired[ISODatetime]


class AttemptData(TypedDict):
    """Type definition for one play-through."""

    internal_id: AttemptId
    start_date: ISODate
    end_date: ISODate | None
    starting_lives: int
    ending_lives: int | None
    is_active: bool


class GameStateData(TypedDict):
    """Singleton game state.

    last_week_calculation_date marks the end (Sunday) of the most recent
    settled week.
    """

    current_lives: int
    is_game_over: bool
    last_week_calculation_date: ISODate | None
    updated_at: ISODatetime


class LifePointData(TypedDict):
    """Weekly settlement record, unique per (week_start_date, attempt_id)."""

    internal_id: str
    date: ISODate  # Week end
    value: int  # Signed XP delta for the week
    week_start_date: ISODate
    attempt_id: AttemptId | None


# =============================================================================
# Reporting contracts
# =============================================================================


class DayAnalysis(TypedDict):
    """One day of one habit in a weekly report."""

    date: ISODate
    completions: int
    target: int
    impact: int


class HabitWeeklyAnalysis(TypedDict):
    """Per-habit breakdown for one settled week."""

    habit_id: HabitId
    habit_name: str
    habit_kind: str
    total_impact: int
    details: list[DayAnalysis]
    weekly_target_impact: int | None


class WeeklyReport(TypedDict):
    """Audit report for one settled week.

    total_xp_change is the persisted LifePoint value; computed_xp_change is the
    sum of the per-habit impacts recomputed from completions.
    """

    week_start_date: ISODate
    total_xp_change: int
    computed_xp_change: int
    analyses: list[HabitWeeklyAnalysis]


class ChartPoint(TypedDict):
    """Cumulative points at the end of one day of the active attempt."""

    date: ISODate
    points: int


class AttemptSummary(TypedDict):
    """Attempt history row."""

    attempt: AttemptData
    status: str  # const.ATTEMPT_STATUS_*
    duration_days: int
    weeks_settled: int
    net_change: int
