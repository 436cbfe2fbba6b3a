"""Record lifecycle helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Record field defaults
- Business rule validation for habits
- Complete record structure building

### Build Functions
Each record type has a `build_<record>()` function that:
- Generates internal_id (UUID) for new records
- Normalizes dates to ISO day strings
- Applies field defaults
- Returns a complete record dict ready for storage

### Validation
`validate_habit_data()` returns a dict of errors (empty if valid) and is the
only place where habit business rules live. `build_habit()` raises
EntityValidationError for the first rule it finds broken.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
import uuid

from . import const
from .type_defs import (
    AttemptData,
    CompletionData,
    GameStateData,
    HabitData,
    LifePointData,
)
from .utils.dt_utils import dt_now_iso, dt_to_date, dt_today_local, dt_week_start

# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _iso_day(value: str | date | datetime | None) -> str | None:
    """Normalize a date-like value to an ISO day string (or None)."""
    parsed = dt_to_date(value)
    return parsed.isoformat() if parsed else None


def _as_int(value: Any, default: int = const.DEFAULT_ZERO) -> int:
    """Coerce a numeric field to int, falling back to default."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Attributes:
        field: The ERROR_FIELD_* constant identifying the failing input field
        translation_key: The TRANS_KEY_* constant for the error message
        placeholders: Optional dict for translation string placeholders

    Example:
        raise EntityValidationError(
            field=const.ERROR_FIELD_HABIT_XP_VALUE,
            translation_key=const.TRANS_KEY_INVALID_XP_VALUE,
            placeholders={"value": "-5"},
        )
    """

    def __init__(
        self,
        field: str,
        translation_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError."""
        self.field = field
        self.translation_key = translation_key
        self.placeholders = placeholders or {}
        super().__init__(translation_key)


# ==============================================================================
# HABITS
# ==============================================================================


def validate_habit_data(
    data: dict[str, Any],
    existing_habits: dict[str, Any] | None = None,
    *,
    is_update: bool = False,
    current_habit_id: str | None = None,
) -> dict[str, str]:
    """Validate habit business rules - SINGLE SOURCE OF TRUTH.

    Works with DATA_* keys (canonical storage format).

    Args:
        data: Habit data dict with DATA_* keys
        existing_habits: All existing habits for duplicate checking (optional)
        is_update: True if updating an existing habit (missing fields allowed)
        current_habit_id: ID of habit being updated (excluded from duplicate check)

    Returns:
        Dict of errors: {error_field: translation_key}
        Empty dict means validation passed.

    Validation Rules:
        1. Name not empty (create) or not blank (update if provided)
        2. Name not duplicate among habits that are not soft-deleted
        3. Kind is beneficial or detrimental
        4. Target type is daily, weekly or None
        5. xp_value, target_value, thresholds >= 0
    """
    errors: dict[str, str] = {}

    # === 1. Name validation ===
    name = data.get(const.DATA_HABIT_NAME, "")
    if isinstance(name, str):
        name = name.strip()

    if (not is_update or const.DATA_HABIT_NAME in data) and not name:
        errors[const.ERROR_FIELD_HABIT_NAME] = const.TRANS_KEY_INVALID_HABIT_NAME
        return errors

    # === 2. Duplicate name check ===
    if name and existing_habits:
        for habit_id, habit in existing_habits.items():
            if habit_id == current_habit_id:
                continue
            if habit.get(const.DATA_HABIT_DELETED_FROM_DATE):
                continue
            if habit.get(const.DATA_HABIT_NAME) == name:
                errors[const.ERROR_FIELD_HABIT_NAME] = const.TRANS_KEY_DUPLICATE_HABIT
                return errors

    # === 3. Kind ===
    if const.DATA_HABIT_KIND in data or not is_update:
        kind = data.get(const.DATA_HABIT_KIND, const.HABIT_KIND_BENEFICIAL)
        if kind not in const.HABIT_KIND_OPTIONS:
            errors[const.ERROR_FIELD_HABIT_KIND] = const.TRANS_KEY_INVALID_HABIT_KIND
            return errors

    # === 4. Target type ===
    target_type = data.get(const.DATA_HABIT_TARGET_TYPE)
    if target_type is not None and target_type not in const.TARGET_TYPE_OPTIONS:
        errors[const.ERROR_FIELD_HABIT_TARGET_TYPE] = (
            const.TRANS_KEY_INVALID_TARGET_TYPE
        )
        return errors

    # === 5. Non-negative integers ===
    numeric_rules = (
        (
            const.DATA_HABIT_XP_VALUE,
            const.ERROR_FIELD_HABIT_XP_VALUE,
            const.TRANS_KEY_INVALID_XP_VALUE,
        ),
        (
            const.DATA_HABIT_TARGET_VALUE,
            const.ERROR_FIELD_HABIT_TARGET_VALUE,
            const.TRANS_KEY_INVALID_TARGET_VALUE,
        ),
        (
            const.DATA_HABIT_DAILY_THRESHOLD,
            const.ERROR_FIELD_HABIT_THRESHOLDS,
            const.TRANS_KEY_INVALID_THRESHOLD,
        ),
        (
            const.DATA_HABIT_WEEKLY_THRESHOLD,
            const.ERROR_FIELD_HABIT_THRESHOLDS,
            const.TRANS_KEY_INVALID_THRESHOLD,
        ),
    )
    for data_key, error_field, trans_key in numeric_rules:
        if data_key not in data:
            continue
        try:
            if int(data[data_key]) < 0:
                errors[error_field] = trans_key
                return errors
        except (TypeError, ValueError):
            errors[error_field] = trans_key
            return errors

    return errors


def build_habit(
    user_input: dict[str, Any],
    existing: HabitData | None = None,
) -> HabitData:
    """Build habit data for create or update operations.

    One function handles both create (existing=None) and update
    (existing=HabitData). Update mode preserves fields not in user_input.

    Raises:
        EntityValidationError: If any business rule fails

    Examples:
        habit = build_habit({DATA_HABIT_NAME: "Read", DATA_HABIT_XP_VALUE: 10})
        habit = build_habit({DATA_HABIT_XP_VALUE: 20}, existing=habit)
    """
    is_create = existing is None
    errors = validate_habit_data(user_input, is_update=not is_create)
    if errors:
        field, trans_key = next(iter(errors.items()))
        raise EntityValidationError(
            field=field,
            translation_key=trans_key,
            placeholders={"value": str(user_input.get(field, ""))},
        )

    def get_field(key: str, default: Any) -> Any:
        if key in user_input:
            return user_input[key]
        if existing is not None:
            return existing.get(key, default)
        return default

    name = str(get_field(const.DATA_HABIT_NAME, "")).strip()
    created_at = _iso_day(get_field(const.DATA_HABIT_CREATED_AT, None)) or (
        dt_today_local().isoformat()
    )

    return HabitData(
        internal_id=(
            existing[const.DATA_HABIT_INTERNAL_ID]
            if existing is not None
            else str(uuid.uuid4())
        ),
        name=name,
        kind=get_field(const.DATA_HABIT_KIND, const.HABIT_KIND_BENEFICIAL),
        is_task=bool(get_field(const.DATA_HABIT_IS_TASK, False)),
        xp_value=_as_int(get_field(const.DATA_HABIT_XP_VALUE, const.DEFAULT_ZERO)),
        target_type=get_field(const.DATA_HABIT_TARGET_TYPE, None),
        target_value=_as_int(
            get_field(const.DATA_HABIT_TARGET_VALUE, const.DEFAULT_ZERO)
        ),
        daily_threshold=_as_int(
            get_field(const.DATA_HABIT_DAILY_THRESHOLD, const.DEFAULT_ZERO)
        ),
        weekly_threshold=_as_int(
            get_field(const.DATA_HABIT_WEEKLY_THRESHOLD, const.DEFAULT_ZERO)
        ),
        proportional_reward=bool(
            get_field(const.DATA_HABIT_PROPORTIONAL_REWARD, False)
        ),
        created_at=created_at,
        deleted_from_date=_iso_day(
            get_field(const.DATA_HABIT_DELETED_FROM_DATE, None)
        ),
        sort_order=_as_int(get_field(const.DATA_HABIT_SORT_ORDER, const.DEFAULT_ZERO)),
    )


# ==============================================================================
# COMPLETIONS
# ==============================================================================


def build_completion(
    habit_id: str,
    day: str | date | datetime,
    attempt_id: str | None,
) -> CompletionData:
    """Build a completion record normalized to start-of-day.

    Raises:
        ValueError: If `day` cannot be parsed
    """
    parsed = dt_to_date(day)
    if parsed is None:
        raise ValueError(f"Invalid completion date: {day!r}")
    return CompletionData(
        internal_id=str(uuid.uuid4()),
        habit_id=habit_id,
        date=parsed.isoformat(),
        week_start_date=dt_week_start(parsed).isoformat(),
        attempt_id=attempt_id,
        recorded_at=dt_now_iso(),
    )


# ==============================================================================
# ATTEMPTS / GAME STATE / LIFE POINTS
# ==============================================================================


def build_attempt(
    start_date: str | date | datetime,
    starting_lives: int,
    *,
    end_date: str | date | datetime | None = None,
    ending_lives: int | None = None,
    is_active: bool = True,
) -> AttemptData:
    """Build an attempt record.

    Raises:
        ValueError: If `start_date` cannot be parsed
    """
    start = _iso_day(start_date)
    if start is None:
        raise ValueError(f"Invalid attempt start date: {start_date!r}")
    return AttemptData(
        internal_id=str(uuid.uuid4()),
        start_date=start,
        end_date=_iso_day(end_date),
        starting_lives=int(starting_lives),
        ending_lives=ending_lives,
        is_active=is_active,
    )


def build_game_state(
    current_lives: int,
    *,
    is_game_over: bool = False,
    last_week_calculation_date: str | date | None = None,
) -> GameStateData:
    """Build the game state singleton; lives are clamped to >= 0 for storage."""
    return GameStateData(
        current_lives=max(0, int(current_lives)),
        is_game_over=is_game_over,
        last_week_calculation_date=_iso_day(last_week_calculation_date),
        updated_at=dt_now_iso(),
    )


def build_life_point(
    week_start: date,
    week_end: date,
    value: int,
    attempt_id: str | None,
) -> LifePointData:
    """Build a weekly life point record."""
    return LifePointData(
        internal_id=str(uuid.uuid4()),
        date=week_end.isoformat(),
        value=int(value),
        week_start_date=week_start.isoformat(),
        attempt_id=attempt_id,
    )
