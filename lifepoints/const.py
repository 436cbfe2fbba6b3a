# File: const.py
"""Constants for the Life Points engine.

This file centralizes storage keys, defaults, option keys, signal names and
translation keys for consistency across engines and managers.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General / Library Information
# ------------------------------------------------------------------------------------------------
DOMAIN = "lifepoints"

# Logger
LOGGER = logging.getLogger(__package__)

# Storage and Versioning
STORAGE_KEY = "lifepoints_data"
STORAGE_VERSION = 1
SCHEMA_VERSION_CURRENT = 2

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_STARTING_LIVES = "starting_lives"
CONF_STORAGE_PATH = "storage_path"
CONF_TIME_ZONE = "time_zone"

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_STARTING_LIVES = 100
DEFAULT_TIME_ZONE_NAME = "UTC"
DEFAULT_ZERO = 0

# Weekly zero-effort penalty for beneficial weekly habits (xp_value multiplier)
ZERO_EFFORT_PENALTY_MULTIPLIER = 2

DAYS_PER_WEEK = 7

# ------------------------------------------------------------------------------------------------
# Enumerated Values
# ------------------------------------------------------------------------------------------------
HABIT_KIND_BENEFICIAL = "beneficial"
HABIT_KIND_DETRIMENTAL = "detrimental"
HABIT_KIND_OPTIONS = [HABIT_KIND_BENEFICIAL, HABIT_KIND_DETRIMENTAL]

TARGET_TYPE_DAILY = "daily"
TARGET_TYPE_WEEKLY = "weekly"
TARGET_TYPE_OPTIONS = [TARGET_TYPE_DAILY, TARGET_TYPE_WEEKLY]

ATTEMPT_STATUS_ACTIVE = "active"
ATTEMPT_STATUS_SURVIVED = "survived"
ATTEMPT_STATUS_FAILED = "failed"

# ------------------------------------------------------------------------------------------------
# Data Keys (storage document)
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_META_LAST_MIGRATION_DATE = "last_migration_date"
DATA_META_MIGRATIONS_APPLIED = "migrations_applied"

DATA_HABITS = "habits"
DATA_COMPLETIONS = "completions"
DATA_ATTEMPTS = "attempts"
DATA_LIFE_POINTS = "life_points"
DATA_GAME_STATE = "game_state"

# Habit
DATA_HABIT_INTERNAL_ID = "internal_id"
DATA_HABIT_NAME = "name"
DATA_HABIT_KIND = "kind"
DATA_HABIT_IS_TASK = "is_task"
DATA_HABIT_XP_VALUE = "xp_value"
DATA_HABIT_TARGET_TYPE = "target_type"
DATA_HABIT_TARGET_VALUE = "target_value"
DATA_HABIT_DAILY_THRESHOLD = "daily_threshold"
DATA_HABIT_WEEKLY_THRESHOLD = "weekly_threshold"
DATA_HABIT_PROPORTIONAL_REWARD = "proportional_reward"
DATA_HABIT_CREATED_AT = "created_at"
DATA_HABIT_DELETED_FROM_DATE = "deleted_from_date"
DATA_HABIT_SORT_ORDER = "sort_order"

# Completion
DATA_COMPLETION_INTERNAL_ID = "internal_id"
DATA_COMPLETION_HABIT_ID = "habit_id"
DATA_COMPLETION_DATE = "date"
DATA_COMPLETION_WEEK_START_DATE = "week_start_date"
DATA_COMPLETION_ATTEMPT_ID = "attempt_id"
DATA_COMPLETION_RECORDED_AT = "recorded_at"

# Attempt
DATA_ATTEMPT_INTERNAL_ID = "internal_id"
DATA_ATTEMPT_START_DATE = "start_date"
DATA_ATTEMPT_END_DATE = "end_date"
DATA_ATTEMPT_STARTING_LIVES = "starting_lives"
DATA_ATTEMPT_ENDING_LIVES = "ending_lives"
DATA_ATTEMPT_IS_ACTIVE = "is_active"

# Game state
DATA_GAME_STATE_CURRENT_LIVES = "current_lives"
DATA_GAME_STATE_IS_GAME_OVER = "is_game_over"
DATA_GAME_STATE_LAST_WEEK_CALCULATION_DATE = "last_week_calculation_date"
DATA_GAME_STATE_UPDATED_AT = "updated_at"

# Life point
DATA_LIFE_POINT_INTERNAL_ID = "internal_id"
DATA_LIFE_POINT_DATE = "date"
DATA_LIFE_POINT_VALUE = "value"
DATA_LIFE_POINT_WEEK_START_DATE = "week_start_date"
DATA_LIFE_POINT_ATTEMPT_ID = "attempt_id"

# ------------------------------------------------------------------------------------------------
# Signals (dispatcher suffixes)
# ------------------------------------------------------------------------------------------------
SIGNAL_WEEK_SETTLED = "week_settled"
SIGNAL_GAME_OVER = "game_over"
SIGNAL_GAME_RESET = "game_reset"
SIGNAL_ATTEMPT_STARTED = "attempt_started"
SIGNAL_ATTEMPT_CLOSED = "attempt_closed"
SIGNAL_ATTEMPT_DELETED = "attempt_deleted"
SIGNAL_HABIT_COMPLETED = "habit_completed"
SIGNAL_HABIT_DELETED = "habit_deleted"
SIGNAL_HABIT_UPDATED = "habit_updated"

# ------------------------------------------------------------------------------------------------
# Labels
# ------------------------------------------------------------------------------------------------
LABEL_HABIT = "Habit"
LABEL_ATTEMPT = "Attempt"
LABEL_GAME_STATE = "Game State"
LABEL_ACTIVE_ATTEMPT = "Active Attempt"

# ------------------------------------------------------------------------------------------------
# Translation Keys (error messages)
# ------------------------------------------------------------------------------------------------
TRANS_KEY_ERROR_NOT_FOUND = "not_found"
TRANS_KEY_ERROR_ATTEMPT_ALREADY_ACTIVE = "attempt_already_active"
TRANS_KEY_ERROR_ATTEMPT_ALREADY_CLOSED = "attempt_already_closed"
TRANS_KEY_ERROR_DELETE_ACTIVE_ATTEMPT = "delete_active_attempt"
TRANS_KEY_ERROR_WEEK_BEFORE_ATTEMPT = "week_before_attempt"
TRANS_KEY_ERROR_PAST_DATE_NOT_EDITABLE = "past_date_not_editable"
TRANS_KEY_ERROR_WEEKLY_LIMIT_EXCEEDED = "weekly_limit_exceeded"
TRANS_KEY_ERROR_INVALID_COUNT = "invalid_count"
TRANS_KEY_ERROR_STORAGE_SAVE_FAILED = "storage_save_failed"

TRANS_KEY_INVALID_HABIT_NAME = "invalid_habit_name"
TRANS_KEY_DUPLICATE_HABIT = "duplicate_habit"
TRANS_KEY_INVALID_HABIT_KIND = "invalid_habit_kind"
TRANS_KEY_INVALID_TARGET_TYPE = "invalid_target_type"
TRANS_KEY_INVALID_XP_VALUE = "invalid_xp_value"
TRANS_KEY_INVALID_TARGET_VALUE = "invalid_target_value"
TRANS_KEY_INVALID_THRESHOLD = "invalid_threshold"

# Validation error fields (map errors back to the offending input field)
ERROR_FIELD_HABIT_NAME = "name"
ERROR_FIELD_HABIT_KIND = "kind"
ERROR_FIELD_HABIT_TARGET_TYPE = "target_type"
ERROR_FIELD_HABIT_XP_VALUE = "xp_value"
ERROR_FIELD_HABIT_TARGET_VALUE = "target_value"
ERROR_FIELD_HABIT_THRESHOLDS = "thresholds"

# English message templates for translation keys
TRANSLATIONS: dict[str, str] = {
    TRANS_KEY_ERROR_NOT_FOUND: "{entity_type} '{name}' not found",
    TRANS_KEY_ERROR_ATTEMPT_ALREADY_ACTIVE: (
        "Attempt '{name}' is already active; close it before starting another"
    ),
    TRANS_KEY_ERROR_ATTEMPT_ALREADY_CLOSED: "Attempt '{name}' is already closed",
    TRANS_KEY_ERROR_DELETE_ACTIVE_ATTEMPT: "Cannot delete active attempt '{name}'",
    TRANS_KEY_ERROR_WEEK_BEFORE_ATTEMPT: (
        "Week starting {week_start} ends before attempt start {attempt_start}"
    ),
    TRANS_KEY_ERROR_PAST_DATE_NOT_EDITABLE: (
        "Completions for {date} cannot be edited; only {today} is editable"
    ),
    TRANS_KEY_ERROR_WEEKLY_LIMIT_EXCEEDED: (
        "Cannot exceed the weekly limit of {limit} completions"
    ),
    TRANS_KEY_ERROR_INVALID_COUNT: "Completion count must be >= 0, got {count}",
    TRANS_KEY_ERROR_STORAGE_SAVE_FAILED: "Failed to save storage to {path}: {error}",
}
