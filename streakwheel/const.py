# File: const.py
"""Constants for the StreakWheel engine.

This file centralizes data keys, defaults, enum values, event names and
reason codes for consistency across the engines and managers.
"""

import logging
from typing import Final

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# Safety limit for backward period walks
MAX_PERIOD_WALK_ITERATIONS = 10000

# Float precision for percentages and chance values
DATA_FLOAT_PRECISION = 2
CHANCE_PRECISION = 1

# ------------------------------------------------------------------------------------------------
# Frequencies
# ------------------------------------------------------------------------------------------------
FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKLY = "weekly"
FREQUENCY_MONTHLY = "monthly"
FREQUENCY_YEARLY = "yearly"

FREQUENCY_OPTIONS: Final = (
    FREQUENCY_DAILY,
    FREQUENCY_WEEKLY,
    FREQUENCY_MONTHLY,
    FREQUENCY_YEARLY,
)

DEFAULT_FREQUENCY = FREQUENCY_DAILY
DEFAULT_FREQUENCY_TARGET = 1

# ------------------------------------------------------------------------------------------------
# Reward Tiers
# ------------------------------------------------------------------------------------------------
TIER_SMALL = "small"
TIER_MEDIUM = "medium"
TIER_LARGE = "large"

# Draw order matters: cumulative thresholds are built in this order
TIER_ORDER: Final = (TIER_SMALL, TIER_MEDIUM, TIER_LARGE)

# Fallback distribution when the milestone table is empty
DEFAULT_PROBABILITIES: Final = {
    TIER_SMALL: 50.0,
    TIER_MEDIUM: 30.0,
    TIER_LARGE: 20.0,
}

TIER_COLORS: Final = {
    TIER_SMALL: "#10B981",
    TIER_MEDIUM: "#F59E0B",
    TIER_LARGE: "#EF4444",
}

# Chance triples must sum to 100 within this tolerance after an edit
CHANCE_TOTAL = 100.0
CHANCE_TOLERANCE = 0.1

# ------------------------------------------------------------------------------------------------
# Spin Modes / Streak Calculation Modes
# ------------------------------------------------------------------------------------------------
SPIN_MODE_COOLDOWN = "cooldown"
SPIN_MODE_ONCE_PER_MILESTONE = "once_per_milestone"
SPIN_MODE_OPTIONS: Final = (SPIN_MODE_COOLDOWN, SPIN_MODE_ONCE_PER_MILESTONE)

STREAK_MODE_HIGHEST = "highest"
STREAK_MODE_ALL = "all"
STREAK_MODE_OPTIONS: Final = (STREAK_MODE_HIGHEST, STREAK_MODE_ALL)

TREND_UP = "up"
TREND_DOWN = "down"
TREND_STABLE = "stable"

# ------------------------------------------------------------------------------------------------
# Data Keys - Habits
# ------------------------------------------------------------------------------------------------
DATA_HABIT_INTERNAL_ID = "internal_id"
DATA_HABIT_NAME = "name"
DATA_HABIT_FREQUENCY = "frequency"
DATA_HABIT_FREQUENCY_TARGET = "frequency_target"
DATA_HABIT_COMPLETED_DATES = "completed_dates"
DATA_HABIT_COMPLETION_VALUES = "completion_values"
DATA_HABIT_STREAK = "streak"
DATA_HABIT_LAST_COMPLETED = "last_completed"

# ------------------------------------------------------------------------------------------------
# Data Keys - Milestones
# ------------------------------------------------------------------------------------------------
DATA_MILESTONE_DAYS = "days"
DATA_MILESTONE_SMALL_CHANCE = "small_chance"
DATA_MILESTONE_MEDIUM_CHANCE = "medium_chance"
DATA_MILESTONE_LARGE_CHANCE = "large_chance"
DATA_MILESTONE_LABEL = "label"

MILESTONE_CHANCE_KEYS: Final = {
    TIER_SMALL: DATA_MILESTONE_SMALL_CHANCE,
    TIER_MEDIUM: DATA_MILESTONE_MEDIUM_CHANCE,
    TIER_LARGE: DATA_MILESTONE_LARGE_CHANCE,
}

# ------------------------------------------------------------------------------------------------
# Data Keys - Rewards
# ------------------------------------------------------------------------------------------------
DATA_REWARD_INTERNAL_ID = "internal_id"
DATA_REWARD_NAME = "name"
DATA_REWARD_TIER = "tier"
DATA_REWARD_CLAIMED = "claimed"
DATA_REWARD_DESCRIPTION = "description"
DATA_REWARD_ICON = "icon"

# ------------------------------------------------------------------------------------------------
# Data Keys - Spin State
# ------------------------------------------------------------------------------------------------
DATA_SPIN_MODE = "mode"
DATA_SPIN_LAST_SPIN = "last_spin"
DATA_SPIN_CONSUMED_MILESTONES = "consumed_milestones"

# ------------------------------------------------------------------------------------------------
# Data Keys - Wheel Settings
# ------------------------------------------------------------------------------------------------
DATA_SETTINGS_MIN_STREAK_FOR_WHEEL = "min_streak_for_wheel"
DATA_SETTINGS_ALLOW_WHEEL_ONLY_AT_MILESTONES = "allow_wheel_only_at_milestones"
DATA_SETTINGS_COOLDOWN_HOURS = "cooldown_hours"
DATA_SETTINGS_SPIN_MODE = "spin_mode"
DATA_SETTINGS_SHOW_NEXT_MILESTONE_PROBABILITIES = "show_next_milestone_probabilities"
DATA_SETTINGS_STREAK_CALCULATION_MODE = "streak_calculation_mode"

DEFAULT_MIN_STREAK_FOR_WHEEL = 7
DEFAULT_ALLOW_WHEEL_ONLY_AT_MILESTONES = True
DEFAULT_COOLDOWN_HOURS = 24.0
DEFAULT_SPIN_MODE = SPIN_MODE_COOLDOWN
DEFAULT_SHOW_NEXT_MILESTONE_PROBABILITIES = False
DEFAULT_STREAK_CALCULATION_MODE = STREAK_MODE_HIGHEST

DEFAULT_COMPLETION_RATE_DAYS = 30
DEFAULT_TREND_DAYS = 7

# ------------------------------------------------------------------------------------------------
# Default Milestone Table
# ------------------------------------------------------------------------------------------------
DEFAULT_MILESTONES: Final = (
    {
        DATA_MILESTONE_DAYS: 7,
        DATA_MILESTONE_SMALL_CHANCE: 60.0,
        DATA_MILESTONE_MEDIUM_CHANCE: 30.0,
        DATA_MILESTONE_LARGE_CHANCE: 10.0,
        DATA_MILESTONE_LABEL: "1 Week",
    },
    {
        DATA_MILESTONE_DAYS: 14,
        DATA_MILESTONE_SMALL_CHANCE: 50.0,
        DATA_MILESTONE_MEDIUM_CHANCE: 35.0,
        DATA_MILESTONE_LARGE_CHANCE: 15.0,
        DATA_MILESTONE_LABEL: "2 Weeks",
    },
    {
        DATA_MILESTONE_DAYS: 30,
        DATA_MILESTONE_SMALL_CHANCE: 40.0,
        DATA_MILESTONE_MEDIUM_CHANCE: 40.0,
        DATA_MILESTONE_LARGE_CHANCE: 20.0,
        DATA_MILESTONE_LABEL: "1 Month",
    },
    {
        DATA_MILESTONE_DAYS: 60,
        DATA_MILESTONE_SMALL_CHANCE: 30.0,
        DATA_MILESTONE_MEDIUM_CHANCE: 45.0,
        DATA_MILESTONE_LARGE_CHANCE: 25.0,
        DATA_MILESTONE_LABEL: "2 Months",
    },
    {
        DATA_MILESTONE_DAYS: 100,
        DATA_MILESTONE_SMALL_CHANCE: 20.0,
        DATA_MILESTONE_MEDIUM_CHANCE: 50.0,
        DATA_MILESTONE_LARGE_CHANCE: 30.0,
        DATA_MILESTONE_LABEL: "100 Days",
    },
)

# ------------------------------------------------------------------------------------------------
# Events (emitted by managers)
# ------------------------------------------------------------------------------------------------
EVENT_HABIT_COMPLETED = "habit_completed"
EVENT_STREAK_RESET = "streak_reset"
EVENT_SPIN_RECORDED = "spin_recorded"
EVENT_REWARD_WON = "reward_won"

# ------------------------------------------------------------------------------------------------
# Spin Result Reason Codes
# ------------------------------------------------------------------------------------------------
SPIN_REASON_GRANTED = "granted"
SPIN_REASON_DEMO = "demo"
SPIN_REASON_NOT_ELIGIBLE = "not_eligible"
SPIN_REASON_EMPTY_REWARD_POOL = "empty_reward_pool"

# Status messages
SPIN_MESSAGE_READY = "Ready to spin"
SPIN_MESSAGE_STREAK_TOO_LOW = "Reach a {min_streak}-day streak to unlock the wheel"
SPIN_MESSAGE_NO_MILESTONE = "Reach your first milestone to unlock the wheel"
SPIN_MESSAGE_COOLDOWN = "Next spin in {remaining}"
SPIN_MESSAGE_REACH_NEW_MILESTONE = "Reach a new milestone to spin again"
SPIN_MESSAGE_UNCONSUMED = "{count} milestone spin(s) available"

# ------------------------------------------------------------------------------------------------
# Validation Error Keys (EntityValidationError.translation_key)
# ------------------------------------------------------------------------------------------------
ERROR_INVALID_MILESTONE_DAYS = "invalid_milestone_days"
ERROR_DUPLICATE_MILESTONE_DAYS = "duplicate_milestone_days"
ERROR_INVALID_MILESTONE_CHANCE = "invalid_milestone_chance"
ERROR_INVALID_REWARD_NAME = "invalid_reward_name"
ERROR_INVALID_REWARD_TIER = "invalid_reward_tier"
ERROR_INVALID_HABIT_NAME = "invalid_habit_name"
ERROR_INVALID_COMPLETION_DATE = "invalid_completion_date"
ERROR_INVALID_FREQUENCY = "invalid_frequency"
ERROR_INVALID_FREQUENCY_TARGET = "invalid_frequency_target"
ERROR_INVALID_SPIN_MODE = "invalid_spin_mode"
ERROR_INVALID_STREAK_MODE = "invalid_streak_mode"
ERROR_INVALID_COOLDOWN = "invalid_cooldown"
ERROR_INVALID_MIN_STREAK = "invalid_min_streak"
ERROR_NOT_FOUND = "not_found"

LABEL_HABIT = "habit"
