"""Type definitions for StreakWheel data structures.

Records exchanged with the external stores (habits, milestones, rewards,
spin state, wheel settings) are plain dicts described by TypedDict. Keys are
the DATA_* constants from const.py.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Engines still use .get() defaults
because records arrive from external stores and are not validated at runtime.

IMPORTANT: This file must NOT import from engines or managers to avoid
circular dependencies.
"""

from datetime import date, timedelta
from typing import Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

HabitId = str
RewardId = str
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"

Frequency = Literal["daily", "weekly", "monthly", "yearly"]
RewardTier = Literal["small", "medium", "large"]
SpinMode = Literal["cooldown", "once_per_milestone"]
StreakMode = Literal["highest", "all"]
Trend = Literal["up", "down", "stable"]


# =============================================================================
# Store Records
# =============================================================================


class HabitData(TypedDict):
    """Habit record as read from the Completion Store.

    `streak` is derived: it is recomputed from completed_dates after every
    completion or reset check.
    """

    internal_id: HabitId
    name: str
    frequency: Frequency
    frequency_target: int
    completed_dates: list[ISODate]
    completion_values: dict[ISODate, float | bool]
    streak: int
    last_completed: ISODate | None


class MilestoneData(TypedDict):
    """One row of the milestone table."""

    days: int
    small_chance: float
    medium_chance: float
    large_chance: float
    label: NotRequired[str]


class RewardData(TypedDict):
    """Reward record as read from the Reward Store."""

    internal_id: RewardId
    name: str
    tier: RewardTier
    claimed: bool
    description: NotRequired[str]
    icon: NotRequired[str]


class SpinStateData(TypedDict):
    """Mutable state owned by the spin eligibility gate."""

    mode: SpinMode
    last_spin: ISODatetime | None
    consumed_milestones: list[int]


class WheelSettingsData(TypedDict):
    """Wheel configuration (see const.DEFAULT_* for defaults)."""

    min_streak_for_wheel: int
    allow_wheel_only_at_milestones: bool
    cooldown_hours: float
    spin_mode: SpinMode
    show_next_milestone_probabilities: bool
    streak_calculation_mode: StreakMode


# =============================================================================
# Engine Results
# =============================================================================


class DateWindow(TypedDict):
    """Inclusive calendar-date bounds of one period."""

    start: date
    end: date


class RewardProbabilities(TypedDict):
    """Percentages (relative weights) per reward tier."""

    small: float
    medium: float
    large: float


class WheelSegment(TypedDict):
    """One drawable wheel slice."""

    id: str
    reward: RewardData
    angle: float
    color: str
    probability: float


class TierBreakdown(TypedDict):
    """Claimed/total count for one tier."""

    total: int
    claimed: int


class RewardStats(TypedDict):
    """Aggregate reward pool statistics."""

    total_rewards: int
    claimed_count: int
    unclaimed_count: int
    claimed_percentage: float
    tier_breakdown: dict[str, TierBreakdown]


class StreakStats(TypedDict):
    """Per-habit streak summary."""

    habit_id: HabitId
    current_streak: int
    longest_streak: int
    next_milestone: MilestoneData | None
    achieved_milestones: list[MilestoneData]
    progress_to_next: float
    days_to_next_milestone: int
    probabilities: RewardProbabilities
    completion_rate: float
    trend: Trend


class OverallStats(TypedDict):
    """Summary across all habits."""

    longest_streak: int
    active_streaks: int
    total_habits: int
    average_streak: float
    milestones_reached: int
    streak_percentage: float


class SpinStatus(TypedDict):
    """Gate status for display."""

    can_spin: bool
    mode: SpinMode
    time_remaining: timedelta | None
    time_remaining_display: str | None
    unconsumed_milestones: int
    message: str


class SpinResult(TypedDict):
    """Outcome of SpinManager.spin()."""

    reward: RewardData | None
    tier: RewardTier | None
    is_demo: bool
    reason: str
