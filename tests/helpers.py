"""Record factories shared by StreakWheel tests.

Import with:

    from tests.helpers import make_habit, make_milestone, make_reward
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Any

from streakwheel import const
from streakwheel.type_defs import (
    HabitData,
    MilestoneData,
    RewardData,
    SpinStateData,
    WheelSettingsData,
)

# Wednesday; the current week runs Mon 2026-01-12 .. Sun 2026-01-18
TODAY = date(2026, 1, 14)


def days_ago(*offsets: int, today: date = TODAY) -> list[str]:
    """Return ISO dates `offset` days before today, in the given order."""
    return [(today - timedelta(days=offset)).isoformat() for offset in offsets]


def make_utc_dt(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
) -> datetime:
    """Create a UTC datetime for testing."""
    return datetime(year, month, day, hour, minute, 0, tzinfo=UTC)


def make_habit(
    completed_dates: list[str] | None = None,
    frequency: str = const.FREQUENCY_DAILY,
    frequency_target: int = 1,
    streak: int = 0,
    habit_id: str = "habit-1",
    name: str = "Read",
    last_completed: str | None = None,
) -> HabitData:
    """Create a HabitData record; last_completed defaults to the newest date."""
    dates = list(completed_dates or [])
    return {
        const.DATA_HABIT_INTERNAL_ID: habit_id,
        const.DATA_HABIT_NAME: name,
        const.DATA_HABIT_FREQUENCY: frequency,
        const.DATA_HABIT_FREQUENCY_TARGET: frequency_target,
        const.DATA_HABIT_COMPLETED_DATES: dates,
        const.DATA_HABIT_COMPLETION_VALUES: {},
        const.DATA_HABIT_STREAK: streak,
        const.DATA_HABIT_LAST_COMPLETED: last_completed
        if last_completed is not None
        else (max(dates) if dates else None),
    }  # type: ignore[return-value]


def make_milestone(
    days: int,
    small: float = 60.0,
    medium: float = 30.0,
    large: float = 10.0,
    label: str = "",
) -> MilestoneData:
    """Create a MilestoneData row."""
    return {
        const.DATA_MILESTONE_DAYS: days,
        const.DATA_MILESTONE_SMALL_CHANCE: small,
        const.DATA_MILESTONE_MEDIUM_CHANCE: medium,
        const.DATA_MILESTONE_LARGE_CHANCE: large,
        const.DATA_MILESTONE_LABEL: label,
    }  # type: ignore[return-value]


def make_reward(
    reward_id: str,
    tier: str = const.TIER_SMALL,
    claimed: bool = False,
    name: str | None = None,
) -> RewardData:
    """Create a RewardData record."""
    return {
        const.DATA_REWARD_INTERNAL_ID: reward_id,
        const.DATA_REWARD_NAME: name or reward_id,
        const.DATA_REWARD_TIER: tier,
        const.DATA_REWARD_CLAIMED: claimed,
        const.DATA_REWARD_DESCRIPTION: "",
        const.DATA_REWARD_ICON: "",
    }  # type: ignore[return-value]


def make_state(
    mode: str = const.SPIN_MODE_COOLDOWN,
    last_spin: str | None = None,
    consumed: list[int] | None = None,
) -> SpinStateData:
    """Create a SpinStateData record."""
    return {
        const.DATA_SPIN_MODE: mode,
        const.DATA_SPIN_LAST_SPIN: last_spin,
        const.DATA_SPIN_CONSUMED_MILESTONES: list(consumed or []),
    }  # type: ignore[return-value]


def make_settings(**overrides: Any) -> WheelSettingsData:
    """Create WheelSettingsData from defaults plus overrides (DATA_* keys)."""
    settings: dict[str, Any] = {
        const.DATA_SETTINGS_MIN_STREAK_FOR_WHEEL: const.DEFAULT_MIN_STREAK_FOR_WHEEL,
        const.DATA_SETTINGS_ALLOW_WHEEL_ONLY_AT_MILESTONES: (
            const.DEFAULT_ALLOW_WHEEL_ONLY_AT_MILESTONES
        ),
        const.DATA_SETTINGS_COOLDOWN_HOURS: const.DEFAULT_COOLDOWN_HOURS,
        const.DATA_SETTINGS_SPIN_MODE: const.DEFAULT_SPIN_MODE,
        const.DATA_SETTINGS_SHOW_NEXT_MILESTONE_PROBABILITIES: (
            const.DEFAULT_SHOW_NEXT_MILESTONE_PROBABILITIES
        ),
        const.DATA_SETTINGS_STREAK_CALCULATION_MODE: (
            const.DEFAULT_STREAK_CALCULATION_MODE
        ),
    }
    settings.update(overrides)
    return settings  # type: ignore[return-value]


def default_milestones() -> list[MilestoneData]:
    """Return the 7/14/30/60/100 default table as fresh dicts."""
    return [dict(row) for row in const.DEFAULT_MILESTONES]  # type: ignore[misc]
