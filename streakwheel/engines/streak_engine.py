"""Streak Engine - Pure logic for streak calculation and reset decisions.

This engine provides stateless, pure Python functions for:
- Current streak length under daily/weekly/monthly/yearly recurrence
- Streak reset policy (grace window for daily, previous period for others)
- Longest historical streak, completion rate and trend
- Effective streak across habits (highest / all)

ARCHITECTURE: This is a pure logic engine with NO clock reads.
All functions are static methods that operate on passed-in data; `today`
is always an explicit parameter. State management belongs in HabitManager.

Daily streaks keep a one-day grace window: completing yesterday but not
today still yields a live streak. Missing today AND yesterday severs it.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import (
    InvalidFrequencyError,
    dt_parse_date,
    dt_period_start,
    dt_period_window,
)
from ..utils.math_utils import calculate_percentage, round_value

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..type_defs import DateWindow, HabitData, Trend


class StreakEngine:
    """Pure logic engine for streak evaluation.

    All methods are static - no instance state.

    PURITY CONTRACT:
    - All data comes via parameters (completion dates, frequency, today)
    - No side effects, no clock reads, no state mutation
    - Duplicate dates are deduplicated before counting
    """

    # ────────────────────────────────────────────────────────────────
    # Input Normalization
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def validate_frequency(frequency: str) -> str:
        """Return frequency unchanged if known.

        Raises:
            InvalidFrequencyError: If frequency is not daily/weekly/monthly/yearly
        """
        if frequency not in const.FREQUENCY_OPTIONS:
            raise InvalidFrequencyError(frequency)
        return frequency

    @staticmethod
    def coerce_target(frequency: str, frequency_target: int | None) -> int:
        """Return the effective per-period target.

        Daily habits always need exactly one completion per day; zero,
        negative or missing targets are coerced to 1.
        """
        if frequency == const.FREQUENCY_DAILY:
            return 1
        try:
            target = int(frequency_target or 0)
        except (TypeError, ValueError):
            return 1
        return max(target, 1)

    @staticmethod
    def normalize_dates(
        completed_dates: Iterable[str | date],
        today: date | None = None,
    ) -> list[date]:
        """Parse, deduplicate and sort completion dates (newest first).

        Unparseable entries are dropped. When `today` is given, dates after
        it are ignored.
        """
        parsed: set[date] = set()
        for raw in completed_dates:
            completed = dt_parse_date(raw)
            if completed is None:
                continue
            if today is not None and completed > today:
                continue
            parsed.add(completed)
        return sorted(parsed, reverse=True)

    @staticmethod
    def count_in_window(dates: Iterable[date], window: DateWindow) -> int:
        """Count dates falling inside an inclusive window."""
        start, end = window["start"], window["end"]
        return sum(1 for completed in dates if start <= completed <= end)

    # ────────────────────────────────────────────────────────────────
    # Current Streak
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def current_streak(
        completed_dates: Iterable[str | date],
        frequency: str,
        frequency_target: int | None,
        today: date,
    ) -> int:
        """Compute the current streak length.

        Args:
            completed_dates: Completion dates (ISO strings or dates, any order)
            frequency: daily/weekly/monthly/yearly
            frequency_target: Required completions per period (daily forces 1)
            today: Reference date (never read from the clock)

        Returns:
            Non-negative streak length in periods.

        Raises:
            InvalidFrequencyError: If frequency is unknown

        Examples:
            daily, [T-2, T-1], today=T → 2 (today not yet completed)
            daily, [T-3], today=T → 0
            weekly target 3, 3 completions in each of the last 4 weeks → 4
        """
        StreakEngine.validate_frequency(frequency)
        dates = StreakEngine.normalize_dates(completed_dates, today)
        if not dates:
            return 0

        if frequency == const.FREQUENCY_DAILY:
            streak = StreakEngine._daily_streak(dates, today)
        else:
            target = StreakEngine.coerce_target(frequency, frequency_target)
            streak = StreakEngine._periodic_streak(dates, frequency, target, today)

        const.LOGGER.debug(
            "Computed %s streak=%d from %d completion(s) as of %s",
            frequency,
            streak,
            len(dates),
            today,
        )
        return streak

    @staticmethod
    def _daily_streak(dates_desc: Sequence[date], today: date) -> int:
        """Walk backward from today; each counted date moves the cursor."""
        streak = 0
        cursor = today
        for completed in dates_desc:
            if (cursor - completed).days > 1:
                break
            streak += 1
            cursor = completed
        return streak

    @staticmethod
    def _periodic_streak(
        dates_desc: Sequence[date],
        frequency: str,
        target: int,
        today: date,
    ) -> int:
        """Count consecutive qualifying periods, starting at the current one."""
        earliest = dates_desc[-1]
        streak = 0
        for offset in range(const.MAX_PERIOD_WALK_ITERATIONS):
            window = dt_period_window(frequency, today, -offset)
            if window["end"] < earliest:
                break
            if StreakEngine.count_in_window(dates_desc, window) < target:
                break
            streak += 1
        return streak

    # ────────────────────────────────────────────────────────────────
    # Reset Policy
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def last_completed(habit: HabitData) -> date | None:
        """Return the habit's last completion date.

        Falls back to the newest completed date when the cached field is
        missing.
        """
        cached = dt_parse_date(habit.get(const.DATA_HABIT_LAST_COMPLETED))
        if cached is not None:
            return cached
        dates = StreakEngine.normalize_dates(
            habit.get(const.DATA_HABIT_COMPLETED_DATES, [])
        )
        return dates[0] if dates else None

    @staticmethod
    def should_reset(habit: HabitData, today: date) -> bool:
        """Decide whether the habit's streak must be reset to zero.

        Pure predicate: the caller zeroes the streak when this returns True.

        - daily: more than one calendar day elapsed since last completion
        - weekly/monthly/yearly: the previous period (the one before the
          period containing today) missed its target. The in-progress
          current period is never evaluated.

        Raises:
            InvalidFrequencyError: If the habit frequency is unknown
        """
        frequency = habit.get(const.DATA_HABIT_FREQUENCY, const.DEFAULT_FREQUENCY)
        StreakEngine.validate_frequency(frequency)

        if frequency == const.FREQUENCY_DAILY:
            last = StreakEngine.last_completed(habit)
            if last is None:
                return False
            return (today - last).days > 1

        target = StreakEngine.coerce_target(
            frequency, habit.get(const.DATA_HABIT_FREQUENCY_TARGET)
        )
        dates = StreakEngine.normalize_dates(
            habit.get(const.DATA_HABIT_COMPLETED_DATES, []), today
        )
        previous = dt_period_window(frequency, today, -1)
        return StreakEngine.count_in_window(dates, previous) < target

    # ────────────────────────────────────────────────────────────────
    # History Statistics
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def longest_streak(
        completed_dates: Iterable[str | date],
        frequency: str,
        frequency_target: int | None,
    ) -> int:
        """Return the longest run of consecutive qualifying periods ever.

        Raises:
            InvalidFrequencyError: If frequency is unknown
        """
        StreakEngine.validate_frequency(frequency)
        target = StreakEngine.coerce_target(frequency, frequency_target)

        tallies: dict[date, int] = {}
        for completed in StreakEngine.normalize_dates(completed_dates):
            period_start = dt_period_start(frequency, completed)
            tallies[period_start] = tallies.get(period_start, 0) + 1

        qualifying = sorted(start for start, count in tallies.items() if count >= target)

        longest = 0
        run = 0
        previous: date | None = None
        for period_start in qualifying:
            if (
                previous is not None
                and dt_period_window(frequency, previous, 1)["start"] == period_start
            ):
                run += 1
            else:
                run = 1
            longest = max(longest, run)
            previous = period_start
        return longest

    @staticmethod
    def completion_rate(
        completed_dates: Iterable[str | date],
        today: date,
        days: int = const.DEFAULT_COMPLETION_RATE_DAYS,
    ) -> float:
        """Percentage of the last `days` days (ending today) with a completion."""
        if days <= 0:
            return 0.0
        count = sum(
            1
            for completed in StreakEngine.normalize_dates(completed_dates, today)
            if (today - completed).days < days
        )
        return calculate_percentage(count, days)

    @staticmethod
    def streak_trend(
        completed_dates: Iterable[str | date],
        today: date,
        days: int = const.DEFAULT_TREND_DAYS,
    ) -> Trend:
        """Compare completions in the last `days` days against the days before."""
        recent = 0
        previous = 0
        for completed in StreakEngine.normalize_dates(completed_dates, today):
            age = (today - completed).days
            if age < days:
                recent += 1
            elif age < days * 2:
                previous += 1

        if recent > previous:
            return const.TREND_UP
        if recent < previous:
            return const.TREND_DOWN
        return const.TREND_STABLE

    @staticmethod
    def effective_streak(
        habits: Iterable[HabitData],
        mode: str = const.DEFAULT_STREAK_CALCULATION_MODE,
    ) -> int:
        """Combine cached habit streaks into the streak used by the wheel.

        - highest: best streak of any habit
        - all: weakest streak, so every habit must reach a milestone

        Returns 0 when there are no habits.
        """
        streaks = [int(habit.get(const.DATA_HABIT_STREAK, 0)) for habit in habits]
        if not streaks:
            return 0
        if mode == const.STREAK_MODE_ALL:
            return min(streaks)
        if mode != const.STREAK_MODE_HIGHEST:
            const.LOGGER.warning(
                "Unknown streak calculation mode '%s', using '%s'",
                mode,
                const.STREAK_MODE_HIGHEST,
            )
        return max(streaks)

    @staticmethod
    def average_streak(habits: Sequence[HabitData]) -> float:
        """Average cached streak across habits, rounded to one decimal."""
        if not habits:
            return 0.0
        total = sum(int(habit.get(const.DATA_HABIT_STREAK, 0)) for habit in habits)
        return round_value(total / len(habits), 1)
