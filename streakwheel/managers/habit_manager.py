"""Habit Manager - Stateful habit records, completions and streak upkeep.

This manager owns the habit collection and keeps each cached streak in
sync with the completion history:
- Create/update/delete habits (through data_builders)
- Record and remove completions, recomputing the streak
- Reset checks (the caller decides when: timer, app focus, startup)
- Per-habit and overall statistics

ARCHITECTURE:
- HabitManager = STATEFUL owner of HabitData and the milestone table
- StreakEngine / MilestoneEngine / RewardEngine = Pure logic (STATELESS)

Every method taking `today` falls back to the local calendar date when it
is omitted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const, data_builders as db
from ..engines.milestone_engine import MilestoneEngine
from ..engines.reward_engine import RewardEngine
from ..engines.streak_engine import StreakEngine
from ..utils.dt_utils import dt_today_local
from ..utils.math_utils import calculate_percentage
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import date

    from ..type_defs import HabitData, MilestoneData, OverallStats, StreakStats


class HabitManager(BaseManager):
    """Manager for habits and their cached streaks."""

    def __init__(
        self,
        habits: Iterable[HabitData] | None = None,
        milestones: Sequence[MilestoneData] | None = None,
    ) -> None:
        """Initialize HabitManager.

        Args:
            habits: Previously persisted habit records
            milestones: Milestone table (defaults to const.DEFAULT_MILESTONES)
        """
        super().__init__()
        self._habits: dict[str, HabitData] = {}
        for habit in habits or []:
            built = db.build_habit({}, existing=habit)
            self._habits[built[const.DATA_HABIT_INTERNAL_ID]] = built
        self._milestones: list[MilestoneData] = (
            list(milestones) if milestones is not None else db.build_default_milestones()
        )

    # ────────────────────────────────────────────────────────────────
    # Accessors
    # ────────────────────────────────────────────────────────────────

    @property
    def habits(self) -> list[HabitData]:
        """Return all habit records."""
        return list(self._habits.values())

    @property
    def milestones(self) -> list[MilestoneData]:
        """Return the milestone table."""
        return list(self._milestones)

    def set_milestones(self, milestones: Sequence[MilestoneData]) -> None:
        """Replace the milestone table."""
        self._milestones = list(milestones)

    def get_habit(self, habit_id: str) -> HabitData:
        """Return a habit by id.

        Raises:
            EntityNotFoundError: If the habit does not exist
        """
        habit = self._habits.get(habit_id)
        if habit is None:
            raise db.EntityNotFoundError(const.LABEL_HABIT, habit_id)
        return habit

    # ────────────────────────────────────────────────────────────────
    # CRUD
    # ────────────────────────────────────────────────────────────────

    def create_habit(
        self, user_input: dict[str, Any], today: date | None = None
    ) -> HabitData:
        """Create a habit and compute its initial streak.

        Raises:
            EntityValidationError: If the input is invalid
        """
        habit = db.build_habit(user_input)
        habit_id = habit[const.DATA_HABIT_INTERNAL_ID]
        self._habits[habit_id] = habit
        self._refresh_streak(habit, today or dt_today_local())
        const.LOGGER.info(
            "Created habit '%s' (ID: %s)", habit[const.DATA_HABIT_NAME], habit_id
        )
        return habit

    def update_habit(
        self, habit_id: str, updates: dict[str, Any], today: date | None = None
    ) -> HabitData:
        """Merge updates into a habit and recompute its streak.

        Raises:
            EntityNotFoundError: If the habit does not exist
            EntityValidationError: If the updates are invalid
        """
        existing = self.get_habit(habit_id)
        habit = db.build_habit(updates, existing=existing)
        self._habits[habit_id] = habit
        self._refresh_streak(habit, today or dt_today_local())
        const.LOGGER.debug(
            "Updated habit '%s' (ID: %s)", habit[const.DATA_HABIT_NAME], habit_id
        )
        return habit

    def delete_habit(self, habit_id: str) -> None:
        """Delete a habit.

        Raises:
            EntityNotFoundError: If the habit does not exist
        """
        habit = self.get_habit(habit_id)
        del self._habits[habit_id]
        const.LOGGER.info(
            "Deleted habit '%s' (ID: %s)", habit[const.DATA_HABIT_NAME], habit_id
        )

    # ────────────────────────────────────────────────────────────────
    # Completions
    # ────────────────────────────────────────────────────────────────

    def record_completion(
        self,
        habit_id: str,
        completion_date: Any | None = None,
        value: Any = True,
        today: date | None = None,
    ) -> HabitData:
        """Record a completion (idempotent per date) and recompute the streak.

        Args:
            habit_id: Habit to complete
            completion_date: Date/ISO string; defaults to today (backfill allowed,
                future dates rejected)
            value: Optional per-date value (e.g., a count or note)
            today: Reference date for the streak

        Raises:
            EntityNotFoundError: If the habit does not exist
            EntityValidationError: If completion_date is not a date or is
                later than today

        Emits:
            EVENT_HABIT_COMPLETED with habit_id, date and streak.
        """
        today = today or dt_today_local()
        habit = self.get_habit(habit_id)
        iso_date = db.parse_completion_date(
            completion_date if completion_date is not None else today, latest=today
        )

        dates = list(habit[const.DATA_HABIT_COMPLETED_DATES])
        values = dict(habit[const.DATA_HABIT_COMPLETION_VALUES])
        if iso_date not in dates:
            dates.append(iso_date)
        values[iso_date] = value

        habit = db.build_habit(
            {
                const.DATA_HABIT_COMPLETED_DATES: dates,
                const.DATA_HABIT_COMPLETION_VALUES: values,
            },
            existing=habit,
        )
        self._habits[habit_id] = habit
        streak = self._refresh_streak(habit, today)

        self.emit(
            const.EVENT_HABIT_COMPLETED,
            habit_id=habit_id,
            date=iso_date,
            streak=streak,
        )
        return habit

    def remove_completion(
        self,
        habit_id: str,
        completion_date: Any,
        today: date | None = None,
    ) -> HabitData:
        """Remove a completion date (no-op if absent) and recompute the streak.

        Raises:
            EntityNotFoundError: If the habit does not exist
            EntityValidationError: If completion_date is not a date
        """
        habit = self.get_habit(habit_id)
        iso_date = db.parse_completion_date(completion_date)

        dates = [d for d in habit[const.DATA_HABIT_COMPLETED_DATES] if d != iso_date]
        values = {
            key: val
            for key, val in habit[const.DATA_HABIT_COMPLETION_VALUES].items()
            if key != iso_date
        }
        habit = db.build_habit(
            {
                const.DATA_HABIT_COMPLETED_DATES: dates,
                const.DATA_HABIT_COMPLETION_VALUES: values,
            },
            existing=habit,
        )
        self._habits[habit_id] = habit
        self._refresh_streak(habit, today or dt_today_local())
        return habit

    def _refresh_streak(self, habit: HabitData, today: date) -> int:
        """Recompute and cache the habit's current streak."""
        streak = StreakEngine.current_streak(
            habit[const.DATA_HABIT_COMPLETED_DATES],
            habit[const.DATA_HABIT_FREQUENCY],
            habit[const.DATA_HABIT_FREQUENCY_TARGET],
            today,
        )
        habit[const.DATA_HABIT_STREAK] = streak
        return streak

    # ────────────────────────────────────────────────────────────────
    # Reset checks
    # ────────────────────────────────────────────────────────────────

    def check_streak_resets(self, today: date | None = None) -> list[str]:
        """Zero the streak of every habit whose reset policy fires.

        Habits that do not need a reset get their streak recomputed.

        Returns:
            IDs of habits whose non-zero streak was reset.

        Emits:
            EVENT_STREAK_RESET with habit_id and previous_streak, per reset.
        """
        today = today or dt_today_local()
        reset_ids: list[str] = []

        for habit_id, habit in list(self._habits.items()):
            if habit_id not in self._habits:
                # Deleted by a listener earlier in this pass
                continue
            if not StreakEngine.should_reset(habit, today):
                self._refresh_streak(habit, today)
                continue

            previous = int(habit.get(const.DATA_HABIT_STREAK, 0))
            habit[const.DATA_HABIT_STREAK] = 0
            if previous == 0:
                continue

            reset_ids.append(habit_id)
            const.LOGGER.info(
                "Reset streak of habit '%s' (was %d)",
                habit[const.DATA_HABIT_NAME],
                previous,
            )
            self.emit(
                const.EVENT_STREAK_RESET,
                habit_id=habit_id,
                previous_streak=previous,
            )

        return reset_ids

    # ────────────────────────────────────────────────────────────────
    # Statistics
    # ────────────────────────────────────────────────────────────────

    def get_effective_streak(
        self, mode: str = const.DEFAULT_STREAK_CALCULATION_MODE
    ) -> int:
        """Return the streak the wheel should use (see StreakEngine.effective_streak)."""
        return StreakEngine.effective_streak(self._habits.values(), mode)

    def get_streak_stats(
        self,
        habit_id: str,
        today: date | None = None,
        prefer_next: bool = False,
    ) -> StreakStats:
        """Build the per-habit streak summary.

        Raises:
            EntityNotFoundError: If the habit does not exist
        """
        today = today or dt_today_local()
        habit = self.get_habit(habit_id)
        dates = habit[const.DATA_HABIT_COMPLETED_DATES]
        streak = int(habit.get(const.DATA_HABIT_STREAK, 0))

        return {
            "habit_id": habit_id,
            "current_streak": streak,
            "longest_streak": max(
                StreakEngine.longest_streak(
                    dates,
                    habit[const.DATA_HABIT_FREQUENCY],
                    habit[const.DATA_HABIT_FREQUENCY_TARGET],
                ),
                streak,
            ),
            "next_milestone": MilestoneEngine.next_milestone(streak, self._milestones),
            "achieved_milestones": MilestoneEngine.achieved_milestones(
                streak, self._milestones
            ),
            "progress_to_next": MilestoneEngine.progress_to_next(
                streak, self._milestones
            ),
            "days_to_next_milestone": MilestoneEngine.days_to_next(
                streak, self._milestones
            ),
            "probabilities": RewardEngine.get_probabilities(
                streak, self._milestones, prefer_next
            ),
            "completion_rate": StreakEngine.completion_rate(dates, today),
            "trend": StreakEngine.streak_trend(dates, today),
        }

    def get_overall_stats(self) -> OverallStats:
        """Build the summary across all habits from cached streaks."""
        habits = self.habits
        streaks = [int(habit.get(const.DATA_HABIT_STREAK, 0)) for habit in habits]
        active = sum(1 for streak in streaks if streak > 0)

        return {
            "longest_streak": max(streaks, default=0),
            "active_streaks": active,
            "total_habits": len(habits),
            "average_streak": StreakEngine.average_streak(habits),
            "milestones_reached": sum(
                len(MilestoneEngine.achieved_milestones(streak, self._milestones))
                for streak in streaks
            ),
            "streak_percentage": calculate_percentage(active, len(habits)),
        }
