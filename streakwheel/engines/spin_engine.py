"""Spin Engine - Pure rules of the spin eligibility gate.

Two gating modes share one SpinStateData record:
- cooldown: streak must reach `min_streak_for_wheel`, optionally a milestone
  must be achieved, and `cooldown_hours` must have elapsed since the last spin
- once_per_milestone: every achieved milestone threshold grants exactly one
  spin; a spin consumes the highest achieved, not-yet-consumed threshold

Switching modes never touches `last_spin` or `consumed_milestones`, so a
later switch back resumes from the recorded state.

This engine is stateless: `apply_spin` returns a NEW state dict. Holding and
locking the state is SpinManager's job.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import (
    as_utc,
    dt_format_duration,
    dt_parse_datetime,
    dt_time_until,
)
from .milestone_engine import MilestoneEngine

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..type_defs import MilestoneData, SpinStateData, SpinStatus, WheelSettingsData


class SpinEngine:
    """Pure logic engine for spin eligibility.

    All methods are static - no instance state. `now` is always explicit.
    Naive `now` values are read in the default time zone (see as_utc).
    """

    # ────────────────────────────────────────────────────────────────
    # Cooldown Mode
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def cooldown_end(
        state: SpinStateData, settings: WheelSettingsData
    ) -> datetime | None:
        """Return the instant the cooldown ends, or None if no cooldown applies."""
        hours = float(
            settings.get(
                const.DATA_SETTINGS_COOLDOWN_HOURS, const.DEFAULT_COOLDOWN_HOURS
            )
        )
        last_spin = dt_parse_datetime(state.get(const.DATA_SPIN_LAST_SPIN))
        if hours <= 0 or last_spin is None:
            return None
        return last_spin + timedelta(hours=hours)

    @staticmethod
    def _cooldown_block_reason(
        streak: int,
        milestones: Sequence[MilestoneData] | None,
        state: SpinStateData,
        settings: WheelSettingsData,
        now: datetime,
    ) -> str | None:
        """Return the status message blocking a cooldown-mode spin, or None."""
        min_streak = int(
            settings.get(
                const.DATA_SETTINGS_MIN_STREAK_FOR_WHEEL,
                const.DEFAULT_MIN_STREAK_FOR_WHEEL,
            )
        )
        if streak < min_streak:
            return const.SPIN_MESSAGE_STREAK_TOO_LOW.format(min_streak=min_streak)

        if settings.get(
            const.DATA_SETTINGS_ALLOW_WHEEL_ONLY_AT_MILESTONES,
            const.DEFAULT_ALLOW_WHEEL_ONLY_AT_MILESTONES,
        ) and not MilestoneEngine.achieved_milestones(streak, milestones):
            return const.SPIN_MESSAGE_NO_MILESTONE

        remaining = dt_time_until(SpinEngine.cooldown_end(state, settings), now)
        if remaining is not None:
            return const.SPIN_MESSAGE_COOLDOWN.format(
                remaining=dt_format_duration(remaining)
            )
        return None

    # ────────────────────────────────────────────────────────────────
    # Once-Per-Milestone Mode
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def unconsumed_milestones(
        streak: int,
        milestones: Sequence[MilestoneData] | None,
        state: SpinStateData,
    ) -> list[int]:
        """Return achieved thresholds (ascending) that have not granted a spin yet."""
        consumed = set(state.get(const.DATA_SPIN_CONSUMED_MILESTONES, []))
        return [
            int(row[const.DATA_MILESTONE_DAYS])
            for row in MilestoneEngine.achieved_milestones(streak, milestones)
            if int(row[const.DATA_MILESTONE_DAYS]) not in consumed
        ]

    # ────────────────────────────────────────────────────────────────
    # Gate
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def can_spin(
        streak: int,
        milestones: Sequence[MilestoneData] | None,
        state: SpinStateData,
        settings: WheelSettingsData,
        now: datetime,
    ) -> bool:
        """Return True if a (non-demo) spin is currently allowed."""
        now = as_utc(now)
        mode = state.get(const.DATA_SPIN_MODE, const.DEFAULT_SPIN_MODE)
        if mode == const.SPIN_MODE_ONCE_PER_MILESTONE:
            return bool(SpinEngine.unconsumed_milestones(streak, milestones, state))
        return (
            SpinEngine._cooldown_block_reason(streak, milestones, state, settings, now)
            is None
        )

    @staticmethod
    def time_remaining(
        state: SpinStateData, settings: WheelSettingsData, now: datetime
    ) -> timedelta | None:
        """Return the delta to the next eligible instant in cooldown mode.

        None when no cooldown is pending or the gate is in once-per-milestone
        mode (which has no time component).
        """
        now = as_utc(now)
        mode = state.get(const.DATA_SPIN_MODE, const.DEFAULT_SPIN_MODE)
        if mode == const.SPIN_MODE_ONCE_PER_MILESTONE:
            return None
        return dt_time_until(SpinEngine.cooldown_end(state, settings), now)

    @staticmethod
    def apply_spin(
        streak: int,
        milestones: Sequence[MilestoneData] | None,
        state: SpinStateData,
        now: datetime,
    ) -> SpinStateData:
        """Return the state after a successful spin.

        - cooldown: last_spin = now
        - once_per_milestone: add the highest achieved, unconsumed threshold
          (or the highest achieved one, idempotently, if all are consumed)

        The input state is not mutated.
        """
        mode = state.get(const.DATA_SPIN_MODE, const.DEFAULT_SPIN_MODE)
        new_state: SpinStateData = {
            const.DATA_SPIN_MODE: mode,
            const.DATA_SPIN_LAST_SPIN: state.get(const.DATA_SPIN_LAST_SPIN),
            const.DATA_SPIN_CONSUMED_MILESTONES: list(
                state.get(const.DATA_SPIN_CONSUMED_MILESTONES, [])
            ),
        }  # type: ignore[misc]

        if mode != const.SPIN_MODE_ONCE_PER_MILESTONE:
            new_state[const.DATA_SPIN_LAST_SPIN] = as_utc(now).isoformat()
            return new_state

        unconsumed = SpinEngine.unconsumed_milestones(streak, milestones, state)
        if unconsumed:
            threshold: int | None = unconsumed[-1]
        else:
            highest = MilestoneEngine.highest_achieved(streak, milestones)
            threshold = int(highest[const.DATA_MILESTONE_DAYS]) if highest else None

        consumed = new_state[const.DATA_SPIN_CONSUMED_MILESTONES]
        if threshold is not None and threshold not in consumed:
            consumed.append(threshold)
            consumed.sort()
        return new_state

    @staticmethod
    def get_status(
        streak: int,
        milestones: Sequence[MilestoneData] | None,
        state: SpinStateData,
        settings: WheelSettingsData,
        now: datetime,
    ) -> SpinStatus:
        """Build a display status for the gate.

        Cooldown mode reports the remaining cooldown; once-per-milestone mode
        reports the number of unconsumed achieved milestones, or a "reach a
        new milestone" message when there are none.
        """
        now = as_utc(now)
        mode = state.get(const.DATA_SPIN_MODE, const.DEFAULT_SPIN_MODE)

        if mode == const.SPIN_MODE_ONCE_PER_MILESTONE:
            count = len(SpinEngine.unconsumed_milestones(streak, milestones, state))
            return {
                "can_spin": count > 0,
                "mode": mode,
                "time_remaining": None,
                "time_remaining_display": None,
                "unconsumed_milestones": count,
                "message": (
                    const.SPIN_MESSAGE_UNCONSUMED.format(count=count)
                    if count
                    else const.SPIN_MESSAGE_REACH_NEW_MILESTONE
                ),
            }

        reason = SpinEngine._cooldown_block_reason(
            streak, milestones, state, settings, now
        )
        remaining = SpinEngine.time_remaining(state, settings, now)
        return {
            "can_spin": reason is None,
            "mode": mode,
            "time_remaining": remaining,
            "time_remaining_display": (
                dt_format_duration(remaining) if remaining is not None else None
            ),
            "unconsumed_milestones": 0,
            "message": reason or const.SPIN_MESSAGE_READY,
        }
