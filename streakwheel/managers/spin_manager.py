"""Spin Manager - Stateful spin eligibility gate and wheel orchestration.

This manager owns the one piece of mutable engine state (SpinStateData):
- Checking and recording spins atomically (threading.Lock)
- Switching gate modes without losing recorded state
- Running wheel spins (real and demo) and emitting results

ARCHITECTURE:
- SpinManager = STATEFUL holder of SpinStateData, wheel settings and lock
- SpinEngine = Pure eligibility rules (STATELESS)
- RewardEngine = Pure probability resolution and selection (STATELESS)

The spin bookkeeping is global: one SpinManager serves every habit, and the
streak passed in is whatever the caller considers effective (see
StreakEngine.effective_streak).
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from .. import const, data_builders as db
from ..engines.reward_engine import RewardEngine
from ..engines.spin_engine import SpinEngine
from ..utils.dt_utils import dt_now_utc
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime, timedelta
    import random

    from ..type_defs import (
        MilestoneData,
        RewardData,
        RewardProbabilities,
        SpinResult,
        SpinStateData,
        SpinStatus,
        WheelSegment,
        WheelSettingsData,
    )


class SpinManager(BaseManager):
    """Manager for the spin eligibility gate.

    Every method taking `now` falls back to the current UTC time when it is
    omitted; tests should pass it explicitly.
    """

    def __init__(
        self,
        milestones: Sequence[MilestoneData] | None = None,
        settings: WheelSettingsData | None = None,
        state: SpinStateData | None = None,
    ) -> None:
        """Initialize SpinManager.

        Args:
            milestones: Milestone table (defaults to const.DEFAULT_MILESTONES)
            settings: Wheel settings (validated, defaults applied)
            state: Previously persisted spin state (defaults on first use)
        """
        super().__init__()
        self._milestones: list[MilestoneData] = (
            list(milestones) if milestones is not None else db.build_default_milestones()
        )
        self._settings = db.build_wheel_settings(existing=settings)
        if state is None:
            self._state = db.build_spin_state(
                {const.DATA_SPIN_MODE: self._settings[const.DATA_SETTINGS_SPIN_MODE]}
            )
        else:
            self._state = db.build_spin_state(existing=state)
            # Persisted state carries the active mode
            self._settings[const.DATA_SETTINGS_SPIN_MODE] = self._state[
                const.DATA_SPIN_MODE
            ]
        self._lock = threading.Lock()

    # ────────────────────────────────────────────────────────────────
    # Accessors
    # ────────────────────────────────────────────────────────────────

    @property
    def state(self) -> SpinStateData:
        """Return a copy of the current spin state (for persistence)."""
        return db.build_spin_state(existing=self._state)

    @property
    def settings(self) -> WheelSettingsData:
        """Return the current wheel settings."""
        return dict(self._settings)  # type: ignore[return-value]

    @property
    def milestones(self) -> list[MilestoneData]:
        """Return the milestone table."""
        return list(self._milestones)

    @property
    def mode(self) -> str:
        """Return the active gate mode."""
        return self._state[const.DATA_SPIN_MODE]

    def set_milestones(self, milestones: Sequence[MilestoneData]) -> None:
        """Replace the milestone table (consumed thresholds are kept)."""
        self._milestones = list(milestones)

    def update_settings(self, user_input: dict) -> WheelSettingsData:
        """Apply a settings change.

        The gate mode switches only when spin_mode is part of user_input.

        Raises:
            EntityValidationError: If the new settings are invalid
        """
        with self._lock:
            self._settings = db.build_wheel_settings(user_input, existing=self._settings)
            new_mode = self._settings[const.DATA_SETTINGS_SPIN_MODE]
            if (
                const.DATA_SETTINGS_SPIN_MODE in user_input
                and new_mode != self._state[const.DATA_SPIN_MODE]
            ):
                self._switch_mode_locked(new_mode)
        return self.settings

    def set_mode(self, mode: str) -> None:
        """Switch between cooldown and once-per-milestone gating.

        last_spin and consumed_milestones are retained so switching back
        resumes consistently.

        Raises:
            EntityValidationError: If the mode is unknown
        """
        self.update_settings({const.DATA_SETTINGS_SPIN_MODE: mode})

    def _switch_mode_locked(self, mode: str) -> None:
        """Switch the state mode; caller holds the lock."""
        previous = self._state[const.DATA_SPIN_MODE]
        self._state = db.build_spin_state(
            {const.DATA_SPIN_MODE: mode}, existing=self._state
        )
        const.LOGGER.info("Spin gate mode changed: %s -> %s", previous, mode)

    # ────────────────────────────────────────────────────────────────
    # Gate
    # ────────────────────────────────────────────────────────────────

    def can_spin(self, streak: int, now: datetime | None = None) -> bool:
        """Return True if a real spin is allowed for this streak right now."""
        return SpinEngine.can_spin(
            streak, self._milestones, self._state, self._settings, now or dt_now_utc()
        )

    def record_spin(self, streak: int, now: datetime | None = None) -> SpinStateData:
        """Record a successful spin and return the new state.

        Callers exposing the gate to concurrent users should prefer
        try_spin(), which checks and records under one lock.
        """
        with self._lock:
            state = self._record_spin_locked(streak, now or dt_now_utc())
        self._emit_spin_recorded(streak, state)
        return state

    def _record_spin_locked(self, streak: int, now: datetime) -> SpinStateData:
        """Internal record logic executed under lock protection.

        Returns a copy of the new state; the caller emits after releasing
        the lock so listeners may call back into the manager.
        """
        self._state = SpinEngine.apply_spin(streak, self._milestones, self._state, now)
        const.LOGGER.info(
            "Spin recorded (mode=%s, streak=%d, consumed=%s)",
            self._state[const.DATA_SPIN_MODE],
            streak,
            self._state[const.DATA_SPIN_CONSUMED_MILESTONES],
        )
        return self.state

    def _emit_spin_recorded(self, streak: int, state: SpinStateData) -> None:
        """Emit EVENT_SPIN_RECORDED for a state returned by _record_spin_locked."""
        self.emit(
            const.EVENT_SPIN_RECORDED,
            mode=state[const.DATA_SPIN_MODE],
            streak=streak,
            state=state,
        )

    def try_spin(self, streak: int, now: datetime | None = None) -> bool:
        """Atomically check eligibility and record the spin.

        Returns:
            True if the spin was granted and recorded, False otherwise.
        """
        now = now or dt_now_utc()
        with self._lock:
            if not SpinEngine.can_spin(
                streak, self._milestones, self._state, self._settings, now
            ):
                const.LOGGER.debug("Spin denied for streak %d", streak)
                return False
            state = self._record_spin_locked(streak, now)
        self._emit_spin_recorded(streak, state)
        return True

    def time_remaining(self, now: datetime | None = None) -> timedelta | None:
        """Return the remaining cooldown, or None if already eligible."""
        return SpinEngine.time_remaining(
            self._state, self._settings, now or dt_now_utc()
        )

    def get_status(self, streak: int, now: datetime | None = None) -> SpinStatus:
        """Return the gate status for display."""
        return SpinEngine.get_status(
            streak, self._milestones, self._state, self._settings, now or dt_now_utc()
        )

    # ────────────────────────────────────────────────────────────────
    # Wheel
    # ────────────────────────────────────────────────────────────────

    def get_display_probabilities(self, streak: int) -> RewardProbabilities:
        """Return the distribution to show, honoring the "show next" setting."""
        return RewardEngine.get_probabilities(
            streak,
            self._milestones,
            prefer_next=self._settings[
                const.DATA_SETTINGS_SHOW_NEXT_MILESTONE_PROBABILITIES
            ],
        )

    def build_wheel_segments(
        self, streak: int, rewards: Sequence[RewardData]
    ) -> list[WheelSegment]:
        """Lay out wheel slices for the displayed distribution."""
        return RewardEngine.build_wheel_segments(
            self.get_display_probabilities(streak), rewards
        )

    def spin(
        self,
        streak: int,
        rewards: Sequence[RewardData],
        *,
        demo: bool = False,
        now: datetime | None = None,
        rng: random.Random | None = None,
    ) -> SpinResult:
        """Spin the wheel.

        Real spins pass through the gate, skip claimed rewards, record the
        spin and emit EVENT_REWARD_WON (the Reward Store claims the reward).
        Demo spins bypass the gate, include claimed rewards and change no
        state. The drawn distribution is always the currently achieved one,
        never the "next milestone" preview.

        Returns:
            SpinResult with the reward (None if not eligible or the pool is
            empty), the drawn tier and a reason code.
        """
        if demo:
            tier, reward = self._draw(streak, rewards, exclude_claimed=False, rng=rng)
            return {
                "reward": reward,
                "tier": tier,
                "is_demo": True,
                "reason": const.SPIN_REASON_DEMO
                if reward is not None
                else const.SPIN_REASON_EMPTY_REWARD_POOL,
            }

        now = now or dt_now_utc()
        with self._lock:
            if not SpinEngine.can_spin(
                streak, self._milestones, self._state, self._settings, now
            ):
                const.LOGGER.debug("Spin denied for streak %d", streak)
                return {
                    "reward": None,
                    "tier": None,
                    "is_demo": False,
                    "reason": const.SPIN_REASON_NOT_ELIGIBLE,
                }

            if not rewards:
                # Nothing to win: do not consume the spin
                const.LOGGER.debug("Spin skipped: reward pool is empty")
                return {
                    "reward": None,
                    "tier": None,
                    "is_demo": False,
                    "reason": const.SPIN_REASON_EMPTY_REWARD_POOL,
                }

            tier, reward = self._draw(streak, rewards, exclude_claimed=True, rng=rng)
            state = self._record_spin_locked(streak, now)

        self._emit_spin_recorded(streak, state)
        if reward is not None:
            self.emit(
                const.EVENT_REWARD_WON,
                reward_id=reward.get(const.DATA_REWARD_INTERNAL_ID),
                tier=tier,
                streak=streak,
            )
        return {
            "reward": reward,
            "tier": tier,
            "is_demo": False,
            "reason": const.SPIN_REASON_GRANTED,
        }

    def _draw(
        self,
        streak: int,
        rewards: Sequence[RewardData],
        *,
        exclude_claimed: bool,
        rng: random.Random | None,
    ) -> tuple[str | None, RewardData | None]:
        """Draw a tier and a reward from it."""
        if not rewards:
            return None, None
        probabilities = RewardEngine.get_probabilities(streak, self._milestones)
        tier = RewardEngine.draw_tier(probabilities, rng)
        reward = RewardEngine.pick_reward(tier, rewards, exclude_claimed, rng)
        return tier, reward
