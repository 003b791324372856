"""Reward Engine - Pure logic for tier probabilities and wheel selection.

This engine provides stateless, pure Python functions for:
- Resolving the {small, medium, large} distribution for a streak
- Weighted tier draws with an injectable random source
- Uniform reward picks from a tier pool
- Wheel segment layout and reward pool statistics

Probabilities are returned exactly as stored on the milestone row. A draw
treats them as relative weights and normalizes by their sum, so a triple
that does not add up to 100 still produces a valid draw.
"""

from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING

from .. import const
from ..utils.math_utils import calculate_percentage
from .milestone_engine import MilestoneEngine

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..type_defs import (
        MilestoneData,
        RewardData,
        RewardProbabilities,
        RewardStats,
        RewardTier,
        WheelSegment,
    )


def _default_rng() -> random.Random:
    """Return a fresh, OS-seeded random source (engine-internal helper)."""
    return random.Random()


class RewardEngine:
    """Pure logic engine for reward probabilities and selection.

    All methods are static - no instance state. Randomness always comes
    from the `rng` argument; pass a seeded `random.Random` for
    reproducible draws.
    """

    # ────────────────────────────────────────────────────────────────
    # Probability Resolution
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def _chances_of(row: MilestoneData) -> RewardProbabilities:
        """Extract the three chance fields of a milestone row verbatim."""
        return {
            const.TIER_SMALL: float(row.get(const.DATA_MILESTONE_SMALL_CHANCE, 0.0)),
            const.TIER_MEDIUM: float(row.get(const.DATA_MILESTONE_MEDIUM_CHANCE, 0.0)),
            const.TIER_LARGE: float(row.get(const.DATA_MILESTONE_LARGE_CHANCE, 0.0)),
        }  # type: ignore[return-value]

    @staticmethod
    def get_probabilities(
        streak: int,
        milestones: Sequence[MilestoneData] | None,
        prefer_next: bool = False,
    ) -> RewardProbabilities:
        """Map a streak to a {small, medium, large} percentage distribution.

        Resolution order:
            1. prefer_next and a next milestone exists → that row's chances
               ("what you're working toward")
            2. highest achieved row (days <= streak)
            3. lowest row, when nothing is achieved yet
            4. const.DEFAULT_PROBABILITIES, when the table is empty

        No normalization is applied here.
        """
        sorted_rows = MilestoneEngine.sort_milestones(milestones)
        if not sorted_rows:
            return dict(const.DEFAULT_PROBABILITIES)  # type: ignore[return-value]

        if prefer_next:
            upcoming = MilestoneEngine.next_milestone(streak, sorted_rows)
            if upcoming is not None:
                return RewardEngine._chances_of(upcoming)

        current = MilestoneEngine.highest_achieved(streak, sorted_rows)
        if current is not None:
            return RewardEngine._chances_of(current)

        return RewardEngine._chances_of(sorted_rows[0])

    # ────────────────────────────────────────────────────────────────
    # Selection
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def draw_tier(
        probabilities: RewardProbabilities,
        rng: random.Random | None = None,
    ) -> RewardTier:
        """Draw a tier using the probabilities as relative weights.

        One uniform value in [0, weight_sum) is mapped through cumulative
        thresholds in the order small, medium, large. A value exactly on a
        boundary belongs to the later tier. Negative weights count as 0; an
        all-zero triple falls back to const.DEFAULT_PROBABILITIES.
        """
        rng = rng or _default_rng()
        weights = [
            max(float(probabilities.get(tier, 0.0)), 0.0) for tier in const.TIER_ORDER
        ]
        total = sum(weights)
        if total <= 0:
            const.LOGGER.warning(
                "Reward weights %s sum to zero, using default distribution",
                probabilities,
            )
            weights = [const.DEFAULT_PROBABILITIES[tier] for tier in const.TIER_ORDER]
            total = sum(weights)

        value = rng.random() * total
        cumulative = 0.0
        for tier, weight in zip(const.TIER_ORDER[:-1], weights[:-1], strict=True):
            cumulative += weight
            if value < cumulative:
                return tier  # type: ignore[return-value]
        return const.TIER_LARGE

    @staticmethod
    def pick_reward(
        tier: str,
        rewards: Sequence[RewardData],
        exclude_claimed: bool = True,
        rng: random.Random | None = None,
    ) -> RewardData | None:
        """Pick a reward uniformly from the tier pool.

        Falls back to the first reward of the whole pool when the tier pool is
        empty, so a non-empty pool always yields a reward.

        Returns:
            The chosen reward, or None only when `rewards` is empty.
        """
        if not rewards:
            const.LOGGER.debug("Reward pool is empty, nothing to select")
            return None

        rng = rng or _default_rng()
        candidates = [
            reward
            for reward in rewards
            if reward.get(const.DATA_REWARD_TIER) == tier
            and not (exclude_claimed and reward.get(const.DATA_REWARD_CLAIMED, False))
        ]
        if not candidates:
            const.LOGGER.debug(
                "No eligible '%s' rewards, falling back to first reward in pool",
                tier,
            )
            return rewards[0]
        return rng.choice(candidates)

    @staticmethod
    def select_reward(
        streak: int,
        milestones: Sequence[MilestoneData] | None,
        rewards: Sequence[RewardData],
        prefer_next: bool = False,
        exclude_claimed: bool = True,
        rng: random.Random | None = None,
    ) -> RewardData | None:
        """Spin the wheel: draw a tier, then a reward from that tier.

        Args:
            streak: Streak used to resolve the distribution
            milestones: Milestone table (any order)
            rewards: Entire reward pool across tiers
            prefer_next: Use the next milestone's distribution when available
            exclude_claimed: Skip claimed rewards (False for demo spins)
            rng: Random source; pass a seeded instance for reproducible draws

        Returns:
            Selected reward, or None when the whole pool is empty.
        """
        if not rewards:
            const.LOGGER.debug("Reward pool is empty, nothing to select")
            return None

        rng = rng or _default_rng()
        probabilities = RewardEngine.get_probabilities(streak, milestones, prefer_next)
        tier = RewardEngine.draw_tier(probabilities, rng)
        reward = RewardEngine.pick_reward(tier, rewards, exclude_claimed, rng)
        const.LOGGER.debug(
            "Wheel drew tier '%s' for streak %d with %s",
            tier,
            streak,
            probabilities,
        )
        return reward

    # ────────────────────────────────────────────────────────────────
    # Display Helpers
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def rewards_by_tier(rewards: Sequence[RewardData], tier: str) -> list[RewardData]:
        """Return the rewards of one tier, preserving pool order."""
        return [reward for reward in rewards if reward.get(const.DATA_REWARD_TIER) == tier]

    @staticmethod
    def build_wheel_segments(
        probabilities: RewardProbabilities,
        rewards: Sequence[RewardData],
    ) -> list[WheelSegment]:
        """Lay out wheel slices for display.

        Each tier receives an arc proportional to its weight. Within a tier,
        `max(1, ceil(len(pool) * p / 100))` rewards are shown and share the
        arc evenly. Tiers without rewards produce no segments.
        """
        total = sum(
            max(float(probabilities.get(tier, 0.0)), 0.0) for tier in const.TIER_ORDER
        )
        if total <= 0:
            return []

        segments: list[WheelSegment] = []
        for tier in const.TIER_ORDER:
            pool = RewardEngine.rewards_by_tier(rewards, tier)
            probability = max(float(probabilities.get(tier, 0.0)), 0.0)
            if not pool:
                continue

            shown = max(1, math.ceil(len(pool) * probability / 100))
            tier_angle = probability / total * 360
            for index, reward in enumerate(pool[:shown]):
                segments.append(
                    {
                        "id": f"{tier}-{index}",
                        "reward": reward,
                        "angle": tier_angle / shown,
                        "color": const.TIER_COLORS[tier],
                        "probability": probability / shown,
                    }
                )
        return segments

    @staticmethod
    def get_reward_stats(rewards: Sequence[RewardData]) -> RewardStats:
        """Summarize the pool: totals, claimed counts and per-tier breakdown."""
        total = len(rewards)
        claimed = sum(1 for reward in rewards if reward.get(const.DATA_REWARD_CLAIMED))
        breakdown = {}
        for tier in const.TIER_ORDER:
            pool = RewardEngine.rewards_by_tier(rewards, tier)
            breakdown[tier] = {
                "total": len(pool),
                "claimed": sum(
                    1 for reward in pool if reward.get(const.DATA_REWARD_CLAIMED)
                ),
            }

        return {
            "total_rewards": total,
            "claimed_count": claimed,
            "unclaimed_count": total - claimed,
            "claimed_percentage": calculate_percentage(claimed, total),
            "tier_breakdown": breakdown,
        }
