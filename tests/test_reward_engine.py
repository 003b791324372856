"""Unit tests for RewardEngine - probability resolution and weighted selection.

Test Categories:
- Streak → distribution mapping (achieved / next / fallback / defaults)
- Tier draw boundaries with a controlled RNG
- Reward picking within a tier (claimed exclusion, fallbacks)
- Statistical fairness over many seeded draws
- Wheel segment layout and pool statistics
"""

from __future__ import annotations

from collections import Counter
import logging
import random

import pytest

from streakwheel import const
from streakwheel.engines.reward_engine import RewardEngine
from tests.helpers import make_milestone, make_reward


class FixedRandom(random.Random):
    """Random source whose random() always returns the same value."""

    def __init__(self, value: float) -> None:
        """Initialize with the value random() should return."""
        super().__init__(0)
        self._value = value

    def random(self) -> float:
        """Return the fixed value."""
        return self._value


def probs(small: float, medium: float, large: float) -> dict[str, float]:
    """Build a probability mapping."""
    return {"small": small, "medium": medium, "large": large}


# =============================================================================
# get_probabilities
# =============================================================================


class TestGetProbabilities:
    """Tests for get_probabilities()."""

    def test_single_row_table(self) -> None:
        """One 7-day row answers for every streak and preference."""
        table = [make_milestone(7, 60, 30, 10)]
        expected = probs(60.0, 30.0, 10.0)
        assert RewardEngine.get_probabilities(10, table) == expected
        assert RewardEngine.get_probabilities(3, table, prefer_next=True) == expected
        assert RewardEngine.get_probabilities(3, table, prefer_next=False) == expected

    def test_highest_achieved_row(self, milestones: list) -> None:
        """The highest achieved row wins over lower ones."""
        assert RewardEngine.get_probabilities(45, milestones) == probs(40.0, 40.0, 20.0)

    def test_prefer_next(self, milestones: list) -> None:
        """prefer_next shows what the user is working toward."""
        result = RewardEngine.get_probabilities(45, milestones, prefer_next=True)
        assert result == probs(30.0, 45.0, 25.0)

    def test_prefer_next_when_all_achieved(self, milestones: list) -> None:
        """Without a next row, prefer_next falls back to the highest achieved."""
        result = RewardEngine.get_probabilities(500, milestones, prefer_next=True)
        assert result == probs(20.0, 50.0, 30.0)

    def test_nothing_achieved_uses_lowest_row(self, milestones: list) -> None:
        """Before the first milestone the lowest row applies."""
        assert RewardEngine.get_probabilities(2, milestones) == probs(60.0, 30.0, 10.0)

    @pytest.mark.parametrize("table", [None, [], [make_milestone(0)]])
    def test_empty_table_defaults(self, table: list | None) -> None:
        """An empty (or all-invalid) table yields the default distribution."""
        assert RewardEngine.get_probabilities(10, table) == probs(50.0, 30.0, 20.0)

    def test_no_normalization_on_read(self) -> None:
        """Stored values are returned as-is."""
        table = [make_milestone(7, 3, 2, 1)]
        assert RewardEngine.get_probabilities(7, table) == probs(3.0, 2.0, 1.0)


# =============================================================================
# draw_tier
# =============================================================================


class TestDrawTier:
    """Tests for draw_tier() with a controlled random source."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0.0, "small"),
            (0.49, "small"),
            (0.5, "medium"),  # boundary belongs to the later tier
            (0.74, "medium"),
            (0.75, "large"),
            (0.999, "large"),
        ],
    )
    def test_cumulative_thresholds(self, value: float, expected: str) -> None:
        """Cumulative thresholds in small, medium, large order."""
        assert RewardEngine.draw_tier(probs(50, 25, 25), FixedRandom(value)) == expected

    def test_weights_are_relative(self) -> None:
        """Weights need not sum to 100."""
        weights = probs(1, 1, 2)
        assert RewardEngine.draw_tier(weights, FixedRandom(0.49)) == "medium"
        assert RewardEngine.draw_tier(weights, FixedRandom(0.5)) == "large"

    def test_negative_weights_clamped(self) -> None:
        """Negative weights count as zero."""
        weights = probs(-10, 0, 10)
        for value in (0.0, 0.3, 0.99):
            assert RewardEngine.draw_tier(weights, FixedRandom(value)) == "large"

    def test_zero_weights_use_defaults(self, caplog: pytest.LogCaptureFixture) -> None:
        """An all-zero triple falls back to the default distribution."""
        with caplog.at_level(logging.WARNING):
            assert RewardEngine.draw_tier(probs(0, 0, 0), FixedRandom(0.6)) == "medium"
        assert "sum to zero" in caplog.text


# =============================================================================
# pick_reward / select_reward
# =============================================================================


class TestPickReward:
    """Tests for pick_reward() and select_reward()."""

    def test_picks_from_tier(self, rewards: list, rng: random.Random) -> None:
        """The reward comes from the drawn tier."""
        reward = RewardEngine.pick_reward("medium", rewards, rng=rng)
        assert reward[const.DATA_REWARD_TIER] == "medium"

    def test_claimed_excluded(self, rng: random.Random) -> None:
        """Claimed rewards are skipped for real spins."""
        pool = [
            make_reward("a", "small", claimed=True),
            make_reward("b", "small"),
        ]
        for _ in range(20):
            picked = RewardEngine.pick_reward("small", pool, rng=rng)
            assert picked[const.DATA_REWARD_INTERNAL_ID] == "b"

    def test_claimed_included_for_demo(self) -> None:
        """exclude_claimed=False keeps claimed rewards in the pool."""
        pool = [make_reward("a", "small", claimed=True)]
        picked = RewardEngine.pick_reward("small", pool, exclude_claimed=False)
        assert picked[const.DATA_REWARD_INTERNAL_ID] == "a"

    def test_empty_tier_falls_back_to_first(self) -> None:
        """An empty tier pool yields the first reward of the whole pool."""
        pool = [make_reward("a", "small"), make_reward("b", "medium")]
        picked = RewardEngine.pick_reward("large", pool)
        assert picked[const.DATA_REWARD_INTERNAL_ID] == "a"

    def test_all_claimed_falls_back_to_first(self) -> None:
        """A tier with only claimed rewards also falls back."""
        pool = [make_reward("a", "medium"), make_reward("b", "small", claimed=True)]
        picked = RewardEngine.pick_reward("small", pool)
        assert picked[const.DATA_REWARD_INTERNAL_ID] == "a"

    def test_empty_pool(self, milestones: list) -> None:
        """An empty pool yields None."""
        assert RewardEngine.pick_reward("small", []) is None
        assert RewardEngine.select_reward(30, milestones, []) is None

    def test_select_is_reproducible(self, milestones: list, rewards: list) -> None:
        """The same seed gives the same sequence."""

        def run(seed: int) -> list:
            rng = random.Random(seed)
            return [
                RewardEngine.select_reward(30, milestones, rewards, rng=rng)
                for _ in range(25)
            ]

        assert run(7) == run(7)


class TestWheelFairness:
    """Statistical check of the weighted draw."""

    def test_tier_frequencies_match_weights(self) -> None:
        """100,000 seeded spins land within a few percent of 70/25/5."""
        table = [make_milestone(7, 70, 25, 5)]
        pool = [
            make_reward("s", "small"),
            make_reward("m", "medium"),
            make_reward("l", "large"),
        ]
        rng = random.Random(20260114)
        spins = 100_000

        counts = Counter(
            RewardEngine.select_reward(7, table, pool, rng=rng)[
                const.DATA_REWARD_TIER
            ]
            for _ in range(spins)
        )

        assert counts["small"] / spins == pytest.approx(0.70, abs=0.02)
        assert counts["medium"] / spins == pytest.approx(0.25, abs=0.02)
        assert counts["large"] / spins == pytest.approx(0.05, abs=0.02)


# =============================================================================
# Display helpers
# =============================================================================


class TestWheelSegments:
    """Tests for build_wheel_segments()."""

    def test_layout(self, rewards: list) -> None:
        """Shown rewards per tier follow ceil(len * p / 100)."""
        segments = RewardEngine.build_wheel_segments(probs(60, 30, 10), rewards)

        assert [segment["id"] for segment in segments] == [
            "small-0",
            "small-1",
            "medium-0",
            "large-0",
        ]
        assert [segment["angle"] for segment in segments] == pytest.approx(
            [108.0, 108.0, 108.0, 36.0]
        )
        assert sum(segment["angle"] for segment in segments) == pytest.approx(360.0)
        assert segments[0]["color"] == const.TIER_COLORS["small"]
        assert segments[0]["probability"] == pytest.approx(30.0)

    def test_tier_without_rewards_skipped(self) -> None:
        """Tiers with no rewards have no segments."""
        pool = [make_reward("s", "small")]
        segments = RewardEngine.build_wheel_segments(probs(60, 30, 10), pool)
        assert [segment["id"] for segment in segments] == ["small-0"]

    def test_zero_weights(self, rewards: list) -> None:
        """A zero-weight distribution renders nothing."""
        assert RewardEngine.build_wheel_segments(probs(0, 0, 0), rewards) == []


class TestRewardStats:
    """Tests for get_reward_stats()."""

    def test_stats(self) -> None:
        """Totals, claimed share and tier breakdown."""
        pool = [
            make_reward("a", "small", claimed=True),
            make_reward("b", "small"),
            make_reward("c", "medium"),
            make_reward("d", "large"),
        ]
        stats = RewardEngine.get_reward_stats(pool)

        assert stats["total_rewards"] == 4
        assert stats["claimed_count"] == 1
        assert stats["unclaimed_count"] == 3
        assert stats["claimed_percentage"] == 25.0
        assert stats["tier_breakdown"]["small"] == {"total": 2, "claimed": 1}
        assert stats["tier_breakdown"]["large"] == {"total": 1, "claimed": 0}

    def test_empty_pool(self) -> None:
        """An empty pool has zero everything."""
        stats = RewardEngine.get_reward_stats([])
        assert stats["total_rewards"] == 0
        assert stats["claimed_percentage"] == 0.0
