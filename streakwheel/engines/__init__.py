"""Engine modules for StreakWheel.

Contains stateless computation engines:
- streak_engine: Streak calculation and reset policy
- milestone_engine: Milestone lookup, progress and chance normalization
- reward_engine: Tier probabilities and weighted wheel selection
- spin_engine: Spin eligibility rules (cooldown / once-per-milestone)
"""

from .milestone_engine import MilestoneEngine
from .reward_engine import RewardEngine
from .spin_engine import SpinEngine
from .streak_engine import StreakEngine

__all__ = [
    "MilestoneEngine",
    "RewardEngine",
    "SpinEngine",
    "StreakEngine",
]
