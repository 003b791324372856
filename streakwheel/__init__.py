"""StreakWheel: habit streaks, milestones and a gated reward wheel.

Engines (pure, no clock reads) live in `engines/`; the stateful pieces
(habit collection and spin gate) live in `managers/`. Records are plain
dicts shaped as the TypedDicts in `type_defs`, built through
`data_builders`.
"""

from .data_builders import EntityNotFoundError, EntityValidationError
from .engines import MilestoneEngine, RewardEngine, SpinEngine, StreakEngine
from .managers import HabitManager, SpinManager
from .utils.dt_utils import InvalidFrequencyError

__version__ = "0.1.0"

__all__ = [
    "EntityNotFoundError",
    "EntityValidationError",
    "HabitManager",
    "InvalidFrequencyError",
    "MilestoneEngine",
    "RewardEngine",
    "SpinEngine",
    "SpinManager",
    "StreakEngine",
]
