"""Manager modules for StreakWheel.

Managers hold state and coordinate between engines.
They are stateful, event-aware, and handle cross-cutting concerns.
"""

from .base_manager import BaseManager
from .habit_manager import HabitManager
from .spin_manager import SpinManager

__all__ = [
    "BaseManager",
    "HabitManager",
    "SpinManager",
]
