"""Pure Python utilities for StreakWheel.

Submodules:
    - dt_utils: Date parsing, period windows, duration formatting
    - math_utils: Rounding, percentages, chance-triple normalization

Usage:
    from . import dt_utils
    from .math_utils import round_value
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
