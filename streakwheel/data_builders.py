"""Record building and validation helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Record field defaults
- Business rule validation at write time
- Complete record structure building

### Build Functions
Each record type has a `build_<record>()` function that:
- Takes user_input with DATA_* keys (may have missing fields)
- Generates internal_id (UUID) for new records
- Applies field defaults
- Returns a complete record ready for the external store

Create vs update follows one rule: user_input > existing > default.

Milestone chance triples are normalized here (write time), never when the
table is read.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
import uuid

from . import const
from .engines.milestone_engine import MilestoneEngine
from .engines.streak_engine import StreakEngine
from .utils.dt_utils import dt_parse_date, dt_parse_datetime

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from .type_defs import (
        HabitData,
        MilestoneData,
        RewardData,
        SpinStateData,
        WheelSettingsData,
    )


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Raised when business rule validation fails while building a record.

    Attributes:
        field: The DATA_* constant identifying the field that failed
        translation_key: The ERROR_* constant describing the failure
        placeholders: Optional dict for message placeholders

    Example:
        raise EntityValidationError(
            field=const.DATA_MILESTONE_DAYS,
            translation_key=const.ERROR_INVALID_MILESTONE_DAYS,
            placeholders={"value": str(days)},
        )
    """

    def __init__(
        self,
        field: str,
        translation_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError."""
        self.field = field
        self.translation_key = translation_key
        self.placeholders = placeholders or {}
        super().__init__(translation_key)


class EntityNotFoundError(LookupError):
    """Raised by managers when a record id is unknown.

    Attributes:
        translation_key: Always const.ERROR_NOT_FOUND
        placeholders: {"entity_type": ..., "name": ...}
    """

    def __init__(self, entity_type: str, name: str) -> None:
        """Initialize EntityNotFoundError."""
        self.translation_key = const.ERROR_NOT_FOUND
        self.placeholders = {"entity_type": entity_type, "name": name}
        super().__init__(f"{entity_type} '{name}' not found")


def _get_field(
    user_input: dict[str, Any],
    existing: Any,
    data_key: str,
    default: Any,
) -> Any:
    """Get field value: user_input > existing > default."""
    if data_key in user_input:
        return user_input[data_key]
    if existing is not None:
        return existing.get(data_key, default)
    return default


# ==============================================================================
# MILESTONES
# ==============================================================================


def validate_milestone_data(
    data: dict[str, Any],
    existing_milestones: Iterable[MilestoneData] | None = None,
    *,
    current_days: int | None = None,
) -> dict[str, str]:
    """Validate milestone business rules.

    Args:
        data: Milestone data dict with DATA_* keys
        existing_milestones: Current table for duplicate checking (optional)
        current_days: days of the row being edited (excluded from duplicate check)

    Returns:
        Dict of errors: {field: error_key}. Empty dict means validation passed.

    Validation Rules:
        1. days is a positive integer
        2. days is not already used by another row
        3. chances are numbers >= 0
    """
    errors: dict[str, str] = {}

    # === 1. Days ===
    days = data.get(const.DATA_MILESTONE_DAYS)
    try:
        days_int = int(days)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        days_int = 0
    if isinstance(days, bool) or days_int <= 0:
        errors[const.DATA_MILESTONE_DAYS] = const.ERROR_INVALID_MILESTONE_DAYS
        return errors

    # === 2. Duplicate days ===
    if existing_milestones:
        for row in existing_milestones:
            row_days = row.get(const.DATA_MILESTONE_DAYS)
            if row_days == current_days:
                continue  # Skip self when updating
            if row_days == days_int:
                errors[const.DATA_MILESTONE_DAYS] = (
                    const.ERROR_DUPLICATE_MILESTONE_DAYS
                )
                return errors

    # === 3. Chances ===
    for key in const.MILESTONE_CHANCE_KEYS.values():
        if key not in data:
            continue
        try:
            if float(data[key]) < 0:
                errors[key] = const.ERROR_INVALID_MILESTONE_CHANCE
        except (TypeError, ValueError):
            errors[key] = const.ERROR_INVALID_MILESTONE_CHANCE

    return errors


def build_milestone(
    user_input: dict[str, Any],
    existing: MilestoneData | None = None,
    existing_milestones: Iterable[MilestoneData] | None = None,
) -> MilestoneData:
    """Build a milestone row for create or update, normalizing its chances.

    If small + medium + large deviates from 100 by more than 0.1, the triple
    is rescaled proportionally: small and medium are rounded to one decimal
    and large becomes 100 - small - medium.

    Raises:
        EntityValidationError: If days is invalid/duplicate or a chance is negative

    Examples:
        build_milestone({"days": 7, "small_chance": 3, "medium_chance": 1.5,
                         "large_chance": 0.5})
        → {"days": 7, "small_chance": 60.0, "medium_chance": 30.0,
           "large_chance": 10.0, "label": ""}
    """
    merged: dict[str, Any] = {
        const.DATA_MILESTONE_DAYS: _get_field(
            user_input, existing, const.DATA_MILESTONE_DAYS, 0
        ),
        const.DATA_MILESTONE_SMALL_CHANCE: _get_field(
            user_input,
            existing,
            const.DATA_MILESTONE_SMALL_CHANCE,
            const.DEFAULT_PROBABILITIES[const.TIER_SMALL],
        ),
        const.DATA_MILESTONE_MEDIUM_CHANCE: _get_field(
            user_input,
            existing,
            const.DATA_MILESTONE_MEDIUM_CHANCE,
            const.DEFAULT_PROBABILITIES[const.TIER_MEDIUM],
        ),
        const.DATA_MILESTONE_LARGE_CHANCE: _get_field(
            user_input,
            existing,
            const.DATA_MILESTONE_LARGE_CHANCE,
            const.DEFAULT_PROBABILITIES[const.TIER_LARGE],
        ),
        const.DATA_MILESTONE_LABEL: str(
            _get_field(user_input, existing, const.DATA_MILESTONE_LABEL, "") or ""
        ),
    }

    current_days = existing.get(const.DATA_MILESTONE_DAYS) if existing else None
    errors = validate_milestone_data(
        merged, existing_milestones, current_days=current_days
    )
    if errors:
        field, error_key = next(iter(errors.items()))
        raise EntityValidationError(
            field=field,
            translation_key=error_key,
            placeholders={"value": str(merged.get(field))},
        )

    milestone: MilestoneData = {
        const.DATA_MILESTONE_DAYS: int(merged[const.DATA_MILESTONE_DAYS]),
        const.DATA_MILESTONE_SMALL_CHANCE: float(
            merged[const.DATA_MILESTONE_SMALL_CHANCE]
        ),
        const.DATA_MILESTONE_MEDIUM_CHANCE: float(
            merged[const.DATA_MILESTONE_MEDIUM_CHANCE]
        ),
        const.DATA_MILESTONE_LARGE_CHANCE: float(
            merged[const.DATA_MILESTONE_LARGE_CHANCE]
        ),
        const.DATA_MILESTONE_LABEL: merged[const.DATA_MILESTONE_LABEL],
    }  # type: ignore[misc]
    return MilestoneEngine.normalize_chances(milestone)


def build_default_milestones() -> list[MilestoneData]:
    """Return a fresh copy of the default milestone table."""
    return [dict(row) for row in const.DEFAULT_MILESTONES]  # type: ignore[misc]


# ==============================================================================
# REWARDS
# ==============================================================================


def build_reward(
    user_input: dict[str, Any],
    existing: RewardData | None = None,
) -> RewardData:
    """Build reward data for create or update operations.

    Raises:
        EntityValidationError: If the name is empty or the tier is unknown
    """
    is_create = existing is None

    raw_name = _get_field(user_input, existing, const.DATA_REWARD_NAME, "")
    name = str(raw_name).strip() if raw_name else ""
    if (is_create or const.DATA_REWARD_NAME in user_input) and not name:
        raise EntityValidationError(
            field=const.DATA_REWARD_NAME,
            translation_key=const.ERROR_INVALID_REWARD_NAME,
        )

    tier = _get_field(user_input, existing, const.DATA_REWARD_TIER, const.TIER_SMALL)
    if tier not in const.TIER_ORDER:
        raise EntityValidationError(
            field=const.DATA_REWARD_TIER,
            translation_key=const.ERROR_INVALID_REWARD_TIER,
            placeholders={"value": str(tier)},
        )

    if is_create or existing is None:
        internal_id = str(uuid.uuid4())
    else:
        internal_id = existing.get(const.DATA_REWARD_INTERNAL_ID, str(uuid.uuid4()))

    return {
        const.DATA_REWARD_INTERNAL_ID: internal_id,
        const.DATA_REWARD_NAME: name,
        const.DATA_REWARD_TIER: tier,
        const.DATA_REWARD_CLAIMED: bool(
            _get_field(user_input, existing, const.DATA_REWARD_CLAIMED, False)
        ),
        const.DATA_REWARD_DESCRIPTION: str(
            _get_field(user_input, existing, const.DATA_REWARD_DESCRIPTION, "") or ""
        ),
        const.DATA_REWARD_ICON: str(
            _get_field(user_input, existing, const.DATA_REWARD_ICON, "") or ""
        ),
    }  # type: ignore[return-value]


# ==============================================================================
# HABITS
# ==============================================================================


def build_habit(
    user_input: dict[str, Any],
    existing: HabitData | None = None,
) -> HabitData:
    """Build habit data for create or update operations.

    Completion dates are deduplicated and stored sorted ascending;
    last_completed is derived from them. The cached streak is carried over
    and recomputed by HabitManager, never taken from user input.

    Raises:
        EntityValidationError: If name, frequency or target are invalid
    """
    is_create = existing is None

    raw_name = _get_field(user_input, existing, const.DATA_HABIT_NAME, "")
    name = str(raw_name).strip() if raw_name else ""
    if (is_create or const.DATA_HABIT_NAME in user_input) and not name:
        raise EntityValidationError(
            field=const.DATA_HABIT_NAME,
            translation_key=const.ERROR_INVALID_HABIT_NAME,
        )

    frequency = _get_field(
        user_input, existing, const.DATA_HABIT_FREQUENCY, const.DEFAULT_FREQUENCY
    )
    if frequency not in const.FREQUENCY_OPTIONS:
        raise EntityValidationError(
            field=const.DATA_HABIT_FREQUENCY,
            translation_key=const.ERROR_INVALID_FREQUENCY,
            placeholders={"value": str(frequency)},
        )

    raw_target = _get_field(
        user_input,
        existing,
        const.DATA_HABIT_FREQUENCY_TARGET,
        const.DEFAULT_FREQUENCY_TARGET,
    )
    try:
        target = int(raw_target)
    except (TypeError, ValueError) as err:
        raise EntityValidationError(
            field=const.DATA_HABIT_FREQUENCY_TARGET,
            translation_key=const.ERROR_INVALID_FREQUENCY_TARGET,
            placeholders={"value": str(raw_target)},
        ) from err
    target = StreakEngine.coerce_target(frequency, target)

    dates = sorted(
        StreakEngine.normalize_dates(
            _get_field(user_input, existing, const.DATA_HABIT_COMPLETED_DATES, [])
        )
    )
    values = {
        str(key): value
        for key, value in dict(
            _get_field(user_input, existing, const.DATA_HABIT_COMPLETION_VALUES, {})
            or {}
        ).items()
    }

    if is_create or existing is None:
        internal_id = str(uuid.uuid4())
    else:
        internal_id = existing.get(const.DATA_HABIT_INTERNAL_ID, str(uuid.uuid4()))

    return {
        const.DATA_HABIT_INTERNAL_ID: internal_id,
        const.DATA_HABIT_NAME: name,
        const.DATA_HABIT_FREQUENCY: frequency,
        const.DATA_HABIT_FREQUENCY_TARGET: target,
        const.DATA_HABIT_COMPLETED_DATES: [d.isoformat() for d in dates],
        const.DATA_HABIT_COMPLETION_VALUES: values,
        const.DATA_HABIT_STREAK: int(existing.get(const.DATA_HABIT_STREAK, 0))
        if existing
        else 0,
        const.DATA_HABIT_LAST_COMPLETED: dates[-1].isoformat() if dates else None,
    }  # type: ignore[return-value]


# ==============================================================================
# WHEEL SETTINGS
# ==============================================================================


def build_wheel_settings(
    user_input: dict[str, Any] | None = None,
    existing: WheelSettingsData | None = None,
) -> WheelSettingsData:
    """Build validated wheel settings, applying const.DEFAULT_* for missing keys.

    Raises:
        EntityValidationError: If a mode is unknown or a number is negative
    """
    user_input = user_input or {}

    spin_mode = _get_field(
        user_input, existing, const.DATA_SETTINGS_SPIN_MODE, const.DEFAULT_SPIN_MODE
    )
    if spin_mode not in const.SPIN_MODE_OPTIONS:
        raise EntityValidationError(
            field=const.DATA_SETTINGS_SPIN_MODE,
            translation_key=const.ERROR_INVALID_SPIN_MODE,
            placeholders={"value": str(spin_mode)},
        )

    streak_mode = _get_field(
        user_input,
        existing,
        const.DATA_SETTINGS_STREAK_CALCULATION_MODE,
        const.DEFAULT_STREAK_CALCULATION_MODE,
    )
    if streak_mode not in const.STREAK_MODE_OPTIONS:
        raise EntityValidationError(
            field=const.DATA_SETTINGS_STREAK_CALCULATION_MODE,
            translation_key=const.ERROR_INVALID_STREAK_MODE,
            placeholders={"value": str(streak_mode)},
        )

    cooldown = _get_field(
        user_input,
        existing,
        const.DATA_SETTINGS_COOLDOWN_HOURS,
        const.DEFAULT_COOLDOWN_HOURS,
    )
    try:
        cooldown_hours = float(cooldown)
    except (TypeError, ValueError):
        cooldown_hours = -1.0
    if cooldown_hours < 0:
        raise EntityValidationError(
            field=const.DATA_SETTINGS_COOLDOWN_HOURS,
            translation_key=const.ERROR_INVALID_COOLDOWN,
            placeholders={"value": str(cooldown)},
        )

    min_streak = _get_field(
        user_input,
        existing,
        const.DATA_SETTINGS_MIN_STREAK_FOR_WHEEL,
        const.DEFAULT_MIN_STREAK_FOR_WHEEL,
    )
    try:
        min_streak_int = int(min_streak)
    except (TypeError, ValueError):
        min_streak_int = -1
    if min_streak_int < 0:
        raise EntityValidationError(
            field=const.DATA_SETTINGS_MIN_STREAK_FOR_WHEEL,
            translation_key=const.ERROR_INVALID_MIN_STREAK,
            placeholders={"value": str(min_streak)},
        )

    return {
        const.DATA_SETTINGS_MIN_STREAK_FOR_WHEEL: min_streak_int,
        const.DATA_SETTINGS_ALLOW_WHEEL_ONLY_AT_MILESTONES: bool(
            _get_field(
                user_input,
                existing,
                const.DATA_SETTINGS_ALLOW_WHEEL_ONLY_AT_MILESTONES,
                const.DEFAULT_ALLOW_WHEEL_ONLY_AT_MILESTONES,
            )
        ),
        const.DATA_SETTINGS_COOLDOWN_HOURS: cooldown_hours,
        const.DATA_SETTINGS_SPIN_MODE: spin_mode,
        const.DATA_SETTINGS_SHOW_NEXT_MILESTONE_PROBABILITIES: bool(
            _get_field(
                user_input,
                existing,
                const.DATA_SETTINGS_SHOW_NEXT_MILESTONE_PROBABILITIES,
                const.DEFAULT_SHOW_NEXT_MILESTONE_PROBABILITIES,
            )
        ),
        const.DATA_SETTINGS_STREAK_CALCULATION_MODE: streak_mode,
    }  # type: ignore[return-value]


# ==============================================================================
# SPIN STATE
# ==============================================================================


def build_spin_state(
    user_input: dict[str, Any] | None = None,
    existing: SpinStateData | None = None,
) -> SpinStateData:
    """Build a spin state record (defaults on first use).

    Consumed thresholds are deduplicated and sorted; an unparseable
    last_spin is dropped.

    Raises:
        EntityValidationError: If the mode is unknown
    """
    user_input = user_input or {}

    mode = _get_field(user_input, existing, const.DATA_SPIN_MODE, const.DEFAULT_SPIN_MODE)
    if mode not in const.SPIN_MODE_OPTIONS:
        raise EntityValidationError(
            field=const.DATA_SPIN_MODE,
            translation_key=const.ERROR_INVALID_SPIN_MODE,
            placeholders={"value": str(mode)},
        )

    last_spin = dt_parse_datetime(
        _get_field(user_input, existing, const.DATA_SPIN_LAST_SPIN, None)
    )
    consumed = sorted(
        {
            int(days)
            for days in _get_field(
                user_input, existing, const.DATA_SPIN_CONSUMED_MILESTONES, []
            )
            or []
        }
    )

    return {
        const.DATA_SPIN_MODE: mode,
        const.DATA_SPIN_LAST_SPIN: last_spin.isoformat() if last_spin else None,
        const.DATA_SPIN_CONSUMED_MILESTONES: consumed,
    }  # type: ignore[return-value]


def parse_completion_date(value: Any, latest: date | None = None) -> str:
    """Normalize a completion date input to an ISO date string.

    Args:
        value: Date, datetime or date string
        latest: Latest acceptable date (completions cannot be in the future)

    Raises:
        EntityValidationError: If the value is not a recognizable date, or
            falls after `latest`
    """
    parsed = dt_parse_date(value)
    if parsed is None or (latest is not None and parsed > latest):
        raise EntityValidationError(
            field=const.DATA_HABIT_COMPLETED_DATES,
            translation_key=const.ERROR_INVALID_COMPLETION_DATE,
            placeholders={"value": str(value)},
        )
    return parsed.isoformat()
