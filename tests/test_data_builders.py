"""Unit tests for data_builders - record building and write-time validation."""

from __future__ import annotations

from datetime import date

import pytest

from streakwheel import const, data_builders as db
from streakwheel.data_builders import EntityNotFoundError, EntityValidationError
from tests.helpers import make_milestone

# =============================================================================
# Milestones
# =============================================================================


class TestBuildMilestone:
    """Tests for build_milestone() and validate_milestone_data()."""

    def test_normalizes_on_write(self) -> None:
        """Off-total chances are rescaled when the row is built."""
        row = db.build_milestone(
            {
                const.DATA_MILESTONE_DAYS: 7,
                const.DATA_MILESTONE_SMALL_CHANCE: 3,
                const.DATA_MILESTONE_MEDIUM_CHANCE: 1.5,
                const.DATA_MILESTONE_LARGE_CHANCE: 0.5,
            }
        )
        assert row == {
            const.DATA_MILESTONE_DAYS: 7,
            const.DATA_MILESTONE_SMALL_CHANCE: 60.0,
            const.DATA_MILESTONE_MEDIUM_CHANCE: 30.0,
            const.DATA_MILESTONE_LARGE_CHANCE: 10.0,
            const.DATA_MILESTONE_LABEL: "",
        }

    def test_missing_chances_use_defaults(self) -> None:
        """Unspecified chances fall back to the default distribution."""
        row = db.build_milestone({const.DATA_MILESTONE_DAYS: 21, "label": "3 Weeks"})
        assert row[const.DATA_MILESTONE_SMALL_CHANCE] == 50.0
        assert row[const.DATA_MILESTONE_MEDIUM_CHANCE] == 30.0
        assert row[const.DATA_MILESTONE_LARGE_CHANCE] == 20.0
        assert row[const.DATA_MILESTONE_LABEL] == "3 Weeks"

    def test_update_merges_existing(self) -> None:
        """Updates keep fields that are not provided."""
        existing = make_milestone(14, 50, 35, 15, label="2 Weeks")
        row = db.build_milestone(
            {const.DATA_MILESTONE_LARGE_CHANCE: 15.0}, existing=existing
        )
        assert row[const.DATA_MILESTONE_DAYS] == 14
        assert row[const.DATA_MILESTONE_LABEL] == "2 Weeks"

    @pytest.mark.parametrize("days", [0, -5, "x", None, True])
    def test_invalid_days(self, days: object) -> None:
        """days must be a positive integer."""
        with pytest.raises(EntityValidationError) as exc_info:
            db.build_milestone({const.DATA_MILESTONE_DAYS: days})
        assert exc_info.value.field == const.DATA_MILESTONE_DAYS
        assert exc_info.value.translation_key == const.ERROR_INVALID_MILESTONE_DAYS

    def test_duplicate_days(self) -> None:
        """Two rows cannot share the same days."""
        table = [make_milestone(7), make_milestone(14)]
        with pytest.raises(EntityValidationError) as exc_info:
            db.build_milestone({const.DATA_MILESTONE_DAYS: 14}, existing_milestones=table)
        assert exc_info.value.translation_key == const.ERROR_DUPLICATE_MILESTONE_DAYS

    def test_editing_self_is_not_duplicate(self) -> None:
        """Updating a row in place does not collide with itself."""
        table = [make_milestone(7), make_milestone(14)]
        row = db.build_milestone(
            {const.DATA_MILESTONE_SMALL_CHANCE: 60.0},
            existing=table[1],
            existing_milestones=table,
        )
        assert row[const.DATA_MILESTONE_DAYS] == 14

    def test_negative_chance(self) -> None:
        """Chances must be non-negative."""
        with pytest.raises(EntityValidationError) as exc_info:
            db.build_milestone(
                {const.DATA_MILESTONE_DAYS: 7, const.DATA_MILESTONE_SMALL_CHANCE: -1}
            )
        assert exc_info.value.field == const.DATA_MILESTONE_SMALL_CHANCE

    def test_validate_returns_error_dict(self) -> None:
        """validate_milestone_data reports instead of raising."""
        assert db.validate_milestone_data({const.DATA_MILESTONE_DAYS: 7}) == {}
        assert db.validate_milestone_data({const.DATA_MILESTONE_DAYS: 0}) == {
            const.DATA_MILESTONE_DAYS: const.ERROR_INVALID_MILESTONE_DAYS
        }

    def test_default_table_is_fresh_copy(self) -> None:
        """Mutating the returned table never touches the constants."""
        table = db.build_default_milestones()
        table[0][const.DATA_MILESTONE_DAYS] = 999
        assert const.DEFAULT_MILESTONES[0][const.DATA_MILESTONE_DAYS] == 7
        assert [row["days"] for row in db.build_default_milestones()] == [
            7,
            14,
            30,
            60,
            100,
        ]


# =============================================================================
# Rewards / Habits
# =============================================================================


class TestBuildReward:
    """Tests for build_reward()."""

    def test_create(self) -> None:
        """A new reward gets an id and defaults."""
        reward = db.build_reward({const.DATA_REWARD_NAME: " Ice cream ", "tier": "large"})
        assert reward[const.DATA_REWARD_NAME] == "Ice cream"
        assert reward[const.DATA_REWARD_TIER] == "large"
        assert reward[const.DATA_REWARD_CLAIMED] is False
        assert reward[const.DATA_REWARD_INTERNAL_ID]

    def test_update_keeps_id(self) -> None:
        """Updates preserve the internal id."""
        reward = db.build_reward({const.DATA_REWARD_NAME: "Movie"})
        updated = db.build_reward({const.DATA_REWARD_CLAIMED: True}, existing=reward)
        assert updated[const.DATA_REWARD_INTERNAL_ID] == reward[const.DATA_REWARD_INTERNAL_ID]
        assert updated[const.DATA_REWARD_CLAIMED] is True
        assert updated[const.DATA_REWARD_NAME] == "Movie"

    def test_invalid_tier(self) -> None:
        """Tiers are limited to small/medium/large."""
        with pytest.raises(EntityValidationError) as exc_info:
            db.build_reward({const.DATA_REWARD_NAME: "Car", "tier": "huge"})
        assert exc_info.value.translation_key == const.ERROR_INVALID_REWARD_TIER

    def test_empty_name(self) -> None:
        """A name is required on create."""
        with pytest.raises(EntityValidationError):
            db.build_reward({const.DATA_REWARD_NAME: "   "})


class TestBuildHabit:
    """Tests for build_habit()."""

    def test_create_defaults(self) -> None:
        """A new habit is daily with target 1 and no history."""
        habit = db.build_habit({const.DATA_HABIT_NAME: "Stretch"})
        assert habit[const.DATA_HABIT_FREQUENCY] == const.FREQUENCY_DAILY
        assert habit[const.DATA_HABIT_FREQUENCY_TARGET] == 1
        assert habit[const.DATA_HABIT_COMPLETED_DATES] == []
        assert habit[const.DATA_HABIT_STREAK] == 0
        assert habit[const.DATA_HABIT_LAST_COMPLETED] is None

    def test_dates_deduplicated_and_sorted(self) -> None:
        """Dates are stored unique, ascending and as ISO strings."""
        habit = db.build_habit(
            {
                const.DATA_HABIT_NAME: "Run",
                const.DATA_HABIT_COMPLETED_DATES: [
                    "2026-01-10",
                    date(2026, 1, 8),
                    "2026-01-10",
                    "garbage",
                ],
            }
        )
        assert habit[const.DATA_HABIT_COMPLETED_DATES] == ["2026-01-08", "2026-01-10"]
        assert habit[const.DATA_HABIT_LAST_COMPLETED] == "2026-01-10"

    def test_target_coerced(self) -> None:
        """Daily forces 1; periodic non-positive targets become 1."""
        daily = db.build_habit({const.DATA_HABIT_NAME: "A", "frequency_target": 4})
        weekly = db.build_habit(
            {const.DATA_HABIT_NAME: "B", "frequency": "weekly", "frequency_target": 0}
        )
        monthly = db.build_habit(
            {const.DATA_HABIT_NAME: "C", "frequency": "monthly", "frequency_target": 3}
        )
        assert daily[const.DATA_HABIT_FREQUENCY_TARGET] == 1
        assert weekly[const.DATA_HABIT_FREQUENCY_TARGET] == 1
        assert monthly[const.DATA_HABIT_FREQUENCY_TARGET] == 3

    def test_invalid_frequency(self) -> None:
        """Unknown frequencies are rejected at write time."""
        with pytest.raises(EntityValidationError) as exc_info:
            db.build_habit({const.DATA_HABIT_NAME: "A", "frequency": "hourly"})
        assert exc_info.value.translation_key == const.ERROR_INVALID_FREQUENCY

    def test_invalid_target(self) -> None:
        """Non-numeric targets are rejected."""
        with pytest.raises(EntityValidationError) as exc_info:
            db.build_habit({const.DATA_HABIT_NAME: "A", "frequency_target": "many"})
        assert exc_info.value.field == const.DATA_HABIT_FREQUENCY_TARGET


# =============================================================================
# Settings / Spin State / Misc
# =============================================================================


class TestBuildSettings:
    """Tests for build_wheel_settings() and build_spin_state()."""

    def test_defaults(self) -> None:
        """Missing keys take const.DEFAULT_* values."""
        settings = db.build_wheel_settings()
        assert settings == {
            const.DATA_SETTINGS_MIN_STREAK_FOR_WHEEL: 7,
            const.DATA_SETTINGS_ALLOW_WHEEL_ONLY_AT_MILESTONES: True,
            const.DATA_SETTINGS_COOLDOWN_HOURS: 24.0,
            const.DATA_SETTINGS_SPIN_MODE: const.SPIN_MODE_COOLDOWN,
            const.DATA_SETTINGS_SHOW_NEXT_MILESTONE_PROBABILITIES: False,
            const.DATA_SETTINGS_STREAK_CALCULATION_MODE: const.STREAK_MODE_HIGHEST,
        }

    def test_update_keeps_existing(self) -> None:
        """Partial updates merge over existing settings."""
        existing = db.build_wheel_settings({const.DATA_SETTINGS_COOLDOWN_HOURS: 12})
        updated = db.build_wheel_settings(
            {const.DATA_SETTINGS_SPIN_MODE: const.SPIN_MODE_ONCE_PER_MILESTONE},
            existing=existing,
        )
        assert updated[const.DATA_SETTINGS_COOLDOWN_HOURS] == 12.0
        assert updated[const.DATA_SETTINGS_SPIN_MODE] == const.SPIN_MODE_ONCE_PER_MILESTONE

    @pytest.mark.parametrize(
        ("user_input", "error_key"),
        [
            ({const.DATA_SETTINGS_SPIN_MODE: "weekly"}, const.ERROR_INVALID_SPIN_MODE),
            (
                {const.DATA_SETTINGS_STREAK_CALCULATION_MODE: "any"},
                const.ERROR_INVALID_STREAK_MODE,
            ),
            ({const.DATA_SETTINGS_COOLDOWN_HOURS: -1}, const.ERROR_INVALID_COOLDOWN),
            ({const.DATA_SETTINGS_MIN_STREAK_FOR_WHEEL: -2}, const.ERROR_INVALID_MIN_STREAK),
        ],
    )
    def test_invalid_settings(self, user_input: dict, error_key: str) -> None:
        """Invalid settings raise with the matching error key."""
        with pytest.raises(EntityValidationError) as exc_info:
            db.build_wheel_settings(user_input)
        assert exc_info.value.translation_key == error_key

    def test_spin_state_normalized(self) -> None:
        """Consumed thresholds are unique and sorted; bad last_spin is dropped."""
        state = db.build_spin_state(
            {
                const.DATA_SPIN_LAST_SPIN: "not-a-time",
                const.DATA_SPIN_CONSUMED_MILESTONES: [30, 7, 30],
            }
        )
        assert state == {
            const.DATA_SPIN_MODE: const.SPIN_MODE_COOLDOWN,
            const.DATA_SPIN_LAST_SPIN: None,
            const.DATA_SPIN_CONSUMED_MILESTONES: [7, 30],
        }

    def test_spin_state_last_spin_utc(self) -> None:
        """last_spin is stored as a UTC ISO string."""
        state = db.build_spin_state(
            {const.DATA_SPIN_LAST_SPIN: "2026-01-14T12:00:00+02:00"}
        )
        assert state[const.DATA_SPIN_LAST_SPIN] == "2026-01-14T10:00:00+00:00"

    def test_parse_completion_date(self) -> None:
        """Completion dates normalize to ISO or raise."""
        assert db.parse_completion_date("01/14/2026") == "2026-01-14"
        with pytest.raises(EntityValidationError) as exc_info:
            db.parse_completion_date("someday")
        assert exc_info.value.translation_key == const.ERROR_INVALID_COMPLETION_DATE

    def test_parse_completion_date_latest(self) -> None:
        """Dates after `latest` are rejected; `latest` itself is accepted."""
        latest = date(2026, 1, 14)
        assert db.parse_completion_date("2026-01-14", latest=latest) == "2026-01-14"
        with pytest.raises(EntityValidationError) as exc_info:
            db.parse_completion_date("2026-01-15", latest=latest)
        assert exc_info.value.translation_key == const.ERROR_INVALID_COMPLETION_DATE

    def test_not_found_error(self) -> None:
        """EntityNotFoundError carries the entity type and id."""
        error = EntityNotFoundError(const.LABEL_HABIT, "abc")
        assert isinstance(error, LookupError)
        assert error.translation_key == const.ERROR_NOT_FOUND
        assert error.placeholders == {"entity_type": "habit", "name": "abc"}
        assert "abc" in str(error)
