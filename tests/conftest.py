"""Shared fixtures for StreakWheel tests."""

from __future__ import annotations

from collections.abc import Iterator
import random

import pytest

from streakwheel.type_defs import MilestoneData, RewardData
from streakwheel.utils import dt_utils
from tests.helpers import default_milestones, make_reward


@pytest.fixture
def milestones() -> list[MilestoneData]:
    """Default milestone table (7/14/30/60/100 days)."""
    return default_milestones()


@pytest.fixture
def rewards() -> list[RewardData]:
    """Two rewards per tier, none claimed."""
    return [
        make_reward("small-1", "small"),
        make_reward("small-2", "small"),
        make_reward("medium-1", "medium"),
        make_reward("medium-2", "medium"),
        make_reward("large-1", "large"),
        make_reward("large-2", "large"),
    ]


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible draws."""
    return random.Random(1234)


@pytest.fixture(autouse=True)
def restore_default_timezone() -> Iterator[None]:
    """Undo set_default_timezone() calls made by a test."""
    original = dt_utils.get_default_timezone()
    yield
    dt_utils.set_default_timezone(original)
