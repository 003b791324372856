"""Milestone Engine - Pure lookup and interpolation over the milestone table.

This engine provides stateless, pure Python functions for:
- Defensive sorting and validation of the milestone table
- Next milestone / achieved milestones for a streak
- Percent progress toward the next milestone
- Chance-triple normalization applied when a row is written

Callers never have to pass a sorted table: every query re-sorts ascending by
`days`. Rows with a missing or non-positive `days` are dropped; a table with
no valid rows behaves exactly like an empty table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.math_utils import clamp, normalize_triple

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import MilestoneData


class MilestoneEngine:
    """Pure logic engine for milestone resolution.

    All methods are static - no instance state.
    """

    @staticmethod
    def _valid_days(row: Any) -> int | None:
        """Return the row's days as a positive int, or None if invalid."""
        if not isinstance(row, dict):
            return None
        days = row.get(const.DATA_MILESTONE_DAYS)
        if isinstance(days, bool):
            return None
        try:
            days_int = int(days)
        except (TypeError, ValueError):
            return None
        return days_int if days_int > 0 else None

    @staticmethod
    def sort_milestones(milestones: Iterable[MilestoneData] | None) -> list[MilestoneData]:
        """Return valid rows sorted ascending by days.

        The input is never mutated.
        """
        if not milestones:
            return []

        valid: list[MilestoneData] = []
        dropped = 0
        for row in milestones:
            if MilestoneEngine._valid_days(row) is None:
                dropped += 1
                continue
            valid.append(row)

        if dropped:
            const.LOGGER.warning(
                "Ignored %d malformed milestone row(s) (missing or non-positive days)",
                dropped,
            )
        return sorted(valid, key=lambda row: int(row[const.DATA_MILESTONE_DAYS]))

    @staticmethod
    def next_milestone(
        streak: int, milestones: Iterable[MilestoneData] | None
    ) -> MilestoneData | None:
        """Return the lowest row with days > streak, or None if all achieved."""
        for row in MilestoneEngine.sort_milestones(milestones):
            if int(row[const.DATA_MILESTONE_DAYS]) > streak:
                return row
        return None

    @staticmethod
    def achieved_milestones(
        streak: int, milestones: Iterable[MilestoneData] | None
    ) -> list[MilestoneData]:
        """Return all rows with days <= streak (ascending)."""
        return [
            row
            for row in MilestoneEngine.sort_milestones(milestones)
            if int(row[const.DATA_MILESTONE_DAYS]) <= streak
        ]

    @staticmethod
    def highest_achieved(
        streak: int, milestones: Iterable[MilestoneData] | None
    ) -> MilestoneData | None:
        """Return the achieved row with the highest days, or None."""
        achieved = MilestoneEngine.achieved_milestones(streak, milestones)
        return achieved[-1] if achieved else None

    @staticmethod
    def progress_to_next(
        streak: int, milestones: Iterable[MilestoneData] | None
    ) -> float:
        """Percent progress from the last achieved milestone to the next one.

        Returns:
            100.0 when there is no next milestone; otherwise a linear
            interpolation between the highest achieved days (0 if none) and
            the next milestone's days, clamped to [0, 100].

        Examples:
            milestones [7, 14], streak 10 → 42.857... (3 of 7 days)
            milestones [7], streak 3 → 42.857...
            milestones [7], streak 7 → 100.0
        """
        sorted_rows = MilestoneEngine.sort_milestones(milestones)
        upcoming = MilestoneEngine.next_milestone(streak, sorted_rows)
        if upcoming is None:
            return 100.0

        previous = MilestoneEngine.highest_achieved(streak, sorted_rows)
        start = int(previous[const.DATA_MILESTONE_DAYS]) if previous else 0
        end = int(upcoming[const.DATA_MILESTONE_DAYS])
        if end <= start:
            return 100.0

        progress = (streak - start) / (end - start) * 100
        # Unrounded so only the "no next milestone" case can reach 100
        return clamp(progress, 0.0, 100.0)

    @staticmethod
    def days_to_next(
        streak: int, milestones: Iterable[MilestoneData] | None
    ) -> int:
        """Days remaining until the next milestone (0 when all achieved)."""
        upcoming = MilestoneEngine.next_milestone(streak, milestones)
        if upcoming is None:
            return 0
        return max(int(upcoming[const.DATA_MILESTONE_DAYS]) - streak, 0)

    @staticmethod
    def normalize_chances(row: MilestoneData) -> MilestoneData:
        """Return a copy of the row whose three chances sum to exactly 100.

        Applied at write time only. Triples within 0.1 of 100 are kept as-is,
        so applying it twice is a no-op.
        """
        small, medium, large = normalize_triple(
            float(row.get(const.DATA_MILESTONE_SMALL_CHANCE, 0.0)),
            float(row.get(const.DATA_MILESTONE_MEDIUM_CHANCE, 0.0)),
            float(row.get(const.DATA_MILESTONE_LARGE_CHANCE, 0.0)),
            total=const.CHANCE_TOTAL,
            tolerance=const.CHANCE_TOLERANCE,
            precision=const.CHANCE_PRECISION,
        )
        normalized = dict(row)
        normalized[const.DATA_MILESTONE_SMALL_CHANCE] = small
        normalized[const.DATA_MILESTONE_MEDIUM_CHANCE] = medium
        normalized[const.DATA_MILESTONE_LARGE_CHANCE] = large
        return normalized  # type: ignore[return-value]
