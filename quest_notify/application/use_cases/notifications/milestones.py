"""Threshold-crossing detection for cumulative activity metrics."""

from __future__ import annotations

import math
from collections.abc import Sequence

XP_MILESTONES: tuple[int, ...] = (100, 500, 1000, 2500, 5000, 10000)
STREAK_MILESTONES: tuple[int, ...] = (3, 7, 14, 30)
GOAL_MILESTONES: tuple[int, ...] = (25, 50, 75)


def crossed_xp_milestones(
    new_total: int, delta: int, milestones: Sequence[int] = XP_MILESTONES
) -> list[int]:
    """Return the XP milestones crossed by gaining ``delta`` to reach ``new_total``.

    A milestone is crossed when the total before the gain was below it and the new
    total reaches it, so a later update never fires it again.
    """

    previous_total = new_total - delta
    return [m for m in milestones if new_total >= m and previous_total < m]


def reached_streak_milestone(
    new_length: int,
    previous_length: int | None,
    milestones: Sequence[int] = STREAK_MILESTONES,
) -> int | None:
    """Return the milestone the streak has just reached exactly, if any.

    Only a growing streak qualifies; an unchanged or reset length never fires.
    """

    if previous_length is None or new_length <= previous_length:
        return None
    return new_length if new_length in milestones else None


def streak_just_broken(was_broken: bool | None, is_broken: bool) -> bool:
    """Return ``True`` on the transition from an active streak to a broken one."""

    return bool(is_broken) and not was_broken


def goal_percentage(progress: float, target: float) -> int:
    """Return the completed share of a goal as a floored percentage."""

    target = target or 1
    return math.floor((progress / target) * 100)


def first_goal_milestone(
    old_percentage: int,
    new_percentage: int,
    milestones: Sequence[int] = GOAL_MILESTONES,
) -> int | None:
    """Return the lowest milestone crossed by the progress update.

    Only one milestone is reported per update even when a single jump crosses
    several of them.
    """

    for milestone in sorted(milestones):
        if old_percentage < milestone <= new_percentage:
            return milestone
    return None


def is_first_completion(prior_completions: int) -> bool:
    """Return ``True`` when the owner had no completion before the current one."""

    return prior_completions == 0


__all__ = [
    "XP_MILESTONES",
    "STREAK_MILESTONES",
    "GOAL_MILESTONES",
    "crossed_xp_milestones",
    "reached_streak_milestone",
    "streak_just_broken",
    "goal_percentage",
    "first_goal_milestone",
    "is_first_completion",
]
