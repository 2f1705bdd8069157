"""Tests for milestone crossing detection."""

from __future__ import annotations

from quest_notify.application.use_cases.notifications.milestones import (
    crossed_xp_milestones,
    first_goal_milestone,
    goal_percentage,
    is_first_completion,
    reached_streak_milestone,
    streak_just_broken,
)


def test_xp_milestone_fires_once_when_crossed() -> None:
    assert crossed_xp_milestones(110, 20) == [100]
    assert crossed_xp_milestones(130, 20) == []


def test_xp_gain_crossing_several_milestones_reports_each() -> None:
    assert crossed_xp_milestones(1200, 800) == [500, 1000]


def test_xp_total_landing_on_milestone_counts() -> None:
    assert crossed_xp_milestones(100, 10) == [100]


def test_streak_milestone_requires_growth() -> None:
    assert reached_streak_milestone(7, 6) == 7
    assert reached_streak_milestone(7, 7) is None
    assert reached_streak_milestone(8, 7) is None
    assert reached_streak_milestone(3, None) is None


def test_streak_broken_only_on_transition() -> None:
    assert streak_just_broken(False, True) is True
    assert streak_just_broken(None, True) is True
    assert streak_just_broken(True, True) is False
    assert streak_just_broken(False, False) is False


def test_goal_progress_reports_first_crossed_milestone_only() -> None:
    assert first_goal_milestone(20, 30) == 25
    assert first_goal_milestone(20, 80) == 25
    assert first_goal_milestone(25, 49) is None


def test_goal_percentage_is_floored() -> None:
    assert goal_percentage(1, 3) == 33
    assert goal_percentage(5, 0) == 500


def test_first_completion() -> None:
    assert is_first_completion(0) is True
    assert is_first_completion(4) is False
