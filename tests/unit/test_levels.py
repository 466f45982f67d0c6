"""Unit tests for the level system (gymtrainer/gamification/levels.py)"""
import pytest

from gymtrainer.gamification.levels import (
    MAX_LEVEL,
    calculate_level,
    calculate_level_info,
    points_required_for_level,
    refresh_level,
)


@pytest.mark.parametrize("total_points,expected", [
    (0, 1),
    (499, 1),
    (500, 2),
    (1499, 2),
    (1500, 3),
    (2999, 3),
    (3000, 4),
    (8000, 6),
    (29999, 9),
    (30000, 10),
    (1_000_000, 10),
])
def test_calculate_level_thresholds(total_points, expected):
    """Level is the highest level whose threshold has been reached"""
    assert calculate_level(total_points) == expected


def test_points_required_for_level():
    assert points_required_for_level(1) == 0
    assert points_required_for_level(2) == 500
    assert points_required_for_level(10) == 30000
    # Past the cap uses the cap
    assert points_required_for_level(11) == 30000


def test_refresh_level_never_demotes():
    """A debit that drops points below the threshold keeps the stored level"""
    assert refresh_level(3, 200) == 3
    assert refresh_level(1, 1600) == 3


def test_level_info_mid_level():
    info = calculate_level_info(1000)

    assert info["current_level"] == 2
    assert info["points_to_next_level"] == 500
    assert info["level_progress"] == 50.0


def test_level_info_at_max_level():
    info = calculate_level_info(45000)

    assert info["current_level"] == MAX_LEVEL
    assert info["points_to_next_level"] == 0
    assert info["level_progress"] == 100.0


def test_level_info_after_debit_clamps_progress():
    """A user kept at level 3 with fewer points shows 0% progress, not negative"""
    info = calculate_level_info(200, current_level=3)

    assert info["current_level"] == 3
    assert info["level_progress"] == 0.0
    assert info["points_to_next_level"] == 2800
