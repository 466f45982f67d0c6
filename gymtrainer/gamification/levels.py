"""
Level System

Level is derived from total points and never goes down.

Level thresholds (total points needed to reach the level):
- Level 1: 0
- Level 2: 500
- Level 3: 1,500
- Level 4: 3,000
- Level 5: 5,000
- Level 6: 8,000
- Level 7: 12,000
- Level 8: 17,000
- Level 9: 23,000
- Level 10: 30,000 (max)
"""

from typing import Dict, Any

LEVEL_THRESHOLDS: Dict[int, int] = {
    1: 0,
    2: 500,
    3: 1500,
    4: 3000,
    5: 5000,
    6: 8000,
    7: 12000,
    8: 17000,
    9: 23000,
    10: 30000,
}

MAX_LEVEL = max(LEVEL_THRESHOLDS)


def calculate_level(total_points: int) -> int:
    """Highest level whose threshold is <= total_points"""
    level = 1
    for candidate, threshold in sorted(LEVEL_THRESHOLDS.items()):
        if total_points >= threshold:
            level = candidate
    return level


def points_required_for_level(level: int) -> int:
    """Total points needed to reach `level` (levels past the cap use the cap)"""
    if level <= 1:
        return 0
    return LEVEL_THRESHOLDS.get(level, LEVEL_THRESHOLDS[MAX_LEVEL])


def refresh_level(current_level: int, total_points: int) -> int:
    """New stored level after total_points changed; debits never demote"""
    return max(current_level, calculate_level(total_points))


def calculate_level_info(total_points: int, current_level: int = 1) -> Dict[str, Any]:
    """
    Level progress for display

    Returns:
        {
            'current_level': int,
            'points_to_next_level': int (0 at max level),
            'level_progress': float (0-100)
        }
    """
    level = refresh_level(current_level, total_points)

    if level >= MAX_LEVEL:
        return {
            "current_level": level,
            "points_to_next_level": 0,
            "level_progress": 100.0,
        }

    floor_points = points_required_for_level(level)
    next_points = points_required_for_level(level + 1)
    progress = (total_points - floor_points) / (next_points - floor_points) * 100

    return {
        "current_level": level,
        "points_to_next_level": max(0, next_points - total_points),
        "level_progress": round(min(100.0, max(0.0, progress)), 2),
    }
