"""
Achievement System

Compares a user's aggregate against the achievement catalog and unlocks
every newly satisfied definition, crediting its bonus points.

Achievement types:
- points: total_points >= requirement
- streak: <category>_streak >= requirement (workout, diet, mental_health)
- level: level >= requirement

The catalog is walked in its pinned order (sort_order, then id). Bonuses
are applied to the running aggregate as they are earned, so a later
points or level definition in the same pass sees earlier bonuses.
"""

from typing import Any, Dict, List, Optional
from datetime import date
import logging

from gymtrainer.db.repository import CatalogRepository, GamificationRepository, UnitOfWork
from gymtrainer.gamification.points_system import ACHIEVEMENT_ACTIVITY, apply_credit
from gymtrainer.models import (
    AchievementDefinition,
    AchievementType,
    ActivityCategory,
    PointsHistoryEntry,
    UserAchievementUnlock,
    UserPointsAggregate,
)
from gymtrainer.monitoring import track_achievement_unlocked, track_points_awarded
from gymtrainer.utils.datetime_helpers import now_utc, today_utc

logger = logging.getLogger(__name__)

_STREAK_CATEGORIES = {c.value for c in ActivityCategory}


def current_value(aggregate: UserPointsAggregate, achievement: AchievementDefinition) -> Optional[int]:
    """The aggregate figure an achievement is measured against (None if unmeasurable)"""
    if achievement.type == AchievementType.POINTS:
        return aggregate.total_points
    if achievement.type == AchievementType.STREAK:
        if achievement.category not in _STREAK_CATEGORIES:
            return None
        return aggregate.get_streak(ActivityCategory(achievement.category))
    if achievement.type == AchievementType.LEVEL:
        return aggregate.level
    return None


def should_unlock(aggregate: UserPointsAggregate, achievement: AchievementDefinition) -> bool:
    value = current_value(aggregate, achievement)
    return value is not None and value >= achievement.requirement


async def evaluate_and_unlock(
    uow: UnitOfWork,
    catalog: CatalogRepository,
    user_id: str,
    today: Optional[date] = None
) -> List[Dict[str, Any]]:
    """
    Unlock every achievement the user now satisfies

    Args:
        uow: Open unit of work for `user_id`
        catalog: Achievement catalog
        user_id: User to evaluate
        today: Unlock date (defaults to the current UTC date)

    Returns:
        Newly unlocked achievements, in evaluation order:
        [
            {
                'achievement_id': str,
                'name': str,
                'icon': str,
                'bonus_points': int,
                'unlocked_date': date
            }
        ]
        Empty when nothing new is satisfied or the user has no aggregate.
    """
    aggregate = await uow.get_aggregate()
    if aggregate is None:
        return []

    if today is None:
        today = today_utc()

    unlocked_ids = await uow.get_unlocked_achievement_ids()
    newly_unlocked = []

    for achievement in await catalog.list_achievements():
        if achievement.id in unlocked_ids:
            continue
        if not should_unlock(aggregate, achievement):
            continue

        inserted = await uow.add_unlock(UserAchievementUnlock(
            user_id=user_id,
            achievement_id=achievement.id,
            unlocked_date=today,
        ))
        if not inserted:
            continue
        unlocked_ids.add(achievement.id)

        if achievement.bonus_points > 0:
            await uow.append_history(PointsHistoryEntry(
                user_id=user_id,
                points=achievement.bonus_points,
                activity=ACHIEVEMENT_ACTIVITY,
                description=f"Achievement unlocked: {achievement.name}",
                timestamp=now_utc(),
            ))
            apply_credit(aggregate, achievement.bonus_points)
            track_points_awarded(ACHIEVEMENT_ACTIVITY, achievement.bonus_points)

        track_achievement_unlocked(achievement.id)
        logger.info(
            f"User {user_id} unlocked achievement {achievement.id} "
            f"(+{achievement.bonus_points} points)"
        )

        newly_unlocked.append({
            "achievement_id": achievement.id,
            "name": achievement.name,
            "icon": achievement.icon,
            "bonus_points": achievement.bonus_points,
            "unlocked_date": today,
        })

    if newly_unlocked:
        await uow.save_aggregate(aggregate)

    return newly_unlocked


def calculate_progress(
    aggregate: Optional[UserPointsAggregate],
    achievement: AchievementDefinition
) -> Dict[str, Any]:
    """
    Progress toward an achievement

    Returns:
        {'current': int, 'required': int, 'percentage': float (0-100)}
    """
    value = current_value(aggregate, achievement) if aggregate else None
    current = value or 0
    required = achievement.requirement

    if required <= 0:
        percentage = 100.0
    else:
        percentage = round(min(100.0, current / required * 100), 1)

    return {
        "current": current,
        "required": required,
        "percentage": percentage,
    }


async def get_user_achievements(
    repository: GamificationRepository,
    catalog: CatalogRepository,
    user_id: str
) -> Dict[str, Any]:
    """
    Full catalog with the user's unlock status and progress

    Returns:
        {
            'achievements': [catalog entries with is_unlocked, unlocked_date, progress],
            'total_unlocked': int,
            'total_achievements': int,
            'total_bonus_points': int
        }
    """
    aggregate = await repository.get_aggregate(user_id)
    unlocks = {u.achievement_id: u for u in await repository.get_user_unlocks(user_id)}
    definitions = await catalog.list_achievements()

    achievements = []
    total_bonus = 0

    for achievement in definitions:
        unlock = unlocks.get(achievement.id)
        if unlock:
            total_bonus += achievement.bonus_points

        achievements.append({
            **achievement.model_dump(mode="json"),
            "is_unlocked": unlock is not None,
            "unlocked_date": unlock.unlocked_date if unlock else None,
            "progress": calculate_progress(aggregate, achievement),
        })

    return {
        "achievements": achievements,
        "total_unlocked": sum(1 for a in achievements if a["is_unlocked"]),
        "total_achievements": len(definitions),
        "total_bonus_points": total_bonus,
    }
