"""
Points Accrual

Every award appends one ledger entry and raises total, weekly and monthly
points by the same amount, so the ledger always explains total_points.

Point Award Rules (activity flows):
- Workout scheduled: 5
- Workout completed: 10 per full 10 minutes
- Meal logged: 5
- Progress logged: 10
- Mental health check-in: 30
- Achievement unlock: the achievement's bonus
"""

import logging
from typing import Any, Dict

from gymtrainer.db.repository import UnitOfWork
from gymtrainer.exceptions import ValidationError
from gymtrainer.gamification.levels import refresh_level
from gymtrainer.models import PointsHistoryEntry, UserPointsAggregate
from gymtrainer.monitoring import track_points_awarded
from gymtrainer.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

# Ledger activity tag for achievement bonuses
ACHIEVEMENT_ACTIVITY = "achievement_unlocked"


def apply_credit(aggregate: UserPointsAggregate, amount: int) -> None:
    """Raise every points window by `amount` and refresh the level"""
    aggregate.total_points += amount
    aggregate.weekly_points += amount
    aggregate.monthly_points += amount
    aggregate.level = refresh_level(aggregate.level, aggregate.total_points)


async def award_points(
    uow: UnitOfWork,
    user_id: str,
    amount: int,
    activity: str,
    description: str = ""
) -> Dict[str, Any]:
    """
    Award points to a user, creating their aggregate on first use

    Args:
        uow: Open unit of work for `user_id`
        user_id: User receiving the points
        amount: Positive number of points
        activity: Source tag (e.g. 'meal_logging', 'workout_completed')
        description: Human-readable reason

    Returns:
        {
            'points_awarded': int,
            'new_total': int,
            'old_level': int,
            'new_level': int,
            'leveled_up': bool,
            'history_id': str
        }

    Raises:
        ValidationError: amount is not a positive integer
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError(
            "Points amount must be a positive integer",
            field="amount",
            value=amount,
            user_id=user_id,
            operation="award_points"
        )

    aggregate = await uow.get_or_create_aggregate()
    old_level = aggregate.level

    entry = PointsHistoryEntry(
        user_id=user_id,
        points=amount,
        activity=activity,
        description=description,
        timestamp=now_utc(),
    )
    await uow.append_history(entry)

    apply_credit(aggregate, amount)
    await uow.save_aggregate(aggregate)

    track_points_awarded(activity, amount)

    leveled_up = aggregate.level > old_level
    if leveled_up:
        logger.info(f"User {user_id} leveled up: {old_level} → {aggregate.level}")

    logger.info(
        f"Awarded {amount} points to user {user_id} for {activity} "
        f"(total: {aggregate.total_points})"
    )

    return {
        "points_awarded": amount,
        "new_total": aggregate.total_points,
        "old_level": old_level,
        "new_level": aggregate.level,
        "leveled_up": leveled_up,
        "history_id": entry.id,
    }
