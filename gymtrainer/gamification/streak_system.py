"""
Daily Streak Tracking

Tracks consecutive-day streaks for three activity categories:
- workout
- diet
- mental_health

Logic:
- Qualifying activity found on the previous calendar day: streak + 1
- Otherwise: streak restarts at 1
- The category's last-active date is always moved to the activity date
- A streak that has lapsed is only corrected at the next activity

Repeat activity on the same calendar day is governed by StreakPolicy.
"""

from enum import Enum
from typing import Any, Dict, Optional
from datetime import date, datetime
import logging

from gymtrainer.db.repository import CatalogRepository, UnitOfWork
from gymtrainer.exceptions import ValidationError
from gymtrainer.gamification.achievement_system import evaluate_and_unlock
from gymtrainer.models import ActivityCategory, ActivityRecord
from gymtrainer.monitoring import track_streak_update
from gymtrainer.utils.datetime_helpers import (
    previous_day_window,
    start_of_day_utc,
    to_utc,
    today_utc,
)

logger = logging.getLogger(__name__)


class StreakPolicy(str, Enum):
    """How a second qualifying activity on the same day treats the streak"""
    ONCE_PER_DAY = "once_per_day"
    EVERY_ACTIVITY = "every_activity"


def parse_category(value: Any, user_id: Optional[str] = None) -> ActivityCategory:
    try:
        return ActivityCategory(value)
    except ValueError:
        raise ValidationError(
            f"Unknown activity category: {value}",
            field="category",
            value=value,
            user_id=user_id
        ) from None


def resolve_activity_time(
    activity_date: Optional[date],
    occurred_at: Optional[datetime],
    user_id: Optional[str] = None
) -> tuple[date, datetime]:
    """
    Calendar day and timestamp of an activity, kept on the same UTC day

    The day comes from occurred_at when only the timestamp is given, and
    defaults to today when neither is. The timestamp defaults to 00:00 UTC
    of the day.
    """
    if occurred_at is not None:
        occurred_at = to_utc(occurred_at)
        if activity_date is None:
            activity_date = occurred_at.date()
        elif occurred_at.date() != activity_date:
            raise ValidationError(
                f"occurred_at {occurred_at.isoformat()} is not on activity_date {activity_date}",
                field="occurred_at",
                value=occurred_at.isoformat(),
                user_id=user_id
            )
        return activity_date, occurred_at

    if activity_date is None:
        activity_date = today_utc()
    return activity_date, start_of_day_utc(activity_date)


async def record_daily_activity(
    uow: UnitOfWork,
    catalog: CatalogRepository,
    user_id: str,
    category: ActivityCategory,
    activity_date: Optional[date] = None,
    occurred_at: Optional[datetime] = None,
    policy: StreakPolicy = StreakPolicy.ONCE_PER_DAY
) -> Optional[Dict[str, Any]]:
    """
    Update a category streak for a qualifying activity

    Args:
        uow: Open unit of work for `user_id`
        catalog: Achievement catalog, evaluated after the update
        user_id: User who did the activity
        category: workout, diet or mental_health
        activity_date: Calendar day of the activity (defaults to the day of
            occurred_at, else today, UTC)
        occurred_at: Exact time of the activity (defaults to the start of activity_date);
            must fall on activity_date when both are given
        policy: Same-day repeat policy

    Returns:
        {
            'category': str,
            'current_streak': int,
            'previous_streak': int,
            'continued': bool,         # previous day had qualifying activity
            'reset': bool,             # streak restarted at 1
            'already_counted_today': bool,
            'achievements_unlocked': list
        }
        None when the user has no aggregate yet (nothing is written).

    Raises:
        ValidationError: unknown category, or occurred_at on another day than activity_date
    """
    category = parse_category(category, user_id=user_id)
    activity_date, occurred_at = resolve_activity_time(activity_date, occurred_at, user_id=user_id)

    aggregate = await uow.get_aggregate()
    if aggregate is None:
        logger.debug(f"No points record for user {user_id}, skipping {category.value} streak")
        return None

    previous = aggregate.get_streak(category)
    already_counted = aggregate.get_last_active_date(category) == activity_date
    continued = False
    reset = False

    if already_counted and policy == StreakPolicy.ONCE_PER_DAY:
        # Streak already advanced for this day
        outcome = "same_day"
    else:
        start, end = previous_day_window(activity_date)
        continued = await uow.has_activity_between(category, start, end)

        if continued:
            aggregate.set_streak(category, previous + 1)
            outcome = "continued"
        else:
            aggregate.set_streak(category, 1)
            reset = True
            outcome = "reset"
            if previous > 1:
                logger.info(
                    f"User {user_id} {category.value} streak broken. Was {previous} days"
                )

    aggregate.set_last_active_date(category, activity_date)
    await uow.save_aggregate(aggregate)
    await uow.record_activity(ActivityRecord(
        user_id=user_id,
        category=category,
        occurred_at=occurred_at,
    ))

    track_streak_update(category.value, outcome)

    current = aggregate.get_streak(category)
    logger.info(
        f"Updated {category.value} streak for user {user_id}: "
        f"{previous} → {current} days"
    )

    unlocked = await evaluate_and_unlock(uow, catalog, user_id)

    return {
        "category": category.value,
        "current_streak": current,
        "previous_streak": previous,
        "continued": continued,
        "reset": reset,
        "already_counted_today": already_counted,
        "achievements_unlocked": unlocked,
    }
