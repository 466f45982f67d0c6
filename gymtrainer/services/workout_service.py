"""
WorkoutService - Workout Scheduling

Scheduled workouts move scheduled -> completed or scheduled -> cancelled,
never back. Scheduling and completing earn points; completing also drives
the workout streak.
"""

import logging
from typing import Dict, List, Any, Optional
from datetime import date, datetime

from gymtrainer.db.repository import CatalogRepository, GamificationRepository
from gymtrainer.exceptions import ValidationError, WorkoutNotFoundError, WorkoutStateError
from gymtrainer.gamification import StreakPolicy, award_points, evaluate_and_unlock, record_daily_activity
from gymtrainer.models import (
    ActivityCategory,
    WorkoutHistoryEntry,
    WorkoutSchedule,
    WorkoutStatus,
)
from gymtrainer.utils.datetime_helpers import now_utc, to_utc

logger = logging.getLogger(__name__)

WORKOUT_SCHEDULED_POINTS = 5
# Completion earns this many points per full 10 minutes
POINTS_PER_TEN_MINUTES = 10


def completion_points(duration_minutes: int) -> int:
    return (duration_minutes // 10) * POINTS_PER_TEN_MINUTES


class WorkoutService:
    """
    Service for workout scheduling.

    Responsibilities:
    - Schedule, complete and cancel workouts
    - Points for scheduling and completion
    - Workout streak on completion
    """

    def __init__(
        self,
        repository: GamificationRepository,
        catalog: CatalogRepository,
        streak_policy: StreakPolicy = StreakPolicy.ONCE_PER_DAY
    ):
        self.repository = repository
        self.catalog = catalog
        self.streak_policy = StreakPolicy(streak_policy)
        logger.debug("WorkoutService initialized")

    async def schedule_workout(
        self,
        user_id: str,
        workout_name: str,
        duration_minutes: int,
        scheduled_date: date,
        scheduled_time: str
    ) -> Dict[str, Any]:
        """
        Put a workout on the calendar and award scheduling points.

        Returns:
            {
                'schedule': WorkoutSchedule,
                'points_awarded': int,
                'achievements_unlocked': list
            }
        """
        if not workout_name or not workout_name.strip():
            raise ValidationError("Workout name is required", field="workout_name", user_id=user_id)
        if duration_minutes <= 0:
            raise ValidationError(
                "Duration must be positive",
                field="duration_minutes",
                value=duration_minutes,
                user_id=user_id
            )

        schedule = WorkoutSchedule(
            user_id=user_id,
            workout_name=workout_name.strip(),
            duration_minutes=duration_minutes,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            created_at=now_utc(),
        )

        async with self.repository.transaction(user_id) as uow:
            await uow.save_workout_schedule(schedule)
            award = await award_points(
                uow,
                user_id,
                WORKOUT_SCHEDULED_POINTS,
                "workout_scheduled",
                f"Scheduled workout: {schedule.workout_name}"
            )
            unlocked = await evaluate_and_unlock(uow, self.catalog, user_id)

        logger.info(
            f"User {user_id} scheduled {schedule.workout_name} "
            f"for {scheduled_date} {scheduled_time}"
        )

        return {
            "schedule": schedule,
            "points_awarded": award["points_awarded"],
            "achievements_unlocked": unlocked,
        }

    async def complete_workout(
        self,
        user_id: str,
        schedule_id: str,
        calories_burned: int = 0,
        notes: Optional[str] = None,
        completed_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Mark a scheduled workout as done.

        Records the workout in history, awards 10 points per full 10 minutes
        of duration and updates the workout streak.

        Returns:
            {
                'schedule': WorkoutSchedule,
                'history': WorkoutHistoryEntry,
                'points_awarded': int,
                'current_streak': Optional[int],
                'achievements_unlocked': list
            }

        Raises:
            WorkoutNotFoundError: no such workout for this user
            WorkoutStateError: workout is not in 'scheduled' status
        """
        completed_at = to_utc(completed_at) if completed_at else now_utc()

        async with self.repository.transaction(user_id) as uow:
            schedule = await uow.get_workout_schedule(schedule_id)
            if schedule is None:
                raise WorkoutNotFoundError(schedule_id, user_id=user_id, operation="complete_workout")
            if schedule.status != WorkoutStatus.SCHEDULED:
                raise WorkoutStateError(
                    schedule_id,
                    status=schedule.status.value,
                    action="complete",
                    user_id=user_id,
                    operation="complete_workout"
                )

            schedule.status = WorkoutStatus.COMPLETED
            schedule.completed_at = completed_at
            await uow.save_workout_schedule(schedule)

            history = WorkoutHistoryEntry(
                user_id=user_id,
                schedule_id=schedule.id,
                workout_name=schedule.workout_name,
                duration_minutes=schedule.duration_minutes,
                completed_at=completed_at,
                calories_burned=calories_burned,
                notes=notes,
            )
            await uow.append_workout_history(history)

            points = completion_points(schedule.duration_minutes)
            if points > 0:
                await award_points(
                    uow,
                    user_id,
                    points,
                    "workout_completed",
                    f"Completed workout: {schedule.workout_name}"
                )

            streak = await record_daily_activity(
                uow,
                self.catalog,
                user_id,
                ActivityCategory.WORKOUT,
                activity_date=completed_at.date(),
                occurred_at=completed_at,
                policy=self.streak_policy
            )

        logger.info(f"User {user_id} completed workout {schedule_id} (+{points} points)")

        return {
            "schedule": schedule,
            "history": history,
            "points_awarded": points,
            "current_streak": streak["current_streak"] if streak else None,
            "achievements_unlocked": streak["achievements_unlocked"] if streak else [],
        }

    async def cancel_workout(self, user_id: str, schedule_id: str) -> WorkoutSchedule:
        """
        Cancel a scheduled workout (no points change).

        Raises:
            WorkoutNotFoundError: no such workout for this user
            WorkoutStateError: workout is not in 'scheduled' status
        """
        async with self.repository.transaction(user_id) as uow:
            schedule = await uow.get_workout_schedule(schedule_id)
            if schedule is None:
                raise WorkoutNotFoundError(schedule_id, user_id=user_id, operation="cancel_workout")
            if schedule.status != WorkoutStatus.SCHEDULED:
                raise WorkoutStateError(
                    schedule_id,
                    status=schedule.status.value,
                    action="cancel",
                    user_id=user_id,
                    operation="cancel_workout"
                )

            schedule.status = WorkoutStatus.CANCELLED
            await uow.save_workout_schedule(schedule)

        logger.info(f"User {user_id} cancelled workout {schedule_id}")
        return schedule

    async def get_scheduled_workouts(self, user_id: str, limit: int = 10) -> List[WorkoutSchedule]:
        """Upcoming workouts still in 'scheduled' status"""
        return await self.repository.list_workout_schedules(
            user_id,
            status=WorkoutStatus.SCHEDULED,
            limit=limit
        )

    async def get_workout_history(self, user_id: str, limit: int = 10) -> List[WorkoutHistoryEntry]:
        """Completed workouts, newest first"""
        return await self.repository.get_workout_history(user_id, limit=limit)
