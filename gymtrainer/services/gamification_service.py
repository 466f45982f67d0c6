"""
GamificationService - Points, Streaks, Achievements, Rewards

Each write runs in a single user-scoped transaction, so an activity's
points, streak update and achievement unlocks land together or not at all.
"""

import logging
from typing import Dict, List, Any, Optional
from datetime import date, datetime

from gymtrainer.config import LEADERBOARD_SIZE
from gymtrainer.db.repository import CatalogRepository, GamificationRepository
from gymtrainer.exceptions import UserPointsNotFoundError
from gymtrainer.gamification import (
    StreakPolicy,
    award_points,
    calculate_level_info,
    evaluate_and_unlock,
    get_leaderboard,
    get_leaderboard_position,
    get_user_achievements,
    list_available_rewards,
    record_daily_activity,
    redeem,
)
from gymtrainer.gamification.leaderboard import DisplayNameResolver
from gymtrainer.models import (
    ActivityCategory,
    LeaderboardEntry,
    LeaderboardTimeframe,
    PointsHistoryEntry,
    RewardRedemption,
    UserPointsAggregate,
)
from gymtrainer.utils.datetime_helpers import now_utc, to_utc

logger = logging.getLogger(__name__)

# Points per activity flow
MEAL_LOGGED_POINTS = 5
PROGRESS_LOGGED_POINTS = 10
MENTAL_HEALTH_CHECKIN_POINTS = 30


class GamificationService:
    """
    Service for the gamification core.

    Responsibilities:
    - Points accrual
    - Streak tracking
    - Achievement unlocking
    - Reward redemption
    - Leaderboard and status views
    - Gamification for logged activities (meals, progress, check-ins)
    """

    def __init__(
        self,
        repository: GamificationRepository,
        catalog: CatalogRepository,
        streak_policy: StreakPolicy = StreakPolicy.ONCE_PER_DAY,
        display_name_resolver: Optional[DisplayNameResolver] = None
    ):
        """
        Initialize GamificationService.

        Args:
            repository: Per-user gamification records
            catalog: Achievement and reward catalogs
            streak_policy: Same-day repeat policy for streaks
            display_name_resolver: Leaderboard display names (default 'User<last 4>')
        """
        self.repository = repository
        self.catalog = catalog
        self.streak_policy = StreakPolicy(streak_policy)
        self.display_name_resolver = display_name_resolver
        logger.debug("GamificationService initialized")

    # ==========================================
    # Core operations
    # ==========================================

    async def award_points(
        self,
        user_id: str,
        amount: int,
        activity: str,
        description: str = ""
    ) -> Dict[str, Any]:
        async with self.repository.transaction(user_id) as uow:
            return await award_points(uow, user_id, amount, activity, description)

    async def record_daily_activity(
        self,
        user_id: str,
        category: ActivityCategory,
        activity_date: Optional[date] = None,
        occurred_at: Optional[datetime] = None
    ) -> Optional[Dict[str, Any]]:
        async with self.repository.transaction(user_id) as uow:
            return await record_daily_activity(
                uow,
                self.catalog,
                user_id,
                category,
                activity_date=activity_date,
                occurred_at=occurred_at,
                policy=self.streak_policy
            )

    async def evaluate_and_unlock(self, user_id: str) -> List[Dict[str, Any]]:
        async with self.repository.transaction(user_id) as uow:
            return await evaluate_and_unlock(uow, self.catalog, user_id)

    async def redeem(self, user_id: str, reward_id: str) -> Dict[str, Any]:
        async with self.repository.transaction(user_id) as uow:
            return await redeem(uow, self.catalog, user_id, reward_id)

    async def get_leaderboard(
        self,
        timeframe: LeaderboardTimeframe = LeaderboardTimeframe.ALL_TIME,
        limit: int = LEADERBOARD_SIZE
    ) -> List[LeaderboardEntry]:
        return await get_leaderboard(
            self.repository,
            timeframe,
            limit=limit,
            display_name_resolver=self.display_name_resolver
        )

    # ==========================================
    # Reads
    # ==========================================

    async def get_user_points(self, user_id: str) -> Optional[UserPointsAggregate]:
        """Aggregate for a user, or None if they have never earned points"""
        return await self.repository.get_aggregate(user_id)

    async def get_user_status(self, user_id: str) -> Dict[str, Any]:
        """
        Points, level progress, streaks and ranks for a user

        Raises:
            UserPointsNotFoundError: user has no aggregate
        """
        aggregate = await self.repository.get_aggregate(user_id)
        if aggregate is None:
            raise UserPointsNotFoundError(user_id, operation="get_user_status")

        level_info = calculate_level_info(aggregate.total_points, aggregate.level)
        ranks = {
            timeframe.value: await get_leaderboard_position(self.repository, user_id, timeframe)
            for timeframe in LeaderboardTimeframe
        }

        return {
            "user_id": user_id,
            "total_points": aggregate.total_points,
            "weekly_points": aggregate.weekly_points,
            "monthly_points": aggregate.monthly_points,
            **level_info,
            "streaks": {
                category.value: {
                    "current_streak": aggregate.get_streak(category),
                    "last_active_date": aggregate.get_last_active_date(category),
                }
                for category in ActivityCategory
            },
            "leaderboard_position": ranks[LeaderboardTimeframe.ALL_TIME.value],
            "ranks": ranks,
        }

    async def get_points_history(self, user_id: str, limit: int = 50) -> List[PointsHistoryEntry]:
        return await self.repository.get_points_history(user_id, limit=limit)

    async def get_user_achievements(self, user_id: str) -> Dict[str, Any]:
        return await get_user_achievements(self.repository, self.catalog, user_id)

    async def get_available_rewards(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        aggregate = await self.repository.get_aggregate(user_id) if user_id else None
        return await list_available_rewards(self.catalog, aggregate)

    async def get_redemptions(self, user_id: str) -> List[RewardRedemption]:
        return await self.repository.get_redemptions(user_id)

    # ==========================================
    # Activity flows
    # ==========================================

    async def process_meal_logged(
        self,
        user_id: str,
        meal_name: str = "",
        logged_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Process gamification for a logged meal.

        Returns:
            {
                'points_awarded': int,
                'new_total': int,
                'new_level': int,
                'level_up': bool,
                'current_streak': int,
                'achievements_unlocked': list,
                'message': str
            }
        """
        description = f"Logged meal: {meal_name}" if meal_name else "Logged a meal"
        return await self._process_activity(
            user_id,
            points=MEAL_LOGGED_POINTS,
            activity="meal_logging",
            description=description,
            category=ActivityCategory.DIET,
            occurred_at=logged_at
        )

    async def process_progress_logged(
        self,
        user_id: str,
        logged_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Process gamification for a logged fitness progress entry (no streak)."""
        return await self._process_activity(
            user_id,
            points=PROGRESS_LOGGED_POINTS,
            activity="fitness_progress",
            description="Logged fitness progress",
            occurred_at=logged_at
        )

    async def process_mental_health_checkin(
        self,
        user_id: str,
        logged_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Process gamification for a mental health check-in."""
        return await self._process_activity(
            user_id,
            points=MENTAL_HEALTH_CHECKIN_POINTS,
            activity="mental_health_checkin",
            description="Mental health check-in",
            category=ActivityCategory.MENTAL_HEALTH,
            occurred_at=logged_at
        )

    async def _process_activity(
        self,
        user_id: str,
        points: int,
        activity: str,
        description: str,
        category: Optional[ActivityCategory] = None,
        occurred_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Award, update the streak (if any) and evaluate, in one transaction"""
        occurred_at = to_utc(occurred_at) if occurred_at else now_utc()

        async with self.repository.transaction(user_id) as uow:
            award = await award_points(uow, user_id, points, activity, description)

            streak = None
            if category is not None:
                streak = await record_daily_activity(
                    uow,
                    self.catalog,
                    user_id,
                    category,
                    activity_date=occurred_at.date(),
                    occurred_at=occurred_at,
                    policy=self.streak_policy
                )

            if streak is not None:
                unlocked = streak["achievements_unlocked"]
            else:
                unlocked = await evaluate_and_unlock(uow, self.catalog, user_id)

            aggregate = await uow.get_aggregate()

        result = {
            "points_awarded": award["points_awarded"],
            "new_total": aggregate.total_points,
            "new_level": aggregate.level,
            "level_up": aggregate.level > award["old_level"],
            "current_streak": streak["current_streak"] if streak else None,
            "achievements_unlocked": unlocked,
        }
        result["message"] = self._format_activity_message(result)
        return result

    @staticmethod
    def _format_activity_message(result: Dict[str, Any]) -> str:
        lines = [f"+{result['points_awarded']} points ⭐"]

        if result["current_streak"]:
            lines.append(f"🔥 {result['current_streak']}-day streak")

        if result["level_up"]:
            lines.append(f"🎉 Level up! You're now level {result['new_level']}")

        for achievement in result["achievements_unlocked"]:
            lines.append(
                f"{achievement['icon']} Achievement unlocked: {achievement['name']} "
                f"(+{achievement['bonus_points']} points)"
            )

        return "\n".join(lines)
