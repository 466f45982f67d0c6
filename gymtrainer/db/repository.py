"""
Storage interfaces for the gamification core

Every write operation runs inside GamificationRepository.transaction(user_id),
which yields a UnitOfWork scoped to one user. A unit of work either commits
all of its writes or none of them, and no other transaction can change the
user's aggregate between its read and its write.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import AsyncContextManager, Optional

from gymtrainer.models import (
    ActivityCategory,
    ActivityRecord,
    AchievementDefinition,
    PointsHistoryEntry,
    RewardDefinition,
    RewardRedemption,
    UserAchievementUnlock,
    UserPointsAggregate,
    WorkoutHistoryEntry,
    WorkoutSchedule,
    WorkoutStatus,
)

# Aggregate fields the leaderboard can rank by
RANKABLE_FIELDS = ("total_points", "weekly_points", "monthly_points")


class UnitOfWork(ABC):
    """Transactional handle for one user's records"""

    def __init__(self, user_id: str):
        self.user_id = user_id

    # Aggregate
    @abstractmethod
    async def get_aggregate(self) -> Optional[UserPointsAggregate]:
        """Read the aggregate, locking it for the rest of the transaction"""

    @abstractmethod
    async def get_or_create_aggregate(self) -> UserPointsAggregate:
        """Locked read, creating a zeroed aggregate first if none exists"""

    @abstractmethod
    async def save_aggregate(self, aggregate: UserPointsAggregate) -> None:
        ...

    # Ledger
    @abstractmethod
    async def append_history(self, entry: PointsHistoryEntry) -> None:
        ...

    # Achievements
    @abstractmethod
    async def get_unlocked_achievement_ids(self) -> set[str]:
        ...

    @abstractmethod
    async def add_unlock(self, unlock: UserAchievementUnlock) -> bool:
        """Insert an unlock; False if the pair was already unlocked"""

    # Redemptions
    @abstractmethod
    async def append_redemption(self, redemption: RewardRedemption) -> None:
        ...

    @abstractmethod
    async def count_redemptions(self, reward_id: str) -> int:
        ...

    # Qualifying activity
    @abstractmethod
    async def has_activity_between(
        self,
        category: ActivityCategory,
        start: datetime,
        end: datetime
    ) -> bool:
        """True if an activity exists with start <= occurred_at < end"""

    @abstractmethod
    async def record_activity(self, record: ActivityRecord) -> None:
        ...

    # Workouts
    @abstractmethod
    async def get_workout_schedule(self, schedule_id: str) -> Optional[WorkoutSchedule]:
        ...

    @abstractmethod
    async def save_workout_schedule(self, schedule: WorkoutSchedule) -> None:
        ...

    @abstractmethod
    async def append_workout_history(self, entry: WorkoutHistoryEntry) -> None:
        ...


class GamificationRepository(ABC):
    """Per-user gamification records plus the read projections over them"""

    @abstractmethod
    def transaction(self, user_id: str) -> AsyncContextManager[UnitOfWork]:
        """Open an atomic unit of work for `user_id`"""

    @abstractmethod
    async def get_aggregate(self, user_id: str) -> Optional[UserPointsAggregate]:
        """Plain read; never creates"""

    @abstractmethod
    async def list_aggregates(self, order_by: str, limit: int) -> list[UserPointsAggregate]:
        """Top `limit` aggregates by `order_by` descending, then user_id ascending"""

    @abstractmethod
    async def get_rank(self, user_id: str, order_by: str) -> int:
        """1-based position under list_aggregates ordering, 0 if absent"""

    @abstractmethod
    async def get_points_history(self, user_id: str, limit: int = 50) -> list[PointsHistoryEntry]:
        """Newest first"""

    @abstractmethod
    async def get_user_unlocks(self, user_id: str) -> list[UserAchievementUnlock]:
        ...

    @abstractmethod
    async def get_redemptions(self, user_id: str) -> list[RewardRedemption]:
        """Newest first"""

    @abstractmethod
    async def list_workout_schedules(
        self,
        user_id: str,
        status: Optional[WorkoutStatus] = None,
        limit: int = 10
    ) -> list[WorkoutSchedule]:
        """Ordered by scheduled date and time"""

    @abstractmethod
    async def get_workout_history(self, user_id: str, limit: int = 10) -> list[WorkoutHistoryEntry]:
        """Newest first"""

    @abstractmethod
    async def ping(self) -> bool:
        ...


class CatalogRepository(ABC):
    """Read-only achievement and reward catalogs"""

    @abstractmethod
    async def list_achievements(self) -> list[AchievementDefinition]:
        """Ordered by sort_order, then id"""

    @abstractmethod
    async def get_reward(self, reward_id: str) -> Optional[RewardDefinition]:
        ...

    @abstractmethod
    async def list_rewards(self) -> list[RewardDefinition]:
        """Ordered by points_cost, then id"""


def check_rankable(order_by: str) -> str:
    if order_by not in RANKABLE_FIELDS:
        raise ValueError(f"Cannot rank by {order_by!r}")
    return order_by
