"""
In-process gamification store

Used by the 'memory' storage backend and by the test suite. Records are
partitioned per user; a transaction holds the user's asyncio.Lock, works on
a deep copy of the partition and swaps it in only when the block exits
cleanly, so a failed operation leaves nothing behind.
"""

import asyncio
import copy
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncGenerator, Iterable, Optional

from gymtrainer.db.repository import (
    CatalogRepository,
    GamificationRepository,
    UnitOfWork,
    check_rankable,
)
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
from gymtrainer.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


@dataclass
class _UserPartition:
    """Everything stored for one user"""
    aggregate: Optional[UserPointsAggregate] = None
    history: list[PointsHistoryEntry] = field(default_factory=list)
    unlocks: dict[str, UserAchievementUnlock] = field(default_factory=dict)
    redemptions: list[RewardRedemption] = field(default_factory=list)
    activities: list[ActivityRecord] = field(default_factory=list)
    schedules: dict[str, WorkoutSchedule] = field(default_factory=dict)
    workout_history: list[WorkoutHistoryEntry] = field(default_factory=list)


class InMemoryUnitOfWork(UnitOfWork):
    """Unit of work over a private copy of one user's partition"""

    def __init__(self, user_id: str, partition: _UserPartition):
        super().__init__(user_id)
        self.partition = partition

    async def get_aggregate(self) -> Optional[UserPointsAggregate]:
        return self.partition.aggregate

    async def get_or_create_aggregate(self) -> UserPointsAggregate:
        if self.partition.aggregate is None:
            self.partition.aggregate = UserPointsAggregate(user_id=self.user_id)
            logger.info(f"Created points record for user {self.user_id}")
        return self.partition.aggregate

    async def save_aggregate(self, aggregate: UserPointsAggregate) -> None:
        aggregate.updated_at = now_utc()
        self.partition.aggregate = aggregate

    async def append_history(self, entry: PointsHistoryEntry) -> None:
        self.partition.history.append(entry)

    async def get_unlocked_achievement_ids(self) -> set[str]:
        return set(self.partition.unlocks)

    async def add_unlock(self, unlock: UserAchievementUnlock) -> bool:
        if unlock.achievement_id in self.partition.unlocks:
            return False
        self.partition.unlocks[unlock.achievement_id] = unlock
        return True

    async def append_redemption(self, redemption: RewardRedemption) -> None:
        self.partition.redemptions.append(redemption)

    async def count_redemptions(self, reward_id: str) -> int:
        return sum(1 for r in self.partition.redemptions if r.reward_id == reward_id)

    async def has_activity_between(
        self,
        category: ActivityCategory,
        start: datetime,
        end: datetime
    ) -> bool:
        return any(
            a.category == category and start <= a.occurred_at < end
            for a in self.partition.activities
        )

    async def record_activity(self, record: ActivityRecord) -> None:
        self.partition.activities.append(record)

    async def get_workout_schedule(self, schedule_id: str) -> Optional[WorkoutSchedule]:
        return self.partition.schedules.get(schedule_id)

    async def save_workout_schedule(self, schedule: WorkoutSchedule) -> None:
        self.partition.schedules[schedule.id] = schedule

    async def append_workout_history(self, entry: WorkoutHistoryEntry) -> None:
        self.partition.workout_history.append(entry)


class InMemoryRepository(GamificationRepository):
    """Dictionary-backed repository with per-user serialization"""

    def __init__(self):
        self._partitions: dict[str, _UserPartition] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Transactions holding or waiting on each user's lock
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncGenerator[None, None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if self._lock_users[user_id] == 0:
                del self._lock_users[user_id]
                del self._locks[user_id]

    @asynccontextmanager
    async def transaction(self, user_id: str) -> AsyncGenerator[InMemoryUnitOfWork, None]:
        async with self._user_lock(user_id):
            working = copy.deepcopy(self._partitions.get(user_id, _UserPartition()))
            uow = InMemoryUnitOfWork(user_id, working)
            yield uow
            # Reached only when the block raised nothing
            self._partitions[user_id] = working

    async def get_aggregate(self, user_id: str) -> Optional[UserPointsAggregate]:
        partition = self._partitions.get(user_id)
        if partition is None or partition.aggregate is None:
            return None
        return partition.aggregate.model_copy()

    def _ranked(self, order_by: str) -> list[UserPointsAggregate]:
        check_rankable(order_by)
        aggregates = [p.aggregate for p in self._partitions.values() if p.aggregate is not None]
        return sorted(aggregates, key=lambda a: (-getattr(a, order_by), a.user_id))

    async def list_aggregates(self, order_by: str, limit: int) -> list[UserPointsAggregate]:
        return [a.model_copy() for a in self._ranked(order_by)[:limit]]

    async def get_rank(self, user_id: str, order_by: str) -> int:
        for position, aggregate in enumerate(self._ranked(order_by), start=1):
            if aggregate.user_id == user_id:
                return position
        return 0

    async def get_points_history(self, user_id: str, limit: int = 50) -> list[PointsHistoryEntry]:
        partition = self._partitions.get(user_id, _UserPartition())
        return [h.model_copy() for h in reversed(partition.history)][:limit]

    async def get_user_unlocks(self, user_id: str) -> list[UserAchievementUnlock]:
        partition = self._partitions.get(user_id, _UserPartition())
        return [u.model_copy() for u in partition.unlocks.values()]

    async def get_redemptions(self, user_id: str) -> list[RewardRedemption]:
        partition = self._partitions.get(user_id, _UserPartition())
        return [r.model_copy() for r in reversed(partition.redemptions)]

    async def list_workout_schedules(
        self,
        user_id: str,
        status: Optional[WorkoutStatus] = None,
        limit: int = 10
    ) -> list[WorkoutSchedule]:
        partition = self._partitions.get(user_id, _UserPartition())
        schedules = [
            s.model_copy() for s in partition.schedules.values()
            if status is None or s.status == status
        ]
        schedules.sort(key=lambda s: (s.scheduled_date, s.scheduled_time, s.created_at))
        return schedules[:limit]

    async def get_workout_history(self, user_id: str, limit: int = 10) -> list[WorkoutHistoryEntry]:
        partition = self._partitions.get(user_id, _UserPartition())
        history = sorted(partition.workout_history, key=lambda h: h.completed_at, reverse=True)
        return [h.model_copy() for h in history[:limit]]

    async def ping(self) -> bool:
        return True


class InMemoryCatalog(CatalogRepository):
    """Fixed achievement and reward catalogs"""

    def __init__(
        self,
        achievements: Iterable[AchievementDefinition] = (),
        rewards: Iterable[RewardDefinition] = ()
    ):
        self._achievements = sorted(achievements, key=lambda a: (a.sort_order, a.id))
        self._rewards = {r.id: r for r in rewards}

    async def list_achievements(self) -> list[AchievementDefinition]:
        return list(self._achievements)

    async def get_reward(self, reward_id: str) -> Optional[RewardDefinition]:
        return self._rewards.get(reward_id)

    async def list_rewards(self) -> list[RewardDefinition]:
        return sorted(self._rewards.values(), key=lambda r: (r.points_cost, r.id))
