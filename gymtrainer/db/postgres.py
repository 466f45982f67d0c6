"""PostgreSQL gamification repository"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Iterable, Optional

import psycopg

from gymtrainer.db.connection import Database, db as default_db
from gymtrainer.db.repository import (
    CatalogRepository,
    GamificationRepository,
    UnitOfWork,
    check_rankable,
)
from gymtrainer.exceptions import DatabaseError, wrap_external_exception
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

logger = logging.getLogger(__name__)

AGGREGATE_COLUMNS = """
    user_id, total_points, weekly_points, monthly_points, level,
    workout_streak, diet_streak, mental_health_streak,
    last_workout_date, last_diet_date, last_mental_health_date,
    created_at, updated_at
"""

HISTORY_COLUMNS = 'id, user_id, points, activity, description, awarded_at AS "timestamp"'

SCHEDULE_COLUMNS = """
    id, user_id, workout_name, duration_minutes, scheduled_date, scheduled_time,
    status, completed_at, created_at
"""


class PostgresUnitOfWork(UnitOfWork):
    """Unit of work bound to one cursor inside an open transaction"""

    def __init__(self, user_id: str, cursor: psycopg.AsyncCursor):
        super().__init__(user_id)
        self.cur = cursor

    # ==========================================
    # Aggregate
    # ==========================================

    async def get_aggregate(self) -> Optional[UserPointsAggregate]:
        await self.cur.execute(
            f"""
            SELECT {AGGREGATE_COLUMNS}
            FROM user_points
            WHERE user_id = %s
            FOR UPDATE
            """,
            (self.user_id,)
        )
        row = await self.cur.fetchone()
        return UserPointsAggregate(**row) if row else None

    async def get_or_create_aggregate(self) -> UserPointsAggregate:
        # Insert first so concurrent creators converge on one row before locking it
        await self.cur.execute(
            """
            INSERT INTO user_points (user_id)
            VALUES (%s)
            ON CONFLICT (user_id) DO NOTHING
            """,
            (self.user_id,)
        )
        if self.cur.rowcount == 1:
            logger.info(f"Created points record for user {self.user_id}")
        return await self.get_aggregate()

    async def save_aggregate(self, aggregate: UserPointsAggregate) -> None:
        await self.cur.execute(
            """
            UPDATE user_points
            SET total_points = %s,
                weekly_points = %s,
                monthly_points = %s,
                level = %s,
                workout_streak = %s,
                diet_streak = %s,
                mental_health_streak = %s,
                last_workout_date = %s,
                last_diet_date = %s,
                last_mental_health_date = %s,
                updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s
            """,
            (
                aggregate.total_points,
                aggregate.weekly_points,
                aggregate.monthly_points,
                aggregate.level,
                aggregate.workout_streak,
                aggregate.diet_streak,
                aggregate.mental_health_streak,
                aggregate.last_workout_date,
                aggregate.last_diet_date,
                aggregate.last_mental_health_date,
                aggregate.user_id,
            )
        )

    # ==========================================
    # Ledger
    # ==========================================

    async def append_history(self, entry: PointsHistoryEntry) -> None:
        await self.cur.execute(
            """
            INSERT INTO points_history (id, user_id, points, activity, description, awarded_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            """,
            (entry.id, entry.user_id, entry.points, entry.activity, entry.description, entry.timestamp)
        )

    # ==========================================
    # Achievements
    # ==========================================

    async def get_unlocked_achievement_ids(self) -> set[str]:
        await self.cur.execute(
            "SELECT achievement_id FROM user_achievements WHERE user_id = %s",
            (self.user_id,)
        )
        rows = await self.cur.fetchall()
        return {row["achievement_id"] for row in rows}

    async def add_unlock(self, unlock: UserAchievementUnlock) -> bool:
        await self.cur.execute(
            """
            INSERT INTO user_achievements (user_id, achievement_id, unlocked_date)
            VALUES (%s, %s, %s)
            ON CONFLICT (user_id, achievement_id) DO NOTHING
            RETURNING achievement_id
            """,
            (unlock.user_id, unlock.achievement_id, unlock.unlocked_date)
        )
        return await self.cur.fetchone() is not None

    # ==========================================
    # Redemptions
    # ==========================================

    async def append_redemption(self, redemption: RewardRedemption) -> None:
        await self.cur.execute(
            """
            INSERT INTO reward_redemptions
                (id, user_id, reward_id, reward_name, points_spent, redeemed_at, status, redemption_code)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                redemption.id,
                redemption.user_id,
                redemption.reward_id,
                redemption.reward_name,
                redemption.points_spent,
                redemption.redeemed_at,
                redemption.status.value,
                redemption.redemption_code,
            )
        )

    async def count_redemptions(self, reward_id: str) -> int:
        await self.cur.execute(
            """
            SELECT COUNT(*) AS count
            FROM reward_redemptions
            WHERE user_id = %s AND reward_id = %s
            """,
            (self.user_id, reward_id)
        )
        row = await self.cur.fetchone()
        return row["count"] if row else 0

    # ==========================================
    # Qualifying activity
    # ==========================================

    async def has_activity_between(
        self,
        category: ActivityCategory,
        start: datetime,
        end: datetime
    ) -> bool:
        await self.cur.execute(
            """
            SELECT 1
            FROM activity_log
            WHERE user_id = %s
              AND category = %s
              AND occurred_at >= %s
              AND occurred_at < %s
            LIMIT 1
            """,
            (self.user_id, ActivityCategory(category).value, start, end)
        )
        return await self.cur.fetchone() is not None

    async def record_activity(self, record: ActivityRecord) -> None:
        await self.cur.execute(
            """
            INSERT INTO activity_log (user_id, category, occurred_at)
            VALUES (%s, %s, %s)
            """,
            (record.user_id, record.category.value, record.occurred_at)
        )

    # ==========================================
    # Workouts
    # ==========================================

    async def get_workout_schedule(self, schedule_id: str) -> Optional[WorkoutSchedule]:
        await self.cur.execute(
            f"""
            SELECT {SCHEDULE_COLUMNS}
            FROM workout_schedules
            WHERE id = %s AND user_id = %s
            FOR UPDATE
            """,
            (schedule_id, self.user_id)
        )
        row = await self.cur.fetchone()
        return WorkoutSchedule(**row) if row else None

    async def save_workout_schedule(self, schedule: WorkoutSchedule) -> None:
        await self.cur.execute(
            """
            INSERT INTO workout_schedules
                (id, user_id, workout_name, duration_minutes, scheduled_date, scheduled_time,
                 status, completed_at, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
                status = EXCLUDED.status,
                completed_at = EXCLUDED.completed_at
            """,
            (
                schedule.id,
                schedule.user_id,
                schedule.workout_name,
                schedule.duration_minutes,
                schedule.scheduled_date,
                schedule.scheduled_time,
                schedule.status.value,
                schedule.completed_at,
                schedule.created_at,
            )
        )

    async def append_workout_history(self, entry: WorkoutHistoryEntry) -> None:
        await self.cur.execute(
            """
            INSERT INTO workout_history
                (id, user_id, schedule_id, workout_name, duration_minutes, completed_at, calories_burned, notes)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                entry.id,
                entry.user_id,
                entry.schedule_id,
                entry.workout_name,
                entry.duration_minutes,
                entry.completed_at,
                entry.calories_burned,
                entry.notes,
            )
        )


class PostgresRepository(GamificationRepository):
    """Gamification records stored in PostgreSQL"""

    def __init__(self, database: Database = default_db):
        self.database = database

    @asynccontextmanager
    async def transaction(self, user_id: str) -> AsyncGenerator[PostgresUnitOfWork, None]:
        try:
            async with self.database.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor() as cur:
                        yield PostgresUnitOfWork(user_id, cur)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="transaction", user_id=user_id) from e

    async def _fetchall(self, query: str, params: tuple = ()) -> list[dict]:
        async with self.database.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()

    async def _fetchone(self, query: str, params: tuple = ()) -> Optional[dict]:
        async with self.database.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchone()

    async def get_aggregate(self, user_id: str) -> Optional[UserPointsAggregate]:
        row = await self._fetchone(
            f"SELECT {AGGREGATE_COLUMNS} FROM user_points WHERE user_id = %s",
            (user_id,)
        )
        return UserPointsAggregate(**row) if row else None

    async def list_aggregates(self, order_by: str, limit: int) -> list[UserPointsAggregate]:
        column = check_rankable(order_by)
        rows = await self._fetchall(
            f"""
            SELECT {AGGREGATE_COLUMNS}
            FROM user_points
            ORDER BY {column} DESC, user_id ASC
            LIMIT %s
            """,
            (limit,)
        )
        return [UserPointsAggregate(**row) for row in rows]

    async def get_rank(self, user_id: str, order_by: str) -> int:
        column = check_rankable(order_by)
        row = await self._fetchone(
            f"""
            SELECT 1 + (
                SELECT COUNT(*)
                FROM user_points other
                WHERE other.{column} > me.{column}
                   OR (other.{column} = me.{column} AND other.user_id < me.user_id)
            ) AS rank
            FROM user_points me
            WHERE me.user_id = %s
            """,
            (user_id,)
        )
        return row["rank"] if row else 0

    async def get_points_history(self, user_id: str, limit: int = 50) -> list[PointsHistoryEntry]:
        rows = await self._fetchall(
            f"""
            SELECT {HISTORY_COLUMNS}
            FROM points_history
            WHERE user_id = %s
            ORDER BY awarded_at DESC
            LIMIT %s
            """,
            (user_id, limit)
        )
        return [PointsHistoryEntry(**row) for row in rows]

    async def get_user_unlocks(self, user_id: str) -> list[UserAchievementUnlock]:
        rows = await self._fetchall(
            """
            SELECT user_id, achievement_id, unlocked_date
            FROM user_achievements
            WHERE user_id = %s
            ORDER BY unlocked_date DESC
            """,
            (user_id,)
        )
        return [UserAchievementUnlock(**row) for row in rows]

    async def get_redemptions(self, user_id: str) -> list[RewardRedemption]:
        rows = await self._fetchall(
            """
            SELECT id, user_id, reward_id, reward_name, points_spent, redeemed_at, status, redemption_code
            FROM reward_redemptions
            WHERE user_id = %s
            ORDER BY redeemed_at DESC
            """,
            (user_id,)
        )
        return [RewardRedemption(**row) for row in rows]

    async def list_workout_schedules(
        self,
        user_id: str,
        status: Optional[WorkoutStatus] = None,
        limit: int = 10
    ) -> list[WorkoutSchedule]:
        if status is None:
            rows = await self._fetchall(
                f"""
                SELECT {SCHEDULE_COLUMNS}
                FROM workout_schedules
                WHERE user_id = %s
                ORDER BY scheduled_date, scheduled_time, created_at
                LIMIT %s
                """,
                (user_id, limit)
            )
        else:
            rows = await self._fetchall(
                f"""
                SELECT {SCHEDULE_COLUMNS}
                FROM workout_schedules
                WHERE user_id = %s AND status = %s
                ORDER BY scheduled_date, scheduled_time, created_at
                LIMIT %s
                """,
                (user_id, WorkoutStatus(status).value, limit)
            )
        return [WorkoutSchedule(**row) for row in rows]

    async def get_workout_history(self, user_id: str, limit: int = 10) -> list[WorkoutHistoryEntry]:
        rows = await self._fetchall(
            """
            SELECT id, user_id, schedule_id, workout_name, duration_minutes, completed_at, calories_burned, notes
            FROM workout_history
            WHERE user_id = %s
            ORDER BY completed_at DESC
            LIMIT %s
            """,
            (user_id, limit)
        )
        return [WorkoutHistoryEntry(**row) for row in rows]

    async def ping(self) -> bool:
        try:
            await self._fetchone("SELECT 1 AS ok")
            return True
        except (psycopg.Error, DatabaseError) as e:
            logger.error(f"Database health check failed: {e}")
            return False


class PostgresCatalog(CatalogRepository):
    """Achievement and reward catalogs stored in PostgreSQL"""

    def __init__(self, database: Database = default_db):
        self.database = database

    async def list_achievements(self) -> list[AchievementDefinition]:
        async with self.database.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT id, name, description, icon, type, category, requirement, bonus_points, sort_order
                    FROM achievements
                    ORDER BY sort_order, id
                    """
                )
                rows = await cur.fetchall()
                return [AchievementDefinition(**row) for row in rows]

    async def get_reward(self, reward_id: str) -> Optional[RewardDefinition]:
        async with self.database.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT id, name, description, points_cost, type, is_active, limit_per_user
                    FROM rewards
                    WHERE id = %s
                    """,
                    (reward_id,)
                )
                row = await cur.fetchone()
                return RewardDefinition(**row) if row else None

    async def list_rewards(self) -> list[RewardDefinition]:
        async with self.database.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT id, name, description, points_cost, type, is_active, limit_per_user
                    FROM rewards
                    ORDER BY points_cost, id
                    """
                )
                rows = await cur.fetchall()
                return [RewardDefinition(**row) for row in rows]

    async def seed(
        self,
        achievements: Iterable[AchievementDefinition],
        rewards: Iterable[RewardDefinition]
    ) -> None:
        """Insert catalog entries that are not present yet (idempotent)"""
        async with self.database.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    for a in achievements:
                        await cur.execute(
                            """
                            INSERT INTO achievements
                                (id, name, description, icon, type, category, requirement, bonus_points, sort_order)
                            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                            ON CONFLICT (id) DO NOTHING
                            """,
                            (a.id, a.name, a.description, a.icon, a.type.value, a.category,
                             a.requirement, a.bonus_points, a.sort_order)
                        )
                    for r in rewards:
                        await cur.execute(
                            """
                            INSERT INTO rewards
                                (id, name, description, points_cost, type, is_active, limit_per_user)
                            VALUES (%s, %s, %s, %s, %s, %s, %s)
                            ON CONFLICT (id) DO NOTHING
                            """,
                            (r.id, r.name, r.description, r.points_cost, r.type, r.is_active, r.limit_per_user)
                        )
        logger.info("Catalog seeded")
