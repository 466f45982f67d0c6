"""Gamification models: points aggregate, ledger, achievements, rewards"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime, timezone
from uuid import uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class ActivityCategory(str, Enum):
    """Activity categories that carry a daily streak"""
    WORKOUT = "workout"
    DIET = "diet"
    MENTAL_HEALTH = "mental_health"


class AchievementType(str, Enum):
    """What an achievement threshold is measured against"""
    POINTS = "points"
    STREAK = "streak"
    LEVEL = "level"


class LeaderboardTimeframe(str, Enum):
    """Leaderboard windows"""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "allTime"


class RedemptionStatus(str, Enum):
    """Redemption lifecycle; only PENDING is written by this core"""
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class UserPointsAggregate(BaseModel):
    """Per-user summary of points, level and streaks"""
    user_id: str
    total_points: int = Field(default=0, ge=0)
    weekly_points: int = Field(default=0, ge=0)
    monthly_points: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    workout_streak: int = Field(default=0, ge=0)
    diet_streak: int = Field(default=0, ge=0)
    mental_health_streak: int = Field(default=0, ge=0)
    last_workout_date: Optional[date] = None
    last_diet_date: Optional[date] = None
    last_mental_health_date: Optional[date] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def get_streak(self, category: ActivityCategory) -> int:
        return getattr(self, f"{ActivityCategory(category).value}_streak")

    def set_streak(self, category: ActivityCategory, value: int) -> None:
        setattr(self, f"{ActivityCategory(category).value}_streak", value)

    def get_last_active_date(self, category: ActivityCategory) -> Optional[date]:
        return getattr(self, f"last_{ActivityCategory(category).value}_date")

    def set_last_active_date(self, category: ActivityCategory, value: date) -> None:
        setattr(self, f"last_{ActivityCategory(category).value}_date", value)


class PointsHistoryEntry(BaseModel):
    """Append-only ledger row backing total_points"""
    id: str = Field(default_factory=_new_id)
    user_id: str
    points: int
    activity: str
    description: str = ""
    timestamp: datetime = Field(default_factory=_utcnow)


class AchievementDefinition(BaseModel):
    """Achievement catalog entry (seeded externally, read-only here)"""
    id: str
    name: str
    description: str = ""
    icon: str = "🏆"
    type: AchievementType
    category: str = ""
    requirement: int = Field(..., ge=0)
    bonus_points: int = Field(default=0, ge=0)
    sort_order: int = 0


class UserAchievementUnlock(BaseModel):
    """One-time unlock of an achievement by a user"""
    user_id: str
    achievement_id: str
    unlocked_date: date


class RewardDefinition(BaseModel):
    """Reward catalog entry"""
    id: str
    name: str
    description: str = ""
    points_cost: int = Field(..., gt=0)
    type: str = "general"
    is_active: bool = True
    limit_per_user: Optional[int] = Field(default=None, gt=0)


class RewardRedemption(BaseModel):
    """Points spent on a reward"""
    id: str = Field(default_factory=_new_id)
    user_id: str
    reward_id: str
    reward_name: str
    points_spent: int
    redeemed_at: datetime = Field(default_factory=_utcnow)
    status: RedemptionStatus = RedemptionStatus.PENDING
    redemption_code: Optional[str] = None


class ActivityRecord(BaseModel):
    """A stored qualifying activity, queried by the streak policy"""
    user_id: str
    category: ActivityCategory
    occurred_at: datetime


class LeaderboardEntry(BaseModel):
    """Ranked row of the leaderboard projection"""
    rank: int
    user_id: str
    display_name: str
    points: int
    level: int
