"""Domain models"""
from gymtrainer.models.gamification import (
    ActivityCategory,
    AchievementType,
    LeaderboardTimeframe,
    RedemptionStatus,
    UserPointsAggregate,
    PointsHistoryEntry,
    AchievementDefinition,
    UserAchievementUnlock,
    RewardDefinition,
    RewardRedemption,
    ActivityRecord,
    LeaderboardEntry,
)
from gymtrainer.models.workout import WorkoutStatus, WorkoutSchedule, WorkoutHistoryEntry

__all__ = [
    "ActivityCategory",
    "AchievementType",
    "LeaderboardTimeframe",
    "RedemptionStatus",
    "UserPointsAggregate",
    "PointsHistoryEntry",
    "AchievementDefinition",
    "UserAchievementUnlock",
    "RewardDefinition",
    "RewardRedemption",
    "ActivityRecord",
    "LeaderboardEntry",
    "WorkoutStatus",
    "WorkoutSchedule",
    "WorkoutHistoryEntry",
]
