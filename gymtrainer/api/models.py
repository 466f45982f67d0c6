"""Pydantic models for API request/response validation"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import date, datetime

from gymtrainer.models import (
    ActivityCategory,
    LeaderboardEntry,
    LeaderboardTimeframe,
    PointsHistoryEntry,
    RewardRedemption,
    WorkoutHistoryEntry,
    WorkoutSchedule,
)


class AwardPointsRequest(BaseModel):
    """Request to award points directly"""
    amount: int = Field(..., description="Positive number of points")
    activity: str = Field(..., min_length=1, description="Source tag, e.g. 'bonus'")
    description: str = Field(default="", description="Human-readable reason")


class AwardPointsResponse(BaseModel):
    """Result of a points award"""
    points_awarded: int
    new_total: int
    old_level: int
    new_level: int
    leveled_up: bool
    history_id: str


class ActivityRequest(BaseModel):
    """Request to record a qualifying daily activity"""
    category: ActivityCategory = Field(..., description="workout, diet or mental_health")
    activity_date: Optional[date] = Field(
        default=None,
        description="Calendar day of the activity (defaults to today, UTC)"
    )
    occurred_at: Optional[datetime] = Field(
        default=None,
        description="Exact time of the activity"
    )


class StreakResponse(BaseModel):
    """Result of a streak update"""
    category: str
    current_streak: int
    previous_streak: int
    continued: bool
    reset: bool
    already_counted_today: bool
    achievements_unlocked: List[Dict[str, Any]] = []


class UserPointsResponse(BaseModel):
    """Points, level and streak status for a user"""
    user_id: str
    total_points: int
    weekly_points: int
    monthly_points: int
    current_level: int
    points_to_next_level: int
    level_progress: float
    streaks: Dict[str, Dict[str, Any]]
    leaderboard_position: int
    ranks: Dict[str, int]


class PointsHistoryResponse(BaseModel):
    """Ledger entries, newest first"""
    user_id: str
    entries: List[PointsHistoryEntry]


class AchievementListResponse(BaseModel):
    """Achievement catalog with the user's unlock status"""
    achievements: List[Dict[str, Any]]
    total_unlocked: int
    total_achievements: int
    total_bonus_points: int


class EvaluateResponse(BaseModel):
    """Achievements unlocked by an evaluation pass"""
    user_id: str
    unlocked: List[Dict[str, Any]]


class RewardListResponse(BaseModel):
    """Active rewards"""
    rewards: List[Dict[str, Any]]


class RedemptionRequest(BaseModel):
    """Request to redeem a reward"""
    reward_id: str = Field(..., min_length=1, description="Catalog reward id")


class RedemptionResponse(BaseModel):
    """Result of a redemption"""
    redemption_id: str
    redemption_code: str
    reward_id: str
    reward_name: str
    points_spent: int
    remaining_points: int


class RedemptionListResponse(BaseModel):
    """User's redemptions, newest first"""
    user_id: str
    redemptions: List[RewardRedemption]


class LeaderboardResponse(BaseModel):
    """Ranked users for a timeframe"""
    timeframe: LeaderboardTimeframe
    entries: List[LeaderboardEntry]


class WorkoutScheduleRequest(BaseModel):
    """Request to schedule a workout"""
    workout_name: str = Field(..., min_length=1, description="Workout name")
    duration_minutes: int = Field(..., gt=0, description="Planned duration")
    scheduled_date: date = Field(..., description="Calendar day")
    scheduled_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="HH:MM")


class WorkoutScheduleResponse(BaseModel):
    """Scheduled workout plus the points it earned"""
    schedule: WorkoutSchedule
    points_awarded: int
    achievements_unlocked: List[Dict[str, Any]] = []


class WorkoutCompleteRequest(BaseModel):
    """Request to complete a scheduled workout"""
    calories_burned: int = Field(default=0, ge=0)
    notes: Optional[str] = None
    completed_at: Optional[datetime] = Field(
        default=None,
        description="Completion time (defaults to now)"
    )


class WorkoutCompleteResponse(BaseModel):
    """Completed workout plus its gamification results"""
    schedule: WorkoutSchedule
    history: WorkoutHistoryEntry
    points_awarded: int
    current_streak: Optional[int] = None
    achievements_unlocked: List[Dict[str, Any]] = []


class WorkoutListResponse(BaseModel):
    """Scheduled workouts"""
    user_id: str
    workouts: List[WorkoutSchedule]


class WorkoutHistoryResponse(BaseModel):
    """Completed workouts, newest first"""
    user_id: str
    history: List[WorkoutHistoryEntry]


class MealLogRequest(BaseModel):
    """Request to log a meal"""
    meal_name: str = Field(default="", description="What was eaten")
    logged_at: Optional[datetime] = Field(
        default=None,
        description="When the meal was eaten (defaults to now)"
    )


class ActivityLogRequest(BaseModel):
    """Request to log progress or a mental health check-in"""
    logged_at: Optional[datetime] = Field(
        default=None,
        description="When the entry was made (defaults to now)"
    )


class ActivityResultResponse(BaseModel):
    """Gamification results of a logged activity"""
    points_awarded: int
    new_total: int
    new_level: int
    level_up: bool
    current_streak: Optional[int] = None
    achievements_unlocked: List[Dict[str, Any]] = []
    message: str


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    database: str = Field(..., description="Database connection status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response"""
    error: str
    message: str
    user_message: str
    request_id: str
    timestamp: str
