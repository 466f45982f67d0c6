"""Workout scheduling models"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime

from gymtrainer.models.gamification import _new_id, _utcnow


class WorkoutStatus(str, Enum):
    """Scheduled workout lifecycle"""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WorkoutSchedule(BaseModel):
    """A workout a user has put on the calendar"""
    id: str = Field(default_factory=_new_id)
    user_id: str
    workout_name: str
    duration_minutes: int = Field(..., gt=0)
    scheduled_date: date
    scheduled_time: str = Field(..., description="HH:MM")
    status: WorkoutStatus = WorkoutStatus.SCHEDULED
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utcnow)


class WorkoutHistoryEntry(BaseModel):
    """Record of a completed workout"""
    id: str = Field(default_factory=_new_id)
    user_id: str
    schedule_id: str
    workout_name: str
    duration_minutes: int
    completed_at: datetime
    calories_burned: int = 0
    notes: Optional[str] = None
