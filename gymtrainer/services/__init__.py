"""
Service Layer Package

Business logic services between the HTTP layer and the storage layer.

- GamificationService: points, streaks, achievements, rewards, leaderboards,
  and gamification for logged meals, progress and mental health check-ins
- WorkoutService: workout scheduling, completion and cancellation
"""

from gymtrainer.services.container import (
    ServiceContainer,
    get_container,
    init_container,
    reset_container,
    is_initialized,
)
from gymtrainer.services.gamification_service import GamificationService
from gymtrainer.services.workout_service import WorkoutService

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "reset_container",
    "is_initialized",
    "GamificationService",
    "WorkoutService",
]
