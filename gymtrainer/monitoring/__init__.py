"""Monitoring infrastructure for the gamification core"""
from gymtrainer.monitoring.prometheus_metrics import (
    metrics,
    track_request,
    track_points_awarded,
    track_achievement_unlocked,
    track_redemption,
    track_streak_update,
)

__all__ = [
    "metrics",
    "track_request",
    "track_points_awarded",
    "track_achievement_unlocked",
    "track_redemption",
    "track_streak_update",
]
