"""Gym Trainer gamification core: points, streaks, achievements and rewards"""

__version__ = "1.0.0"
