"""
Gamification core for the gym trainer

- Points accrual with an append-only ledger
- Daily streaks per activity category
- Achievement unlocking with bonus points
- Reward redemption
- Leaderboard projection
"""

from gymtrainer.gamification.levels import calculate_level, calculate_level_info
from gymtrainer.gamification.points_system import award_points
from gymtrainer.gamification.streak_system import StreakPolicy, record_daily_activity
from gymtrainer.gamification.achievement_system import evaluate_and_unlock, get_user_achievements
from gymtrainer.gamification.rewards import redeem, list_available_rewards
from gymtrainer.gamification.leaderboard import get_leaderboard, get_leaderboard_position

__all__ = [
    "calculate_level",
    "calculate_level_info",
    "award_points",
    "StreakPolicy",
    "record_daily_activity",
    "evaluate_and_unlock",
    "get_user_achievements",
    "redeem",
    "list_available_rewards",
    "get_leaderboard",
    "get_leaderboard_position",
]
