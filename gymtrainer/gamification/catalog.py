"""
Default catalogs

Standard rewards offered to every deployment, plus the starter achievement
set. Both are seeded into the catalog tables by scripts/setup_database.py, or
loaded straight into the memory backend when SEED_CATALOG is on.
"""

from gymtrainer.models import AchievementDefinition, AchievementType, RewardDefinition

STANDARD_REWARDS = [
    RewardDefinition(
        id="protein_shake",
        name="Free Protein Shake",
        description="Redeem at partner gyms",
        points_cost=500,
        type="supplement_discount",
    ),
    RewardDefinition(
        id="trainer_session",
        name="Free Personal Training Session",
        description="30-minute 1-on-1 session with a certified trainer",
        points_cost=1500,
        type="trainer_session",
    ),
    RewardDefinition(
        id="meal_voucher",
        name="₹200 Meal Voucher",
        description="Use on any partnered restaurant order",
        points_cost=800,
        type="meal_voucher",
    ),
    RewardDefinition(
        id="gym_merchandise",
        name="Premium Gym Merchandise",
        description="Exclusive AI Gym Trainer t-shirt or water bottle",
        points_cost=1000,
        type="gym_merchandise",
    ),
    RewardDefinition(
        id="meetup_priority",
        name="Sunday Meetup Priority Entry",
        description="Guaranteed spot in the next Sunday community meetup",
        points_cost=300,
        type="event_entry",
        limit_per_user=1,
    ),
]

DEFAULT_ACHIEVEMENTS = [
    # Points milestones
    AchievementDefinition(
        id="first_100_points",
        name="Getting Started",
        description="Earn 100 points",
        icon="⭐",
        type=AchievementType.POINTS,
        requirement=100,
        bonus_points=20,
        sort_order=10,
    ),
    AchievementDefinition(
        id="points_1000",
        name="Point Collector",
        description="Earn 1,000 points",
        icon="💰",
        type=AchievementType.POINTS,
        requirement=1000,
        bonus_points=100,
        sort_order=20,
    ),
    # Streaks
    AchievementDefinition(
        id="workout_streak_7",
        name="Week Warrior",
        description="Work out 7 days in a row",
        icon="🔥",
        type=AchievementType.STREAK,
        category="workout",
        requirement=7,
        bonus_points=50,
        sort_order=30,
    ),
    AchievementDefinition(
        id="workout_streak_30",
        name="Iron Habit",
        description="Work out 30 days in a row",
        icon="🏋️",
        type=AchievementType.STREAK,
        category="workout",
        requirement=30,
        bonus_points=200,
        sort_order=31,
    ),
    AchievementDefinition(
        id="diet_streak_7",
        name="Clean Eater",
        description="Log meals 7 days in a row",
        icon="🥗",
        type=AchievementType.STREAK,
        category="diet",
        requirement=7,
        bonus_points=50,
        sort_order=40,
    ),
    AchievementDefinition(
        id="mental_health_streak_7",
        name="Mindful Week",
        description="Check in on your mental health 7 days in a row",
        icon="🧘",
        type=AchievementType.STREAK,
        category="mental_health",
        requirement=7,
        bonus_points=50,
        sort_order=50,
    ),
    # Levels
    AchievementDefinition(
        id="level_2",
        name="Rising Star",
        description="Reach level 2",
        icon="🌟",
        type=AchievementType.LEVEL,
        requirement=2,
        bonus_points=25,
        sort_order=60,
    ),
    AchievementDefinition(
        id="level_5",
        name="Dedicated Athlete",
        description="Reach level 5",
        icon="🏆",
        type=AchievementType.LEVEL,
        requirement=5,
        bonus_points=250,
        sort_order=61,
    ),
]
