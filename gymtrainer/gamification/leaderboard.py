"""
Leaderboard Projection

Read-only ranking over the points aggregates. Ties on the ranked field are
broken by user_id ascending so the order is stable between calls.
"""

import logging
from typing import Callable, List, Optional

from gymtrainer.config import LEADERBOARD_SIZE
from gymtrainer.db.repository import GamificationRepository
from gymtrainer.models import LeaderboardEntry, LeaderboardTimeframe

logger = logging.getLogger(__name__)

TIMEFRAME_FIELDS = {
    LeaderboardTimeframe.WEEKLY: "weekly_points",
    LeaderboardTimeframe.MONTHLY: "monthly_points",
    LeaderboardTimeframe.ALL_TIME: "total_points",
}

DisplayNameResolver = Callable[[str], str]


def default_display_name(user_id: str) -> str:
    """'User' followed by the last four characters of the user id"""
    return f"User{user_id[-4:]}"


def ranked_field(timeframe: LeaderboardTimeframe) -> str:
    return TIMEFRAME_FIELDS[LeaderboardTimeframe(timeframe)]


async def get_leaderboard(
    repository: GamificationRepository,
    timeframe: LeaderboardTimeframe = LeaderboardTimeframe.ALL_TIME,
    limit: int = LEADERBOARD_SIZE,
    display_name_resolver: Optional[DisplayNameResolver] = None
) -> List[LeaderboardEntry]:
    """
    Top users for a timeframe

    Args:
        repository: Aggregate store
        timeframe: weekly, monthly or allTime
        limit: Number of entries
        display_name_resolver: Maps user_id to a display name

    Returns:
        Entries with contiguous 1-based ranks
    """
    field = ranked_field(timeframe)
    resolve = display_name_resolver or default_display_name

    aggregates = await repository.list_aggregates(order_by=field, limit=limit)

    return [
        LeaderboardEntry(
            rank=position,
            user_id=aggregate.user_id,
            display_name=resolve(aggregate.user_id),
            points=getattr(aggregate, field),
            level=aggregate.level,
        )
        for position, aggregate in enumerate(aggregates, start=1)
    ]


async def get_leaderboard_position(
    repository: GamificationRepository,
    user_id: str,
    timeframe: LeaderboardTimeframe = LeaderboardTimeframe.ALL_TIME
) -> int:
    """User's 1-based rank under the leaderboard ordering (0 when unranked)"""
    return await repository.get_rank(user_id, order_by=ranked_field(timeframe))
