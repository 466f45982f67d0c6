"""
Reward Redemption

Exchanges accumulated points for catalog rewards. A redemption debits
total_points only; weekly and monthly points are earning windows and keep
their value. The stored level is not lowered by a debit.
"""

import logging
import secrets
import string
import time
from typing import Any, Dict, List, Optional

from gymtrainer.db.repository import CatalogRepository, UnitOfWork
from gymtrainer.exceptions import (
    GamificationRuleError,
    InsufficientPointsError,
    RecordNotFoundError,
    RedemptionLimitReachedError,
    RewardInactiveError,
    RewardNotFoundError,
    UserPointsNotFoundError,
)
from gymtrainer.models import RewardRedemption, UserPointsAggregate
from gymtrainer.monitoring import track_redemption
from gymtrainer.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    digits = ""
    while value:
        value, remainder = divmod(value, 36)
        digits = _BASE36[remainder] + digits
    return digits or "0"


def generate_redemption_code() -> str:
    """REWARD-<millis in base 36>-<6 random base-36 chars>"""
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"REWARD-{timestamp}-{random_part}"


async def redeem(
    uow: UnitOfWork,
    catalog: CatalogRepository,
    user_id: str,
    reward_id: str
) -> Dict[str, Any]:
    """
    Redeem a reward for a user

    Args:
        uow: Open unit of work for `user_id`
        catalog: Reward catalog
        user_id: User spending the points
        reward_id: Catalog reward id

    Returns:
        {
            'redemption_id': str,
            'redemption_code': str,
            'reward_id': str,
            'reward_name': str,
            'points_spent': int,
            'remaining_points': int
        }

    Raises:
        RewardNotFoundError: unknown reward
        RewardInactiveError: reward is no longer offered
        UserPointsNotFoundError: user has never earned points
        InsufficientPointsError: balance below the reward's cost
        RedemptionLimitReachedError: per-user limit already used up
    """
    try:
        reward = await catalog.get_reward(reward_id)
        if reward is None:
            raise RewardNotFoundError(reward_id, user_id=user_id, operation="redeem")
        if not reward.is_active:
            raise RewardInactiveError(reward_id, user_id=user_id, operation="redeem")

        aggregate = await uow.get_aggregate()
        if aggregate is None:
            raise UserPointsNotFoundError(user_id, operation="redeem")

        if aggregate.total_points < reward.points_cost:
            raise InsufficientPointsError(
                user_id,
                balance=aggregate.total_points,
                required=reward.points_cost,
                operation="redeem"
            )

        if reward.limit_per_user:
            previous = await uow.count_redemptions(reward_id)
            if previous >= reward.limit_per_user:
                raise RedemptionLimitReachedError(
                    reward_id,
                    limit=reward.limit_per_user,
                    user_id=user_id,
                    operation="redeem"
                )
    except (GamificationRuleError, RecordNotFoundError) as e:
        track_redemption(type(e).__name__)
        raise

    aggregate.total_points -= reward.points_cost
    await uow.save_aggregate(aggregate)

    redemption = RewardRedemption(
        user_id=user_id,
        reward_id=reward.id,
        reward_name=reward.name,
        points_spent=reward.points_cost,
        redeemed_at=now_utc(),
        redemption_code=generate_redemption_code(),
    )
    await uow.append_redemption(redemption)

    track_redemption("success")
    logger.info(
        f"User {user_id} redeemed {reward.id} for {reward.points_cost} points "
        f"(remaining: {aggregate.total_points})"
    )

    return {
        "redemption_id": redemption.id,
        "redemption_code": redemption.redemption_code,
        "reward_id": reward.id,
        "reward_name": reward.name,
        "points_spent": reward.points_cost,
        "remaining_points": aggregate.total_points,
    }


async def list_available_rewards(
    catalog: CatalogRepository,
    aggregate: Optional[UserPointsAggregate] = None
) -> List[Dict[str, Any]]:
    """Active rewards, cheapest first; 'affordable' is set when a user aggregate is given"""
    rewards = []
    for reward in await catalog.list_rewards():
        if not reward.is_active:
            continue
        entry = reward.model_dump(mode="json")
        if aggregate is not None:
            entry["affordable"] = reward.points_cost <= aggregate.total_points
        rewards.append(entry)
    return rewards
