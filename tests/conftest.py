"""Global test fixtures and utilities for gym-trainer tests"""
import pytest
from datetime import date, datetime, timezone
from typing import Any, Callable, Awaitable

from gymtrainer.db.memory import InMemoryCatalog, InMemoryRepository
from gymtrainer.models import (
    AchievementDefinition,
    AchievementType,
    RewardDefinition,
    UserPointsAggregate,
)


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def today() -> date:
    """Fixed calendar day used as 'today' in tests"""
    return date(2024, 3, 15)


@pytest.fixture
def noon(today: date) -> datetime:
    """Midday UTC on the fixed day"""
    return datetime(today.year, today.month, today.day, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# User Fixtures
# ============================================================================

@pytest.fixture
def test_user_id() -> str:
    """Standard test user ID"""
    return "user_000123456789"


# ============================================================================
# Catalog Fixtures
# ============================================================================

@pytest.fixture
def sample_achievements() -> list[AchievementDefinition]:
    """Small achievement catalog covering every type"""
    return [
        AchievementDefinition(
            id="points_100",
            name="Getting Started",
            type=AchievementType.POINTS,
            requirement=100,
            bonus_points=20,
            sort_order=1,
        ),
        AchievementDefinition(
            id="workout_streak_3",
            name="Three in a Row",
            type=AchievementType.STREAK,
            category="workout",
            requirement=3,
            bonus_points=15,
            sort_order=2,
        ),
        AchievementDefinition(
            id="level_2",
            name="Rising Star",
            type=AchievementType.LEVEL,
            requirement=2,
            bonus_points=25,
            sort_order=3,
        ),
    ]


@pytest.fixture
def sample_rewards() -> list[RewardDefinition]:
    """Reward catalog with an inactive and a limited reward"""
    return [
        RewardDefinition(id="shake", name="Protein Shake", points_cost=100),
        RewardDefinition(id="session", name="Training Session", points_cost=1500),
        RewardDefinition(id="retired", name="Old Voucher", points_cost=10, is_active=False),
        RewardDefinition(id="meetup", name="Meetup Entry", points_cost=30, limit_per_user=1),
    ]


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def repository() -> InMemoryRepository:
    """Empty in-memory gamification repository"""
    return InMemoryRepository()


@pytest.fixture
def catalog(sample_achievements, sample_rewards) -> InMemoryCatalog:
    """In-memory catalog with the sample achievements and rewards"""
    return InMemoryCatalog(sample_achievements, sample_rewards)


@pytest.fixture
def empty_catalog() -> InMemoryCatalog:
    """Catalog with no achievements or rewards"""
    return InMemoryCatalog()


@pytest.fixture
def seed_aggregate(repository) -> Callable[..., Awaitable[UserPointsAggregate]]:
    """
    Create (or overwrite) a user's aggregate with the given field values.

    Usage:
        await seed_aggregate("user_1", total_points=95)
    """
    async def _seed(user_id: str, **fields: Any) -> UserPointsAggregate:
        async with repository.transaction(user_id) as uow:
            aggregate = await uow.get_or_create_aggregate()
            for name, value in fields.items():
                setattr(aggregate, name, value)
            await uow.save_aggregate(aggregate)
        return await repository.get_aggregate(user_id)

    return _seed
