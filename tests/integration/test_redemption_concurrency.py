"""Integration tests for concurrent writes against one user's aggregate"""
import asyncio
import pytest

from gymtrainer.exceptions import InsufficientPointsError, RedemptionLimitReachedError
from gymtrainer.services import GamificationService


@pytest.mark.asyncio
async def test_concurrent_redemptions_cannot_overspend(repository, catalog, seed_aggregate, test_user_id):
    """Balance covers one shake; of two simultaneous redemptions exactly one succeeds"""
    service = GamificationService(repository, catalog)
    await seed_aggregate(test_user_id, total_points=150)

    results = await asyncio.gather(
        service.redeem(test_user_id, "shake"),
        service.redeem(test_user_id, "shake"),
        return_exceptions=True,
    )

    successes = [r for r in results if isinstance(r, dict)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientPointsError)

    assert (await repository.get_aggregate(test_user_id)).total_points == 50
    assert len(await repository.get_redemptions(test_user_id)) == 1


@pytest.mark.asyncio
async def test_concurrent_limited_redemptions(repository, catalog, seed_aggregate, test_user_id):
    service = GamificationService(repository, catalog)
    await seed_aggregate(test_user_id, total_points=300)

    results = await asyncio.gather(
        *(service.redeem(test_user_id, "meetup") for _ in range(5)),
        return_exceptions=True,
    )

    assert sum(isinstance(r, dict) for r in results) == 1
    assert all(isinstance(r, RedemptionLimitReachedError) for r in results if not isinstance(r, dict))
    assert (await repository.get_aggregate(test_user_id)).total_points == 270


@pytest.mark.asyncio
async def test_concurrent_awards_are_not_lost(repository, catalog, test_user_id):
    service = GamificationService(repository, catalog)

    await asyncio.gather(*(service.award_points(test_user_id, 7, "bonus") for _ in range(25)))

    aggregate = await repository.get_aggregate(test_user_id)
    assert aggregate.total_points == 175
    assert len(await repository.get_points_history(test_user_id)) == 25


@pytest.mark.asyncio
async def test_concurrent_evaluations_unlock_once(repository, catalog, seed_aggregate, test_user_id):
    service = GamificationService(repository, catalog)
    await seed_aggregate(test_user_id, total_points=100)

    results = await asyncio.gather(*(service.evaluate_and_unlock(test_user_id) for _ in range(5)))

    assert sum(len(r) for r in results) == 1
    assert (await repository.get_aggregate(test_user_id)).total_points == 120
