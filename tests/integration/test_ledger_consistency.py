"""
Integration tests for ledger consistency

Across any mix of operations, total_points must equal the sum of the
points ledger minus the points spent on redemptions.
"""
import pytest
from datetime import timedelta

from gymtrainer.exceptions import GamificationRuleError
from gymtrainer.services import GamificationService, WorkoutService


async def _assert_ledger_matches(repository, user_id):
    aggregate = await repository.get_aggregate(user_id)
    earned = sum(h.points for h in await repository.get_points_history(user_id, limit=10_000))
    spent = sum(r.points_spent for r in await repository.get_redemptions(user_id))
    assert aggregate.total_points == earned - spent
    return aggregate


@pytest.mark.asyncio
async def test_mixed_operations_keep_ledger_consistent(repository, catalog, test_user_id, noon):
    gamification = GamificationService(repository, catalog)
    workouts = WorkoutService(repository, catalog)

    await gamification.award_points(test_user_id, 60, "bonus")
    await _assert_ledger_matches(repository, test_user_id)

    schedule = (await workouts.schedule_workout(test_user_id, "Push", 40, noon.date(), "09:00"))["schedule"]
    await workouts.complete_workout(test_user_id, schedule.id, completed_at=noon)
    await _assert_ledger_matches(repository, test_user_id)

    await gamification.evaluate_and_unlock(test_user_id)
    await gamification.process_meal_logged(test_user_id, logged_at=noon)
    await gamification.process_mental_health_checkin(test_user_id, logged_at=noon + timedelta(days=1))
    await _assert_ledger_matches(repository, test_user_id)

    await gamification.redeem(test_user_id, "shake")
    await gamification.redeem(test_user_id, "meetup")
    aggregate = await _assert_ledger_matches(repository, test_user_id)

    # Rejected redemptions leave the ledger untouched
    with pytest.raises(GamificationRuleError):
        await gamification.redeem(test_user_id, "session")
    with pytest.raises(GamificationRuleError):
        await gamification.redeem(test_user_id, "meetup")

    after = await _assert_ledger_matches(repository, test_user_id)
    assert after.total_points == aggregate.total_points


@pytest.mark.asyncio
async def test_weekly_and_monthly_never_exceed_earned(repository, catalog, test_user_id, noon):
    gamification = GamificationService(repository, catalog)

    for offset in range(5):
        await gamification.process_meal_logged(test_user_id, logged_at=noon + timedelta(days=offset))
    await gamification.award_points(test_user_id, 100, "bonus")
    await gamification.evaluate_and_unlock(test_user_id)
    await gamification.redeem(test_user_id, "shake")

    aggregate = await _assert_ledger_matches(repository, test_user_id)
    earned = sum(h.points for h in await repository.get_points_history(test_user_id, limit=10_000))
    assert aggregate.weekly_points == earned
    assert aggregate.monthly_points == earned
    assert aggregate.total_points == earned - 100
