"""Unit tests for the in-memory store (gymtrainer/db/memory.py)"""
import asyncio
import pytest
from datetime import date, datetime, timedelta, timezone

from gymtrainer.db.memory import InMemoryCatalog, InMemoryRepository
from gymtrainer.models import (
    ActivityCategory,
    ActivityRecord,
    PointsHistoryEntry,
    UserAchievementUnlock,
    WorkoutSchedule,
    WorkoutStatus,
)


@pytest.mark.asyncio
async def test_transaction_commits_on_success(repository, test_user_id):
    async with repository.transaction(test_user_id) as uow:
        aggregate = await uow.get_or_create_aggregate()
        aggregate.total_points = 42
        await uow.save_aggregate(aggregate)

    assert (await repository.get_aggregate(test_user_id)).total_points == 42


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(repository, seed_aggregate, test_user_id):
    await seed_aggregate(test_user_id, total_points=10)

    with pytest.raises(RuntimeError):
        async with repository.transaction(test_user_id) as uow:
            aggregate = await uow.get_aggregate()
            aggregate.total_points = 999
            await uow.save_aggregate(aggregate)
            await uow.append_history(PointsHistoryEntry(user_id=test_user_id, points=989, activity="x"))
            raise RuntimeError("boom")

    assert (await repository.get_aggregate(test_user_id)).total_points == 10
    assert await repository.get_points_history(test_user_id) == []


@pytest.mark.asyncio
async def test_reads_return_copies(repository, seed_aggregate, test_user_id):
    await seed_aggregate(test_user_id, total_points=10)

    snapshot = await repository.get_aggregate(test_user_id)
    snapshot.total_points = 500

    assert (await repository.get_aggregate(test_user_id)).total_points == 10


@pytest.mark.asyncio
async def test_transactions_for_one_user_are_serialized(repository, test_user_id):
    """A read-modify-write in one transaction is never interleaved with another"""
    async def increment():
        async with repository.transaction(test_user_id) as uow:
            aggregate = await uow.get_or_create_aggregate()
            current = aggregate.total_points
            await asyncio.sleep(0)
            aggregate.total_points = current + 1
            await uow.save_aggregate(aggregate)

    await asyncio.gather(*(increment() for _ in range(20)))

    assert (await repository.get_aggregate(test_user_id)).total_points == 20


@pytest.mark.asyncio
async def test_add_unlock_is_unique(repository, test_user_id):
    unlock = UserAchievementUnlock(user_id=test_user_id, achievement_id="a1", unlocked_date=date(2024, 1, 1))

    async with repository.transaction(test_user_id) as uow:
        assert await uow.add_unlock(unlock) is True
        assert await uow.add_unlock(unlock) is False
        assert await uow.get_unlocked_achievement_ids() == {"a1"}


@pytest.mark.asyncio
async def test_has_activity_between_is_half_open(repository, test_user_id):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    end = start + timedelta(days=1)

    async with repository.transaction(test_user_id) as uow:
        await uow.record_activity(ActivityRecord(user_id=test_user_id, category=ActivityCategory.WORKOUT, occurred_at=end))
        assert await uow.has_activity_between(ActivityCategory.WORKOUT, start, end) is False

        await uow.record_activity(ActivityRecord(user_id=test_user_id, category=ActivityCategory.WORKOUT, occurred_at=start))
        assert await uow.has_activity_between(ActivityCategory.WORKOUT, start, end) is True
        assert await uow.has_activity_between(ActivityCategory.DIET, start, end) is False


@pytest.mark.asyncio
async def test_points_history_newest_first(repository, test_user_id):
    async with repository.transaction(test_user_id) as uow:
        for points in (1, 2, 3):
            await uow.append_history(PointsHistoryEntry(user_id=test_user_id, points=points, activity="x"))

    history = await repository.get_points_history(test_user_id, limit=2)

    assert [h.points for h in history] == [3, 2]


@pytest.mark.asyncio
async def test_list_workout_schedules_filters_and_orders(repository, test_user_id):
    later = WorkoutSchedule(user_id=test_user_id, workout_name="Legs", duration_minutes=30,
                            scheduled_date=date(2024, 1, 3), scheduled_time="08:00")
    sooner = WorkoutSchedule(user_id=test_user_id, workout_name="Arms", duration_minutes=30,
                             scheduled_date=date(2024, 1, 2), scheduled_time="18:00")
    done = WorkoutSchedule(user_id=test_user_id, workout_name="Run", duration_minutes=30,
                           scheduled_date=date(2024, 1, 1), scheduled_time="07:00",
                           status=WorkoutStatus.COMPLETED)

    async with repository.transaction(test_user_id) as uow:
        for schedule in (later, sooner, done):
            await uow.save_workout_schedule(schedule)

    open_workouts = await repository.list_workout_schedules(test_user_id, status=WorkoutStatus.SCHEDULED)
    every_workout = await repository.list_workout_schedules(test_user_id)

    assert [s.workout_name for s in open_workouts] == ["Arms", "Legs"]
    assert [s.workout_name for s in every_workout] == ["Run", "Arms", "Legs"]


@pytest.mark.asyncio
async def test_rank_by_unknown_field_raises(repository):
    with pytest.raises(ValueError):
        await repository.list_aggregates(order_by="level", limit=10)


@pytest.mark.asyncio
async def test_catalog_reads(sample_achievements, sample_rewards):
    catalog = InMemoryCatalog(sample_achievements, sample_rewards)

    assert [a.id for a in await catalog.list_achievements()] == ["points_100", "workout_streak_3", "level_2"]
    assert (await catalog.get_reward("shake")).points_cost == 100
    assert await catalog.get_reward("missing") is None
    assert [r.id for r in await catalog.list_rewards()] == ["retired", "meetup", "shake", "session"]


@pytest.mark.asyncio
async def test_ping():
    assert await InMemoryRepository().ping() is True


@pytest.mark.asyncio
async def test_record_reads_return_copies(repository, test_user_id):
    schedule = WorkoutSchedule(user_id=test_user_id, workout_name="Legs", duration_minutes=30,
                               scheduled_date=date(2024, 1, 3), scheduled_time="08:00")
    async with repository.transaction(test_user_id) as uow:
        await uow.save_workout_schedule(schedule)
        await uow.append_history(PointsHistoryEntry(user_id=test_user_id, points=5, activity="x"))
        await uow.add_unlock(UserAchievementUnlock(user_id=test_user_id, achievement_id="a1",
                                                   unlocked_date=date(2024, 1, 1)))

    (await repository.list_workout_schedules(test_user_id))[0].status = WorkoutStatus.CANCELLED
    (await repository.get_points_history(test_user_id))[0].points = 500
    (await repository.get_user_unlocks(test_user_id))[0].achievement_id = "other"

    assert (await repository.list_workout_schedules(test_user_id))[0].status == WorkoutStatus.SCHEDULED
    assert (await repository.get_points_history(test_user_id))[0].points == 5
    assert (await repository.get_user_unlocks(test_user_id))[0].achievement_id == "a1"


@pytest.mark.asyncio
async def test_user_locks_are_released(repository):
    for i in range(10):
        async with repository.transaction(f"user_{i}") as uow:
            await uow.get_or_create_aggregate()

    assert repository._locks == {}
    assert repository._lock_users == {}


@pytest.mark.asyncio
async def test_user_lock_kept_while_contended(repository, test_user_id):
    entered = asyncio.Event()
    release = asyncio.Event()

    async def holder():
        async with repository.transaction(test_user_id):
            entered.set()
            await release.wait()

    async def waiter():
        async with repository.transaction(test_user_id) as uow:
            aggregate = await uow.get_or_create_aggregate()
            aggregate.total_points = 1
            await uow.save_aggregate(aggregate)

    holding = asyncio.create_task(holder())
    await entered.wait()
    waiting = asyncio.create_task(waiter())
    await asyncio.sleep(0)

    assert repository._lock_users[test_user_id] == 2

    release.set()
    await asyncio.gather(holding, waiting)

    assert repository._locks == {}
    assert (await repository.get_aggregate(test_user_id)).total_points == 1
