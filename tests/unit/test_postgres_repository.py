"""Unit tests for the PostgreSQL repository with a mocked driver (gymtrainer/db/postgres.py)"""
import psycopg
import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from gymtrainer.db.postgres import PostgresCatalog, PostgresRepository, PostgresUnitOfWork
from gymtrainer.exceptions import ConnectionError, QueryError, ValidationError
from gymtrainer.models import (
    AchievementDefinition,
    AchievementType,
    RewardDefinition,
    UserAchievementUnlock,
)


@pytest.fixture
def mock_cursor():
    cursor = AsyncMock()
    cursor.rowcount = 0
    cursor.fetchone.return_value = None
    cursor.fetchall.return_value = []
    return cursor


@pytest.fixture
def mock_conn(mock_cursor):
    conn = MagicMock()
    conn.cursor.return_value.__aenter__.return_value = mock_cursor
    conn.transaction.return_value.__aenter__.return_value = None
    return conn


@pytest.fixture
def mock_database(mock_conn):
    database = MagicMock()
    database.connection.return_value.__aenter__.return_value = mock_conn
    return database


def _executed_sql(cursor) -> list[str]:
    return [call.args[0] for call in cursor.execute.await_args_list]


# ============================================================================
# Unit of Work
# ============================================================================

@pytest.mark.asyncio
async def test_transaction_opens_transaction_and_yields_uow(mock_database, mock_conn):
    repository = PostgresRepository(mock_database)

    async with repository.transaction("user_1") as uow:
        assert isinstance(uow, PostgresUnitOfWork)
        assert uow.user_id == "user_1"

    mock_conn.transaction.assert_called_once()


@pytest.mark.asyncio
async def test_get_aggregate_locks_row(mock_database, mock_cursor):
    mock_cursor.fetchone.return_value = {"user_id": "user_1", "total_points": 40, "level": 1}
    repository = PostgresRepository(mock_database)

    async with repository.transaction("user_1") as uow:
        aggregate = await uow.get_aggregate()

    assert aggregate.total_points == 40
    assert "FOR UPDATE" in _executed_sql(mock_cursor)[0]


@pytest.mark.asyncio
async def test_get_or_create_inserts_then_locks(mock_database, mock_cursor):
    mock_cursor.rowcount = 1
    mock_cursor.fetchone.return_value = {"user_id": "user_1"}
    repository = PostgresRepository(mock_database)

    async with repository.transaction("user_1") as uow:
        aggregate = await uow.get_or_create_aggregate()

    statements = _executed_sql(mock_cursor)
    assert "ON CONFLICT (user_id) DO NOTHING" in statements[0]
    assert "FOR UPDATE" in statements[1]
    assert aggregate.total_points == 0
    assert aggregate.level == 1


@pytest.mark.asyncio
async def test_add_unlock_reports_insert(mock_database, mock_cursor):
    unlock = UserAchievementUnlock(user_id="user_1", achievement_id="points_100", unlocked_date=date(2024, 1, 1))
    repository = PostgresRepository(mock_database)

    mock_cursor.fetchone.return_value = {"achievement_id": "points_100"}
    async with repository.transaction("user_1") as uow:
        assert await uow.add_unlock(unlock) is True

    mock_cursor.fetchone.return_value = None
    async with repository.transaction("user_1") as uow:
        assert await uow.add_unlock(unlock) is False

    sql = _executed_sql(mock_cursor)[0]
    assert "ON CONFLICT (user_id, achievement_id) DO NOTHING" in sql
    assert "RETURNING" in sql


@pytest.mark.asyncio
async def test_count_redemptions(mock_database, mock_cursor):
    mock_cursor.fetchone.return_value = {"count": 2}
    repository = PostgresRepository(mock_database)

    async with repository.transaction("user_1") as uow:
        assert await uow.count_redemptions("meetup") == 2

    assert mock_cursor.execute.await_args.args[1] == ("user_1", "meetup")


@pytest.mark.asyncio
async def test_driver_error_becomes_query_error(mock_database, mock_cursor):
    mock_cursor.execute.side_effect = psycopg.Error("relation does not exist")
    repository = PostgresRepository(mock_database)

    with pytest.raises(QueryError):
        async with repository.transaction("user_1") as uow:
            await uow.get_aggregate()


@pytest.mark.asyncio
async def test_connection_failure_becomes_connection_error(mock_database):
    mock_database.connection.return_value.__aenter__.side_effect = psycopg.OperationalError("refused")
    repository = PostgresRepository(mock_database)

    with pytest.raises(ConnectionError):
        async with repository.transaction("user_1"):
            pass


@pytest.mark.asyncio
async def test_domain_errors_pass_through_transaction(mock_database):
    repository = PostgresRepository(mock_database)

    with pytest.raises(ValidationError):
        async with repository.transaction("user_1"):
            raise ValidationError("bad amount", field="amount", value=0)


# ============================================================================
# Reads
# ============================================================================

@pytest.mark.asyncio
async def test_list_aggregates_orders_with_tie_break(mock_database, mock_cursor):
    mock_cursor.fetchall.return_value = [
        {"user_id": "user_a", "weekly_points": 90},
        {"user_id": "user_b", "weekly_points": 10},
    ]
    repository = PostgresRepository(mock_database)

    aggregates = await repository.list_aggregates("weekly_points", 10)

    assert [a.user_id for a in aggregates] == ["user_a", "user_b"]
    assert "ORDER BY weekly_points DESC, user_id ASC" in _executed_sql(mock_cursor)[0]


@pytest.mark.asyncio
async def test_list_aggregates_rejects_unknown_column(mock_database, mock_cursor):
    repository = PostgresRepository(mock_database)

    with pytest.raises(ValueError):
        await repository.list_aggregates("level; DROP TABLE user_points", 10)

    mock_cursor.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_rank_missing_user(mock_database, mock_cursor):
    repository = PostgresRepository(mock_database)

    assert await repository.get_rank("nobody", "total_points") == 0


@pytest.mark.asyncio
async def test_points_history_maps_timestamp(mock_database, mock_cursor):
    mock_cursor.fetchall.return_value = [{
        "id": "h1",
        "user_id": "user_1",
        "points": 10,
        "activity": "workout_completed",
        "description": "",
        "timestamp": "2024-03-15T12:00:00+00:00",
    }]
    repository = PostgresRepository(mock_database)

    history = await repository.get_points_history("user_1", limit=5)

    assert history[0].points == 10
    assert 'awarded_at AS "timestamp"' in _executed_sql(mock_cursor)[0]


@pytest.mark.asyncio
async def test_ping_failure(mock_database):
    mock_database.connection.side_effect = ConnectionError("Database pool not initialized")
    repository = PostgresRepository(mock_database)

    assert await repository.ping() is False


# ============================================================================
# Catalog
# ============================================================================

@pytest.mark.asyncio
async def test_catalog_get_reward(mock_database, mock_cursor):
    mock_cursor.fetchone.return_value = {
        "id": "shake",
        "name": "Protein Shake",
        "description": "",
        "points_cost": 500,
        "type": "nutrition",
        "is_active": True,
        "limit_per_user": None,
    }
    catalog = PostgresCatalog(mock_database)

    reward = await catalog.get_reward("shake")

    assert reward.points_cost == 500


@pytest.mark.asyncio
async def test_catalog_seed_is_idempotent_sql(mock_database, mock_conn, mock_cursor):
    catalog = PostgresCatalog(mock_database)
    achievement = AchievementDefinition(id="a1", name="A", type=AchievementType.POINTS, requirement=1)
    reward = RewardDefinition(id="r1", name="R", points_cost=5)

    await catalog.seed([achievement], [reward])

    statements = _executed_sql(mock_cursor)
    assert len(statements) == 2
    assert all("ON CONFLICT (id) DO NOTHING" in sql for sql in statements)
    mock_conn.transaction.assert_called_once()
