"""Unit tests for the PostgreSQL and in-memory stores"""
import asyncio
from datetime import date, datetime, timezone

import psycopg
import pytest
from psycopg import errors as pg_errors

from progression.db.memory_store import InMemoryProgressionStore
from progression.db.stores import PostgresApplicationStore, PostgresProgressionStore
from progression.exceptions import (
    ActivitySourceError,
    ConnectionError,
    TransactionConflict,
    ValidationError,
)
from progression.models import UserProgressionStats


NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# PostgresProgressionStore
# ============================================================================

@pytest.mark.asyncio
async def test_user_transaction_locks_user_first(patched_db, mock_db_connection, mock_db_cursor):
    """Advisory lock is taken before any statement of the transaction"""
    store = PostgresProgressionStore()

    async with store.user_transaction("u1") as tx:
        await tx.get_stats("u1")

    mock_db_connection.transaction.assert_called_once()
    first_sql = mock_db_cursor.execute.call_args_list[0][0][0]
    assert "pg_advisory_xact_lock" in first_sql
    assert len(mock_db_cursor.execute.call_args_list) == 2


@pytest.mark.asyncio
async def test_user_transaction_insert_conflict(patched_db, mock_db_cursor):
    store = PostgresProgressionStore()
    mock_db_cursor.fetchone.return_value = None

    async with store.user_transaction("u1") as tx:
        assert await tx.insert_unlock("u1", "first_steps", NOW) is None


@pytest.mark.asyncio
async def test_serialization_failure_becomes_transaction_conflict(patched_db, mock_db_cursor):
    store = PostgresProgressionStore()
    mock_db_cursor.execute.side_effect = pg_errors.SerializationFailure("could not serialize")

    with pytest.raises(TransactionConflict) as exc_info:
        async with store.user_transaction("u1"):
            pass

    assert exc_info.value.user_id == "u1"


@pytest.mark.asyncio
async def test_standalone_read_connection_error(patched_db, mock_db_cursor):
    store = PostgresProgressionStore()
    mock_db_cursor.execute.side_effect = psycopg.OperationalError("server closed the connection")

    with pytest.raises(ConnectionError):
        await store.get_stats("u1")


@pytest.mark.asyncio
async def test_list_user_ids(patched_db, mock_db_cursor):
    mock_db_cursor.fetchall.return_value = [{"user_id": "a"}]

    assert await PostgresProgressionStore().list_user_ids() == ["a"]


# ============================================================================
# PostgresApplicationStore
# ============================================================================

@pytest.mark.asyncio
async def test_application_store_failure_is_activity_source_error(patched_db, mock_db_cursor):
    mock_db_cursor.execute.side_effect = pg_errors.UndefinedTable("applications")

    with pytest.raises(ActivitySourceError) as exc_info:
        await PostgresApplicationStore().get_activity_dates("u1")

    assert exc_info.value.operation == "get_activity_dates"


@pytest.mark.asyncio
async def test_application_store_user_ids(patched_db, mock_db_cursor):
    mock_db_cursor.fetchall.return_value = [{"user_id": "a"}, {"user_id": "b"}]

    assert await PostgresApplicationStore().list_user_ids() == ["a", "b"]


# ============================================================================
# InMemoryProgressionStore
# ============================================================================

@pytest.mark.asyncio
async def test_memory_transaction_rolls_back_on_error():
    """Staged writes are dropped when the block raises"""
    store = InMemoryProgressionStore()

    with pytest.raises(RuntimeError):
        async with store.user_transaction("u1") as tx:
            await tx.insert_unlock("u1", "first_steps", NOW)
            await tx.save_stats(UserProgressionStats(user_id="u1", total_xp=10, achievements_unlocked=1))
            raise RuntimeError("abort")

    assert await store.list_unlocks("u1") == []
    assert await store.get_stats("u1") is None


@pytest.mark.asyncio
async def test_memory_delete_user_releases_lock():
    store = InMemoryProgressionStore()
    async with store.user_transaction("u1") as tx:
        await tx.insert_unlock("u1", "first_steps", NOW)

    store.delete_user("u1")

    assert "u1" not in store._locks
    async with store.user_transaction("u1") as tx:
        assert await tx.insert_unlock("u1", "first_steps", NOW) is not None


@pytest.mark.asyncio
async def test_memory_delete_user_keeps_held_lock():
    store = InMemoryProgressionStore()
    async with store.user_transaction("u1"):
        store.delete_user("u1")
        assert store._locks["u1"].locked()


@pytest.mark.asyncio
async def test_memory_insert_unique_per_pair():
    store = InMemoryProgressionStore()

    async with store.user_transaction("u1") as tx:
        assert await tx.insert_unlock("u1", "first_steps", NOW) is not None
        assert await tx.insert_unlock("u1", "first_steps", NOW) is None

    async with store.user_transaction("u1") as tx:
        assert await tx.insert_unlock("u1", "first_steps", NOW) is None


@pytest.mark.asyncio
async def test_memory_transaction_scoped_to_user():
    store = InMemoryProgressionStore()

    with pytest.raises(ValidationError):
        async with store.user_transaction("u1") as tx:
            await tx.insert_unlock("u2", "first_steps", NOW)


@pytest.mark.asyncio
async def test_memory_transactions_serialized_per_user():
    """A second writer of the same user waits for the first to commit"""
    store = InMemoryProgressionStore()
    order = []

    async def writer(name, pause):
        async with store.user_transaction("u1"):
            order.append(f"{name}-start")
            await asyncio.sleep(pause)
            order.append(f"{name}-end")

    await asyncio.gather(writer("a", 0.01), writer("b", 0))

    assert order == ["a-start", "a-end", "b-start", "b-end"]


@pytest.mark.asyncio
async def test_memory_get_stats_returns_copy():
    store = InMemoryProgressionStore()
    async with store.user_transaction("u1") as tx:
        await tx.save_stats(UserProgressionStats(user_id="u1", total_xp=10))

    stats = await store.get_stats("u1")
    stats.total_xp = 999

    assert (await store.get_stats("u1")).total_xp == 10


@pytest.mark.asyncio
async def test_memory_delete_user():
    store = InMemoryProgressionStore()
    async with store.user_transaction("u1") as tx:
        await tx.insert_unlock("u1", "first_steps", NOW)
        await tx.save_stats(UserProgressionStats(user_id="u1", total_xp=10, achievements_unlocked=1))

    store.delete_user("u1")

    assert await store.list_user_ids() == []
    assert await store.get_stats("u1") is None


@pytest.mark.asyncio
async def test_memory_application_store(application_store):
    application_store.set_activity("u1", [date(2024, 1, 9)], application_count=1)
    application_store.add_dates("u1", date(2024, 1, 10))
    application_store.update_metrics("u1", remote_count=2)

    assert await application_store.get_activity_dates("u1") == {date(2024, 1, 9), date(2024, 1, 10)}
    assert await application_store.get_activity_metrics("u1") == {"application_count": 1, "remote_count": 2}
    assert await application_store.list_user_ids() == ["u1"]
