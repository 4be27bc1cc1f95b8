"""Unit tests for retry logic"""
from unittest.mock import AsyncMock, patch

import pytest

from progression.exceptions import QueryError, TransactionConflict
from progression.resilience.retry import (
    MAX_DELAY,
    calculate_backoff,
    is_retryable_error,
    retry_with_backoff,
)


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("progression.resilience.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


def test_is_retryable_error_conflict():
    """Test that transaction conflicts are retryable"""
    assert is_retryable_error(TransactionConflict()) == True


def test_is_retryable_error_non_retryable():
    """Test that everything else is not"""
    assert is_retryable_error(QueryError("bad sql")) == False
    assert is_retryable_error(ValueError("Bad value")) == False
    assert is_retryable_error(KeyError("Missing key")) == False


def test_calculate_backoff():
    """Test exponential backoff calculation"""
    delay_0 = calculate_backoff(0, base_delay=0.1)
    assert 0.09 <= delay_0 <= 0.11

    delay_1 = calculate_backoff(1, base_delay=0.1)
    assert 0.18 <= delay_1 <= 0.22

    delay_2 = calculate_backoff(2, base_delay=0.1)
    assert 0.36 <= delay_2 <= 0.44


def test_calculate_backoff_max_delay():
    """Test that backoff respects max delay"""
    delay = calculate_backoff(20, base_delay=0.1)
    assert delay <= MAX_DELAY * 1.1


@pytest.mark.asyncio
async def test_retry_with_backoff_success_first_try(no_sleep):
    func = AsyncMock(return_value="ok")

    result = await retry_with_backoff(func, "a", key="b", max_retries=3)

    assert result == "ok"
    func.assert_awaited_once_with("a", key="b")
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_with_backoff_success_after_conflicts(no_sleep):
    func = AsyncMock(side_effect=[TransactionConflict(), TransactionConflict(), "ok"])

    result = await retry_with_backoff(func, max_retries=3)

    assert result == "ok"
    assert func.await_count == 3
    assert no_sleep.await_count == 2


@pytest.mark.asyncio
async def test_retry_with_backoff_exhausted():
    func = AsyncMock(side_effect=TransactionConflict())

    with pytest.raises(TransactionConflict):
        await retry_with_backoff(func, max_retries=2)

    assert func.await_count == 3


@pytest.mark.asyncio
async def test_retry_with_backoff_non_retryable_raises_immediately():
    func = AsyncMock(side_effect=QueryError("bad sql"))

    with pytest.raises(QueryError):
        await retry_with_backoff(func, max_retries=5)

    assert func.await_count == 1


@pytest.mark.asyncio
async def test_retry_default_from_config(monkeypatch):
    from progression import config
    monkeypatch.setattr(config, "UNLOCK_MAX_RETRIES", 1)
    func = AsyncMock(side_effect=TransactionConflict())

    with pytest.raises(TransactionConflict):
        await retry_with_backoff(func)

    assert func.await_count == 2
