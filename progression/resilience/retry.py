"""Retry logic with exponential backoff and jitter

Retries transient database conflicts only:
1. Only TransactionConflict is retried; every other error propagates
2. Uses exponential backoff with jitter so colliding writers spread out
3. Gives up after max retries to avoid infinite loops

Retrying is safe for every engine write: unlock() is idempotent and
reconcile() is a pure recomputation.
"""

import asyncio
import random
import logging
from typing import Callable, Any, TypeVar

from progression import config
from progression.exceptions import TransactionConflict

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_DELAY = 2.0  # seconds
JITTER = 0.1  # 10% random jitter


def is_retryable_error(exc: Exception) -> bool:
    """
    Determine if error is transient and should be retried.

    Args:
        exc: The exception to check

    Returns:
        True if error should be retried, False otherwise
    """
    return isinstance(exc, TransactionConflict)


def calculate_backoff(attempt: int, base_delay: float = None) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Formula: delay = min(base_delay * (2 ** attempt), MAX_DELAY) + jitter
    Jitter is random value between -10% and +10% of delay

    Args:
        attempt: The retry attempt number (0-indexed)
        base_delay: First step in seconds (defaults to RETRY_BASE_DELAY)

    Returns:
        Delay in seconds
    """
    if base_delay is None:
        base_delay = config.RETRY_BASE_DELAY

    delay = min(base_delay * (2 ** attempt), MAX_DELAY)

    jitter_amount = random.uniform(-JITTER * delay, JITTER * delay)
    return max(delay + jitter_amount, 0.0)


async def retry_with_backoff(
    func: Callable[..., T],
    *args: Any,
    max_retries: int = None,
    **kwargs: Any
) -> T:
    """
    Retry async function with exponential backoff.

    Only retries transient errors. Gives up after max_retries attempts.

    Args:
        func: Async function to retry
        max_retries: Maximum number of retry attempts (default: UNLOCK_MAX_RETRIES)
        *args, **kwargs: Arguments to pass to func

    Returns:
        Result from func

    Raises:
        Last exception if all retries exhausted or non-retryable error

    Example:
        result = await retry_with_backoff(ledger.unlock, user_id, "job_hunter")
    """
    if max_retries is None:
        max_retries = config.UNLOCK_MAX_RETRIES

    name = getattr(func, "__name__", repr(func))

    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            if not is_retryable_error(e):
                raise

            if attempt == max_retries:
                logger.error(f"[RETRY] All {max_retries} retries exhausted for {name}")
                raise

            backoff = calculate_backoff(attempt)
            logger.warning(
                f"[RETRY] {name} attempt {attempt + 1}/{max_retries + 1} failed "
                f"with {type(e).__name__}; retrying in {backoff:.3f}s"
            )
            await asyncio.sleep(backoff)
