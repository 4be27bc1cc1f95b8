"""
PostgreSQL-backed stores

PostgresProgressionStore runs each user transaction on one pooled
connection under a per-user advisory lock. psycopg errors are mapped into
the engine's exception hierarchy; conflicts surface as TransactionConflict.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, Dict, List, Optional, Set

import psycopg

from progression.db import queries
from progression.db.connection import db
from progression.exceptions import ActivitySourceError, wrap_external_exception
from progression.models import UnlockRecord, UserProgressionStats

logger = logging.getLogger(__name__)


class _PostgresTransaction:
    """UserTransaction bound to an open cursor"""

    def __init__(self, cur, user_id: str):
        self._cur = cur
        self.user_id = user_id

    async def insert_unlock(
        self, user_id: str, achievement_id: str, unlocked_at: datetime
    ) -> Optional[UnlockRecord]:
        return await queries.insert_unlock(self._cur, user_id, achievement_id, unlocked_at)

    async def list_unlocks(self, user_id: str) -> List[UnlockRecord]:
        return await queries.select_unlocks(self._cur, user_id)

    async def get_stats(self, user_id: str) -> Optional[UserProgressionStats]:
        return await queries.select_stats(self._cur, user_id)

    async def save_stats(self, stats: UserProgressionStats) -> UserProgressionStats:
        return await queries.upsert_stats(self._cur, stats)


class PostgresProgressionStore:
    """Unlock ledger and stats cache in PostgreSQL"""

    @asynccontextmanager
    async def user_transaction(self, user_id: str) -> AsyncIterator[_PostgresTransaction]:
        try:
            async with db.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor() as cur:
                        await queries.lock_user(cur, user_id)
                        yield _PostgresTransaction(cur, user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="user_transaction", user_id=user_id) from e

    async def get_stats(self, user_id: str) -> Optional[UserProgressionStats]:
        try:
            return await queries.get_user_stats(user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_stats", user_id=user_id) from e

    async def list_unlocks(self, user_id: str) -> List[UnlockRecord]:
        try:
            return await queries.get_user_unlocks(user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="list_unlocks", user_id=user_id) from e

    async def list_user_ids(self) -> List[str]:
        try:
            return await queries.get_progression_user_ids()
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="list_user_ids") from e


class PostgresApplicationStore:
    """Read-only application collaborator backed by the applications table"""

    async def get_activity_dates(self, user_id: str) -> Set[date]:
        try:
            return await queries.get_activity_dates(user_id)
        except psycopg.Error as e:
            raise ActivitySourceError(
                f"Could not load activity dates: {e}",
                user_id=user_id,
                operation="get_activity_dates",
                cause=e,
            ) from e

    async def get_activity_metrics(self, user_id: str) -> Dict[str, int]:
        try:
            return await queries.get_activity_metrics(user_id)
        except psycopg.Error as e:
            raise ActivitySourceError(
                f"Could not load activity metrics: {e}",
                user_id=user_id,
                operation="get_activity_metrics",
                cause=e,
            ) from e

    async def list_user_ids(self) -> List[str]:
        try:
            return await queries.get_application_user_ids()
        except psycopg.Error as e:
            raise ActivitySourceError(
                f"Could not list application users: {e}",
                operation="list_user_ids",
                cause=e,
            ) from e
