"""
In-memory stores

Same contract as the PostgreSQL stores, kept in process memory. Used by
the test-suite and for local runs without a database.

Writers of one user are serialized with a per-user asyncio.Lock; writes
are staged and applied only when the transaction block exits cleanly.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, Dict, Iterable, List, Optional, Set

from progression.exceptions import ValidationError
from progression.models import UnlockRecord, UserProgressionStats

logger = logging.getLogger(__name__)


class _MemoryTransaction:
    """Staged writes for one user"""

    def __init__(self, store: "InMemoryProgressionStore", user_id: str):
        self._store = store
        self._user_id = user_id
        self._new_unlocks: Dict[str, UnlockRecord] = {}
        self._stats: Optional[UserProgressionStats] = None

    def _check_user(self, user_id: str) -> None:
        if user_id != self._user_id:
            raise ValidationError(
                f"Transaction for user {self._user_id} cannot write user {user_id}",
                field="user_id",
                value=user_id,
            )

    async def insert_unlock(
        self, user_id: str, achievement_id: str, unlocked_at: datetime
    ) -> Optional[UnlockRecord]:
        self._check_user(user_id)
        committed = self._store._unlocks.get(user_id, {})
        if achievement_id in committed or achievement_id in self._new_unlocks:
            return None

        record = UnlockRecord(user_id=user_id, achievement_id=achievement_id, unlocked_at=unlocked_at)
        self._new_unlocks[achievement_id] = record
        return record

    async def list_unlocks(self, user_id: str) -> List[UnlockRecord]:
        self._check_user(user_id)
        records = list(self._store._unlocks.get(user_id, {}).values())
        records.extend(self._new_unlocks.values())
        return sorted(records, key=lambda r: (r.unlocked_at, r.achievement_id))

    async def get_stats(self, user_id: str) -> Optional[UserProgressionStats]:
        self._check_user(user_id)
        if self._stats is not None:
            return self._stats
        return self._store._stats.get(user_id)

    async def save_stats(self, stats: UserProgressionStats) -> UserProgressionStats:
        self._check_user(stats.user_id)
        self._stats = stats.model_copy()
        return self._stats

    def _commit(self) -> None:
        if self._new_unlocks:
            self._store._unlocks.setdefault(self._user_id, {}).update(self._new_unlocks)
        if self._stats is not None:
            self._store._stats[self._user_id] = self._stats


class InMemoryProgressionStore:
    """Unlock ledger and stats cache held in dictionaries"""

    def __init__(self):
        self._unlocks: Dict[str, Dict[str, UnlockRecord]] = {}
        self._stats: Dict[str, UserProgressionStats] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def user_transaction(self, user_id: str) -> AsyncIterator[_MemoryTransaction]:
        async with self._lock_for(user_id):
            tx = _MemoryTransaction(self, user_id)
            yield tx
            tx._commit()

    async def get_stats(self, user_id: str) -> Optional[UserProgressionStats]:
        stats = self._stats.get(user_id)
        return stats.model_copy() if stats is not None else None

    async def list_unlocks(self, user_id: str) -> List[UnlockRecord]:
        records = self._unlocks.get(user_id, {}).values()
        return sorted(records, key=lambda r: (r.unlocked_at, r.achievement_id))

    async def list_user_ids(self) -> List[str]:
        return sorted(set(self._stats) | set(self._unlocks))

    def delete_user(self, user_id: str) -> None:
        """Account deletion: drop ledger rows and the cache row"""
        self._unlocks.pop(user_id, None)
        self._stats.pop(user_id, None)
        lock = self._locks.get(user_id)
        if lock is not None and not lock.locked():
            del self._locks[user_id]
        logger.info(f"Deleted progression data for user {user_id}")


class InMemoryApplicationStore:
    """Application store stand-in fed with explicit dates and metrics"""

    def __init__(self):
        self._dates: Dict[str, Set[date]] = {}
        self._metrics: Dict[str, Dict[str, int]] = {}

    def set_activity(
        self,
        user_id: str,
        dates: Iterable[date] = (),
        **metrics: int
    ) -> None:
        self._dates[user_id] = set(dates)
        self._metrics[user_id] = dict(metrics)

    def add_dates(self, user_id: str, *dates: date) -> None:
        self._dates.setdefault(user_id, set()).update(dates)

    def remove_dates(self, user_id: str, *dates: date) -> None:
        self._dates.setdefault(user_id, set()).difference_update(dates)

    def update_metrics(self, user_id: str, **metrics: int) -> None:
        self._metrics.setdefault(user_id, {}).update(metrics)

    async def get_activity_dates(self, user_id: str) -> Set[date]:
        return set(self._dates.get(user_id, set()))

    async def get_activity_metrics(self, user_id: str) -> Dict[str, int]:
        return dict(self._metrics.get(user_id, {}))

    async def list_user_ids(self) -> List[str]:
        return sorted(set(self._dates) | set(self._metrics))
