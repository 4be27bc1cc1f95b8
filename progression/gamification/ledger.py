"""
Unlock Ledger

Append-only, authoritative record of which achievements a user unlocked.
At most one record per (user, achievement): the store's insert is atomic
and reports whether a row was actually created, and the aggregator is
only incremented when it was.
"""

from typing import Iterable, List, Optional
from datetime import datetime, timezone
import logging

from progression.db.interfaces import ProgressionStore
from progression.gamification.aggregator import ProgressionAggregator
from progression.gamification.catalog import Catalog, get_catalog
from progression.models import UnlockOutcome, UnlockRecord, UnlockResult

logger = logging.getLogger(__name__)


class UnlockLedger:
    """Idempotent unlocks backed by a ProgressionStore"""

    def __init__(
        self,
        store: ProgressionStore,
        aggregator: ProgressionAggregator,
        catalog: Optional[Catalog] = None
    ):
        self.store = store
        self.aggregator = aggregator
        self.catalog = catalog or get_catalog()

    async def unlock(
        self,
        user_id: str,
        achievement_id: str,
        unlocked_at: Optional[datetime] = None
    ) -> UnlockResult:
        """
        Unlock an achievement for a user

        Safe to retry: a second call for the same pair returns
        ALREADY_UNLOCKED and changes nothing.

        Args:
            user_id: User ID
            achievement_id: Catalog id
            unlocked_at: Unlock timestamp (defaults to now, UTC)

        Returns:
            UnlockResult with the new cache row when a row was created

        Raises:
            UnknownAchievement: id not in the catalog (no state change)
        """
        definition = self.catalog.get(achievement_id)
        unlocked_at = unlocked_at or datetime.now(timezone.utc)

        async with self.store.user_transaction(user_id) as tx:
            record = await tx.insert_unlock(user_id, achievement_id, unlocked_at)
            if record is None:
                logger.debug(f"User {user_id} already unlocked {achievement_id}")
                return UnlockResult(
                    user_id=user_id,
                    achievement_id=achievement_id,
                    outcome=UnlockOutcome.ALREADY_UNLOCKED,
                )

            stats = await self.aggregator.apply_unlock(user_id, definition.xp_reward, tx=tx)

        logger.info(
            f"User {user_id} unlocked achievement: {definition.name} "
            f"(+{definition.xp_reward} XP)"
        )
        return UnlockResult(
            user_id=user_id,
            achievement_id=achievement_id,
            outcome=UnlockOutcome.UNLOCKED,
            record=record,
            stats=stats,
        )

    async def unlock_many(
        self,
        user_id: str,
        achievement_ids: Iterable[str],
        unlocked_at: Optional[datetime] = None
    ) -> List[UnlockResult]:
        """Unlock several achievements in order, one transaction each"""
        return [
            await self.unlock(user_id, achievement_id, unlocked_at)
            for achievement_id in achievement_ids
        ]

    async def list_unlocks(self, user_id: str) -> List[UnlockRecord]:
        return await self.store.list_unlocks(user_id)

    async def unlocked_ids(self, user_id: str) -> List[str]:
        return [record.achievement_id for record in await self.list_unlocks(user_id)]
