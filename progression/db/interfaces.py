"""
Storage seams used by the engine

ProgressionStore holds the unlock ledger and the per-user stats cache.
ApplicationStore is the read-only application collaborator.
"""
from datetime import date, datetime
from typing import AsyncContextManager, Dict, List, Optional, Protocol, Set

from progression.models import UnlockRecord, UserProgressionStats


class UserTransaction(Protocol):
    """Writes for one user, committed together or not at all"""

    async def insert_unlock(
        self, user_id: str, achievement_id: str, unlocked_at: datetime
    ) -> Optional[UnlockRecord]:
        """Insert a ledger row; None if the (user, achievement) pair already exists."""
        ...

    async def list_unlocks(self, user_id: str) -> List[UnlockRecord]:
        ...

    async def get_stats(self, user_id: str) -> Optional[UserProgressionStats]:
        ...

    async def save_stats(self, stats: UserProgressionStats) -> UserProgressionStats:
        ...


class ProgressionStore(Protocol):
    """Unlock ledger plus one-row-per-user cache"""

    def user_transaction(self, user_id: str) -> AsyncContextManager[UserTransaction]:
        """Serialize writers of one user. Never blocks other users."""
        ...

    async def get_stats(self, user_id: str) -> Optional[UserProgressionStats]:
        ...

    async def list_unlocks(self, user_id: str) -> List[UnlockRecord]:
        ...

    async def list_user_ids(self) -> List[str]:
        """Users with a cache row or at least one unlock"""
        ...


class ApplicationStore(Protocol):
    """Read-only view of the job-application store"""

    async def get_activity_dates(self, user_id: str) -> Set[date]:
        ...

    async def get_activity_metrics(self, user_id: str) -> Dict[str, int]:
        ...

    async def list_user_ids(self) -> List[str]:
        """Users with at least one application"""
        ...
