"""
Progression Aggregator

Owns the per-user stats cache (total XP, level, unlocked count, streak
fields). The cache must always equal a pure function of the user's unlock
ledger and activity dates:

    total_xp == sum(xp_reward over unlocks)
    achievements_unlocked == len(unlocks)
    current_level == level_for_xp(total_xp)

Incremental updates (apply_unlock, apply_streak) keep it current;
reconcile() rebuilds it from the ledger and is the only repair path.
"""

from typing import Dict, Iterable, Optional
from datetime import date, datetime, timezone
import logging

from progression.db.interfaces import ApplicationStore, ProgressionStore
from progression.exceptions import AggregateDriftDetected, ValidationError
from progression.gamification.catalog import Catalog, get_catalog
from progression.gamification.streak_system import calculate_streak
from progression.gamification.xp_system import level_for_xp
from progression.models import DriftReport, StreakResult, UnlockRecord, UserProgressionStats

logger = logging.getLogger(__name__)

# Fields owned by the ledger; streak fields legitimately age between sweeps
LEDGER_FIELDS = ("total_xp", "achievements_unlocked", "current_level")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def streak_fields(streak: StreakResult) -> Dict[str, object]:
    return {
        "daily_streak": streak.current_streak,
        "longest_streak": streak.longest_streak,
        "streak_start_date": streak.streak_start_date,
        "last_activity_date": streak.last_activity_date,
    }


def ledger_totals(
    user_id: str,
    unlocks: Iterable[UnlockRecord],
    catalog: Catalog
) -> Dict[str, int]:
    """
    Sum rewards and count unlocks straight from ledger rows

    Rows whose achievement is no longer in the catalog carry no reward and
    are left out of both totals.
    """
    total_xp = 0
    count = 0
    for record in unlocks:
        definition = catalog.find(record.achievement_id)
        if definition is None:
            logger.warning(
                f"Ledger row for user {user_id} references unknown achievement "
                f"{record.achievement_id}; skipped"
            )
            continue
        total_xp += definition.xp_reward
        count += 1

    return {
        "total_xp": total_xp,
        "achievements_unlocked": count,
        "current_level": level_for_xp(total_xp),
    }


def derive_stats(
    user_id: str,
    unlocks: Iterable[UnlockRecord],
    streak: StreakResult,
    catalog: Catalog
) -> UserProgressionStats:
    """Build the cache row a user should have, ignoring any existing row"""
    return UserProgressionStats(
        user_id=user_id,
        **ledger_totals(user_id, unlocks, catalog),
        **streak_fields(streak),
    )


class ProgressionAggregator:
    """Incremental and full-recompute maintenance of the stats cache"""

    def __init__(
        self,
        store: ProgressionStore,
        application_store: ApplicationStore,
        catalog: Optional[Catalog] = None
    ):
        self.store = store
        self.application_store = application_store
        self.catalog = catalog or get_catalog()

    # ------------------------------------------------------------------
    # Incremental updates
    # ------------------------------------------------------------------

    async def apply_unlock(self, user_id: str, xp_reward: int, tx=None) -> UserProgressionStats:
        """
        Add one unlock's reward to the cache row

        Only call after the ledger confirmed a genuinely new unlock, inside
        the same user transaction when one is open.

        Args:
            user_id: User ID
            xp_reward: Reward of the unlocked achievement (> 0)
            tx: Open user transaction; a new one is opened if omitted

        Returns:
            Updated cache row
        """
        if xp_reward <= 0:
            raise ValidationError(
                "xp_reward must be positive",
                field="xp_reward",
                value=xp_reward,
                user_id=user_id,
                operation="apply_unlock",
            )

        if tx is None:
            async with self.store.user_transaction(user_id) as tx:
                return await self._apply_unlock(tx, user_id, xp_reward)
        return await self._apply_unlock(tx, user_id, xp_reward)

    async def _apply_unlock(self, tx, user_id: str, xp_reward: int) -> UserProgressionStats:
        current = await tx.get_stats(user_id)

        if current is None:
            # First row for this user: the ledger already holds the new unlock
            totals = ledger_totals(user_id, await tx.list_unlocks(user_id), self.catalog)
            updated = UserProgressionStats(user_id=user_id, last_updated=_now(), **totals)
            old_level = 1
        else:
            total_xp = current.total_xp + xp_reward
            updated = current.model_copy(update={
                "total_xp": total_xp,
                "achievements_unlocked": current.achievements_unlocked + 1,
                "current_level": level_for_xp(total_xp),
                "last_updated": _now(),
            })
            old_level = current.current_level

        saved = await tx.save_stats(updated)

        logger.info(
            f"Applied +{xp_reward} XP to user {user_id}. "
            f"Total: {saved.total_xp} XP, Level: {saved.current_level}, "
            f"Unlocked: {saved.achievements_unlocked}"
        )
        if saved.current_level > old_level:
            logger.info(f"User {user_id} leveled up from {old_level} to {saved.current_level}!")

        return saved

    async def apply_streak(self, user_id: str, streak: StreakResult, tx=None) -> UserProgressionStats:
        """
        Overwrite the four streak fields with a fresh streak computation

        Independent of XP bookkeeping. Creates the row if absent, with
        ledger totals derived in the same transaction.
        """
        if tx is None:
            async with self.store.user_transaction(user_id) as tx:
                return await self._apply_streak(tx, user_id, streak)
        return await self._apply_streak(tx, user_id, streak)

    async def _apply_streak(self, tx, user_id: str, streak: StreakResult) -> UserProgressionStats:
        current = await tx.get_stats(user_id)

        if current is None:
            unlocks = await tx.list_unlocks(user_id)
            updated = derive_stats(user_id, unlocks, streak, self.catalog)
            updated = updated.model_copy(update={"last_updated": _now()})
        else:
            updated = current.model_copy(update={**streak_fields(streak), "last_updated": _now()})

        saved = await tx.save_stats(updated)

        if current is None or current.daily_streak != saved.daily_streak:
            logger.info(
                f"Streak for user {user_id}: {saved.daily_streak} days "
                f"(longest {saved.longest_streak})"
            )
        return saved

    # ------------------------------------------------------------------
    # Full recompute
    # ------------------------------------------------------------------

    async def _activity_dates(self, user_id: str):
        return await self.application_store.get_activity_dates(user_id)

    async def reconcile(self, user_id: str, today: Optional[date] = None) -> UserProgressionStats:
        """
        Rebuild the cache row from the ledger and live activity dates

        Ignores the current cache entirely. Safe to run at any time: the
        only side effect is replacing the row, and running it twice in a
        row leaves the row untouched the second time.
        """
        today = today or date.today()
        streak = calculate_streak(await self._activity_dates(user_id), today)

        async with self.store.user_transaction(user_id) as tx:
            unlocks = await tx.list_unlocks(user_id)
            expected = derive_stats(user_id, unlocks, streak, self.catalog)
            current = await tx.get_stats(user_id)

            if current is not None and current.derived_values() == expected.derived_values():
                logger.debug(f"Reconcile for user {user_id}: cache already consistent")
                return current

            saved = await tx.save_stats(expected.model_copy(update={"last_updated": _now()}))

        if current is None:
            logger.info(f"Reconcile created stats for user {user_id}: {saved.total_xp} XP")
        else:
            changed = [
                f"{name} {getattr(current, name)} -> {getattr(saved, name)}"
                for name in expected.derived_values()
                if getattr(current, name) != getattr(saved, name)
            ]
            logger.info(f"Reconcile rewrote stats for user {user_id}: {'; '.join(changed)}")

        return saved

    async def verify(self, user_id: str) -> DriftReport:
        """
        Compare the cached ledger totals with a fresh sum, without writing

        An absent row is not drift: it is built lazily on first read. Both
        reads run under the user lock so a concurrent unlock cannot land
        between them.
        """
        async with self.store.user_transaction(user_id) as tx:
            cached = await tx.get_stats(user_id)
            unlocks = await tx.list_unlocks(user_id)
        expected = ledger_totals(user_id, unlocks, self.catalog)

        if cached is None:
            return DriftReport(user_id=user_id, cached=None, expected=expected)

        cached_values = {name: getattr(cached, name) for name in LEDGER_FIELDS}
        mismatched = [name for name in LEDGER_FIELDS if cached_values[name] != expected[name]]
        return DriftReport(
            user_id=user_id,
            cached=cached_values,
            expected=expected,
            mismatched_fields=mismatched,
        )

    async def check_invariant(self, user_id: str) -> DriftReport:
        """verify(), raising AggregateDriftDetected when the cache drifted"""
        report = await self.verify(user_id)
        if report.has_drift:
            raise AggregateDriftDetected(report)
        return report
