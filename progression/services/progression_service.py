"""
ProgressionService - Progression Business Logic

Entry points for the request-handling layer and the periodic sweep.
Wires the streak calculator, eligibility evaluator, unlock ledger and
progression aggregator together around two stores:
- ProgressionStore: unlock ledger + stats cache (owned by this engine)
- ApplicationStore: job applications (read-only collaborator)
"""

import asyncio
import logging
from collections import Counter
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from progression import config
from progression.db.interfaces import ApplicationStore, ProgressionStore
from progression.exceptions import AggregateDriftDetected
from progression.gamification.achievement_system import build_snapshot, evaluate, requirement_progress
from progression.gamification.aggregator import ProgressionAggregator
from progression.gamification.catalog import Catalog, get_catalog
from progression.gamification.ledger import UnlockLedger
from progression.gamification.streak_system import calculate_streak
from progression.gamification.xp_system import calculate_level_from_xp
from progression.models import (
    AchievementCategory,
    AchievementDefinition,
    AchievementStatus,
    DriftReport,
    ProcessActivityResult,
    SweepSummary,
    UserProgressionStats,
)
from progression.resilience import retry_with_backoff

logger = logging.getLogger(__name__)


class ProgressionService:
    """
    Service for achievement progression.

    Responsibilities:
    - Streak recomputation and achievement unlocking on activity
    - Read paths for stats and achievement status
    - Reconciliation, drift verification and the periodic sweep
    """

    def __init__(
        self,
        store: ProgressionStore,
        application_store: ApplicationStore,
        catalog: Optional[Catalog] = None
    ):
        """
        Initialize ProgressionService.

        Args:
            store: Ledger and cache store
            application_store: Read-only job application collaborator
            catalog: Achievement catalog (defaults to the shared catalog)
        """
        self.store = store
        self.application_store = application_store
        self.catalog = catalog or get_catalog()
        self.aggregator = ProgressionAggregator(store, application_store, self.catalog)
        self.ledger = UnlockLedger(store, self.aggregator, self.catalog)
        logger.debug("ProgressionService initialized")

    # ==========================================
    # Activity processing
    # ==========================================

    async def process_activity(self, user_id: str, today: Optional[date] = None) -> ProcessActivityResult:
        """
        Recompute the streak, then unlock everything the user now qualifies for.

        Safe to call any number of times: unlocks are idempotent and the
        streak is recomputed from scratch.

        Args:
            user_id: User ID
            today: Reference day for the streak (defaults to date.today())

        Returns:
            Achievements unlocked by this call (possibly empty) and the
            updated stats
        """
        today = today or date.today()

        activity_dates = await self.application_store.get_activity_dates(user_id)
        activity_metrics = await self.application_store.get_activity_metrics(user_id)

        streak = calculate_streak(activity_dates, today)
        stats = await retry_with_backoff(self.aggregator.apply_streak, user_id, streak)

        unlocked_ids = set(await self.ledger.unlocked_ids(user_id))
        newly_unlocked: List[AchievementDefinition] = []

        # Unlocks can make further achievements eligible (achievements_unlocked
        # is itself a metric); each pass unlocks at least one, so the loop
        # is bounded by the catalog size
        for _ in range(len(self.catalog) + 1):
            snapshot = build_snapshot(
                user_id,
                activity_metrics,
                streak=streak,
                achievements_unlocked=sum(1 for a in unlocked_ids if a in self.catalog),
            )
            eligible = evaluate(snapshot, unlocked_ids, self.catalog)
            if not eligible:
                break

            for achievement_id in eligible:
                result = await retry_with_backoff(self.ledger.unlock, user_id, achievement_id)
                unlocked_ids.add(achievement_id)
                if result.unlocked:
                    newly_unlocked.append(self.catalog.get(achievement_id))
                    stats = result.stats

        if newly_unlocked:
            logger.info(
                f"process_activity for user {user_id}: unlocked "
                f"{', '.join(a.id for a in newly_unlocked)}"
            )

        return ProcessActivityResult(
            user_id=user_id,
            unlocked=newly_unlocked,
            streak=streak,
            stats=stats,
        )

    # ==========================================
    # Read paths
    # ==========================================

    async def get_stats(self, user_id: str) -> UserProgressionStats:
        """Current cache row, built by reconciliation if it does not exist yet"""
        stats = await self.store.get_stats(user_id)
        if stats is None:
            logger.debug(f"No stats row for user {user_id}; reconciling")
            stats = await retry_with_backoff(self.aggregator.reconcile, user_id)
        return stats

    async def get_level_info(self, user_id: str) -> Dict[str, Any]:
        stats = await self.get_stats(user_id)
        return calculate_level_from_xp(stats.total_xp)

    async def get_achievements(
        self,
        user_id: str,
        category: Optional[AchievementCategory] = None,
        include_progress: bool = False,
        today: Optional[date] = None
    ) -> List[AchievementStatus]:
        """
        Catalog joined with the user's unlock ledger

        Args:
            user_id: User ID
            category: Only this category
            include_progress: Compute progress toward locked achievements
                (reads the application store)
            today: Reference day for the streak used in progress

        Returns:
            One AchievementStatus per catalog entry, in display order
        """
        unlocks = {r.achievement_id: r for r in await self.store.list_unlocks(user_id)}

        snapshot = None
        if include_progress:
            activity_dates = await self.application_store.get_activity_dates(user_id)
            activity_metrics = await self.application_store.get_activity_metrics(user_id)
            snapshot = build_snapshot(
                user_id,
                activity_metrics,
                streak=calculate_streak(activity_dates, today or date.today()),
                achievements_unlocked=sum(1 for a in unlocks if a in self.catalog),
            )

        statuses = []
        for definition in self.catalog.list(category):
            record = unlocks.get(definition.id)
            progress = None
            if snapshot is not None and record is None:
                progress = requirement_progress(definition.requirement, snapshot)
            statuses.append(AchievementStatus(
                definition=definition,
                unlocked=record is not None,
                unlocked_at=record.unlocked_at if record else None,
                progress=progress,
            ))
        return statuses

    async def get_achievement_summary(self, user_id: str) -> Dict[str, Any]:
        """
        Aggregate view of a user's achievements

        Returns:
            {
                'total_achievements': int,
                'unlocked_count': int,
                'completion_percentage': float,
                'total_xp_earned': int,
                'achievements_by_category': {category: {'total': int, 'unlocked': int}},
                'recent_unlocks': [achievement_id, ...]  # newest first, max 5
            }
        """
        unlocks = [r for r in await self.store.list_unlocks(user_id) if r.achievement_id in self.catalog]

        totals = Counter(d.category.value for d in self.catalog)
        unlocked = Counter(self.catalog.get(r.achievement_id).category.value for r in unlocks)
        recent = sorted(unlocks, key=lambda r: r.unlocked_at, reverse=True)[:5]

        total = len(self.catalog)
        return {
            'total_achievements': total,
            'unlocked_count': len(unlocks),
            'completion_percentage': round(len(unlocks) * 100 / total, 1) if total else 0.0,
            'total_xp_earned': sum(self.catalog.get(r.achievement_id).xp_reward for r in unlocks),
            'achievements_by_category': {
                category.value: {
                    'total': totals.get(category.value, 0),
                    'unlocked': unlocked.get(category.value, 0),
                }
                for category in AchievementCategory
            },
            'recent_unlocks': [r.achievement_id for r in recent],
        }

    # ==========================================
    # Repair and verification
    # ==========================================

    async def reconcile(self, user_id: str, today: Optional[date] = None) -> UserProgressionStats:
        return await retry_with_backoff(self.aggregator.reconcile, user_id, today)

    async def verify(self, user_id: str) -> DriftReport:
        return await self.aggregator.verify(user_id)

    async def _known_user_ids(self) -> List[str]:
        engine_users = await self.store.list_user_ids()
        application_users = await self.application_store.list_user_ids()
        return sorted(set(engine_users) | set(application_users))

    async def _for_each_user(
        self,
        user_ids: Iterable[str],
        func: Callable[[str], Awaitable[Any]],
        summary: SweepSummary,
        phase: str
    ) -> List[Any]:
        """Run func per user with bounded concurrency; failures are recorded, not raised"""
        semaphore = asyncio.Semaphore(config.SWEEP_CONCURRENCY)

        async def run(user_id: str):
            async with semaphore:
                try:
                    return await func(user_id)
                except Exception as e:
                    logger.error(f"{phase} failed for user {user_id}: {e}", exc_info=True)
                    if user_id not in summary.failed_users:
                        summary.failed_users.append(user_id)
                    return None

        return await asyncio.gather(*(run(user_id) for user_id in user_ids))

    async def _reconcile_and_count(self, user_id: str, today: date, summary: SweepSummary) -> None:
        before = await self.store.get_stats(user_id)
        after = await self.reconcile(user_id, today)
        if before is None or before.derived_values() != after.derived_values():
            summary.users_reconciled += 1

    async def reconcile_all(self, today: Optional[date] = None) -> SweepSummary:
        """Reconcile every user known to either store"""
        today = today or date.today()
        summary = SweepSummary()

        user_ids = await self._known_user_ids()
        summary.users_processed = len(user_ids)

        await self._for_each_user(
            user_ids,
            lambda user_id: self._reconcile_and_count(user_id, today, summary),
            summary,
            "reconcile",
        )

        logger.info(
            f"reconcile_all: {summary.users_processed} users, "
            f"{summary.users_reconciled} rewritten, {len(summary.failed_users)} failed"
        )
        return summary

    async def verify_all(self) -> List[DriftReport]:
        """
        Check the cache of every user with progression data

        Returns:
            Reports for drifted users only; each one is also raised and
            logged as AggregateDriftDetected
        """
        drifted = []
        for user_id in await self.store.list_user_ids():
            try:
                await self.aggregator.check_invariant(user_id)
            except AggregateDriftDetected as e:
                drifted.append(e.report)

        logger.info(f"verify_all: {len(drifted)} users drifted")
        return drifted

    async def run_sweep(self, today: Optional[date] = None) -> SweepSummary:
        """
        Periodic out-of-band pass.

        1. process_activity for every user with applications
        2. verify every user, logging drift, then reconcile everyone so
           streaks of inactive users are refreshed and drift is repaired

        A failure for one user is logged and counted; the sweep continues.
        """
        today = today or date.today()
        summary = SweepSummary()

        application_users = await self.application_store.list_user_ids()
        results = await self._for_each_user(
            application_users,
            lambda user_id: self.process_activity(user_id, today),
            summary,
            "process_activity",
        )
        summary.achievements_unlocked = sum(len(r.unlocked) for r in results if r is not None)

        async def verify_and_reconcile(user_id: str) -> None:
            try:
                await self.aggregator.check_invariant(user_id)
            except AggregateDriftDetected:
                summary.drifted_users.append(user_id)
            await self._reconcile_and_count(user_id, today, summary)

        engine_users = await self.store.list_user_ids()
        await self._for_each_user(engine_users, verify_and_reconcile, summary, "reconcile")

        summary.users_processed = len(set(application_users) | set(engine_users))
        summary.drifted_users.sort()
        summary.failed_users.sort()

        logger.info(
            f"Sweep for {today}: {summary.users_processed} users, "
            f"{summary.achievements_unlocked} achievements unlocked, "
            f"{summary.users_reconciled} reconciled, {len(summary.drifted_users)} drifted, "
            f"{len(summary.failed_users)} failed"
        )
        return summary
