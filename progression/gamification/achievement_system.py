"""
Achievement Eligibility

Decides which catalog entries a user newly qualifies for, given an
activity snapshot. Pure and side-effect free: the same snapshot and
unlocked set always yield the same ids, in catalog order.

Requirements are a small closed set interpreted by one function:
- metric >= threshold
- metric == threshold
- all_of(sub-requirements)

A metric missing from the snapshot reads as 0.
"""

from typing import Collection, Dict, List, Optional
import logging

from progression.gamification.catalog import Catalog, get_catalog
from progression.models import (
    AchievementProgress,
    ActivitySnapshot,
    AllOfRequirement,
    Comparison,
    MetricRequirement,
    StreakResult,
)
from progression.models import activity as metrics

logger = logging.getLogger(__name__)


def build_snapshot(
    user_id: str,
    activity_metrics: Optional[Dict[str, int]],
    streak: Optional[StreakResult] = None,
    achievements_unlocked: int = 0
) -> ActivitySnapshot:
    """
    Merge application-store metrics with the engine's own metrics

    Args:
        user_id: User ID
        activity_metrics: Counts from the application store (may be partial)
        streak: Streak calculator output, if computed
        achievements_unlocked: Size of the user's unlock ledger

    Returns:
        ActivitySnapshot ready for evaluate()
    """
    values = {k: int(v) for k, v in (activity_metrics or {}).items() if v is not None}
    if streak is not None:
        values[metrics.CURRENT_STREAK] = streak.current_streak
        values[metrics.LONGEST_STREAK] = streak.longest_streak
    values[metrics.ACHIEVEMENTS_UNLOCKED] = achievements_unlocked
    return ActivitySnapshot(user_id=user_id, metrics=values)


def requirement_met(requirement, snapshot: ActivitySnapshot) -> bool:
    """Evaluate a requirement against a snapshot"""
    if isinstance(requirement, MetricRequirement):
        value = snapshot.value(requirement.metric)
        if requirement.op == Comparison.AT_LEAST:
            return value >= requirement.threshold
        elif requirement.op == Comparison.EQUALS:
            return value == requirement.threshold
        raise ValueError(f"Unsupported comparison: {requirement.op}")

    elif isinstance(requirement, AllOfRequirement):
        return all(requirement_met(r, snapshot) for r in requirement.requirements)

    raise TypeError(f"Unsupported requirement type: {type(requirement).__name__}")


def requirement_progress(requirement, snapshot: ActivitySnapshot) -> AchievementProgress:
    """
    Progress toward a requirement

    For compound requirements the least complete branch is reported.
    """
    if isinstance(requirement, MetricRequirement):
        value = snapshot.value(requirement.metric)
        required = requirement.threshold

        if requirement.op == Comparison.EQUALS:
            percentage = 100 if value == required else 0
            return AchievementProgress(current=value, required=required, percentage=percentage)

        if required <= 0:
            return AchievementProgress(current=value, required=required, percentage=100)
        percentage = min(100, int(value * 100 / required))
        return AchievementProgress(current=min(value, required), required=required, percentage=percentage)

    elif isinstance(requirement, AllOfRequirement):
        branches = [requirement_progress(r, snapshot) for r in requirement.requirements]
        return min(branches, key=lambda p: p.percentage)

    raise TypeError(f"Unsupported requirement type: {type(requirement).__name__}")


def evaluate(
    snapshot: ActivitySnapshot,
    already_unlocked_ids: Collection[str],
    catalog: Optional[Catalog] = None
) -> List[str]:
    """
    Return ids of achievements the snapshot newly qualifies for

    Args:
        snapshot: User activity metrics
        already_unlocked_ids: Achievements already in the user's ledger
        catalog: Catalog to check (defaults to the shared catalog)

    Returns:
        Achievement ids in catalog order, each at most once
    """
    catalog = catalog or get_catalog()
    unlocked = set(already_unlocked_ids)

    eligible = [
        definition.id
        for definition in catalog
        if definition.id not in unlocked and requirement_met(definition.requirement, snapshot)
    ]

    if eligible:
        logger.debug(f"User {snapshot.user_id} newly eligible for: {', '.join(eligible)}")

    return eligible
