"""
Achievement progression for ApplyTrak

- Catalog of achievement definitions
- XP and leveling (one linear curve)
- Daily application streaks
- Achievement eligibility
- Unlock ledger and the derived stats cache
"""

from progression.gamification.catalog import Catalog, get_catalog
from progression.gamification.xp_system import level_for_xp, calculate_level_from_xp
from progression.gamification.streak_system import calculate_streak
from progression.gamification.achievement_system import build_snapshot, evaluate, requirement_progress
from progression.gamification.aggregator import ProgressionAggregator, derive_stats
from progression.gamification.ledger import UnlockLedger

__all__ = [
    "Catalog",
    "get_catalog",
    "level_for_xp",
    "calculate_level_from_xp",
    "calculate_streak",
    "build_snapshot",
    "evaluate",
    "requirement_progress",
    "ProgressionAggregator",
    "derive_stats",
    "UnlockLedger",
]
