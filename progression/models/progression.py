"""Derived progression models: cache row, streaks, unlock and sweep outcomes"""
from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from progression.models.achievement import AchievementDefinition, UnlockRecord

# Fields that must equal a fresh derivation from ledger + activity dates
DERIVED_FIELDS = (
    "total_xp",
    "achievements_unlocked",
    "current_level",
    "daily_streak",
    "longest_streak",
    "last_activity_date",
    "streak_start_date",
)


class UserProgressionStats(BaseModel):
    """
    Per-user cache of totals derived from the unlock ledger

    Never authoritative: it can be dropped and rebuilt with reconcile().
    """
    user_id: str
    total_xp: int = Field(default=0, ge=0)
    achievements_unlocked: int = Field(default=0, ge=0)
    current_level: int = Field(default=1, ge=1)
    daily_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_activity_date: Optional[date] = None
    streak_start_date: Optional[date] = None
    last_updated: Optional[datetime] = None

    def derived_values(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in DERIVED_FIELDS}


class StreakResult(BaseModel):
    """Output of the streak calculator"""
    model_config = ConfigDict(frozen=True)

    current_streak: int = 0
    longest_streak: int = 0
    streak_start_date: Optional[date] = None
    last_activity_date: Optional[date] = None


class UnlockOutcome(str, Enum):
    UNLOCKED = "unlocked"
    ALREADY_UNLOCKED = "already_unlocked"


class UnlockResult(BaseModel):
    """Outcome of a single ledger unlock attempt"""
    user_id: str
    achievement_id: str
    outcome: UnlockOutcome
    record: Optional[UnlockRecord] = None
    # Cache row after the increment; None when nothing changed
    stats: Optional[UserProgressionStats] = None

    @property
    def unlocked(self) -> bool:
        return self.outcome == UnlockOutcome.UNLOCKED


class ProcessActivityResult(BaseModel):
    """What process_activity() did for one user"""
    user_id: str
    unlocked: List[AchievementDefinition] = Field(default_factory=list)
    streak: StreakResult
    stats: UserProgressionStats

    @property
    def xp_awarded(self) -> int:
        return sum(a.xp_reward for a in self.unlocked)


class DriftReport(BaseModel):
    """Comparison of a cache row against a fresh derivation"""
    user_id: str
    cached: Optional[Dict[str, Any]] = None  # None when the row is absent
    expected: Dict[str, Any]
    mismatched_fields: List[str] = Field(default_factory=list)

    @property
    def has_drift(self) -> bool:
        return bool(self.mismatched_fields)


class SweepSummary(BaseModel):
    """Counters reported by reconcile_all() and run_sweep()"""
    users_processed: int = 0
    users_reconciled: int = 0
    drifted_users: List[str] = Field(default_factory=list)
    failed_users: List[str] = Field(default_factory=list)
    achievements_unlocked: int = 0
