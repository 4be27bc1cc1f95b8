"""Pydantic models for achievements, activity and derived progression"""
from progression.models.achievement import (
    AchievementCategory,
    AchievementTier,
    AchievementRarity,
    Comparison,
    MetricRequirement,
    AllOfRequirement,
    Requirement,
    AchievementDefinition,
    UnlockRecord,
    AchievementProgress,
    AchievementStatus,
    at_least,
    equals,
    all_of,
)
from progression.models.activity import ActivitySnapshot
from progression.models.progression import (
    UserProgressionStats,
    StreakResult,
    UnlockOutcome,
    UnlockResult,
    ProcessActivityResult,
    DriftReport,
    SweepSummary,
)

__all__ = [
    "AchievementCategory",
    "AchievementTier",
    "AchievementRarity",
    "Comparison",
    "MetricRequirement",
    "AllOfRequirement",
    "Requirement",
    "AchievementDefinition",
    "UnlockRecord",
    "AchievementProgress",
    "AchievementStatus",
    "at_least",
    "equals",
    "all_of",
    "ActivitySnapshot",
    "UserProgressionStats",
    "StreakResult",
    "UnlockOutcome",
    "UnlockResult",
    "ProcessActivityResult",
    "DriftReport",
    "SweepSummary",
]
