"""Achievement models for the progression engine"""
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AchievementCategory(str, Enum):
    """Achievement categories"""
    MILESTONE = "milestone"
    STREAK = "streak"
    GOAL = "goal"
    QUALITY = "quality"
    TIME = "time"
    SPECIAL = "special"


class AchievementTier(str, Enum):
    """Achievement tiers, ordered from easiest to hardest"""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)


class AchievementRarity(str, Enum):
    """How rare an achievement is, ordered from common to legendary"""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return _RARITY_ORDER.index(self)


_TIER_ORDER = list(AchievementTier)
_RARITY_ORDER = list(AchievementRarity)


# ==========================================
# Requirements
# ==========================================

class Comparison(str, Enum):
    """Comparison operator of a metric requirement"""
    AT_LEAST = ">="
    EQUALS = "=="


class MetricRequirement(BaseModel):
    """`metric <op> threshold`, e.g. application_count >= 50"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["metric"] = "metric"
    metric: str = Field(min_length=1)
    op: Comparison = Comparison.AT_LEAST
    threshold: int = Field(ge=0)

    def __str__(self) -> str:
        return f"{self.metric} {self.op.value} {self.threshold}"


class AllOfRequirement(BaseModel):
    """Compound requirement: every sub-requirement must hold"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["all_of"] = "all_of"
    requirements: tuple["Requirement", ...] = Field(min_length=1)

    def __str__(self) -> str:
        return " AND ".join(f"({r})" for r in self.requirements)


Requirement = Annotated[
    Union[MetricRequirement, AllOfRequirement],
    Field(discriminator="kind"),
]

AllOfRequirement.model_rebuild()


def at_least(metric: str, threshold: int) -> MetricRequirement:
    return MetricRequirement(metric=metric, op=Comparison.AT_LEAST, threshold=threshold)


def equals(metric: str, threshold: int) -> MetricRequirement:
    return MetricRequirement(metric=metric, op=Comparison.EQUALS, threshold=threshold)


def all_of(*requirements) -> AllOfRequirement:
    return AllOfRequirement(requirements=tuple(requirements))


# ==========================================
# Definitions and unlocks
# ==========================================

class AchievementDefinition(BaseModel):
    """Achievement definition. Seeded at deploy time, never mutated."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    description: str
    icon: str = "Trophy"
    category: AchievementCategory
    tier: AchievementTier
    rarity: AchievementRarity
    xp_reward: int = Field(gt=0)
    requirement: Requirement
    sort_order: int = 0

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Ids are stable snake_case keys"""
        if v != v.strip() or " " in v:
            raise ValueError(f"Invalid achievement id: '{v}'")
        return v


class UnlockRecord(BaseModel):
    """One row of the unlock ledger"""
    model_config = ConfigDict(frozen=True)

    user_id: str
    achievement_id: str
    unlocked_at: datetime


class AchievementProgress(BaseModel):
    """Progress toward a locked achievement"""
    current: int
    required: int
    percentage: int

    @property
    def description(self) -> str:
        return f"{self.current}/{self.required}"


class AchievementStatus(BaseModel):
    """Catalog entry joined with the user's unlock state"""
    definition: AchievementDefinition
    unlocked: bool
    unlocked_at: Optional[datetime] = None
    progress: Optional[AchievementProgress] = None
