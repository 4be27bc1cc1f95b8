"""
XP and Leveling System

One linear curve for every caller: live unlocks, reconciliation and the
read path all go through level_for_xp().

Leveling Curve:
- level = floor(total_xp / 100) + 1
- Level 1 at 0 XP, level 2 at 100 XP, level 141 at 14,000 XP

Level titles change every 5 levels and stop changing after level 46.
"""

from typing import Any, Dict

from progression.exceptions import ValidationError

XP_PER_LEVEL = 100
LEVELS_PER_TITLE = 5

LEVEL_TITLES = (
    "Job Seeker",
    "Application Novice",
    "Career Explorer",
    "Job Hunter",
    "Application Expert",
    "Career Strategist",
    "Job Search Master",
    "Career Champion",
    "Application Legend",
    "Ultimate Job Seeker",
)


def level_for_xp(total_xp: int) -> int:
    """Map accumulated XP to a level. level_for_xp(0) == 1."""
    if total_xp < 0:
        raise ValidationError(
            "XP cannot be negative",
            field="total_xp",
            value=total_xp,
            operation="level_for_xp",
        )
    return total_xp // XP_PER_LEVEL + 1


def level_title(level: int) -> str:
    index = min(max(level - 1, 0) // LEVELS_PER_TITLE, len(LEVEL_TITLES) - 1)
    return LEVEL_TITLES[index]


def calculate_level_from_xp(total_xp: int) -> Dict[str, Any]:
    """
    Calculate level details from total XP

    Returns:
        {
            'current_level': int,
            'level_title': str,
            'xp_in_current_level': int,
            'xp_to_next_level': int,
            'total_xp_for_next_level': int
        }
    """
    level = level_for_xp(total_xp)
    xp_in_current_level = total_xp % XP_PER_LEVEL

    return {
        "current_level": level,
        "level_title": level_title(level),
        "xp_in_current_level": xp_in_current_level,
        "xp_to_next_level": XP_PER_LEVEL - xp_in_current_level,
        "total_xp_for_next_level": level * XP_PER_LEVEL,
    }
