"""
Achievement Catalog

Static, read-only lookup of achievement definitions. Validated once at
construction: ids must be unique and every reward positive.
"""

from typing import Dict, Iterable, List, Optional
import logging

from progression.exceptions import CatalogError, UnknownAchievement
from progression.models import AchievementCategory, AchievementDefinition

logger = logging.getLogger(__name__)


class Catalog:
    """Immutable collection of achievement definitions keyed by id"""

    def __init__(self, definitions: Iterable[AchievementDefinition]):
        entries: Dict[str, AchievementDefinition] = {}
        for definition in definitions:
            if definition.id in entries:
                raise CatalogError(
                    f"Duplicate achievement id: {definition.id}",
                    achievement_id=definition.id,
                )
            if definition.xp_reward <= 0:
                raise CatalogError(
                    f"Achievement {definition.id} has non-positive xp_reward {definition.xp_reward}",
                    achievement_id=definition.id,
                )
            entries[definition.id] = definition

        self._entries = dict(
            sorted(entries.items(), key=lambda item: (item[1].sort_order, item[0]))
        )
        logger.debug(f"Catalog loaded with {len(self._entries)} achievements")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, achievement_id: str) -> bool:
        return achievement_id in self._entries

    def __iter__(self):
        return iter(self._entries.values())

    def get(self, achievement_id: str) -> AchievementDefinition:
        """Look up one definition; raises UnknownAchievement on a miss"""
        try:
            return self._entries[achievement_id]
        except KeyError:
            raise UnknownAchievement(achievement_id, operation="catalog.get") from None

    def find(self, achievement_id: str) -> Optional[AchievementDefinition]:
        """Like get() but returns None instead of raising"""
        return self._entries.get(achievement_id)

    def list(self, category: Optional[AchievementCategory] = None) -> List[AchievementDefinition]:
        """All definitions in display order, optionally for one category"""
        if category is None:
            return list(self._entries.values())
        category = AchievementCategory(category)
        return [d for d in self._entries.values() if d.category == category]

    def ids(self) -> List[str]:
        return list(self._entries)


_default_catalog: Optional[Catalog] = None


def get_catalog() -> Catalog:
    """Shared catalog built from the seed definitions (loaded once)"""
    global _default_catalog
    if _default_catalog is None:
        from progression.gamification.achievement_definitions import ACHIEVEMENTS
        _default_catalog = Catalog(ACHIEVEMENTS)
    return _default_catalog
