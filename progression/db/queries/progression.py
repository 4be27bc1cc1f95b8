"""Unlock ledger and progression cache queries"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from progression.db.connection import db
from progression.models import AchievementDefinition, UnlockRecord, UserProgressionStats

logger = logging.getLogger(__name__)

STATS_COLUMNS = """
    user_id, total_xp, achievements_unlocked, current_level, daily_streak,
    longest_streak, last_activity_date, streak_start_date, last_updated
"""


# ==========================================
# Transaction-scoped (take an open cursor)
# ==========================================

async def lock_user(cur, user_id: str) -> None:
    """
    Serialize writers of one user until the transaction ends

    Advisory lock on a hash of the user id: per-user, never table-wide.
    """
    await cur.execute(
        "SELECT pg_advisory_xact_lock(hashtextextended(%s, 0))",
        (user_id,)
    )


async def insert_unlock(
    cur,
    user_id: str,
    achievement_id: str,
    unlocked_at: datetime
) -> Optional[UnlockRecord]:
    """
    Insert a ledger row

    Returns:
        The new UnlockRecord, or None if the pair was already unlocked
    """
    await cur.execute(
        """
        INSERT INTO user_achievements (user_id, achievement_id, unlocked_at)
        VALUES (%s, %s, %s)
        ON CONFLICT (user_id, achievement_id) DO NOTHING
        RETURNING user_id, achievement_id, unlocked_at
        """,
        (user_id, achievement_id, unlocked_at)
    )
    row = await cur.fetchone()
    return UnlockRecord(**row) if row else None


async def select_unlocks(cur, user_id: str) -> List[UnlockRecord]:
    await cur.execute(
        """
        SELECT user_id, achievement_id, unlocked_at
        FROM user_achievements
        WHERE user_id = %s
        ORDER BY unlocked_at, achievement_id
        """,
        (user_id,)
    )
    rows = await cur.fetchall()
    return [UnlockRecord(**row) for row in rows]


async def select_stats(cur, user_id: str) -> Optional[UserProgressionStats]:
    await cur.execute(
        f"SELECT {STATS_COLUMNS} FROM user_progression_stats WHERE user_id = %s",
        (user_id,)
    )
    row = await cur.fetchone()
    return UserProgressionStats(**row) if row else None


async def upsert_stats(cur, stats: UserProgressionStats) -> UserProgressionStats:
    """Write the whole cache row, creating it if absent"""
    await cur.execute(
        f"""
        INSERT INTO user_progression_stats ({STATS_COLUMNS})
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, NOW()))
        ON CONFLICT (user_id) DO UPDATE SET
            total_xp = EXCLUDED.total_xp,
            achievements_unlocked = EXCLUDED.achievements_unlocked,
            current_level = EXCLUDED.current_level,
            daily_streak = EXCLUDED.daily_streak,
            longest_streak = EXCLUDED.longest_streak,
            last_activity_date = EXCLUDED.last_activity_date,
            streak_start_date = EXCLUDED.streak_start_date,
            last_updated = EXCLUDED.last_updated
        RETURNING {STATS_COLUMNS}
        """,
        (
            stats.user_id,
            stats.total_xp,
            stats.achievements_unlocked,
            stats.current_level,
            stats.daily_streak,
            stats.longest_streak,
            stats.last_activity_date,
            stats.streak_start_date,
            stats.last_updated,
        )
    )
    row = await cur.fetchone()
    return UserProgressionStats(**row)


# ==========================================
# Standalone reads
# ==========================================

async def get_user_stats(user_id: str) -> Optional[UserProgressionStats]:
    """Get a user's cache row, or None if it was never created"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            return await select_stats(cur, user_id)


async def get_user_unlocks(user_id: str) -> List[UnlockRecord]:
    """Get a user's ledger rows, oldest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            return await select_unlocks(cur, user_id)


async def get_progression_user_ids() -> List[str]:
    """Users with a cache row or at least one unlock"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT user_id FROM user_progression_stats
                UNION
                SELECT user_id FROM user_achievements
                ORDER BY user_id
                """
            )
            rows = await cur.fetchall()
            return [row['user_id'] for row in rows]


# ==========================================
# Catalog seeding
# ==========================================

async def sync_catalog(definitions: Iterable[AchievementDefinition]) -> int:
    """
    Upsert catalog definitions into the achievements table

    Returns:
        Number of definitions written
    """
    count = 0
    async with db.connection() as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                for definition in definitions:
                    await cur.execute(
                        """
                        INSERT INTO achievements
                            (id, name, description, icon, category, tier, rarity,
                             xp_reward, requirement, sort_order)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s)
                        ON CONFLICT (id) DO UPDATE SET
                            name = EXCLUDED.name,
                            description = EXCLUDED.description,
                            icon = EXCLUDED.icon,
                            category = EXCLUDED.category,
                            tier = EXCLUDED.tier,
                            rarity = EXCLUDED.rarity,
                            xp_reward = EXCLUDED.xp_reward,
                            requirement = EXCLUDED.requirement,
                            sort_order = EXCLUDED.sort_order,
                            updated_at = NOW()
                        """,
                        (
                            definition.id,
                            definition.name,
                            definition.description,
                            definition.icon,
                            definition.category.value,
                            definition.tier.value,
                            definition.rarity.value,
                            definition.xp_reward,
                            definition.requirement.model_dump_json(),
                            definition.sort_order,
                        )
                    )
                    count += 1

    logger.info(f"Synced {count} achievement definitions")
    return count


async def apply_schema(sql: str) -> None:
    """Run schema DDL in one transaction"""
    async with db.connection() as conn:
        async with conn.transaction():
            await conn.execute(sql)
