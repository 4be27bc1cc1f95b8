"""
Database queries

Module organization:
- progression.py: unlock ledger, progression cache, catalog seeding
- applications.py: read-only application store metrics and dates
"""

from progression.db.queries.progression import (
    lock_user,
    insert_unlock,
    select_unlocks,
    select_stats,
    upsert_stats,
    get_user_stats,
    get_user_unlocks,
    get_progression_user_ids,
    sync_catalog,
    apply_schema,
)

from progression.db.queries.applications import (
    get_activity_dates,
    get_activity_metrics,
    get_application_user_ids,
)

__all__ = [
    "lock_user",
    "insert_unlock",
    "select_unlocks",
    "select_stats",
    "upsert_stats",
    "get_user_stats",
    "get_user_unlocks",
    "get_progression_user_ids",
    "sync_catalog",
    "apply_schema",
    "get_activity_dates",
    "get_activity_metrics",
    "get_application_user_ids",
]
