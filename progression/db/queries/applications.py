"""Read-only queries against the job-application store"""
import logging
from datetime import date
from typing import Dict, List, Set

from progression.db.connection import db
from progression.models import activity as metrics

logger = logging.getLogger(__name__)

FAANG_PATTERNS = ['%google%', '%alphabet%', '%apple%', '%amazon%', '%meta%', '%facebook%', '%netflix%']


async def get_activity_dates(user_id: str) -> Set[date]:
    """Distinct calendar days on which the user submitted an application"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT DISTINCT date_applied::date AS day
                FROM applications
                WHERE user_id = %s AND date_applied IS NOT NULL
                """,
                (user_id,)
            )
            rows = await cur.fetchall()
            return {row['day'] for row in rows}


async def get_activity_metrics(user_id: str) -> Dict[str, int]:
    """
    Aggregate application counts used by achievement requirements

    Returns:
        Mapping of metric name to count; goal progress values are percents
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT
                    COUNT(*) AS application_count,
                    COUNT(*) FILTER (WHERE status IN ('Interview', 'Offer')) AS interview_count,
                    COUNT(*) FILTER (WHERE status = 'Offer') AS offer_count,
                    COUNT(*) FILTER (WHERE job_type = 'Remote') AS remote_count,
                    COUNT(*) FILTER (
                        WHERE jsonb_array_length(COALESCE(attachments, '[]'::jsonb)) > 0
                    ) AS attachments_count,
                    COUNT(*) FILTER (WHERE EXISTS (
                        SELECT 1 FROM jsonb_array_elements(COALESCE(attachments, '[]'::jsonb)) AS att
                        WHERE att->>'name' ILIKE '%%cover%%'
                    )) AS cover_letter_count,
                    COUNT(*) FILTER (WHERE EXISTS (
                        SELECT 1 FROM jsonb_array_elements(COALESCE(attachments, '[]'::jsonb)) AS att
                        WHERE att->>'name' ILIKE '%%resume%%'
                    )) AS resume_count,
                    COUNT(*) FILTER (WHERE btrim(COALESCE(notes, '')) <> '') AS notes_count,
                    COUNT(*) FILTER (WHERE company ILIKE ANY(%s)) AS faang_count,
                    COUNT(*) FILTER (WHERE EXTRACT(HOUR FROM date_applied) < 9) AS early_application_count,
                    COUNT(*) FILTER (WHERE EXTRACT(HOUR FROM date_applied) >= 20) AS late_application_count,
                    COUNT(*) FILTER (WHERE EXTRACT(ISODOW FROM date_applied) IN (6, 7)) AS weekend_application_count,
                    COUNT(*) FILTER (
                        WHERE date_applied >= date_trunc('week', NOW())
                    ) AS applications_this_week,
                    COUNT(*) FILTER (
                        WHERE date_applied >= date_trunc('month', NOW())
                    ) AS applications_this_month
                FROM applications
                WHERE user_id = %s
                """,
                (FAANG_PATTERNS, user_id)
            )
            counts = dict(await cur.fetchone() or {})

            await cur.execute(
                "SELECT weekly_goal, monthly_goal FROM goals WHERE user_id = %s",
                (user_id,)
            )
            goals = await cur.fetchone() or {}

    this_week = counts.pop('applications_this_week', 0) or 0
    this_month = counts.pop('applications_this_month', 0) or 0

    result = {name: int(value or 0) for name, value in counts.items()}
    result[metrics.WEEKLY_GOAL_PROGRESS] = _goal_percent(this_week, goals.get('weekly_goal'))
    result[metrics.MONTHLY_GOAL_PROGRESS] = _goal_percent(this_month, goals.get('monthly_goal'))
    return result


def _goal_percent(done: int, goal) -> int:
    """Percent of a goal reached; 0 when no goal is set"""
    if not goal or goal <= 0:
        return 0
    return int(done * 100 / goal)


async def get_application_user_ids() -> List[str]:
    """Users with at least one application"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute("SELECT DISTINCT user_id FROM applications ORDER BY user_id")
            rows = await cur.fetchall()
            return [row['user_id'] for row in rows]
