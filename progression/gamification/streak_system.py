"""
Daily Application Streak Calculation

A streak is a run of consecutive calendar days with at least one
qualifying activity (a submitted application).

Streaks are always recomputed from the full set of activity dates, never
patched incrementally: deleting an old application can shorten a streak,
and only a full recomputation sees that.

Rules:
- current streak: the run ending at the most recent activity date, counted
  only while that date is today or yesterday; otherwise 0
- longest streak: the longest run anywhere in the history
- duplicate dates (several applications on one day) count once
"""

from typing import Iterable, List, Union
from datetime import date, datetime, timedelta
import logging

from progression.models import StreakResult

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _distinct_days_desc(activity_dates: Iterable[Union[date, datetime]]) -> List[date]:
    return sorted({_as_date(d) for d in activity_dates}, reverse=True)


def calculate_streak(
    activity_dates: Iterable[Union[date, datetime]],
    today: date
) -> StreakResult:
    """
    Compute current and longest streak from a user's activity dates

    Args:
        activity_dates: Dates (or datetimes) of qualifying activity, any order
        today: The caller's notion of "today"

    Returns:
        StreakResult with current/longest streak, start of the current
        streak (None when it is 0) and the most recent activity date
    """
    days = _distinct_days_desc(activity_dates)
    if not days:
        return StreakResult()

    last_activity = days[0]

    # Longest run: single pass comparing each day to previous_day - 1
    longest = run = 1
    for previous, day in zip(days, days[1:]):
        if day == previous - ONE_DAY:
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    # Current run only counts if it is still alive (today or yesterday)
    if (today - last_activity).days > 1:
        current = 0
        streak_start = None
    else:
        current = 1
        streak_start = last_activity
        for previous, day in zip(days, days[1:]):
            if day != previous - ONE_DAY:
                break
            current += 1
            streak_start = day

    logger.debug(
        f"Streak computed over {len(days)} days: current={current}, "
        f"longest={longest}, last={last_activity}"
    )

    return StreakResult(
        current_streak=current,
        longest_streak=longest,
        streak_start_date=streak_start,
        last_activity_date=last_activity,
    )
