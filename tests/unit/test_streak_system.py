"""Unit tests for Streak Calculation (progression/gamification/streak_system.py)"""
from datetime import date, datetime, timezone

from progression.gamification.streak_system import calculate_streak


EXAMPLE_DATES = {
    date(2024, 1, 10),
    date(2024, 1, 9),
    date(2024, 1, 8),
    date(2024, 1, 5),
}


# ============================================================================
# Worked Examples
# ============================================================================

def test_streak_active_today():
    """Three consecutive days ending today"""
    result = calculate_streak(EXAMPLE_DATES, date(2024, 1, 10))

    assert result.current_streak == 3
    assert result.longest_streak == 3
    assert result.streak_start_date == date(2024, 1, 8)
    assert result.last_activity_date == date(2024, 1, 10)


def test_streak_broken_after_gap():
    """Last activity two days ago: current streak resets, longest stays"""
    result = calculate_streak(EXAMPLE_DATES, date(2024, 1, 12))

    assert result.current_streak == 0
    assert result.longest_streak == 3
    assert result.streak_start_date is None
    assert result.last_activity_date == date(2024, 1, 10)


def test_streak_alive_when_last_activity_yesterday():
    """Yesterday still counts"""
    result = calculate_streak(EXAMPLE_DATES, date(2024, 1, 11))

    assert result.current_streak == 3
    assert result.streak_start_date == date(2024, 1, 8)


# ============================================================================
# Edge Cases
# ============================================================================

def test_empty_dates():
    """No activity: everything zero/null"""
    result = calculate_streak([], date(2024, 1, 10))

    assert result.current_streak == 0
    assert result.longest_streak == 0
    assert result.streak_start_date is None
    assert result.last_activity_date is None


def test_single_date():
    """A single activity day is a streak of 1"""
    result = calculate_streak([date(2024, 1, 10)], date(2024, 1, 10))

    assert result.current_streak == 1
    assert result.longest_streak == 1
    assert result.streak_start_date == date(2024, 1, 10)


def test_duplicates_counted_once():
    """Several applications on one day count as one day"""
    dates = [date(2024, 1, 10), date(2024, 1, 10), date(2024, 1, 9), date(2024, 1, 9)]
    result = calculate_streak(dates, date(2024, 1, 10))

    assert result.current_streak == 2
    assert result.longest_streak == 2


def test_datetimes_accepted():
    """Datetimes are reduced to their calendar day"""
    dates = [
        datetime(2024, 1, 10, 8, 0, tzinfo=timezone.utc),
        datetime(2024, 1, 10, 21, 0, tzinfo=timezone.utc),
        datetime(2024, 1, 9, 12, 0, tzinfo=timezone.utc),
    ]
    result = calculate_streak(dates, date(2024, 1, 10))

    assert result.current_streak == 2


def test_longest_run_in_history():
    """Longest run found anywhere, not just at the end"""
    dates = [date(2024, 1, d) for d in (1, 2, 3, 4, 5, 9, 10)]
    result = calculate_streak(dates, date(2024, 1, 10))

    assert result.current_streak == 2
    assert result.longest_streak == 5
    assert result.streak_start_date == date(2024, 1, 9)


def test_unordered_input():
    """Input order does not matter"""
    dates = [date(2024, 1, 8), date(2024, 1, 10), date(2024, 1, 9)]
    assert calculate_streak(dates, date(2024, 1, 10)).current_streak == 3


def test_deleting_old_date_shortens_longest():
    """Recomputation sees removed activity"""
    dates = {date(2024, 1, d) for d in (1, 2, 3, 4)}
    before = calculate_streak(dates, date(2024, 1, 20))
    after = calculate_streak(dates - {date(2024, 1, 2)}, date(2024, 1, 20))

    assert before.longest_streak == 4
    assert after.longest_streak == 2


def test_future_dates_count_as_active():
    """Activity dated after today keeps the streak alive"""
    result = calculate_streak([date(2024, 1, 11), date(2024, 1, 10)], date(2024, 1, 10))

    assert result.current_streak == 2
    assert result.last_activity_date == date(2024, 1, 11)
