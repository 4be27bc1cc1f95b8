"""Global test fixtures and utilities for progression tests"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import date, timedelta

from progression.db.memory_store import InMemoryApplicationStore, InMemoryProgressionStore
from progression.gamification.aggregator import ProgressionAggregator
from progression.gamification.catalog import Catalog, get_catalog
from progression.gamification.ledger import UnlockLedger
from progression.models import (
    AchievementCategory,
    AchievementDefinition,
    AchievementRarity,
    AchievementTier,
    at_least,
)
from progression.services.progression_service import ProgressionService


# ============================================================================
# User Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def today():
    """Fixed reference day for streak calculations"""
    return date(2024, 1, 10)


def consecutive_days(end: date, count: int):
    """`count` consecutive days ending at `end`"""
    return [end - timedelta(days=i) for i in range(count)]


@pytest.fixture
def days_ending():
    """Factory: days_ending(end, count) -> list of consecutive dates"""
    return consecutive_days


# ============================================================================
# Catalog Fixtures
# ============================================================================

def make_definition(achievement_id: str, xp_reward: int = 10, requirement=None, **fields):
    """Build an AchievementDefinition with sensible defaults"""
    defaults = dict(
        name=achievement_id.replace("_", " ").title(),
        description=f"Test achievement {achievement_id}",
        category=AchievementCategory.MILESTONE,
        tier=AchievementTier.BRONZE,
        rarity=AchievementRarity.COMMON,
    )
    defaults.update(fields)
    return AchievementDefinition(
        id=achievement_id,
        xp_reward=xp_reward,
        requirement=requirement or at_least("application_count", 1),
        **defaults,
    )


@pytest.fixture
def definition_factory():
    """Factory for test AchievementDefinitions"""
    return make_definition


@pytest.fixture
def catalog():
    """The production catalog"""
    return get_catalog()


@pytest.fixture
def small_catalog():
    """Three-entry catalog with easy numbers"""
    return Catalog([
        make_definition("first", xp_reward=10, requirement=at_least("application_count", 1), sort_order=1),
        make_definition("tenth", xp_reward=40, requirement=at_least("application_count", 10), sort_order=2),
        make_definition("big", xp_reward=60, requirement=at_least("application_count", 100), sort_order=3),
    ])


# ============================================================================
# Store & Service Fixtures
# ============================================================================

@pytest.fixture
def progression_store():
    """Empty in-memory ledger and cache"""
    return InMemoryProgressionStore()


@pytest.fixture
def application_store():
    """Empty in-memory application collaborator"""
    return InMemoryApplicationStore()


@pytest.fixture
def aggregator(progression_store, application_store, catalog):
    return ProgressionAggregator(progression_store, application_store, catalog)


@pytest.fixture
def ledger(progression_store, aggregator, catalog):
    return UnlockLedger(progression_store, aggregator, catalog)


@pytest.fixture
def service(progression_store, application_store, catalog):
    return ProgressionService(progression_store, application_store, catalog)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_db_cursor():
    """Mock database cursor with standard query results"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    return cursor


@pytest.fixture
def mock_db_connection(mock_db_cursor):
    """Mock pooled connection whose cursor() and transaction() are async context managers"""
    conn = MagicMock()
    conn.cursor.return_value.__aenter__.return_value = mock_db_cursor
    conn.cursor.return_value.__aexit__.return_value = False
    conn.transaction.return_value.__aenter__.return_value = None
    conn.transaction.return_value.__aexit__.return_value = False
    conn.execute = AsyncMock()
    return conn


@pytest.fixture
def patched_db(mock_db_connection, monkeypatch):
    """Route db.connection() to the mock connection"""
    from progression.db.connection import db

    connection = MagicMock()
    connection.return_value.__aenter__.return_value = mock_db_connection
    connection.return_value.__aexit__.return_value = False
    monkeypatch.setattr(db, "connection", connection)
    return connection
