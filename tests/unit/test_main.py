"""Unit tests for the administrative command line (progression/main.py)"""
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from progression import main
from progression.models import SweepSummary


# ============================================================================
# Argument Parsing
# ============================================================================

def test_parse_reconcile_requires_user():
    parser = main.build_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["reconcile"])

    args = parser.parse_args(["reconcile", "--user", "u1"])
    assert args.command == "reconcile"
    assert args.user_id == "u1"
    assert args.today is None


def test_parse_sweep_today():
    args = main.build_parser().parse_args(["sweep", "--today", "2024-01-10"])

    assert args.command == "sweep"
    assert args.today == date(2024, 1, 10)


def test_parse_invalid_date():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args(["sweep", "--today", "10/01/2024"])


def test_command_required():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args([])


@pytest.mark.parametrize("command", ["init-db", "seed-catalog", "reconcile-all", "verify"])
def test_parse_simple_commands(command):
    assert main.build_parser().parse_args([command]).command == command


# ============================================================================
# Command Execution
# ============================================================================

@pytest.mark.asyncio
async def test_init_db_applies_schema():
    args = main.build_parser().parse_args(["init-db"])

    with patch("progression.main.queries.apply_schema", new=AsyncMock()) as apply_schema:
        assert await main.run_command(args) == 0

    sql = apply_schema.call_args[0][0]
    assert "CREATE TABLE IF NOT EXISTS user_achievements" in sql


@pytest.mark.asyncio
async def test_seed_catalog():
    args = main.build_parser().parse_args(["seed-catalog"])

    with patch("progression.main.queries.sync_catalog", new=AsyncMock(return_value=25)) as sync:
        assert await main.run_command(args) == 0

    sync.assert_awaited_once()


@pytest.mark.asyncio
async def test_sweep_exit_code_reflects_failures():
    args = main.build_parser().parse_args(["sweep", "--today", "2024-01-10"])
    service = MagicMock()
    service.run_sweep = AsyncMock(return_value=SweepSummary(users_processed=2, failed_users=["u2"]))
    container = MagicMock(progression_service=service)

    with patch("progression.main.init_container", return_value=container):
        assert await main.run_command(args) == 1

    service.run_sweep.assert_awaited_once_with(date(2024, 1, 10))


@pytest.mark.asyncio
async def test_main_closes_pool_on_error():
    """Pool is closed even when the command fails"""
    with patch("progression.main.db") as mock_db, \
            patch("progression.main.run_command", new=AsyncMock(side_effect=RuntimeError("boom"))):
        mock_db.init_pool = AsyncMock()
        mock_db.close_pool = AsyncMock()

        with pytest.raises(RuntimeError):
            await main.main(["verify"])

        mock_db.close_pool.assert_awaited_once()
