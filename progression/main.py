"""Administrative entry point for the progression engine"""
import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from progression.config import validate_config, LOG_LEVEL
from progression.db import queries
from progression.db.connection import db
from progression.exceptions import ProgressionError
from progression.gamification.catalog import get_catalog
from progression.services import init_container

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "db" / "schema.sql"


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="progression-admin",
        description="Manage achievement progression data",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create progression tables")
    commands.add_parser("seed-catalog", help="Upsert the achievement catalog")

    reconcile = commands.add_parser("reconcile", help="Rebuild one user's stats from the ledger")
    reconcile.add_argument("--user", required=True, dest="user_id", help="User ID")
    reconcile.add_argument("--today", type=_parse_date, help="Reference day (YYYY-MM-DD)")

    reconcile_all = commands.add_parser("reconcile-all", help="Rebuild stats for every user")
    reconcile_all.add_argument("--today", type=_parse_date, help="Reference day (YYYY-MM-DD)")

    commands.add_parser("verify", help="Report users whose cached totals drifted from the ledger")

    sweep = commands.add_parser("sweep", help="Run the periodic unlock and reconcile pass")
    sweep.add_argument("--today", type=_parse_date, help="Reference day (YYYY-MM-DD)")

    return parser


async def run_command(args: argparse.Namespace) -> int:
    """Execute one parsed command against the database; returns an exit code"""
    if args.command == "init-db":
        await queries.apply_schema(SCHEMA_PATH.read_text())
        print(f"Applied schema from {SCHEMA_PATH.name}")
        return 0

    if args.command == "seed-catalog":
        count = await queries.sync_catalog(get_catalog())
        print(f"Synced {count} achievements")
        return 0

    service = init_container().progression_service

    if args.command == "reconcile":
        stats = await service.reconcile(args.user_id, args.today)
        print(
            f"User {stats.user_id}: {stats.total_xp} XP, level {stats.current_level}, "
            f"{stats.achievements_unlocked} achievements, streak {stats.daily_streak}"
        )
        return 0

    if args.command == "reconcile-all":
        summary = await service.reconcile_all(args.today)
        print(
            f"Reconciled {summary.users_processed} users "
            f"({summary.users_reconciled} rewritten, {len(summary.failed_users)} failed)"
        )
        return 1 if summary.failed_users else 0

    if args.command == "verify":
        reports = await service.verify_all()
        for report in reports:
            print(f"{report.user_id}: {', '.join(report.mismatched_fields)} "
                  f"cached={report.cached} expected={report.expected}")
        print(f"{len(reports)} users drifted")
        return 1 if reports else 0

    if args.command == "sweep":
        summary = await service.run_sweep(args.today)
        print(summary.model_dump_json(indent=2))
        return 1 if summary.failed_users else 0

    raise ValueError(f"Unknown command: {args.command}")


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        validate_config()

        logger.info("Initializing database connection pool...")
        await db.init_pool()
        return await run_command(args)

    except ProgressionError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    finally:
        await db.close_pool()


def cli() -> None:
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    )
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
