"""
cli.py - Command-line entry point.

    ore-stats --db-path data/ore.db migrate
    ore-stats backfill
    ore-stats refresh-round 1234
    ore-stats status
"""

import argparse
import asyncio
import json
import logging
import sqlite3
import sys
from pathlib import Path

from orestats.backfill import BackfillService
from orestats.storage import MigrationError, StorageManager

logger = logging.getLogger("cli")


async def _migrate(storage: StorageManager, args) -> dict:
    return {"schema_version": storage.schema_version}


async def _backfill(storage: StorageManager, args) -> dict:
    service = BackfillService(storage.stats, storage.deployments)
    return await service.run()


async def _refresh_round(storage: StorageManager, args) -> dict:
    service = BackfillService(storage.stats, storage.deployments)
    pubkeys = await service.refresh_round(args.round_id)
    return {"round_id": args.round_id, "miners": len(pubkeys)}


async def _status(storage: StorageManager, args) -> dict:
    return {
        "db_path": storage.db_path,
        "schema_version": await storage.current_version(),
        "tables": await storage.table_counts(),
    }


COMMANDS = {
    "migrate": _migrate,
    "backfill": _backfill,
    "refresh-round": _refresh_round,
    "status": _status,
}


async def run_command(args) -> dict:
    """Open the database (applying pending migrations) and run one command."""
    if args.db_path != ":memory:":
        Path(args.db_path).parent.mkdir(parents=True, exist_ok=True)
    storage = StorageManager(args.db_path)
    await storage.initialize()
    try:
        return await COMMANDS[args.command](storage, args)
    finally:
        await storage.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ore-stats", description="Round/miner accounting database tools"
    )
    parser.add_argument("--db-path", default="data/ore.db",
                        help="SQLite database path (default: data/ore.db)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: INFO)")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("migrate", help="Apply pending schema migrations")
    sub.add_parser("backfill", help="Rebuild miner_round_stats, then miner_totals")
    refresh = sub.add_parser("refresh-round", help="Recompute stats for one settled round")
    refresh.add_argument("round_id", type=int)
    sub.add_parser("status", help="Show schema version and row counts")
    return parser


def main(argv=None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        result = asyncio.run(run_command(args))
    except MigrationError as e:
        logger.error("%s; database left at v%d", e, e.version - 1)
        return 1
    except sqlite3.Error as e:
        logger.error("%s failed: %s", args.command, e)
        return 1

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
