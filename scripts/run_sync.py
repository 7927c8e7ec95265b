"""
Script to sync collection tables from the source APIs
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.exceptions import SyncException
from core.logging import setup_logging
from sync.service import build_orchestrator, close_orchestrator

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync collection tables from the source APIs")
    parser.add_argument(
        "tables",
        nargs="*",
        help="Tables to sync (default: all configured tables)"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Sync tables even when their interval has not elapsed"
    )
    return parser.parse_args(argv)


async def run_sync(tables, force: bool = False) -> bool:
    """Run the sync and return whether every table succeeded"""
    orchestrator = build_orchestrator(settings)

    try:
        await orchestrator.load_sync_state()

        if not tables:
            result = await orchestrator.sync_all(force)
            for error in result.errors:
                logger.error(error)
            logger.info(
                f"Sync completed: Inserted={result.total_inserted}, "
                f"Updated={result.total_updated}, Success={result.success}"
            )
            return result.success

        success = True
        for table in tables:
            result = await orchestrator.sync_table(table, force)
            logger.info(
                f"Sync completed for {table}: "
                f"Inserted={result.inserted}, Updated={result.updated}, Skipped={result.skipped}"
            )
            success = success and result.success

        return success

    except SyncException as e:
        logger.error(f"Sync pipeline error: {e.message}")
        return False
    finally:
        await close_orchestrator(orchestrator)


def main(argv=None):
    setup_logging()
    args = parse_args(argv)
    ok = asyncio.run(run_sync(args.tables, args.force))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
