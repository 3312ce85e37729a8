"""
Daily Sync Script

Full catalog refresh from the TMDB daily id exports, for cron or manual
runs outside the API process.

Usage:
    python -m scripts.daily_sync --type movies --date 2024-05-01
    python -m scripts.daily_sync --type all --batch-size 50
    python -m scripts.daily_sync --type tv --start-from-batch 120
"""

import argparse
import asyncio
import json
import sys
from datetime import date, datetime
from typing import List, Optional

from dotenv import load_dotenv

# Load .env before settings are first read
load_dotenv()

from catalog_sync.core.database import close_db, init_db
from catalog_sync.core.logging import get_logger, setup_logging
from catalog_sync.jobs.catalog_sync import build_catalog_sync_job
from catalog_sync.models.sync import SyncTarget

logger = get_logger("catalog_sync.scripts.daily_sync")

SYNC_TYPES = {
    "movies": SyncTarget.MOVIES,
    "tv": SyncTarget.TV,
    "all": SyncTarget.ALL,
}


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync the catalog from TMDB daily exports")
    parser.add_argument("--type", choices=sorted(SYNC_TYPES), default="all",
                        help="Which catalog to refresh (default: all)")
    parser.add_argument("--date", type=_parse_date, default=None,
                        help="Export date YYYY-MM-DD (default: today, falling back up to 7 days)")
    parser.add_argument("--batch-size", type=int, default=None,
                        help="Ids fetched concurrently per batch (default: DAILY_SYNC_BATCH_SIZE)")
    parser.add_argument("--start-from-batch", type=int, default=0,
                        help="0-based batch index to resume from (movies/tv only)")
    args = parser.parse_args(argv)

    if args.batch_size is not None and args.batch_size < 1:
        parser.error("--batch-size must be at least 1")
    if args.start_from_batch < 0:
        parser.error("--start-from-batch must be 0 or more")
    return args


def has_failures(result: dict) -> bool:
    """True when any kind errored or found no export to sync from."""
    return any(
        summary.get("error") or summary.get("export_date") is None
        for summary in result.values()
    )


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging()
    await init_db()

    job = build_catalog_sync_job()
    try:
        result = await job.run_target(
            SYNC_TYPES[args.type], args.date, args.batch_size, args.start_from_batch
        )
        stats = await job.daily_sync.get_sync_stats()
    except Exception as e:
        logger.error("daily_sync_script_failed", type=args.type, error=str(e))
        print(f"Daily sync failed: {e}", file=sys.stderr)
        return 1
    finally:
        await job.data_sync.client.aclose()
        await job.daily_sync.downloader.aclose()
        await close_db()

    print(json.dumps({"result": result, "stats": stats}, indent=2, default=str))
    return 1 if has_failures(result) else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
