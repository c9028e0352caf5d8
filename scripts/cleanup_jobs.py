"""Cron entry point for purging orphaned job records."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from datetime import datetime

from src.streetsketch.config import load_config
from src.streetsketch.dependencies import build_job_store
from src.streetsketch.jobs.job_models import utcnow


@dataclass(slots=True)
class CleanupSummary:
    records_removed: int
    dry_run: bool


async def perform_cleanup(*, dry_run: bool, reference_time: datetime | None = None) -> CleanupSummary:
    """Purge expired records (or only count them) and return the summary."""
    config = load_config()
    store = build_job_store(config)
    now = reference_time or utcnow()

    if dry_run:
        expired = await store.count_expired(now)
        return CleanupSummary(records_removed=expired, dry_run=True)

    removed = await store.purge_expired(now)
    return CleanupSummary(records_removed=removed, dry_run=False)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Purge job records nobody collected.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting records.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = asyncio.run(perform_cleanup(dry_run=args.dry_run))
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, records_expired={summary.records_removed}", file=sys.stdout)
    else:
        print(f"cleanup done, records_removed={summary.records_removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
