#!/usr/bin/env python3
"""
Recompute the administrative region snapshot of every located listing.

Run after boundary, overlay or hierarchy data changes so stored snapshots
follow the current resolution rules.

Usage:
    python scripts/update_listing_regions.py [--dry-run]
"""
import argparse
from pathlib import Path

from tqdm import tqdm

from regionfinder.core.config import DUCKDB_PATH, ENVIRONMENT, LOG_LEVEL, RELEASE, SENTRY_DSN
from regionfinder.core.context import load_boundary_context
from regionfinder.core.directory import restamp_listing_regions
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.utils.error_tracking import setup_error_tracking
from regionfinder.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Restamp listing region snapshots")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would be updated without making changes")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                        help="DuckDB database path")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking(SENTRY_DSN, ENVIRONMENT, RELEASE)

    if args.dry_run:
        print("DRY RUN - no changes will be written")

    db_store = DuckDBStore(args.db_path)
    try:
        context = load_boundary_context(db_store)
        total = db_store.count_located_listings()
        print(f"Found {total} listings with coordinates")

        counts = restamp_listing_regions(
            context,
            dry_run=args.dry_run,
            listings=tqdm(db_store.iter_located_listings(), total=total, desc="Resolving regions"),
        )
    finally:
        db_store.close()

    print(f"Updated: {counts['updated']}")
    print(f"Unchanged: {counts['unchanged']}")
    print(f"Not found in any region: {counts['not_found']}")
    print(f"Errors: {counts['errors']}")

    if args.dry_run:
        print("This was a dry run. Run without --dry-run to apply changes.")


if __name__ == "__main__":
    main()
