#!/usr/bin/env python3
"""CLI script to link orphaned counties and bakhsh to their containing region."""
import argparse
from pathlib import Path

from regionfinder.core.config import DUCKDB_PATH, ENVIRONMENT, LOG_LEVEL, RELEASE, SENTRY_DSN
from regionfinder.core.directory import link_boundary_parents
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.utils.error_tracking import setup_error_tracking
from regionfinder.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Fill missing boundary parent links")
    parser.add_argument("--dry-run", action="store_true",
                        help="Report links without writing them")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                        help="DuckDB database path")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking(SENTRY_DSN, ENVIRONMENT, RELEASE)

    db_store = DuckDBStore(args.db_path)
    try:
        summary = link_boundary_parents(db_store, dry_run=args.dry_run)
    finally:
        db_store.close()

    for level, counts in summary.items():
        print(f"{level}: linked {counts['linked']}, unresolved {counts['unresolved']}")
    print("✅ Done" if not args.dry_run else "This was a dry run.")


if __name__ == "__main__":
    main()
