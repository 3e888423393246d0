#!/usr/bin/env python3
"""CLI script to import listings from CSV, stamping each with its regions."""
import argparse
import sys
from pathlib import Path

from tqdm import tqdm

from regionfinder.core.config import DUCKDB_PATH, ENVIRONMENT, LOG_LEVEL, RELEASE, SENTRY_DSN
from regionfinder.core.context import load_boundary_context
from regionfinder.core.directory import create_listing
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.core.models import LocationValidationError
from regionfinder.utils.error_tracking import setup_error_tracking
from regionfinder.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Import listings from CSV")
    parser.add_argument("file", type=Path, help="CSV file path")
    parser.add_argument("--lon-field", default="lon", help="Longitude column (default: lon)")
    parser.add_argument("--lat-field", default="lat", help="Latitude column (default: lat)")
    parser.add_argument("--name-field", default="name", help="Name column (default: name)")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                        help="DuckDB database path")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking(SENTRY_DSN, ENVIRONMENT, RELEASE)

    if not args.file.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        sys.exit(1)

    db_store = DuckDBStore(args.db_path)
    try:
        context = load_boundary_context(db_store)
        listings = db_store.ingest_listings_csv(
            args.file,
            lon_field=args.lon_field,
            lat_field=args.lat_field,
            name_field=args.name_field,
        )
        print(f"Read {len(listings)} listings")

        created = 0
        rejected = []
        for listing in tqdm(listings, desc="Importing listings"):
            try:
                create_listing(context, listing)
                created += 1
            except LocationValidationError as e:
                rejected.append((listing.name, str(e)))
    finally:
        db_store.close()

    print(f"✅ Imported {created} listings")
    if rejected:
        print(f"⚠️  Rejected {len(rejected)} listings:")
        for name, reason in rejected[:10]:
            print(f"  - {name}: {reason}")


if __name__ == "__main__":
    main()
