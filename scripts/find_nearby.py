#!/usr/bin/env python3
"""CLI script to list active listings near a coordinate."""
import argparse
import json
import sys
from pathlib import Path

from regionfinder.core.config import (
    DUCKDB_PATH, ENVIRONMENT, LOG_LEVEL, NEARBY_DEFAULT_DISTANCE_M, RELEASE, SENTRY_DSN,
)
from regionfinder.core.context import load_boundary_context
from regionfinder.core.directory import find_nearby_listings
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.core.models import LocationValidationError
from regionfinder.utils.error_tracking import setup_error_tracking
from regionfinder.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Find listings near a point")
    parser.add_argument("lon", type=float, help="Longitude")
    parser.add_argument("lat", type=float, help="Latitude")
    parser.add_argument("--max-distance", type=float, default=NEARBY_DEFAULT_DISTANCE_M,
                        help="Maximum distance in meters")
    parser.add_argument("--limit", type=int, default=None,
                        help="Maximum number of listings to show")
    parser.add_argument("--include-inactive", action="store_true",
                        help="Include inactive listings")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                        help="DuckDB database path")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking(SENTRY_DSN, ENVIRONMENT, RELEASE)

    db_store = DuckDBStore(args.db_path)
    try:
        context = load_boundary_context(db_store)
        results = find_nearby_listings(
            context,
            args.lon,
            args.lat,
            max_distance_m=args.max_distance,
            is_active=None if args.include_inactive else True,
            limit=args.limit,
        )
    except (LocationValidationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db_store.close()

    print(json.dumps(
        [{**r["listing"].to_dict(), "distanceMeters": r["distanceMeters"]} for r in results],
        ensure_ascii=False,
        indent=2,
    ))


if __name__ == "__main__":
    main()
