#!/usr/bin/env python3
"""CLI script to show the administrative regions containing a coordinate."""
import argparse
import json
import sys
from pathlib import Path

from regionfinder.core.config import DUCKDB_PATH, ENVIRONMENT, LOG_LEVEL, RELEASE, SENTRY_DSN
from regionfinder.core.context import load_boundary_context
from regionfinder.core.directory import resolve_regions_for_point
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.utils.error_tracking import setup_error_tracking
from regionfinder.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Resolve regions for a point")
    parser.add_argument("lon", type=float, help="Longitude")
    parser.add_argument("lat", type=float, help="Latitude")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                        help="DuckDB database path")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking(SENTRY_DSN, ENVIRONMENT, RELEASE)

    if not (-180 <= args.lon <= 180 and -90 <= args.lat <= 90):
        print("Error: coordinates must be longitude latitude in valid ranges", file=sys.stderr)
        sys.exit(1)

    db_store = DuckDBStore(args.db_path)
    try:
        context = load_boundary_context(db_store)
        regions = resolve_regions_for_point(context, args.lon, args.lat)
    finally:
        db_store.close()

    print(json.dumps(
        {**regions.to_dict(), "provinceSource": regions.province_source},
        ensure_ascii=False,
        indent=2,
    ))


if __name__ == "__main__":
    main()
