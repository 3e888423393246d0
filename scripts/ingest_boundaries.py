#!/usr/bin/env python3
"""CLI script to ingest administrative boundary GeoJSON into DuckDB."""
import argparse
import sys
from pathlib import Path

import geopandas as gpd

from regionfinder.core.config import DUCKDB_PATH, LEVELS, ENVIRONMENT, LOG_LEVEL, RELEASE, SENTRY_DSN
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.utils.error_tracking import setup_error_tracking
from regionfinder.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Ingest boundary GeoJSON into DuckDB")
    parser.add_argument("file", type=Path, help="GeoJSON or shapefile path")
    parser.add_argument("--level", required=True, choices=list(LEVELS),
                        help="Administrative level of every feature")
    parser.add_argument("--name-field", default="name", help="Name field (default: name)")
    parser.add_argument("--name-fa-field", default="nameFa",
                        help="Persian name field (default: nameFa)")
    parser.add_argument("--parent-field", default="parent",
                        help="Parent region name field (default: parent)")
    parser.add_argument("--parent-level-field", default="parentLevel",
                        help="Parent level field (default: parentLevel)")
    parser.add_argument("--replace", action="store_true",
                        help="Delete existing boundaries of this level first")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                        help="DuckDB database path")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking(SENTRY_DSN, ENVIRONMENT, RELEASE)

    if not args.file.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        sys.exit(1)

    print(f"Loading {args.file}...")
    gdf = gpd.read_file(args.file)
    print(f"Loaded {len(gdf)} features")

    print(f"Ingesting {args.level} boundaries...")
    db_store = DuckDBStore(args.db_path)
    try:
        stored = db_store.ingest_geodataframe(
            args.level,
            gdf,
            name_field=args.name_field,
            name_fa_field=args.name_fa_field,
            parent_field=args.parent_field,
            parent_level_field=args.parent_level_field,
            replace_level=args.replace,
        )
    finally:
        db_store.close()

    print(f"✅ Stored {stored} of {len(gdf)} features")


if __name__ == "__main__":
    main()
