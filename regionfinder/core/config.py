"""Configuration management for the region directory."""
import os
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", PROJECT_ROOT / "data"))
DUCKDB_PATH = Path(os.getenv("DATABASE_PATH", DATA_DIR / "duckdb" / "directory.duckdb"))
REFERENCE_DIR = DATA_DIR / "reference"


def _split_paths(value: Optional[str]) -> List[Path]:
    if not value:
        return []
    return [Path(p) for p in value.split(os.pathsep) if p.strip()]


def _split_names(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [n.strip() for n in value.split(",") if n.strip()]


# Boundary overlays, ordered by precedence (first file wins)
BOUNDARY_OVERLAY_PATHS: List[Path] = _split_paths(os.getenv("BOUNDARY_OVERLAY_PATHS")) or [
    REFERENCE_DIR / "province_overlays.geojson",
]

# Lower-priority overlay, only consulted for the named exceptions below
BOUNDARY_EXCEPTION_OVERLAY_PATH = Path(os.getenv(
    "BOUNDARY_EXCEPTION_OVERLAY_PATH", REFERENCE_DIR / "province_exceptions.geojson"
))
BOUNDARY_EXCEPTION_NAMES: List[str] = _split_names(os.getenv("BOUNDARY_EXCEPTION_NAMES"))

SECTION_HIERARCHY_PATH = Path(os.getenv(
    "SECTION_HIERARCHY_PATH", REFERENCE_DIR / "province_sections.json"
))

# Spatial settings
CENTROID_CRS: Optional[str] = os.getenv("CENTROID_CRS")  # None = pick UTM zone per geometry
FUZZY_THRESHOLD: float = float(os.getenv("FUZZY_THRESHOLD", "0.7"))
PARENT_CHAIN_MAX_DEPTH: int = int(os.getenv("PARENT_CHAIN_MAX_DEPTH", "4"))

# Listing queries
DEFAULT_PAGE_LIMIT: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "50"))
MAX_PAGE_LIMIT: int = int(os.getenv("MAX_PAGE_LIMIT", "200"))
NEARBY_DEFAULT_DISTANCE_M: int = int(os.getenv("NEARBY_DEFAULT_DISTANCE_M", "10000"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Administrative levels
PROVINCE = "province"
COUNTY = "county"
BAKHSH = "bakhsh"
CITY = "city"

LEVELS = (PROVINCE, COUNTY, BAKHSH, CITY)

# Most specific first; used when several named levels are supplied together
LEVEL_SPECIFICITY = (BAKHSH, COUNTY, CITY, PROVINCE)

# Error tracking
SENTRY_DSN: Optional[str] = os.getenv("SENTRY_DSN")
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
RELEASE: str = os.getenv("RELEASE", "unknown")
