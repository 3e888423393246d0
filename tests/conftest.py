"""Pytest configuration and fixtures."""
import json

import pytest

from regionfinder.core.admin_hierarchy import SectionHierarchyIndex
from regionfinder.core.context import BoundaryContext
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.core.geometry import bbox_polygon
from regionfinder.core.models import Boundary
from regionfinder.core.overlays import OverlayIndex


@pytest.fixture
def temp_db(tmp_path):
    """Create temporary DuckDB database."""
    db_store = DuckDBStore(tmp_path / "test.duckdb")
    yield db_store
    db_store.close()


@pytest.fixture
def sample_boundaries():
    """
    Two side-by-side provinces with a nested county, bakhsh and city.

    Alpha  [0, 0, 10, 10]
      AlphaCounty  [1, 1, 5, 5]
        AlphaBakhsh  [2, 2, 4, 4]
      AlphaCity    [2.5, 2.5, 3.5, 3.5]
    Beta   [10, 0, 20, 10]
      BetaCounty   [12, 2, 15, 5]
    """
    return [
        Boundary("province:alpha", "province", "Alpha", "آلفا",
                 geometry=bbox_polygon((0, 0, 10, 10))),
        Boundary("province:beta", "province", "Beta", "بتا",
                 geometry=bbox_polygon((10, 0, 20, 10))),
        Boundary("county:alpha", "county", "AlphaCounty", "شهرستان آلفا",
                 parent="Alpha", parent_level="province", geometry=bbox_polygon((1, 1, 5, 5))),
        Boundary("county:beta", "county", "BetaCounty", "شهرستان بتا",
                 parent="Beta", parent_level="province", geometry=bbox_polygon((12, 2, 15, 5))),
        Boundary("bakhsh:alpha", "bakhsh", "AlphaBakhsh", "بخش آلفا",
                 parent="AlphaCounty", parent_level="county", geometry=bbox_polygon((2, 2, 4, 4))),
        Boundary("city:alpha", "city", "AlphaCity", "شهر آلفا",
                 geometry=bbox_polygon((2.5, 2.5, 3.5, 3.5))),
    ]


@pytest.fixture
def populated_db(temp_db, sample_boundaries):
    """Create database with sample boundaries."""
    for boundary in sample_boundaries:
        temp_db.add_boundary(boundary)
    return temp_db


@pytest.fixture
def context(populated_db):
    """Boundary context with no overlays and no hierarchy."""
    return BoundaryContext(store=populated_db)


@pytest.fixture
def make_context(populated_db):
    """Build a context over the populated database with chosen reference data."""
    def _make(overlays=(), exception_overlays=(), exception_names=(), hierarchy=None):
        return BoundaryContext(
            store=populated_db,
            overlays=OverlayIndex(overlays),
            exception_overlays=OverlayIndex(exception_overlays),
            exception_names=frozenset(exception_names),
            hierarchy=SectionHierarchyIndex(hierarchy),
        )
    return _make


@pytest.fixture
def write_geojson(tmp_path):
    """Write a FeatureCollection to a temporary file and return its path."""
    def _write(filename, features):
        path = tmp_path / filename
        path.write_text(
            json.dumps({"type": "FeatureCollection", "features": features}, ensure_ascii=False),
            encoding="utf-8",
        )
        return path
    return _write
