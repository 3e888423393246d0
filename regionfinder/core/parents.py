"""Fill missing parent links on county and bakhsh boundaries."""
from typing import Dict, Iterable, Optional, Tuple

from shapely.errors import ShapelyError
from shapely.geometry import shape

from regionfinder.core.centroids import compute_centroid, representative_point
from regionfinder.core.config import BAKHSH, COUNTY, PROVINCE
from regionfinder.core.duckdb_store import DuckDBStore
from regionfinder.core.models import Boundary
from regionfinder.utils.logging import log_error, log_structured
from regionfinder.utils.timing import Timer

# Parent levels tried for each child level, nearest first
PARENT_LEVELS = {
    COUNTY: (PROVINCE,),
    BAKHSH: (COUNTY, PROVINCE),
}


def _sample_points(boundary: Boundary) -> Iterable[Tuple[float, float]]:
    """Projected centroid first, then a point guaranteed inside the polygon."""
    try:
        geom = shape(boundary.geometry)
    except (ShapelyError, ValueError, TypeError, AttributeError, KeyError):
        return []

    points = []
    try:
        points.append(compute_centroid(geom))
    except Exception as e:
        log_error(e, {
            "module": "parents",
            "function": "_sample_points",
            "feature_id": boundary.feature_id,
        }, level="warning")
    try:
        points.append(representative_point(geom))
    except ShapelyError as e:
        log_structured("debug", "No representative point for boundary",
                       feature_id=boundary.feature_id, reason=str(e))
    return points


def find_parent(store: DuckDBStore, boundary: Boundary) -> Optional[Boundary]:
    """
    Boundary that contains a section's centroid, at the nearest parent level.

    Returns:
        The parent boundary, or None if no sample point lands in one
    """
    if not boundary.geometry:
        return None

    for lng, lat in _sample_points(boundary):
        for parent_level in PARENT_LEVELS[boundary.level]:
            parent = store.find_containing_region(lng, lat, parent_level)
            if parent is not None and parent.feature_id != boundary.feature_id:
                return parent
    return None


@Timer("link_boundary_parents", level="info")
def link_boundary_parents(store: DuckDBStore, dry_run: bool = False) -> Dict[str, Dict[str, int]]:
    """
    Link orphaned counties and bakhsh to the boundary containing them.

    Counties are linked first so bakhsh can then chain through them.

    Args:
        store: Boundary repository
        dry_run: Report what would be linked without writing

    Returns:
        Per-level counts: {"county": {"linked": n, "unresolved": m}, ...}
    """
    summary: Dict[str, Dict[str, int]] = {}

    for level in (COUNTY, BAKHSH):
        linked = 0
        unresolved = 0
        for boundary in store.find_orphans(level):
            parent = find_parent(store, boundary)
            if parent is None:
                unresolved += 1
                log_structured("warning", "No parent found for boundary",
                               feature_id=boundary.feature_id, region_level=level, name=boundary.name)
                continue

            if not dry_run:
                store.update_parent(boundary.feature_id, parent.name, parent.level)
            linked += 1
            log_structured("debug", "Boundary parent linked", feature_id=boundary.feature_id,
                           name=boundary.name, parent=parent.name, parent_level=parent.level)

        summary[level] = {"linked": linked, "unresolved": unresolved}

    log_structured("info", "Boundary parents linked", dry_run=dry_run, **summary)
    return summary
