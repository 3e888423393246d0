"""Spatial predicates for listing queries and the builder that picks them."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from regionfinder.core.config import LEVEL_SPECIFICITY
from regionfinder.core.context import BoundaryContext
from regionfinder.core.geometry import (
    bbox_contains, contains_point, geometry_bbox,
)
from regionfinder.core.models import (
    Boundary, Bounds, FilterCriteria, Listing, OverlayEntry, check_level,
)
from regionfinder.core.normalization import names_match, normalize_name
from regionfinder.utils.logging import log_error, log_structured

SOURCE_OVERLAY = "overlay"
SOURCE_EXCEPTION_OVERLAY = "exception_overlay"
SOURCE_REPOSITORY = "repository"


@dataclass(frozen=True)
class GeometryPredicate:
    """Listings whose point lies inside a region polygon."""
    level: str
    name: str
    geometry: Dict[str, Any] = field(compare=False, hash=False)
    source: str = SOURCE_REPOSITORY

    def to_query(self) -> Dict[str, Any]:
        return {"location": {"$geoWithin": {"$geometry": self.geometry}}}

    def sql_clause(self) -> Tuple[str, List[Any]]:
        bbox = geometry_bbox(self.geometry)
        if bbox is None:
            return "FALSE", []
        min_lng, min_lat, max_lng, max_lat = bbox
        return (
            "(lng BETWEEN ? AND ? AND lat BETWEEN ? AND ?)",
            [min_lng, max_lng, min_lat, max_lat],
        )

    def matches(self, listing: Listing) -> bool:
        return listing.has_coordinates and contains_point(listing.lng, listing.lat, self.geometry)


@dataclass(frozen=True)
class BoxPredicate:
    """Listings whose point lies inside an axis-aligned viewport."""
    bounds: Bounds

    def to_query(self) -> Dict[str, Any]:
        b = self.bounds
        return {
            "location.coordinates": {
                "$geoWithin": {"$box": [[b.min_lng, b.min_lat], [b.max_lng, b.max_lat]]}
            }
        }

    def sql_clause(self) -> Tuple[str, List[Any]]:
        b = self.bounds
        return (
            "(lng BETWEEN ? AND ? AND lat BETWEEN ? AND ?)",
            [b.min_lng, b.max_lng, b.min_lat, b.max_lat],
        )

    def matches(self, listing: Listing) -> bool:
        return listing.has_coordinates and bbox_contains(self.bounds.as_tuple(), listing.lng, listing.lat)


@dataclass(frozen=True)
class AttributePredicate:
    """
    Listings whose stored region snapshot names the region.

    Used when no polygon is available for a named region. The snapshot may be
    stale, so this is a degraded filter, but it never comes back empty for
    listings that were stamped with the name.
    """
    level: str
    name: str

    @property
    def field_name(self) -> str:
        return f"administrativeRegion.{self.level}"

    def to_query(self) -> Dict[str, Any]:
        return {"$or": [
            {self.field_name: self.name},
            {f"{self.field_name}Fa": self.name},
        ]}

    def sql_clause(self) -> Tuple[str, List[Any]]:
        check_level(self.level)
        key = normalize_name(self.name)
        column = f"region_{self.level}"
        return (
            f"({column}_norm = ? OR {column}_fa_norm = ?)",
            [key, key],
        )

    def matches(self, listing: Listing) -> bool:
        region = listing.administrative_region
        return (
            names_match(region.get(self.level), self.name)
            or names_match(region.get_fa(self.level), self.name)
        )


SpatialPredicate = Union[GeometryPredicate, BoxPredicate, AttributePredicate]


def most_specific_region(criteria: FilterCriteria) -> Optional[Tuple[str, str]]:
    """(level, name) of the most specific named region in the criteria."""
    named = criteria.named_regions()
    for level in LEVEL_SPECIFICITY:
        if level in named:
            return level, named[level]
    return None


def _overlay_boundary(entry: OverlayEntry, source: str) -> Boundary:
    return Boundary(
        feature_id=f"{source}:{entry.level}:{entry.name}",
        level=entry.level,
        name=entry.name,
        name_fa=entry.name_fa,
        geometry=entry.geometry,
        bbox=geometry_bbox(entry.geometry),
        metadata={"source": source, "file": entry.source},
    )


class BoundaryFilterBuilder:
    """Turn named regions or a viewport into a spatial predicate."""

    def __init__(self, context: BoundaryContext):
        self.context = context

    def region_boundary(self, level: str, name: str) -> Optional[Boundary]:
        """
        Best available geometry for a named region.

        Sources are tried in order and the first with a geometry wins:
        primary overlay, exception overlay (only for configured exception
        names), then the repository by name or Persian name.

        Returns:
            Boundary with geometry and ``metadata["source"]`` set, or None
        """
        check_level(level)

        entry = self.context.overlays.get(level, name)
        if entry is not None:
            return _overlay_boundary(entry, SOURCE_OVERLAY)

        if self.context.is_exception(name):
            entry = self.context.exception_overlays.get(level, name)
            if entry is not None:
                return _overlay_boundary(entry, SOURCE_EXCEPTION_OVERLAY)

        try:
            boundary = self.context.store.find_boundary_by_name(level, name)
        except Exception as e:
            log_error(e, {
                "module": "filters",
                "function": "region_boundary",
                "region_level": level,
                "name": name,
            })
            return None

        if boundary is not None and boundary.geometry:
            boundary.metadata = {**boundary.metadata, "source": SOURCE_REPOSITORY}
            return boundary
        return None

    def build_filter(self, criteria: FilterCriteria) -> Optional[SpatialPredicate]:
        """
        Spatial predicate for search criteria.

        A named region wins over the viewport; among several named levels
        only the most specific is used. A named region with no geometry
        anywhere falls back to an attribute predicate on the listing's
        region snapshot.

        Returns:
            A predicate, or None when the criteria carry no spatial scope
        """
        region = most_specific_region(criteria)

        if region is not None:
            level, name = region
            boundary = self.region_boundary(level, name)
            if boundary is not None:
                log_structured("debug", "Filtering by region geometry", region_level=level, name=name,
                               source=boundary.metadata.get("source"))
                return GeometryPredicate(
                    level=level,
                    name=name,
                    geometry=boundary.geometry,
                    source=boundary.metadata.get("source", SOURCE_REPOSITORY),
                )

            log_structured("warning", "Region geometry not found, filtering by region snapshot",
                           region_level=level, name=name)
            return AttributePredicate(level=level, name=name)

        if criteria.bounds is not None:
            return BoxPredicate(bounds=criteria.bounds)

        return None
