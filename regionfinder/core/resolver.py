"""Coordinate -> administrative region resolution.

The boundary repository alone is not trustworthy: some province polygons are
corrupt, some are missing, and parent links between sections and provinces
are often stale. The resolver combines every available source in a fixed
order of trust:

    1. repository containment per level (province, county, bakhsh, city)
    2. overlay polygons            -> override province
    3. section hierarchy index     -> override province
    4. province bbox fallback      -> only if province still unknown
    5. stored parent chain         -> only if province still unknown
"""
from typing import Dict, Optional

from regionfinder.core.config import BAKHSH, CITY, COUNTY, PARENT_CHAIN_MAX_DEPTH, PROVINCE
from regionfinder.core.context import BoundaryContext
from regionfinder.core.geometry import (
    bbox_area, bbox_center, bbox_contains, contains_point, squared_distance,
)
from regionfinder.core.models import Boundary, OverlayEntry, RegionRef, RegionSet
from regionfinder.core.normalization import normalize_name
from regionfinder.utils.error_handler import best_effort
from regionfinder.utils.logging import log_structured

SOURCE_REPOSITORY = "repository"
SOURCE_OVERLAY = "overlay"
SOURCE_HIERARCHY = "hierarchy"
SOURCE_BBOX = "bbox"
SOURCE_PARENT_CHAIN = "parent_chain"


class RegionResolver:
    """Resolve the administrative regions containing a coordinate."""

    def __init__(self, context: BoundaryContext):
        """
        Initialize resolver.

        Args:
            context: Loaded reference data
        """
        self.context = context
        self.store = context.store

    @best_effort(RegionSet)
    def resolve(self, lng: float, lat: float) -> RegionSet:
        """
        Best-known regions for a point.

        Never raises: failures are logged and produce an empty RegionSet.

        Args:
            lng: Longitude
            lat: Latitude

        Returns:
            RegionSet with any subset of fields filled
        """
        regions = RegionSet()

        matched = self.store.find_all_containing_regions(lng, lat)
        self._apply_repository(regions, matched)

        overlay = self._containing_overlay(lng, lat)
        if overlay is not None:
            regions.set_province(RegionRef.from_overlay(overlay), SOURCE_OVERLAY)

        section_province = self.context.hierarchy.province_for_any(
            (regions.bakhsh, regions.bakhsh_fa, regions.county, regions.county_fa)
        )
        if section_province is not None:
            regions.set_province(section_province, SOURCE_HIERARCHY)

        if regions.province is None:
            nearest = self.province_by_bbox(lng, lat)
            if nearest is not None:
                regions.set_province(RegionRef.from_boundary(nearest), SOURCE_BBOX)

        if regions.province is None and (regions.bakhsh or regions.county):
            ancestor = self._province_from_parent_chain(matched)
            if ancestor is not None:
                regions.set_province(RegionRef.from_boundary(ancestor), SOURCE_PARENT_CHAIN)

        log_structured(
            "debug",
            "Point resolved",
            lng=lng,
            lat=lat,
            province=regions.province,
            county=regions.county,
            bakhsh=regions.bakhsh,
            province_source=regions.province_source,
        )
        return regions

    @staticmethod
    def _apply_repository(regions: RegionSet, matched: Dict[str, Optional[Boundary]]):
        for level in (PROVINCE, COUNTY, BAKHSH, CITY):
            boundary = matched.get(level)
            if boundary is None:
                continue
            setattr(regions, level, boundary.name)
            setattr(regions, f"{level}_fa", boundary.name_fa)
            if level == PROVINCE:
                regions.province_source = SOURCE_REPOSITORY

    def _containing_overlay(self, lng: float, lat: float) -> Optional[OverlayEntry]:
        entry = self.context.overlays.find_containing(lng, lat, PROVINCE)
        if entry is not None:
            return entry

        for entry in self.context.exception_overlays.entries(PROVINCE):
            if not (self.context.is_exception(entry.name) or self.context.is_exception(entry.name_fa)):
                continue
            if contains_point(lng, lat, entry.geometry):
                return entry
        return None

    def province_by_bbox(self, lng: float, lat: float) -> Optional[Boundary]:
        """
        Province guess from bounding boxes alone.

        Among provinces whose bbox contains the point the smallest bbox wins.
        If none contains it, the province whose bbox center is nearest (squared
        degree distance) is returned. Only None when no province has a valid
        bbox.
        """
        provinces = self.store.provinces_with_bbox()
        if not provinces:
            return None

        containing = [p for p in provinces if bbox_contains(p.bbox, lng, lat)]
        if containing:
            return min(containing, key=lambda p: (bbox_area(p.bbox), p.name, p.feature_id))

        def center_distance(province: Boundary):
            c_lng, c_lat = bbox_center(province.bbox)
            return (squared_distance(lng, lat, c_lng, c_lat), province.name, province.feature_id)

        return min(provinces, key=center_distance)

    def _province_from_parent_chain(self, matched: Dict[str, Optional[Boundary]]) -> Optional[Boundary]:
        """Follow stored parent links upward from the most specific section."""
        current = matched.get(BAKHSH) or matched.get(COUNTY)
        seen = set()

        for _ in range(PARENT_CHAIN_MAX_DEPTH):
            if current is None or not current.parent:
                return None
            key = (current.level, normalize_name(current.name))
            if key in seen:
                return None
            seen.add(key)

            # A missing parent level is read as province: sections are most
            # often linked straight to their province.
            parent_level = current.parent_level or PROVINCE
            parent = self.store.find_boundary_by_name(parent_level, current.parent, with_geometry=False)
            if parent is None and parent_level != PROVINCE:
                parent = self.store.find_boundary_by_name(PROVINCE, current.parent, with_geometry=False)
            if parent is None:
                return None
            if parent.level == PROVINCE:
                return parent
            current = parent

        return None
