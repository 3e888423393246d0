"""Point-in-polygon engine and bounding box helpers.

Geometries are GeoJSON-style mappings (``{"type": ..., "coordinates": ...}``)
with ``[lng, lat]`` positions. Shapely geometries are accepted as well and
converted with ``shapely.geometry.mapping``. Nothing here raises on bad
input: malformed geometry is simply "no match".
"""
import math
from typing import Any, Mapping, Optional, Sequence, Tuple

from shapely.geometry import box, mapping
from shapely.geometry.base import BaseGeometry

BBox = Tuple[float, float, float, float]


def _as_mapping(geometry: Any) -> Optional[Mapping]:
    if geometry is None:
        return None
    if isinstance(geometry, BaseGeometry):
        if geometry.is_empty:
            return None
        return mapping(geometry)
    if isinstance(geometry, Mapping):
        return geometry
    return None


def ring_contains(lng: float, lat: float, ring: Sequence) -> bool:
    """
    Ray casting test of a point against a single ring.

    A horizontal ray is cast from the point toward +infinity longitude. An
    edge counts as a crossing when it straddles the point's latitude and the
    crossing longitude lies east of the point. Horizontal edges never count.
    The ring may be closed or open.
    """
    try:
        n = len(ring)
    except TypeError:
        return False
    if n < 3:
        return False

    inside = False
    j = n - 1
    try:
        for i in range(n):
            xi, yi = float(ring[i][0]), float(ring[i][1])
            xj, yj = float(ring[j][0]), float(ring[j][1])
            if (yi > lat) != (yj > lat):
                dy = yj - yi
                if dy != 0:
                    cross_lng = xi + (lat - yi) * (xj - xi) / dy
                    if lng < cross_lng:
                        inside = not inside
            j = i
    except (TypeError, ValueError, IndexError):
        return False

    return inside


def polygon_contains(lng: float, lat: float, rings: Sequence) -> bool:
    """Inside the exterior ring and outside every hole."""
    if not rings:
        return False
    try:
        exterior, holes = rings[0], rings[1:]
    except (TypeError, KeyError):
        return False

    if not ring_contains(lng, lat, exterior):
        return False
    return not any(ring_contains(lng, lat, hole) for hole in holes)


def contains_point(lng: float, lat: float, geometry: Any) -> bool:
    """
    Whether a Polygon or MultiPolygon contains the point.

    Args:
        lng: Longitude of the point
        lat: Latitude of the point
        geometry: GeoJSON-style mapping or shapely geometry

    Returns:
        True if contained; False for outside points and for any degenerate
        or unsupported geometry
    """
    geom = _as_mapping(geometry)
    if not geom:
        return False

    geom_type = geom.get("type")
    coordinates = geom.get("coordinates")
    if not coordinates:
        return False

    if geom_type == "Polygon":
        return polygon_contains(lng, lat, coordinates)
    if geom_type == "MultiPolygon":
        return any(polygon_contains(lng, lat, polygon) for polygon in coordinates)
    return False


def is_valid_bbox(bbox: Any) -> bool:
    """Four finite numbers with min < max on both axes."""
    if bbox is None:
        return False
    try:
        if len(bbox) != 4:
            return False
        min_lng, min_lat, max_lng, max_lat = (float(v) for v in bbox)
    except (TypeError, ValueError):
        return False
    if not all(math.isfinite(v) for v in (min_lng, min_lat, max_lng, max_lat)):
        return False
    return min_lng < max_lng and min_lat < max_lat


def bbox_contains(bbox: BBox, lng: float, lat: float) -> bool:
    """Inclusive axis-aligned containment test."""
    min_lng, min_lat, max_lng, max_lat = bbox
    return min_lng <= lng <= max_lng and min_lat <= lat <= max_lat


def bbox_area(bbox: BBox) -> float:
    """Area in square degrees."""
    min_lng, min_lat, max_lng, max_lat = bbox
    return (max_lng - min_lng) * (max_lat - min_lat)


def bbox_center(bbox: BBox) -> Tuple[float, float]:
    min_lng, min_lat, max_lng, max_lat = bbox
    return ((min_lng + max_lng) / 2.0, (min_lat + max_lat) / 2.0)


def squared_distance(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    """Squared Euclidean distance in degree space."""
    return (lng1 - lng2) ** 2 + (lat1 - lat2) ** 2


def geometry_bbox(geometry: Any) -> Optional[BBox]:
    """
    Bounding box of every position in a Polygon/MultiPolygon, or None when
    the geometry has no usable positions or collapses to a line/point.
    """
    geom = _as_mapping(geometry)
    if not geom:
        return None

    coordinates = geom.get("coordinates")
    if geom.get("type") == "Polygon":
        polygons = [coordinates]
    elif geom.get("type") == "MultiPolygon":
        polygons = coordinates
    else:
        return None

    lngs, lats = [], []
    try:
        for polygon in polygons or []:
            for ring in polygon:
                for position in ring:
                    lngs.append(float(position[0]))
                    lats.append(float(position[1]))
    except (TypeError, ValueError, IndexError):
        return None

    if not lngs:
        return None
    bbox = (min(lngs), min(lats), max(lngs), max(lats))
    return bbox if is_valid_bbox(bbox) else None


def bbox_polygon(bbox: BBox) -> dict:
    """Closed GeoJSON Polygon covering a bbox."""
    return mapping(box(*bbox))
