"""Centroid computation utilities for polygons."""
from typing import Optional, Tuple

import geopandas as gpd
from pyproj import Transformer

from regionfinder.core.config import CENTROID_CRS


def compute_centroid(
    geometry,
    source_crs: str = "EPSG:4326",
    target_crs: Optional[str] = None
) -> Tuple[float, float]:
    """
    Compute centroid of a geometry in a projected CRS, then convert back to WGS84.

    Args:
        geometry: Shapely geometry object
        source_crs: Source CRS (default EPSG:4326)
        target_crs: Target CRS for centroid computation (default from config,
            or the geometry's UTM zone when unset)

    Returns:
        Tuple of (longitude, latitude) in EPSG:4326
    """
    if geometry is None or geometry.is_empty:
        raise ValueError("Geometry is None or empty")

    if geometry.geom_type == "Point":
        return (geometry.x, geometry.y)

    if geometry.geom_type not in ("Polygon", "MultiPolygon"):
        return (geometry.centroid.x, geometry.centroid.y)

    if target_crs is None:
        target_crs = CENTROID_CRS or auto_select_utm(geometry)

    transformer_to_wgs = Transformer.from_crs(target_crs, source_crs, always_xy=True)

    geom_proj = gpd.GeoSeries([geometry], crs=source_crs).to_crs(target_crs).iloc[0]
    centroid_proj = geom_proj.centroid

    lon, lat = transformer_to_wgs.transform(centroid_proj.x, centroid_proj.y)
    return (lon, lat)


def auto_select_utm(geometry) -> str:
    """
    Select the UTM zone containing the geometry's centroid.

    Args:
        geometry: Shapely geometry object in EPSG:4326

    Returns:
        UTM CRS string (e.g., "EPSG:32639")
    """
    centroid = geometry.centroid

    # UTM zones are 6 degrees wide, starting at -180
    zone = min(int((centroid.x + 180) / 6) + 1, 60)
    base = 32600 if centroid.y >= 0 else 32700
    return f"EPSG:{base + zone}"


def representative_point(geometry) -> Tuple[float, float]:
    """A point guaranteed to lie inside the geometry."""
    point = geometry.representative_point()
    return (point.x, point.y)
