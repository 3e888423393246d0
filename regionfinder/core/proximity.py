"""Distance helpers for nearby-listing queries."""
import math
from typing import Iterable, List, Optional, Tuple

from regionfinder.core.models import Bounds, Listing

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.32


def calculate_distance_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """
    Calculate distance between two points using Haversine formula.

    Args:
        lon1: Longitude of first point
        lat1: Latitude of first point
        lon2: Longitude of second point
        lat2: Latitude of second point

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    # Rounding can push a just above 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(a, 1.0)))

    return EARTH_RADIUS_KM * c


def search_window(lon: float, lat: float, radius_km: float) -> Bounds:
    """
    Bounding rectangle that contains every point within radius_km.

    Used as a cheap SQL pre-filter before exact distances are computed. The
    window is clipped to valid coordinates and does not wrap the antimeridian.
    """
    dlat = radius_km / KM_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(lat))
    if cos_lat * 360 * KM_PER_DEGREE_LAT <= radius_km:
        dlon = 360.0
    else:
        dlon = radius_km / (KM_PER_DEGREE_LAT * cos_lat)

    return Bounds(
        max(lon - dlon, -180.0),
        max(lat - dlat, -90.0),
        min(lon + dlon, 180.0),
        min(lat + dlat, 90.0),
    )


def find_nearest_listings(
    lon: float,
    lat: float,
    listings: Iterable[Listing],
    max_distance_km: Optional[float] = None,
    limit: Optional[int] = None,
) -> List[Tuple[Listing, float]]:
    """
    Listings sorted by distance from a point.

    Args:
        lon: Longitude of query point
        lat: Latitude of query point
        listings: Candidate listings; those without coordinates are skipped
        max_distance_km: Maximum distance in km (None = no limit)
        limit: Maximum number of results (None = all)

    Returns:
        (listing, distance_km) pairs, nearest first
    """
    results = []
    for listing in listings:
        if not listing.has_coordinates:
            continue

        distance_km = calculate_distance_km(lon, lat, listing.lng, listing.lat)
        if max_distance_km is None or distance_km <= max_distance_km:
            results.append((listing, distance_km))

    results.sort(key=lambda item: (item[1], item[0].listing_id or ""))
    return results if limit is None else results[:limit]
