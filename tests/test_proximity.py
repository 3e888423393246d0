"""Tests for distance helpers."""
import pytest

from regionfinder.core.models import Listing
from regionfinder.core.proximity import (
    calculate_distance_km, find_nearest_listings, search_window,
)


def test_calculate_distance_km():
    """Test haversine distances against known values."""
    assert calculate_distance_km(51.389, 35.689, 51.389, 35.689) == 0
    # One degree of latitude is about 111.2 km on a 6371 km sphere
    assert calculate_distance_km(0, 0, 0, 1) == pytest.approx(111.195, abs=0.01)
    # Tehran to Isfahan
    assert calculate_distance_km(51.389, 35.689, 51.668, 32.654) == pytest.approx(338, abs=3)
    assert calculate_distance_km(0, 0, 180, 0) == pytest.approx(20015.1, abs=0.5)


def test_search_window_contains_circle():
    bounds = search_window(51.4, 35.7, 10)

    for lng, lat in [(51.4, 35.789), (51.4, 35.611), (51.509, 35.7), (51.291, 35.7)]:
        assert calculate_distance_km(51.4, 35.7, lng, lat) <= 10
        assert bounds.min_lng <= lng <= bounds.max_lng
        assert bounds.min_lat <= lat <= bounds.max_lat


def test_search_window_clipped_near_poles():
    bounds = search_window(170, 89.99, 50)

    assert bounds.as_tuple() == (-180.0, pytest.approx(89.99 - 50 / 111.32), 180.0, 90.0)


def test_find_nearest_listings():
    listings = [
        Listing(name="far", lng=51.6, lat=35.7, listing_id="c"),
        Listing(name="none", listing_id="d"),
        Listing(name="near", lng=51.41, lat=35.7, listing_id="b"),
        Listing(name="twin", lng=51.41, lat=35.7, listing_id="a"),
    ]

    results = find_nearest_listings(51.4, 35.7, listings)
    assert [listing.name for listing, _ in results] == ["twin", "near", "far"]

    results = find_nearest_listings(51.4, 35.7, listings, max_distance_km=5, limit=1)
    assert [listing.name for listing, _ in results] == ["twin"]
    assert results[0][1] == pytest.approx(0.904, abs=0.01)
