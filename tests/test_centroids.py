"""Tests for centroid computation."""
import pytest
from shapely.geometry import LineString, Point, Polygon, box

from regionfinder.core.centroids import auto_select_utm, compute_centroid, representative_point


def test_compute_centroid():
    """Test centroid computation."""
    polygon = box(51.0, 35.0, 52.0, 36.0)
    lon, lat = compute_centroid(polygon)

    assert isinstance(lon, float)
    assert isinstance(lat, float)
    assert 51.4 <= lon <= 51.6
    assert 35.4 <= lat <= 35.6


def test_compute_centroid_point_and_empty():
    assert compute_centroid(Point(51, 35)) == (51, 35)
    assert compute_centroid(LineString([(0, 0), (2, 0)])) == (1, 0)
    with pytest.raises(ValueError):
        compute_centroid(Polygon())
    with pytest.raises(ValueError):
        compute_centroid(None)


def test_auto_select_utm():
    assert auto_select_utm(Point(51.4, 35.7)) == "EPSG:32639"
    assert auto_select_utm(Point(31.0, -5.0)) == "EPSG:32736"
    assert auto_select_utm(Point(180.0, 10.0)) == "EPSG:32660"


def test_representative_point_inside():
    ring = Polygon([(0, 0), (10, 0), (10, 1), (1, 1), (1, 10), (0, 10)])
    lng, lat = representative_point(ring)
    assert ring.contains(Point(lng, lat))
