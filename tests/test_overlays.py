"""Tests for overlay loading and lookup."""
from regionfinder.core.geometry import bbox_polygon
from regionfinder.core.models import OverlayEntry
from regionfinder.core.overlays import OverlayIndex, read_overlay_file


def _feature(properties, geometry):
    return {"type": "Feature", "properties": properties, "geometry": geometry}


def test_read_overlay_file(write_geojson):
    """Test valid features are loaded and invalid ones skipped."""
    path = write_geojson("overlays.geojson", [
        _feature({"name": "Qom", "nameFa": "قم"}, bbox_polygon((50, 34, 51, 35))),
        _feature({"name": "Karaj", "level": "county"}, bbox_polygon((50.8, 35.7, 51.1, 36))),
        _feature({"name": "Pin"}, {"type": "Point", "coordinates": [50.5, 34.5]}),
        _feature({"nameFa": "بی\u200cنام"}, bbox_polygon((1, 1, 2, 2))),
        _feature({"name": "Nowhere", "level": "village"}, bbox_polygon((1, 1, 2, 2))),
    ])

    entries = read_overlay_file(path)

    assert [e.name for e in entries] == ["Qom", "Karaj"]
    assert entries[0].level == "province"
    assert entries[0].name_fa == "قم"
    assert entries[0].source == "overlays.geojson"
    assert entries[1].level == "county"
    assert entries[1].name_fa is None


def test_read_missing_overlay_file(tmp_path):
    """Test a missing file degrades to no overlay."""
    assert read_overlay_file(tmp_path / "missing.geojson") == []


def test_read_unparseable_overlay_file(tmp_path):
    path = tmp_path / "broken.geojson"
    path.write_text("{not json", encoding="utf-8")
    assert read_overlay_file(path) == []


def test_lookup_by_any_spelling():
    """Test raw, Persian and normalized names reach the same entry."""
    entry = OverlayEntry("province", "Kerman", "کرمان", bbox_polygon((55, 26, 60, 32)))
    index = OverlayIndex([entry])

    assert index.get("province", "Kerman") is entry
    assert index.get("province", " Kerman ") is entry
    assert index.get("province", "کرمان") is entry
    # Arabic Kaf spelling
    assert index.get("province", "\u0643رمان") is entry
    assert index.get("county", "Kerman") is None
    assert index.get("province", None) is None


def test_earlier_source_wins():
    first = OverlayEntry("province", "Qom", None, bbox_polygon((0, 0, 1, 1)), source="a")
    second = OverlayEntry("province", "Qom", "قم", bbox_polygon((5, 5, 6, 6)), source="b")
    index = OverlayIndex([first, second])

    assert index.get("province", "Qom") is first
    # Alias only the later entry knows still resolves
    assert index.get("province", "قم") is second


def test_from_files_precedence(write_geojson):
    """Test earlier files take precedence for the same name."""
    primary = write_geojson("primary.geojson", [
        _feature({"name": "Qom"}, bbox_polygon((0, 0, 1, 1))),
    ])
    secondary = write_geojson("secondary.geojson", [
        _feature({"name": "Qom"}, bbox_polygon((5, 5, 6, 6))),
        _feature({"name": "Yazd"}, bbox_polygon((7, 7, 8, 8))),
    ])

    index = OverlayIndex.from_files([primary, secondary])

    assert index.get("province", "Qom").source == "primary.geojson"
    assert index.get("province", "Yazd").source == "secondary.geojson"
    assert len(index) == 2


def test_find_containing():
    index = OverlayIndex([
        OverlayEntry("province", "A", None, bbox_polygon((0, 0, 10, 10))),
        OverlayEntry("province", "B", None, bbox_polygon((5, 5, 15, 15))),
        OverlayEntry("county", "C", None, bbox_polygon((0, 0, 20, 20))),
    ])

    assert index.find_containing(7, 7).name == "A"
    assert index.find_containing(12, 12).name == "B"
    assert index.find_containing(18, 18) is None
    assert index.find_containing(18, 18, "county").name == "C"
    assert not OverlayIndex()
