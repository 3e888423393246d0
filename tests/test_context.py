"""Tests for loading the boundary context."""
import json

from regionfinder.core.context import load_boundary_context
from regionfinder.core.geometry import bbox_polygon


def _feature(name, bounds, **props):
    return {
        "type": "Feature",
        "properties": {"name": name, **props},
        "geometry": bbox_polygon(bounds),
    }


def test_load_boundary_context(populated_db, write_geojson, tmp_path):
    """Test overlays, exception names and the hierarchy are loaded together."""
    primary = write_geojson("primary.geojson", [_feature("Gamma", (0, 0, 4, 4))])
    exceptions = write_geojson("exceptions.geojson", [_feature("Qom", (6, 6, 9, 9))])
    hierarchy_path = tmp_path / "hierarchy.json"
    hierarchy_path.write_text(
        json.dumps({"Beta": {"counties": ["AlphaCounty"]}}), encoding="utf-8"
    )

    context = load_boundary_context(
        populated_db,
        overlay_paths=[primary],
        exception_overlay_path=exceptions,
        exception_names=[" Qom ", ""],
        hierarchy_path=hierarchy_path,
    )

    assert context.overlays.get("province", "Gamma") is not None
    assert context.exception_overlays.get("province", "Qom") is not None
    assert context.exception_names == frozenset({"Qom"})
    assert context.is_exception("Qom")
    assert not context.is_exception("Gamma")
    assert context.hierarchy.province_for("AlphaCounty").name == "Beta"


def test_exception_overlay_skipped_without_names(populated_db, write_geojson, tmp_path):
    exceptions = write_geojson("exceptions.geojson", [_feature("Qom", (6, 6, 9, 9))])

    context = load_boundary_context(
        populated_db,
        overlay_paths=[],
        exception_overlay_path=exceptions,
        exception_names=[],
        hierarchy_path=tmp_path / "missing.json",
    )

    assert len(context.exception_overlays) == 0
    assert not context.is_exception("Qom")


def test_missing_reference_files(populated_db, tmp_path):
    """Test missing files leave every reference feature empty."""
    context = load_boundary_context(
        populated_db,
        overlay_paths=[tmp_path / "nope.geojson"],
        exception_overlay_path=tmp_path / "nope2.geojson",
        exception_names=["Qom"],
        hierarchy_path=tmp_path / "nope.json",
    )

    assert not context.overlays
    assert not context.exception_overlays
    assert not context.hierarchy
    assert context.store is populated_db
