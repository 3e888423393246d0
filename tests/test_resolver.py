"""Tests for coordinate to region resolution."""
import pytest

from regionfinder.core.admin_hierarchy import SectionHierarchyIndex
from regionfinder.core.context import BoundaryContext
from regionfinder.core.geometry import bbox_polygon
from regionfinder.core.models import Boundary, OverlayEntry, RegionSet
from regionfinder.core.overlays import OverlayIndex
from regionfinder.core.resolver import RegionResolver


def test_resolve_from_repository(context):
    """Test every level is resolved from repository polygons."""
    regions = RegionResolver(context).resolve(3, 3)

    assert regions.province == "Alpha"
    assert regions.province_fa == "آلفا"
    assert regions.county == "AlphaCounty"
    assert regions.bakhsh == "AlphaBakhsh"
    assert regions.city == "AlphaCity"
    assert regions.province_source == "repository"


def test_resolve_partial_levels(context):
    regions = RegionResolver(context).resolve(13, 3)

    assert regions.province == "Beta"
    assert regions.county == "BetaCounty"
    assert regions.bakhsh is None
    assert regions.city is None


def test_overlay_beats_repository_province(make_context):
    """Test an overlay polygon overrides a conflicting repository province."""
    overlay = OverlayEntry("province", "Gamma", "گاما", bbox_polygon((0, 0, 4, 4)))
    regions = RegionResolver(make_context(overlays=[overlay])).resolve(3, 3)

    assert regions.province == "Gamma"
    assert regions.province_fa == "گاما"
    assert regions.province_source == "overlay"
    # Section levels still come from the repository
    assert regions.county == "AlphaCounty"


def test_exception_overlay_only_for_listed_names(make_context):
    """Test exception overlays apply only to configured names."""
    overlay = OverlayEntry("province", "Qom", None, bbox_polygon((6, 6, 9, 9)))

    listed = make_context(exception_overlays=[overlay], exception_names=["Qom"])
    assert RegionResolver(listed).resolve(7, 7).province == "Qom"

    unlisted = make_context(exception_overlays=[overlay], exception_names=["Yazd"])
    assert RegionResolver(unlisted).resolve(7, 7).province == "Alpha"


def test_primary_overlay_before_exception_overlay(make_context):
    primary = OverlayEntry("province", "Primary", None, bbox_polygon((6, 6, 9, 9)))
    exception = OverlayEntry("province", "Qom", None, bbox_polygon((6, 6, 9, 9)))
    context = make_context(overlays=[primary], exception_overlays=[exception],
                           exception_names=["Qom"])

    assert RegionResolver(context).resolve(7, 7).province == "Primary"


def test_hierarchy_beats_polygon_province(make_context):
    """Test the hierarchy mapping of a section overrides the polygon province."""
    context = make_context(hierarchy={"Beta": {"nameFa": "بتا", "counties": ["AlphaCounty"]}})
    regions = RegionResolver(context).resolve(3, 3)

    assert regions.province == "Beta"
    assert regions.province_fa == "بتا"
    assert regions.province_source == "hierarchy"


def test_hierarchy_prefers_bakhsh_over_county(make_context):
    context = make_context(hierarchy={
        "Beta": {"counties": ["AlphaCounty"]},
        "Gamma": {"bakhsh": ["AlphaBakhsh"]},
    })
    assert RegionResolver(context).resolve(3, 3).province == "Gamma"


def test_hierarchy_matches_persian_section_name(make_context):
    context = make_context(hierarchy={"Beta": {"counties": ["شهرستان آلفا"]}})
    assert RegionResolver(context).resolve(3, 3).province == "Beta"


def test_nearest_province_bbox_when_outside_all(context):
    """Test a point outside every province bbox gets the nearest bbox center."""
    regions = RegionResolver(context).resolve(25, 5)

    assert regions.province == "Beta"
    assert regions.province_source == "bbox"
    assert regions.county is None


def test_smallest_containing_bbox_wins(temp_db):
    """Test bbox fallback prefers the smallest bbox containing the point."""
    temp_db.add_boundary(Boundary(
        "province:big", "province", "Big",
        geometry={"type": "Polygon", "coordinates": [[[0, 0], [10, 0], [0, 10], [0, 0]]]},
    ))
    temp_db.add_boundary(Boundary(
        "province:small", "province", "Small",
        geometry={"type": "Polygon", "coordinates": [[[5, 5], [8, 5], [5, 8], [5, 5]]]},
    ))

    regions = RegionResolver(BoundaryContext(store=temp_db)).resolve(7.9, 7.9)

    assert regions.province == "Small"
    assert regions.province_source == "bbox"


def test_no_provinces_means_no_province(temp_db):
    regions = RegionResolver(BoundaryContext(store=temp_db)).resolve(1, 1)
    assert regions == RegionSet()


def test_overlay_scenario_corrupt_province(temp_db):
    """
    Province A has valid geometry over [0,0,10,10]; province B [5,5,20,20]
    has no usable geometry but an overlay covers it. (7,7) belongs to B.
    """
    temp_db.add_boundary(Boundary("province:a", "province", "A", geometry=bbox_polygon((0, 0, 10, 10))))
    temp_db.add_boundary(Boundary("province:b", "province", "B", geometry=None, bbox=(5, 5, 20, 20)))
    context = BoundaryContext(
        store=temp_db,
        overlays=OverlayIndex([OverlayEntry("province", "B", None, bbox_polygon((5, 5, 20, 20)))]),
    )

    regions = RegionResolver(context).resolve(7, 7)

    assert regions.province == "B"
    assert regions.province_source == "overlay"


def test_hierarchy_scenario_stale_parent(temp_db):
    """
    County X has a stale parent and no province polygon contains it; the
    hierarchy index maps X to NewProvince.
    """
    temp_db.add_boundary(Boundary("province:far", "province", "Far", geometry=bbox_polygon((0, 0, 1, 1))))
    temp_db.add_boundary(Boundary(
        "county:x", "county", "X", parent="OldProvince", parent_level="province",
        geometry=bbox_polygon((30, 30, 32, 32)),
    ))
    context = BoundaryContext(
        store=temp_db,
        hierarchy=SectionHierarchyIndex({"NewProvince": {"nameFa": "استان جدید", "counties": ["X"]}}),
    )

    regions = RegionResolver(context).resolve(31, 31)

    assert regions.county == "X"
    assert regions.province == "NewProvince"
    assert regions.province_fa == "استان جدید"
    assert regions.province_source == "hierarchy"


def test_parent_chain_walks_to_province(temp_db):
    """Test stored parent links are followed up to a province."""
    temp_db.add_boundary(Boundary("province:p", "province", "P", geometry=bbox_polygon((50, 50, 51, 51))))
    temp_db.add_boundary(Boundary("county:c", "county", "C", parent="P",
                                  geometry=bbox_polygon((0, 0, 4, 4))))
    temp_db.add_boundary(Boundary("bakhsh:b", "bakhsh", "B", parent="C", parent_level="county",
                                  geometry=bbox_polygon((1, 1, 2, 2))))
    resolver = RegionResolver(BoundaryContext(store=temp_db))

    matched = temp_db.find_all_containing_regions(1.5, 1.5)
    province = resolver._province_from_parent_chain(matched)

    assert province is not None
    assert province.name == "P"


def test_parent_chain_is_cycle_safe(temp_db):
    temp_db.add_boundary(Boundary("county:c1", "county", "C1", parent="C2", parent_level="county",
                                  geometry=bbox_polygon((0, 0, 4, 4))))
    temp_db.add_boundary(Boundary("county:c2", "county", "C2", parent="C1", parent_level="county",
                                  geometry=bbox_polygon((10, 10, 14, 14))))
    resolver = RegionResolver(BoundaryContext(store=temp_db))

    matched = temp_db.find_all_containing_regions(1, 1)

    assert resolver._province_from_parent_chain(matched) is None


def test_resolve_never_raises(context, monkeypatch):
    """Test an internal failure yields an empty result."""
    def broken(lng, lat):
        raise RuntimeError("store offline")

    monkeypatch.setattr(context.store, "find_all_containing_regions", broken)

    regions = RegionResolver(context).resolve(3, 3)

    assert regions.is_empty()
    assert regions.province is None


def test_resolve_is_deterministic(context):
    resolver = RegionResolver(context)
    assert resolver.resolve(3, 3) == resolver.resolve(3, 3)


@pytest.mark.parametrize("lng,lat,expected", [
    (3, 3, "Alpha"),
    (15, 8, "Beta"),
    (-5, 5, "Alpha"),
])
def test_province_by_bbox(context, lng, lat, expected):
    assert RegionResolver(context).province_by_bbox(lng, lat).name == expected
