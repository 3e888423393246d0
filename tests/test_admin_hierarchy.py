"""Tests for the section hierarchy index."""
import json

from regionfinder.core.admin_hierarchy import SectionHierarchyIndex
from regionfinder.core.models import RegionRef

HIERARCHY = {
    "Alborz": {
        "nameFa": "البرز",
        "counties": ["Karaj", "Nazarabad"],
        "bakhsh": ["Asara"],
    },
    "Tehran": {
        "nameFa": "تهران",
        "counties": ["Shemiranat", "Karaj"],
        "sections": ["Lavasanat"],
    },
}


def test_province_for_section():
    """Test counties, bakhsh and sections map to their province."""
    index = SectionHierarchyIndex(HIERARCHY)

    assert index.province_for("Nazarabad") == RegionRef("Alborz", "البرز")
    assert index.province_for("Asara").name == "Alborz"
    assert index.province_for("Lavasanat").name == "Tehran"
    assert index.province_for("Unknown") is None
    assert index.province_for(None) is None


def test_first_province_wins_duplicates():
    """Test a section claimed twice keeps its first province."""
    index = SectionHierarchyIndex(HIERARCHY)

    assert index.province_for("Karaj").name == "Alborz"
    assert index.duplicates == 1


def test_lookup_is_normalized():
    index = SectionHierarchyIndex({"Alborz": {"counties": ["کرج"]}})

    assert index.province_for(" \u0643رج ").name == "Alborz"
    assert index.province_for("کرج").name_fa is None


def test_province_for_any_prefers_first_known():
    index = SectionHierarchyIndex(HIERARCHY)

    assert index.province_for_any([None, "Unknown", "Lavasanat", "Karaj"]).name == "Tehran"
    assert index.province_for_any([None, None]) is None


def test_province_count():
    index = SectionHierarchyIndex(HIERARCHY)

    assert index.province_count == len(HIERARCHY)


def test_malformed_entries_skipped():
    """Test malformed province entries are skipped, not fatal."""
    index = SectionHierarchyIndex({
        "Bad": {"counties": "Karaj"},
        "Worse": ["Karaj"],
        "Good": {"counties": ["Karaj", 5]},
        "Fine": {"counties": ["Qom"]},
    })

    assert index.province_for("Karaj") is None
    assert index.province_for("Qom").name == "Fine"
    assert len(index) == 1


def test_from_file(tmp_path):
    path = tmp_path / "sections.json"
    path.write_text(json.dumps(HIERARCHY, ensure_ascii=False), encoding="utf-8")

    index = SectionHierarchyIndex.from_file(path)

    assert index.province_for("Asara").name_fa == "البرز"


def test_missing_or_invalid_file(tmp_path):
    """Test a missing or unparseable file leaves the index empty."""
    assert not SectionHierarchyIndex.from_file(tmp_path / "missing.json")

    path = tmp_path / "broken.json"
    path.write_text("[1, 2", encoding="utf-8")
    assert not SectionHierarchyIndex.from_file(path)

    path.write_text("[1, 2]", encoding="utf-8")
    assert len(SectionHierarchyIndex.from_file(path)) == 0
