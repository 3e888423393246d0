"""Tests for fuzzy matching."""
from regionfinder.core.fuzzy import fuzzy_match


def test_fuzzy_match():
    """Test fuzzy matching."""
    choices = ["Tehran", "Tabriz", "Shiraz", "Qom"]

    matches = fuzzy_match("Tehran", choices, threshold=0.7)
    assert len(matches) > 0
    assert matches[0][0] == "Tehran"
    assert matches[0][1] >= 0.7

    matches = fuzzy_match("tehran", choices, threshold=0.7)
    assert len(matches) > 0
    assert matches[0][0] == "Tehran"

    matches = fuzzy_match("xyz", choices, threshold=0.7)
    assert len(matches) == 0


def test_fuzzy_match_folds_confusable_letters():
    """Test Arabic Kaf in the query matches a Persian Keheh choice exactly."""
    choices = ["کرج", "قم"]
    matches = fuzzy_match("\u0643رج", choices, threshold=0.9)
    assert matches[0] == ("کرج", 1.0, 0)


def test_fuzzy_match_typo():
    matches = fuzzy_match("Teheran", ["Tehran", "Tabriz"], threshold=0.7)
    assert matches[0][0] == "Tehran"


def test_fuzzy_match_empty_input():
    assert fuzzy_match("", ["Tehran"]) == []
    assert fuzzy_match("Tehran", []) == []

