"""Tests normalisation des marques / Brand canonicalisation tests."""

from fuel_finder.services.brand_normalizer import canonical_brand, display_brand, normalize_brand_filters


def test_aliases_collapse_to_shell():
    assert canonical_brand("Coles Express") == canonical_brand("Shell") == "Shell"
    assert canonical_brand("reddy express") == "Shell"


def test_aliases_collapse_to_ampol():
    assert canonical_brand("  Caltex ") == "Ampol"
    assert canonical_brand("EG Ampol") == "Ampol"
    assert canonical_brand("Ampol Foodary") == "Ampol"


def test_unknown_brand_is_title_cased():
    assert canonical_brand("UNITED PETROLEUM") == "United Petroleum"
    assert canonical_brand("metro fuel") == "Metro Fuel"


def test_blank_brand():
    assert canonical_brand(None) is None
    assert canonical_brand("   ") is None


def test_custom_alias_table():
    assert canonical_brand("Budget", {"budget": "Independent"}) == "Independent"


def test_display_brand():
    assert display_brand("Coles Express") == "Shell (Coles Express)"
    assert display_brand("Shell") == "Shell"
    assert display_brand("united petroleum") == "United Petroleum"
    assert display_brand(None) is None


def test_normalize_brand_filters():
    assert normalize_brand_filters(["shell", "Coles Express", "Caltex", "ampol", " "]) == ["Ampol", "Shell"]
    assert normalize_brand_filters(None) == []
