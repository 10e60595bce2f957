"""Tests géographiques / Geographic utility tests."""

import math

import pytest

from fuel_finder.utils.geo import bounding_box, haversine, is_valid_coordinate

SYDNEY = (-33.8688, 151.2093)


def test_haversine_same_point():
    assert haversine(*SYDNEY, *SYDNEY) == 0.0


def test_haversine_one_degree_along_meridian():
    dist = haversine(-33.0, 151.0, -34.0, 151.0)
    assert dist == pytest.approx(111.0, rel=0.005)


def test_haversine_sydney_parramatta():
    # ~19 km
    dist = haversine(*SYDNEY, -33.8150, 151.0011)
    assert 18 < dist < 21


def test_bounding_box_latitude_span():
    lat_min, lat_max, lon_min, lon_max = bounding_box(*SYDNEY, 111.0)
    assert lat_max - SYDNEY[0] == pytest.approx(1.0)
    assert SYDNEY[0] - lat_min == pytest.approx(1.0)
    # La longitude s'élargit avec la latitude / Longitude widens with latitude
    assert lon_max - SYDNEY[1] > 1.0


def test_bounding_box_near_pole_is_finite():
    _, _, lon_min, lon_max = bounding_box(90.0, 0.0, 10.0)
    assert math.isfinite(lon_min) and math.isfinite(lon_max)
    assert lon_max == pytest.approx(10.0 / (111.0 * 0.01))


def test_is_valid_coordinate():
    assert is_valid_coordinate(*SYDNEY)
    assert is_valid_coordinate(90.0, -180.0)
    assert not is_valid_coordinate(90.1, 0.0)
    assert not is_valid_coordinate(0.0, 180.5)
    assert not is_valid_coordinate(None, 151.0)
    assert not is_valid_coordinate(float("nan"), 151.0)
