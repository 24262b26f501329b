import pytest

from citylist_api.app.core.geo import EARTH_RADIUS_KM, haversine_km


def test_same_point_is_zero():
    assert haversine_km(51.5074, -0.1278, 51.5074, -0.1278) == 0.0


def test_london_paris():
    assert haversine_km(51.50853, -0.12574, 48.85341, 2.3488) == pytest.approx(343.5, abs=1.5)


def test_symmetric():
    a = haversine_km(51.5074, -0.1278, 55.0, -7.3)
    b = haversine_km(55.0, -7.3, 51.5074, -0.1278)
    assert a == pytest.approx(b)


def test_antipodes_do_not_exceed_half_circumference():
    import math

    distance = haversine_km(0.0, 0.0, 0.0, 180.0)
    assert distance == pytest.approx(math.pi * EARTH_RADIUS_KM)


def test_dateline_crossing_is_short():
    assert haversine_km(0.0, 179.9, 0.0, -179.9) < 25
