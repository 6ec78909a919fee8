from __future__ import annotations

import math

import pytest

from caminata_tool.geo import EARTH_RADIUS_KM, great_circle_km, haversine_km
from caminata_tool.model import GeoPoint


def test_kanyakumari_to_leh_is_about_2900_km() -> None:
    d = haversine_km(8.0883, 77.5385, 34.1526, 77.5771)
    assert 2800 <= d <= 3000


def test_distance_is_symmetric() -> None:
    pairs = [
        (GeoPoint(8.0883, 77.5385), GeoPoint(34.1526, 77.5771)),
        (GeoPoint(-33.87, 151.21), GeoPoint(51.5, -0.12)),
        (GeoPoint(0.0, 179.9), GeoPoint(0.0, -179.9)),
    ]
    for a, b in pairs:
        assert great_circle_km(a, b) == great_circle_km(b, a)


def test_identical_points_are_zero_apart() -> None:
    p = GeoPoint(28.6139, 77.2090)
    assert great_circle_km(p, p) == 0.0


def test_one_degree_on_equator() -> None:
    expected = EARTH_RADIUS_KM * math.pi / 180.0
    assert haversine_km(0, 0, 0, 1) == pytest.approx(expected, rel=1e-12)


def test_antipodal_points_do_not_raise() -> None:
    d = haversine_km(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-9)
    d_poles = haversine_km(90.0, 0.0, -90.0, 0.0)
    assert d_poles == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-9)
