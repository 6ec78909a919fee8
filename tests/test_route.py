from __future__ import annotations

import math

import pytest

from caminata_tool.errors import EmptyRouteError, InvalidGeoPointError
from caminata_tool.geo import EARTH_RADIUS_KM, great_circle_km
from caminata_tool.model import GeoPoint
from caminata_tool.route import RoutePolyline

DEG_KM = EARTH_RADIUS_KM * math.pi / 180.0


def _equator_route() -> RoutePolyline:
    return RoutePolyline.build([[0, 0], [0, 1], [0, 2]])


def _arc_length(points: list[GeoPoint]) -> float:
    return sum(great_circle_km(a, b) for a, b in zip(points, points[1:]))


def test_build_rejects_empty_points() -> None:
    with pytest.raises(EmptyRouteError):
        RoutePolyline.build([])


def test_build_rejects_invalid_coordinates() -> None:
    with pytest.raises(InvalidGeoPointError):
        RoutePolyline.build([[0, 0], [95, 0]])


def test_total_distance_is_sum_of_segments() -> None:
    route = _equator_route()
    assert route.total_distance_km == pytest.approx(2 * DEG_KM)
    assert route.cumulative_km[1] == pytest.approx(DEG_KM)
    assert len(route) == 3


def test_position_at_known_distances() -> None:
    route = _equator_route()
    at_vertex = route.position_at_distance(111.19)
    assert at_vertex.lat == pytest.approx(0.0)
    assert at_vertex.lng == pytest.approx(1.0, abs=1e-3)

    mid = route.position_at_distance(50)
    assert mid.lat == pytest.approx(0.0)
    assert mid.lng == pytest.approx(0.45, abs=1e-3)
    assert mid.lng == pytest.approx(50 / DEG_KM)


def test_position_endpoints_and_clamping() -> None:
    route = _equator_route()
    total = route.total_distance_km
    assert route.position_at_distance(0) == GeoPoint(0, 0)
    assert route.position_at_distance(-5) == GeoPoint(0, 0)
    end = route.position_at_distance(total)
    assert end.lng == pytest.approx(2.0)
    assert route.position_at_distance(total + 500) == end


def test_position_is_pure_and_monotonic() -> None:
    route = RoutePolyline.build([[10, 10], [10.5, 10.2], [11, 10.9], [11.2, 11.5]])
    total = route.total_distance_km
    assert route.position_at_distance(42.0) == route.position_at_distance(42.0)

    distances = [total * i / 10 for i in range(11)]
    positions = [route.position_at_distance(d) for d in distances]
    assert len(set(positions)) == len(positions)


def test_position_skips_duplicate_vertices() -> None:
    route = RoutePolyline.build([[0, 0], [0, 1], [0, 1], [0, 2]])
    assert route.total_distance_km == pytest.approx(2 * DEG_KM)
    p = route.position_at_distance(1.5 * DEG_KM)
    assert p.lng == pytest.approx(1.5)


def test_single_point_route_is_degenerate() -> None:
    route = RoutePolyline.build([GeoPoint(5, 5)])
    assert route.total_distance_km == 0.0
    assert route.position_at_distance(10) == GeoPoint(5, 5)
    assert route.split_index_at_distance(10) == 0
    assert route.segment_between(0, 10) == []


def test_split_index() -> None:
    route = _equator_route()
    assert route.split_index_at_distance(0) == 0
    assert route.split_index_at_distance(-1) == 0
    assert route.split_index_at_distance(50) == 0
    assert route.split_index_at_distance(route.cumulative_km[1]) == 1
    assert route.split_index_at_distance(150) == 1
    assert route.split_index_at_distance(10_000) == 2


def test_segment_between_interpolates_both_ends() -> None:
    route = _equator_route()
    segment = route.segment_between(50, 150)
    assert len(segment) == 3
    assert segment[0].lng == pytest.approx(50 / DEG_KM)
    assert segment[1] == GeoPoint(0, 1)
    assert segment[2].lng == pytest.approx(150 / DEG_KM)
    assert _arc_length(segment) == pytest.approx(100.0, abs=1e-6)


def test_segment_length_fidelity_on_meridian() -> None:
    route = RoutePolyline.build([[0, 30], [0.3, 30], [0.7, 30], [1.2, 30], [2.0, 30]])
    total = route.total_distance_km
    for start, end in [(0.0, total), (3.0, 17.5), (40.0, 41.0), (10.0, total - 1)]:
        segment = route.segment_between(start, end)
        assert _arc_length(segment) == pytest.approx(end - start, abs=1e-6)


def test_segment_between_empty_and_clamped_cases() -> None:
    route = _equator_route()
    assert route.segment_between(150, 50) == []
    assert route.segment_between(60, 60) == []

    full = route.segment_between(-10, 10_000)
    assert full[0] == GeoPoint(0, 0)
    assert full[-1].lng == pytest.approx(2.0)
    assert _arc_length(full) == pytest.approx(route.total_distance_km)


def test_completed_and_pending_split() -> None:
    route = _equator_route()
    completed, pending = route.completed_and_pending(150)
    assert completed == [GeoPoint(0, 0), GeoPoint(0, 1)]
    assert pending == [GeoPoint(0, 1), GeoPoint(0, 2)]

    completed, pending = route.completed_and_pending(0)
    assert completed == []
    assert pending == list(route.points)


def test_pairs_round_trip() -> None:
    route = _equator_route()
    again = RoutePolyline.from_pairs(route.to_pairs())
    assert again.points == route.points
    assert again.total_distance_km == route.total_distance_km
