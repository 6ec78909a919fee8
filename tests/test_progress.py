from __future__ import annotations

import math

import pytest

from caminata_tool.geo import EARTH_RADIUS_KM
from caminata_tool.model import GeoPoint
from caminata_tool.progress import ProgressProjector
from caminata_tool.route import RoutePolyline

DEG_KM = EARTH_RADIUS_KM * math.pi / 180.0


def _route() -> RoutePolyline:
    return RoutePolyline.build([[0, 0], [0, 1], [0, 2]])


def test_nothing_walked_returns_raw_start() -> None:
    raw_start = GeoPoint(0.001, -0.002)
    progress = ProgressProjector(start_point=raw_start).project(0, _route())
    assert progress.position == raw_start
    assert progress.percent_complete == 0
    assert progress.split_index == 0
    assert progress.location_label == "Not started"


def test_nothing_walked_without_start_uses_route_start() -> None:
    progress = ProgressProjector().project(0, _route())
    assert progress.position == GeoPoint(0, 0)


def test_halfway() -> None:
    route = _route()
    progress = ProgressProjector(end_name="Leh").project(route.cumulative_km[1], route)
    assert progress.percent_complete == pytest.approx(50.0)
    assert progress.position is not None
    assert progress.position.lng == pytest.approx(1.0)
    assert progress.split_index == 1
    assert progress.remaining_km == pytest.approx(DEG_KM)
    assert progress.location_label == "50% towards destination"


def test_overshoot_clamps_to_destination() -> None:
    route = _route()
    progress = ProgressProjector(end_name="Leh").project(10_000, route)
    assert progress.percent_complete == 100.0
    assert progress.position == route.end
    assert progress.remaining_km == 0.0
    assert progress.split_index == 2
    assert progress.location_label == "Leh"


def test_zero_length_route_reports_zero_percent() -> None:
    route = RoutePolyline.build([[10, 10]])
    progress = ProgressProjector().project(5, route)
    assert progress.percent_complete == 0.0
    assert progress.position == GeoPoint(10, 10)


def test_missing_route_falls_back_to_start() -> None:
    start = GeoPoint(8.0883, 77.5385)
    progress = ProgressProjector(start_point=start).project(12, None)
    assert progress.position == start
    assert progress.percent_complete == 0.0
    assert progress.distance_covered_km == 12

    assert ProgressProjector().project(0, None).position is None


def test_percent_is_always_within_bounds() -> None:
    route = _route()
    projector = ProgressProjector()
    for km in [-5, 0, 1, 100, 222, 223, 1e6]:
        assert 0.0 <= projector.project(km, route).percent_complete <= 100.0
