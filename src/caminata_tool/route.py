"""Polilínea de ruta: distancias acumuladas, interpolación y tramos."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Iterable, Sequence

from caminata_tool.errors import EmptyRouteError
from caminata_tool.geo import great_circle_km
from caminata_tool.model import GeoPoint


class RoutePolyline:
    """Immutable road path with cached cumulative distances (km).

    ``cumulative[i]`` is the distance walked from point 0 through point ``i``;
    it never decreases with ``i``.
    """

    def __init__(self, points: Sequence[GeoPoint]) -> None:
        """Create a polyline; prefer :meth:`build`, which validates input."""
        if not points:
            raise EmptyRouteError("A route needs at least one point")
        self._points: tuple[GeoPoint, ...] = tuple(points)
        cumulative = [0.0]
        for prev, cur in zip(self._points, self._points[1:]):
            cumulative.append(cumulative[-1] + great_circle_km(prev, cur))
        self._cumulative: tuple[float, ...] = tuple(cumulative)

    @classmethod
    def build(cls, points: Iterable[GeoPoint | Sequence[float]]) -> RoutePolyline:
        """Build a polyline from GeoPoints or ``(lat, lng)`` pairs.

        Raises:
            EmptyRouteError: If ``points`` is empty.
            InvalidGeoPointError: If a coordinate is out of range.
        """
        parsed = [p if isinstance(p, GeoPoint) else GeoPoint.from_pair(p) for p in points]
        return cls(parsed)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence[float]]) -> RoutePolyline:
        return cls.build(pairs)

    def to_pairs(self) -> list[list[float]]:
        return [[p.lat, p.lng] for p in self._points]

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return f"RoutePolyline(points={len(self._points)}, total_km={self.total_distance_km:.3f})"

    @property
    def points(self) -> tuple[GeoPoint, ...]:
        return self._points

    @property
    def cumulative_km(self) -> tuple[float, ...]:
        return self._cumulative

    @property
    def total_distance_km(self) -> float:
        return self._cumulative[-1]

    @property
    def start(self) -> GeoPoint:
        return self._points[0]

    @property
    def end(self) -> GeoPoint:
        return self._points[-1]

    def _interpolate(self, index: int, distance_km: float) -> GeoPoint:
        """Linear lat/lng blend inside segment ``index -> index + 1``."""
        a = self._points[index]
        b = self._points[index + 1]
        seg = self._cumulative[index + 1] - self._cumulative[index]
        if seg <= 0:
            return a
        ratio = (distance_km - self._cumulative[index]) / seg
        ratio = min(1.0, max(0.0, ratio))
        return GeoPoint(
            lat=a.lat + (b.lat - a.lat) * ratio,
            lng=a.lng + (b.lng - a.lng) * ratio,
        )

    def position_at_distance(self, distance_km: float) -> GeoPoint:
        """Return the point reached after ``distance_km`` along the route.

        Distances at or below 0 give the first point; distances at or beyond
        the total give the last point.
        """
        if distance_km <= 0 or len(self._points) < 2:
            return self._points[0]
        if distance_km >= self.total_distance_km:
            return self._points[-1]
        # cumulative[i] <= d < cumulative[i + 1]
        index = bisect_right(self._cumulative, distance_km) - 1
        return self._interpolate(index, distance_km)

    def split_index_at_distance(self, distance_km: float) -> int:
        """Index of the last point whose cumulative distance is <= ``distance_km``."""
        if distance_km <= 0 or len(self._points) < 2:
            return 0
        index = bisect_right(self._cumulative, distance_km) - 1
        return min(max(index, 0), len(self._points) - 1)

    def segment_between(self, start_km: float, end_km: float) -> list[GeoPoint]:
        """Sub-polyline between two cumulative distances.

        Both bounds are clamped to ``[0, total]`` and the boundary points are
        interpolated, so the arc length of the result is ``end - start`` unless
        ``end`` ran past the physical end of the route.
        """
        total = self.total_distance_km
        start_km = min(max(start_km, 0.0), total)
        end_km = min(max(end_km, 0.0), total)
        if start_km >= end_km:
            return []

        segment = [self.position_at_distance(start_km)]
        first_inner = bisect_right(self._cumulative, start_km)
        last_inner = bisect_left(self._cumulative, end_km)
        segment.extend(self._points[first_inner:last_inner])
        segment.append(self.position_at_distance(end_km))
        return segment

    def completed_and_pending(self, distance_km: float) -> tuple[list[GeoPoint], list[GeoPoint]]:
        """Split the route at ``distance_km`` into completed and pending paths.

        With no progress (split index 0) everything is pending.
        """
        index = self.split_index_at_distance(distance_km)
        if distance_km <= 0 or index == 0:
            return [], list(self._points)
        return list(self._points[: index + 1]), list(self._points[index:])
