"""Proyección del total caminado sobre la polilínea de la ruta."""

from __future__ import annotations

from caminata_tool.model import GeoPoint, Progress
from caminata_tool.route import RoutePolyline


class ProgressProjector:
    """Maps a ledger distance total onto a route.

    ``start_point`` is the raw geocoded start. It is returned instead of the
    route's first vertex while nothing has been walked or the route is not
    available yet.
    """

    def __init__(self, start_point: GeoPoint | None = None, end_name: str | None = None) -> None:
        self._start_point = start_point
        self._end_name = end_name

    def project(self, ledger_total_km: float, route: RoutePolyline | None) -> Progress:
        """Project ``ledger_total_km`` onto ``route``.

        Args:
            ledger_total_km: Sum of all logged walk distances.
            route: Road route, or None while routing is incomplete.

        Returns:
            Position, percent complete (0-100), split index and labels.
        """
        covered = max(0.0, ledger_total_km)
        if route is None or len(route) == 0:
            return Progress(
                position=self._start_point,
                percent_complete=0.0,
                split_index=0,
                distance_covered_km=covered,
                remaining_km=0.0,
                location_label=_label(covered, 0.0, self._end_name),
            )

        total = route.total_distance_km
        percent = 0.0
        if total > 0:
            percent = min(100.0, max(0.0, covered / total * 100.0))

        if covered == 0:
            position = self._start_point or route.start
        else:
            position = route.position_at_distance(covered)

        return Progress(
            position=position,
            percent_complete=percent,
            split_index=route.split_index_at_distance(covered),
            distance_covered_km=covered,
            remaining_km=max(0.0, total - covered),
            location_label=_label(covered, total, self._end_name, percent),
        )


def _label(covered: float, total: float, end_name: str | None, percent: float = 0.0) -> str:
    if covered <= 0:
        return "Not started"
    if total > 0 and covered >= total:
        return end_name or "Destination reached"
    return f"{percent:.0f}% towards destination"
