"""Estado explícito del viaje y operaciones que combinan ruta y registro."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime

from caminata_tool.aggregate import PeriodAggregator
from caminata_tool.errors import LocationNotFoundError, RouteUnavailableError
from caminata_tool.ledger import WalkLedger
from caminata_tool.model import Checkpoint, DateRange, GeoPoint, Progress, RouteConfig, WalkEntry
from caminata_tool.periods import PeriodSelection, PeriodStats, period_stats, resolve_period
from caminata_tool.progress import ProgressProjector
from caminata_tool.route import RoutePolyline
from caminata_tool.sources.base import Geocoder, NearbyPlace, PlaceFinder, RoadRouter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JourneyState:
    """Route config, its polyline and the walk ledger."""

    route_config: RouteConfig | None = None
    route: RoutePolyline | None = None
    ledger: WalkLedger = field(default_factory=WalkLedger)


@dataclass(frozen=True)
class PeriodView:
    """Everything needed to draw one period on the map."""

    date_range: DateRange
    stats: PeriodStats
    distance_before_km: float
    highlight: list[GeoPoint]
    checkpoints: list[Checkpoint]


def set_route(
    state: JourneyState,
    start_text: str,
    end_text: str,
    *,
    geocoder: Geocoder,
    router: RoadRouter,
) -> JourneyState:
    """Geocode both ends, fetch the road route and return the new state.

    Existing walks are kept; progress is recomputed on the new route.

    Raises:
        LocationNotFoundError: If either location cannot be resolved.
        RouteUnavailableError: If the router returns no route.
    """
    start = geocoder.resolve(start_text)
    end = geocoder.resolve(end_text)
    if start is None or end is None:
        missing = start_text if start is None else end_text
        raise LocationNotFoundError(f"Could not find location: {missing}")

    road = router.route(start.point, end.point)
    if road is None:
        raise RouteUnavailableError(f"Unable to calculate route from {start_text} to {end_text}")

    config = RouteConfig(
        start_name=start_text,
        end_name=end_text,
        start_point=start.point,
        end_point=end.point,
        start_label=start.label,
        end_label=end.label,
    )
    route = RoutePolyline.build(road.points)
    logger.info(
        "Route %s -> %s built: %s points, %.1f km (router reported %.1f km)",
        start_text,
        end_text,
        len(route),
        route.total_distance_km,
        road.total_distance_km,
    )
    return replace(state, route_config=config, route=route)


def rebuild_route(state: JourneyState, *, router: RoadRouter) -> JourneyState:
    """Fetch the polyline again for the configured start/end points."""
    config = state.route_config
    if config is None:
        raise RouteUnavailableError("No route configured")
    road = router.route(config.start_point, config.end_point)
    if road is None:
        raise RouteUnavailableError(
            f"Unable to calculate route from {config.start_name} to {config.end_name}"
        )
    return replace(state, route=RoutePolyline.build(road.points))


def log_walk(
    state: JourneyState,
    distance_km: float,
    day: date,
    *,
    now: datetime,
    notes: str = "",
) -> tuple[JourneyState, WalkEntry]:
    """Validate a manual walk and return a new state that includes it.

    The id is the epoch-ms of ``now``, with a ``-N`` suffix on collision.
    ``state`` itself is left unchanged.
    """
    base_id = str(int(now.timestamp() * 1000))
    walk_id = base_id
    suffix = 1
    while walk_id in state.ledger:
        walk_id = f"{base_id}-{suffix}"
        suffix += 1
    entry = WalkEntry(id=walk_id, date=day, distance_km=float(distance_km), notes=notes, logged_at=now)
    ledger = WalkLedger(state.ledger)
    ledger.add(entry)
    logger.info("Walk logged: %.2f km on %s", entry.distance_km, entry.date)
    return replace(state, ledger=ledger), entry


def current_progress(state: JourneyState) -> Progress:
    """Project the ledger total onto the current route."""
    config = state.route_config
    projector = ProgressProjector(
        start_point=config.start_point if config else None,
        end_name=config.end_name if config else None,
    )
    return projector.project(state.ledger.total_distance(), state.route)


def nearby_places(state: JourneyState, finder: PlaceFinder, radius_km: float = 30.0) -> list[NearbyPlace]:
    """Landmarks around the current position.

    Empty until something has been walked on a fetched route.
    """
    covered = state.ledger.total_distance()
    if covered <= 0 or state.route is None or state.route.total_distance_km <= 0:
        return []
    return finder.nearby(state.route.position_at_distance(covered), radius_km)


def period_view(state: JourneyState, selection: PeriodSelection, *, today: date) -> PeriodView:
    """Resolve a period and compute its stats, highlight segment and checkpoints."""
    date_range = resolve_period(selection, today=today, walk_dates=state.ledger.walk_dates())
    walks = state.ledger.entries_in_range(date_range)
    stats = period_stats(walks)
    before = state.ledger.distance_before(date_range.start)

    highlight: list[GeoPoint] = []
    if state.route is not None and stats.total_km > 0:
        highlight = state.route.segment_between(before, before + stats.total_km)

    checkpoints = PeriodAggregator().compute(walks, before, state.route)
    logger.info(
        "Period %s..%s: %.2f km in %s walk(s), %s checkpoint(s)",
        date_range.start,
        date_range.end,
        stats.total_km,
        stats.walk_count,
        len(checkpoints),
    )
    return PeriodView(
        date_range=date_range,
        stats=stats,
        distance_before_km=before,
        highlight=highlight,
        checkpoints=checkpoints,
    )
