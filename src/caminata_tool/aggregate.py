"""Agregación diaria de un período y checkpoints sobre la ruta."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from typing import cast

import pandas as pd

from caminata_tool.ledger import walks_to_frame
from caminata_tool.model import Checkpoint, GeoPoint, WalkEntry
from caminata_tool.route import RoutePolyline

logger = logging.getLogger(__name__)


def daily_distance_summary(walks: pd.DataFrame) -> pd.DataFrame:
    """Aggregate walks by day (summed distance and walk count)."""
    if walks.empty:
        return pd.DataFrame(columns=["date", "distance_km", "walks"])
    g = walks.groupby("date", as_index=False).agg(
        distance_km=("distance_km", "sum"),
        walks=("distance_km", "count"),
    )
    return g.sort_values("date").reset_index(drop=True)


class PeriodAggregator:
    """Builds per-day checkpoints for historical playback of a period."""

    def compute(
        self,
        period_walks: Sequence[WalkEntry],
        distance_before_period: float,
        route: RoutePolyline | None,
    ) -> list[Checkpoint]:
        """One checkpoint per walk date, in chronological order.

        Args:
            period_walks: Walks already filtered to the period.
            distance_before_period: Distance of every walk dated before the
                period start.
            route: Road route; checkpoints get ``position=None`` when it is
                missing or has zero length.

        Returns:
            Checkpoints with cumulative distance and route position.
        """
        daily = daily_distance_summary(walks_to_frame(period_walks))
        if daily.empty:
            return []

        daily["cumulative_km"] = distance_before_period + daily["distance_km"].cumsum()

        checkpoints: list[Checkpoint] = []
        for day_index, row in enumerate(daily.itertuples(index=False), start=1):
            day = cast(date, row.date)
            cumulative = float(row.cumulative_km)
            checkpoints.append(
                Checkpoint(
                    day_index=day_index,
                    date=day,
                    distance_that_day=float(row.distance_km),
                    cumulative_distance=cumulative,
                    position=_position_or_none(route, cumulative, day),
                )
            )
        logger.debug("Computed %s checkpoint(s)", len(checkpoints))
        return checkpoints


def _position_or_none(route: RoutePolyline | None, distance_km: float, day: date) -> GeoPoint | None:
    if route is None or len(route) == 0 or route.total_distance_km <= 0:
        logger.warning("Position unavailable for checkpoint %s: route not ready", day)
        return None
    try:
        return route.position_at_distance(distance_km)
    except (ArithmeticError, ValueError) as exc:
        logger.error("Could not place checkpoint %s at %.3f km: %s", day, distance_km, exc)
        return None
