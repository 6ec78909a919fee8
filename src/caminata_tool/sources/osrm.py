"""Ruteo por calles reales con OSRM."""

from __future__ import annotations

import logging
from typing import Any

import requests

from caminata_tool.errors import InvalidGeoPointError
from caminata_tool.model import GeoPoint
from caminata_tool.sources.base import RoadRoute, RoadRouter, ServiceConfig

logger = logging.getLogger(__name__)

DEFAULT_OSRM_URL = "https://router.project-osrm.org/route/v1/driving"


class OsrmRouter(RoadRouter):
    """OSRM ``/route`` client returning the full GeoJSON geometry."""

    def __init__(self, config: ServiceConfig, session: requests.Session | None = None) -> None:
        self._cfg = config
        self._session = session or requests.Session()

    def route(self, start: GeoPoint, end: GeoPoint) -> RoadRoute | None:
        """Fetch the first OSRM route between two points."""
        # OSRM expects lng,lat order
        coords = f"{start.lng},{start.lat};{end.lng},{end.lat}"
        url = f"{self._cfg.base_url.rstrip('/')}/{coords}"
        params = {"overview": "full", "geometries": "geojson"}
        logger.debug("Fetching route %s", coords)
        try:
            response = self._session.get(
                url,
                params=params,
                headers={"User-Agent": self._cfg.user_agent},
                timeout=self._cfg.timeout_seconds,
            )
            response.raise_for_status()
            data: Any = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Route request failed: %s", exc)
            return None

        routes = data.get("routes") if isinstance(data, dict) else None
        if not routes:
            logger.warning("No routes found between %s and %s", start, end)
            return None

        first = routes[0]
        try:
            points = [GeoPoint(lat=float(c[1]), lng=float(c[0])) for c in first["geometry"]["coordinates"]]
            total_km = float(first["distance"]) / 1000.0
        except (KeyError, IndexError, TypeError, ValueError, InvalidGeoPointError) as exc:
            logger.error("Unexpected OSRM payload: %s", exc)
            return None

        if not points:
            logger.warning("OSRM returned an empty geometry")
            return None
        logger.info("Route fetched: %s points, %.2f km", len(points), total_km)
        return RoadRoute(points=points, total_distance_km=total_km)
