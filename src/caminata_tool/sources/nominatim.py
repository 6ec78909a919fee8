"""Geocodificación directa con Nominatim (OpenStreetMap)."""

from __future__ import annotations

import logging
from typing import Any

import requests

from caminata_tool.errors import InvalidGeoPointError
from caminata_tool.model import GeoPoint
from caminata_tool.sources.base import GeocodedPlace, Geocoder, ServiceConfig

logger = logging.getLogger(__name__)

DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"


class NominatimGeocoder(Geocoder):
    """Nominatim ``/search`` client (first match only)."""

    def __init__(self, config: ServiceConfig, session: requests.Session | None = None) -> None:
        self._cfg = config
        self._session = session or requests.Session()

    def resolve(self, location_text: str) -> GeocodedPlace | None:
        """Resolve a place name to its first Nominatim match."""
        params = {"format": "json", "q": location_text, "limit": "1"}
        logger.debug("Geocoding %r", location_text)
        try:
            response = self._session.get(
                self._cfg.base_url,
                params=params,
                headers={"User-Agent": self._cfg.user_agent, "Accept": "application/json"},
                timeout=self._cfg.timeout_seconds,
            )
            response.raise_for_status()
            data: Any = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Geocoding failed for %r: %s", location_text, exc)
            return None

        if not isinstance(data, list) or not data:
            logger.warning("Location not found: %r", location_text)
            return None

        first = data[0]
        try:
            point = GeoPoint.from_pair((float(first["lat"]), float(first["lon"])))
        except (KeyError, TypeError, ValueError, InvalidGeoPointError) as exc:
            logger.error("Unexpected Nominatim payload for %r: %s", location_text, exc)
            return None

        label = str(first.get("display_name", "") or location_text)
        logger.info("Geocoded %r to %.5f,%.5f", location_text, point.lat, point.lng)
        return GeocodedPlace(point=point, label=label)
