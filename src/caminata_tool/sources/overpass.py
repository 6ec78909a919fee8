"""Lugares de interés cercanos con la API Overpass (OpenStreetMap)."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import requests

from caminata_tool.errors import InvalidGeoPointError
from caminata_tool.geo import great_circle_km
from caminata_tool.model import GeoPoint
from caminata_tool.sources.base import NearbyPlace, PlaceFinder, ServiceConfig

logger = logging.getLogger(__name__)

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"

MAX_PLACES = 10

# tag checked in this order to name the kind of place
_KIND_TAGS = ("tourism", "historic", "amenity", "natural", "place")

_SELECTORS = (
    '["tourism"]',
    '["historic"]',
    '["amenity"="place_of_worship"]',
    '["natural"="peak"]',
    '["place"="town"]',
    '["place"="city"]',
)


def build_query(center: GeoPoint, radius_km: float, timeout: int = 25) -> str:
    """Overpass QL for named-landmark nodes around ``center``."""
    around = f"(around:{radius_km * 1000:.0f},{center.lat},{center.lng})"
    nodes = "\n".join(f"  node{sel}{around};" for sel in _SELECTORS)
    return f"[out:json][timeout:{timeout}];\n(\n{nodes}\n);\nout body;\n"


def _place_from_element(center: GeoPoint, element: Mapping[str, Any]) -> NearbyPlace | None:
    tags = element.get("tags")
    if not isinstance(tags, Mapping) or not tags.get("name"):
        return None
    try:
        point = GeoPoint(lat=float(element["lat"]), lng=float(element["lon"]))
    except (KeyError, TypeError, ValueError, InvalidGeoPointError):
        return None
    kind = next((str(tags[t]) for t in _KIND_TAGS if tags.get(t)), "place")
    return NearbyPlace(
        name=str(tags["name"]),
        kind=kind,
        point=point,
        distance_km=great_circle_km(center, point),
        description=str(tags.get("description") or tags.get("wikipedia") or ""),
    )


def rank_places(
    center: GeoPoint, elements: Iterable[Mapping[str, Any]], limit: int = MAX_PLACES
) -> list[NearbyPlace]:
    """Named elements as places, closest first, truncated to ``limit``."""
    places = [p for p in (_place_from_element(center, el) for el in elements) if p is not None]
    places.sort(key=lambda p: p.distance_km)
    return places[:limit]


class OverpassPlaces(PlaceFinder):
    """Overpass ``/interpreter`` client for landmarks near the walker."""

    def __init__(self, config: ServiceConfig, session: requests.Session | None = None) -> None:
        self._cfg = config
        self._session = session or requests.Session()

    def nearby(self, center: GeoPoint, radius_km: float = 30.0) -> list[NearbyPlace]:
        """Fetch and rank landmarks within ``radius_km`` of ``center``."""
        query = build_query(center, radius_km)
        logger.debug("Fetching places around %.5f,%.5f (%.0f km)", center.lat, center.lng, radius_km)
        try:
            response = self._session.post(
                self._cfg.base_url,
                data={"data": query},
                headers={"User-Agent": self._cfg.user_agent},
                timeout=self._cfg.timeout_seconds,
            )
            response.raise_for_status()
            data: Any = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Nearby places request failed: %s", exc)
            return []

        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            logger.warning("Unexpected Overpass payload")
            return []
        places = rank_places(center, (el for el in elements if isinstance(el, Mapping)))
        logger.info("Found %s nearby place(s)", len(places))
        return places
