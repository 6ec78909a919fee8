"""Clases base para los servicios externos (geocodificación y ruteo)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from caminata_tool.model import GeoPoint


@dataclass(frozen=True)
class GeocodedPlace:
    """A resolved location."""

    point: GeoPoint
    label: str


@dataclass(frozen=True)
class RoadRoute:
    """Road-following path returned by a router."""

    points: list[GeoPoint]
    total_distance_km: float


@dataclass(frozen=True)
class ServiceConfig:
    """Connection settings shared by HTTP collaborators."""

    base_url: str
    user_agent: str = "caminata-tool/0.1.0"
    timeout_seconds: float = 20.0


class Geocoder(ABC):
    """Abstract forward geocoder."""

    @abstractmethod
    def resolve(self, location_text: str) -> GeocodedPlace | None:
        """Resolve free text to a point.

        Returns:
            The best match, or None when nothing was found or the service
            failed.
        """


class RoadRouter(ABC):
    """Abstract road router."""

    @abstractmethod
    def route(self, start: GeoPoint, end: GeoPoint) -> RoadRoute | None:
        """Fetch a road route between two points.

        Returns:
            The route, or None when the service has no route or failed.
        """


@dataclass(frozen=True)
class NearbyPlace:
    """A named landmark near a route position."""

    name: str
    kind: str
    point: GeoPoint
    distance_km: float
    description: str = ""


class PlaceFinder(ABC):
    """Abstract lookup of landmarks around a point."""

    @abstractmethod
    def nearby(self, center: GeoPoint, radius_km: float = 30.0) -> list[NearbyPlace]:
        """Landmarks around ``center``, closest first.

        Returns:
            Up to 10 places; empty when nothing was found or the service
            failed.
        """
