"""Modelos tipados para puntos, caminatas, rutas y checkpoints."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from caminata_tool.errors import InvalidGeoPointError, InvalidWalkError, MalformedImportLineError


@dataclass(frozen=True)
class GeoPoint:
    """Immutable latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            raise InvalidGeoPointError(f"Non-finite coordinate: {self.lat}, {self.lng}")
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidGeoPointError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise InvalidGeoPointError(f"Longitude out of range: {self.lng}")

    @classmethod
    def from_pair(cls, pair: Sequence[float]) -> GeoPoint:
        """Build from a ``(lat, lng)`` pair."""
        if len(pair) != 2:
            raise InvalidGeoPointError(f"Expected (lat, lng), got {pair!r}")
        try:
            return cls(lat=float(pair[0]), lng=float(pair[1]))
        except (TypeError, ValueError) as exc:
            raise InvalidGeoPointError(f"Invalid coordinate pair: {pair!r}") from exc

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object]) -> GeoPoint:
        """Build from ``{"lat": .., "lng": ..}`` (``lon`` accepted too)."""
        lng = raw.get("lng", raw.get("lon"))
        return cls.from_pair((raw.get("lat"), lng))  # type: ignore[arg-type]

    def as_pair(self) -> tuple[float, float]:
        return (self.lat, self.lng)


@dataclass(frozen=True)
class WalkEntry:
    """One logged walk."""

    id: str
    date: date
    distance_km: float
    notes: str = ""
    logged_at: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise InvalidWalkError("Walk id is required")
        if not isinstance(self.date, date) or isinstance(self.date, datetime):
            raise InvalidWalkError(f"Walk date must be a calendar date: {self.date!r}")
        if isinstance(self.distance_km, bool) or not isinstance(self.distance_km, int | float):
            raise InvalidWalkError(f"Distance must be a number: {self.distance_km!r}")
        if not math.isfinite(self.distance_km):
            raise InvalidWalkError("Distance must be finite")
        if self.distance_km < 0:
            raise InvalidWalkError("Distance cannot be negative")


@dataclass(frozen=True)
class RouteConfig:
    """Start/end names and geocoded points of the journey."""

    start_name: str
    end_name: str
    start_point: GeoPoint
    end_point: GeoPoint
    start_label: str | None = None
    end_label: str | None = None


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-date window."""

    start: date
    end: date

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end


@dataclass(frozen=True)
class Checkpoint:
    """Per-day marker for period playback (``position`` None = unavailable)."""

    day_index: int
    date: date
    distance_that_day: float
    cumulative_distance: float
    position: GeoPoint | None


@dataclass(frozen=True)
class Progress:
    """Projected journey progress for a distance total."""

    position: GeoPoint | None
    percent_complete: float
    split_index: int
    distance_covered_km: float
    remaining_km: float
    location_label: str


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a bulk text import."""

    imported_count: int
    errors: list[MalformedImportLineError] = field(default_factory=list)
