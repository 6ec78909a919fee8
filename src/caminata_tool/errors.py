"""Errores tipados del motor de progreso y del registro de caminatas."""

from __future__ import annotations


class JourneyError(ValueError):
    """Base class for recoverable journey errors."""


class EmptyRouteError(JourneyError):
    """Raised when a route is built from zero points."""


class InvalidGeoPointError(JourneyError):
    """Raised when a coordinate is outside the valid lat/lng range."""


class InvalidWalkError(JourneyError):
    """Raised when a walk entry fails validation at ingestion."""


class DuplicateIdError(JourneyError):
    """Raised when a walk id already exists in the ledger."""

    def __init__(self, walk_id: str) -> None:
        super().__init__(f"Walk id already present: {walk_id}")
        self.walk_id = walk_id


class InvalidRangeError(JourneyError):
    """Raised when a date range starts after it ends."""


class SnapshotFormatError(JourneyError):
    """Raised when an exported JSON file has an unexpected shape."""


class LocationNotFoundError(JourneyError):
    """Raised when the geocoder cannot resolve a location."""


class RouteUnavailableError(JourneyError):
    """Raised when the road router returns no route."""


class MalformedImportLineError(JourneyError):
    """One bad line of a bulk import.

    These are collected into ``ImportResult.errors``; they are never raised
    out of the import itself.
    """

    def __init__(self, line_number: int, reason: str) -> None:
        super().__init__(f"Line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason
